"""Bitcoin primitives — keys, addresses, bit-packed derivation paths."""

from __future__ import annotations

from btc_agent.bitcoin.address import AddressType, Network, address_for, validate_address
from btc_agent.bitcoin.derivation import MAX_DERIVATION_PATH_BITS, derive_key_and_address
from btc_agent.bitcoin.keys import ExtendedPublicKey
from btc_agent.bitcoin.path import encode_path

__all__ = [
    "MAX_DERIVATION_PATH_BITS",
    "AddressType",
    "ExtendedPublicKey",
    "Network",
    "address_for",
    "derive_key_and_address",
    "encode_path",
    "validate_address",
]
