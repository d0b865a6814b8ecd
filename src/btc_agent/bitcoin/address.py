"""Address encoding — network and address-type selection, P2PKH.

Address derivation is a pure function dispatched over the closed
``AddressType`` set, so adding a script type means adding one enum member
and one ``match`` arm.
"""

from __future__ import annotations

import enum

from btc_agent.bitcoin.keys import base58check_decode, base58check_encode
from btc_agent.utils.crypto import hash160


class Network(enum.StrEnum):
    """Bitcoin networks the agent can target."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    REGTEST = "regtest"


class AddressType(enum.StrEnum):
    """Supported address (script) types."""

    P2PKH = "p2pkh"


# P2PKH version bytes
_PUBKEY_HASH_VERSIONS: dict[Network, int] = {
    Network.MAINNET: 0x00,  # 1...
    Network.TESTNET: 0x6F,  # m... or n...
    Network.REGTEST: 0x6F,
}


def p2pkh_address(public_key: bytes, network: Network) -> str:
    """Generate a P2PKH address from a compressed public key.

    Args:
        public_key: 33-byte compressed public key.
        network: Target network (selects the version byte).

    Returns:
        Base58Check-encoded P2PKH address.
    """
    version = _PUBKEY_HASH_VERSIONS[network]
    return base58check_encode(bytes([version]) + hash160(public_key))


def address_for(public_key: bytes, address_type: AddressType, network: Network) -> str:
    """Encode *public_key* as an address of *address_type* on *network*."""
    match address_type:
        case AddressType.P2PKH:
            return p2pkh_address(public_key, network)
    msg = f"Unsupported address type: {address_type}"
    raise ValueError(msg)


def validate_address(address: str, network: Network | None = None) -> bool:
    """Check that *address* is a P2PKH address, optionally for *network*."""
    try:
        payload = base58check_decode(address)
    except ValueError:
        return False
    if len(payload) != 21:
        return False
    if network is None:
        return payload[0] in _PUBKEY_HASH_VERSIONS.values()
    return payload[0] == _PUBKEY_HASH_VERSIONS[network]
