"""Key derivation — raw path to child key and address."""

from __future__ import annotations

from typing import TYPE_CHECKING

from btc_agent.bitcoin.address import address_for
from btc_agent.bitcoin.path import WORD_BITS, encode_path, path_bit_length
from btc_agent.errors.definitions import DerivationPathTooLong

if TYPE_CHECKING:
    from btc_agent.bitcoin.address import AddressType, Network
    from btc_agent.bitcoin.keys import ExtendedPublicKey

MAX_DERIVATION_DEPTH = 255
MAX_DERIVATION_PATH_BITS = MAX_DERIVATION_DEPTH * WORD_BITS


def check_derivation_path(raw_path: bytes) -> None:
    """Raise :class:`DerivationPathTooLong` if *raw_path* packs past 255 words."""
    bit_length = path_bit_length(raw_path)
    if bit_length > MAX_DERIVATION_PATH_BITS:
        raise DerivationPathTooLong(bit_length, MAX_DERIVATION_PATH_BITS)


def derive_key_and_address(
    parent: ExtendedPublicKey,
    raw_path: bytes,
    address_type: AddressType,
    network: Network,
) -> tuple[ExtendedPublicKey, str]:
    """Derive the child of *parent* at *raw_path* and its address.

    The raw path is bit-packed into 31-bit child indices and public child
    derivation is folded over them. The child's ``derivation_path`` is the
    parent's path followed by the packed words. The empty path yields the
    parent key itself.

    Args:
        parent: Parent extended public key.
        raw_path: Arbitrary bytes identifying the child.
        address_type: Encoding to apply to the child public key.
        network: Network selecting the address version.

    Returns:
        Tuple of (child key, child address).

    Raises:
        DerivationPathTooLong: If ``8 * len(raw_path) > 255 * 31``.
    """
    check_derivation_path(raw_path)
    child = parent.derive(encode_path(raw_path))
    return child, address_for(child.public_key, address_type, network)
