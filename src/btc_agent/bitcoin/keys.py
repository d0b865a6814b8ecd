"""BIP32 public child-key derivation and Base58Check encoding.

Implements the public half of BIP32 for secp256k1:
- Base58Check encoding / decoding
- Non-hardened child derivation (CKDpub) over raw index bytes
- ``ExtendedPublicKey`` value type carrying the accumulated derivation path

Hardened derivation needs the private key and is not supported here.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Self

from ecdsa import SECP256k1, VerifyingKey
from ecdsa.ellipticcurve import INFINITY

from btc_agent.utils.crypto import hmac_sha512, sha256d

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CURVE = SECP256k1
_CURVE_ORDER = _CURVE.order
_CURVE_GEN = _CURVE.generator

CHAIN_CODE_SIZE = 32
COMPRESSED_KEY_SIZE = 33


# ---------------------------------------------------------------------------
# Base58Check encoding / decoding
# ---------------------------------------------------------------------------

_B58_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def base58_encode(payload: bytes) -> str:
    """Encode raw bytes to Base58 (no checksum)."""
    n = int.from_bytes(payload, "big")
    digits: list[int] = []
    while n > 0:
        n, remainder = divmod(n, 58)
        digits.append(_B58_ALPHABET[remainder])
    # Each leading zero byte becomes a leading '1'
    zeros = len(payload) - len(payload.lstrip(b"\x00"))
    digits.extend(_B58_ALPHABET[0:1] * zeros)
    return bytes(reversed(digits)).decode("ascii")


def base58_decode(s: str) -> bytes:
    """Decode a Base58 string to raw bytes (no checksum).

    Raises:
        ValueError: If *s* contains a character outside the alphabet.
    """
    n = 0
    for char in s.encode("ascii"):
        digit = _B58_ALPHABET.find(char)
        if digit < 0:
            msg = f"Invalid Base58 character: {chr(char)!r}"
            raise ValueError(msg)
        n = n * 58 + digit
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n > 0 else b""
    pad = len(s) - len(s.lstrip("1"))
    return b"\x00" * pad + body


def base58check_encode(payload: bytes) -> str:
    """Encode bytes with a 4-byte SHA256d checksum (Base58Check)."""
    return base58_encode(payload + sha256d(payload)[:4])


def base58check_decode(s: str) -> bytes:
    """Decode a Base58Check string, verifying the checksum.

    Raises:
        ValueError: If the string is malformed or the checksum is invalid.
    """
    raw = base58_decode(s)
    if len(raw) < 4:
        msg = "Base58Check string too short"
        raise ValueError(msg)
    payload, checksum = raw[:-4], raw[-4:]
    if sha256d(payload)[:4] != checksum:
        msg = "Base58Check checksum mismatch"
        raise ValueError(msg)
    return payload


# ---------------------------------------------------------------------------
# CKDpub
# ---------------------------------------------------------------------------


def ckd_pub(public_key: bytes, chain_code: bytes, index: bytes) -> tuple[bytes, bytes]:
    """Derive one non-hardened child from a compressed public key.

    ``I = HMAC-SHA512(chain_code, public_key || index)``; the child key is
    ``point(public_key) + I_L * G`` and the child chain code is ``I_R``.
    An empty *chain_code* is treated as 32 zero bytes.

    Args:
        public_key: 33-byte SEC compressed parent public key.
        chain_code: 32-byte parent chain code, or empty.
        index: Child index bytes (4 big-endian bytes for standard BIP32).

    Returns:
        Tuple of (33-byte compressed child public key, 32-byte chain code).

    Raises:
        ValueError: If the parent key is not a valid curve point or the
            derived key is invalid (probability below 2^-127).
    """
    if not chain_code:
        chain_code = bytes(CHAIN_CODE_SIZE)

    digest = hmac_sha512(chain_code, public_key, index)
    il, ir = digest[:32], digest[32:]

    il_int = int.from_bytes(il, "big")
    if il_int >= _CURVE_ORDER:
        msg = "Derived key is invalid (il >= curve order)"
        raise ValueError(msg)

    child_point = _CURVE_GEN * il_int + _decode_point(public_key)
    if child_point == INFINITY:
        msg = "Derived key is invalid (point at infinity)"
        raise ValueError(msg)

    return _encode_point(child_point), ir


def _decode_point(public_key: bytes):  # type: ignore[no-untyped-def]
    """Decode a SEC-encoded public key to a curve point."""
    try:
        return VerifyingKey.from_string(public_key, curve=_CURVE).pubkey.point
    except Exception as exc:
        msg = f"Invalid public key: {public_key.hex()}"
        raise ValueError(msg) from exc


def _encode_point(point) -> bytes:  # type: ignore[no-untyped-def]
    """Encode a curve point as a 33-byte compressed public key."""
    prefix = b"\x02" if point.y() % 2 == 0 else b"\x03"
    return prefix + point.x().to_bytes(32, "big")


# ---------------------------------------------------------------------------
# Extended public key
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtendedPublicKey:
    """A public key plus chain code, enabling public child derivation.

    Attributes:
        public_key: 33-byte compressed public key.
        chain_code: 32-byte chain code (empty means all zeros).
        derivation_path: Index words applied since the root key.
    """

    public_key: bytes
    chain_code: bytes = b""
    derivation_path: tuple[bytes, ...] = ()

    @classmethod
    def from_hex(cls, public_key: str, chain_code: str = "") -> Self:
        """Build a root key from hex strings.

        Raises:
            ValueError: If the public key is not a compressed secp256k1 point.
        """
        key = bytes.fromhex(public_key)
        if len(key) != COMPRESSED_KEY_SIZE or key[0] not in (0x02, 0x03):
            msg = f"Expected a 33-byte compressed public key, got {len(key)} bytes"
            raise ValueError(msg)
        _decode_point(key)
        code = bytes.fromhex(chain_code)
        if code and len(code) != CHAIN_CODE_SIZE:
            msg = f"Invalid chain code length: {len(code)}"
            raise ValueError(msg)
        return cls(public_key=key, chain_code=code)

    @property
    def depth(self) -> int:
        """Number of derivation steps since the root key."""
        return len(self.derivation_path)

    def derive_child(self, index: bytes) -> ExtendedPublicKey:
        """Derive the child key at *index*, extending ``derivation_path``."""
        child_key, child_chain_code = ckd_pub(self.public_key, self.chain_code, index)
        return ExtendedPublicKey(
            public_key=child_key,
            chain_code=child_chain_code,
            derivation_path=(*self.derivation_path, bytes(index)),
        )

    def derive(self, path: Iterable[bytes]) -> ExtendedPublicKey:
        """Fold :meth:`derive_child` over *path*; an empty path returns ``self``."""
        key = self
        for index in path:
            key = key.derive_child(index)
        return key
