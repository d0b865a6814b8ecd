"""Hashing primitives used by key derivation and address encoding."""

from __future__ import annotations

import hashlib
import hmac


def sha256(data: bytes) -> bytes:
    """Single SHA-256 hash."""
    return hashlib.sha256(data).digest()


def sha256d(data: bytes) -> bytes:
    """SHA256(SHA256(data)), the Base58Check checksum hash."""
    return sha256(sha256(data))


def ripemd160(data: bytes) -> bytes:
    """RIPEMD-160 hash."""
    return hashlib.new("ripemd160", data).digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD-160(SHA-256(data)), the P2PKH public key hash."""
    return ripemd160(sha256(data))


def hmac_sha512(key: bytes, *parts: bytes) -> bytes:
    """HMAC-SHA512 of the concatenated *parts* under *key* (BIP32 CKD)."""
    mac = hmac.new(key, digestmod=hashlib.sha512)
    for part in parts:
        mac.update(part)
    return mac.digest()
