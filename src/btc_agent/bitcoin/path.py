"""Bit-packed derivation paths.

An arbitrary byte string is packed, MSB first, into a sequence of 31-bit
non-hardened BIP32 child indices. Each index is emitted as a 4-byte
big-endian word whose top bit is always zero.
"""

from __future__ import annotations

WORD_BITS = 31
WORD_SIZE = 4
HARDENED_BIT = 0x80000000


def encode_path(raw: bytes) -> list[bytes]:
    """Pack *raw* into 4-byte child-index words.

    Bit ``k`` of the input lands at bit ``30 - k % 31`` of word ``k // 31``.
    A word is emitted every 31 input bits; one trailing, zero-padded word is
    emitted after the loop whenever ``len(raw) % 8 != 0``.

    >>> [w.hex() for w in encode_path(b"\\xff")]
    ['7f800000']
    """
    words: list[bytes] = []
    word = 0
    filled = 0
    for byte in raw:
        for shift in range(7, -1, -1):
            word |= ((byte >> shift) & 1) << (WORD_BITS - 1 - filled)
            filled += 1
            if filled == WORD_BITS:
                words.append(word.to_bytes(WORD_SIZE, "big"))
                word = 0
                filled = 0
    if len(raw) % 8 != 0:
        words.append(word.to_bytes(WORD_SIZE, "big"))
    return words


def decode_word(word: bytes) -> int:
    """Return the child index carried by one encoded word."""
    if len(word) != WORD_SIZE:
        msg = f"Invalid path word length: {len(word)}"
        raise ValueError(msg)
    index = int.from_bytes(word, "big")
    if index & HARDENED_BIT:
        msg = f"Hardened index not supported: {index:#x}"
        raise ValueError(msg)
    return index


def path_bit_length(raw: bytes) -> int:
    """Number of input bits the encoder walks for *raw*."""
    return 8 * len(raw)
