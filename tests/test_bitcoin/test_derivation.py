"""Tests for raw-path derivation and the path length limit."""

from __future__ import annotations

import pytest

from btc_agent.bitcoin.address import AddressType, Network, address_for
from btc_agent.bitcoin.derivation import (
    MAX_DERIVATION_PATH_BITS,
    check_derivation_path,
    derive_key_and_address,
)
from btc_agent.bitcoin.keys import ExtendedPublicKey
from btc_agent.bitcoin.path import encode_path
from btc_agent.errors import DerivationPathTooLong

_ROOT = ExtendedPublicKey.from_hex(
    "038cc78aa6040c5f269351939a05aad3a31f86902d0b8cf3085244bb58b6d4337a"
)


def _derive(raw_path: bytes) -> tuple[ExtendedPublicKey, str]:
    return derive_key_and_address(_ROOT, raw_path, AddressType.P2PKH, Network.MAINNET)


class TestPathLimit:
    def test_limit_is_255_words(self) -> None:
        assert MAX_DERIVATION_PATH_BITS == 255 * 31

    def test_988_bytes_accepted(self) -> None:
        check_derivation_path(bytes(988))

    def test_989_bytes_rejected(self) -> None:
        with pytest.raises(DerivationPathTooLong) as exc_info:
            _derive(bytes(989))
        assert exc_info.value.bit_length == 989 * 8
        assert exc_info.value.code == "derivation-path-too-long"


class TestDeriveKeyAndAddress:
    def test_empty_path_is_root(self) -> None:
        key, address = _derive(b"")
        assert key == _ROOT
        assert address == address_for(_ROOT.public_key, AddressType.P2PKH, Network.MAINNET)

    def test_follows_packed_words(self) -> None:
        raw = b"\x01\x02\x03"
        key, address = _derive(raw)
        assert key == _ROOT.derive(encode_path(raw))
        assert key.derivation_path == tuple(encode_path(raw))
        assert address == address_for(key.public_key, AddressType.P2PKH, Network.MAINNET)

    def test_deterministic(self) -> None:
        assert _derive(b"wallet-7") == _derive(b"wallet-7")

    def test_distinct_paths_distinct_addresses(self) -> None:
        assert _derive(b"\x01")[1] != _derive(b"\x02")[1]

    def test_network_changes_address_only(self) -> None:
        mainnet_key, mainnet_address = _derive(b"\x05")
        testnet_key, testnet_address = derive_key_and_address(
            _ROOT, b"\x05", AddressType.P2PKH, Network.TESTNET
        )
        assert mainnet_key == testnet_key
        assert mainnet_address != testnet_address
