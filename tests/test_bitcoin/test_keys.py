"""Tests for Base58Check and public child key derivation."""

from __future__ import annotations

import pytest

from btc_agent.bitcoin.keys import (
    ExtendedPublicKey,
    base58_decode,
    base58_encode,
    base58check_decode,
    base58check_encode,
    ckd_pub,
)

_MASTER_PUBLIC_KEY = bytes.fromhex(
    "038cc78aa6040c5f269351939a05aad3a31f86902d0b8cf3085244bb58b6d4337a"
)
_INDEX_1 = bytes([1, 2, 3, 4, 5])
_INDEX_2 = bytes([8, 0, 2, 8, 0, 2])

# ---------------------------------------------------------------------------
# Base58
# ---------------------------------------------------------------------------


class TestBase58:
    def test_leading_zeros(self) -> None:
        assert base58_encode(b"\x00\x00\x01") == "112"
        assert base58_decode("112") == b"\x00\x00\x01"

    def test_empty(self) -> None:
        assert base58_encode(b"") == ""
        assert base58_decode("") == b""

    def test_invalid_character(self) -> None:
        with pytest.raises(ValueError, match="Invalid Base58"):
            base58_decode("0OIl")

    def test_check_decode_verifies_checksum(self) -> None:
        encoded = base58check_encode(b"\x00" + bytes(20))
        assert encoded == "1111111111111111111114oLvT2"
        assert base58check_decode(encoded) == b"\x00" + bytes(20)

    def test_check_decode_bad_checksum(self) -> None:
        encoded = base58check_encode(b"\x00hello")
        corrupted = encoded[:-1] + ("2" if encoded[-1] != "2" else "3")
        with pytest.raises(ValueError, match="checksum"):
            base58check_decode(corrupted)

    def test_check_decode_too_short(self) -> None:
        with pytest.raises(ValueError, match="too short"):
            base58check_decode("1")


# ---------------------------------------------------------------------------
# CKDpub
# ---------------------------------------------------------------------------


class TestCkdPub:
    def test_arbitrary_length_index_1(self) -> None:
        public_key, chain_code = ckd_pub(_MASTER_PUBLIC_KEY, b"", _INDEX_1)
        assert public_key.hex() == (
            "0216ce1e78a8477d41351c31d0a9f70286935a96bdd5544356d8ecf63a4120979c"
        )
        assert chain_code.hex() == (
            "0811cb2a510b05fedcfb7ba49a5ceb4d48d9ed1210b6a85839e36c53105d3308"
        )

    def test_arbitrary_length_index_2(self) -> None:
        public_key, chain_code = ckd_pub(_MASTER_PUBLIC_KEY, b"", _INDEX_2)
        assert public_key.hex() == (
            "02a9a19dc211db7ec0cbc5883bbc70eedef9d95fed51d950d2fe350e66fbb542aa"
        )
        assert chain_code.hex() == (
            "979ab6baf82d9e4b0793236f61012a48d9b3bfa9b6f30c86a0b5d01c1fab300d"
        )

    def test_empty_chain_code_is_zero_chain_code(self) -> None:
        assert ckd_pub(_MASTER_PUBLIC_KEY, b"", _INDEX_1) == ckd_pub(
            _MASTER_PUBLIC_KEY, bytes(32), _INDEX_1
        )

    def test_invalid_parent_key(self) -> None:
        with pytest.raises(ValueError, match="Invalid public key"):
            ckd_pub(b"\x02\x01\x02\x03\x04", b"", b"\x00\x00\x00\x01")


# ---------------------------------------------------------------------------
# ExtendedPublicKey
# ---------------------------------------------------------------------------


class TestExtendedPublicKey:
    def test_two_step_path(self) -> None:
        child = ExtendedPublicKey(_MASTER_PUBLIC_KEY).derive([_INDEX_1, _INDEX_2])
        assert child.public_key.hex() == (
            "0312ea4418122888ddd95b15261053864861f46f6081a0374c73918c3957b7f35b"
        )
        assert child.chain_code.hex() == (
            "53ab3ab4ba311976dfae6e7f38fe2131dd5cb72ceff178b06a19b8ad92d1f2d3"
        )
        assert child.derivation_path == (_INDEX_1, _INDEX_2)
        assert child.depth == 2

    @pytest.mark.parametrize(
        ("public_key", "chain_code", "path", "expected"),
        [
            (
                "023e4740d0ba639e28963f3476157b7cf2fb7c6fdf4254f97099cf8670b505ea59",
                "180c998615636cd875aa70c71cfa6b7bf570187a56d8c6d054e60b644d13e9d3",
                ["7fffffff"],
                "023646dd63e956c0c956059fb45e10e0223be698357b20cc9196a2fda7ff858e35",
            ),
            (
                "02b30058c39a7372de41973a792cc6d3faaa29a813ec85530f7ec60b79cb5c2260",
                "8b0d0b42b81f535fb8d7637c93255ac5a6976a8adc045cfc1d214e2cf468c765",
                ["00000001", "00000002", "00000003"],
                "03399311d21adc7fd7e042b747ee0bb1fc62fe9917a7f57ade3e9fa2c79d2b9aa8",
            ),
            (
                "02110b3982b01e5429b75c2dbd6227ee9a818780af1b0c2a3b5b00db19b6116b0d",
                "d84e7baa7130e741f75c23062e514cba7d3acc4dbeb3b269cb12f37d3d57aae0",
                ["00000001"],
                "03464a43b0c32c9ae34fc5c00c368c82e208192b0c3ee9d17ab7413537e33a3f57",
            ),
        ],
    )
    def test_bip32_public_derivation(self, public_key, chain_code, path, expected) -> None:
        parent = ExtendedPublicKey.from_hex(public_key, chain_code)
        child = parent.derive(bytes.fromhex(word) for word in path)
        assert child.public_key.hex() == expected

    def test_empty_path_returns_self(self) -> None:
        key = ExtendedPublicKey(_MASTER_PUBLIC_KEY)
        assert key.derive([]) is key
        assert key.depth == 0

    def test_derive_child_does_not_mutate_parent(self) -> None:
        key = ExtendedPublicKey(_MASTER_PUBLIC_KEY)
        key.derive_child(_INDEX_1)
        assert key.derivation_path == ()

    def test_from_hex_rejects_uncompressed_length(self) -> None:
        with pytest.raises(ValueError, match="33-byte"):
            ExtendedPublicKey.from_hex("04" + "00" * 64)

    def test_from_hex_rejects_bad_chain_code(self) -> None:
        with pytest.raises(ValueError, match="chain code"):
            ExtendedPublicKey.from_hex(_MASTER_PUBLIC_KEY.hex(), "abcd")

    def test_from_hex_rejects_uncompressed_prefix(self) -> None:
        with pytest.raises(ValueError, match="compressed"):
            ExtendedPublicKey.from_hex("04" + "00" * 32)
