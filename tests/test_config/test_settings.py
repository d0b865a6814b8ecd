"""Tests for the configuration system."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from btc_agent.bitcoin.address import AddressType, Network
from btc_agent.config.settings import AgentConfig, LogLevel, OracleConfig, _load_yaml

if TYPE_CHECKING:
    from pathlib import Path

_ROOT_PUBLIC_KEY = "0339a36013301597daef41fbe593a02cc513d0b55527ec2df1050e2e8ff49c85c2"

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_oracle_defaults(self) -> None:
        cfg = OracleConfig()
        assert cfg.url == "http://localhost:8080"
        assert cfg.token == ""
        assert cfg.timeout == 30.0
        assert cfg.page_size is None

    def test_agent_defaults(self) -> None:
        cfg = AgentConfig()
        assert cfg.network == Network.REGTEST
        assert cfg.main_address_type == AddressType.P2PKH
        assert cfg.min_confirmations == 6
        assert cfg.root_public_key == ""
        assert cfg.log_level == LogLevel.INFO
        assert isinstance(cfg.oracle, OracleConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_min_confirmations_upper_bound(self) -> None:
        with pytest.raises(ValidationError):
            AgentConfig(min_confirmations=7)

    def test_min_confirmations_negative(self) -> None:
        with pytest.raises(ValidationError):
            AgentConfig(min_confirmations=-1)

    def test_network_invalid(self) -> None:
        with pytest.raises(ValidationError):
            AgentConfig(network="signet")

    def test_log_level_case_insensitive(self) -> None:
        assert AgentConfig(log_level="debug").log_level == LogLevel.DEBUG

    def test_page_size_positive(self) -> None:
        with pytest.raises(ValidationError):
            OracleConfig(page_size=0)


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------


class TestEnv:
    def test_top_level_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BTCAGENT_NETWORK", "mainnet")
        monkeypatch.setenv("BTCAGENT_MIN_CONFIRMATIONS", "2")
        cfg = AgentConfig()
        assert cfg.network == Network.MAINNET
        assert cfg.min_confirmations == 2

    def test_nested_env_via_delimiter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BTCAGENT_ORACLE__URL", "https://oracle.example.com")
        monkeypatch.setenv("BTCAGENT_ORACLE__TOKEN", "my-token")
        cfg = AgentConfig()
        assert cfg.oracle.url == "https://oracle.example.com"
        assert cfg.oracle.token == "my-token"

    def test_oracle_config_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BTCAGENT_ORACLE__PAGE_SIZE", "25")
        assert OracleConfig().page_size == 25


# ---------------------------------------------------------------------------
# YAML
# ---------------------------------------------------------------------------


class TestYaml:
    def test_load_yaml_nonexistent(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_load_yaml_non_dict(self, tmp_path: Path) -> None:
        f = tmp_path / "list.yaml"
        f.write_text("- a\n- b\n")
        assert _load_yaml(f) == {}

    def test_from_yaml(self, tmp_path: Path) -> None:
        f = tmp_path / "agent.yaml"
        f.write_text(
            textwrap.dedent(f"""\
                network: testnet
                min_confirmations: 1
                root_public_key: {_ROOT_PUBLIC_KEY}
                oracle:
                  url: https://yaml-oracle.example.com
                  timeout: 5
            """)
        )
        cfg = AgentConfig.from_yaml(f)
        assert cfg.network == Network.TESTNET
        assert cfg.min_confirmations == 1
        assert cfg.root_public_key == _ROOT_PUBLIC_KEY
        assert cfg.oracle.url == "https://yaml-oracle.example.com"
        assert cfg.oracle.timeout == 5.0

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        f = tmp_path / "agent.yaml"
        f.write_text("network: testnet\n")
        monkeypatch.setenv("BTCAGENT_NETWORK", "mainnet")
        assert AgentConfig.from_yaml(f).network == Network.MAINNET


# ---------------------------------------------------------------------------
# Root key
# ---------------------------------------------------------------------------


class TestRootKey:
    def test_root_key(self) -> None:
        key = AgentConfig(root_public_key=_ROOT_PUBLIC_KEY).root_key()
        assert key.public_key.hex() == _ROOT_PUBLIC_KEY
        assert key.chain_code == b""
        assert key.derivation_path == ()

    def test_root_key_with_chain_code(self) -> None:
        cfg = AgentConfig(root_public_key=_ROOT_PUBLIC_KEY, root_chain_code="11" * 32)
        assert cfg.root_key().chain_code == bytes([0x11]) * 32

    def test_root_key_missing(self) -> None:
        with pytest.raises(ValueError, match="not configured"):
            AgentConfig().root_key()

    def test_root_key_malformed(self) -> None:
        with pytest.raises(ValueError):
            AgentConfig(root_public_key="abcd").root_key()
