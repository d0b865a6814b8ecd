"""Agent settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``BTCAGENT_``, nested via ``__``)
2. YAML config file (``BTCAGENT_CONFIG_PATH`` env var or ``from_yaml``)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from btc_agent.bitcoin.address import AddressType, Network
from btc_agent.engine.models import MIN_CONFIRMATIONS_UPPER_BOUND

if TYPE_CHECKING:
    from btc_agent.bitcoin.keys import ExtendedPublicKey


class LogLevel(enum.StrEnum):
    """Log levels accepted by the CLI."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class OracleConfig(BaseSettings):
    """UTXO/fee oracle settings."""

    model_config = SettingsConfigDict(
        env_prefix="BTCAGENT_ORACLE__",
        case_sensitive=False,
    )

    url: str = "http://localhost:8080"
    token: str = ""
    timeout: float = Field(default=30.0, gt=0)
    page_size: int | None = Field(
        default=None,
        ge=1,
        description="Page size used by the in-memory oracle; None serves one page",
    )


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


class AgentConfig(BaseSettings):
    """Top-level agent configuration.

    Loads settings from environment variables (``BTCAGENT_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="BTCAGENT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    network: Network = Network.REGTEST
    main_address_type: AddressType = AddressType.P2PKH
    min_confirmations: int = Field(default=MIN_CONFIRMATIONS_UPPER_BOUND, ge=0)
    root_public_key: str = Field(
        default="",
        description="Compressed SEC1 root public key, hex",
    )
    root_chain_code: str = Field(
        default="",
        description="32-byte root chain code, hex; empty means all zeroes",
    )
    log_level: LogLevel = LogLevel.INFO
    config_path: str = ""

    oracle: OracleConfig = Field(default_factory=OracleConfig)

    @field_validator("min_confirmations")
    @classmethod
    def _check_min_confirmations(cls, value: int) -> int:
        if value > MIN_CONFIRMATIONS_UPPER_BOUND:
            msg = f"min_confirmations must be at most {MIN_CONFIRMATIONS_UPPER_BOUND}"
            raise ValueError(msg)
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        for key, val in _load_yaml(config_path).items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AgentConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))

    def root_key(self) -> ExtendedPublicKey:
        """The configured root extended public key.

        Raises:
            ValueError: If no root public key is configured or it is malformed.
        """
        from btc_agent.bitcoin.keys import ExtendedPublicKey

        if not self.root_public_key:
            msg = "root_public_key is not configured (set BTCAGENT_ROOT_PUBLIC_KEY)"
            raise ValueError(msg)
        return ExtendedPublicKey.from_hex(self.root_public_key, self.root_chain_code)
