"""Configuration — pydantic-settings models with YAML overlay."""

from __future__ import annotations

from btc_agent.config.settings import AgentConfig, LogLevel, OracleConfig

__all__ = ["AgentConfig", "LogLevel", "OracleConfig"]
