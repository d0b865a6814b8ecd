"""Errors — closed set of failures surfaced by the agent."""

from __future__ import annotations

from btc_agent.errors.agent_errors import AgentError
from btc_agent.errors.definitions import (
    AddressNotTracked,
    DerivationPathTooLong,
    InvalidPercentile,
    MinConfirmationsTooHigh,
    NegativeMinConfirmations,
)
from btc_agent.errors.oracle_errors import OracleReject

__all__ = [
    "AddressNotTracked",
    "AgentError",
    "DerivationPathTooLong",
    "InvalidPercentile",
    "MinConfirmationsTooHigh",
    "NegativeMinConfirmations",
    "OracleReject",
]
