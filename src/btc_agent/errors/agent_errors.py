"""AgentError — base exception class for all btc-agent errors."""

from __future__ import annotations


class AgentError(Exception):
    """Base error for all agent operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
    """

    def __init__(self, message: str, *, code: str = "agent-error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
