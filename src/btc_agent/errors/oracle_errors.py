"""Oracle-related errors."""

from __future__ import annotations

from btc_agent.errors.agent_errors import AgentError


class OracleReject(AgentError):
    """The UTXO/fee oracle rejected a call.

    The oracle's code and message are carried through unchanged; the agent
    never retries.
    """

    def __init__(self, reject_code: int, message: str) -> None:
        super().__init__(f"oracle rejected call ({reject_code}): {message}", code="oracle-reject")
        self.reject_code = reject_code
        self.reject_message = message
