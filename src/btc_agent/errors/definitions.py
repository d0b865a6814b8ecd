"""Local precondition failures raised by the agent.

Every error here is detected before any oracle call is issued.
"""

from __future__ import annotations

from btc_agent.errors.agent_errors import AgentError


class DerivationPathTooLong(AgentError):
    """The raw derivation path encodes to more than 255 child indices."""

    def __init__(self, bit_length: int, max_bits: int) -> None:
        super().__init__(
            f"derivation path of {bit_length} bits exceeds the {max_bits}-bit limit",
            code="derivation-path-too-long",
        )
        self.bit_length = bit_length
        self.max_bits = max_bits


class AddressNotTracked(AgentError):
    """The address is not registered with the agent."""

    def __init__(self, address: str) -> None:
        super().__init__(f"address not tracked: {address}", code="address-not-tracked")
        self.address = address


class MinConfirmationsTooHigh(AgentError):
    """The requested confirmation threshold exceeds the network upper bound."""

    def __init__(self, min_confirmations: int, upper_bound: int) -> None:
        super().__init__(
            f"min_confirmations {min_confirmations} exceeds upper bound {upper_bound}",
            code="min-confirmations-too-high",
        )
        self.min_confirmations = min_confirmations
        self.upper_bound = upper_bound


class NegativeMinConfirmations(AgentError):
    """The requested confirmation threshold is below zero."""

    def __init__(self, min_confirmations: int) -> None:
        super().__init__(
            f"min_confirmations {min_confirmations} must not be negative",
            code="negative-min-confirmations",
        )
        self.min_confirmations = min_confirmations


class InvalidPercentile(AgentError):
    """The fee percentile is out of range, statically or for the returned table."""

    def __init__(self, percentile: int, *, available: int | None = None) -> None:
        if available is None:
            message = f"invalid fee percentile {percentile}: must be in [0, 99)"
        else:
            message = (
                f"invalid fee percentile {percentile}: "
                f"oracle returned only {available} percentiles"
            )
        super().__init__(message, code="invalid-percentile")
        self.percentile = percentile
        self.available = available
