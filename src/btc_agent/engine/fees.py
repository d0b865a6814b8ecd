"""Fee percentiles — map a fee request to an entry of the oracle's table."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from btc_agent.errors.definitions import InvalidPercentile
from btc_agent.oracle.base import GET_CURRENT_FEE_PERCENTILES_COST_CYCLES

if TYPE_CHECKING:
    from btc_agent.bitcoin.address import Network
    from btc_agent.oracle.base import CyclesPayer, UtxoOracle

logger = logging.getLogger(__name__)

# The oracle's table has one bucket per percentile 0..98
PERCENTILE_COUNT = 99


class Fee(enum.StrEnum):
    """Named fee levels."""

    SLOW = "slow"
    STANDARD = "standard"
    FAST = "fast"


_NAMED_PERCENTILES: dict[Fee, int] = {
    Fee.SLOW: 25,
    Fee.STANDARD: 50,
    Fee.FAST: 75,
}


@dataclass(frozen=True)
class Percentile:
    """A custom fee percentile in ``[0, 99)``."""

    value: int


FeeRequest = Fee | Percentile


def resolve(request: FeeRequest) -> int:
    """Index into the percentile table for *request*.

    Raises:
        InvalidPercentile: If a custom percentile is outside ``[0, 99)``.
    """
    match request:
        case Fee():
            return _NAMED_PERCENTILES[request]
        case Percentile(value=value):
            if not 0 <= value < PERCENTILE_COUNT:
                raise InvalidPercentile(value)
            return value
    msg = f"Unsupported fee request: {request!r}"
    raise TypeError(msg)


def parse_fee_request(text: str) -> FeeRequest:
    """Parse ``slow`` / ``standard`` / ``fast`` or a percentile number.

    Raises:
        ValueError: If *text* is neither a fee level nor an integer.
    """
    normalized = text.strip().lower()
    try:
        return Fee(normalized)
    except ValueError:
        return Percentile(int(normalized))


class FeePercentileEvaluator:
    """Fetches fee percentiles from the oracle and picks the requested one."""

    def __init__(
        self,
        oracle: UtxoOracle,
        network: Network,
        *,
        payer: CyclesPayer | None = None,
    ) -> None:
        self._oracle = oracle
        self._network = network
        self._payer = payer

    async def get_current_fees(self) -> list[int]:
        """The current fee table in millisatoshi/byte, ascending by percentile.

        Raises:
            OracleReject: If the oracle call fails.
        """
        if self._payer is not None:
            self._payer(GET_CURRENT_FEE_PERCENTILES_COST_CYCLES)
        fees = await self._oracle.get_current_fee_percentiles(self._network)
        logger.debug("Fetched %d fee percentiles", len(fees))
        return fees

    async def get_current_fee(self, request: FeeRequest) -> int:
        """The fee rate (millisatoshi/byte) for *request*.

        Raises:
            InvalidPercentile: Before any call if the request is out of range,
                or after the call if the oracle's table is too short (sparse
                transaction history).
            OracleReject: If the oracle call fails.
        """
        index = resolve(request)
        fees = await self.get_current_fees()
        if index >= len(fees):
            raise InvalidPercentile(index, available=len(fees))
        return fees[index]
