"""Oracle boundary — the async interface all network truth flows through.

Every oracle call has a fixed price that the caller pays to the host
immediately before issuing the call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from btc_agent.bitcoin.address import Network
    from btc_agent.oracle.models import GetUtxosPage, GetUtxosRequest

logger = logging.getLogger(__name__)

GET_UTXOS_COST_CYCLES = 100_000_000
GET_CURRENT_FEE_PERCENTILES_COST_CYCLES = 100_000_000

CyclesPayer = Callable[[int], None]


@runtime_checkable
class UtxoOracle(Protocol):
    """Remote source of UTXO pages and fee percentiles.

    Implementations raise :class:`~btc_agent.errors.OracleReject` when a
    call fails.
    """

    async def get_utxos(self, request: GetUtxosRequest) -> GetUtxosPage:
        """Return one page of UTXOs for ``request.address``."""
        ...

    async def get_current_fee_percentiles(self, network: Network) -> list[int]:
        """Return up to 99 fee rates (millisatoshi/byte), ascending by percentile."""
        ...


class CyclesLedger:
    """In-process payer that records what each oracle call cost.

    Usable anywhere a :data:`CyclesPayer` is expected.
    """

    def __init__(self) -> None:
        self.spent = 0
        self.payments: list[int] = []

    def __call__(self, amount: int) -> None:
        self.pay(amount)

    def pay(self, amount: int) -> None:
        """Record a payment of *amount* cycles."""
        if amount < 0:
            msg = f"Payment must be non-negative, got {amount}"
            raise ValueError(msg)
        self.spent += amount
        self.payments.append(amount)
        logger.debug("Paid %d cycles (total %d)", amount, self.spent)

    @property
    def calls(self) -> int:
        """Number of payments recorded."""
        return len(self.payments)
