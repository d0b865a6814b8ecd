"""UTXO tracker — seen/unseen state per address, peek vs. commit.

Every query is split into two phases:

1. ``get_utxos`` — async, talks to the oracle, touches no local state;
2. ``apply`` / ``commit`` — synchronous, local state transitions.

All suspension happens in phase 1, so a discarded in-flight query leaves
the registry exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from btc_agent.engine.models import BalanceUpdate, UtxosUpdate, check_min_confirmations, total_value
from btc_agent.errors.definitions import AddressNotTracked
from btc_agent.oracle.base import GET_UTXOS_COST_CYCLES
from btc_agent.oracle.models import GetUtxosRequest, GetUtxosResponse, MinConfirmations, Page

if TYPE_CHECKING:
    from collections.abc import Iterable

    from btc_agent.engine.models import Utxo
    from btc_agent.engine.registry import AddressRegistry
    from btc_agent.oracle.base import CyclesPayer, UtxoOracle
    from btc_agent.oracle.models import UtxosFilter

logger = logging.getLogger(__name__)


class UtxoTracker:
    """Tracks UTXO deltas for the addresses of an :class:`AddressRegistry`.

    ``peek`` and ``get`` on the same address are serialised by a
    per-address lock; ``get`` holds it across its fetch and its commit.
    A fetch whose address was removed (or removed and re-added) while it
    was in flight is discarded with :class:`AddressNotTracked`.
    """

    def __init__(
        self,
        registry: AddressRegistry,
        oracle: UtxoOracle,
        *,
        payer: CyclesPayer | None = None,
    ) -> None:
        self._registry = registry
        self._oracle = oracle
        self._payer = payer
        self._locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Oracle queries (no local state)
    # ------------------------------------------------------------------

    async def get_utxos(self, address: str, min_confirmations: int) -> GetUtxosResponse:
        """Fetch every UTXO of *address* with at least *min_confirmations*.

        Pages are requested strictly one after another until the oracle
        returns no further page token. The call fee is paid before each
        page request.

        Raises:
            MinConfirmationsTooHigh: Before any call, if above 6.
            NegativeMinConfirmations: Before any call, if below 0.
            OracleReject: If any page request fails.
        """
        check_min_confirmations(min_confirmations)

        utxos: list[Utxo] = []
        utxos_filter: UtxosFilter = MinConfirmations(min_confirmations)
        pages = 0
        while True:
            self._pay(GET_UTXOS_COST_CYCLES)
            page = await self._oracle.get_utxos(
                GetUtxosRequest(
                    address=address,
                    network=self._registry.network,
                    filter=utxos_filter,
                )
            )
            pages += 1
            utxos.extend(page.utxos)
            if page.next_page is None:
                break
            utxos_filter = Page(page.next_page)

        logger.debug(
            "Fetched %d UTXOs for %s in %d page(s) at tip %d",
            len(utxos),
            address,
            pages,
            page.tip_height,
        )
        return GetUtxosResponse(utxos=tuple(utxos), tip_height=page.tip_height)

    async def balance(self, address: str, min_confirmations: int) -> int:
        """Current balance of *address* in satoshis, at an explicit threshold.

        Works for any address, tracked or not, and leaves tracking state alone.
        """
        response = await self.get_utxos(address, min_confirmations)
        return total_value(response.utxos)

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def apply(self, address: str, utxos: Iterable[Utxo]) -> UtxosUpdate:
        """Store *utxos* as the unseen state of *address* and return the pending delta.

        Raises:
            AddressNotTracked: If *address* is not registered.
        """
        state = self._registry.utxos_state(address).observe(utxos)
        self._registry.set_utxos_state(address, state)
        return state.pending_update()

    def commit(self, address: str) -> None:
        """Make the unseen state of *address* its new seen baseline.

        Purely local; issues no oracle call.

        Raises:
            AddressNotTracked: If *address* is not registered.
        """
        state = self._registry.utxos_state(address)
        self._registry.set_utxos_state(address, state.committed())
        logger.debug("Committed %d UTXOs for %s", len(state.unseen_state), address)

    async def peek(self, address: str) -> UtxosUpdate:
        """Delta between the committed state and the current oracle view.

        Does not advance the committed baseline: repeated calls without
        chain changes return the same delta.

        Raises:
            AddressNotTracked: If *address* is not registered.
            OracleReject: If the oracle call fails.
        """
        async with self._lock(address):
            return await self._peek(address)

    async def get(self, address: str) -> UtxosUpdate:
        """:meth:`peek` followed by :meth:`commit`.

        The first call after registration returns every current UTXO as
        added; later calls return only what changed since the previous one.
        """
        async with self._lock(address):
            update = await self._peek(address)
            self.commit(address)
            return update

    async def peek_balance(self, address: str) -> BalanceUpdate:
        """Balance form of :meth:`peek`."""
        return BalanceUpdate.from_utxos_update(await self.peek(address))

    async def get_balance(self, address: str) -> BalanceUpdate:
        """Balance form of :meth:`get`."""
        return BalanceUpdate.from_utxos_update(await self.get(address))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _peek(self, address: str) -> UtxosUpdate:
        registration = self._registry.registration_id(address)
        min_confirmations = self._registry.utxos_state(address).min_confirmations
        response = await self.get_utxos(address, min_confirmations)
        if self._registry.registration_id(address) != registration:
            logger.warning("Discarding UTXOs fetched for %s: address was re-registered", address)
            raise AddressNotTracked(address)
        return self.apply(address, response.utxos)

    def _lock(self, address: str) -> asyncio.Lock:
        if address not in self._registry:
            raise AddressNotTracked(address)
        self._prune_locks()
        return self._locks.setdefault(address, asyncio.Lock())

    def _prune_locks(self) -> None:
        # a held lock stays until its holder releases it
        stale = [
            address
            for address, lock in self._locks.items()
            if address not in self._registry and not lock.locked()
        ]
        for address in stale:
            del self._locks[address]

    def _pay(self, amount: int) -> None:
        if self._payer is not None:
            self._payer(amount)
