"""BitcoinAgent — the public facade over registry, tracker and fee evaluator."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Self

from btc_agent.bitcoin.address import AddressType, Network
from btc_agent.engine import state as agent_state
from btc_agent.engine.fees import FeePercentileEvaluator
from btc_agent.engine.registry import DEFAULT_MIN_CONFIRMATIONS, AddressRegistry
from btc_agent.engine.utxos import UtxoTracker

if TYPE_CHECKING:
    from collections.abc import Iterable

    from btc_agent.bitcoin.keys import ExtendedPublicKey
    from btc_agent.config.settings import AgentConfig
    from btc_agent.engine.fees import FeeRequest
    from btc_agent.engine.models import BalanceUpdate, Utxo, UtxosUpdate
    from btc_agent.engine.state import AgentState
    from btc_agent.oracle.base import CyclesPayer, UtxoOracle
    from btc_agent.oracle.models import GetUtxosResponse

logger = logging.getLogger(__name__)


class BitcoinAgent:
    """Manages the addresses derived from one root key.

    Owns an :class:`AddressRegistry`, a :class:`UtxoTracker` and a
    :class:`FeePercentileEvaluator`, all sharing the same oracle and payer.
    """

    def __init__(
        self,
        oracle: UtxoOracle,
        root_key: ExtendedPublicKey,
        *,
        network: Network = Network.MAINNET,
        main_address_type: AddressType = AddressType.P2PKH,
        min_confirmations: int = DEFAULT_MIN_CONFIRMATIONS,
        payer: CyclesPayer | None = None,
    ) -> None:
        """Initialize the agent with only its main address registered.

        Args:
            oracle: UTXO/fee oracle.
            root_key: Root extended public key.
            network: Network used for address encoding and oracle calls.
            main_address_type: Address type of the main address.
            min_confirmations: Default confirmation threshold.
            payer: Called with the price of each oracle call before it is made.

        Raises:
            MinConfirmationsTooHigh: If *min_confirmations* exceeds 6.
            NegativeMinConfirmations: If *min_confirmations* is below 0.
        """
        registry = AddressRegistry(
            root_key,
            network=network,
            main_address_type=main_address_type,
            min_confirmations=min_confirmations,
        )
        self._init(registry, oracle, payer)

    def _init(
        self, registry: AddressRegistry, oracle: UtxoOracle, payer: CyclesPayer | None
    ) -> None:
        self._registry = registry
        self._oracle = oracle
        self._tracker = UtxoTracker(registry, oracle, payer=payer)
        self._fees = FeePercentileEvaluator(oracle, registry.network, payer=payer)

    @classmethod
    def from_config(
        cls,
        config: AgentConfig,
        oracle: UtxoOracle,
        *,
        payer: CyclesPayer | None = None,
    ) -> Self:
        """Build an agent from :class:`AgentConfig`."""
        return cls(
            oracle,
            config.root_key(),
            network=config.network,
            main_address_type=config.main_address_type,
            min_confirmations=config.min_confirmations,
            payer=payer,
        )

    @classmethod
    def from_state(
        cls,
        state: AgentState,
        oracle: UtxoOracle,
        *,
        payer: CyclesPayer | None = None,
    ) -> Self:
        """Resume an agent from a snapshot taken by :meth:`get_state`."""
        agent = cls.__new__(cls)
        agent._init(agent_state.from_state(state), oracle, payer)
        return agent

    def get_state(self) -> AgentState:
        """Snapshot the agent for persistence across upgrades."""
        return agent_state.get_state(self._registry)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def registry(self) -> AddressRegistry:
        return self._registry

    @property
    def network(self) -> Network:
        return self._registry.network

    @property
    def min_confirmations(self) -> int:
        return self._registry.min_confirmations

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def get_main_address(self) -> str:
        """The address of the root key."""
        return self._registry.main_address

    def add_address(self, derivation_path: bytes) -> str:
        """Register the address at *derivation_path* with the default settings."""
        return self._registry.add(derivation_path)

    def add_address_with_parameters(
        self,
        derivation_path: bytes,
        address_type: AddressType,
        min_confirmations: int,
    ) -> str:
        """Register the address at *derivation_path* with explicit settings.

        Raises:
            MinConfirmationsTooHigh: If *min_confirmations* exceeds 6.
            NegativeMinConfirmations: If *min_confirmations* is below 0.
            DerivationPathTooLong: If the path packs past 255 indices.
        """
        return self._registry.add(derivation_path, address_type, min_confirmations)

    def remove_address(self, address: str) -> bool:
        """Stop tracking *address*; the main address is never removed."""
        return self._registry.remove(address)

    def list_addresses(self) -> set[str]:
        return self._registry.list_addresses()

    # ------------------------------------------------------------------
    # UTXOs and balances
    # ------------------------------------------------------------------

    async def get_utxos(
        self, address: str, min_confirmations: int | None = None
    ) -> GetUtxosResponse:
        """All UTXOs of any *address*, tracked or not; state is untouched."""
        if min_confirmations is None:
            min_confirmations = self.min_confirmations
        return await self._tracker.get_utxos(address, min_confirmations)

    async def get_balance(self, address: str, min_confirmations: int | None = None) -> int:
        """Balance of any *address* in satoshis; state is untouched."""
        if min_confirmations is None:
            min_confirmations = self.min_confirmations
        return await self._tracker.balance(address, min_confirmations)

    async def peek_utxos_update(self, address: str) -> UtxosUpdate:
        """UTXO delta since the last commit, without committing it."""
        return await self._tracker.peek(address)

    def update_state(self, address: str) -> None:
        """Commit the last peeked UTXO set of *address*."""
        self._tracker.commit(address)

    async def get_utxos_update(self, address: str) -> UtxosUpdate:
        """UTXO delta since the last commit, committing the new view."""
        return await self._tracker.get(address)

    async def peek_balance_update(self, address: str) -> BalanceUpdate:
        return await self._tracker.peek_balance(address)

    async def get_balance_update(self, address: str) -> BalanceUpdate:
        return await self._tracker.get_balance(address)

    def apply_utxos(self, address: str, utxos: Iterable[Utxo]) -> UtxosUpdate:
        """Record an externally fetched UTXO set as the unseen state of *address*."""
        return self._tracker.apply(address, utxos)

    # ------------------------------------------------------------------
    # Fees
    # ------------------------------------------------------------------

    async def get_current_fees(self) -> list[int]:
        return await self._fees.get_current_fees()

    async def get_current_fee(self, request: FeeRequest) -> int:
        """Fee rate (millisatoshi/byte) for a named level or percentile."""
        return await self._fees.get_current_fee(request)
