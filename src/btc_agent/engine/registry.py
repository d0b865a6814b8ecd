"""Address registry — derived addresses, their keys and tracking state."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from dataclasses import replace
from typing import TYPE_CHECKING

from btc_agent.bitcoin.address import AddressType, Network
from btc_agent.bitcoin.derivation import derive_key_and_address
from btc_agent.engine.models import MIN_CONFIRMATIONS_UPPER_BOUND, UtxosState, check_min_confirmations
from btc_agent.errors.definitions import AddressNotTracked

if TYPE_CHECKING:
    from btc_agent.bitcoin.keys import ExtendedPublicKey

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIRMATIONS = MIN_CONFIRMATIONS_UPPER_BOUND


class AddressRegistry:
    """Owns the managed addresses of one agent.

    Two co-indexed mappings, ``address -> ExtendedPublicKey`` and
    ``address -> UtxosState``, always share the same key set. The main
    address (the root key itself, derived from the empty path) is inserted
    at construction and can never be removed.

    UtxosState values are immutable and replaced wholesale on update.
    """

    def __init__(
        self,
        root_key: ExtendedPublicKey,
        *,
        network: Network = Network.MAINNET,
        main_address_type: AddressType = AddressType.P2PKH,
        min_confirmations: int = DEFAULT_MIN_CONFIRMATIONS,
    ) -> None:
        """Create a registry holding only the main address.

        Args:
            root_key: Root extended public key owned by the agent.
            network: Network used for address encoding.
            main_address_type: Address type of the main address and the
                default for :meth:`add`.
            min_confirmations: Default confirmation threshold.

        Raises:
            MinConfirmationsTooHigh: If *min_confirmations* exceeds 6.
            NegativeMinConfirmations: If *min_confirmations* is below 0.
        """
        check_min_confirmations(min_confirmations)
        self._root_key = root_key
        self._network = network
        self._main_address_type = main_address_type
        self._min_confirmations = min_confirmations
        self._keys: dict[str, ExtendedPublicKey] = {}
        self._utxos_states: dict[str, UtxosState] = {}
        self._registrations: dict[str, int] = {}
        self._next_registration = itertools.count(1)

        main_key, main_address = derive_key_and_address(root_key, b"", main_address_type, network)
        self._main_address = main_address
        self._insert(main_address, main_key, UtxosState(min_confirmations))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def root_key(self) -> ExtendedPublicKey:
        return self._root_key

    @property
    def network(self) -> Network:
        return self._network

    @property
    def main_address_type(self) -> AddressType:
        return self._main_address_type

    @property
    def min_confirmations(self) -> int:
        """Default confirmation threshold for new addresses."""
        return self._min_confirmations

    @property
    def main_address(self) -> str:
        """The address of the root key; constant for the registry's lifetime."""
        return self._main_address

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(
        self,
        raw_path: bytes,
        address_type: AddressType | None = None,
        min_confirmations: int | None = None,
    ) -> str:
        """Derive and register the address at *raw_path*.

        Registration is idempotent by address: if the derived address is
        already present the registry is left untouched (its existing
        tracking state and threshold are kept).

        Args:
            raw_path: Raw derivation path bytes.
            address_type: Address type (defaults to the main address type).
            min_confirmations: Threshold used when tracking the address
                (defaults to the registry default).

        Returns:
            The derived address.

        Raises:
            MinConfirmationsTooHigh: If *min_confirmations* exceeds 6.
            NegativeMinConfirmations: If *min_confirmations* is below 0.
            DerivationPathTooLong: If the path packs past 255 indices.
        """
        if address_type is None:
            address_type = self._main_address_type
        if min_confirmations is None:
            min_confirmations = self._min_confirmations
        check_min_confirmations(min_confirmations)

        key, address = derive_key_and_address(self._root_key, raw_path, address_type, self._network)
        if address not in self._keys:
            self._insert(address, key, UtxosState(min_confirmations))
            logger.info("Registered address %s (min_confirmations=%d)", address, min_confirmations)
        return address

    def remove(self, address: str) -> bool:
        """Unregister *address*.

        Returns:
            True if the address was present and is not the main address.
        """
        if address not in self._keys or address == self._main_address:
            return False
        del self._keys[address]
        del self._utxos_states[address]
        del self._registrations[address]
        logger.info("Removed address %s", address)
        return True

    def list_addresses(self) -> set[str]:
        """All registered addresses, including the main address."""
        return set(self._keys)

    def public_key(self, address: str) -> ExtendedPublicKey:
        """The extended public key *address* was derived from.

        Raises:
            AddressNotTracked: If *address* is not registered.
        """
        try:
            return self._keys[address]
        except KeyError:
            raise AddressNotTracked(address) from None

    def utxos_state(self, address: str) -> UtxosState:
        """The tracking state of *address*.

        Raises:
            AddressNotTracked: If *address* is not registered.
        """
        try:
            return self._utxos_states[address]
        except KeyError:
            raise AddressNotTracked(address) from None

    def registration_id(self, address: str) -> int:
        """Serial number of the current registration of *address*.

        Removing an address and adding it again yields a new serial.

        Raises:
            AddressNotTracked: If *address* is not registered.
        """
        try:
            return self._registrations[address]
        except KeyError:
            raise AddressNotTracked(address) from None

    def set_utxos_state(self, address: str, state: UtxosState) -> None:
        """Replace the tracking state of a registered *address*.

        Raises:
            AddressNotTracked: If *address* is not registered.
        """
        if address not in self._utxos_states:
            raise AddressNotTracked(address)
        self._utxos_states[address] = state

    def entries(self) -> Iterator[tuple[str, ExtendedPublicKey, UtxosState]]:
        """Yield ``(address, key, state)`` in registration order."""
        for address, key in self._keys.items():
            yield address, key, self._utxos_states[address]

    def restore(self, address: str, key: ExtendedPublicKey, state: UtxosState) -> None:
        """Insert or overwrite an entry verbatim (used when resuming from a snapshot).

        The main address keeps its freshly derived key and the registry
        default threshold; only its observed UTXO sets come from the snapshot.
        """
        if address == self._main_address:
            self._utxos_states[address] = replace(state, min_confirmations=self._min_confirmations)
            return
        self._insert(address, key, state)

    def __contains__(self, address: object) -> bool:
        return address in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._keys))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _insert(self, address: str, key: ExtendedPublicKey, state: UtxosState) -> None:
        self._keys[address] = key
        self._utxos_states[address] = state
        self._registrations[address] = next(self._next_registration)
