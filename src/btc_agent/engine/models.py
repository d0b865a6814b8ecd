"""Engine value types — UTXOs, per-address tracking state, deltas."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Self

from btc_agent.errors.definitions import MinConfirmationsTooHigh, NegativeMinConfirmations

# Network-imposed upper bound on confirmation thresholds
MIN_CONFIRMATIONS_UPPER_BOUND = 6


def check_min_confirmations(min_confirmations: int) -> None:
    """Raise unless *min_confirmations* lies in ``[0, 6]``."""
    if min_confirmations < 0:
        raise NegativeMinConfirmations(min_confirmations)
    if min_confirmations > MIN_CONFIRMATIONS_UPPER_BOUND:
        raise MinConfirmationsTooHigh(min_confirmations, MIN_CONFIRMATIONS_UPPER_BOUND)


@dataclass(frozen=True, order=True)
class OutPoint:
    """Reference to a transaction output."""

    txid: bytes  # 32-byte transaction hash
    vout: int


@dataclass(frozen=True, order=True)
class Utxo:
    """An unspent output as reported by the oracle.

    Identity is structural: two records with the same outpoint but a
    different height are different UTXOs.
    """

    outpoint: OutPoint
    value: int  # satoshis
    height: int

    def __repr__(self) -> str:
        return (
            f"<Utxo {self.outpoint.txid.hex()[:16]}:{self.outpoint.vout} "
            f"sats={self.value} height={self.height}>"
        )


def has_min_confirmations(utxo: Utxo, tip_height: int, min_confirmations: int) -> bool:
    """Whether *utxo* has *min_confirmations* confirmations at *tip_height*."""
    return utxo.height <= tip_height + 1 - min_confirmations


def total_value(utxos: Iterable[Utxo]) -> int:
    """Sum of the values of *utxos* in satoshis."""
    return sum(utxo.value for utxo in utxos)


@dataclass(frozen=True)
class UtxosState:
    """Tracking state of one address.

    ``seen_state`` is the last committed observation; ``unseen_state`` is
    the latest observation not yet committed.
    """

    min_confirmations: int
    seen_state: frozenset[Utxo] = field(default_factory=frozenset)
    unseen_state: frozenset[Utxo] = field(default_factory=frozenset)

    def observe(self, utxos: Iterable[Utxo]) -> UtxosState:
        """Return a copy with *utxos* as the new unseen state."""
        return replace(self, unseen_state=frozenset(utxos))

    def committed(self) -> UtxosState:
        """Return a copy whose seen state is the current unseen state."""
        return replace(self, seen_state=self.unseen_state)

    def pending_update(self) -> UtxosUpdate:
        """The delta from the seen state to the unseen state."""
        return UtxosUpdate.from_state(self.seen_state, self.unseen_state)


@dataclass(frozen=True)
class UtxosUpdate:
    """UTXOs added and removed between two observations."""

    added_utxos: frozenset[Utxo] = field(default_factory=frozenset)
    removed_utxos: frozenset[Utxo] = field(default_factory=frozenset)

    @classmethod
    def from_state(cls, seen_state: frozenset[Utxo], unseen_state: frozenset[Utxo]) -> Self:
        return cls(
            added_utxos=unseen_state - seen_state,
            removed_utxos=seen_state - unseen_state,
        )

    @property
    def is_empty(self) -> bool:
        return not self.added_utxos and not self.removed_utxos


@dataclass(frozen=True)
class BalanceUpdate:
    """Satoshis added and removed between two observations."""

    added_balance: int = 0
    removed_balance: int = 0

    @classmethod
    def from_utxos_update(cls, update: UtxosUpdate) -> Self:
        return cls(
            added_balance=total_value(update.added_utxos),
            removed_balance=total_value(update.removed_utxos),
        )

    @property
    def net(self) -> int:
        """Signed balance change."""
        return self.added_balance - self.removed_balance
