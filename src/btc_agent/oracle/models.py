"""Oracle request / response models.

Mirrors the paginated ``get_utxos`` contract: the first request filters by
confirmation count, every follow-up request carries the page token of the
previous response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from btc_agent.bitcoin.address import Network
    from btc_agent.engine.models import Utxo


@dataclass(frozen=True)
class MinConfirmations:
    """First-page filter: only UTXOs with at least *value* confirmations."""

    value: int


@dataclass(frozen=True)
class Page:
    """Follow-up filter: continue from an opaque page token."""

    token: bytes


UtxosFilter = MinConfirmations | Page


@dataclass(frozen=True)
class GetUtxosRequest:
    """One ``get_utxos`` call."""

    address: str
    network: Network
    filter: UtxosFilter


@dataclass(frozen=True)
class GetUtxosPage:
    """One page of a ``get_utxos`` response."""

    utxos: tuple[Utxo, ...]
    tip_height: int
    next_page: bytes | None = None


@dataclass(frozen=True)
class GetUtxosResponse:
    """All pages of a ``get_utxos`` query, concatenated."""

    utxos: tuple[Utxo, ...]
    tip_height: int
