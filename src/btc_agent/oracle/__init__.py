"""Oracle — the async UTXO/fee source and its clients."""

from __future__ import annotations

from btc_agent.oracle.base import (
    GET_CURRENT_FEE_PERCENTILES_COST_CYCLES,
    GET_UTXOS_COST_CYCLES,
    CyclesLedger,
    CyclesPayer,
    UtxoOracle,
)
from btc_agent.oracle.models import (
    GetUtxosPage,
    GetUtxosRequest,
    GetUtxosResponse,
    MinConfirmations,
    Page,
)

__all__ = [
    "GET_CURRENT_FEE_PERCENTILES_COST_CYCLES",
    "GET_UTXOS_COST_CYCLES",
    "CyclesLedger",
    "CyclesPayer",
    "GetUtxosPage",
    "GetUtxosRequest",
    "GetUtxosResponse",
    "MinConfirmations",
    "Page",
    "UtxoOracle",
]
