"""Engine — address registry, UTXO tracking, fees and the agent facade."""

from __future__ import annotations

from btc_agent.engine.agent import BitcoinAgent
from btc_agent.engine.fees import Fee, FeePercentileEvaluator, Percentile
from btc_agent.engine.models import BalanceUpdate, OutPoint, Utxo, UtxosState, UtxosUpdate
from btc_agent.engine.registry import AddressRegistry
from btc_agent.engine.state import AgentState
from btc_agent.engine.utxos import UtxoTracker

__all__ = [
    "AddressRegistry",
    "AgentState",
    "BalanceUpdate",
    "BitcoinAgent",
    "Fee",
    "FeePercentileEvaluator",
    "OutPoint",
    "Percentile",
    "Utxo",
    "UtxoTracker",
    "UtxosState",
    "UtxosUpdate",
]
