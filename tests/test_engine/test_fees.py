"""Tests for fee requests and the percentile evaluator."""

from __future__ import annotations

import pytest

from btc_agent.bitcoin.address import Network
from btc_agent.engine.fees import (
    Fee,
    FeePercentileEvaluator,
    Percentile,
    parse_fee_request,
    resolve,
)
from btc_agent.errors import InvalidPercentile, OracleReject
from btc_agent.oracle.base import GET_CURRENT_FEE_PERCENTILES_COST_CYCLES
from btc_agent.oracle.memory import MemoryOracle


class TestResolve:
    def test_named_levels(self) -> None:
        assert resolve(Fee.SLOW) == 25
        assert resolve(Fee.STANDARD) == 50
        assert resolve(Fee.FAST) == 75

    @pytest.mark.parametrize("value", [0, 1, 50, 98])
    def test_custom_in_range(self, value) -> None:
        assert resolve(Percentile(value)) == value

    @pytest.mark.parametrize("value", [99, 100, -1])
    def test_custom_out_of_range(self, value) -> None:
        with pytest.raises(InvalidPercentile) as exc_info:
            resolve(Percentile(value))
        assert exc_info.value.percentile == value
        assert exc_info.value.available is None


class TestParseFeeRequest:
    def test_names(self) -> None:
        assert parse_fee_request("slow") is Fee.SLOW
        assert parse_fee_request(" FAST ") is Fee.FAST

    def test_number(self) -> None:
        assert parse_fee_request("42") == Percentile(42)

    def test_garbage(self) -> None:
        with pytest.raises(ValueError):
            parse_fee_request("cheap")


class TestFeePercentileEvaluator:
    @pytest.mark.asyncio
    async def test_current_fees(self, memory_oracle, ledger) -> None:
        evaluator = FeePercentileEvaluator(memory_oracle, Network.MAINNET, payer=ledger)
        fees = await evaluator.get_current_fees()
        assert len(fees) == 99
        assert fees[0] == 1_000
        assert ledger.payments == [GET_CURRENT_FEE_PERCENTILES_COST_CYCLES]

    @pytest.mark.asyncio
    async def test_named_fee(self, memory_oracle) -> None:
        evaluator = FeePercentileEvaluator(memory_oracle, Network.MAINNET)
        assert await evaluator.get_current_fee(Fee.SLOW) == 26_000
        assert await evaluator.get_current_fee(Fee.STANDARD) == 51_000
        assert await evaluator.get_current_fee(Fee.FAST) == 76_000

    @pytest.mark.asyncio
    async def test_custom_fee(self, memory_oracle) -> None:
        evaluator = FeePercentileEvaluator(memory_oracle, Network.MAINNET)
        assert await evaluator.get_current_fee(Percentile(98)) == 99_000

    @pytest.mark.asyncio
    async def test_static_check_before_call(self, memory_oracle, ledger) -> None:
        evaluator = FeePercentileEvaluator(memory_oracle, Network.MAINNET, payer=ledger)
        with pytest.raises(InvalidPercentile):
            await evaluator.get_current_fee(Percentile(99))
        assert memory_oracle.fee_requests == 0
        assert ledger.calls == 0

    @pytest.mark.asyncio
    async def test_sparse_table(self) -> None:
        oracle = MemoryOracle(fee_percentiles=[100, 200, 300])
        evaluator = FeePercentileEvaluator(oracle, Network.MAINNET)
        assert await evaluator.get_current_fee(Percentile(2)) == 300
        with pytest.raises(InvalidPercentile) as exc_info:
            await evaluator.get_current_fee(Fee.SLOW)
        assert exc_info.value.available == 3

    @pytest.mark.asyncio
    async def test_empty_table(self) -> None:
        evaluator = FeePercentileEvaluator(MemoryOracle(fee_percentiles=[]), Network.MAINNET)
        with pytest.raises(InvalidPercentile):
            await evaluator.get_current_fee(Percentile(0))

    @pytest.mark.asyncio
    async def test_reject(self, memory_oracle) -> None:
        memory_oracle.fail_next(2, "busy")
        evaluator = FeePercentileEvaluator(memory_oracle, Network.MAINNET)
        with pytest.raises(OracleReject):
            await evaluator.get_current_fees()
