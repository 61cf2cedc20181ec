"""
ProfitEvaluator 测试与属性测试

Feature: take-profit-evaluation
"""
from hypothesis import given, settings
from hypothesis import strategies as st

from src.dca.domain.domain_service.profit_evaluator import ProfitEvaluator
from src.dca.domain.value_object.swap_record import SwapRecord


def buy(stable_amount: int, timestamp: int) -> SwapRecord:
    return SwapRecord(stable_amount=stable_amount, target_amount=1, timestamp=timestamp)


def sell(timestamp: int) -> SwapRecord:
    return SwapRecord(stable_amount=1, target_amount=1, timestamp=timestamp)


class TestProfitBasis:
    """成本基准只统计最近一次卖出之后的买入"""

    def test_all_buys_when_no_sells(self):
        assert ProfitEvaluator.profit_basis([buy(100, 1), buy(150, 2)], []) == 250

    def test_only_buys_after_last_sell(self):
        buys = [buy(100, 1), buy(150, 5), buy(70, 9)]
        sells = [sell(3), sell(5)]
        assert ProfitEvaluator.profit_basis(buys, sells) == 70

    def test_zero_when_no_buys_since_last_sell(self):
        """卖出之后没有新的买入，basis 为 0，永远不满足止盈"""
        buys = [buy(100, 1)]
        sells = [sell(2)]
        basis = ProfitEvaluator.profit_basis(buys, sells)

        assert basis == 0
        for tp_bps in (0, 1, 500, 10_000):
            assert not ProfitEvaluator.is_in_profit(10**30, tp_bps, basis)


class TestIsInProfit:
    """止盈阈值"""

    def test_threshold_inclusive(self):
        assert ProfitEvaluator.is_in_profit(1_100, 1_000, 1_000)
        assert not ProfitEvaluator.is_in_profit(1_099, 1_000, 1_000)

    def test_zero_threshold_means_break_even(self):
        assert ProfitEvaluator.is_in_profit(1_000, 0, 1_000)
        assert not ProfitEvaluator.is_in_profit(999, 0, 1_000)

    def test_threshold_rounds_down(self):
        # 333 * 10050 // 10000 = 334
        assert ProfitEvaluator.is_in_profit(334, 50, 333)
        assert not ProfitEvaluator.is_in_profit(333, 50, 333)


class TestPerformanceFee:
    """业绩费只对利润部分收取"""

    def test_fee_on_profit(self):
        assert ProfitEvaluator.performance_fee(1_500, 1_000, 1_000) == 50

    def test_no_fee_without_profit(self):
        assert ProfitEvaluator.performance_fee(900, 1_000, 1_000) == 0
        assert ProfitEvaluator.performance_fee(1_000, 1_000, 1_000) == 0

    def test_fee_rounds_down(self):
        assert ProfitEvaluator.performance_fee(1_009, 1_000, 1_000) == 0


class TestProfitProperty:
    """Feature: take-profit-evaluation, Property: is_in_profit 单调"""

    @given(
        basis=st.integers(min_value=0, max_value=10**24),
        tp_bps=st.integers(min_value=0, max_value=100_000),
        value=st.integers(min_value=0, max_value=10**25),
        delta=st.integers(min_value=0, max_value=10**25),
    )
    @settings(max_examples=200)
    def test_monotonic_in_value(self, basis, tp_bps, value, delta):
        """For fixed basis and threshold: in_profit(v) => in_profit(v + delta)"""
        if ProfitEvaluator.is_in_profit(value, tp_bps, basis):
            assert ProfitEvaluator.is_in_profit(value + delta, tp_bps, basis)

    @given(
        received=st.integers(min_value=0, max_value=10**24),
        basis=st.integers(min_value=0, max_value=10**24),
        fee_bps=st.integers(min_value=0, max_value=10_000),
    )
    @settings(max_examples=200)
    def test_fee_never_exceeds_profit(self, received, basis, fee_bps):
        fee = ProfitEvaluator.performance_fee(received, basis, fee_bps)
        assert 0 <= fee <= max(0, received - basis)
