"""
StrategyRecord 实体测试
"""
import pytest

from src.dca.domain.entity.strategy_record import StrategyRecord
from src.dca.domain.exceptions import ERROR_INSUFFICIENT_BALANCE, ValidationError
from src.dca.domain.value_object.swap_record import SwapRecord


def make_record(**overrides) -> StrategyRecord:
    defaults = dict(
        nonce=1,
        amount_per_cycle=100,
        cycle_label="daily",
        cycle_period_millis=86_400_000,
        take_profit_bps=1000,
        stable_balance=1000,
    )
    defaults.update(overrides)
    return StrategyRecord(**defaults)


class TestSchedule:
    """定投计划与惰性记录"""

    def test_inert_when_amount_or_period_zero(self):
        assert make_record(amount_per_cycle=0).is_inert
        assert make_record(cycle_period_millis=0).is_inert
        assert not make_record().is_inert

    def test_next_execution_at(self):
        record = make_record(last_executed_at=5_000, cycle_period_millis=1_000)
        assert record.next_execution_at == 6_000

    def test_reschedule_keeps_balances_and_ledger(self):
        record = make_record(target_balance=7)
        record.buys.append(SwapRecord(100, 7, 10))
        record.reschedule(200, "weekly", 604_800_000, 0)

        assert record.amount_per_cycle == 200
        assert record.cycle_label == "weekly"
        assert record.take_profit_bps == 0
        assert record.stable_balance == 1000
        assert record.target_balance == 7
        assert len(record.buys) == 1


class TestBalances:
    """余额扣减不得为负"""

    def test_debit_more_than_balance_raises(self):
        record = make_record(stable_balance=50)
        with pytest.raises(ValidationError) as exc:
            record.debit_stable(51)
        assert exc.value.reason == ERROR_INSUFFICIENT_BALANCE
        assert record.stable_balance == 50

    def test_debit_target_more_than_balance_raises(self):
        record = make_record(target_balance=3)
        with pytest.raises(ValidationError):
            record.debit_target(4)
        assert record.target_balance == 3


class TestLedger:
    """买入 / 卖出落账"""

    def test_record_buy(self):
        record = make_record(stable_balance=250)
        swap = record.record_buy(allocated=120, timestamp=42)

        assert record.stable_balance == 150
        assert record.target_balance == 120
        assert record.last_executed_at == 42
        assert swap == SwapRecord(stable_amount=100, target_amount=120, timestamp=42)
        assert record.buys == [swap]

    def test_record_buy_insufficient_balance_leaves_record_unchanged(self):
        record = make_record(stable_balance=99)
        with pytest.raises(ValidationError):
            record.record_buy(allocated=10, timestamp=1)
        assert record.target_balance == 0
        assert record.buys == []

    def test_record_sell_zeroes_target(self):
        record = make_record(stable_balance=0, target_balance=300)
        swap = record.record_sell(credited=450, timestamp=99)

        assert record.target_balance == 0
        assert record.stable_balance == 450
        assert record.last_executed_at == 99
        assert swap == SwapRecord(stable_amount=450, target_amount=300, timestamp=99)
        assert record.sells[-1] == swap

    def test_record_sell_rejects_negative_credit(self):
        """净到账为负时拒绝落账，记录保持不变"""
        record = make_record(stable_balance=10, target_balance=300)
        with pytest.raises(ValidationError):
            record.record_sell(credited=-500, timestamp=99)
        assert (record.stable_balance, record.target_balance) == (10, 300)
        assert record.sells == []


class TestSerialization:
    """字典往返"""

    def test_from_dict_restores_ledger(self):
        record = make_record(target_balance=5, last_executed_at=77)
        record.buys.append(SwapRecord(100, 5, 77))
        record.sells.append(SwapRecord(90, 4, 60))

        restored = StrategyRecord.from_dict(record.to_dict())
        assert restored == record

    def test_from_dict_defaults(self):
        restored = StrategyRecord.from_dict({"nonce": 9})
        assert restored.nonce == 9
        assert restored.is_inert
        assert restored.buys == []
