"""
ProfitEvaluator 领域服务

计算当前持仓周期的成本基准、判断止盈条件、计算业绩费。
已经卖出的周期不再进入计算。
"""
from typing import Sequence

from ..value_object.dca_settings import MAX_PERCENTAGE
from ..value_object.swap_record import SwapRecord


class ProfitEvaluator:
    """
    利润评估器

    - profit_basis: 最近一次卖出之后所有买入的稳定币花费之和
    - is_in_profit: 当前价值 >= basis * (10000 + tp) // 10000
    - performance_fee: max(0, 到账 - basis) * fee_bps // 10000
    """

    @staticmethod
    def profit_basis(buys: Sequence[SwapRecord], sells: Sequence[SwapRecord]) -> int:
        """最近一次卖出 (没有卖出时视为时间起点) 之后的买入花费合计"""
        last_sell_ts = sells[-1].timestamp if sells else 0
        return sum(swap.stable_amount for swap in buys if swap.timestamp > last_sell_ts)

    @staticmethod
    def is_in_profit(value_in_stable: int, take_profit_bps: int, basis: int) -> bool:
        """basis 为 0 时永远不满足止盈"""
        if basis == 0:
            return False
        threshold = basis * (MAX_PERCENTAGE + take_profit_bps) // MAX_PERCENTAGE
        return value_in_stable >= threshold

    @staticmethod
    def realized_profit(amount_received: int, basis: int) -> int:
        if amount_received > basis:
            return amount_received - basis
        return 0

    @classmethod
    def performance_fee(cls, amount_received: int, basis: int, fee_bps: int) -> int:
        """对已实现利润收取业绩费 (向下取整)"""
        profit = cls.realized_profit(amount_received, basis)
        return profit * fee_bps // MAX_PERCENTAGE
