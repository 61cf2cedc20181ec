"""
StrategyRecord 实体 - 单个 DCA 策略的可变记录

以 nonce 为标识，保存余额、定投计划和成交账本。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..exceptions import (
    ERROR_INSUFFICIENT_BALANCE,
    ERROR_INVALID_USDC_AMOUNT,
    ValidationError,
)
from ..value_object.swap_record import SwapRecord


@dataclass
class StrategyRecord:
    """
    策略记录实体

    职责:
    1. 资金托管: 代持用户的稳定币与目标资产余额，只允许校验后的扣减
    2. 定投计划: 每期金额、周期标签与时长、止盈阈值
    3. 成交账本: buys / sells 按时间顺序追加，是利润基准计算的唯一依据

    Attributes:
        nonce: 策略标识
        amount_per_cycle: 每期投入的稳定币数量
        cycle_label: 周期标签 (来自管理员维护的允许列表)
        cycle_period_millis: 周期时长 (毫秒)
        take_profit_bps: 止盈阈值 (基点，0 表示关闭)
        stable_balance: 稳定币余额
        target_balance: 目标资产余额
        last_executed_at: 上次执行时间 (毫秒)
        buys: 买入账本
        sells: 卖出账本
    """
    nonce: int
    amount_per_cycle: int = 0
    cycle_label: str = ""
    cycle_period_millis: int = 0
    take_profit_bps: int = 0
    stable_balance: int = 0
    target_balance: int = 0
    last_executed_at: int = 0
    buys: List[SwapRecord] = field(default_factory=list)
    sells: List[SwapRecord] = field(default_factory=list)

    @property
    def is_inert(self) -> bool:
        """每期金额或周期为 0 的记录永远不参与批量执行"""
        return self.amount_per_cycle * self.cycle_period_millis == 0

    @property
    def next_execution_at(self) -> int:
        return self.last_executed_at + self.cycle_period_millis

    # ========== 计划 ==========

    def reschedule(
        self,
        amount_per_cycle: int,
        cycle_label: str,
        cycle_period_millis: int,
        take_profit_bps: int,
    ) -> None:
        """修改定投计划 (余额与账本不变)"""
        self.amount_per_cycle = amount_per_cycle
        self.cycle_label = cycle_label
        self.cycle_period_millis = cycle_period_millis
        self.take_profit_bps = take_profit_bps

    # ========== 余额 ==========

    def credit_stable(self, amount: int) -> None:
        self.stable_balance += amount

    def credit_target(self, amount: int) -> None:
        self.target_balance += amount

    def debit_stable(self, amount: int) -> None:
        """扣减稳定币余额，不足时报错"""
        if amount > self.stable_balance:
            raise ValidationError(ERROR_INSUFFICIENT_BALANCE)
        self.stable_balance -= amount

    def debit_target(self, amount: int) -> None:
        """扣减目标资产余额，不足时报错"""
        if amount > self.target_balance:
            raise ValidationError(ERROR_INSUFFICIENT_BALANCE)
        self.target_balance -= amount

    # ========== 账本 ==========

    def record_buy(self, allocated: int, timestamp: int) -> SwapRecord:
        """
        记录一次买入

        扣除每期金额，计入分得的目标资产，更新执行时间并追加买入账本。
        """
        self.debit_stable(self.amount_per_cycle)
        self.credit_target(allocated)
        self.last_executed_at = timestamp
        swap = SwapRecord(
            stable_amount=self.amount_per_cycle,
            target_amount=allocated,
            timestamp=timestamp,
        )
        self.buys.append(swap)
        return swap

    def record_sell(self, credited: int, timestamp: int) -> SwapRecord:
        """
        记录一次止盈卖出

        全部目标资产清零，净到账稳定币计入余额，追加卖出账本。
        """
        if credited < 0:
            raise ValidationError(ERROR_INVALID_USDC_AMOUNT)
        sold = self.target_balance
        self.credit_stable(credited)
        self.target_balance = 0
        self.last_executed_at = timestamp
        swap = SwapRecord(stable_amount=credited, target_amount=sold, timestamp=timestamp)
        self.sells.append(swap)
        return swap

    # ========== 持久化 ==========

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nonce": self.nonce,
            "amount_per_cycle": self.amount_per_cycle,
            "cycle_label": self.cycle_label,
            "cycle_period_millis": self.cycle_period_millis,
            "take_profit_bps": self.take_profit_bps,
            "stable_balance": self.stable_balance,
            "target_balance": self.target_balance,
            "last_executed_at": self.last_executed_at,
            "buys": [swap.to_dict() for swap in self.buys],
            "sells": [swap.to_dict() for swap in self.sells],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StrategyRecord":
        return cls(
            nonce=int(data["nonce"]),
            amount_per_cycle=int(data.get("amount_per_cycle", 0)),
            cycle_label=str(data.get("cycle_label", "")),
            cycle_period_millis=int(data.get("cycle_period_millis", 0)),
            take_profit_bps=int(data.get("take_profit_bps", 0)),
            stable_balance=int(data.get("stable_balance", 0)),
            target_balance=int(data.get("target_balance", 0)),
            last_executed_at=int(data.get("last_executed_at", 0)),
            buys=[SwapRecord.from_dict(s) for s in data.get("buys", [])],
            sells=[SwapRecord.from_dict(s) for s in data.get("sells", [])],
        )

    def __repr__(self) -> str:
        return (
            f"StrategyRecord(#{self.nonce}, {self.amount_per_cycle}/{self.cycle_label}, "
            f"stable={self.stable_balance}, target={self.target_balance})"
        )
