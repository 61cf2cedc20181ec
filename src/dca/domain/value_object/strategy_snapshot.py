"""
StrategySnapshot / BatchReport 值对象

StrategySnapshot: getStrategy / listStrategies 返回的只读视图
BatchReport: 一次批量执行的结果汇总
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from ..event.event_types import DomainEvent
from .route import RouteHop
from .swap_record import SwapRecord

if TYPE_CHECKING:
    from ..entity.strategy_record import StrategyRecord


@dataclass(frozen=True)
class StrategySnapshot:
    """策略只读快照，附带 "当前是否满足止盈" 标记"""
    nonce: int
    owner: str
    amount_per_cycle: int
    cycle_label: str
    cycle_period_millis: int
    take_profit_bps: int
    stable_balance: int
    target_balance: int
    last_executed_at: int
    take_profit_eligible: bool
    buys: Tuple[SwapRecord, ...] = ()
    sells: Tuple[SwapRecord, ...] = ()

    @classmethod
    def from_record(
        cls, record: "StrategyRecord", owner: str, take_profit_eligible: bool
    ) -> "StrategySnapshot":
        return cls(
            nonce=record.nonce,
            owner=owner,
            amount_per_cycle=record.amount_per_cycle,
            cycle_label=record.cycle_label,
            cycle_period_millis=record.cycle_period_millis,
            take_profit_bps=record.take_profit_bps,
            stable_balance=record.stable_balance,
            target_balance=record.target_balance,
            last_executed_at=record.last_executed_at,
            take_profit_eligible=take_profit_eligible,
            buys=tuple(record.buys),
            sells=tuple(record.sells),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nonce": self.nonce,
            "owner": self.owner,
            "amount_per_cycle": self.amount_per_cycle,
            "cycle_label": self.cycle_label,
            "cycle_period_millis": self.cycle_period_millis,
            "take_profit_bps": self.take_profit_bps,
            "stable_balance": self.stable_balance,
            "target_balance": self.target_balance,
            "last_executed_at": self.last_executed_at,
            "take_profit_eligible": self.take_profit_eligible,
            "buys": [s.to_dict() for s in self.buys],
            "sells": [s.to_dict() for s in self.sells],
        }


@dataclass
class BatchReport:
    """
    批量执行结果

    Attributes:
        cycle: "buy" 或 "take_profit"
        executed_nonces: 实际执行的策略 (调用方顺序)
        aggregate_input: 聚合投入
        aggregate_output: 场所实际产出
        dust: 舍入残余 (归操作方)
        total_fee: 业绩费合计 (仅止盈批次)
        route: 实际使用的路径
        events: 已发布的领域事件
    """
    cycle: str
    executed_nonces: List[int] = field(default_factory=list)
    aggregate_input: int = 0
    aggregate_output: int = 0
    dust: int = 0
    total_fee: int = 0
    route: Tuple[RouteHop, ...] = ()
    events: List[DomainEvent] = field(default_factory=list)

    @property
    def operator_payout(self) -> int:
        return self.dust + self.total_fee
