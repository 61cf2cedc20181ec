"""
SwapRecord 值对象 - 一次已实现兑换的事实记录

保存在策略的 buys / sells 账本中，只追加，不修改。
"""
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class SwapRecord:
    """
    兑换记录

    Attributes:
        stable_amount: 稳定币数量 (买入时为花费，卖出时为净到账)
        target_amount: 目标资产数量 (买入时为分得，卖出时为卖出的持仓)
        timestamp: 成交时间 (毫秒)
    """
    stable_amount: int
    target_amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stable_amount": self.stable_amount,
            "target_amount": self.target_amount,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwapRecord":
        return cls(
            stable_amount=int(data["stable_amount"]),
            target_amount=int(data["target_amount"]),
            timestamp=int(data["timestamp"]),
        )
