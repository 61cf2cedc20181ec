"""
StrategyReport - 策略报表

把 StrategySnapshot 转换为 Pandas DataFrame，供 CLI 列表和成交明细展示。
"""
from typing import List, Sequence

import pandas as pd

from src.dca.domain.value_object.strategy_snapshot import StrategySnapshot

SUMMARY_COLUMNS: List[str] = [
    "nonce",
    "owner",
    "amount_per_cycle",
    "cycle_label",
    "take_profit_bps",
    "stable_balance",
    "target_balance",
    "last_executed_at",
    "take_profit_eligible",
    "buys",
    "sells",
]

HISTORY_COLUMNS: List[str] = ["side", "timestamp", "stable_amount", "target_amount"]


class StrategyReport:
    """策略报表"""

    @staticmethod
    def summary(snapshots: Sequence[StrategySnapshot]) -> pd.DataFrame:
        """
        策略概览，每个策略一行

        Args:
            snapshots: 策略快照列表

        Returns:
            pd.DataFrame: 以 SUMMARY_COLUMNS 为列，空列表返回空表
        """
        rows = [
            {
                "nonce": s.nonce,
                "owner": s.owner,
                "amount_per_cycle": s.amount_per_cycle,
                "cycle_label": s.cycle_label,
                "take_profit_bps": s.take_profit_bps,
                "stable_balance": s.stable_balance,
                "target_balance": s.target_balance,
                "last_executed_at": s.last_executed_at,
                "take_profit_eligible": s.take_profit_eligible,
                "buys": len(s.buys),
                "sells": len(s.sells),
            }
            for s in snapshots
        ]
        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)

    @staticmethod
    def trade_history(snapshot: StrategySnapshot) -> pd.DataFrame:
        """买入与卖出账本合并后按时间排序 (同一时间买入在前)"""
        rows = [
            {"side": "buy", "timestamp": swap.timestamp,
             "stable_amount": swap.stable_amount, "target_amount": swap.target_amount}
            for swap in snapshot.buys
        ] + [
            {"side": "sell", "timestamp": swap.timestamp,
             "stable_amount": swap.stable_amount, "target_amount": swap.target_amount}
            for swap in snapshot.sells
        ]
        df = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
        if df.empty:
            return df
        return df.sort_values(["timestamp", "side"], kind="stable").reset_index(drop=True)

    @staticmethod
    def to_text(df: pd.DataFrame) -> str:
        if df.empty:
            return "(无记录)"
        return df.to_string(index=False)
