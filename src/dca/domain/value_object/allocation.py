"""
分配相关值对象

BatchCandidate: 通过资格筛选的策略及其对聚合金额的贡献
Allocation: 聚合兑换结果按比例分回某个策略的份额
AllocationResult: 一次分配的完整结果 (含 dust)
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Tuple

if TYPE_CHECKING:
    from ..entity.strategy_record import StrategyRecord


@dataclass
class BatchCandidate:
    """
    批次候选策略

    Attributes:
        nonce: 策略标识
        record: 读取时的策略记录 (后续在其上落账)
        contribution: 对 aggregate_input 的贡献 (买入: amount_per_cycle, 卖出: target_balance)
    """
    nonce: int
    record: "StrategyRecord"
    contribution: int


@dataclass
class EligibleSet:
    """资格筛选结果: 按调用方顺序排列的候选 + 贡献总和"""
    candidates: List[BatchCandidate] = field(default_factory=list)
    aggregate_input: int = 0

    @property
    def nonces(self) -> List[int]:
        return [c.nonce for c in self.candidates]

    @property
    def contributions(self) -> List[Tuple[int, int]]:
        return [(c.nonce, c.contribution) for c in self.candidates]

    def is_empty(self) -> bool:
        return not self.candidates


@dataclass(frozen=True)
class Allocation:
    """单个策略分得的份额"""
    nonce: int
    contribution: int
    proportion_bps: int
    allocated: int


@dataclass(frozen=True)
class AllocationResult:
    """
    分配结果

    Attributes:
        allocations: 与输入顺序一致的分配列表
        total_allocated: 已分配总额
        dust: 舍入残余 (aggregate_output - total_allocated)，归操作方
    """
    allocations: Tuple[Allocation, ...]
    total_allocated: int
    dust: int

    def allocated_for(self, nonce: int) -> int:
        for allocation in self.allocations:
            if allocation.nonce == nonce:
                return allocation.allocated
        raise KeyError(nonce)
