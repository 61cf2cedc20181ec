"""
AllocationEngine 领域服务

把一次聚合兑换的实际产出按贡献比例分回各策略，只用截断整数除法。
舍入残余 (dust) 全部归操作方，不再二次分配。
"""
from typing import List, Sequence, Tuple

from ..value_object.allocation import Allocation, AllocationResult
from ..value_object.dca_settings import MAX_PERCENTAGE

SCALE = MAX_PERCENTAGE


class AllocationEngine:
    """
    比例分配引擎

    对每个 (nonce, contribution)，按调用方顺序:
        proportion = contribution * SCALE // aggregate_input
        allocated  = aggregate_output * proportion // SCALE
    dust = aggregate_output - Σ allocated，恒 >= 0。
    """

    @staticmethod
    def allocate(
        aggregate_input: int,
        aggregate_output: int,
        contributions: Sequence[Tuple[int, int]],
    ) -> AllocationResult:
        """
        按比例分配

        Args:
            aggregate_input: 聚合投入 (应等于贡献之和)
            aggregate_output: 场所实际产出
            contributions: 有序的 (nonce, contribution) 列表

        Returns:
            AllocationResult
        """
        if aggregate_input <= 0:
            raise ValueError(f"aggregate_input 必须为正数: {aggregate_input}")
        if sum(c for _, c in contributions) != aggregate_input:
            raise ValueError("贡献之和与 aggregate_input 不一致")

        allocations: List[Allocation] = []
        running_total = 0
        for nonce, contribution in contributions:
            proportion = contribution * SCALE // aggregate_input
            allocated = aggregate_output * proportion // SCALE
            running_total += allocated
            allocations.append(Allocation(
                nonce=nonce,
                contribution=contribution,
                proportion_bps=proportion,
                allocated=allocated,
            ))

        return AllocationResult(
            allocations=tuple(allocations),
            total_allocated=running_total,
            dust=aggregate_output - running_total,
        )
