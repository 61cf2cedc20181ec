from abc import ABC, abstractmethod
from typing import List, Optional

from ..value_object.route import SwapLeg


class ILiquidityVenue(ABC):
    """流动性场所接口 (池查询、报价、原子多跳兑换)"""

    @abstractmethod
    def get_pair(self, token_a: str, token_b: str) -> Optional[str]:
        """返回两资产之间的池地址，不存在时返回 None"""
        pass

    @abstractmethod
    def get_pool_balance(self, pool_address: str, token: str) -> int:
        """池中某资产的余额"""
        pass

    @abstractmethod
    def get_amount_out(self, pool_address: str, token_in: str, amount_in: int) -> int:
        """只读报价: 在该池中投入 amount_in 个 token_in 可得的输出"""
        pass

    @abstractmethod
    def multi_pair_swap(self, token_in: str, amount_in: int, legs: List[SwapLeg]) -> int:
        """
        原子执行多跳兑换

        任意一跳失败 (包括低于 min_out) 时整体失败并抛出异常。

        Returns:
            最终资产的实际到账数量
        """
        pass
