"""
AggregateSwapExecutor 领域服务

为路径的每一跳计算最小输出下限，并以一次外部调用原子执行整条路径。
各跳报价乐观串联: 下一跳的报价输入使用上一跳的报价，而非实际成交。
"""
from logging import Logger, getLogger
from typing import List, Optional

from ...demand_interface.liquidity_venue_interface import ILiquidityVenue
from ...exceptions import ExternalCallFailure, RouteNotFoundError
from ...value_object.dca_settings import MAX_PERCENTAGE
from ...value_object.route import (
    SWAP_TOKENS_FIXED_INPUT_FUNC_NAME,
    Route,
    SwapLeg,
)


class AggregateSwapExecutor:
    """
    聚合兑换执行器

    职责:
    1. 按跳报价并计算 min_out = estimate * (10000 - slippage) // 10000
    2. 一次调用执行全部路径，返回最终资产实际到账
    3. 场所失败统一转换为 ExternalCallFailure，不重试、不降级
    """

    def __init__(self, venue: ILiquidityVenue, logger: Optional[Logger] = None) -> None:
        self._venue = venue
        self._logger = logger or getLogger(__name__)

    def build_legs(self, route: Route, amount_in: int, slippage_bps: int) -> List[SwapLeg]:
        """按跳串联报价并生成兑换指令"""
        legs: List[SwapLeg] = []
        running = amount_in
        for hop in route:
            estimate = self._venue.get_amount_out(hop.pool_address, hop.token_in, running)
            min_out = estimate * (MAX_PERCENTAGE - slippage_bps) // MAX_PERCENTAGE
            legs.append(SwapLeg(
                pool_address=hop.pool_address,
                function_name=SWAP_TOKENS_FIXED_INPUT_FUNC_NAME,
                token_out=hop.token_out,
                min_out=min_out,
            ))
            running = estimate
        return legs

    def quote(self, route: Route, amount_in: int) -> int:
        """沿路径串联只读报价，空路径或零金额返回 0"""
        if not route or amount_in == 0:
            return 0
        amount = amount_in
        for hop in route:
            amount = self._venue.get_amount_out(hop.pool_address, hop.token_in, amount)
        return amount

    def execute(self, route: Route, amount_in: int, slippage_bps: int) -> int:
        """
        执行聚合兑换

        Args:
            route: 兑换路径 (不能为空)
            amount_in: 投入的首资产数量
            slippage_bps: 每跳允许的滑点

        Returns:
            最终资产实际到账
        """
        if not route:
            raise RouteNotFoundError()

        token_in = route[0].token_in
        try:
            legs = self.build_legs(route, amount_in, slippage_bps)
            realized = self._venue.multi_pair_swap(token_in, amount_in, legs)
        except ExternalCallFailure:
            raise
        except Exception as e:
            self._logger.error(f"聚合兑换失败: {token_in} x{amount_in}, {e}")
            raise ExternalCallFailure(target="liquidity_venue", original_error=e) from e

        self._logger.info(
            f"聚合兑换完成: {token_in} x{amount_in} -> "
            f"{route[-1].token_out} x{realized} ({len(route)} 跳)"
        )
        return realized
