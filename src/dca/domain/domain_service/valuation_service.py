"""
ValuationService 领域服务

把目标资产数量折算为稳定币价值，供止盈资格判断和只读视图使用。
路径: 可交易目标资产 -> 稳定资产，报价由 AggregateSwapExecutor.quote 串联。
"""
from typing import Callable, Dict

from ..value_object.dca_settings import DcaSettings
from ..value_object.route import Route
from .execution.aggregate_swap_executor import AggregateSwapExecutor
from .routing.route_resolver import RouteResolver


class ValuationService:
    """目标资产估值"""

    def __init__(self, route_resolver: RouteResolver, swap_executor: AggregateSwapExecutor) -> None:
        self._route_resolver = route_resolver
        self._swap_executor = swap_executor

    def sell_route(self, settings: DcaSettings) -> Route:
        return self._route_resolver.resolve(settings.target_as_tradeable, settings.stable_token)

    def value_in_stable(self, settings: DcaSettings, target_amount: int) -> int:
        """单次估值，无路径时价值为 0"""
        if target_amount <= 0:
            return 0
        return self._swap_executor.quote(self.sell_route(settings), target_amount)

    def valuator(self, settings: DcaSettings) -> Callable[[int], int]:
        """
        批量估值函数

        路径只解析一次，同一数量的报价在本批次内复用。
        """
        route = self.sell_route(settings)
        cache: Dict[int, int] = {}

        def _value(target_amount: int) -> int:
            if target_amount <= 0:
                return 0
            if target_amount not in cache:
                cache[target_amount] = self._swap_executor.quote(route, target_amount)
            return cache[target_amount]

        return _value
