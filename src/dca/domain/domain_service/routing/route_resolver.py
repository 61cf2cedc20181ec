"""
RouteResolver 领域服务

在固定的场所注册表上为 (token_in, token_out) 找一条可用的多跳路径。
按固定优先级贪心选择，第一条通过流动性检查的候选立即返回，
不比较候选之间的价格冲击。
"""
from logging import Logger, getLogger
from typing import Dict, List, Optional, Sequence, Tuple

from ...demand_interface.liquidity_venue_interface import ILiquidityVenue
from ...value_object.route import Route, RouteHop


class RouteResolver:
    """
    路径解析器

    候选形状 (优先级从高到低):
    1. token_in -> token_out (直连池)
    2. token_in -> B -> token_out (B: 包装原生资产)
    3. token_in -> U -> token_out (U: 参考稳定资产)
    4. token_in -> B -> U -> token_out
    5. token_in -> U -> B -> token_out

    一个池可用当且仅当池存在且两种资产余额都大于 0。
    三跳形状额外要求 (B, U) 池可用。
    """

    def __init__(
        self,
        venue: ILiquidityVenue,
        wrapped_native_token: str,
        stable_token: str,
        logger: Optional[Logger] = None,
    ) -> None:
        self._venue = venue
        self._bridge_native = wrapped_native_token
        self._bridge_stable = stable_token
        self._logger = logger or getLogger(__name__)

    def resolve(self, token_in: str, token_out: str) -> Route:
        """
        解析兑换路径

        Returns:
            路径元组；找不到时返回空元组
        """
        if token_in == token_out:
            return ()

        pools: Dict[Tuple[str, str], Optional[str]] = {}
        b = self._bridge_native
        u = self._bridge_stable

        candidates: List[Sequence[str]] = [
            (token_in, token_out),
            (token_in, b, token_out),
            (token_in, u, token_out),
            (token_in, b, u, token_out),
            (token_in, u, b, token_out),
        ]

        for tokens in candidates:
            # 桥接资产与两端重复时该形状退化，跳过
            if len(set(tokens)) != len(tokens):
                continue
            route = self._try_build(tokens, pools)
            if route:
                self._logger.debug(
                    f"路径解析 {token_in}->{token_out}: {' -> '.join(tokens)}"
                )
                return route

        self._logger.info(f"未找到可用路径: {token_in} -> {token_out}")
        return ()

    def _try_build(
        self,
        tokens: Sequence[str],
        pools: Dict[Tuple[str, str], Optional[str]],
    ) -> Route:
        hops: List[RouteHop] = []
        for token_a, token_b in zip(tokens, tokens[1:]):
            pool = self._usable_pool(token_a, token_b, pools)
            if pool is None:
                return ()
            hops.append(RouteHop(pool_address=pool, token_in=token_a, token_out=token_b))
        return tuple(hops)

    def _usable_pool(
        self,
        token_a: str,
        token_b: str,
        pools: Dict[Tuple[str, str], Optional[str]],
    ) -> Optional[str]:
        """池存在且双边余额非零时返回池地址 (单次解析内缓存)"""
        key = (token_a, token_b) if token_a <= token_b else (token_b, token_a)
        if key in pools:
            return pools[key]

        pool = self._venue.get_pair(token_a, token_b)
        if pool and self.has_liquidity(pool, token_a, token_b):
            pools[key] = pool
        else:
            pools[key] = None
        return pools[key]

    def has_liquidity(self, pool_address: str, token_a: str, token_b: str) -> bool:
        """池中两种资产余额都大于 0"""
        return (
            self._venue.get_pool_balance(pool_address, token_a) > 0
            and self._venue.get_pool_balance(pool_address, token_b) > 0
        )
