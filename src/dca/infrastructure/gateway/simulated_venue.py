"""
SimulatedLiquidityVenue - 恒定乘积流动性场所模拟

用于测试与纸面运行 (CLI)。池子按 x * y = k 报价，默认 30 bps 手续费。
multi_pair_swap 在副本上逐跳执行并检查 min_out，全部成功后才提交储备变化。
"""
from dataclasses import dataclass
from logging import Logger, getLogger
from typing import Dict, List, Optional, Tuple

from src.dca.domain.demand_interface.liquidity_venue_interface import ILiquidityVenue
from src.dca.domain.value_object.dca_settings import MAX_PERCENTAGE
from src.dca.domain.value_object.route import SwapLeg


class VenueError(RuntimeError):
    """场所调用失败 (池不存在 / 低于最小输出 / 储备不足)"""


@dataclass
class SimulatedPool:
    """恒定乘积池"""
    address: str
    token_a: str
    token_b: str
    reserve_a: int
    reserve_b: int
    fee_bps: int = 30

    def reserve_of(self, token: str) -> int:
        if token == self.token_a:
            return self.reserve_a
        if token == self.token_b:
            return self.reserve_b
        return 0

    def other(self, token: str) -> str:
        if token == self.token_a:
            return self.token_b
        if token == self.token_b:
            return self.token_a
        raise VenueError(f"池 {self.address} 不包含资产 {token}")

    def amount_out(self, token_in: str, amount_in: int) -> int:
        reserve_in = self.reserve_of(token_in)
        reserve_out = self.reserve_of(self.other(token_in))
        if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return 0
        amount_in_with_fee = amount_in * (MAX_PERCENTAGE - self.fee_bps)
        numerator = amount_in_with_fee * reserve_out
        denominator = reserve_in * MAX_PERCENTAGE + amount_in_with_fee
        return numerator // denominator

    def apply_swap(self, token_in: str, amount_in: int, amount_out: int) -> None:
        if token_in == self.token_a:
            self.reserve_a += amount_in
            self.reserve_b -= amount_out
        else:
            self.reserve_b += amount_in
            self.reserve_a -= amount_out


class SimulatedLiquidityVenue(ILiquidityVenue):
    """
    模拟流动性场所

    - add_pool: 注册池
    - get_pair: 资产顺序无关
    - multi_pair_swap: 原子执行，任一跳失败整体不生效
    """

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._pools: Dict[str, SimulatedPool] = {}
        self._pairs: Dict[Tuple[str, str], str] = {}
        self.swap_count: int = 0
        self._logger = logger or getLogger(__name__)

    @staticmethod
    def _pair_key(token_a: str, token_b: str) -> Tuple[str, str]:
        return (token_a, token_b) if token_a <= token_b else (token_b, token_a)

    def add_pool(
        self,
        token_a: str,
        token_b: str,
        reserve_a: int,
        reserve_b: int,
        fee_bps: int = 30,
        address: Optional[str] = None,
    ) -> SimulatedPool:
        address = address or f"pool:{token_a}/{token_b}"
        pool = SimulatedPool(
            address=address,
            token_a=token_a,
            token_b=token_b,
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            fee_bps=fee_bps,
        )
        self._pools[address] = pool
        self._pairs[self._pair_key(token_a, token_b)] = address
        return pool

    def pool(self, address: str) -> SimulatedPool:
        if address not in self._pools:
            raise VenueError(f"池不存在: {address}")
        return self._pools[address]

    # ========== ILiquidityVenue ==========

    def get_pair(self, token_a: str, token_b: str) -> Optional[str]:
        return self._pairs.get(self._pair_key(token_a, token_b))

    def get_pool_balance(self, pool_address: str, token: str) -> int:
        pool = self._pools.get(pool_address)
        if pool is None:
            return 0
        return pool.reserve_of(token)

    def get_amount_out(self, pool_address: str, token_in: str, amount_in: int) -> int:
        return self.pool(pool_address).amount_out(token_in, amount_in)

    def multi_pair_swap(self, token_in: str, amount_in: int, legs: List[SwapLeg]) -> int:
        if not legs:
            raise VenueError("兑换指令为空")

        # 在储备副本上执行，全部成功后再提交
        staged: Dict[str, SimulatedPool] = {}
        running_token = token_in
        running_amount = amount_in
        for index, leg in enumerate(legs):
            original = self.pool(leg.pool_address)
            pool = staged.get(leg.pool_address)
            if pool is None:
                pool = SimulatedPool(**vars(original))
                staged[leg.pool_address] = pool

            if pool.other(running_token) != leg.token_out:
                raise VenueError(
                    f"第 {index + 1} 跳资产不匹配: {running_token} -> {leg.token_out} @{leg.pool_address}"
                )
            out = pool.amount_out(running_token, running_amount)
            if out < leg.min_out or out == 0:
                raise VenueError(
                    f"第 {index + 1} 跳低于最小输出: out={out}, min_out={leg.min_out}"
                )
            pool.apply_swap(running_token, running_amount, out)
            running_token = leg.token_out
            running_amount = out

        self._pools.update(staged)
        self.swap_count += 1
        self._logger.debug(
            f"模拟兑换: {token_in} x{amount_in} -> {running_token} x{running_amount}"
        )
        return running_amount
