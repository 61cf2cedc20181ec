"""
Route 值对象 - 多跳兑换路径

RouteHop: 单个流动性池上的一跳 (pool, token_in, token_out)
Route: 有序的 RouteHop 元组，第 i+1 跳的 token_in 等于第 i 跳的 token_out
SwapLeg: 提交给流动性场所的一条兑换指令 (带最小输出保护)
"""
from dataclasses import dataclass
from typing import Tuple

# 场所上按固定输入兑换的函数名
SWAP_TOKENS_FIXED_INPUT_FUNC_NAME = "swapTokensFixedInput"


@dataclass(frozen=True)
class RouteHop:
    """路径中的一跳"""
    pool_address: str
    token_in: str
    token_out: str

    def __repr__(self) -> str:
        return f"RouteHop({self.token_in}->{self.token_out} @{self.pool_address})"


Route = Tuple[RouteHop, ...]


@dataclass(frozen=True)
class SwapLeg:
    """
    多跳兑换中的一条指令

    Attributes:
        pool_address: 执行该跳的流动性池地址
        function_name: 池上调用的函数名
        token_out: 该跳产出的资产
        min_out: 该跳可接受的最小输出 (滑点下限)
    """
    pool_address: str
    function_name: str
    token_out: str
    min_out: int


def validate_route(route: Route) -> bool:
    """检查路径的首尾衔接是否连续"""
    for previous, current in zip(route, route[1:]):
        if previous.token_out != current.token_in:
            return False
    return True


def route_tokens(route: Route) -> Tuple[str, ...]:
    """返回路径经过的资产序列，例如 (USDC, WEGLD, MEX)"""
    if not route:
        return ()
    return (route[0].token_in,) + tuple(hop.token_out for hop in route)
