"""
Value Object Module

领域层值对象定义。

值对象列表:
- SwapRecord: 兑换账本记录
- RouteHop / Route / SwapLeg: 多跳兑换路径与指令
- BatchCandidate / EligibleSet / Allocation / AllocationResult: 批次筛选与分配
- DcaSettings / AssetKind: 系统配置
- StrategySnapshot / BatchReport: 只读视图与批次结果
"""

from .swap_record import SwapRecord
from .route import (
    SWAP_TOKENS_FIXED_INPUT_FUNC_NAME,
    Route,
    RouteHop,
    SwapLeg,
    route_tokens,
    validate_route,
)
from .dca_settings import (
    DEFAULT_SLIPPAGE_BPS,
    MAX_PERCENTAGE,
    AssetKind,
    DcaSettings,
)
from .allocation import Allocation, AllocationResult, BatchCandidate, EligibleSet
from .strategy_snapshot import BatchReport, StrategySnapshot

__all__ = [
    # 账本
    "SwapRecord",
    # 路径
    "SWAP_TOKENS_FIXED_INPUT_FUNC_NAME",
    "Route",
    "RouteHop",
    "SwapLeg",
    "route_tokens",
    "validate_route",
    # 配置
    "DEFAULT_SLIPPAGE_BPS",
    "MAX_PERCENTAGE",
    "AssetKind",
    "DcaSettings",
    # 批次
    "Allocation",
    "AllocationResult",
    "BatchCandidate",
    "EligibleSet",
    "BatchReport",
    "StrategySnapshot",
]
