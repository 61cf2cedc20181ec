"""
DcaSettings 值对象 - 系统级 DCA 配置

集中存放百分比刻度、默认滑点、默认资产标识等静态常量，
以及一次性配置完成后生效的参数集合。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from ..exceptions import (
    ERROR_INVALID_FEE_PERCENTAGE,
    ERROR_INVALID_FREQUENCY,
    ERROR_INVALID_MIN_AMOUNT,
    ERROR_INVALID_SLIPPAGE,
    ValidationError,
)


# ---------------------------------------------------------------------------
# 静态常量
# ---------------------------------------------------------------------------

MAX_PERCENTAGE: int = 10000  # 100% (basis points)
DEFAULT_SLIPPAGE_BPS: int = 50  # 0.5%

USDC_IDENTIFIER: str = "USDC-c76f1f"
WEGLD_IDENTIFIER: str = "WEGLD-bd4d79"
EGLD_IDENTIFIER: str = "EGLD"

# 策略凭证发行费用 (0.05 EGLD，按 18 位精度)
TOKEN_ISSUANCE_COST: int = 50_000_000_000_000_000
MAX_TICKER_LENGTH: int = 5


class AssetKind(Enum):
    """可提取的资产类型"""
    STABLE = "stable"
    TARGET = "target"


@dataclass(frozen=True)
class DcaSettings:
    """
    DCA 配置

    Attributes:
        target_token: 定投的目标资产 (可以是原生资产 EGLD)
        min_amount_per_cycle: 每期最小稳定币金额
        profit_fee_bps: 止盈时对利润收取的费率
        allowed_frequencies: 允许的周期标签 -> 周期时长 (毫秒)
        custom_slippage_bps: 自定义滑点，None 时使用默认滑点
        stable_token: 稳定资产 (同时作为路由桥接资产 U)
        wrapped_native_token: 包装原生资产 (路由桥接资产 B)
        native_token: 原生资产标识
        strategy_token_id: 策略归属凭证标识 (一次性配置完成后写入)
    """
    target_token: str
    min_amount_per_cycle: int
    profit_fee_bps: int
    allowed_frequencies: Dict[str, int] = field(default_factory=dict)
    custom_slippage_bps: Optional[int] = None
    stable_token: str = USDC_IDENTIFIER
    wrapped_native_token: str = WEGLD_IDENTIFIER
    native_token: str = EGLD_IDENTIFIER
    strategy_token_id: str = ""

    def __post_init__(self) -> None:
        # dataclasses.replace 也会经过这里，管理员调整与一次性配置共用同一组校验
        if not isinstance(self.min_amount_per_cycle, int) or self.min_amount_per_cycle < 0:
            raise ValidationError(ERROR_INVALID_MIN_AMOUNT)
        if not isinstance(self.profit_fee_bps, int) or not 0 <= self.profit_fee_bps <= MAX_PERCENTAGE:
            raise ValidationError(ERROR_INVALID_FEE_PERCENTAGE)
        slippage = self.custom_slippage_bps
        if slippage is not None and (not isinstance(slippage, int) or not 0 <= slippage < MAX_PERCENTAGE):
            raise ValidationError(ERROR_INVALID_SLIPPAGE)
        for duration in self.allowed_frequencies.values():
            if not isinstance(duration, int) or duration <= 0:
                raise ValidationError(ERROR_INVALID_FREQUENCY)

    @property
    def final_slippage_bps(self) -> int:
        """实际使用的滑点 (自定义优先)"""
        if self.custom_slippage_bps is None:
            return DEFAULT_SLIPPAGE_BPS
        return self.custom_slippage_bps

    @property
    def target_is_native(self) -> bool:
        return self.target_token == self.native_token

    @property
    def target_as_tradeable(self) -> str:
        """可在场所交易的目标资产标识 (原生资产用其包装形式)"""
        if self.target_is_native:
            return self.wrapped_native_token
        return self.target_token

    def frequency_duration(self, label: str) -> int:
        """获取周期标签对应的毫秒时长，标签不在允许列表中时报错"""
        if label not in self.allowed_frequencies:
            raise ValidationError(ERROR_INVALID_FREQUENCY)
        return self.allowed_frequencies[label]

    def to_dict(self) -> Dict[str, object]:
        return {
            "target_token": self.target_token,
            "min_amount_per_cycle": self.min_amount_per_cycle,
            "profit_fee_bps": self.profit_fee_bps,
            "allowed_frequencies": dict(self.allowed_frequencies),
            "slippage_bps": self.final_slippage_bps,
            "stable_token": self.stable_token,
            "wrapped_native_token": self.wrapped_native_token,
            "native_token": self.native_token,
            "strategy_token_id": self.strategy_token_id,
        }
