"""
SetupCoordinator - 一次性配置 (Saga)

配置分两阶段完成:
1. begin_setup: 写入待定配置 PendingSetup，再请求发行策略归属凭证
2. 发行结果到达后二选一:
   - complete_setup: 写入凭证标识，配置对外可见
   - fail_setup: 退还发行费用给发起人，清除待定配置

待定期间配置对其它操作不可见 (视为未配置)。
"""
from dataclasses import dataclass, replace
from logging import Logger, getLogger
from typing import Callable, Dict, Iterable, Optional

from ..domain.demand_interface.collaborator_interface import (
    IAccessControl,
    IFundsTransfer,
    ITokenIssuer,
)
from ..domain.event.event_types import (
    DomainEvent,
    SetupCompletedEvent,
    SetupFailedEvent,
)
from ..domain.exceptions import (
    ERROR_INVALID_FREQUENCY,
    ERROR_NO_PENDING_SETUP,
    ERROR_NOT_ADMIN,
    ERROR_PAUSED,
    ERROR_SETUP_PENDING,
    ERROR_STRATEGY_ALREADY_SET,
    ERROR_STRATEGY_NOT_SET,
    ERROR_TICKER_TOO_LONG,
    AuthorizationError,
    ConfigurationError,
    PausedError,
    ValidationError,
)
from ..domain.value_object.dca_settings import (
    MAX_TICKER_LENGTH,
    TOKEN_ISSUANCE_COST,
    DcaSettings,
)

# 凭证名前缀
STRATEGY_TOKEN_NAME_PREFIX = "DCAi"
STRATEGY_TOKEN_TICKER_PREFIX = "DCAI"

# update_settings 允许修改的字段
UPDATABLE_FIELDS = frozenset({
    "target_token",
    "min_amount_per_cycle",
    "profit_fee_bps",
    "custom_slippage_bps",
})


@dataclass(frozen=True)
class PendingSetup:
    """等待发行结果的配置"""
    initiator: str
    settings: DcaSettings
    ticker: str
    display_name: str
    payment: int


class SetupCoordinator:
    """
    一次性配置协调器

    职责:
    1. 维护 "未配置 / 待定 / 已配置" 三种状态
    2. 对外提供已生效的 DcaSettings (require_settings)
    3. 已配置后的管理员参数调整
    """

    def __init__(
        self,
        access_control: IAccessControl,
        token_issuer: Optional[ITokenIssuer] = None,
        funds_transfer: Optional[IFundsTransfer] = None,
        event_handler: Optional[Callable[[DomainEvent], None]] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self._access_control = access_control
        self._token_issuer = token_issuer
        self._funds_transfer = funds_transfer
        self._event_handler = event_handler
        self._logger = logger or getLogger(__name__)

        self._settings: Optional[DcaSettings] = None
        self._pending: Optional[PendingSetup] = None

    @classmethod
    def preconfigured(
        cls,
        settings: DcaSettings,
        access_control: IAccessControl,
        logger: Optional[Logger] = None,
    ) -> "SetupCoordinator":
        """以已完成的配置构建 (启动装配与测试使用)"""
        coordinator = cls(access_control=access_control, logger=logger)
        coordinator._settings = settings
        return coordinator

    # ========== 状态 ==========

    @property
    def settings(self) -> Optional[DcaSettings]:
        return self._settings

    @property
    def pending(self) -> Optional[PendingSetup]:
        return self._pending

    @property
    def is_configured(self) -> bool:
        return (
            self._settings is not None
            and bool(self._settings.strategy_token_id)
            and bool(self._settings.allowed_frequencies)
        )

    def require_settings(self) -> DcaSettings:
        """返回生效配置，未完成配置时报错"""
        if not self.is_configured:
            raise ConfigurationError(ERROR_STRATEGY_NOT_SET)
        return self._settings

    def require_operational(self) -> DcaSettings:
        """用户操作的前置条件: 已配置且未暂停"""
        settings = self.require_settings()
        if self._access_control.is_paused():
            raise PausedError(ERROR_PAUSED)
        return settings

    # ========== Saga ==========

    def begin_setup(
        self,
        caller: str,
        settings: DcaSettings,
        ticker: str,
        display_name: str,
        payment: int = TOKEN_ISSUANCE_COST,
    ) -> PendingSetup:
        """
        发起一次性配置

        Args:
            caller: 发起人 (管理员)
            settings: 待生效配置 (strategy_token_id 由发行结果回填)
            ticker: 凭证代码 (不超过 5 个字符)
            display_name: 凭证显示名
            payment: 随调用支付的发行费用，失败时原样退还
        """
        self._require_admin(caller)
        if self._settings is not None:
            raise ConfigurationError(ERROR_STRATEGY_ALREADY_SET)
        if self._pending is not None:
            raise ConfigurationError(ERROR_SETUP_PENDING)
        if len(ticker) > MAX_TICKER_LENGTH:
            raise ValidationError(ERROR_TICKER_TOO_LONG)
        if not settings.allowed_frequencies:
            raise ValidationError(ERROR_INVALID_FREQUENCY)

        self._pending = PendingSetup(
            initiator=caller,
            settings=settings,
            ticker=ticker,
            display_name=display_name,
            payment=payment,
        )
        self._logger.info(f"一次性配置已挂起，请求发行凭证: {ticker}")

        if self._token_issuer is not None:
            try:
                self._token_issuer.request_issuance(
                    STRATEGY_TOKEN_TICKER_PREFIX + ticker,
                    STRATEGY_TOKEN_NAME_PREFIX + display_name,
                    TOKEN_ISSUANCE_COST,
                )
            except Exception:
                self._pending = None
                raise
        return self._pending

    def complete_setup(self, strategy_token_id: str) -> DcaSettings:
        """发行成功: 写入凭证标识，配置生效"""
        pending = self._require_pending()
        self._settings = replace(pending.settings, strategy_token_id=strategy_token_id)
        self._pending = None

        self._logger.info(
            f"一次性配置完成: token={strategy_token_id}, target={self._settings.target_token}"
        )
        self._publish(SetupCompletedEvent(
            strategy_token_id=strategy_token_id,
            target_token=self._settings.target_token,
        ))
        return self._settings

    def fail_setup(self, reason: str = "") -> int:
        """
        发行失败: 退还发行费用并清除待定配置

        Returns:
            退还金额
        """
        pending = self._require_pending()
        refunded = pending.payment
        if refunded > 0 and self._funds_transfer is not None:
            self._funds_transfer.transfer(
                pending.initiator, pending.settings.native_token, refunded
            )
        self._pending = None

        self._logger.warning(f"凭证发行失败，已退还 {refunded}: {reason}")
        self._publish(SetupFailedEvent(
            initiator=pending.initiator,
            refunded_amount=refunded,
            reason=reason,
        ))
        return refunded

    # ========== 管理员调整 ==========

    def update_settings(self, caller: str, **changes) -> DcaSettings:
        """修改目标资产 / 最小金额 / 业绩费率 / 自定义滑点"""
        self._require_admin(caller)
        settings = self._require_finalized()
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"不可修改的配置项: {sorted(unknown)}")

        self._settings = replace(settings, **changes)
        self._logger.info(f"配置已更新: {changes}")
        return self._settings

    def add_allowed_frequencies(self, caller: str, frequencies: Dict[str, int]) -> DcaSettings:
        self._require_admin(caller)
        settings = self._require_finalized()
        merged = dict(settings.allowed_frequencies)
        merged.update(frequencies)
        self._settings = replace(settings, allowed_frequencies=merged)
        return self._settings

    def remove_allowed_frequencies(self, caller: str, labels: Iterable[str]) -> DcaSettings:
        """移除周期标签；已使用该标签的策略保留原周期时长"""
        self._require_admin(caller)
        settings = self._require_finalized()
        removed = set(labels)
        remaining = {
            label: duration
            for label, duration in settings.allowed_frequencies.items()
            if label not in removed
        }
        self._settings = replace(settings, allowed_frequencies=remaining)
        return self._settings

    # ========== 内部 ==========

    def _require_admin(self, caller: str) -> None:
        if not self._access_control.is_admin(caller):
            raise AuthorizationError(ERROR_NOT_ADMIN)

    def _require_finalized(self) -> DcaSettings:
        """已完成发行 (允许频率列表暂时为空)"""
        if self._settings is None:
            raise ConfigurationError(ERROR_STRATEGY_NOT_SET)
        return self._settings

    def _require_pending(self) -> PendingSetup:
        if self._pending is None:
            raise ConfigurationError(ERROR_NO_PENDING_SETUP)
        return self._pending

    def _publish(self, event: DomainEvent) -> None:
        if self._event_handler is not None:
            self._event_handler(event)
