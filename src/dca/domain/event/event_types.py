"""
Domain Events - 领域事件

批量执行与策略生命周期产生的事件，供链下审计与通知使用。
事件只在事务提交之后发布。
"""
from dataclasses import dataclass, field
from datetime import datetime


# ========== 领域事件基类 ==========
@dataclass
class DomainEvent:
    """
    领域事件基类

    所有领域事件都应继承此类。
    """
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def event_name(self) -> str:
        """获取事件名称"""
        return self.__class__.__name__


# ========== 批量执行事件 ==========
@dataclass
class BuyExecutedEvent(DomainEvent):
    """
    买入执行事件

    触发时机: 买入批次中某个策略完成落账。
    """
    nonce: int = 0
    stable_amount: int = 0
    target_amount: int = 0


@dataclass
class SellExecutedEvent(DomainEvent):
    """
    止盈卖出事件

    触发时机: 止盈批次中某个策略完成落账。
    stable_amount 为扣除业绩费后的净到账。
    """
    nonce: int = 0
    target_amount: int = 0
    stable_amount: int = 0


# ========== 策略生命周期事件 ==========
@dataclass
class StrategyCreatedEvent(DomainEvent):
    owner: str = ""
    nonce: int = 0
    amount_per_cycle: int = 0
    cycle_label: str = ""
    take_profit_bps: int = 0


@dataclass
class StrategyModifiedEvent(DomainEvent):
    owner: str = ""
    nonce: int = 0
    amount_per_cycle: int = 0
    cycle_label: str = ""
    take_profit_bps: int = 0


@dataclass
class StrategyDeletedEvent(DomainEvent):
    owner: str = ""
    nonce: int = 0
    stable_amount: int = 0
    target_amount: int = 0


@dataclass
class DepositMadeEvent(DomainEvent):
    owner: str = ""
    nonce: int = 0
    stable_amount: int = 0


@dataclass
class WithdrawalMadeEvent(DomainEvent):
    owner: str = ""
    nonce: int = 0
    token: str = ""
    amount: int = 0


# ========== 配置事件 ==========
@dataclass
class SetupCompletedEvent(DomainEvent):
    """一次性配置完成 (凭证发行成功)"""
    strategy_token_id: str = ""
    target_token: str = ""


@dataclass
class SetupFailedEvent(DomainEvent):
    """凭证发行失败，已退还发行费用"""
    initiator: str = ""
    refunded_amount: int = 0
    reason: str = ""
