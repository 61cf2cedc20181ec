"""
StrategyService - 策略生命周期应用服务

用户侧操作: 创建 / 修改 / 关闭 / 存入 / 提取 / 转让，以及只读视图。
每个写操作在 repository.transaction() 内完成，资金划转放在事务最后一步，
事件在提交后发布。
"""
from logging import Logger, getLogger
from typing import Callable, List, Optional

from ..domain.demand_interface.collaborator_interface import IFundsTransfer
from ..domain.demand_interface.strategy_repository_interface import IStrategyRepository
from ..domain.domain_service.profit_evaluator import ProfitEvaluator
from ..domain.domain_service.valuation_service import ValuationService
from ..domain.entity.strategy_record import StrategyRecord
from ..domain.event.event_types import (
    DepositMadeEvent,
    DomainEvent,
    StrategyCreatedEvent,
    StrategyDeletedEvent,
    StrategyModifiedEvent,
    WithdrawalMadeEvent,
)
from ..domain.exceptions import (
    ERROR_INVALID_AMOUNT_PER_SWAP,
    ERROR_INVALID_DCA_TOKEN_AMOUNT,
    ERROR_INVALID_STRATEGY_TOKEN,
    ERROR_INVALID_TAKE_PROFIT,
    ERROR_INVALID_USDC_AMOUNT,
    ERROR_INVALID_USDC_TOKEN,
    ERROR_NOT_OWNER,
    AuthorizationError,
    ValidationError,
)
from ..domain.value_object.dca_settings import AssetKind, DcaSettings
from ..domain.value_object.strategy_snapshot import StrategySnapshot
from .setup_saga import SetupCoordinator


class StrategyService:
    """
    策略应用服务

    职责:
    1. 校验配置状态、暂停状态、持有者身份
    2. 修改 StrategyRecord 并写回仓库
    3. 通过 IFundsTransfer 把资金交还持有者
    4. 生成只读快照 (含当前是否满足止盈)
    """

    def __init__(
        self,
        repository: IStrategyRepository,
        setup: SetupCoordinator,
        funds_transfer: IFundsTransfer,
        valuation: ValuationService,
        profit_evaluator: Optional[ProfitEvaluator] = None,
        event_handler: Optional[Callable[[DomainEvent], None]] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self._repository = repository
        self._setup = setup
        self._funds_transfer = funds_transfer
        self._valuation = valuation
        self._profit_evaluator = profit_evaluator or ProfitEvaluator()
        self._event_handler = event_handler
        self._logger = logger or getLogger(__name__)

    # ========== 写操作 ==========

    def create_strategy(
        self,
        caller: str,
        amount_per_cycle: int,
        cycle_label: str,
        take_profit_bps: int = 0,
    ) -> int:
        """
        创建策略

        Args:
            caller: 创建人，成为策略持有者
            amount_per_cycle: 每期稳定币金额 (不低于最小金额)
            cycle_label: 周期标签 (必须在允许列表中)
            take_profit_bps: 止盈阈值，0 表示不止盈

        Returns:
            新策略的 nonce
        """
        settings = self._setup.require_operational()
        period = self._validate_schedule(settings, amount_per_cycle, cycle_label, take_profit_bps)

        record = StrategyRecord(
            nonce=0,
            amount_per_cycle=amount_per_cycle,
            cycle_label=cycle_label,
            cycle_period_millis=period,
            take_profit_bps=take_profit_bps,
        )
        with self._repository.transaction():
            nonce = self._repository.create(caller, record)

        self._logger.info(
            f"策略已创建: #{nonce} owner={caller}, {amount_per_cycle}/{cycle_label}, tp={take_profit_bps}"
        )
        self._publish([StrategyCreatedEvent(
            owner=caller,
            nonce=nonce,
            amount_per_cycle=amount_per_cycle,
            cycle_label=cycle_label,
            take_profit_bps=take_profit_bps,
        )])
        return nonce

    def modify_strategy(
        self,
        caller: str,
        nonce: int,
        amount_per_cycle: int,
        cycle_label: str,
        take_profit_bps: int = 0,
    ) -> None:
        """修改定投计划，余额与账本保持不变"""
        settings = self._setup.require_operational()
        period = self._validate_schedule(settings, amount_per_cycle, cycle_label, take_profit_bps)

        with self._repository.transaction():
            record = self._load_owned(caller, nonce)
            record.reschedule(amount_per_cycle, cycle_label, period, take_profit_bps)
            self._repository.save(record)

        self._publish([StrategyModifiedEvent(
            owner=caller,
            nonce=nonce,
            amount_per_cycle=amount_per_cycle,
            cycle_label=cycle_label,
            take_profit_bps=take_profit_bps,
        )])

    def delete_strategy(self, caller: str, nonce: int) -> None:
        """关闭策略: 退还全部余额并丢弃账本，nonce 不再复用"""
        settings = self._setup.require_operational()

        with self._repository.transaction():
            record = self._load_owned(caller, nonce)
            stable_amount = record.stable_balance
            target_amount = record.target_balance
            self._repository.delete(nonce)

            if stable_amount > 0:
                self._funds_transfer.transfer(caller, settings.stable_token, stable_amount)
            if target_amount > 0:
                self._funds_transfer.transfer(caller, settings.target_token, target_amount)

        self._logger.info(
            f"策略已关闭: #{nonce}, 退还 stable={stable_amount}, target={target_amount}"
        )
        self._publish([StrategyDeletedEvent(
            owner=caller,
            nonce=nonce,
            stable_amount=stable_amount,
            target_amount=target_amount,
        )])

    def deposit(self, caller: str, nonce: int, token: str, amount: int) -> None:
        """存入稳定币"""
        settings = self._setup.require_operational()
        if token != settings.stable_token:
            raise ValidationError(ERROR_INVALID_USDC_TOKEN)
        if amount <= 0:
            raise ValidationError(ERROR_INVALID_USDC_AMOUNT)

        with self._repository.transaction():
            record = self._load_owned(caller, nonce)
            record.credit_stable(amount)
            self._repository.save(record)

        self._logger.info(f"存入: #{nonce} +{amount} {token}")
        self._publish([DepositMadeEvent(owner=caller, nonce=nonce, stable_amount=amount)])

    def withdraw(self, caller: str, nonce: int, amount: int, asset: AssetKind) -> None:
        """
        提取稳定币或目标资产

        数量必须为正且不超过对应余额，否则按资产类型给出不同的失败原因。
        """
        settings = self._setup.require_operational()

        with self._repository.transaction():
            record = self._load_owned(caller, nonce)
            if asset is AssetKind.STABLE:
                if amount <= 0 or amount > record.stable_balance:
                    raise ValidationError(ERROR_INVALID_USDC_AMOUNT)
                record.debit_stable(amount)
                token = settings.stable_token
            else:
                if amount <= 0 or amount > record.target_balance:
                    raise ValidationError(ERROR_INVALID_DCA_TOKEN_AMOUNT)
                record.debit_target(amount)
                token = settings.target_token
            self._repository.save(record)
            self._funds_transfer.transfer(caller, token, amount)

        self._logger.info(f"提取: #{nonce} -{amount} {token}")
        self._publish([WithdrawalMadeEvent(owner=caller, nonce=nonce, token=token, amount=amount)])

    def transfer_strategy(self, caller: str, nonce: int, new_owner: str) -> None:
        """转让策略持有权，记录内容不变"""
        self._setup.require_operational()
        with self._repository.transaction():
            self._load_owned(caller, nonce)
            self._repository.transfer_ownership(nonce, new_owner)
        self._logger.info(f"策略已转让: #{nonce} {caller} -> {new_owner}")

    # ========== 只读视图 ==========

    def get_strategy(self, nonce: int) -> Optional[StrategySnapshot]:
        """读取策略快照，未知 nonce 返回 None"""
        record = self._repository.get(nonce)
        if record is None:
            return None
        owner = self._repository.owner_of(nonce) or ""
        return StrategySnapshot.from_record(
            record, owner, self._take_profit_eligible(record)
        )

    def list_strategies(self) -> List[StrategySnapshot]:
        """所有存活策略的快照 (nonce 升序)"""
        snapshots: List[StrategySnapshot] = []
        for nonce in self._repository.list_nonces():
            snapshot = self.get_strategy(nonce)
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def list_strategy_ids(self) -> List[int]:
        return self._repository.list_nonces()

    # ========== 内部 ==========

    def _take_profit_eligible(self, record: StrategyRecord) -> bool:
        """止盈阈值为 0 时视图始终显示为不满足"""
        if record.take_profit_bps <= 0 or record.target_balance <= 0:
            return False
        settings = self._setup.settings
        if settings is None:
            return False
        value = self._valuation.value_in_stable(settings, record.target_balance)
        basis = self._profit_evaluator.profit_basis(record.buys, record.sells)
        return self._profit_evaluator.is_in_profit(value, record.take_profit_bps, basis)

    @staticmethod
    def _validate_schedule(
        settings: DcaSettings, amount_per_cycle: int, cycle_label: str, take_profit_bps: int
    ) -> int:
        if amount_per_cycle < settings.min_amount_per_cycle:
            raise ValidationError(ERROR_INVALID_AMOUNT_PER_SWAP)
        if take_profit_bps < 0:
            raise ValidationError(ERROR_INVALID_TAKE_PROFIT)
        return settings.frequency_duration(cycle_label)

    def _load_owned(self, caller: str, nonce: int) -> StrategyRecord:
        record = self._repository.get(nonce)
        if record is None:
            raise ValidationError(ERROR_INVALID_STRATEGY_TOKEN)
        if self._repository.owner_of(nonce) != caller:
            raise AuthorizationError(ERROR_NOT_OWNER)
        return record

    def _publish(self, events: List[DomainEvent]) -> None:
        if self._event_handler is None:
            return
        for event in events:
            self._event_handler(event)
