"""
BatchExecutor - 批量执行引擎

编排买入批次与止盈批次:
    资格筛选 -> 路径解析 -> 聚合兑换 -> 比例分配 -> (止盈: 业绩费) -> 落账 -> 划转

每个批次是一个全有或全无的步骤，运行在 repository.transaction() 内:
任何一步抛出异常，本次调用对策略记录的修改全部回滚。
划转 (dust / 业绩费) 在事务内最后发出，领域事件在提交之后发布。

设计模式: Application Service
依赖注入:
    BatchExecutor (Application)
        -> EligibilityFilter / RouteResolver / AggregateSwapExecutor /
           AllocationEngine / ProfitEvaluator (Domain Service)
        -> IStrategyRepository / IWrapperGateway / IFundsTransfer /
           IAccessControl (Demand Interface)
"""
import time
from contextlib import contextmanager
from logging import Logger, getLogger
from typing import Callable, Iterable, Iterator, List, Optional

from ..domain.demand_interface.collaborator_interface import (
    IAccessControl,
    IFundsTransfer,
    IWrapperGateway,
)
from ..domain.demand_interface.strategy_repository_interface import IStrategyRepository
from ..domain.domain_service.allocation_engine import AllocationEngine
from ..domain.domain_service.eligibility_filter import EligibilityFilter
from ..domain.domain_service.execution.aggregate_swap_executor import AggregateSwapExecutor
from ..domain.domain_service.profit_evaluator import ProfitEvaluator
from ..domain.domain_service.routing.route_resolver import RouteResolver
from ..domain.domain_service.valuation_service import ValuationService
from ..domain.event.event_types import BuyExecutedEvent, DomainEvent, SellExecutedEvent
from ..domain.exceptions import (
    ERROR_BATCH_RUNNING,
    ERROR_NOT_BOT,
    AuthorizationError,
    ConfigurationError,
    DcaError,
    ExternalCallFailure,
    RouteNotFoundError,
)
from ..domain.value_object.dca_settings import DcaSettings
from ..domain.value_object.strategy_snapshot import BatchReport
from .setup_saga import SetupCoordinator

CYCLE_BUY = "buy"
CYCLE_TAKE_PROFIT = "take_profit"


def _system_clock_millis() -> int:
    return int(time.time() * 1000)


class BatchExecutor:
    """
    批量执行引擎

    职责:
    1. 校验调用方为执行机器人 (或管理员)
    2. 在一个事务内完成一次买入或止盈批次
    3. 把 dust 与业绩费划转给调用方 (操作方)
    4. 提交后逐个发布 BuyExecutedEvent / SellExecutedEvent
    """

    def __init__(
        self,
        repository: IStrategyRepository,
        setup: SetupCoordinator,
        access_control: IAccessControl,
        eligibility_filter: EligibilityFilter,
        route_resolver: RouteResolver,
        swap_executor: AggregateSwapExecutor,
        wrapper: IWrapperGateway,
        funds_transfer: IFundsTransfer,
        allocation_engine: Optional[AllocationEngine] = None,
        profit_evaluator: Optional[ProfitEvaluator] = None,
        clock: Optional[Callable[[], int]] = None,
        event_handler: Optional[Callable[[DomainEvent], None]] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self._repository = repository
        self._setup = setup
        self._access_control = access_control
        self._eligibility_filter = eligibility_filter
        self._route_resolver = route_resolver
        self._swap_executor = swap_executor
        self._wrapper = wrapper
        self._funds_transfer = funds_transfer
        self._allocation_engine = allocation_engine or AllocationEngine()
        self._profit_evaluator = profit_evaluator or ProfitEvaluator()
        self._valuation = ValuationService(route_resolver, swap_executor)
        self._clock = clock or _system_clock_millis
        self._event_handler = event_handler
        self._logger = logger or getLogger(__name__)

        self._running = False

    # ========== 对外操作 ==========

    def run_buy_cycle(self, caller: str, nonces: Iterable[int]) -> BatchReport:
        """
        买入批次

        对每个符合条件的策略扣除 amount_per_cycle，聚合为一次
        稳定资产 -> 目标资产的兑换，再按贡献比例分回目标资产。
        dust 以目标资产划转给调用方。

        Raises:
            AuthorizationError: 调用方不是执行机器人
            NoEligibleCandidatesError: 没有任何策略满足买入条件
            RouteNotFoundError: 找不到兑换路径 (不发生任何外部调用)
            ExternalCallFailure: 场所或包装服务失败
        """
        return self._run(CYCLE_BUY, caller, list(nonces), self._execute_buy)

    def run_take_profit_cycle(self, caller: str, nonces: Iterable[int]) -> BatchReport:
        """
        止盈批次

        对每个满足止盈条件的策略卖出全部目标资产，按贡献比例分回稳定资产，
        扣除业绩费后计入余额。业绩费与 dust 以稳定资产划转给调用方。
        """
        return self._run(CYCLE_TAKE_PROFIT, caller, list(nonces), self._execute_take_profit)

    @property
    def is_running(self) -> bool:
        return self._running

    # ========== 编排 ==========

    def _run(
        self,
        cycle: str,
        caller: str,
        nonces: List[int],
        body: Callable[[str, DcaSettings, List[int], int], BatchReport],
    ) -> BatchReport:
        if not self._access_control.is_bot(caller):
            raise AuthorizationError(ERROR_NOT_BOT)
        settings = self._setup.require_settings()

        with self._exclusive():
            now = self._clock()
            self._logger.info(f"批次开始 [{cycle}]: caller={caller}, 候选 {len(nonces)} 个")
            try:
                with self._repository.transaction():
                    report = body(caller, settings, nonces, now)
            except DcaError as e:
                self._logger.error(f"批次失败 [{cycle}]: {e.reason}")
                raise

        self._logger.info(
            f"批次完成 [{cycle}]: 执行 {report.executed_nonces}, "
            f"in={report.aggregate_input}, out={report.aggregate_output}, "
            f"dust={report.dust}, fee={report.total_fee}"
        )
        self._publish(report.events)
        return report

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if self._running:
            raise ConfigurationError(ERROR_BATCH_RUNNING)
        self._running = True
        try:
            yield
        finally:
            self._running = False

    # ========== 买入 ==========

    def _execute_buy(
        self, caller: str, settings: DcaSettings, nonces: List[int], now: int
    ) -> BatchReport:
        eligible = self._eligibility_filter.select_for_buy(nonces, now)

        token_in = settings.stable_token
        token_out = settings.target_as_tradeable
        route = self._route_resolver.resolve(token_in, token_out)
        if not route:
            raise RouteNotFoundError(token_in, token_out)

        realized = self._swap_executor.execute(
            route, eligible.aggregate_input, settings.final_slippage_bps
        )
        if settings.target_is_native:
            self._call_external("wrapper", self._wrapper.unwrap, realized)

        allocation = self._allocation_engine.allocate(
            eligible.aggregate_input, realized, eligible.contributions
        )

        report = BatchReport(
            cycle=CYCLE_BUY,
            aggregate_input=eligible.aggregate_input,
            aggregate_output=realized,
            dust=allocation.dust,
            route=route,
        )
        for candidate, share in zip(eligible.candidates, allocation.allocations):
            record = candidate.record
            record.record_buy(share.allocated, now)
            self._repository.save(record)

            report.executed_nonces.append(candidate.nonce)
            report.events.append(BuyExecutedEvent(
                nonce=candidate.nonce,
                stable_amount=record.amount_per_cycle,
                target_amount=share.allocated,
            ))

        if allocation.dust > 0:
            self._call_external(
                "funds_transfer",
                self._funds_transfer.transfer,
                caller, settings.target_token, allocation.dust,
            )
        return report

    # ========== 止盈 ==========

    def _execute_take_profit(
        self, caller: str, settings: DcaSettings, nonces: List[int], now: int
    ) -> BatchReport:
        eligible = self._eligibility_filter.select_for_sell(
            nonces, self._valuation.valuator(settings)
        )

        token_in = settings.target_as_tradeable
        token_out = settings.stable_token
        route = self._route_resolver.resolve(token_in, token_out)
        if not route:
            raise RouteNotFoundError(token_in, token_out)

        if settings.target_is_native:
            self._call_external("wrapper", self._wrapper.wrap, eligible.aggregate_input)

        realized = self._swap_executor.execute(
            route, eligible.aggregate_input, settings.final_slippage_bps
        )
        allocation = self._allocation_engine.allocate(
            eligible.aggregate_input, realized, eligible.contributions
        )

        report = BatchReport(
            cycle=CYCLE_TAKE_PROFIT,
            aggregate_input=eligible.aggregate_input,
            aggregate_output=realized,
            dust=allocation.dust,
            route=route,
        )
        for candidate, share in zip(eligible.candidates, allocation.allocations):
            record = candidate.record
            basis = self._profit_evaluator.profit_basis(record.buys, record.sells)
            fee = self._profit_evaluator.performance_fee(
                share.allocated, basis, settings.profit_fee_bps
            )
            credited = share.allocated - fee
            sold = record.target_balance
            record.record_sell(credited, now)
            self._repository.save(record)

            report.total_fee += fee
            report.executed_nonces.append(candidate.nonce)
            report.events.append(SellExecutedEvent(
                nonce=candidate.nonce,
                target_amount=sold,
                stable_amount=credited,
            ))

        if report.total_fee > 0:
            self._call_external(
                "funds_transfer",
                self._funds_transfer.transfer,
                caller, settings.stable_token, report.total_fee,
            )
        if allocation.dust > 0:
            self._call_external(
                "funds_transfer",
                self._funds_transfer.transfer,
                caller, settings.stable_token, allocation.dust,
            )
        return report

    # ========== 内部 ==========

    def _call_external(self, target: str, func: Callable[..., None], *args) -> None:
        """外部协作方失败统一转换为 ExternalCallFailure"""
        try:
            func(*args)
        except DcaError:
            raise
        except Exception as e:
            raise ExternalCallFailure(target=target, original_error=e) from e

    def _publish(self, events: List[DomainEvent]) -> None:
        if self._event_handler is None:
            return
        for event in events:
            try:
                self._event_handler(event)
            except Exception as e:
                # 事务已提交，事件发布失败只记录
                self._logger.error(f"事件发布失败 {event.event_name}: {e}")
