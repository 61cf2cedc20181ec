"""服务装配工厂。

职责:
- 根据 YAML 配置与环境变量创建仓库、协作方、领域服务和应用服务
- 仓库: DCA_DATABASE_PATH 指向 SQLite 文件 (":memory:" 使用内存 SQLite)
- 流动性场所: 使用模拟恒定乘积池 (纸面运行)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from src.dca.application.batch_executor import BatchExecutor
from src.dca.application.setup_saga import SetupCoordinator
from src.dca.application.strategy_service import StrategyService
from src.dca.domain.demand_interface.strategy_repository_interface import (
    IStrategyRepository,
)
from src.dca.domain.domain_service.eligibility_filter import EligibilityFilter
from src.dca.domain.domain_service.execution.aggregate_swap_executor import (
    AggregateSwapExecutor,
)
from src.dca.domain.domain_service.profit_evaluator import ProfitEvaluator
from src.dca.domain.domain_service.routing.route_resolver import RouteResolver
from src.dca.domain.domain_service.valuation_service import ValuationService
from src.dca.domain.event.event_types import DomainEvent
from src.dca.infrastructure.access.in_memory_access_control import (
    InMemoryAccessControl,
)
from src.dca.infrastructure.gateway.simulated_collaborators import (
    InMemoryFundsTransfer,
    SimulatedWrapper,
)
from src.dca.infrastructure.gateway.simulated_venue import SimulatedLiquidityVenue
from src.dca.infrastructure.logging.logging_utils import setup_dca_logger
from src.dca.infrastructure.persistence.exceptions import DatabaseConfigError
from src.dca.infrastructure.persistence.peewee_strategy_repository import (
    PeeweeStrategyRepository,
)
from src.main.utils.config_loader import ConfigLoader

logger = logging.getLogger(__name__)


@dataclass
class ServiceBundle:
    """装配结果"""
    repository: IStrategyRepository
    setup: SetupCoordinator
    access_control: InMemoryAccessControl
    venue: SimulatedLiquidityVenue
    funds_transfer: InMemoryFundsTransfer
    wrapper: SimulatedWrapper
    strategy_service: StrategyService
    batch_executor: BatchExecutor
    events: List[DomainEvent]


def create_repository(database_path: str) -> PeeweeStrategyRepository:
    """创建 SQLite 仓库，路径为空时报配置错误"""
    if not database_path:
        raise DatabaseConfigError(["DCA_DATABASE_PATH"])
    if database_path != ":memory:":
        path = Path(ConfigLoader.resolve_path(database_path))
        path.parent.mkdir(parents=True, exist_ok=True)
        database_path = str(path)
    return PeeweeStrategyRepository.from_path(database_path, logger=logger)


def build_services(
    config: Dict[str, Any],
    repository: Optional[IStrategyRepository] = None,
    database_path: str = ":memory:",
    clock: Optional[Callable[[], int]] = None,
    log_dir: Optional[str] = None,
) -> ServiceBundle:
    """
    装配全部服务

    Args:
        config: ConfigLoader.load_yaml 的结果
        repository: 外部提供的仓库 (测试可传入内存仓库)
        database_path: 未提供仓库时使用的 SQLite 路径
        clock: 毫秒时钟
        log_dir: 批次日志目录 (入口未配置全局日志时使用)
    """
    settings = ConfigLoader.load_dca_settings(config)
    access = ConfigLoader.load_access(config)

    if repository is None:
        repository = create_repository(database_path)

    access_control = InMemoryAccessControl(
        admins=access["admins"],
        bot_address=access["bot_address"],
    )
    setup = SetupCoordinator.preconfigured(settings, access_control)

    venue = SimulatedLiquidityVenue()
    for pool in ConfigLoader.load_venue_pools(config):
        venue.add_pool(**pool)

    funds_transfer = InMemoryFundsTransfer()
    wrapper = SimulatedWrapper()
    events: List[DomainEvent] = []

    profit_evaluator = ProfitEvaluator()
    route_resolver = RouteResolver(
        venue,
        wrapped_native_token=settings.wrapped_native_token,
        stable_token=settings.stable_token,
    )
    swap_executor = AggregateSwapExecutor(venue)
    eligibility_filter = EligibilityFilter(repository, profit_evaluator)

    strategy_service = StrategyService(
        repository=repository,
        setup=setup,
        funds_transfer=funds_transfer,
        valuation=ValuationService(route_resolver, swap_executor),
        profit_evaluator=profit_evaluator,
        event_handler=events.append,
    )
    batch_executor = BatchExecutor(
        repository=repository,
        setup=setup,
        access_control=access_control,
        eligibility_filter=eligibility_filter,
        route_resolver=route_resolver,
        swap_executor=swap_executor,
        wrapper=wrapper,
        funds_transfer=funds_transfer,
        profit_evaluator=profit_evaluator,
        clock=clock,
        event_handler=events.append,
        logger=setup_dca_logger("BatchExecutor", "batch/batch_executor.log", log_dir),
    )

    logger.info(
        f"服务装配完成: target={settings.target_token}, "
        f"pools={len(ConfigLoader.load_venue_pools(config))}"
    )
    return ServiceBundle(
        repository=repository,
        setup=setup,
        access_control=access_control,
        venue=venue,
        funds_transfer=funds_transfer,
        wrapper=wrapper,
        strategy_service=strategy_service,
        batch_executor=batch_executor,
        events=events,
    )
