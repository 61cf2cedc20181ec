"""
EligibilityFilter 领域服务

从调用方给出的 nonce 列表中筛选出可执行买入 / 止盈的策略，
并累计各自的贡献。不符合条件的策略静默跳过。
"""
from logging import Logger, getLogger
from typing import Callable, Iterable, List, Optional, Set

from ..demand_interface.strategy_repository_interface import IStrategyRepository
from ..entity.strategy_record import StrategyRecord
from ..exceptions import NoEligibleCandidatesError
from ..value_object.allocation import BatchCandidate, EligibleSet
from .profit_evaluator import ProfitEvaluator


class EligibilityFilter:
    """
    资格筛选器

    买入条件:
        stable_balance >= amount_per_cycle
        now >= last_executed_at + cycle_period
        amount_per_cycle * cycle_period > 0
    止盈条件:
        target_balance > 0
        amount_per_cycle * cycle_period > 0
        is_in_profit(以稳定币计的持仓价值, take_profit_bps, profit_basis)

    同一请求中重复的 nonce 只取第一次出现。筛选结果为空时抛出
    NoEligibleCandidatesError，这是合法请求唯一的 "空结果" 失败。
    """

    def __init__(
        self,
        repository: IStrategyRepository,
        profit_evaluator: ProfitEvaluator,
        logger: Optional[Logger] = None,
    ) -> None:
        self._repository = repository
        self._profit_evaluator = profit_evaluator
        self._logger = logger or getLogger(__name__)

    # ========== 谓词 ==========

    @staticmethod
    def is_buy_eligible(record: StrategyRecord, now: int) -> bool:
        return (
            record.stable_balance >= record.amount_per_cycle
            and now >= record.next_execution_at
            and not record.is_inert
        )

    def is_sell_eligible(self, record: StrategyRecord, value_in_stable: int) -> bool:
        if record.target_balance <= 0 or record.is_inert:
            return False
        basis = self._profit_evaluator.profit_basis(record.buys, record.sells)
        return self._profit_evaluator.is_in_profit(
            value_in_stable, record.take_profit_bps, basis
        )

    # ========== 批量筛选 ==========

    def select_for_buy(self, nonces: Iterable[int], now: int) -> EligibleSet:
        """筛选买入候选，贡献为 amount_per_cycle"""
        result = EligibleSet()
        for record in self._load_unique(nonces):
            if not self.is_buy_eligible(record, now):
                self._logger.debug(f"买入跳过: {record!r}")
                continue
            result.candidates.append(BatchCandidate(
                nonce=record.nonce, record=record, contribution=record.amount_per_cycle,
            ))
            result.aggregate_input += record.amount_per_cycle

        if result.is_empty():
            raise NoEligibleCandidatesError()
        return result

    def select_for_sell(
        self,
        nonces: Iterable[int],
        valuator: Callable[[int], int],
    ) -> EligibleSet:
        """
        筛选止盈候选，贡献为 target_balance

        Args:
            nonces: 候选 nonce
            valuator: 目标资产数量 -> 以稳定币计的价值
        """
        result = EligibleSet()
        for record in self._load_unique(nonces):
            value = valuator(record.target_balance) if record.target_balance > 0 else 0
            if not self.is_sell_eligible(record, value):
                self._logger.debug(f"止盈跳过: {record!r}, value={value}")
                continue
            result.candidates.append(BatchCandidate(
                nonce=record.nonce, record=record, contribution=record.target_balance,
            ))
            result.aggregate_input += record.target_balance

        if result.is_empty():
            raise NoEligibleCandidatesError()
        return result

    def _load_unique(self, nonces: Iterable[int]) -> List[StrategyRecord]:
        seen: Set[int] = set()
        records: List[StrategyRecord] = []
        for nonce in nonces:
            if nonce in seen:
                continue
            seen.add(nonce)
            record = self._repository.get(nonce)
            if record is None:
                self._logger.debug(f"策略不存在，跳过: #{nonce}")
                continue
            records.append(record)
        return records
