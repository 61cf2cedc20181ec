"""内存策略记录存储。

职责:
- 以 nonce 为键保存 StrategyRecord，读取返回副本
- 单独维护归属映射 (nonce -> owner)
- nonce 单调递增，关闭后不复用
- transaction() 进入时做快照，块内抛出异常时整体恢复
"""

import copy
from contextlib import contextmanager
from logging import Logger, getLogger
from typing import Dict, Iterator, List, Optional

from src.dca.domain.demand_interface.strategy_repository_interface import (
    IStrategyRepository,
)
from src.dca.domain.entity.strategy_record import StrategyRecord


class InMemoryStrategyRepository(IStrategyRepository):
    """内存策略记录存储"""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._records: Dict[int, StrategyRecord] = {}
        self._owners: Dict[int, str] = {}
        self._last_nonce: int = 0
        self._tx_depth: int = 0
        self._logger = logger or getLogger(__name__)

    def get(self, nonce: int) -> Optional[StrategyRecord]:
        record = self._records.get(nonce)
        if record is None:
            return None
        return copy.deepcopy(record)

    def save(self, record: StrategyRecord) -> None:
        if record.nonce not in self._records:
            raise KeyError(f"策略不存在: #{record.nonce}")
        self._records[record.nonce] = copy.deepcopy(record)

    def create(self, owner: str, record: StrategyRecord) -> int:
        self._last_nonce += 1
        nonce = self._last_nonce
        record.nonce = nonce
        self._records[nonce] = copy.deepcopy(record)
        self._owners[nonce] = owner
        return nonce

    def delete(self, nonce: int) -> None:
        self._records.pop(nonce, None)
        self._owners.pop(nonce, None)

    def owner_of(self, nonce: int) -> Optional[str]:
        return self._owners.get(nonce)

    def transfer_ownership(self, nonce: int, new_owner: str) -> None:
        """归属转移 (记录本身不变)"""
        if nonce not in self._records:
            raise KeyError(f"策略不存在: #{nonce}")
        self._owners[nonce] = new_owner

    def list_nonces(self) -> List[int]:
        return sorted(self._records)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._tx_depth > 0:
            # 嵌套事务并入最外层
            self._tx_depth += 1
            try:
                yield
            finally:
                self._tx_depth -= 1
            return

        snapshot = (
            copy.deepcopy(self._records),
            dict(self._owners),
            self._last_nonce,
        )
        self._tx_depth = 1
        try:
            yield
        except BaseException:
            self._records, self._owners, self._last_nonce = snapshot
            self._logger.info("事务回滚: 策略记录已恢复到事务开始前")
            raise
        finally:
            self._tx_depth = 0
