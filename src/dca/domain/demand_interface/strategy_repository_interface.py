from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional

from ..entity.strategy_record import StrategyRecord


class IStrategyRepository(ABC):
    """
    策略记录存储接口

    以 nonce 为键的独占、权威键值存储；归属 (谁持有该策略) 单独维护，
    不混入记录字段。所有写操作都应在 transaction() 内执行。
    """

    @abstractmethod
    def get(self, nonce: int) -> Optional[StrategyRecord]:
        """读取记录副本，不存在或已关闭时返回 None"""
        pass

    @abstractmethod
    def save(self, record: StrategyRecord) -> None:
        """写回已存在的记录"""
        pass

    @abstractmethod
    def create(self, owner: str, record: StrategyRecord) -> int:
        """
        新建记录并分配 nonce

        Returns:
            新分配的 nonce (单调递增，永不复用)
        """
        pass

    @abstractmethod
    def delete(self, nonce: int) -> None:
        """关闭策略，丢弃账本"""
        pass

    @abstractmethod
    def owner_of(self, nonce: int) -> Optional[str]:
        """当前持有者，不存在时返回 None"""
        pass

    @abstractmethod
    def transfer_ownership(self, nonce: int, new_owner: str) -> None:
        """变更持有者 (记录本身不变)"""
        pass

    @abstractmethod
    def list_nonces(self) -> List[int]:
        """所有存活策略的 nonce (升序)"""
        pass

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """事务边界: 块内抛出异常时回滚全部写入"""
        pass
