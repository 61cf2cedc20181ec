"""策略记录仓库 - 基于 Peewee (默认 SQLite) 的 JSON 存储。

职责:
- 每个 nonce 一行，snapshot_json 保存完整 StrategyRecord
- 读取时区分 "无记录"(None) 和 "记录损坏"(CorruptionError)
- 关闭策略时保留墓碑行，nonce 不复用
- transaction() 直接使用 database.atomic()
"""

from datetime import datetime
from logging import Logger
from typing import ContextManager, List, Optional

from peewee import Database, SqliteDatabase, fn

from src.dca.domain.demand_interface.strategy_repository_interface import (
    IStrategyRepository,
)
from src.dca.domain.entity.strategy_record import StrategyRecord
from src.dca.infrastructure.persistence.exceptions import CorruptionError
from src.dca.infrastructure.persistence.json_serializer import (
    CURRENT_SCHEMA_VERSION,
    JsonSerializer,
)
from src.dca.infrastructure.persistence.strategy_record_model import (
    StrategyRecordModel,
)


class PeeweeStrategyRepository(IStrategyRepository):
    """策略记录仓库 - 基于 Peewee JSON 存储。"""

    def __init__(
        self,
        database: Database,
        serializer: Optional[JsonSerializer] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self._db = database
        self._serializer = serializer or JsonSerializer()
        self._logger = logger

        StrategyRecordModel._meta.database = self._db
        self._db.connect(reuse_if_open=True)
        self._db.create_tables([StrategyRecordModel], safe=True)

    @classmethod
    def from_path(cls, path: str, logger: Optional[Logger] = None) -> "PeeweeStrategyRepository":
        """以 SQLite 文件 (或 ":memory:") 创建仓库"""
        database = SqliteDatabase(path, pragmas={"journal_mode": "wal", "foreign_keys": 1})
        return cls(database, logger=logger)

    def _active_row(self, nonce: int) -> Optional[StrategyRecordModel]:
        return (
            StrategyRecordModel.select()
            .where(
                (StrategyRecordModel.nonce == nonce)
                & (StrategyRecordModel.is_active == True)  # noqa: E712
            )
            .first()
        )

    def get(self, nonce: int) -> Optional[StrategyRecord]:
        """读取策略记录。

        - 无记录或已关闭 → None
        - 记录存在但 JSON 反序列化失败 → 抛出 CorruptionError
        """
        row = self._active_row(nonce)
        if row is None:
            return None

        try:
            return self._serializer.deserialize(row.snapshot_json)
        except Exception as e:
            raise CorruptionError(nonce=nonce, original_error=e) from e

    def save(self, record: StrategyRecord) -> None:
        updated = (
            StrategyRecordModel.update(
                snapshot_json=self._serializer.serialize(record),
                schema_version=CURRENT_SCHEMA_VERSION,
                updated_at=datetime.now(),
            )
            .where(
                (StrategyRecordModel.nonce == record.nonce)
                & (StrategyRecordModel.is_active == True)  # noqa: E712
            )
            .execute()
        )
        if updated == 0:
            raise KeyError(f"策略不存在: #{record.nonce}")

    def create(self, owner: str, record: StrategyRecord) -> int:
        last_nonce = StrategyRecordModel.select(fn.MAX(StrategyRecordModel.nonce)).scalar()
        nonce = (last_nonce or 0) + 1
        record.nonce = nonce

        StrategyRecordModel.create(
            nonce=nonce,
            owner=owner,
            snapshot_json=self._serializer.serialize(record),
            schema_version=CURRENT_SCHEMA_VERSION,
            is_active=True,
            updated_at=datetime.now(),
        )

        if self._logger:
            self._logger.info(f"策略记录已创建: #{nonce} owner={owner}")
        return nonce

    def delete(self, nonce: int) -> None:
        (
            StrategyRecordModel.update(
                snapshot_json="{}",
                is_active=False,
                updated_at=datetime.now(),
            )
            .where(StrategyRecordModel.nonce == nonce)
            .execute()
        )
        if self._logger:
            self._logger.info(f"策略记录已关闭: #{nonce}")

    def owner_of(self, nonce: int) -> Optional[str]:
        row = self._active_row(nonce)
        return row.owner if row is not None else None

    def transfer_ownership(self, nonce: int, new_owner: str) -> None:
        updated = (
            StrategyRecordModel.update(owner=new_owner, updated_at=datetime.now())
            .where(
                (StrategyRecordModel.nonce == nonce)
                & (StrategyRecordModel.is_active == True)  # noqa: E712
            )
            .execute()
        )
        if updated == 0:
            raise KeyError(f"策略不存在: #{nonce}")

    def list_nonces(self) -> List[int]:
        query = (
            StrategyRecordModel.select(StrategyRecordModel.nonce)
            .where(StrategyRecordModel.is_active == True)  # noqa: E712
            .order_by(StrategyRecordModel.nonce)
        )
        return [row.nonce for row in query]

    def transaction(self) -> ContextManager[None]:
        return self._db.atomic()

    def close(self) -> None:
        if not self._db.is_closed():
            self._db.close()
