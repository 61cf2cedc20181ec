"""StrategyRecord JSON 序列化。

金额以整数写入 JSON (Python json 支持任意精度整数)。
每个快照都带 schema_version，便于之后迁移。
"""

import json
from typing import Any, Dict

from src.dca.domain.entity.strategy_record import StrategyRecord

CURRENT_SCHEMA_VERSION = 1


class JsonSerializer:
    """策略记录 <-> JSON 字符串"""

    def serialize(self, record: StrategyRecord) -> str:
        payload: Dict[str, Any] = record.to_dict()
        payload["schema_version"] = CURRENT_SCHEMA_VERSION
        return json.dumps(payload, ensure_ascii=False, sort_keys=True)

    def deserialize(self, json_str: str) -> StrategyRecord:
        """解析失败时直接抛出原始异常，由仓库包装为 CorruptionError"""
        payload = json.loads(json_str)
        if not isinstance(payload, dict):
            raise TypeError(f"快照必须是 JSON 对象，实际为 {type(payload).__name__}")
        version = payload.pop("schema_version", None)
        if version != CURRENT_SCHEMA_VERSION:
            raise ValueError(f"不支持的 schema_version: {version}")
        return StrategyRecord.from_dict(payload)
