"""策略记录 Peewee 模型定义。

每个 nonce 一行；关闭后保留墓碑行 (is_active = False)，
保证 nonce 不会被再次分配。
"""

from peewee import (
    BooleanField,
    CharField,
    DateTimeField,
    IntegerField,
    Model,
    TextField,
)


class StrategyRecordModel(Model):
    """策略记录 Peewee 模型"""

    nonce = IntegerField(primary_key=True)
    owner = CharField(max_length=128, index=True)
    snapshot_json = TextField()
    schema_version = IntegerField(default=1)
    is_active = BooleanField(default=True, index=True)
    updated_at = DateTimeField(index=True)

    class Meta:
        table_name = "dca_strategy_record"
