"""持久化层异常类型定义"""

from typing import List


class CorruptionError(Exception):
    """策略记录损坏异常"""

    def __init__(self, nonce: int, original_error: Exception) -> None:
        self.nonce = nonce
        self.original_error = original_error
        super().__init__(
            f"State record corrupted for strategy: #{nonce}. "
            f"Original error: {original_error}"
        )


class DatabaseConfigError(Exception):
    """数据库配置错误（缺少环境变量）"""

    def __init__(self, missing_vars: List[str]) -> None:
        self.missing_vars = missing_vars
        super().__init__(
            f"Missing required environment variables: {', '.join(missing_vars)}"
        )
