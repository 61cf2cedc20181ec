"""
领域异常

每一类失败都对应一个可区分的 reason 字符串，调用方据此判断失败原因。
所有异常只终止当前调用，事务回滚，不会留下部分状态。
"""

# ========== reason 字符串常量 ==========
ERROR_PAUSED = "Paused"
ERROR_NOT_PAUSED = "Not paused"

ERROR_NOT_ADMIN = "Only admin allowed"
ERROR_NOT_BOT = "Only bot allowed"
ERROR_NOT_OWNER = "Only strategy owner allowed"

ERROR_STRATEGY_NOT_SET = "DCA strategy not set"
ERROR_STRATEGY_ALREADY_SET = "DCA strategy already set"
ERROR_SETUP_PENDING = "Setup already pending"
ERROR_NO_PENDING_SETUP = "No pending setup"
ERROR_BATCH_RUNNING = "Batch already running"

ERROR_INVALID_FREQUENCY = "Invalid DCA frequency"
ERROR_INVALID_AMOUNT_PER_SWAP = "Invalid amount per swap"
ERROR_INVALID_STRATEGY_TOKEN = "Invalid strategy token"
ERROR_INVALID_USDC_TOKEN = "Invalid USDC token"
ERROR_INVALID_USDC_AMOUNT = "Invalid USDC amount"
ERROR_INVALID_DCA_TOKEN_AMOUNT = "Invalid DCA token amount"
ERROR_TICKER_TOO_LONG = "Strategy token ticker too long"
ERROR_INSUFFICIENT_BALANCE = "Insufficient balance"
ERROR_INVALID_FEE_PERCENTAGE = "Invalid fee percentage"
ERROR_INVALID_SLIPPAGE = "Invalid slippage percentage"
ERROR_INVALID_TAKE_PROFIT = "Invalid take profit percentage"
ERROR_INVALID_MIN_AMOUNT = "Invalid minimum amount per swap"

ERROR_NO_ELIGIBLE_STRATEGIES = "No valid strategies to execute"
ERROR_ROUTE_NOT_FOUND = "At least one pair contract is required for a swap operation."


class DcaError(Exception):
    """DCA 引擎异常基类"""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class AuthorizationError(DcaError):
    """调用方缺少所需角色"""


class ConfigurationError(DcaError):
    """系统尚未配置 / 重复配置 / 重入"""


class PausedError(ConfigurationError):
    """暂停状态不满足"""


class ValidationError(DcaError):
    """输入非法：金额、频率、归属凭证、余额不足等"""


class NoEligibleCandidatesError(DcaError):
    """批量请求中没有任何符合条件的策略"""

    def __init__(self, reason: str = ERROR_NO_ELIGIBLE_STRATEGIES) -> None:
        super().__init__(reason)


class RouteNotFoundError(DcaError):
    """找不到连接两个资产的兑换路径"""

    def __init__(self, token_in: str = "", token_out: str = "") -> None:
        self.token_in = token_in
        self.token_out = token_out
        super().__init__(ERROR_ROUTE_NOT_FOUND)


class ExternalCallFailure(DcaError):
    """外部调用 (流动性场所 / 包装服务 / 转账) 失败"""

    def __init__(self, target: str, original_error: Exception) -> None:
        self.target = target
        self.original_error = original_error
        super().__init__(f"External call to {target} failed: {original_error}")
