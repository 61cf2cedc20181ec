"""
外部协作方接口

包装服务、资金转账、权限判断、凭证发行。
"""
from abc import ABC, abstractmethod


class IWrapperGateway(ABC):
    """原生资产与其包装形式之间的转换"""

    @abstractmethod
    def wrap(self, amount: int) -> None:
        pass

    @abstractmethod
    def unwrap(self, amount: int) -> None:
        pass


class IFundsTransfer(ABC):
    """资金划转 (dust / 业绩费 / 提现)"""

    @abstractmethod
    def transfer(self, recipient: str, token: str, amount: int) -> None:
        pass


class IAccessControl(ABC):
    """管理员 / 执行机器人 / 暂停状态"""

    @abstractmethod
    def is_admin(self, address: str) -> bool:
        pass

    @abstractmethod
    def is_bot(self, address: str) -> bool:
        """执行机器人或任意管理员均视为可执行批次"""
        pass

    @abstractmethod
    def is_paused(self) -> bool:
        pass


class ITokenIssuer(ABC):
    """策略归属凭证发行 (异步，结果通过 SetupCoordinator 回调)"""

    @abstractmethod
    def request_issuance(self, ticker: str, display_name: str, cost: int) -> None:
        pass
