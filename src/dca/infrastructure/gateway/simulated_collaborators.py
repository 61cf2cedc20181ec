"""
模拟外部协作方

- SimulatedWrapper: 原生资产包装 / 解包
- InMemoryFundsTransfer: 资金划转记录
- SimulatedTokenIssuer: 归属凭证发行请求记录
"""
from dataclasses import dataclass
from logging import Logger, getLogger
from typing import Dict, List, Optional, Tuple

from src.dca.domain.demand_interface.collaborator_interface import (
    IFundsTransfer,
    ITokenIssuer,
    IWrapperGateway,
)


class SimulatedWrapper(IWrapperGateway):
    """记录包装 / 解包总量，fail=True 时模拟外部失败"""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.wrapped_total: int = 0
        self.unwrapped_total: int = 0

    def wrap(self, amount: int) -> None:
        if self.fail:
            raise RuntimeError("wrap 调用失败")
        self.wrapped_total += amount

    def unwrap(self, amount: int) -> None:
        if self.fail:
            raise RuntimeError("unwrap 调用失败")
        self.unwrapped_total += amount


@dataclass(frozen=True)
class Payout:
    """一笔划转"""
    recipient: str
    token: str
    amount: int


class InMemoryFundsTransfer(IFundsTransfer):
    """划转记录 + 按 (收款方, 资产) 累计的余额"""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self.payouts: List[Payout] = []
        self._balances: Dict[Tuple[str, str], int] = {}
        self._logger = logger or getLogger(__name__)

    def transfer(self, recipient: str, token: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError(f"划转金额必须为正数: {amount}")
        self.payouts.append(Payout(recipient=recipient, token=token, amount=amount))
        key = (recipient, token)
        self._balances[key] = self._balances.get(key, 0) + amount
        self._logger.debug(f"划转: {recipient} <- {token} x{amount}")

    def balance_of(self, recipient: str, token: str) -> int:
        return self._balances.get((recipient, token), 0)


class SimulatedTokenIssuer(ITokenIssuer):
    """只记录发行请求，结果由测试或运维调用 SetupCoordinator 回填"""

    def __init__(self) -> None:
        self.requests: List[Tuple[str, str, int]] = []

    def request_issuance(self, ticker: str, display_name: str, cost: int) -> None:
        self.requests.append((ticker, display_name, cost))
