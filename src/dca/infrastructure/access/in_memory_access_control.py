"""
内存权限控制

管理员集合、执行机器人地址、暂停标记。
管理员同时具备执行批次的权限 (作为机器人失联时的兜底)。
"""
from logging import Logger, getLogger
from typing import Iterable, Optional, Set

from src.dca.domain.demand_interface.collaborator_interface import IAccessControl
from src.dca.domain.exceptions import (
    ERROR_NOT_ADMIN,
    ERROR_NOT_PAUSED,
    ERROR_PAUSED,
    AuthorizationError,
    PausedError,
)


class InMemoryAccessControl(IAccessControl):
    """内存权限控制"""

    def __init__(
        self,
        admins: Iterable[str] = (),
        bot_address: str = "",
        logger: Optional[Logger] = None,
    ) -> None:
        self._admins: Set[str] = set(admins)
        self._bot_address = bot_address
        self._paused = False
        self._logger = logger or getLogger(__name__)

    # ========== 查询 ==========

    def is_admin(self, address: str) -> bool:
        return address in self._admins

    def is_bot(self, address: str) -> bool:
        return bool(address) and (address == self._bot_address or address in self._admins)

    def is_paused(self) -> bool:
        return self._paused

    @property
    def admins(self) -> Set[str]:
        return set(self._admins)

    # ========== 管理 ==========

    def _require_admin(self, caller: str) -> None:
        if not self.is_admin(caller):
            raise AuthorizationError(ERROR_NOT_ADMIN)

    def add_admins(self, caller: str, addresses: Iterable[str]) -> None:
        self._require_admin(caller)
        self._admins.update(addresses)

    def remove_admins(self, caller: str, addresses: Iterable[str]) -> None:
        self._require_admin(caller)
        self._admins.difference_update(addresses)

    def set_bot_address(self, caller: str, address: str) -> None:
        self._require_admin(caller)
        self._bot_address = address
        self._logger.info(f"执行机器人地址已设置: {address}")

    def pause(self, caller: str) -> None:
        self._require_admin(caller)
        if self._paused:
            raise PausedError(ERROR_PAUSED)
        self._paused = True
        self._logger.info("系统已暂停")

    def unpause(self, caller: str) -> None:
        self._require_admin(caller)
        if not self._paused:
            raise PausedError(ERROR_NOT_PAUSED)
        self._paused = False
        self._logger.info("系统已恢复")
