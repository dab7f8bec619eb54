"""
RoleConfig - manager / keeper 권한

불변 값 객체. 권한 검사와 소유권 전이는 모두 순수 함수이며,
전이는 새 RoleConfig를 돌려준다.
"""

from dataclasses import dataclass, replace
from typing import Optional

from .errors import Unauthorized, InvalidAddress

MANAGER_REASON = "Ownable: caller is not the manager"
KEEPER_REASON = "Gelatofied: Only gelato"
PENDING_MANAGER_REASON = "Ownable: caller is not the pending manager"


@dataclass(frozen=True)
class RoleConfig:
    """볼트의 두 특권 주체

    - manager: 거버넌스. 2단계 소유권 이전(nominate → accept)과 renounce 지원
    - keeper: 자동화 주체. reinvest / recenter만 호출 가능, 이전 지연 없음
    """
    manager: Optional[str]
    keeper: str
    pending_manager: Optional[str] = None

    def is_manager(self, who: str) -> bool:
        return self.manager is not None and who == self.manager

    def is_keeper(self, who: str) -> bool:
        return who == self.keeper

    def require_manager(self, sender: str) -> None:
        if not self.is_manager(sender):
            raise Unauthorized(MANAGER_REASON)

    def require_keeper(self, sender: str) -> None:
        if not self.is_keeper(sender):
            raise Unauthorized(KEEPER_REASON)

    def nominate(self, sender: str, new_manager: str) -> "RoleConfig":
        """1단계: 새 manager 후보 지정 (기존 후보는 덮어씀)"""
        self.require_manager(sender)
        if not new_manager:
            raise InvalidAddress("Ownable: new manager is the zero address")
        return replace(self, pending_manager=new_manager)

    def accept(self, sender: str) -> "RoleConfig":
        """2단계: 후보가 직접 수락해야 이전이 완료된다"""
        if self.pending_manager is None or sender != self.pending_manager:
            raise Unauthorized(PENDING_MANAGER_REASON)
        return replace(self, manager=sender, pending_manager=None)

    def renounce(self, sender: str) -> "RoleConfig":
        self.require_manager(sender)
        return replace(self, manager=None, pending_manager=None)
