"""
Manager Parameters - 타임락이 걸린 리스크/수수료 파라미터

상태는 {active, pending, effective_at} 하나의 값이고, 활성화는
resolve_params(state, now) 순수 함수로만 일어난다. 스토어는 읽을 때
(effective) 이 함수를 적용한다. 백그라운드 타이머는 없다.
"""

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from .clock import Clock
from .constants import BPS
from .errors import InvalidParameters
from .events import EventLog, ParamsProposed, ParamsActivated

if TYPE_CHECKING:
    from .state import VaultState

logger = logging.getLogger(__name__)


class ManagerParameters(BaseModel):
    """볼트 리스크/수수료 파라미터"""
    rebalance_bps: int = Field(..., description="keeper fee / leftover 최대 비율", ge=0, le=BPS)
    fee_recipient: Optional[str] = Field(default=None, description="manager 수수료 수령 주소 (없으면 manager)")
    manager_fee_bps: int = Field(default=0, description="수확한 수수료 중 manager 몫", ge=0, le=BPS)
    slippage_bps: int = Field(..., description="limit 가격 허용 TWAP 편차", ge=0, le=BPS)
    slippage_interval: int = Field(..., description="TWAP 관측 구간 (초)", gt=0)

    class Config:
        frozen = True


@dataclass(frozen=True)
class ParamsState:
    active: ManagerParameters
    pending: Optional[ManagerParameters] = None
    effective_at: Optional[int] = None


def resolve_params(state: ParamsState, now: int) -> ParamsState:
    """now 시점에 유효한 파라미터 상태

    pending이 있고 now >= effective_at 이면 pending이 active가 된다.
    그 전까지는 입력 상태를 그대로 돌려준다.
    """
    if state.pending is not None and state.effective_at is not None and now >= state.effective_at:
        return ParamsState(active=state.pending)
    return state


def build_params(**values) -> ManagerParameters:
    """검증된 ManagerParameters 생성

    Raises:
        InvalidParameters: 범위를 벗어난 값
    """
    try:
        return ManagerParameters(**values)
    except ValidationError as exc:
        raise InvalidParameters(f"invalid manager params: {exc.errors()[0]['loc'][0]}") from exc


class ManagerParamsStore:
    """ManagerParameters 저장소

    사용법:
        store = ManagerParamsStore(state, clock, delay=300, events=log)
        store.propose(manager, rebalance_bps=1000)
        store.effective()   # delay 경과 전에는 이전 값
    """

    def __init__(self, state: "VaultState", clock: Clock, delay: int, events: EventLog):
        if delay < 0:
            raise ValueError("타임락 지연은 음수일 수 없습니다")
        self.state = state
        self.clock = clock
        self.delay = delay
        self.events = events

    def effective(self) -> ManagerParameters:
        """현재 유효한 파라미터 (만료된 pending은 이 시점에 활성화)"""
        current = self.state.params
        resolved = resolve_params(current, self.clock.now())
        if resolved is not current:
            self.state.params = resolved
            active = resolved.active
            logger.info(f"Manager params activated: {active}")
            self.events.emit(ParamsActivated(**active.model_dump()))
        return resolved.active

    def pending(self) -> Optional[ManagerParameters]:
        self.effective()
        return self.state.params.pending

    @property
    def effective_at(self) -> Optional[int]:
        self.effective()
        return self.state.params.effective_at

    def propose(
        self,
        sender: str,
        rebalance_bps: Optional[int] = None,
        fee_recipient: Optional[str] = None,
        manager_fee_bps: Optional[int] = None,
        slippage_bps: Optional[int] = None,
        slippage_interval: Optional[int] = None,
    ) -> ManagerParameters:
        """manager 전용. 새 pending을 기록하고 effective_at = now + delay

        None인 필드는 현재 유효한 값을 유지한다. 아직 활성화되지 않은
        이전 pending은 통째로 대체된다.
        """
        self.state.roles.require_manager(sender)

        base = self.effective()
        changes = {
            "rebalance_bps": rebalance_bps,
            "fee_recipient": fee_recipient,
            "manager_fee_bps": manager_fee_bps,
            "slippage_bps": slippage_bps,
            "slippage_interval": slippage_interval,
        }
        merged = base.model_dump()
        merged.update({k: v for k, v in changes.items() if v is not None})
        proposed = build_params(**merged)

        effective_at = self.clock.now() + self.delay
        if self.state.params.pending is not None:
            logger.info("Superseding unresolved pending manager params")
        self.state.params = ParamsState(active=base, pending=proposed, effective_at=effective_at)

        logger.info(f"Manager params proposed, effective at {effective_at}: {proposed}")
        self.events.emit(ParamsProposed(effective_at=effective_at, **proposed.model_dump()))
        return proposed

    def clear_manager_fee(self) -> ManagerParameters:
        """manager 수수료와 수령인을 즉시 제거하고 pending을 폐기 (renounce 용)"""
        active = self.effective().model_copy(update={"manager_fee_bps": 0, "fee_recipient": None})
        self.state.params = ParamsState(active=active)
        return active
