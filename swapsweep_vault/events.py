"""
볼트 이벤트

연산 도중 발생한 이벤트는 버퍼에 쌓였다가 연산이 커밋될 때만 기록/전파된다.
실패한 연산의 이벤트는 버려진다.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Callable, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    def to_dict(self) -> dict:
        data = asdict(self)
        data["event"] = type(self).__name__
        return data


@dataclass(frozen=True)
class Mint(Event):
    receiver: str
    mint_amount: int
    amount0_in: int
    amount1_in: int
    liquidity_minted: int


@dataclass(frozen=True)
class Burn(Event):
    receiver: str
    burn_amount: int
    amount0_out: int
    amount1_out: int
    liquidity_burned: int


@dataclass(frozen=True)
class FeesEarned(Event):
    fee0: int
    fee1: int


@dataclass(frozen=True)
class Reinvest(Event):
    keeper: str
    fee_token: str
    fee_amount: int
    liquidity_before: int
    liquidity_after: int


@dataclass(frozen=True)
class Recenter(Event):
    lower_tick_before: int
    upper_tick_before: int
    lower_tick: int
    upper_tick: int
    liquidity_after: int


@dataclass(frozen=True)
class ParamsProposed(Event):
    rebalance_bps: int
    fee_recipient: Optional[str]
    manager_fee_bps: int
    slippage_bps: int
    slippage_interval: int
    effective_at: int


@dataclass(frozen=True)
class ParamsActivated(Event):
    rebalance_bps: int
    fee_recipient: Optional[str]
    manager_fee_bps: int
    slippage_bps: int
    slippage_interval: int


@dataclass(frozen=True)
class ManagerBalanceWithdrawn(Event):
    recipient: str
    amount0: int
    amount1: int


@dataclass(frozen=True)
class OwnershipTransferStarted(Event):
    previous_manager: Optional[str]
    new_manager: str


@dataclass(frozen=True)
class OwnershipTransferred(Event):
    previous_manager: Optional[str]
    new_manager: Optional[str]


E = TypeVar("E", bound=Event)


class EventLog:
    """커밋된 이벤트 기록과 구독자 전파

    begin() 이후 emit된 이벤트는 commit() 때 기록되고 rollback() 때 버려진다.
    트랜잭션 밖의 emit(예: 읽기 중 파라미터 활성화)은 즉시 기록된다.
    """

    def __init__(self):
        self.records: List[Event] = []
        self._pending: Optional[List[Event]] = None
        self._subscribers: List[Callable[[Event], None]] = []

    def subscribe(self, handler: Callable[[Event], None]) -> None:
        self._subscribers.append(handler)

    def emit(self, event: Event) -> None:
        if self._pending is not None:
            self._pending.append(event)
        else:
            self._publish([event])

    def begin(self) -> None:
        self._pending = []

    def commit(self) -> None:
        pending, self._pending = self._pending or [], None
        self._publish(pending)

    def rollback(self) -> None:
        if self._pending:
            logger.debug(f"Discarding {len(self._pending)} event(s) from failed operation")
        self._pending = None

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [e for e in self.records if isinstance(e, event_type)]

    def _publish(self, events: List[Event]) -> None:
        for event in events:
            self.records.append(event)
            logger.debug(f"Event {type(event).__name__}: {event}")
            for handler in self._subscribers:
                handler(event)
