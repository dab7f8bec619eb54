"""
Chain - 등록된 컨트랙트 전체에 대한 트랜잭션 원자성

볼트 자체는 자기 상태만 롤백한다. 토큰 잔고와 풀 상태까지 함께 되돌리려면
컨트랙트들을 Chain에 등록하고 transact()로 호출한다.

사용법:
    chain = Chain(clock)
    token0 = chain.register(ERC20Token("0xt0", "TOKEN"))
    chain.transact(vault.mint, "bob", shares, "bob")
"""

import logging
from typing import Any, Callable, List, Optional, Protocol, TypeVar

from ..clock import ManualClock

logger = logging.getLogger(__name__)


class Snapshottable(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...


C = TypeVar("C", bound=Snapshottable)


class Chain:
    def __init__(self, clock: Optional[ManualClock] = None):
        self.clock = clock or ManualClock()
        self._contracts: List[Snapshottable] = []

    def register(self, contract: C) -> C:
        self._contracts.append(contract)
        return contract

    def advance(self, seconds: int) -> int:
        """블록 시간 진행 (evm_mine 대응)"""
        return self.clock.advance(seconds)

    def snapshot(self) -> List[Any]:
        return [contract.snapshot() for contract in self._contracts]

    def restore(self, snapshots: List[Any]) -> None:
        for contract, snapshot in zip(self._contracts, snapshots):
            contract.restore(snapshot)

    def transact(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """fn 실패 시 모든 등록 컨트랙트를 호출 전 상태로 되돌리고 예외를 다시 올린다"""
        snapshots = self.snapshot()
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            self.restore(snapshots)
            logger.debug(f"Transaction {getattr(fn, '__name__', fn)} reverted: {exc!r}")
            raise
