"""
Clock - 타임락과 TWAP이 참조하는 시간원

운영 환경에서는 SystemClock, 테스트와 시뮬레이션에서는 ManualClock을 주입한다.
"""

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """현재 unix timestamp (초)"""
        ...


class SystemClock:
    """벽시계 기반"""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """수동으로 진행시키는 시계

    사용법:
        clock = ManualClock(1_700_000_000)
        clock.advance(300)
    """

    def __init__(self, start: int = 1_700_000_000):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("시간은 뒤로 갈 수 없습니다")
        self._now += seconds
        return self._now
