"""
WashTrader - 수수료를 발생시키는 반복 스왑 도우미

wash_trade(amount, count, ratio): i번째 스왑은 i % ratio > 0 이면 token0 → token1,
아니면 token1 → token0. ratio가 2면 양방향 반반, 3이면 2:1.
"""

import logging
from typing import Tuple

from ..constants import UINT256_MAX
from ..math.tick_math import MAX_SQRT_RATIO, MIN_SQRT_RATIO
from .pool import SimulatedPool

logger = logging.getLogger(__name__)


class WashTrader:
    """풀에 무제한 승인한 트레이더 계정. 토큰은 호출자가 미리 지급해야 한다"""

    def __init__(self, address: str, pool: SimulatedPool):
        self.address = address
        self.pool = pool
        pool.token0.approve(address, pool.address, UINT256_MAX)
        pool.token1.approve(address, pool.address, UINT256_MAX)

    def swap(self, zero_for_one: bool, amount_in: int) -> Tuple[int, int]:
        limit = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
        return self.pool.swap(self.address, self.address, zero_for_one, amount_in, limit)

    def wash_trade(self, amount: int, count: int, ratio: int) -> None:
        if ratio <= 0:
            raise ValueError("ratio는 양수여야 합니다")
        for i in range(count):
            self.swap(i % ratio > 0, amount)
        logger.debug(f"Wash traded {count} x {amount} (ratio {ratio}), pool tick {self.pool.tick}")
