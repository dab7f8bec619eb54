"""
VolatilityOracle - 수수료 기반 변동성 관측

풀의 fee growth 스냅샷을 쌓아 두었다가, recenter 시점에 관측 구간 동안
활성 유동성이 번 수수료와 현재 틱 간격 하나의 TVL을 돌려준다.

    fee_revenue = L × Δf_g / 2^128        (token0 분은 현재 가격으로 token1 환산)
    tick_tvl    = [tick, tick + spacing] 구간의 L 가치 (token1 환산)
    window      = now - 가장 오래된 스냅샷 시각

볼트는 σ_day = 2 × sqrt(γ × fee_revenue_per_day / tick_tvl)로 레인지 폭을 정한다.
"""

import copy
import logging
from typing import List, NamedTuple

from ..clock import Clock
from ..constants import Q128, Q192
from ..interfaces import PoolLike, VolatilityReading
from ..math.fee_math import fee_growth_delta
from ..math.full_math import mul_div
from ..math.liquidity_math import get_amounts_for_liquidity
from ..math.tick_math import floor_tick_to_spacing, get_sqrt_ratio_at_tick

logger = logging.getLogger(__name__)


class FeeGrowthSnapshot(NamedTuple):
    timestamp: int
    fee_growth_global_0_x128: int
    fee_growth_global_1_x128: int


class VolatilityOracle:
    """풀별 fee growth 스냅샷 오라클

    Args:
        clock: 시간원
        max_window: 이 시간(초)보다 오래된 스냅샷은 update 때 버린다
    """

    def __init__(self, clock: Clock, max_window: int = 86_400):
        self.clock = clock
        self.max_window = max_window
        self._snapshots: dict = {}

    def update(self, pool: PoolLike) -> FeeGrowthSnapshot:
        now = self.clock.now()
        snapshot = FeeGrowthSnapshot(now, pool.fee_growth_global_0_x128, pool.fee_growth_global_1_x128)
        history: List[FeeGrowthSnapshot] = self._snapshots.setdefault(pool.address, [])
        history.append(snapshot)
        # 최신 스냅샷 하나는 항상 남긴다
        while len(history) > 1 and now - history[0].timestamp > self.max_window:
            history.pop(0)
        return snapshot

    def estimate(self, pool: PoolLike) -> VolatilityReading:
        slot0 = pool.slot0()
        history = self._snapshots.get(pool.address, [])
        tick_tvl = self.tick_tvl(pool)
        if not history:
            return VolatilityReading(slot0.tick, 0, tick_tvl, 0)

        oldest = history[0]
        window = self.clock.now() - oldest.timestamp
        liquidity = pool.liquidity
        fees0 = liquidity * fee_growth_delta(pool.fee_growth_global_0_x128, oldest.fee_growth_global_0_x128) // Q128
        fees1 = liquidity * fee_growth_delta(pool.fee_growth_global_1_x128, oldest.fee_growth_global_1_x128) // Q128
        fee_revenue = fees1 + mul_div(fees0, slot0.sqrt_price_x96 ** 2, Q192)

        reading = VolatilityReading(slot0.tick, fee_revenue, tick_tvl, window)
        logger.debug(f"Oracle reading for {pool.address}: {reading}")
        return reading

    @staticmethod
    def tick_tvl(pool: PoolLike) -> int:
        """현재 틱 간격 하나에 걸린 활성 유동성 가치 (token1 환산)"""
        slot0 = pool.slot0()
        if pool.liquidity == 0:
            return 0
        lower = floor_tick_to_spacing(slot0.tick, pool.tick_spacing)
        amount0, amount1 = get_amounts_for_liquidity(
            slot0.sqrt_price_x96,
            get_sqrt_ratio_at_tick(lower),
            get_sqrt_ratio_at_tick(lower + pool.tick_spacing),
            pool.liquidity,
        )
        return amount1 + mul_div(amount0, slot0.sqrt_price_x96 ** 2, Q192)

    def snapshot(self):
        return copy.deepcopy(self._snapshots)

    def restore(self, snapshot) -> None:
        self._snapshots = copy.deepcopy(snapshot)
