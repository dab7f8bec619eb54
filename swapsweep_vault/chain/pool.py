"""
SimulatedPool - Uniswap V3 풀 참조 구현

볼트가 사용하는 풀 기능을 정수 연산으로 재현한다:
- 초기화된 틱 목록을 따라가며 틱을 교차하는 exact-input 스왑
- fee growth global / outside 누적, 포지션별 tokens owed
- mint(콜백으로 지불), burn(0이면 poke), collect
- tick cumulative 관측 기록과 observe (TWAP)

References:
- Uniswap V3 Core: contracts/UniswapV3Pool.sol
- 백서 Section 6.2 ~ 6.4

단순화:
- 관측 기록은 카디널리티 제한이 없다 (타임스탬프당 하나)
- 스왑 지불은 콜백 대신 transfer_from (풀을 spender로 승인해야 함)
- 프로토콜 수수료 없음
"""

import bisect
import copy
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..clock import Clock
from ..constants import MAX_TICK, MIN_TICK, Q128, TICK_SPACINGS
from ..interfaces import ObservationTooOld, Slot0
from ..math.fee_math import fee_growth_inside, tokens_owed_delta
from ..math.full_math import mul_div
from ..math.liquidity_math import get_amounts_for_liquidity
from ..math.swap_math import compute_swap_step
from ..math.tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    check_ticks,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from .token import ERC20Token

logger = logging.getLogger(__name__)

_UINT256_MOD = 2 ** 256


class PoolError(Exception):
    """풀 연산 실패 (Uniswap revert 코드를 메시지로 사용)"""


@dataclass
class TickInfo:
    liquidity_gross: int = 0
    liquidity_net: int = 0
    fee_growth_outside_0_x128: int = 0
    fee_growth_outside_1_x128: int = 0


@dataclass
class PositionInfo:
    liquidity: int = 0
    fee_growth_inside_0_last_x128: int = 0
    fee_growth_inside_1_last_x128: int = 0
    tokens_owed_0: int = 0
    tokens_owed_1: int = 0


@dataclass
class Observation:
    timestamp: int
    tick_cumulative: int


class SimulatedPool:
    """Uniswap V3 풀 시뮬레이터

    Args:
        address: 풀 주소 (토큰 잔고 보유자)
        token0, token1: 풀 토큰 (token0 < token1 정렬은 호출자 책임)
        fee: 수수료 (1e6 분모, 예: 3000 = 0.30%)
        clock: 관측 기록 시간원
        tick_spacing: 생략하면 수수료 티어 기본값
    """

    def __init__(
        self,
        address: str,
        token0: ERC20Token,
        token1: ERC20Token,
        fee: int,
        clock: Clock,
        tick_spacing: Optional[int] = None,
    ):
        if tick_spacing is None:
            if fee not in TICK_SPACINGS:
                raise ValueError(f"지원하지 않는 수수료 티어입니다: {fee}")
            tick_spacing = TICK_SPACINGS[fee]

        self.address = address
        self.token0 = token0
        self.token1 = token1
        self.fee = fee
        self.tick_spacing = tick_spacing
        self.clock = clock

        self.sqrt_price_x96 = 0
        self.tick = 0
        self.liquidity = 0
        self.fee_growth_global_0_x128 = 0
        self.fee_growth_global_1_x128 = 0
        self._ticks: Dict[int, TickInfo] = {}
        self._initialized_ticks: List[int] = []
        self._positions: Dict[Tuple[str, int, int], PositionInfo] = {}
        self._observations: List[Observation] = []

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def slot0(self) -> Slot0:
        self._require_initialized()
        return Slot0(self.sqrt_price_x96, self.tick)

    def ticks(self, tick: int) -> TickInfo:
        return self._ticks.get(tick, TickInfo())

    def positions(self, owner: str, tick_lower: int, tick_upper: int) -> PositionInfo:
        return self._positions.get((owner, tick_lower, tick_upper), PositionInfo())

    def observe(self, seconds_agos: Sequence[int]) -> List[int]:
        """각 seconds_ago 시점의 tick cumulative

        Raises:
            ObservationTooOld: 목표 시점이 첫 관측보다 이전 ("OLD")
        """
        self._require_initialized()
        now = self.clock.now()
        return [self._tick_cumulative_at(now - seconds_ago) for seconds_ago in seconds_agos]

    def _tick_cumulative_at(self, target: int) -> int:
        observations = self._observations
        if target < observations[0].timestamp:
            raise ObservationTooOld("OLD")

        last = observations[-1]
        if target >= last.timestamp:
            return last.tick_cumulative + self.tick * (target - last.timestamp)

        timestamps = [o.timestamp for o in observations]
        i = bisect.bisect_right(timestamps, target) - 1
        before, after = observations[i], observations[i + 1]
        if target == before.timestamp:
            return before.tick_cumulative
        # 두 관측 사이에는 틱이 일정하므로 선형 보간이 정확하다
        tick_in_between = (after.tick_cumulative - before.tick_cumulative) // (after.timestamp - before.timestamp)
        return before.tick_cumulative + tick_in_between * (target - before.timestamp)

    # ------------------------------------------------------------------
    # 초기화 / 관측
    # ------------------------------------------------------------------

    def initialize(self, sqrt_price_x96: int) -> None:
        if self.sqrt_price_x96 != 0:
            raise PoolError("AI")
        self.sqrt_price_x96 = sqrt_price_x96
        self.tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
        self._observations = [Observation(self.clock.now(), 0)]
        logger.debug(f"Pool {self.address} initialized at tick {self.tick}")

    def _write_observation(self) -> None:
        """틱이 바뀌기 전에 호출. 같은 타임스탬프에는 한 번만 기록"""
        now = self.clock.now()
        last = self._observations[-1]
        if now == last.timestamp:
            return
        cumulative = last.tick_cumulative + self.tick * (now - last.timestamp)
        self._observations.append(Observation(now, cumulative))

    def _require_initialized(self) -> None:
        if self.sqrt_price_x96 == 0:
            raise PoolError("LOK")

    # ------------------------------------------------------------------
    # 포지션
    # ------------------------------------------------------------------

    def mint(
        self,
        recipient: str,
        tick_lower: int,
        tick_upper: int,
        amount: int,
        callback: Callable[[int, int], None],
    ) -> Tuple[int, int]:
        """유동성 추가. callback(amount0, amount1) 안에서 호출자가 풀에 지불해야 한다"""
        self._require_initialized()
        if amount <= 0:
            raise PoolError("AS")
        self._check_ticks(tick_lower, tick_upper)

        self._modify_position(recipient, tick_lower, tick_upper, amount)
        amount0, amount1 = get_amounts_for_liquidity(
            self.sqrt_price_x96,
            get_sqrt_ratio_at_tick(tick_lower),
            get_sqrt_ratio_at_tick(tick_upper),
            amount,
            round_up=True,
        )

        balance0_before = self.token0.balance_of(self.address)
        balance1_before = self.token1.balance_of(self.address)
        callback(amount0, amount1)
        if amount0 > 0 and self.token0.balance_of(self.address) < balance0_before + amount0:
            raise PoolError("M0")
        if amount1 > 0 and self.token1.balance_of(self.address) < balance1_before + amount1:
            raise PoolError("M1")

        logger.debug(f"Mint {amount} liquidity for {recipient} [{tick_lower}, {tick_upper}]: ({amount0}, {amount1})")
        return amount0, amount1

    def burn(self, owner: str, tick_lower: int, tick_upper: int, amount: int) -> Tuple[int, int]:
        """유동성 제거. 원금은 tokens owed에 적립되고 collect로 수령한다. amount == 0은 수수료 갱신만"""
        self._require_initialized()
        if amount < 0:
            raise PoolError("AS")
        self._check_ticks(tick_lower, tick_upper)

        self._modify_position(owner, tick_lower, tick_upper, -amount)
        amount0, amount1 = get_amounts_for_liquidity(
            self.sqrt_price_x96,
            get_sqrt_ratio_at_tick(tick_lower),
            get_sqrt_ratio_at_tick(tick_upper),
            amount,
        )
        if amount0 > 0 or amount1 > 0:
            position = self._positions[(owner, tick_lower, tick_upper)]
            position.tokens_owed_0 += amount0
            position.tokens_owed_1 += amount1

        logger.debug(f"Burn {amount} liquidity of {owner} [{tick_lower}, {tick_upper}]: ({amount0}, {amount1})")
        return amount0, amount1

    def collect(
        self,
        owner: str,
        recipient: str,
        tick_lower: int,
        tick_upper: int,
        amount0_requested: int,
        amount1_requested: int,
    ) -> Tuple[int, int]:
        position = self._positions.get((owner, tick_lower, tick_upper))
        if position is None:
            return 0, 0

        amount0 = min(amount0_requested, position.tokens_owed_0)
        amount1 = min(amount1_requested, position.tokens_owed_1)
        if amount0 > 0:
            position.tokens_owed_0 -= amount0
            self.token0.transfer(self.address, recipient, amount0)
        if amount1 > 0:
            position.tokens_owed_1 -= amount1
            self.token1.transfer(self.address, recipient, amount1)
        return amount0, amount1

    def _check_ticks(self, tick_lower: int, tick_upper: int) -> None:
        try:
            check_ticks(tick_lower, tick_upper, self.tick_spacing)
        except ValueError as exc:
            raise PoolError(f"TLU: {exc}") from exc

    def _modify_position(self, owner: str, tick_lower: int, tick_upper: int, liquidity_delta: int) -> PositionInfo:
        key = (owner, tick_lower, tick_upper)
        position = self._positions.get(key)
        if position is None:
            if liquidity_delta <= 0:
                raise PoolError("NP")
            position = self._positions[key] = PositionInfo()
        if liquidity_delta == 0 and position.liquidity == 0:
            raise PoolError("NP")
        if position.liquidity + liquidity_delta < 0:
            raise PoolError("LS")

        flipped_lower = flipped_upper = False
        if liquidity_delta != 0:
            flipped_lower = self._update_tick(tick_lower, liquidity_delta, upper=False)
            flipped_upper = self._update_tick(tick_upper, liquidity_delta, upper=True)

        lower, upper = self._ticks.get(tick_lower, TickInfo()), self._ticks.get(tick_upper, TickInfo())
        inside0 = fee_growth_inside(
            tick_lower, tick_upper, self.tick, self.fee_growth_global_0_x128,
            lower.fee_growth_outside_0_x128, upper.fee_growth_outside_0_x128,
        )
        inside1 = fee_growth_inside(
            tick_lower, tick_upper, self.tick, self.fee_growth_global_1_x128,
            lower.fee_growth_outside_1_x128, upper.fee_growth_outside_1_x128,
        )

        position.tokens_owed_0 += tokens_owed_delta(position.liquidity, inside0, position.fee_growth_inside_0_last_x128)
        position.tokens_owed_1 += tokens_owed_delta(position.liquidity, inside1, position.fee_growth_inside_1_last_x128)
        position.fee_growth_inside_0_last_x128 = inside0
        position.fee_growth_inside_1_last_x128 = inside1
        position.liquidity += liquidity_delta

        if liquidity_delta < 0:
            if flipped_lower:
                self._clear_tick(tick_lower)
            if flipped_upper:
                self._clear_tick(tick_upper)

        if tick_lower <= self.tick < tick_upper:
            self.liquidity += liquidity_delta
        return position

    def _update_tick(self, tick: int, liquidity_delta: int, upper: bool) -> bool:
        """틱의 gross/net 갱신. 초기화 상태가 바뀌면 True"""
        info = self._ticks.get(tick)
        if info is None:
            info = self._ticks[tick] = TickInfo()
        gross_before = info.liquidity_gross
        gross_after = gross_before + liquidity_delta

        if gross_before == 0:
            # 현재 틱 아래에서 초기화되는 틱은 지금까지의 성장이 모두 outside(아래)에서 일어난 것으로 본다
            if tick <= self.tick:
                info.fee_growth_outside_0_x128 = self.fee_growth_global_0_x128
                info.fee_growth_outside_1_x128 = self.fee_growth_global_1_x128
            bisect.insort(self._initialized_ticks, tick)

        info.liquidity_gross = gross_after
        info.liquidity_net += -liquidity_delta if upper else liquidity_delta
        return (gross_after == 0) != (gross_before == 0)

    def _clear_tick(self, tick: int) -> None:
        del self._ticks[tick]
        index = bisect.bisect_left(self._initialized_ticks, tick)
        del self._initialized_ticks[index]

    # ------------------------------------------------------------------
    # 스왑
    # ------------------------------------------------------------------

    def swap(
        self,
        sender: str,
        recipient: str,
        zero_for_one: bool,
        amount_in: int,
        sqrt_price_limit_x96: int,
    ) -> Tuple[int, int]:
        """exact-input 스왑

        입력 토큰은 sender에게서 transfer_from으로 받고, 출력 토큰은 recipient에게 보낸다.

        Returns:
            풀 기준 (amount0, amount1) 변화량. 양수는 풀로 들어온 양
        """
        self._require_initialized()
        if amount_in <= 0:
            raise PoolError("AS")
        if zero_for_one:
            if not MIN_SQRT_RATIO < sqrt_price_limit_x96 < self.sqrt_price_x96:
                raise PoolError("SPL")
        else:
            if not self.sqrt_price_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO:
                raise PoolError("SPL")

        self._write_observation()

        remaining = amount_in
        amount_out = 0
        sqrt_price = self.sqrt_price_x96
        tick = self.tick
        liquidity = self.liquidity
        fee_growth_global = self.fee_growth_global_0_x128 if zero_for_one else self.fee_growth_global_1_x128

        while remaining > 0 and sqrt_price != sqrt_price_limit_x96:
            step_start = sqrt_price
            tick_next, initialized = self._next_initialized_tick(tick, zero_for_one)
            sqrt_price_next = get_sqrt_ratio_at_tick(tick_next)
            if zero_for_one:
                target = max(sqrt_price_next, sqrt_price_limit_x96)
            else:
                target = min(sqrt_price_next, sqrt_price_limit_x96)

            step = compute_swap_step(sqrt_price, target, liquidity, remaining, self.fee)
            sqrt_price = step.sqrt_price_next_x96
            remaining -= step.amount_in + step.fee_amount
            amount_out += step.amount_out
            if liquidity > 0:
                fee_growth_global = (fee_growth_global + mul_div(step.fee_amount, Q128, liquidity)) % _UINT256_MOD

            if sqrt_price == sqrt_price_next:
                if initialized:
                    liquidity_net = self._cross_tick(tick_next, zero_for_one, fee_growth_global)
                    liquidity += -liquidity_net if zero_for_one else liquidity_net
                tick = tick_next - 1 if zero_for_one else tick_next
            elif sqrt_price != step_start:
                tick = get_tick_at_sqrt_ratio(sqrt_price)

        self.sqrt_price_x96 = sqrt_price
        self.tick = tick
        self.liquidity = liquidity
        if zero_for_one:
            self.fee_growth_global_0_x128 = fee_growth_global
        else:
            self.fee_growth_global_1_x128 = fee_growth_global

        amount_in_used = amount_in - remaining
        token_in, token_out = (self.token0, self.token1) if zero_for_one else (self.token1, self.token0)
        if amount_out > 0:
            token_out.transfer(self.address, recipient, amount_out)
        token_in.transfer_from(self.address, sender, self.address, amount_in_used)

        if zero_for_one:
            return amount_in_used, -amount_out
        return -amount_out, amount_in_used

    def _next_initialized_tick(self, tick: int, lte: bool) -> Tuple[int, bool]:
        """lte면 tick 이하, 아니면 tick 초과의 가장 가까운 초기화된 틱 (없으면 틱 범위 끝)"""
        ticks = self._initialized_ticks
        if lte:
            index = bisect.bisect_right(ticks, tick) - 1
            if index >= 0:
                return ticks[index], True
            return MIN_TICK, False
        index = bisect.bisect_right(ticks, tick)
        if index < len(ticks):
            return ticks[index], True
        return MAX_TICK, False

    def _cross_tick(self, tick: int, zero_for_one: bool, fee_growth_global_in: int) -> int:
        """틱 교차: outside 값을 뒤집고 liquidity_net을 돌려준다"""
        info = self._ticks[tick]
        if zero_for_one:
            global0, global1 = fee_growth_global_in, self.fee_growth_global_1_x128
        else:
            global0, global1 = self.fee_growth_global_0_x128, fee_growth_global_in
        info.fee_growth_outside_0_x128 = (global0 - info.fee_growth_outside_0_x128) % _UINT256_MOD
        info.fee_growth_outside_1_x128 = (global1 - info.fee_growth_outside_1_x128) % _UINT256_MOD
        return info.liquidity_net

    # ------------------------------------------------------------------
    # Chain 스냅샷
    # ------------------------------------------------------------------

    _STATE_FIELDS = (
        "sqrt_price_x96",
        "tick",
        "liquidity",
        "fee_growth_global_0_x128",
        "fee_growth_global_1_x128",
        "_ticks",
        "_initialized_ticks",
        "_positions",
        "_observations",
    )

    def snapshot(self):
        return copy.deepcopy({name: getattr(self, name) for name in self._STATE_FIELDS})

    def restore(self, snapshot) -> None:
        for name, value in copy.deepcopy(snapshot).items():
            setattr(self, name, value)
