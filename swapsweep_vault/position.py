"""
Position Manager - 외부 풀 위의 얇은 어댑터

볼트의 단일 레인지에 대해 유동성 추가(deploy), 제거(withdraw), 미수령 수수료
조회, 현재가/TWAP 조회를 담당한다.

주의: withdraw는 일부 유동성만 제거해도 포지션 전체의 수수료를 수확한다
(풀이 burn 시 포지션 전체의 tokens owed를 갱신하고, collect는 부분 수령이 없다).
"""

import logging
from typing import NamedTuple, Optional, Tuple, TYPE_CHECKING

from .constants import UINT128_MAX
from .errors import StalePrice, InvalidAmount
from .interfaces import ObservationTooOld, PoolLike
from .math.fee_math import calculate_uncollected_fees
from .math.liquidity_math import get_liquidity_for_amounts, get_amounts_for_liquidity
from .math.tick_math import get_sqrt_ratio_at_tick, check_ticks
from .state import Position

if TYPE_CHECKING:
    from .state import VaultState

logger = logging.getLogger(__name__)


class WithdrawResult(NamedTuple):
    """withdraw 결과: 원금(burn)과 수확한 수수료(fee)"""
    burn0: int
    burn1: int
    fee0: int
    fee1: int


class PositionManager:
    """볼트 포지션 어댑터

    Args:
        state: 볼트 상태 (position, idle을 갱신)
        pool: 외부 풀
        address: 풀에서 포지션 소유자로 쓰이는 볼트 주소
    """

    def __init__(self, state: "VaultState", pool: PoolLike, address: str):
        self.state = state
        self.pool = pool
        self.address = address
        self.token0 = pool.token0
        self.token1 = pool.token1
        self._reserved: Optional[Tuple[int, int]] = None

    # ------------------------------------------------------------------
    # 읽기
    # ------------------------------------------------------------------

    def current_price(self) -> int:
        """현재 sqrtPriceX96"""
        return self.pool.slot0().sqrt_price_x96

    def current_tick(self) -> int:
        return self.pool.slot0().tick

    def range_sqrt_ratios(self) -> Tuple[int, int]:
        position = self.state.position
        return get_sqrt_ratio_at_tick(position.lower_tick), get_sqrt_ratio_at_tick(position.upper_tick)

    def position_amounts(self) -> Tuple[int, int]:
        """포지션 원금을 현재 가격에서 인출했을 때의 금액 (내림)"""
        sqrt_lower, sqrt_upper = self.range_sqrt_ratios()
        return get_amounts_for_liquidity(
            self.current_price(), sqrt_lower, sqrt_upper, self.state.position.liquidity
        )

    def pending_fees(self) -> Tuple[int, int]:
        """collect 하면 받게 될 수수료 (manager 몫 포함, 외부 상태 변경 없음)

        풀에 기록된 tokens owed + 마지막 갱신 이후의 fee growth 분.
        """
        position = self.state.position
        info = self.pool.positions(self.address, position.lower_tick, position.upper_tick)
        if info.liquidity == 0:
            return info.tokens_owed_0, info.tokens_owed_1

        lower = self.pool.ticks(position.lower_tick)
        upper = self.pool.ticks(position.upper_tick)
        fees = calculate_uncollected_fees(
            liquidity=info.liquidity,
            tick_lower=position.lower_tick,
            tick_upper=position.upper_tick,
            current_tick=self.current_tick(),
            fee_growth_global_0=self.pool.fee_growth_global_0_x128,
            fee_growth_global_1=self.pool.fee_growth_global_1_x128,
            fee_growth_outside_lower_0=lower.fee_growth_outside_0_x128,
            fee_growth_outside_lower_1=lower.fee_growth_outside_1_x128,
            fee_growth_outside_upper_0=upper.fee_growth_outside_0_x128,
            fee_growth_outside_upper_1=upper.fee_growth_outside_1_x128,
            fee_growth_inside_last_0=info.fee_growth_inside_0_last_x128,
            fee_growth_inside_last_1=info.fee_growth_inside_1_last_x128,
        )
        return fees.fees0 + info.tokens_owed_0, fees.fees1 + info.tokens_owed_1

    def twap_sqrt_price(self, interval: int) -> int:
        """interval초 동안의 산술평균 틱의 sqrtPriceX96

        Raises:
            StalePrice: 풀의 관측 기록이 interval보다 짧은 경우 ("OLD")
        """
        try:
            tick_cumulatives = self.pool.observe([interval, 0])
        except ObservationTooOld as exc:
            raise StalePrice("OLD") from exc

        # 음수 평균은 -inf 방향으로 내림
        mean_tick = (tick_cumulatives[1] - tick_cumulatives[0]) // interval
        return get_sqrt_ratio_at_tick(mean_tick)

    # ------------------------------------------------------------------
    # 쓰기
    # ------------------------------------------------------------------

    def deploy(self, amount0: int, amount1: int) -> int:
        """idle에서 amount0/amount1 한도로 레인지에 유동성 추가

        현재 가격 비율로 배치할 수 없는 나머지는 idle에 남는다.
        풀 호출 전에 idle 차감과 포지션 증가를 먼저 반영한다.

        Returns:
            추가된 유동성
        """
        position = self.state.position
        sqrt_price = self.current_price()
        sqrt_lower, sqrt_upper = self.range_sqrt_ratios()

        liquidity = get_liquidity_for_amounts(sqrt_price, sqrt_lower, sqrt_upper, amount0, amount1)
        if liquidity == 0:
            return 0

        owed0, owed1 = get_amounts_for_liquidity(sqrt_price, sqrt_lower, sqrt_upper, liquidity, round_up=True)
        self.state.idle.sub(owed0, owed1)
        position.liquidity += liquidity
        self._reserved = (owed0, owed1)
        try:
            paid0, paid1 = self.pool.mint(
                self.address, position.lower_tick, position.upper_tick, liquidity, self._mint_callback
            )
        finally:
            self._reserved = None

        self.state.idle.add(owed0 - paid0, owed1 - paid1)
        logger.debug(f"Deployed liquidity {liquidity} for ({paid0}, {paid1}) into [{position.lower_tick}, {position.upper_tick}]")
        return liquidity

    def withdraw(self, liquidity: int) -> WithdrawResult:
        """liquidity만큼 제거하고 풀이 빚진 전부(원금 + 전체 수수료)를 idle로 수령

        liquidity == 0 이면 수수료만 수확한다 (poke).
        """
        position = self.state.position
        if liquidity < 0 or liquidity > position.liquidity:
            raise InvalidAmount(f"cannot withdraw {liquidity} of {position.liquidity} liquidity")

        burn0 = burn1 = 0
        if position.liquidity > 0:
            position.liquidity -= liquidity
            burn0, burn1 = self.pool.burn(self.address, position.lower_tick, position.upper_tick, liquidity)

        collected0, collected1 = self.pool.collect(
            self.address, self.address, position.lower_tick, position.upper_tick, UINT128_MAX, UINT128_MAX
        )
        self.state.idle.add(collected0, collected1)

        result = WithdrawResult(burn0, burn1, collected0 - burn0, collected1 - burn1)
        logger.debug(f"Withdrew liquidity {liquidity}: {result}")
        return result

    def replace_range(self, lower_tick: int, upper_tick: int) -> Position:
        """비어 있는 포지션의 레인지를 교체"""
        if self.state.position.liquidity != 0:
            raise InvalidAmount("position must be empty before replacing its range")
        check_ticks(lower_tick, upper_tick, self.pool.tick_spacing)
        self.state.position = Position(lower_tick, upper_tick, 0)
        return self.state.position

    def _mint_callback(self, amount0_owed: int, amount1_owed: int) -> None:
        """풀이 mint 도중 호출. deploy가 예약한 금액까지만 지불한다"""
        if self._reserved is None:
            raise InvalidAmount("unexpected mint callback")
        reserved0, reserved1 = self._reserved
        if amount0_owed > reserved0 or amount1_owed > reserved1:
            raise InvalidAmount("pool requested more than reserved")

        if amount0_owed > 0:
            self.token0.transfer(self.address, self.pool.address, amount0_owed)
        if amount1_owed > 0:
            self.token1.transfer(self.address, self.pool.address, amount1_owed)
