"""
Fee Math - fee growth 기반 미수령 수수료 계산

볼트는 reinvest 가드를 외부 상태 변경 없이 평가해야 하므로, 풀에서
실제로 collect 하기 전에 이 공식으로 미수령 수수료를 미리 계산한다.
시뮬레이터 풀도 burn/mint 시 같은 함수로 tokens owed를 누적하므로
미리 계산한 값과 collect 결과는 항상 일치한다.

References:
- 백서 Section 6.3: Tick-Indexed State (feeGrowthOutside)
- 백서 Section 6.4.1: Position-Indexed State (uncollected fees)

핵심 공식:
    f_a(i) = f_g - f_o(i)  if i_c >= i else f_o(i)
    f_b(i) = f_o(i)        if i_c >= i else f_g - f_o(i)
    f_r = f_g - f_b(i_l) - f_a(i_u)
    f_u = l × (f_r(t_1) - f_r(t_0)) / 2^128
"""

from typing import NamedTuple

from ..constants import Q128

_UINT256_MOD = 2 ** 256


class UncollectedFees(NamedTuple):
    """포지션의 미수령 수수료"""
    fees0: int  # token0 (최소 단위)
    fees1: int  # token1 (최소 단위)
    fee_growth_inside_0: int  # 현재 f_r,0
    fee_growth_inside_1: int  # 현재 f_r,1


def fee_growth_below(tick_idx: int, current_tick: int, fee_growth_global: int, fee_growth_outside: int) -> int:
    """틱 아래에서 발생한 fee growth (f_b)"""
    if current_tick >= tick_idx:
        return fee_growth_outside
    return fee_growth_global - fee_growth_outside


def fee_growth_above(tick_idx: int, current_tick: int, fee_growth_global: int, fee_growth_outside: int) -> int:
    """틱 위에서 발생한 fee growth (f_a)"""
    if current_tick >= tick_idx:
        return fee_growth_global - fee_growth_outside
    return fee_growth_outside


def fee_growth_inside(
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside_lower: int,
    fee_growth_outside_upper: int
) -> int:
    """레인지 내부 fee growth (f_r), uint256 랩어라운드"""
    f_b = fee_growth_below(tick_lower, current_tick, fee_growth_global, fee_growth_outside_lower)
    f_a = fee_growth_above(tick_upper, current_tick, fee_growth_global, fee_growth_outside_upper)
    return (fee_growth_global - f_b - f_a) % _UINT256_MOD


def fee_growth_delta(current: int, last: int) -> int:
    """두 시점 fee growth 차이 (uint256 랩어라운드)"""
    return (current - last) % _UINT256_MOD


def tokens_owed_delta(liquidity: int, fee_growth_inside_current: int, fee_growth_inside_last: int) -> int:
    """f_u = l × Δf_r / 2^128 (내림)"""
    return liquidity * fee_growth_delta(fee_growth_inside_current, fee_growth_inside_last) // Q128


def calculate_uncollected_fees(
    liquidity: int,
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    fee_growth_global_0: int,
    fee_growth_global_1: int,
    fee_growth_outside_lower_0: int,
    fee_growth_outside_lower_1: int,
    fee_growth_outside_upper_0: int,
    fee_growth_outside_upper_1: int,
    fee_growth_inside_last_0: int,
    fee_growth_inside_last_1: int
) -> UncollectedFees:
    """두 토큰의 미수령 수수료 (tokens owed 제외)"""
    inside_0 = fee_growth_inside(
        tick_lower, tick_upper, current_tick,
        fee_growth_global_0, fee_growth_outside_lower_0, fee_growth_outside_upper_0
    )
    inside_1 = fee_growth_inside(
        tick_lower, tick_upper, current_tick,
        fee_growth_global_1, fee_growth_outside_lower_1, fee_growth_outside_upper_1
    )

    return UncollectedFees(
        fees0=tokens_owed_delta(liquidity, inside_0, fee_growth_inside_last_0),
        fees1=tokens_owed_delta(liquidity, inside_1, fee_growth_inside_last_1),
        fee_growth_inside_0=inside_0,
        fee_growth_inside_1=inside_1,
    )
