"""
Swap Math - 단일 틱 구간 내 exact-input 스왑 스텝

References:
- Uniswap V3 Core: contracts/libraries/SwapMath.sol (computeSwapStep)
"""

from typing import NamedTuple

from ..constants import FEE_DENOMINATOR
from .full_math import mul_div, mul_div_rounding_up
from .liquidity_math import get_amount0_delta, get_amount1_delta
from .sqrt_price_math import get_next_sqrt_price_from_input


class SwapStep(NamedTuple):
    """스왑 스텝 결과"""
    sqrt_price_next_x96: int
    amount_in: int
    amount_out: int
    fee_amount: int


def compute_swap_step(
    sqrt_ratio_current_x96: int,
    sqrt_ratio_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int
) -> SwapStep:
    """현재 가격에서 target 가격까지 exact-input 스왑을 한 스텝 진행

    Args:
        sqrt_ratio_current_x96: 현재 sqrtPriceX96
        sqrt_ratio_target_x96: 이 스텝의 목표 가격 (다음 초기화된 틱 또는 price limit)
        liquidity: 활성 유동성
        amount_remaining: 남은 입력량 (수수료 포함)
        fee_pips: 풀 수수료 (1e6 분모)
    """
    zero_for_one = sqrt_ratio_current_x96 >= sqrt_ratio_target_x96
    amount_remaining_less_fee = mul_div(amount_remaining, FEE_DENOMINATOR - fee_pips, FEE_DENOMINATOR)

    if zero_for_one:
        amount_in = get_amount0_delta(sqrt_ratio_target_x96, sqrt_ratio_current_x96, liquidity, True)
    else:
        amount_in = get_amount1_delta(sqrt_ratio_current_x96, sqrt_ratio_target_x96, liquidity, True)

    if amount_remaining_less_fee >= amount_in:
        sqrt_ratio_next_x96 = sqrt_ratio_target_x96
    else:
        sqrt_ratio_next_x96 = get_next_sqrt_price_from_input(
            sqrt_ratio_current_x96, liquidity, amount_remaining_less_fee, zero_for_one
        )

    reached_target = sqrt_ratio_next_x96 == sqrt_ratio_target_x96

    if zero_for_one:
        if not reached_target:
            amount_in = get_amount0_delta(sqrt_ratio_next_x96, sqrt_ratio_current_x96, liquidity, True)
        amount_out = get_amount1_delta(sqrt_ratio_next_x96, sqrt_ratio_current_x96, liquidity, False)
    else:
        if not reached_target:
            amount_in = get_amount1_delta(sqrt_ratio_current_x96, sqrt_ratio_next_x96, liquidity, True)
        amount_out = get_amount0_delta(sqrt_ratio_current_x96, sqrt_ratio_next_x96, liquidity, False)

    if not reached_target:
        # 목표 가격에 못 미치면 남은 입력은 전부 수수료
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = mul_div_rounding_up(amount_in, fee_pips, FEE_DENOMINATOR - fee_pips)

    return SwapStep(sqrt_ratio_next_x96, amount_in, amount_out, fee_amount)
