"""
Sqrt Price Math - 스왑 입력에 따른 다음 sqrtPriceX96

시뮬레이터 풀의 스왑 스텝에서만 사용한다.

References:
- Uniswap V3 Core: contracts/libraries/SqrtPriceMath.sol
"""

from ..constants import Q96
from .full_math import mul_div_rounding_up, div_rounding_up


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool
) -> int:
    """token0 추가/제거 후 sqrtPriceX96 (올림)

    √P' = L * √P / (L ± Δx * √P)
    """
    if amount == 0:
        return sqrt_price_x96

    numerator1 = liquidity << 96
    product = amount * sqrt_price_x96

    if add:
        return mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 + product)

    if numerator1 <= product:
        raise ValueError("유동성보다 많은 token0를 제거할 수 없습니다")
    return mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 - product)


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
    add: bool
) -> int:
    """token1 추가/제거 후 sqrtPriceX96 (내림)

    √P' = √P ± Δy / L
    """
    if add:
        return sqrt_price_x96 + (amount * Q96) // liquidity

    quotient = div_rounding_up(amount * Q96, liquidity)
    if sqrt_price_x96 <= quotient:
        raise ValueError("유동성보다 많은 token1을 제거할 수 없습니다")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool
) -> int:
    """입력 토큰 amount_in을 넣었을 때의 다음 가격"""
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ValueError("가격과 유동성은 양수여야 합니다")

    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in, True)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in, True)
