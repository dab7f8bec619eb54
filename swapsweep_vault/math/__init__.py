"""
Math layer for SwapSweep Vault

Uniswap V3와 같은 정밀도의 정수 연산:
- full_math: 반올림 방향이 명시된 곱셈/나눗셈
- tick_math: 틱 ↔ sqrtPriceX96, 틱 간격 정렬
- liquidity_math: 토큰 수량 ↔ 유동성
- sqrt_price_math / swap_math: 시뮬레이터 풀의 스왑 스텝
- fee_math: fee growth 기반 미수령 수수료
"""

from .full_math import mul_div, mul_div_rounding_up, div_rounding_up
from .tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    floor_tick_to_spacing,
    ceil_tick_to_spacing,
    min_usable_tick,
    max_usable_tick,
    check_ticks,
)
from .liquidity_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_liquidity_for_amounts,
    get_amounts_for_liquidity,
)
from .fee_math import (
    fee_growth_inside,
    calculate_uncollected_fees,
)
