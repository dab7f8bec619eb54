"""
Tick Math - 틱 ↔ sqrtPriceX96 변환과 틱 간격 정렬

볼트 레인지의 경계는 항상 풀의 tick spacing 배수여야 한다.
recenter가 계산한 경계를 정렬하고, 현재 가격을 틱으로 읽는 데 사용한다.

References:
- Uniswap V3 Core: contracts/libraries/TickMath.sol

핵심 공식:
    sqrtPriceX96 = sqrt(1.0001^tick) * 2^96
"""

import math

from ..constants import MIN_TICK, MAX_TICK


MIN_SQRT_RATIO: int = 4295128739
MAX_SQRT_RATIO: int = 1461446703485210103287273052203988822378723970342

LOG_BASE: float = math.log(1.0001)

# |tick|의 각 비트에 대응하는 sqrt(1.0001)^(-2^i) (Q128.128)
_TICK_BIT_RATIOS = (
    (0x2, 0xfff97272373d413259a46990580e213a),
    (0x4, 0xfff2e50f5f656932ef12357cf3c7fdcc),
    (0x8, 0xffe5caca7e10e4e61c3624eaa0941cd0),
    (0x10, 0xffcb9843d60f6159c9db58835c926644),
    (0x20, 0xff973b41fa98c081472e6896dfb254c0),
    (0x40, 0xff2ea16466c96a3843ec78b326b52861),
    (0x80, 0xfe5dee046a99a2a811c461f1969c3053),
    (0x100, 0xfcbe86c7900a88aedcffc83b479aa3a4),
    (0x200, 0xf987a7253ac413176f2b074cf7815e54),
    (0x400, 0xf3392b0822b70005940c7a398e4b70f3),
    (0x800, 0xe7159475a2c29b7443b29c7fa6e889d9),
    (0x1000, 0xd097f3bdfd2022b8845ad8f792aa5825),
    (0x2000, 0xa9f746462d870fdf8a65dc1f90e061e5),
    (0x4000, 0x70d869a156d2a1b890bb3df62baf32f7),
    (0x8000, 0x31be135f97d08fd981231505542fcfa6),
    (0x10000, 0x9aa508b5b7a84e1c677de54f3e99bc9),
    (0x20000, 0x5d6af8dedb81196699c329225ee604),
    (0x40000, 0x2216e584f5fa1ea926041bedfe98),
    (0x80000, 0x48a170391f7dc42444e8fa2),
)


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """틱에서 sqrtPriceX96 계산 (TickMath.getSqrtRatioAtTick과 동일, 정수 연산만 사용)

    Raises:
        ValueError: 틱이 [MIN_TICK, MAX_TICK] 밖인 경우
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"틱이 유효 범위를 벗어났습니다: {tick} (범위: {MIN_TICK} ~ {MAX_TICK})")

    abs_tick = abs(tick)
    ratio = 0x100000000000000000000000000000000 if abs_tick & 0x1 == 0 \
        else 0xfffcb933bd6fad37aa2d162d1a594001

    for bit, multiplier in _TICK_BIT_RATIOS:
        if abs_tick & bit:
            ratio = (ratio * multiplier) >> 128

    if tick > 0:
        ratio = (2 ** 256 - 1) // ratio

    # Q128.128 -> Q64.96, 올림
    return (ratio >> 32) + (1 if ratio % (1 << 32) != 0 else 0)


def get_tick_at_sqrt_ratio(sqrt_price_x96: int) -> int:
    """sqrtPriceX96 이하인 가장 큰 틱 (TickMath.getTickAtSqrtRatio와 동일)

    Raises:
        ValueError: sqrtPriceX96이 [MIN_SQRT_RATIO, MAX_SQRT_RATIO) 밖인 경우
    """
    if sqrt_price_x96 < MIN_SQRT_RATIO or sqrt_price_x96 >= MAX_SQRT_RATIO:
        raise ValueError(f"sqrtPriceX96이 유효 범위를 벗어났습니다: {sqrt_price_x96}")

    ratio = sqrt_price_x96 << 32
    msb = ratio.bit_length() - 1

    if msb >= 128:
        r = ratio >> (msb - 127)
    else:
        r = ratio << (127 - msb)

    log_2 = (msb - 128) << 64

    for i in range(14):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << (63 - i)
        r >>= f

    log_sqrt10001 = log_2 * 255738958999603826347141

    tick_low = (log_sqrt10001 - 3402992956809132418596140100660247210) >> 128
    tick_high = (log_sqrt10001 + 291339464771989622907027621153398088495) >> 128

    if tick_low == tick_high:
        return tick_low
    if get_sqrt_ratio_at_tick(tick_high) <= sqrt_price_x96:
        return tick_high
    return tick_low


def floor_tick_to_spacing(tick: int, tick_spacing: int) -> int:
    """tick 이하의 가장 큰 spacing 배수"""
    return (tick // tick_spacing) * tick_spacing


def ceil_tick_to_spacing(tick: int, tick_spacing: int) -> int:
    """tick 이상의 가장 작은 spacing 배수"""
    return -((-tick) // tick_spacing) * tick_spacing


def min_usable_tick(tick_spacing: int) -> int:
    """풀에서 사용할 수 있는 가장 작은 경계 틱 (예: spacing 60 → -887220)"""
    return ceil_tick_to_spacing(MIN_TICK, tick_spacing)


def max_usable_tick(tick_spacing: int) -> int:
    """풀에서 사용할 수 있는 가장 큰 경계 틱 (예: spacing 60 → 887220)"""
    return floor_tick_to_spacing(MAX_TICK, tick_spacing)


def check_ticks(tick_lower: int, tick_upper: int, tick_spacing: int) -> None:
    """레인지 경계 검증

    Raises:
        ValueError: 순서가 틀렸거나, 범위를 벗어났거나, spacing 배수가 아닌 경우
    """
    if tick_lower >= tick_upper:
        raise ValueError(f"하한 틱이 상한 틱보다 작아야 합니다: {tick_lower} >= {tick_upper}")
    if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
        raise ValueError(f"틱이 유효 범위를 벗어났습니다: [{tick_lower}, {tick_upper}]")
    if tick_lower % tick_spacing != 0 or tick_upper % tick_spacing != 0:
        raise ValueError(f"틱이 spacing({tick_spacing})의 배수가 아닙니다: [{tick_lower}, {tick_upper}]")


def ticks_for_log_width(log_width: float) -> int:
    """로그 가격 폭(자연로그)을 틱 수로 변환 (올림)"""
    return math.ceil(log_width / LOG_BASE)
