"""
Tick Math 테스트

tick_math.py의 함수들을 테스트합니다.
온체인 값과 비교하여 정확도를 검증합니다.
"""

import pytest

from ..math.tick_math import (
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    floor_tick_to_spacing,
    ceil_tick_to_spacing,
    min_usable_tick,
    max_usable_tick,
    check_ticks,
    ticks_for_log_width,
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
)
from ..constants import MIN_TICK, MAX_TICK, Q96


class TestGetSqrtRatioAtTick:
    """get_sqrt_ratio_at_tick 테스트"""

    def test_min_tick(self):
        """최소 틱에서의 sqrtPrice"""
        assert get_sqrt_ratio_at_tick(MIN_TICK) == MIN_SQRT_RATIO

    def test_max_tick(self):
        """최대 틱에서의 sqrtPrice"""
        assert get_sqrt_ratio_at_tick(MAX_TICK) == MAX_SQRT_RATIO

    def test_tick_0(self):
        """틱 0 → 정확히 2^96 (price = 1)"""
        assert get_sqrt_ratio_at_tick(0) == Q96

    def test_monotonic(self):
        """틱이 커지면 가격도 커진다"""
        assert get_sqrt_ratio_at_tick(-100) < get_sqrt_ratio_at_tick(0) < get_sqrt_ratio_at_tick(100)

    def test_close_to_float_formula(self):
        """sqrt(1.0001^tick) * 2^96 과 상대 오차 1e-12 이내"""
        for tick in (-50000, -60, 1, 60, 50000):
            expected = (1.0001 ** tick) ** 0.5 * Q96
            assert abs(get_sqrt_ratio_at_tick(tick) - expected) / expected < 1e-12

    def test_invalid_tick_too_low(self):
        with pytest.raises(ValueError):
            get_sqrt_ratio_at_tick(MIN_TICK - 1)

    def test_invalid_tick_too_high(self):
        with pytest.raises(ValueError):
            get_sqrt_ratio_at_tick(MAX_TICK + 1)


class TestGetTickAtSqrtRatio:
    """get_tick_at_sqrt_ratio 테스트"""

    def test_min_sqrt_ratio(self):
        assert get_tick_at_sqrt_ratio(MIN_SQRT_RATIO) == MIN_TICK

    def test_max_sqrt_ratio_minus_one(self):
        assert get_tick_at_sqrt_ratio(MAX_SQRT_RATIO - 1) == MAX_TICK - 1

    def test_sqrt_ratio_at_tick_0(self):
        assert get_tick_at_sqrt_ratio(Q96) == 0

    @pytest.mark.parametrize("tick", [-887220, -50000, -61, -60, -1, 1, 59, 60, 50000, 887220])
    def test_inverse_of_get_sqrt_ratio(self, tick):
        """틱 경계 가격은 그 틱, 바로 아래 가격은 이전 틱"""
        sqrt_price = get_sqrt_ratio_at_tick(tick)
        assert get_tick_at_sqrt_ratio(sqrt_price) == tick
        assert get_tick_at_sqrt_ratio(sqrt_price - 1) == tick - 1

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            get_tick_at_sqrt_ratio(MIN_SQRT_RATIO - 1)
        with pytest.raises(ValueError):
            get_tick_at_sqrt_ratio(MAX_SQRT_RATIO)


class TestTickSpacing:
    """틱 간격 정렬 테스트"""

    def test_floor(self):
        assert floor_tick_to_spacing(61, 60) == 60
        assert floor_tick_to_spacing(60, 60) == 60
        assert floor_tick_to_spacing(-1, 60) == -60

    def test_ceil(self):
        assert ceil_tick_to_spacing(61, 60) == 120
        assert ceil_tick_to_spacing(60, 60) == 60
        assert ceil_tick_to_spacing(-1, 60) == 0
        assert ceil_tick_to_spacing(-61, 60) == -60

    def test_usable_ticks(self):
        """spacing 60의 전체 레인지는 ±887220"""
        assert min_usable_tick(60) == -887220
        assert max_usable_tick(60) == 887220
        assert min_usable_tick(1) == MIN_TICK
        assert max_usable_tick(200) == 887200

    def test_check_ticks(self):
        check_ticks(-887220, 887220, 60)
        with pytest.raises(ValueError):
            check_ticks(60, 60, 60)
        with pytest.raises(ValueError):
            check_ticks(-30, 60, 60)
        with pytest.raises(ValueError):
            check_ticks(-887280, 0, 60)

    def test_ticks_for_log_width(self):
        """로그 폭 0.01 ≈ 100.005틱 → 올림 101"""
        assert ticks_for_log_width(0.01) == 101
        assert ticks_for_log_width(0.0) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
