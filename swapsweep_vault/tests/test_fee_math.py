"""
Fee Math 테스트

백서 Section 6.3, 6.4 기반 수수료 계산 함수들을 테스트합니다.
"""

import pytest

from ..math.fee_math import (
    fee_growth_above,
    fee_growth_below,
    fee_growth_inside,
    fee_growth_delta,
    tokens_owed_delta,
    calculate_uncollected_fees,
)
from ..constants import Q128


class TestFeeGrowthAbove:
    """fee_growth_above 테스트 (f_a)"""

    def test_current_tick_above_target(self):
        """현재 틱이 타겟 틱 위에 있을 때: f_a = f_g - f_o"""
        result = fee_growth_above(tick_idx=100, current_tick=150,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 700

    def test_current_tick_at_target(self):
        """현재 틱이 타겟 틱과 같을 때: f_a = f_g - f_o"""
        result = fee_growth_above(tick_idx=100, current_tick=100,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 700

    def test_current_tick_below_target(self):
        """현재 틱이 타겟 틱 아래에 있을 때: f_a = f_o"""
        result = fee_growth_above(tick_idx=100, current_tick=50,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 300


class TestFeeGrowthBelow:
    """fee_growth_below 테스트 (f_b)"""

    def test_current_tick_above_target(self):
        """현재 틱이 타겟 틱 위에 있을 때: f_b = f_o"""
        result = fee_growth_below(tick_idx=100, current_tick=150,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 300

    def test_current_tick_below_target(self):
        """현재 틱이 타겟 틱 아래에 있을 때: f_b = f_g - f_o"""
        result = fee_growth_below(tick_idx=100, current_tick=50,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 700


class TestFeeGrowthInside:
    """fee_growth_inside 테스트 (f_r = f_g - f_b(i_l) - f_a(i_u))"""

    def test_current_tick_in_range(self):
        """현재 틱이 범위 내: 1000 - 100 - 200"""
        result = fee_growth_inside(
            tick_lower=100, tick_upper=200, current_tick=150,
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200
        )
        assert result == 700

    def test_current_tick_below_range(self):
        """현재 틱이 범위 아래: 음수는 2^256 래핑"""
        result = fee_growth_inside(
            tick_lower=100, tick_upper=200, current_tick=50,
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200
        )
        # f_b = 900, f_a = 200 → -100
        assert result == 2**256 - 100

    def test_current_tick_above_range(self):
        """현재 틱이 범위 위"""
        result = fee_growth_inside(
            tick_lower=100, tick_upper=200, current_tick=250,
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200
        )
        assert result == 100


class TestTokensOwed:
    """tokens_owed_delta / fee_growth_delta 테스트"""

    def test_basic_calculation(self):
        """f_u = l × Δf_r / 2^128"""
        result = tokens_owed_delta(1_000_000, 500 * Q128, 100 * Q128)
        assert result == 1_000_000 * 400

    def test_zero_delta(self):
        assert tokens_owed_delta(1_000_000, 100 * Q128, 100 * Q128) == 0

    def test_rounds_down(self):
        """Q128 미만 성장분은 버림"""
        assert tokens_owed_delta(1, Q128 - 1, 0) == 0

    def test_underflow_wraparound(self):
        assert fee_growth_delta(100, 200) == 2**256 - 100

    def test_wrapped_growth_still_counts(self):
        """global이 2^256을 넘어 래핑되어도 델타는 양수"""
        last = 2**256 - Q128
        current = Q128  # 2 × Q128 성장 후 래핑
        assert tokens_owed_delta(10, current, last) == 20


class TestCalculateUncollectedFees:
    """calculate_uncollected_fees 테스트"""

    def test_in_range_position(self):
        """레인지 안 포지션: 두 토큰 모두 fee growth 비례"""
        fees = calculate_uncollected_fees(
            liquidity=10**18,
            tick_lower=-60,
            tick_upper=60,
            current_tick=0,
            fee_growth_global_0=3 * Q128,
            fee_growth_global_1=5 * Q128,
            fee_growth_outside_lower_0=Q128,
            fee_growth_outside_lower_1=Q128,
            fee_growth_outside_upper_0=0,
            fee_growth_outside_upper_1=0,
            fee_growth_inside_last_0=0,
            fee_growth_inside_last_1=2 * Q128,
        )
        # inside_0 = 3 - 1 - 0 = 2, inside_1 = 5 - 1 - 0 = 4
        assert fees.fee_growth_inside_0 == 2 * Q128
        assert fees.fee_growth_inside_1 == 4 * Q128
        assert fees.fees0 == 2 * 10**18
        assert fees.fees1 == 2 * 10**18

    def test_out_of_range_position_earns_nothing_new(self):
        """레인지 밖에서는 inside가 변하지 않는다"""
        kwargs = dict(
            liquidity=10**18,
            tick_lower=60,
            tick_upper=120,
            current_tick=0,
            fee_growth_outside_lower_0=0,
            fee_growth_outside_lower_1=0,
            fee_growth_outside_upper_0=0,
            fee_growth_outside_upper_1=0,
        )
        before = calculate_uncollected_fees(
            fee_growth_global_0=Q128, fee_growth_global_1=Q128,
            fee_growth_inside_last_0=0, fee_growth_inside_last_1=0, **kwargs
        )
        after = calculate_uncollected_fees(
            fee_growth_global_0=9 * Q128, fee_growth_global_1=9 * Q128,
            fee_growth_inside_last_0=before.fee_growth_inside_0,
            fee_growth_inside_last_1=before.fee_growth_inside_1, **kwargs
        )
        assert after.fees0 == 0
        assert after.fees1 == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
