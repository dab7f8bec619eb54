"""
RebalanceEngine 테스트

reinvest 가드 순서(권한 → 수수료 비율 → TWAP/편차), recenter 레인지 계산,
manager 잔고 인출을 검증합니다.
"""

import pytest

from ..engine import compute_range, fee_within_ratio
from ..errors import FeeTooHigh, InvalidAmount, OracleNotReady, StalePrice, Unauthorized
from ..events import FeesEarned, ManagerBalanceWithdrawn, Recenter, Reinvest
from ..interfaces import VolatilityReading
from ..math.tick_math import get_sqrt_ratio_at_tick
from .conftest import E18, FULL_RANGE, KEEPER, MANAGER, TREASURY, USER0, USER1, VAULT


def slippage_price(vault) -> int:
    """현재가보다 4% 낮은 limit (zero_for_one 방향)"""
    sqrt_price = vault.current_price()
    return sqrt_price - sqrt_price // 25


def activate_params(vault, clock, **changes):
    vault.update_manager_params(MANAGER, **changes)
    clock.advance(300)


class TestFeeRatio:

    def test_boundary_passes(self):
        assert fee_within_ratio(200, 10_000, 200)
        assert not fee_within_ratio(201, 10_000, 200)

    def test_zero_leftover(self):
        assert fee_within_ratio(0, 0, 200)
        assert not fee_within_ratio(1, 0, 10_000)


class TestReinvestGuards:

    def test_only_keeper(self, funded_vault, token0):
        with pytest.raises(Unauthorized) as exc_info:
            funded_vault.reinvest(USER1, get_sqrt_ratio_at_tick(23027), 1000, True, 10, token0.address)
        assert exc_info.value.reason == "Gelatofied: Only gelato"

    def test_observation_history_too_short(self, traded_vault, pool, token0):
        """풀 초기화 직후에는 slippage_interval 만큼의 TWAP이 없다"""
        with pytest.raises(StalePrice) as exc_info:
            traded_vault.reinvest(KEEPER, pool.slot0().sqrt_price_x96, 5000, True, 10, token0.address)
        assert exc_info.value.reason == "OLD"

    def test_fee_ratio_boundary(self, traded_vault, clock, token0, pool):
        clock.advance(300)
        idle0, _ = traded_vault.idle_balances()
        pending0, _ = traded_vault.pending_fees()
        leftover0 = idle0 + pending0
        max_fee = leftover0 * 200 // 10_000
        keeper_before = token0.balance_of(KEEPER)
        liquidity_before = pool.positions(VAULT, *FULL_RANGE).liquidity

        with pytest.raises(FeeTooHigh) as exc_info:
            traded_vault.reinvest(KEEPER, slippage_price(traded_vault), 5000, True, max_fee + 1, token0.address)
        assert exc_info.value.reason == "high fee"
        # 가드는 풀 호출 전에 평가된다
        assert pool.positions(VAULT, *FULL_RANGE).liquidity == liquidity_before
        assert traded_vault.pending_fees()[0] == pending0

        traded_vault.reinvest(KEEPER, slippage_price(traded_vault), 5000, True, max_fee, token0.address)
        assert token0.balance_of(KEEPER) == keeper_before + max_fee

    def test_fee_guard_without_fees(self, funded_vault, clock, token0):
        """수수료도 idle도 없으면 0보다 큰 보상은 거부"""
        clock.advance(300)
        with pytest.raises(FeeTooHigh):
            funded_vault.reinvest(KEEPER, slippage_price(funded_vault), 5000, True, 1, token0.address)

    def test_fee_guard_runs_before_price_guard(self, traded_vault, token0):
        """TWAP이 없어도 과도한 보상은 high fee로 먼저 거부"""
        with pytest.raises(FeeTooHigh):
            traded_vault.reinvest(KEEPER, slippage_price(traded_vault), 5000, True, 10**30, token0.address)

    def test_high_slippage_zero_for_one(self, traded_vault, clock, token1):
        clock.advance(300)
        sqrt_price = traded_vault.current_price()
        limit = sqrt_price * 90 // 100
        with pytest.raises(StalePrice) as exc_info:
            traded_vault.reinvest(KEEPER, limit, 5000, True, 5, token1.address)
        assert exc_info.value.reason == "high slippage"

    def test_high_slippage_one_for_zero(self, traded_vault, clock, token1):
        clock.advance(300)
        sqrt_price = traded_vault.current_price()
        limit = sqrt_price * 110 // 100
        with pytest.raises(StalePrice) as exc_info:
            traded_vault.reinvest(KEEPER, limit, 5000, False, 5, token1.address)
        assert exc_info.value.reason == "high slippage"

    def test_price_deviation(self, traded_vault, clock, token1):
        clock.advance(300)
        with pytest.raises(StalePrice) as exc_info:
            traded_vault.reinvest(KEEPER, slippage_price(traded_vault), 100, True, 5, token1.address)
        assert exc_info.value.reason == "price deviation"

    def test_unknown_fee_token(self, traded_vault, clock):
        clock.advance(300)
        with pytest.raises(InvalidAmount):
            traded_vault.reinvest(KEEPER, slippage_price(traded_vault), 5000, True, 5, "0xother")

    def test_negative_fee(self, traded_vault, clock, token1):
        clock.advance(300)
        with pytest.raises(InvalidAmount):
            traded_vault.reinvest(KEEPER, slippage_price(traded_vault), 5000, True, -1, token1.address)


class TestReinvest:

    def test_redeposits_fees(self, traded_vault, clock, pool, token1):
        activate_params(
            traded_vault, clock,
            rebalance_bps=1000, manager_fee_bps=100, slippage_bps=500, slippage_interval=300,
            fee_recipient=TREASURY,
        )
        liquidity_before = pool.positions(VAULT, *FULL_RANGE).liquidity
        keeper_before = token1.balance_of(KEEPER)

        traded_vault.reinvest(KEEPER, slippage_price(traded_vault), 5000, True, 5, token1.address)

        assert token1.balance_of(KEEPER) - keeper_before == 5
        assert pool.positions(VAULT, *FULL_RANGE).liquidity > liquidity_before
        assert traded_vault.position().liquidity == pool.positions(VAULT, *FULL_RANGE).liquidity
        manager0, manager1 = traded_vault.manager_balances()
        assert manager0 > 0 and manager1 > 0
        assert traded_vault.pending_fees() == (0, 0)

        event = traded_vault.events.of_type(Reinvest)[-1]
        assert event.keeper == KEEPER
        assert event.fee_amount == 5
        assert event.liquidity_after > event.liquidity_before
        assert traded_vault.events.of_type(FeesEarned)

    def test_without_fees_liquidity_unchanged(self, funded_vault, clock, token0):
        clock.advance(300)
        liquidity_before = funded_vault.position().liquidity
        added = funded_vault.reinvest(KEEPER, slippage_price(funded_vault), 5000, True, 0, token0.address)
        assert added == 0
        assert funded_vault.position().liquidity == liquidity_before


class TestRecenter:

    def test_only_keeper(self, funded_vault):
        with pytest.raises(Unauthorized):
            funded_vault.recenter(USER0)

    def test_before_deposits(self, vault, oracle, pool, clock):
        oracle.update(pool)
        clock.advance(3600)
        with pytest.raises(OracleNotReady) as exc_info:
            vault.recenter(KEEPER)
        assert exc_info.value.reason == "Denom != 0"

    def test_without_observations(self, funded_vault):
        with pytest.raises(OracleNotReady):
            funded_vault.recenter(KEEPER)

    def test_moves_liquidity_to_centered_range(self, funded_vault, oracle, pool, trader, clock, token0, token1):
        oracle.update(pool)
        trader.wash_trade(50_000_000_000_000, 100, 2)
        trader.wash_trade(50_000_000_000_000, 100, 3)
        clock.advance(3600)

        new_range = funded_vault.recenter(KEEPER)
        tick = pool.slot0().tick

        assert new_range.lower_tick % 60 == 0 and new_range.upper_tick % 60 == 0
        assert new_range.lower_tick <= tick < new_range.upper_tick
        assert (new_range.lower_tick, new_range.upper_tick) != FULL_RANGE

        position = funded_vault.position()
        assert (position.lower_tick, position.upper_tick) == (new_range.lower_tick, new_range.upper_tick)
        assert position.liquidity > E18
        assert pool.positions(VAULT, *FULL_RANGE).liquidity == 0
        assert pool.positions(VAULT, position.lower_tick, position.upper_tick).liquidity == position.liquidity

        idle0, idle1 = funded_vault.idle_balances()
        assert token0.balance_of(VAULT) == idle0
        assert token1.balance_of(VAULT) == idle1

        event = funded_vault.events.of_type(Recenter)[-1]
        assert (event.lower_tick_before, event.upper_tick_before) == FULL_RANGE
        assert event.liquidity_after == position.liquidity

    def test_burn_after_recenter(self, funded_vault, oracle, pool, trader, clock, token0):
        oracle.update(pool)
        trader.wash_trade(50_000_000_000_000, 100, 2)
        clock.advance(3600)
        funded_vault.recenter(KEEPER)

        funded_vault.burn(USER0, E18, USER0)
        assert funded_vault.total_supply() == 0
        assert funded_vault.position().liquidity == 0
        assert token0.balance_of(VAULT) == funded_vault.idle_balances()[0]


class TestComputeRange:
    """오라클 값 → 레인지"""

    def test_zero_denominator(self):
        with pytest.raises(OracleNotReady):
            compute_range(VolatilityReading(0, 100, 0, 3600), 0, 60, 3000, 2.0, 1.0)
        with pytest.raises(OracleNotReady):
            compute_range(VolatilityReading(0, 100, 10**18, 0), 0, 60, 3000, 2.0, 1.0)

    def test_known_width(self):
        """fee_revenue_per_day / tick_tvl = 1 → σ = 2·sqrt(0.003) ≈ 0.1095, 반폭 ≈ 2191틱"""
        reading = VolatilityReading(tick=0, fee_revenue=1, tick_tvl=86_400, window=1)
        result = compute_range(reading, center_tick=0, tick_spacing=60, fee_pips=3000,
                               sigma_multiplier=2.0, horizon_days=1.0)
        assert (result.lower_tick, result.upper_tick) == (-2220, 2220)
        assert result.sigma == pytest.approx(0.10954, rel=1e-4)

    def test_minimum_one_spacing(self):
        reading = VolatilityReading(tick=0, fee_revenue=0, tick_tvl=10**18, window=3600)
        result = compute_range(reading, center_tick=-10, tick_spacing=60, fee_pips=3000,
                               sigma_multiplier=2.0, horizon_days=1.0)
        assert (result.lower_tick, result.upper_tick) == (-120, 60)

    def test_clamped_to_usable_ticks(self):
        reading = VolatilityReading(tick=0, fee_revenue=10**30, tick_tvl=1, window=1)
        result = compute_range(reading, center_tick=0, tick_spacing=60, fee_pips=3000,
                               sigma_multiplier=2.0, horizon_days=1.0)
        assert (result.lower_tick, result.upper_tick) == FULL_RANGE

    @pytest.mark.parametrize("center_tick, expected", [
        (887_400, (887_160, 887_220)),
        (-887_400, (-887_220, -887_160)),
    ])
    def test_center_beyond_usable_ticks(self, center_tick, expected):
        """중심이 사용 가능 범위 밖이면 가까운 경계 안쪽의 한 간격 레인지"""
        reading = VolatilityReading(tick=0, fee_revenue=0, tick_tvl=10**18, window=3600)
        result = compute_range(reading, center_tick=center_tick, tick_spacing=60, fee_pips=3000,
                               sigma_multiplier=2.0, horizon_days=1.0)
        assert (result.lower_tick, result.upper_tick) == expected


class TestWithdrawManagerBalance:

    def test_pays_fee_recipient_after_burn(self, traded_vault, clock, token0, token1):
        activate_params(traded_vault, clock, rebalance_bps=1000, manager_fee_bps=100, fee_recipient=TREASURY)
        traded_vault.burn(USER0, E18 // 2, USER0)

        owed0, owed1 = traded_vault.manager_balances()
        assert owed0 > 0 and owed1 > 0

        paid = traded_vault.withdraw_manager_balance(MANAGER)
        assert paid == (owed0, owed1)
        assert token0.balance_of(TREASURY) == owed0
        assert token1.balance_of(TREASURY) == owed1
        assert traded_vault.manager_balances() == (0, 0)
        assert traded_vault.events.of_type(ManagerBalanceWithdrawn)[-1].recipient == TREASURY

    def test_fee_recipient_may_call(self, traded_vault, clock):
        activate_params(traded_vault, clock, rebalance_bps=1000, manager_fee_bps=100, fee_recipient=TREASURY)
        traded_vault.burn(USER0, E18 // 2, USER0)
        traded_vault.withdraw_manager_balance(TREASURY)
        assert traded_vault.manager_balances() == (0, 0)

    def test_pays_manager_without_recipient(self, traded_vault, clock, token0):
        activate_params(traded_vault, clock, rebalance_bps=1000, manager_fee_bps=100)
        traded_vault.burn(USER0, E18 // 2, USER0)
        owed0, _ = traded_vault.manager_balances()
        traded_vault.withdraw_manager_balance(MANAGER)
        assert token0.balance_of(MANAGER) == owed0

    def test_other_callers_rejected(self, traded_vault):
        with pytest.raises(Unauthorized):
            traded_vault.withdraw_manager_balance(KEEPER)
        with pytest.raises(Unauthorized):
            traded_vault.withdraw_manager_balance(USER0)

    def test_high_fee_after_reinvest(self, traded_vault, clock, token1):
        """reinvest가 idle을 모두 배치하면 manager 잔고 비율이 가드를 넘는다"""
        activate_params(traded_vault, clock, rebalance_bps=1000, manager_fee_bps=100)
        traded_vault.reinvest(KEEPER, slippage_price(traded_vault), 5000, True, 5, token1.address)
        balances = traded_vault.manager_balances()

        with pytest.raises(FeeTooHigh):
            traded_vault.withdraw_manager_balance(MANAGER)
        assert traded_vault.manager_balances() == balances

    def test_nothing_accrued(self, funded_vault, token0):
        assert funded_vault.withdraw_manager_balance(MANAGER) == (0, 0)
        assert token0.balance_of(MANAGER) == 0
