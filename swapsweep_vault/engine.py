"""
Rebalance Engine - keeper 유지보수 연산

- reinvest: 수수료를 수확해 keeper 보상을 지급하고 나머지를 같은 레인지에 재배치
- recenter: 오라클 변동성으로 새 레인지 폭을 정하고 현재 가격 중심으로 재배치
- withdraw_manager_balance: manager 누적 수수료 지급 (reinvest와 같은 비율 가드)

모든 가드는 풀/토큰 상태를 바꾸기 전에 평가한다. reinvest의 수수료 가드는
collect 전에 fee growth로 미리 계산한 미수령 수수료를 사용한다.

포지션 상태:
    Empty (liquidity == 0)  --recenter-->  Deployed
    Deployed                --reinvest-->  Deployed (liquidity 증가 또는 유지)
    Deployed                --recenter-->  Deployed (새 레인지)
"""

import logging
import math
from typing import NamedTuple, Tuple

from .constants import BPS, FEE_DENOMINATOR, SECONDS_PER_DAY
from .errors import FeeTooHigh, InvalidAmount, OracleNotReady, StalePrice, Unauthorized
from .events import EventLog, FeesEarned, Reinvest, Recenter, ManagerBalanceWithdrawn
from .interfaces import OracleLike, VolatilityReading
from .math.full_math import mul_div
from .math.tick_math import (
    ceil_tick_to_spacing,
    floor_tick_to_spacing,
    max_usable_tick,
    min_usable_tick,
    ticks_for_log_width,
)
from .params import ManagerParameters, ManagerParamsStore
from .position import PositionManager
from .state import VaultState

logger = logging.getLogger(__name__)


class RangeWidth(NamedTuple):
    """recenter가 계산한 새 레인지"""
    lower_tick: int
    upper_tick: int
    sigma: float  # 일간 변동성 추정치


def fee_within_ratio(fee_amount: int, leftover: int, rebalance_bps: int) -> bool:
    """fee_amount / leftover <= rebalance_bps / 10000 (경계값 포함)"""
    return fee_amount * BPS <= leftover * rebalance_bps


def compute_range(
    reading: VolatilityReading,
    center_tick: int,
    tick_spacing: int,
    fee_pips: int,
    sigma_multiplier: float,
    horizon_days: float,
) -> RangeWidth:
    """오라클 값으로 새 레인지 계산

    σ_day = 2 * sqrt(γ * fee_revenue_per_day / tick_tvl)
    half_width = ceil(k * σ_day * sqrt(horizon) / ln(1.0001)), 최소 tick spacing 하나

    Raises:
        OracleNotReady: tick_tvl * window == 0 (관측 없음 또는 예치 전)
    """
    denominator = reading.tick_tvl * reading.window
    if denominator == 0:
        raise OracleNotReady("Denom != 0")

    gamma = fee_pips / FEE_DENOMINATOR
    revenue_per_day = reading.fee_revenue * SECONDS_PER_DAY / denominator
    sigma = 2 * math.sqrt(gamma * revenue_per_day)

    half_width = max(ticks_for_log_width(sigma_multiplier * sigma * math.sqrt(horizon_days)), tick_spacing)

    min_tick, max_tick = min_usable_tick(tick_spacing), max_usable_tick(tick_spacing)
    lower = max(floor_tick_to_spacing(center_tick - half_width, tick_spacing), min_tick)
    upper = min(ceil_tick_to_spacing(center_tick + half_width, tick_spacing), max_tick)
    if lower >= upper:
        # 중심이 사용 가능 범위 밖: 가까운 경계에 붙은 한 간격짜리 레인지
        if upper == max_tick:
            lower = max_tick - tick_spacing
        else:
            upper = min_tick + tick_spacing
    return RangeWidth(lower, upper, sigma)


class RebalanceEngine:
    """reinvest / recenter / withdraw_manager_balance 오케스트레이션

    Args:
        state: 볼트 상태
        positions: 포지션 어댑터
        params: 타임락 파라미터 저장소
        oracle: 변동성 오라클
        events: 이벤트 로그
        sigma_multiplier: recenter 레인지 반폭 = multiplier × σ
        horizon_days: σ를 늘릴 기간 (일)
    """

    def __init__(
        self,
        state: VaultState,
        positions: PositionManager,
        params: ManagerParamsStore,
        oracle: OracleLike,
        events: EventLog,
        sigma_multiplier: float = 2.0,
        horizon_days: float = 1.0,
    ):
        self.state = state
        self.positions = positions
        self.params = params
        self.oracle = oracle
        self.events = events
        self.sigma_multiplier = sigma_multiplier
        self.horizon_days = horizon_days

    # ------------------------------------------------------------------
    # reinvest
    # ------------------------------------------------------------------

    def reinvest(
        self,
        sender: str,
        limit_price: int,
        max_slippage_bps: int,
        zero_for_one: bool,
        fee_amount: int,
        fee_token: str,
    ) -> int:
        """수수료 수확 → keeper 보상 지급 → idle 전체 재배치

        Args:
            sender: 호출자 (keeper여야 함)
            limit_price: keeper가 관측한 sqrtPriceX96
            max_slippage_bps: limit_price와 현재가의 최대 허용 편차
            zero_for_one: 가격 방향 (TWAP 대비 limit 허용 방향)
            fee_amount: keeper 보상
            fee_token: keeper 보상 토큰 주소

        Returns:
            새로 추가된 유동성
        """
        self.state.roles.require_keeper(sender)
        if fee_amount < 0:
            raise InvalidAmount("negative fee amount")
        token_index = self._token_index(fee_token)

        params = self.params.effective()

        # 1) 수수료 가드: collect 후의 leftover를 미리 계산
        pending0, pending1 = self.positions.pending_fees()
        cut0 = pending0 * params.manager_fee_bps // BPS
        cut1 = pending1 * params.manager_fee_bps // BPS
        idle = self.state.idle
        leftover = (idle.amount0 + pending0 - cut0, idle.amount1 + pending1 - cut1)[token_index]
        if not fee_within_ratio(fee_amount, leftover, params.rebalance_bps):
            raise FeeTooHigh("high fee")

        # 2) 가격 가드
        self._check_slippage(limit_price, max_slippage_bps, zero_for_one, params)

        # 3) 수확, 보상, 재배치
        liquidity_before = self.state.position.liquidity
        withdrawn = self.positions.withdraw(0)
        fee0, fee1 = self.state.split_fees(withdrawn.fee0, withdrawn.fee1, params.manager_fee_bps)
        if fee0 or fee1:
            self.events.emit(FeesEarned(fee0, fee1))

        if fee_amount > 0:
            if token_index == 0:
                idle.sub(fee_amount, 0)
            else:
                idle.sub(0, fee_amount)
            token = self.positions.token0 if token_index == 0 else self.positions.token1
            token.transfer(self.positions.address, sender, fee_amount)

        liquidity_added = self.positions.deploy(idle.amount0, idle.amount1)
        liquidity_after = self.state.position.liquidity

        logger.info(
            f"Reinvest by {sender}: fees ({withdrawn.fee0}, {withdrawn.fee1}), keeper fee {fee_amount}, "
            f"liquidity {liquidity_before} -> {liquidity_after}"
        )
        self.events.emit(Reinvest(sender, fee_token, fee_amount, liquidity_before, liquidity_after))
        return liquidity_added

    def _check_slippage(
        self, limit_price: int, max_slippage_bps: int, zero_for_one: bool, params: ManagerParameters
    ) -> None:
        """limit 가격 검증

        - 관측 기록이 slippage_interval보다 짧으면 "OLD"
        - zero_for_one이면 limit >= TWAP × (1 - slippage), 아니면 limit <= TWAP × (1 + slippage)
        - 현재가 대비 편차가 max_slippage_bps 초과면 거부
        """
        if limit_price <= 0:
            raise StalePrice("invalid limit price")

        twap = self.positions.twap_sqrt_price(params.slippage_interval)
        if zero_for_one:
            if limit_price < mul_div(twap, BPS - params.slippage_bps, BPS):
                raise StalePrice("high slippage")
        else:
            if limit_price > mul_div(twap, BPS + params.slippage_bps, BPS):
                raise StalePrice("high slippage")

        current = self.positions.current_price()
        if abs(limit_price - current) * BPS > current * max_slippage_bps:
            raise StalePrice("price deviation")

    # ------------------------------------------------------------------
    # recenter
    # ------------------------------------------------------------------

    def recenter(self, sender: str) -> RangeWidth:
        """현재 가격 중심, 오라클 변동성 폭으로 레인지 재설정

        유동성 100%를 제거(수수료 수확 포함)한 뒤 새 레인지에 idle 전체를 배치한다.
        """
        self.state.roles.require_keeper(sender)

        reading = self.oracle.estimate(self.positions.pool)
        if reading.tick_tvl * reading.window == 0:
            logger.warning(f"Oracle not ready for recenter: {reading}")
        new_range = compute_range(
            reading,
            center_tick=self.positions.current_tick(),
            tick_spacing=self.positions.pool.tick_spacing,
            fee_pips=self.positions.pool.fee,
            sigma_multiplier=self.sigma_multiplier,
            horizon_days=self.horizon_days,
        )

        params = self.params.effective()
        old = self.state.position
        old_lower, old_upper = old.lower_tick, old.upper_tick

        withdrawn = self.positions.withdraw(old.liquidity)
        fee0, fee1 = self.state.split_fees(withdrawn.fee0, withdrawn.fee1, params.manager_fee_bps)
        if fee0 or fee1:
            self.events.emit(FeesEarned(fee0, fee1))

        self.positions.replace_range(new_range.lower_tick, new_range.upper_tick)
        idle = self.state.idle
        self.positions.deploy(idle.amount0, idle.amount1)
        liquidity_after = self.state.position.liquidity

        logger.info(
            f"Recenter by {sender}: [{old_lower}, {old_upper}] -> "
            f"[{new_range.lower_tick}, {new_range.upper_tick}] (sigma={new_range.sigma:.4f}), liquidity {liquidity_after}"
        )
        self.events.emit(Recenter(old_lower, old_upper, new_range.lower_tick, new_range.upper_tick, liquidity_after))
        return new_range

    # ------------------------------------------------------------------
    # manager balance
    # ------------------------------------------------------------------

    def withdraw_manager_balance(self, sender: str) -> Tuple[int, int]:
        """manager 누적 수수료를 수령인에게 지급

        reinvest와 같은 rebalance_bps 비율 가드를 현재 idle 기준으로 적용한다.

        Returns:
            지급한 (amount0, amount1)
        """
        params = self.params.effective()
        roles = self.state.roles
        recipient = params.fee_recipient or roles.manager
        if not (roles.is_manager(sender) or (params.fee_recipient is not None and sender == params.fee_recipient)):
            raise Unauthorized("caller is not the manager or fee recipient")

        balance = self.state.manager_balance
        idle = self.state.idle
        for owed, leftover in ((balance.amount0, idle.amount0), (balance.amount1, idle.amount1)):
            if owed > 0 and not fee_within_ratio(owed, leftover, params.rebalance_bps):
                raise FeeTooHigh("high fee")

        amount0, amount1 = balance.as_tuple()
        balance.sub(amount0, amount1)

        vault = self.positions.address
        if amount0 > 0:
            self.positions.token0.transfer(vault, recipient, amount0)
        if amount1 > 0:
            self.positions.token1.transfer(vault, recipient, amount1)

        logger.info(f"Manager balance ({amount0}, {amount1}) withdrawn to {recipient}")
        self.events.emit(ManagerBalanceWithdrawn(recipient, amount0, amount1))
        return amount0, amount1

    def _token_index(self, token: str) -> int:
        if token == self.positions.token0.address:
            return 0
        if token == self.positions.token1.address:
            return 1
        raise InvalidAmount(f"fee token {token} is not a vault token")
