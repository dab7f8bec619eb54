"""
Share Ledger - 지분 토큰과 비례 소유 회계

셰어는 (포지션 원금 + 미수령 수수료 순액 + idle) 에 대한 비례 청구권이다.
첫 예치는 그 금액으로 살 수 있는 유동성 수를 셰어로 발행해 단위 비율을 정한다.

반올림 규칙: 모든 비율 계산은 0 방향 내림. 예치자가 내는 금액만 올림.
내림으로 생긴 먼지는 항상 idle에 남는다.
"""

import logging
from typing import Tuple, TYPE_CHECKING

from .constants import BPS, SHARE_DECIMALS, VAULT_NAME_PREFIX, VAULT_SYMBOL_PREFIX, VAULT_VERSION
from .errors import InvalidAmount, InvalidAddress, InsufficientShares, InsufficientAllowance
from .events import EventLog, Mint, Burn, FeesEarned
from .math.full_math import mul_div, mul_div_rounding_up
from .math.liquidity_math import get_liquidity_for_amounts, get_amounts_for_liquidity
from .params import ManagerParamsStore
from .position import PositionManager

if TYPE_CHECKING:
    from .state import VaultState

logger = logging.getLogger(__name__)


class ShareLedger:
    """셰어 토큰 장부 + mint/burn 회계

    Args:
        state: 볼트 상태 (ledger, idle, manager_balance)
        positions: 포지션 어댑터
        params: 파라미터 저장소 (manager 수수료율)
        events: 이벤트 로그
        index: 심볼 번호 (예: 1 → "SS-UNI 1")
    """

    decimals = SHARE_DECIMALS

    def __init__(
        self,
        state: "VaultState",
        positions: PositionManager,
        params: ManagerParamsStore,
        events: EventLog,
        index: int = 1,
    ):
        self.state = state
        self.positions = positions
        self.params = params
        self.events = events
        symbol0 = positions.token0.symbol
        symbol1 = positions.token1.symbol
        self.name = f"{VAULT_NAME_PREFIX} V{VAULT_VERSION} {symbol0}/{symbol1}"
        self.symbol = f"{VAULT_SYMBOL_PREFIX} {index}"

    # ------------------------------------------------------------------
    # 토큰 인터페이스
    # ------------------------------------------------------------------

    @property
    def total_supply(self) -> int:
        return self.state.ledger.total_supply

    def balance_of(self, holder: str) -> int:
        return self.state.ledger.balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.state.ledger.allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if not spender:
            raise InvalidAddress("approve to the zero address")
        if amount < 0:
            raise InvalidAmount("negative allowance")
        self.state.ledger.allowances[(owner, spender)] = amount

    def transfer(self, sender: str, to: str, amount: int) -> None:
        self._move(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        allowed = self.allowance(owner, spender)
        if amount > allowed:
            raise InsufficientAllowance()
        self._move(owner, to, amount)
        self.state.ledger.allowances[(owner, spender)] = allowed - amount

    def _move(self, sender: str, to: str, amount: int) -> None:
        if not to:
            raise InvalidAddress("transfer to the zero address")
        if amount < 0:
            raise InvalidAmount("negative transfer")
        balances = self.state.ledger.balances
        if amount > balances.get(sender, 0):
            raise InsufficientShares("transfer amount exceeds balance")
        balances[sender] -= amount
        balances[to] = balances.get(to, 0) + amount

    def _mint_shares(self, receiver: str, amount: int) -> None:
        ledger = self.state.ledger
        ledger.balances[receiver] = ledger.balances.get(receiver, 0) + amount
        ledger.total_supply += amount

    def _burn_shares(self, holder: str, amount: int) -> None:
        ledger = self.state.ledger
        balance = ledger.balances.get(holder, 0)
        if amount > balance:
            raise InsufficientShares()
        ledger.balances[holder] = balance - amount
        ledger.total_supply -= amount

    # ------------------------------------------------------------------
    # 가치 평가
    # ------------------------------------------------------------------

    def underlying_balances(self) -> Tuple[int, int]:
        """예치자 몫 총액: 포지션 원금 + 미수령 수수료(manager 몫 제외) + idle"""
        manager_fee_bps = self.params.effective().manager_fee_bps
        principal0, principal1 = self.positions.position_amounts()
        fee0, fee1 = self.positions.pending_fees()
        fee0 -= fee0 * manager_fee_bps // BPS
        fee1 -= fee1 * manager_fee_bps // BPS
        idle = self.state.idle
        return principal0 + fee0 + idle.amount0, principal1 + fee1 + idle.amount1

    def quote_mint(self, amount0_max: int, amount1_max: int) -> Tuple[int, int, int]:
        """제시한 금액 안에서 가능한 최대 비례 예치 (읽기 전용)

        Returns:
            (amount0_used, amount1_used, shares)

        Raises:
            InvalidAmount: 어느 한쪽이라도 0이거나 발행할 셰어가 0인 경우
        """
        if amount0_max <= 0 or amount1_max <= 0:
            raise InvalidAmount("mint amounts must be positive in both tokens")

        supply = self.total_supply
        if supply == 0:
            sqrt_lower, sqrt_upper = self.positions.range_sqrt_ratios()
            shares = get_liquidity_for_amounts(
                self.positions.current_price(), sqrt_lower, sqrt_upper, amount0_max, amount1_max
            )
        else:
            current0, current1 = self.underlying_balances()
            shares = self._shares_for_amounts(current0, current1, amount0_max, amount1_max, supply)

        if shares == 0:
            raise InvalidAmount("mint amount is zero")
        amount0, amount1 = self._amounts_for_shares(shares)
        return amount0, amount1, shares

    def _shares_for_amounts(self, current0: int, current1: int, amount0_max: int, amount1_max: int, supply: int) -> int:
        if current0 == 0 and current1 == 0:
            raise InvalidAmount("vault holds no assets")
        if current0 == 0:
            return mul_div(amount1_max, supply, current1)
        if current1 == 0:
            return mul_div(amount0_max, supply, current0)
        return min(mul_div(amount0_max, supply, current0), mul_div(amount1_max, supply, current1))

    def _amounts_for_shares(self, shares: int) -> Tuple[int, int]:
        """shares 발행에 필요한 금액 (올림)"""
        supply = self.total_supply
        if supply == 0:
            sqrt_lower, sqrt_upper = self.positions.range_sqrt_ratios()
            return get_amounts_for_liquidity(
                self.positions.current_price(), sqrt_lower, sqrt_upper, shares, round_up=True
            )
        current0, current1 = self.underlying_balances()
        return mul_div_rounding_up(current0, shares, supply), mul_div_rounding_up(current1, shares, supply)

    # ------------------------------------------------------------------
    # mint / burn
    # ------------------------------------------------------------------

    def mint(self, sender: str, mint_amount: int, receiver: str) -> Tuple[int, int, int]:
        """현재 비율로 mint_amount 셰어를 발행

        sender에게서 필요한 금액을 당겨오고, idle에 적립한 뒤 셰어를 발행하고,
        idle 전체를 레인지에 배치한다.

        Returns:
            (amount0, amount1, liquidity_minted)
        """
        if mint_amount <= 0:
            raise InvalidAmount("mint amount is zero")
        if not receiver:
            raise InvalidAddress("mint to the zero address")

        amount0, amount1 = self._amounts_for_shares(mint_amount)
        if amount0 == 0 and amount1 == 0:
            raise InvalidAmount("mint amounts round to zero")

        vault = self.positions.address
        if amount0 > 0:
            self.positions.token0.transfer_from(vault, sender, vault, amount0)
        if amount1 > 0:
            self.positions.token1.transfer_from(vault, sender, vault, amount1)

        self.state.idle.add(amount0, amount1)
        self._mint_shares(receiver, mint_amount)

        idle = self.state.idle
        liquidity_minted = self.positions.deploy(idle.amount0, idle.amount1)

        logger.info(f"Minted {mint_amount} shares to {receiver} for ({amount0}, {amount1}), liquidity +{liquidity_minted}")
        self.events.emit(Mint(receiver, mint_amount, amount0, amount1, liquidity_minted))
        return amount0, amount1, liquidity_minted

    def burn(self, sender: str, burn_amount: int, receiver: str) -> Tuple[int, int, int]:
        """burn_amount 셰어를 소각하고 비례 몫을 receiver에게 지급

        셰어를 먼저 소각하고, 같은 비율의 유동성을 제거한다. 제거 과정에서
        포지션 전체의 수수료가 수확되므로, 소각자는 원금 + idle(새 수수료 포함)의
        비례 몫을 받는다.

        Returns:
            (amount0, amount1, liquidity_burned)
        """
        if burn_amount <= 0:
            raise InvalidAmount("burn amount is zero")
        if not receiver:
            raise InvalidAddress("burn to the zero address")

        supply = self.total_supply
        self._burn_shares(sender, burn_amount)

        liquidity_burned = mul_div(burn_amount, self.state.position.liquidity, supply)
        withdrawn = self.positions.withdraw(liquidity_burned)

        manager_fee_bps = self.params.effective().manager_fee_bps
        fee0, fee1 = self.state.split_fees(withdrawn.fee0, withdrawn.fee1, manager_fee_bps)
        if fee0 or fee1:
            self.events.emit(FeesEarned(fee0, fee1))

        idle = self.state.idle
        amount0 = withdrawn.burn0 + mul_div(idle.amount0 - withdrawn.burn0, burn_amount, supply)
        amount1 = withdrawn.burn1 + mul_div(idle.amount1 - withdrawn.burn1, burn_amount, supply)
        idle.sub(amount0, amount1)

        vault = self.positions.address
        if amount0 > 0:
            self.positions.token0.transfer(vault, receiver, amount0)
        if amount1 > 0:
            self.positions.token1.transfer(vault, receiver, amount1)

        logger.info(f"Burned {burn_amount} shares from {sender}: paid ({amount0}, {amount1}) to {receiver}")
        self.events.emit(Burn(receiver, burn_amount, amount0, amount1, liquidity_burned))
        return amount0, amount1, liquidity_burned
