"""
SwapSweep Vault - 공개 엔트리 포인트

모든 상태 변경 연산은 _transaction() 안에서 실행된다:
- 재진입 금지 (풀 콜백 등에서 다시 들어오면 ReentrancyError)
- VaultState와 풀, 두 토큰 스냅샷. 실패 시 모두 복원 (당겨온 토큰은 돌려준다)
- 이벤트는 성공한 연산만 기록

사용법:
    vault = SwapSweepVault("vault", pool, oracle, manager="alice", keeper="gelato",
                           lower_tick=-887220, upper_tick=887220, clock=clock)
    vault.approve(...)
    amount0, amount1, liquidity = vault.mint("bob", shares, "bob")
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Optional, Tuple, Union

from .clock import Clock, SystemClock
from .config import settings
from .engine import RangeWidth, RebalanceEngine
from .errors import ReentrancyError
from .events import EventLog, OwnershipTransferStarted, OwnershipTransferred
from .interfaces import OracleLike, PoolLike
from .ledger import ShareLedger
from .math.tick_math import check_ticks
from .params import ManagerParameters, ManagerParamsStore, ParamsState, build_params
from .position import PositionManager
from .roles import RoleConfig
from .state import Position, VaultState

logger = logging.getLogger(__name__)


class SwapSweepVault:
    """Uniswap V3 단일 레인지 볼트

    Args:
        address: 볼트 주소 (토큰 잔고와 풀 포지션의 소유자)
        pool: 유동성을 공급할 풀
        oracle: recenter 변동성 오라클
        manager: 초기 manager
        keeper: reinvest / recenter 호출자
        lower_tick, upper_tick: 초기 레인지 (tick spacing 배수)
        clock: 타임락 시간원 (기본 SystemClock)
        params: 초기 ManagerParameters (기본값은 settings)
        timelock_delay: 파라미터 변경 지연 (초)
        index: 셰어 심볼 번호
    """

    def __init__(
        self,
        address: str,
        pool: PoolLike,
        oracle: OracleLike,
        manager: str,
        keeper: str,
        lower_tick: int,
        upper_tick: int,
        clock: Optional[Clock] = None,
        params: Optional[Union[ManagerParameters, dict]] = None,
        timelock_delay: Optional[int] = None,
        index: int = 1,
        sigma_multiplier: Optional[float] = None,
        horizon_days: Optional[float] = None,
    ):
        if not manager or not keeper:
            raise ValueError("manager와 keeper 주소가 필요합니다")
        check_ticks(lower_tick, upper_tick, pool.tick_spacing)

        if params is None:
            params = build_params(**settings.default_params())
        elif isinstance(params, dict):
            params = build_params(**params)

        self.address = address
        self.pool = pool
        self.clock = clock or SystemClock()
        self.events = EventLog()
        self.state = VaultState(
            roles=RoleConfig(manager=manager, keeper=keeper),
            params=ParamsState(active=params),
            position=Position(lower_tick, upper_tick),
        )

        delay = settings.TIMELOCK_DELAY if timelock_delay is None else timelock_delay
        self.params = ManagerParamsStore(self.state, self.clock, delay, self.events)
        self.positions = PositionManager(self.state, pool, address)
        self.ledger = ShareLedger(self.state, self.positions, self.params, self.events, index=index)
        self.engine = RebalanceEngine(
            self.state,
            self.positions,
            self.params,
            oracle,
            self.events,
            sigma_multiplier=settings.SIGMA_MULTIPLIER if sigma_multiplier is None else sigma_multiplier,
            horizon_days=settings.HORIZON_DAYS if horizon_days is None else horizon_days,
        )
        self._collaborators = (pool, pool.token0, pool.token1)
        self._entered = False

        logger.info(f"Vault {self.ledger.symbol} created on pool {pool.address}: [{lower_tick}, {upper_tick}]")

    @contextmanager
    def _transaction(self, name: str):
        if self._entered:
            raise ReentrancyError()
        self._entered = True
        snapshot = self.state.snapshot()
        external = [contract.snapshot() for contract in self._collaborators]
        self.events.begin()
        try:
            yield
        except Exception as exc:
            for contract, saved in zip(self._collaborators, external):
                contract.restore(saved)
            self.state.restore(snapshot)
            self.events.rollback()
            logger.debug(f"{name} reverted: {exc!r}")
            raise
        else:
            self.events.commit()
        finally:
            self._entered = False

    # ------------------------------------------------------------------
    # 셰어 토큰
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.ledger.name

    @property
    def symbol(self) -> str:
        return self.ledger.symbol

    @property
    def decimals(self) -> int:
        return self.ledger.decimals

    def total_supply(self) -> int:
        return self.ledger.total_supply

    def balance_of(self, holder: str) -> int:
        return self.ledger.balance_of(holder)

    def allowance(self, owner: str, spender: str) -> int:
        return self.ledger.allowance(owner, spender)

    def approve(self, sender: str, spender: str, amount: int) -> None:
        with self._transaction("approve"):
            self.ledger.approve(sender, spender, amount)

    def transfer(self, sender: str, to: str, amount: int) -> None:
        with self._transaction("transfer"):
            self.ledger.transfer(sender, to, amount)

    def transfer_from(self, sender: str, owner: str, to: str, amount: int) -> None:
        with self._transaction("transfer_from"):
            self.ledger.transfer_from(sender, owner, to, amount)

    # ------------------------------------------------------------------
    # 예치 / 인출
    # ------------------------------------------------------------------

    def quote_mint(self, amount0_max: int, amount1_max: int) -> Tuple[int, int, int]:
        return self.ledger.quote_mint(amount0_max, amount1_max)

    def mint(self, sender: str, mint_amount: int, receiver: str) -> Tuple[int, int, int]:
        with self._transaction("mint"):
            return self.ledger.mint(sender, mint_amount, receiver)

    def burn(self, sender: str, burn_amount: int, receiver: str) -> Tuple[int, int, int]:
        with self._transaction("burn"):
            return self.ledger.burn(sender, burn_amount, receiver)

    # ------------------------------------------------------------------
    # keeper
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
        with self._transaction("reinvest"):
            return self.engine.reinvest(sender, limit_price, max_slippage_bps, zero_for_one, fee_amount, fee_token)

    def recenter(self, sender: str) -> RangeWidth:
        with self._transaction("recenter"):
            return self.engine.recenter(sender)

    # ------------------------------------------------------------------
    # manager
    # ------------------------------------------------------------------

    def update_manager_params(
        self,
        sender: str,
        rebalance_bps: Optional[int] = None,
        fee_recipient: Optional[str] = None,
        manager_fee_bps: Optional[int] = None,
        slippage_bps: Optional[int] = None,
        slippage_interval: Optional[int] = None,
    ) -> ManagerParameters:
        with self._transaction("update_manager_params"):
            return self.params.propose(
                sender,
                rebalance_bps=rebalance_bps,
                fee_recipient=fee_recipient,
                manager_fee_bps=manager_fee_bps,
                slippage_bps=slippage_bps,
                slippage_interval=slippage_interval,
            )

    def withdraw_manager_balance(self, sender: str) -> Tuple[int, int]:
        with self._transaction("withdraw_manager_balance"):
            return self.engine.withdraw_manager_balance(sender)

    def transfer_ownership(self, sender: str, new_manager: str) -> None:
        """1단계: 새 manager 후보 지정. 후보가 accept_ownership을 호출해야 완료"""
        with self._transaction("transfer_ownership"):
            roles = self.state.roles
            self.state.roles = roles.nominate(sender, new_manager)
            logger.info(f"Ownership transfer started: {roles.manager} -> {new_manager}")
            self.events.emit(OwnershipTransferStarted(roles.manager, new_manager))

    def accept_ownership(self, sender: str) -> None:
        with self._transaction("accept_ownership"):
            previous = self.state.roles.manager
            self.state.roles = self.state.roles.accept(sender)
            logger.info(f"Ownership transferred: {previous} -> {sender}")
            self.events.emit(OwnershipTransferred(previous, sender))

    def renounce_ownership(self, sender: str) -> None:
        """manager를 비우고 manager 수수료를 끈다. 누적 manager 잔고는 예치자 몫(idle)으로 환원"""
        with self._transaction("renounce_ownership"):
            previous = self.state.roles.manager
            self.state.roles = self.state.roles.renounce(sender)
            self.params.clear_manager_fee()

            balance = self.state.manager_balance
            self.state.idle.add(balance.amount0, balance.amount1)
            balance.sub(balance.amount0, balance.amount1)

            logger.info(f"Ownership renounced by {previous}")
            self.events.emit(OwnershipTransferred(previous, None))

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    @property
    def manager(self) -> Optional[str]:
        return self.state.roles.manager

    @property
    def pending_manager(self) -> Optional[str]:
        return self.state.roles.pending_manager

    @property
    def keeper(self) -> str:
        return self.state.roles.keeper

    def position(self) -> Position:
        return replace(self.state.position)

    def idle_balances(self) -> Tuple[int, int]:
        return self.state.idle.as_tuple()

    def manager_balances(self) -> Tuple[int, int]:
        return self.state.manager_balance.as_tuple()

    def pending_fees(self) -> Tuple[int, int]:
        """collect 시 받게 될 수수료 (manager 몫 포함)"""
        return self.positions.pending_fees()

    def underlying_balances(self) -> Tuple[int, int]:
        return self.ledger.underlying_balances()

    def manager_params(self) -> ManagerParameters:
        return self.params.effective()

    def pending_manager_params(self) -> Optional[ManagerParameters]:
        return self.params.pending()

    def current_price(self) -> int:
        return self.positions.current_price()

    # ------------------------------------------------------------------
    # Chain 스냅샷
    # ------------------------------------------------------------------

    def snapshot(self):
        return self.state.snapshot(), len(self.events.records)

    def restore(self, snapshot) -> None:
        state, record_count = snapshot
        self.state.restore(state.snapshot())
        del self.events.records[record_count:]
