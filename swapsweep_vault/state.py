"""
볼트 상태

볼트가 소유한 모든 가변 상태를 하나의 VaultState에 모은다.
연산 단위 원자성은 이 객체의 snapshot/restore 한 번으로 보장된다.
"""

import copy
from dataclasses import dataclass, field, fields
from typing import Dict, Tuple

from .constants import BPS
from .params import ParamsState
from .roles import RoleConfig


@dataclass
class TokenPair:
    """(token0, token1) 금액 쌍"""
    amount0: int = 0
    amount1: int = 0

    def add(self, amount0: int, amount1: int) -> None:
        self.amount0 += amount0
        self.amount1 += amount1

    def sub(self, amount0: int, amount1: int) -> None:
        if amount0 > self.amount0 or amount1 > self.amount1:
            raise ValueError(f"잔고 부족: ({self.amount0}, {self.amount1}) - ({amount0}, {amount1})")
        self.amount0 -= amount0
        self.amount1 -= amount1

    def as_tuple(self) -> Tuple[int, int]:
        return self.amount0, self.amount1


@dataclass
class Position:
    """볼트의 단일 활성 레인지"""
    lower_tick: int
    upper_tick: int
    liquidity: int = 0


@dataclass
class LedgerState:
    """셰어 토큰 장부. sum(balances) == total_supply"""
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[Tuple[str, str], int] = field(default_factory=dict)
    total_supply: int = 0


@dataclass
class VaultState:
    roles: RoleConfig
    params: ParamsState
    position: Position
    ledger: LedgerState = field(default_factory=LedgerState)
    idle: TokenPair = field(default_factory=TokenPair)
    manager_balance: TokenPair = field(default_factory=TokenPair)

    def snapshot(self) -> "VaultState":
        return copy.deepcopy(self)

    def restore(self, snapshot: "VaultState") -> None:
        """같은 객체를 유지한 채 스냅샷 시점으로 되돌린다 (컴포넌트들이 이 객체를 참조)"""
        for f in fields(self):
            setattr(self, f.name, getattr(snapshot, f.name))

    def split_fees(self, fee0: int, fee1: int, manager_fee_bps: int) -> Tuple[int, int]:
        """idle에 이미 적립된 수수료에서 manager 몫을 떼어 manager_balance로 옮긴다

        Returns:
            예치자 몫 (net0, net1)
        """
        cut0 = fee0 * manager_fee_bps // BPS
        cut1 = fee1 * manager_fee_bps // BPS
        self.idle.sub(cut0, cut1)
        self.manager_balance.add(cut0, cut1)
        return fee0 - cut0, fee1 - cut1
