"""
ERC20Token - 인프로세스 ERC20 참조 구현

잔고, 승인량, transfer / transfer_from / approve와 테스트용 mint(faucet).
"""

import copy
import logging
from typing import Dict, Tuple

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """토큰 전송 실패 (잔고/승인량 부족, 잘못된 주소)"""


class ERC20Token:
    """ERC20 잔고 장부

    Args:
        address: 토큰 주소
        symbol: 심볼 (예: "WETH")
        decimals: 소수 자릿수
    """

    def __init__(self, address: str, symbol: str, decimals: int = 18):
        self.address = address
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

    def balance_of(self, who: str) -> int:
        return self._balances.get(who, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise TokenError("ERC20: negative mint")
        self._balances[to] = self.balance_of(to) + amount
        self.total_supply += amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if not spender:
            raise TokenError("ERC20: approve to the zero address")
        self._allowances[(owner, spender)] = amount

    def transfer(self, sender: str, to: str, amount: int) -> None:
        self._move(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        allowed = self.allowance(owner, spender)
        if amount > allowed:
            raise TokenError("ERC20: transfer amount exceeds allowance")
        self._move(owner, to, amount)
        self._allowances[(owner, spender)] = allowed - amount

    def _move(self, sender: str, to: str, amount: int) -> None:
        if not to:
            raise TokenError("ERC20: transfer to the zero address")
        if amount < 0:
            raise TokenError("ERC20: negative transfer")
        balance = self.balance_of(sender)
        if amount > balance:
            raise TokenError(f"ERC20: transfer amount exceeds balance ({self.symbol} {sender})")
        self._balances[sender] = balance - amount
        self._balances[to] = self.balance_of(to) + amount

    def snapshot(self):
        return copy.deepcopy((self.total_supply, self._balances, self._allowances))

    def restore(self, snapshot) -> None:
        self.total_supply, self._balances, self._allowances = copy.deepcopy(snapshot)

    def __repr__(self) -> str:
        return f"ERC20Token({self.symbol}@{self.address})"
