"""
외부 협력자 인터페이스

볼트 코어는 풀, 오라클, 토큰을 아래 프로토콜로만 사용한다.
swapsweep_vault.chain에 인프로세스 참조 구현이 있다.

EVM의 msg.sender가 없으므로 호출자 주소는 항상 명시적 인자로 넘긴다.
토큰과 풀은 snapshot/restore를 제공해야 한다. 볼트는 실패한 연산이 남긴
외부 변경(토큰 이동, 풀 포지션)을 이것으로 되돌린다.
"""

from typing import Any, Callable, List, NamedTuple, Protocol, Sequence, Tuple


class ObservationTooOld(Exception):
    """요청한 TWAP 구간이 풀의 관측 기록보다 오래됨 (Uniswap 'OLD')"""


class Slot0(NamedTuple):
    sqrt_price_x96: int
    tick: int


class VolatilityReading(NamedTuple):
    """오라클 한 번 읽기의 결과

    - tick: 관측 구간 평균 틱
    - fee_revenue: 관측 구간 동안 활성 유동성이 번 수수료 (token1 환산)
    - tick_tvl: 현재 틱 간격 하나에 걸린 활성 유동성 가치 (token1 환산)
    - window: 관측 구간 길이 (초)
    """
    tick: int
    fee_revenue: int
    tick_tvl: int
    window: int


class TokenLike(Protocol):
    address: str
    symbol: str
    decimals: int

    def balance_of(self, who: str) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> None: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None: ...

    def approve(self, owner: str, spender: str, amount: int) -> None: ...

    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...


class PositionInfoLike(Protocol):
    liquidity: int
    fee_growth_inside_0_last_x128: int
    fee_growth_inside_1_last_x128: int
    tokens_owed_0: int
    tokens_owed_1: int


class TickInfoLike(Protocol):
    liquidity_gross: int
    liquidity_net: int
    fee_growth_outside_0_x128: int
    fee_growth_outside_1_x128: int


# (amount0_owed, amount1_owed) -> None. 풀이 mint 도중 호출하며, 호출자는 여기서 토큰을 지불한다.
MintCallback = Callable[[int, int], None]


class PoolLike(Protocol):
    address: str
    token0: TokenLike
    token1: TokenLike
    fee: int
    tick_spacing: int
    liquidity: int
    fee_growth_global_0_x128: int
    fee_growth_global_1_x128: int

    def slot0(self) -> Slot0: ...

    def positions(self, owner: str, tick_lower: int, tick_upper: int) -> PositionInfoLike: ...

    def ticks(self, tick: int) -> TickInfoLike: ...

    def mint(
        self, recipient: str, tick_lower: int, tick_upper: int, amount: int, callback: MintCallback
    ) -> Tuple[int, int]: ...

    def burn(self, owner: str, tick_lower: int, tick_upper: int, amount: int) -> Tuple[int, int]: ...

    def collect(
        self, owner: str, recipient: str, tick_lower: int, tick_upper: int, amount0_max: int, amount1_max: int
    ) -> Tuple[int, int]: ...

    def observe(self, seconds_agos: Sequence[int]) -> List[int]:
        """각 seconds_ago 시점의 tick cumulative. 기록이 부족하면 ObservationTooOld"""
        ...

    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...


class OracleLike(Protocol):
    def estimate(self, pool: PoolLike) -> VolatilityReading: ...
