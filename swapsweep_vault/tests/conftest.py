"""
공용 픽스처

토큰 두 개, 가격 1로 초기화된 수수료 3000 / spacing 60 풀, 오라클,
전체 레인지 [-887220, 887220] 볼트, 자금과 승인을 갖춘 사용자 두 명, 수동 시계.
"""

import pytest

from ..chain import Chain, ERC20Token, SimulatedPool, VolatilityOracle, WashTrader
from ..clock import ManualClock
from ..constants import Q96, UINT256_MAX
from ..vault import SwapSweepVault

MANAGER = "0xmanager"
KEEPER = "0xgelato"
TREASURY = "0xtreasury"
USER0 = "0xuser0"
USER1 = "0xuser1"
VAULT = "0xvault"
POOL = "0xpool"

FULL_RANGE = (-887220, 887220)
E18 = 10**18

DEFAULT_PARAMS = dict(
    rebalance_bps=200,
    fee_recipient=None,
    manager_fee_bps=0,
    slippage_bps=500,
    slippage_interval=300,
)


def mint_with_amounts(vault: SwapSweepVault, amount0: int, amount1: int, receiver: str):
    """제시 금액으로 가능한 최대 셰어를 receiver가 직접 발행"""
    _, _, shares = vault.quote_mint(amount0, amount1)
    vault.mint(receiver, shares, receiver)
    return shares


@pytest.fixture
def clock():
    return ManualClock(1_700_000_000)


@pytest.fixture
def chain(clock):
    return Chain(clock)


@pytest.fixture
def token0(chain):
    return chain.register(ERC20Token("0xtoken0", "TOKEN"))


@pytest.fixture
def token1(chain):
    return chain.register(ERC20Token("0xtoken1", "TOKEN"))


@pytest.fixture
def pool(chain, clock, token0, token1):
    pool = chain.register(SimulatedPool(POOL, token0, token1, 3000, clock))
    pool.initialize(Q96)
    return pool


@pytest.fixture
def oracle(chain, clock):
    return chain.register(VolatilityOracle(clock))


@pytest.fixture
def vault(chain, clock, pool, oracle, token0, token1):
    vault = SwapSweepVault(
        VAULT,
        pool,
        oracle,
        manager=MANAGER,
        keeper=KEEPER,
        lower_tick=FULL_RANGE[0],
        upper_tick=FULL_RANGE[1],
        clock=clock,
        params=DEFAULT_PARAMS,
        timelock_delay=300,
        index=1,
    )
    for user in (USER0, USER1):
        token0.mint(user, 1000 * E18)
        token1.mint(user, 1000 * E18)
        token0.approve(user, VAULT, UINT256_MAX)
        token1.approve(user, VAULT, UINT256_MAX)
    return chain.register(vault)


@pytest.fixture
def trader(pool, token0, token1):
    trader = WashTrader("0xtrader", pool)
    token0.mint(trader.address, 10**24)
    token1.mint(trader.address, 10**24)
    return trader


@pytest.fixture
def funded_vault(vault):
    """USER0가 (1e18, 1e18)을 예치한 볼트"""
    mint_with_amounts(vault, E18, E18, USER0)
    return vault


@pytest.fixture
def traded_vault(funded_vault, trader):
    """예치 후 수수료를 발생시키는 반복 스왑을 거친 볼트"""
    trader.wash_trade(50_000_000_000_000, 100, 2)
    trader.wash_trade(50_000_000_000_000, 100, 3)
    trader.wash_trade(50_000_000_000_000, 100, 3)
    trader.wash_trade(50_000_000_000_000, 100, 3)
    return funded_vault
