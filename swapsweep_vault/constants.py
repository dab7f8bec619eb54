"""
SwapSweep Vault 상수 정의

- Q96 / Q128 / Q192: Uniswap V3 고정소수점 인코딩
- BPS: basis point 분모 (10000 = 100%)
- FEE_DENOMINATOR: 풀 수수료 단위 (3000 = 0.30%)
- 틱 범위, 토큰/볼트 메타데이터
"""

from typing import Dict

# Fixed-point 인코딩 상수
Q96: int = 2 ** 96
Q128: int = 2 ** 128
Q192: int = 2 ** 192

UINT256_MAX: int = 2 ** 256 - 1
UINT128_MAX: int = 2 ** 128 - 1

# basis points
BPS: int = 10_000

# 풀 수수료는 1e6 분모 (3000 = 0.30%)
FEE_DENOMINATOR: int = 1_000_000

# 수수료 티어별 틱 간격
TICK_SPACINGS: Dict[int, int] = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}

# 틱 범위 상수
MIN_TICK: int = -887272
MAX_TICK: int = 887272

# 셰어 토큰 메타데이터
SHARE_DECIMALS: int = 18
VAULT_VERSION: int = 1
VAULT_NAME_PREFIX: str = "SwapSweep Vault"
VAULT_SYMBOL_PREFIX: str = "SS-UNI"

# 오라클 기반 레인지 계산
SECONDS_PER_DAY: int = 86_400
