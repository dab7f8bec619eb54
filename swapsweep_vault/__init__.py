"""
SwapSweep Vault

Uniswap V3 단일 레인지 유동성 볼트. 예치자에게 비례 지분(셰어)을 발행하고,
keeper가 수수료를 재투자(reinvest)하거나 변동성 기반으로 레인지를 재설정(recenter)한다.
manager 파라미터 변경은 타임락을 거친다.
"""

__version__ = "0.1.0"

from .errors import (
    VaultError,
    Unauthorized,
    InvalidAmount,
    InvalidAddress,
    InvalidParameters,
    InsufficientShares,
    InsufficientAllowance,
    FeeTooHigh,
    StalePrice,
    OracleNotReady,
    ReentrancyError,
)
from .clock import ManualClock, SystemClock
from .params import ManagerParameters
from .roles import RoleConfig
from .vault import SwapSweepVault
