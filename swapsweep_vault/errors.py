"""
볼트 예외 계층

모든 가드 실패는 VaultError 하위 클래스로 올라오며, 진행 중이던 연산은
전부 롤백된다. reason은 원래 컨트랙트의 revert 문자열과 같다.
"""

from typing import Optional


class VaultError(Exception):
    """볼트 연산 실패의 기본 클래스"""

    default_reason = "vault error"

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class Unauthorized(VaultError):
    """호출자가 해당 엔트리 포인트의 역할을 갖지 않음"""
    default_reason = "unauthorized"


class InvalidAmount(VaultError):
    """0 또는 잘못된 금액"""
    default_reason = "invalid amount"


class InvalidAddress(VaultError):
    """비어 있거나 허용되지 않는 주소"""
    default_reason = "invalid address"


class InvalidParameters(VaultError):
    """매니저 파라미터 검증 실패"""
    default_reason = "invalid parameters"


class InsufficientShares(VaultError):
    """보유량보다 많은 셰어를 소각/전송"""
    default_reason = "burn amount exceeds balance"


class InsufficientAllowance(VaultError):
    """transfer_from 승인량 부족"""
    default_reason = "insufficient allowance"


class FeeTooHigh(VaultError):
    """수수료/잔고 비율이 rebalance_bps를 초과"""
    default_reason = "high fee"


class StalePrice(VaultError):
    """limit 가격이 TWAP/현재가와 맞지 않거나 관측 기록이 부족"""
    default_reason = "OLD"


class OracleNotReady(VaultError):
    """오라클 분모가 0 (관측값 없음 또는 예치 전)"""
    default_reason = "Denom != 0"


class ReentrancyError(VaultError):
    """연산 도중 외부 콜백에서 재진입"""
    default_reason = "ReentrancyGuard: reentrant call"
