"""
원장 예외 정의

저장소는 실패 시 StoreUnavailable 을 발생시키고,
BalanceLedger 는 쓰기 작업에서 이를 실패 결과(LedgerResult)로 변환.
"""

from typing import Any

from core.ledger.types import LedgerErrorCode


class LedgerError(Exception):
    """원장 예외 기본 클래스

    Args:
        message: 에러 메시지
        details: 로그용 부가 정보
    """

    code: LedgerErrorCode = LedgerErrorCode.STORE_UNAVAILABLE

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class StoreUnavailable(LedgerError):
    """원장 저장소 읽기/쓰기 실패

    DB 연결 끊김, 타임아웃, SQL 오류 등.
    """

    code = LedgerErrorCode.STORE_UNAVAILABLE


class InvalidLedgerInput(LedgerError):
    """잘못된 입력 (음수 판매가, 빈 고객 ID, 알 수 없는 청구서 유형 등)"""

    code = LedgerErrorCode.INVALID_INPUT


class PartialCleanupFailure(LedgerError):
    """딜 취소 시 역분개는 성공했으나 원본 deal_created 행 삭제 실패"""

    code = LedgerErrorCode.CLEANUP_FAILED
