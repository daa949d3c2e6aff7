"""
고객 원장 타입 정의

TransactionType 등 원장 시스템에서 사용하는 Enum 정의
"""

from enum import Enum


class TransactionType(str, Enum):
    """원장 거래 유형

    customer_transactions.type 컬럼 값.
    str을 상속하여 JSON 직렬화 가능.
    """

    # 딜
    DEAL_CREATED = "deal_created"  # 딜 생성 (차변) / 보상 차량 크레딧
    DEAL_DELETED = "deal_deleted"  # 딜 삭제/취소 (역분개)

    # 영수증
    RECEIPT_CREATED = "receipt_created"
    RECEIPT_DELETED = "receipt_deleted"

    # 계좌이체 지시
    BANK_TRANSFER_ORDER_CREATED = "bank_transfer_order_created"
    BANK_TRANSFER_ORDER_DELETED = "bank_transfer_order_deleted"


class LedgerOperation(str, Enum):
    """원장 행을 생성한 작업

    type 만으로는 구분되지 않는 경우를 구분하기 위해 기록.
    - 보상 차량 크레딧과 딜 차변은 모두 type=deal_created
    - 딜 취소 역분개와 딜 삭제 역분개는 모두 type=deal_deleted
    """

    DEAL_CREATED = "deal_created"
    DEAL_DELETED = "deal_deleted"
    DEAL_CANCELLED = "deal_cancelled"
    RECEIPT_CREATED = "receipt_created"
    RECEIPT_DELETED = "receipt_deleted"
    EXCHANGE_CAR_CREDIT = "exchange_car_credit"
    BANK_TRANSFER_ORDER_CREATED = "bank_transfer_order_created"
    BANK_TRANSFER_ORDER_DELETED = "bank_transfer_order_deleted"


# 작업 → 거래 유형 매핑
OPERATION_TRANSACTION_TYPES: dict[LedgerOperation, TransactionType] = {
    LedgerOperation.DEAL_CREATED: TransactionType.DEAL_CREATED,
    LedgerOperation.DEAL_DELETED: TransactionType.DEAL_DELETED,
    LedgerOperation.DEAL_CANCELLED: TransactionType.DEAL_DELETED,
    LedgerOperation.RECEIPT_CREATED: TransactionType.RECEIPT_CREATED,
    LedgerOperation.RECEIPT_DELETED: TransactionType.RECEIPT_DELETED,
    LedgerOperation.EXCHANGE_CAR_CREDIT: TransactionType.DEAL_CREATED,
    LedgerOperation.BANK_TRANSFER_ORDER_CREATED: TransactionType.BANK_TRANSFER_ORDER_CREATED,
    LedgerOperation.BANK_TRANSFER_ORDER_DELETED: TransactionType.BANK_TRANSFER_ORDER_DELETED,
}


class CancellationOutcome(str, Enum):
    """딜 취소 결과"""

    REVERSED_AND_CLEANED = "reversed_and_cleaned"  # 역분개 + 원본 행 삭제
    REVERSED_CLEANUP_PENDING = "reversed_cleanup_pending"  # 역분개만 성공 (정합 작업 필요)
    NOTHING_TO_REVERSE = "nothing_to_reverse"  # 열린 차변 없음 (이미 취소/삭제됨), 변경 없음
    FAILED = "failed"  # 역분개 실패


class LedgerErrorCode(str, Enum):
    """원장 작업 실패 코드"""

    STORE_UNAVAILABLE = "store_unavailable"
    INVALID_INPUT = "invalid_input"
    CLEANUP_FAILED = "cleanup_failed"
