"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class Environment(str, Enum):
    """실행 환경 (운영 / 개발)"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class DealType(str, Enum):
    """딜 유형

    알 수 없는 값은 OTHER 로 매핑 (from_value 사용)
    """

    NEW_USED_SALE = "new_used_sale"
    NEW_SALE = "new_sale"
    USED_SALE = "used_sale"
    EXCHANGE = "exchange"  # 보상 판매 (고객 차량 인수)
    INTERMEDIARY = "intermediary"  # 중개
    COMPANY_COMMISSION = "company_commission"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: "str | DealType | None") -> "DealType":
        """문자열에서 생성 (미등록 값은 OTHER)"""
        if isinstance(value, DealType):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OTHER


class BillType(str, Enum):
    """영수증/청구서 유형"""

    TAX_INVOICE = "tax_invoice"
    RECEIPT_ONLY = "receipt_only"
    TAX_INVOICE_RECEIPT = "tax_invoice_receipt"
    GENERAL = "general"

    @property
    def is_receipt(self) -> bool:
        """딜 정산에 반영되는 영수증 유형 여부"""
        return self in (BillType.RECEIPT_ONLY, BillType.TAX_INVOICE_RECEIPT)


class BillDirection(str, Enum):
    """청구서 방향

    POSITIVE: 고객 지불 (잔액 증가)
    NEGATIVE: 비용/공제 (잔액 감소)
    """

    POSITIVE = "positive"
    NEGATIVE = "negative"

    @classmethod
    def from_value(cls, value: "str | BillDirection | None") -> "BillDirection":
        """문자열에서 생성 (negative 외에는 모두 POSITIVE)"""
        if isinstance(value, BillDirection):
            return value
        if str(value or "").strip().lower() == cls.NEGATIVE.value:
            return cls.NEGATIVE
        return cls.POSITIVE


class SettlementStatus(str, Enum):
    """딜 정산 상태"""

    OWED = "owed"  # 미수금 남음
    SETTLED = "settled"  # 정산 완료
    OVERPAID = "overpaid"  # 초과 지불
