"""
딜/청구서 도메인 모델

호출자가 이미 조회한 딜, 청구서 데이터를 표준화한 읽기 전용 모델.
모든 금액은 Decimal 타입 사용.
DB 행(dict) → 모델 변환은 core.domain.parsers 참고.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from core.constants import ZERO
from core.types import BillDirection, BillType, DealType


@dataclass(frozen=True)
class BillPayment:
    """청구서의 개별 결제 항목

    Attributes:
        amount: 결제 금액
        payment_type: 결제 수단 (visa, cash, check, transfer, bank_transfer ...)
    """

    amount: Decimal
    payment_type: str = "other"


@dataclass(frozen=True)
class LegacyPaymentFields:
    """구형 단일 결제 필드

    결제 항목(bill_payments) 도입 이전의 청구서 컬럼.
    값이 없거나 숫자가 아니면 0.
    """

    visa_amount: Decimal = ZERO
    transfer_amount: Decimal = ZERO
    check_amount: Decimal = ZERO
    cash_amount: Decimal = ZERO
    bank_amount: Decimal = ZERO
    bill_amount: Decimal = ZERO  # general 청구서 전용

    @property
    def payment_total(self) -> Decimal:
        """결제 수단 필드 합계 (bill_amount 제외)"""
        return (
            self.visa_amount
            + self.transfer_amount
            + self.check_amount
            + self.cash_amount
            + self.bank_amount
        )

    def labeled_amounts(self) -> list[tuple[str, Decimal]]:
        """표시용 (라벨, 금액) 목록"""
        return [
            ("Visa", self.visa_amount),
            ("Transfer", self.transfer_amount),
            ("Check", self.check_amount),
            ("Cash", self.cash_amount),
            ("Bank", self.bank_amount),
        ]


@dataclass(frozen=True)
class Bill:
    """청구서/영수증

    결제 금액은 payments(항목별)가 있으면 그것을, 없으면 legacy 필드를 사용.

    Attributes:
        bill_id: 청구서 ID
        bill_type: 청구서 유형
        direction: 청구서 방향 (positive/negative)
        payments: 항목별 결제 목록 (없으면 빈 tuple)
        legacy: 구형 결제 필드
        deal_id: 연결된 딜 ID
        customer_name: 고객명 (general 청구서)
    """

    bill_id: str
    bill_type: BillType
    direction: BillDirection = BillDirection.POSITIVE
    payments: tuple[BillPayment, ...] = ()
    legacy: LegacyPaymentFields = field(default_factory=LegacyPaymentFields)
    deal_id: str | None = None
    customer_name: str | None = None

    @property
    def has_itemized_payments(self) -> bool:
        """항목별 결제 존재 여부"""
        return len(self.payments) > 0

    @property
    def is_negative(self) -> bool:
        """비용/공제 청구서 여부"""
        return self.direction == BillDirection.NEGATIVE


@dataclass(frozen=True)
class Deal:
    """딜

    Attributes:
        deal_id: 딜 ID
        deal_type: 딜 유형
        selling_price: 판매가 (고객이 지불할 금액)
        amount: 구형 금액 필드 (selling_price 가 없을 때 사용)
        customer_car_eval_value: 보상 차량 평가액 (exchange 딜에서만 의미)
        customer_id: 고객 ID
        seller_id: 판매자 ID (중개 딜)
        buyer_id: 구매자 ID (중개 딜)
        title: 딜 제목
        bills: 딜에 연결된 청구서
    """

    deal_id: str
    deal_type: DealType = DealType.OTHER
    selling_price: Decimal | None = None
    amount: Decimal | None = None
    customer_car_eval_value: Decimal | None = None
    customer_id: str | None = None
    seller_id: str | None = None
    buyer_id: str | None = None
    title: str = "Deal"
    bills: tuple[Bill, ...] = ()

    @property
    def is_exchange(self) -> bool:
        """보상 판매 딜 여부"""
        return self.deal_type == DealType.EXCHANGE

    @property
    def price(self) -> Decimal:
        """딜 금액 (selling_price → amount → 0 순서, 0 은 없는 값으로 취급)"""
        if self.selling_price:
            return self.selling_price
        if self.amount:
            return self.amount
        return ZERO

    @property
    def trade_in_value(self) -> Decimal:
        """보상 차량 크레딧 (exchange 딜이 아니면 0)"""
        if not self.is_exchange or not self.customer_car_eval_value:
            return ZERO
        return self.customer_car_eval_value

    @property
    def account_customer_id(self) -> str | None:
        """잔액을 기록할 고객 ID

        일반 딜은 customer_id.
        중개 딜은 seller_id, 없으면 buyer_id.
        """
        if self.customer_id:
            return self.customer_id
        if self.deal_type == DealType.INTERMEDIARY:
            return self.seller_id or self.buyer_id
        return None
