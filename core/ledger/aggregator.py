"""
Payment Aggregator

청구서 하나의 결제 금액을 부호 있는 단일 금액으로 합산.

우선순위:
1. 항목별 결제(payments)가 하나라도 있으면 그 합계만 사용 (legacy 필드 무시)
2. 없으면 legacy 필드 합계 (general 청구서는 bill_amount 포함)

부호는 입력값과 무관하게 방향으로 결정 (음수 입력 실수 방지):
- negative → -abs(합계)
- positive → abs(합계)
"""

from decimal import Decimal
from typing import Iterable

from core.constants import Defaults, ZERO
from core.domain.models import Bill, BillPayment
from core.types import BillDirection, BillType
from core.utils.money import format_amount


def _resolve_payments(
    bill: Bill,
    payments: Iterable[BillPayment] | None,
) -> tuple[BillPayment, ...]:
    """인자로 받은 결제 목록이 비어 있으면 청구서 자체 목록 사용"""
    if payments:
        return tuple(payments)
    return bill.payments


def raw_payment_total(
    bill: Bill,
    payments: Iterable[BillPayment] | None = None,
    include_bill_amount: bool = True,
) -> Decimal:
    """방향 적용 전 결제 합계

    Args:
        bill: 청구서
        payments: 항목별 결제 (없으면 bill.payments)
        include_bill_amount: general 청구서의 bill_amount 포함 여부

    Returns:
        부호 보정 전 합계
    """
    items = _resolve_payments(bill, payments)
    if items:
        return sum((item.amount for item in items), ZERO)

    total = bill.legacy.payment_total
    if include_bill_amount and bill.bill_type == BillType.GENERAL:
        total += bill.legacy.bill_amount
    return total


def aggregate(
    bill: Bill,
    direction: BillDirection | str | None = None,
    payments: Iterable[BillPayment] | None = None,
) -> Decimal:
    """청구서 결제 금액 (부호 포함)

    Args:
        bill: 청구서
        direction: 적용할 방향 (None 이면 bill.direction)
        payments: 항목별 결제 (없으면 bill.payments)

    Returns:
        부호 있는 합계. 결제 정보가 없으면 0.

    Example:
        >>> bill = Bill(bill_id="1", bill_type=BillType.RECEIPT_ONLY)
        >>> aggregate(bill, "negative", [BillPayment(Decimal("50"), "cash"),
        ...                              BillPayment(Decimal("30"), "visa")])
        Decimal('-80')
    """
    resolved = BillDirection.from_value(direction) if direction is not None else bill.direction
    total = abs(raw_payment_total(bill, payments))

    if resolved == BillDirection.NEGATIVE:
        return -total
    return total


def describe(
    bill: Bill,
    payments: Iterable[BillPayment] | None = None,
    currency_symbol: str = Defaults.CURRENCY_SYMBOL,
) -> str:
    """결제 내역 설명 문자열

    예: "visa: ₪500, cash: ₪200"
    금액이 0 이하인 항목은 생략, 아무것도 없으면 "Payment".
    """
    parts: list[str] = []

    items = _resolve_payments(bill, payments)
    if items:
        for item in items:
            if item.amount > 0:
                parts.append(f"{item.payment_type}: {format_amount(item.amount, currency_symbol)}")
    else:
        for label, amount in bill.legacy.labeled_amounts():
            if amount > 0:
                parts.append(f"{label}: {format_amount(amount, currency_symbol)}")

    return ", ".join(parts) or "Payment"
