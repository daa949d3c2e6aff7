"""
DB 행 → 도메인 모델 변환

호스팅 DB(deals, bills, bill_payments 테이블)에서 조회한 dict 를
core.domain.models 의 모델로 변환.
금액 컬럼은 문자열/숫자/None 이 섞여 있으므로 parse_amount 로 정규화.
"""

from decimal import Decimal
from typing import Any, Iterable

from core.domain.models import Bill, BillPayment, Deal, LegacyPaymentFields
from core.ledger.exceptions import InvalidLedgerInput
from core.types import BillDirection, BillType, DealType
from core.utils.money import parse_amount


def _optional_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _optional_amount(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return parse_amount(value)


def parse_payment(data: dict[str, Any] | BillPayment) -> BillPayment:
    """결제 항목 dict → BillPayment

    예시:
    {"amount": 500, "payment_type": "visa"}
    """
    if isinstance(data, BillPayment):
        return data
    return BillPayment(
        amount=parse_amount(data.get("amount")),
        payment_type=str(data.get("payment_type") or "other"),
    )


def parse_payments(items: Iterable[dict[str, Any] | BillPayment] | None) -> tuple[BillPayment, ...]:
    """결제 항목 목록 변환 (None 이면 빈 tuple)"""
    if not items:
        return ()
    return tuple(parse_payment(item) for item in items)


def parse_bill(
    data: dict[str, Any],
    payments: Iterable[dict[str, Any] | BillPayment] | None = None,
) -> Bill:
    """bills 행 → Bill 모델

    payments 인자가 없으면 행의 bill_payments 를 사용.

    예시:
    {
        "id": 17,
        "bill_type": "receipt_only",
        "bill_direction": "positive",
        "cash_amount": "200000",
        "bill_payments": [{"amount": 500, "payment_type": "visa"}],
        "deal_id": 3
    }

    Raises:
        InvalidLedgerInput: bill_type 이 없거나 알 수 없는 값인 경우
    """
    raw_type = data.get("bill_type")
    try:
        bill_type = BillType(str(raw_type or "").strip().lower())
    except ValueError as e:
        raise InvalidLedgerInput(
            f"Unknown bill type: {raw_type!r}",
            details={"bill_id": data.get("id"), "bill_type": raw_type},
        ) from e

    if payments is None:
        payments = data.get("bill_payments")

    return Bill(
        bill_id=str(data.get("id", "")),
        bill_type=bill_type,
        direction=BillDirection.from_value(data.get("bill_direction")),
        payments=parse_payments(payments),
        legacy=LegacyPaymentFields(
            visa_amount=parse_amount(data.get("visa_amount")),
            transfer_amount=parse_amount(data.get("transfer_amount")),
            check_amount=parse_amount(data.get("check_amount")),
            cash_amount=parse_amount(data.get("cash_amount")),
            bank_amount=parse_amount(data.get("bank_amount")),
            bill_amount=parse_amount(data.get("bill_amount")),
        ),
        deal_id=_optional_id(data.get("deal_id")),
        customer_name=data.get("customer_name"),
    )


def parse_deal(data: dict[str, Any]) -> Deal:
    """deals 행 → Deal 모델

    bills 키가 있으면 함께 변환.

    예시:
    {
        "id": 3,
        "deal_type": "exchange",
        "selling_price": 350000,
        "customer_car_eval_value": "100000",
        "customer_id": 12,
        "title": "Mazda 3",
        "bills": [...]
    }
    """
    bills = tuple(
        bill if isinstance(bill, Bill) else parse_bill(bill)
        for bill in (data.get("bills") or [])
    )

    return Deal(
        deal_id=str(data.get("id", "")),
        deal_type=DealType.from_value(data.get("deal_type")),
        selling_price=_optional_amount(data.get("selling_price")),
        amount=_optional_amount(data.get("amount")),
        customer_car_eval_value=_optional_amount(data.get("customer_car_eval_value")),
        customer_id=_optional_id(data.get("customer_id")),
        seller_id=_optional_id(data.get("seller_id")),
        buyer_id=_optional_id(data.get("buyer_id")),
        title=str(data.get("title") or "Deal"),
        bills=bills,
    )
