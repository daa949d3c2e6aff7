"""
core/domain/models.py 테스트
"""

from decimal import Decimal

import pytest

from core.domain.models import Bill, BillPayment, Deal, LegacyPaymentFields
from core.types import BillDirection, BillType, DealType


class TestLegacyPaymentFields:
    """LegacyPaymentFields 테스트"""

    def test_payment_total_excludes_bill_amount(self) -> None:
        """bill_amount 는 결제 합계에서 제외"""
        legacy = LegacyPaymentFields(
            visa_amount=Decimal("100"),
            cash_amount=Decimal("50"),
            bill_amount=Decimal("1000"),
        )

        assert legacy.payment_total == Decimal("150")

    def test_labels(self) -> None:
        labels = [label for label, _ in LegacyPaymentFields().labeled_amounts()]

        assert labels == ["Visa", "Transfer", "Check", "Cash", "Bank"]


class TestBill:
    """Bill 테스트"""

    def test_defaults(self) -> None:
        bill = Bill(bill_id="1", bill_type=BillType.RECEIPT_ONLY)

        assert bill.direction == BillDirection.POSITIVE
        assert not bill.has_itemized_payments
        assert not bill.is_negative

    def test_itemized(self) -> None:
        bill = Bill(
            bill_id="1",
            bill_type=BillType.RECEIPT_ONLY,
            direction=BillDirection.NEGATIVE,
            payments=(BillPayment(Decimal("10"), "cash"),),
        )

        assert bill.has_itemized_payments
        assert bill.is_negative

    def test_frozen(self) -> None:
        bill = Bill(bill_id="1", bill_type=BillType.GENERAL)

        with pytest.raises(AttributeError):
            bill.bill_id = "2"  # type: ignore[misc]


class TestDeal:
    """Deal 테스트"""

    def test_price_prefers_selling_price(self) -> None:
        deal = Deal(deal_id="1", selling_price=Decimal("300"), amount=Decimal("200"))

        assert deal.price == Decimal("300")

    def test_price_falls_back_to_amount(self) -> None:
        """selling_price 가 없거나 0 이면 amount"""
        assert Deal(deal_id="1", amount=Decimal("200")).price == Decimal("200")
        assert Deal(deal_id="1", selling_price=Decimal("0"), amount=Decimal("200")).price == Decimal("200")

    def test_price_defaults_to_zero(self) -> None:
        assert Deal(deal_id="1").price == Decimal("0")

    def test_trade_in_only_for_exchange(self) -> None:
        """보상 차량 평가액은 exchange 딜에서만"""
        value = Decimal("100000")

        assert Deal(deal_id="1", deal_type=DealType.EXCHANGE, customer_car_eval_value=value).trade_in_value == value
        assert Deal(deal_id="1", deal_type=DealType.NEW_SALE, customer_car_eval_value=value).trade_in_value == 0

    def test_account_customer_id(self) -> None:
        """잔액을 기록할 고객"""
        assert Deal(deal_id="1", customer_id="c1", seller_id="s1").account_customer_id == "c1"

    def test_intermediary_uses_seller_then_buyer(self) -> None:
        """중개 딜은 판매자, 없으면 구매자"""
        with_seller = Deal(deal_id="1", deal_type=DealType.INTERMEDIARY, seller_id="s1", buyer_id="b1")
        buyer_only = Deal(deal_id="1", deal_type=DealType.INTERMEDIARY, buyer_id="b1")

        assert with_seller.account_customer_id == "s1"
        assert buyer_only.account_customer_id == "b1"

    def test_no_customer(self) -> None:
        """일반 딜에 고객 없음"""
        assert Deal(deal_id="1", seller_id="s1").account_customer_id is None
