"""
Deal Settlement Calculator

딜 하나의 미수/초과 잔액 계산.
원장 저장소를 사용하지 않는 순수 함수 (호출자가 조회한 딜/청구서만 사용).

계산 규칙:
1. 판매가를 음수(채무)로 시작
2. exchange 딜은 보상 차량 평가액을 크레딧으로 더함
3. receipt_only / tax_invoice_receipt 청구서의 결제를 반영
   - tax_invoice_receipt: 방향과 무관하게 항상 더함
     (이 유형의 방향은 세무 분류용이며 현금 흐름이 아님)
   - receipt_only: negative 면 빼고 그 외에는 더함
4. 0 초과(초과 지불)도 그대로 허용 (clamp 없음)

예시: 판매가 350k, 보상 차량 100k
- 시작: -350k + 100k = -250k
- 200k 결제 후: -50k
- 300k 추가 결제 후: +250k (초과 지불)
"""

from decimal import Decimal
from typing import Iterable

from core.constants import ZERO
from core.domain.models import Bill, Deal
from core.ledger.aggregator import raw_payment_total
from core.types import BillType, SettlementStatus


def receipt_effect(bill: Bill) -> Decimal:
    """청구서 하나가 딜 정산 잔액에 미치는 영향

    영수증 유형이 아니면 0.
    영수증 결제 금액에는 bill_amount 를 포함하지 않음.
    """
    if not bill.bill_type.is_receipt:
        return ZERO

    amount = abs(raw_payment_total(bill, include_bill_amount=False))

    if bill.bill_type == BillType.TAX_INVOICE_RECEIPT:
        return amount
    if bill.is_negative:
        return -amount
    return amount


def settlement_balance(deal: Deal, bills: Iterable[Bill] | None = None) -> Decimal:
    """딜 정산 잔액

    Args:
        deal: 딜
        bills: 딜에 연결된 청구서 (None 이면 deal.bills)

    Returns:
        음수: 미수금, 0: 정산 완료, 양수: 초과 지불
    """
    balance = -abs(deal.price)

    if deal.trade_in_value:
        balance += abs(deal.trade_in_value)

    for bill in deal.bills if bills is None else bills:
        balance += receipt_effect(bill)

    return balance


def settlement_status(balance: Decimal) -> SettlementStatus:
    """정산 잔액 → 상태"""
    if balance < 0:
        return SettlementStatus.OWED
    if balance > 0:
        return SettlementStatus.OVERPAID
    return SettlementStatus.SETTLED


class DealSettlementCalculator:
    """딜 정산 계산기

    상태가 없으므로 여러 번, 동시에 호출해도 같은 결과.

    사용 예시:
    ```python
    calculator = DealSettlementCalculator()

    balance = calculator.calculate(deal)
    if calculator.status(deal) == SettlementStatus.OWED:
        print(f"미수금: {-balance}")
    ```
    """

    def calculate(self, deal: Deal, bills: Iterable[Bill] | None = None) -> Decimal:
        """정산 잔액 계산"""
        return settlement_balance(deal, bills)

    def status(self, deal: Deal, bills: Iterable[Bill] | None = None) -> SettlementStatus:
        """정산 상태"""
        return settlement_status(settlement_balance(deal, bills))

    def outstanding(self, deal: Deal, bills: Iterable[Bill] | None = None) -> Decimal:
        """남은 미수금 (정산/초과 지불이면 0)"""
        balance = settlement_balance(deal, bills)
        return -balance if balance < 0 else ZERO
