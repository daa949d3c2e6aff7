"""
원장 거래 모델

NewTransaction: 저장 전 거래 (잔액 스냅샷 없음)
LedgerTransaction: 저장된 거래 (저장 시점의 잔액 스냅샷 포함, 불변)
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.ledger.types import OPERATION_TRANSACTION_TYPES, LedgerOperation, TransactionType
from core.utils.money import parse_amount
from core.utils.timezone import parse_iso, to_iso


@dataclass(frozen=True)
class NewTransaction:
    """저장 전 원장 거래

    balance_before / balance_after 는 저장소가 append 시점에
    해당 고객의 최신 잔액으로부터 계산한다.

    Attributes:
        customer_id: 고객 ID
        type: 거래 유형
        amount: 부호 있는 잔액 변화량 (+ 크레딧 / - 차변)
        reference_id: 원본 딜 또는 청구서 ID
        description: 설명
        operation: 거래를 생성한 원장 작업
    """

    customer_id: str
    type: TransactionType
    amount: Decimal
    reference_id: str
    description: str
    operation: LedgerOperation

    @classmethod
    def for_operation(
        cls,
        operation: LedgerOperation,
        customer_id: str,
        amount: Decimal,
        reference_id: str,
        description: str,
    ) -> "NewTransaction":
        """작업에 맞는 거래 유형으로 생성"""
        return cls(
            customer_id=customer_id,
            type=OPERATION_TRANSACTION_TYPES[operation],
            amount=amount,
            reference_id=reference_id,
            description=description,
            operation=operation,
        )

    def persisted(
        self,
        seq: int,
        balance_before: Decimal,
        created_at: datetime,
    ) -> "LedgerTransaction":
        """저장 결과로 LedgerTransaction 생성"""
        return LedgerTransaction(
            seq=seq,
            customer_id=self.customer_id,
            type=self.type,
            amount=self.amount,
            balance_before=balance_before,
            balance_after=balance_before + self.amount,
            reference_id=self.reference_id,
            description=self.description,
            operation=self.operation,
            created_at=created_at,
        )


@dataclass(frozen=True)
class LedgerTransaction:
    """저장된 원장 거래 (customer_transactions 행)

    불변식: balance_after == balance_before + amount
    """

    seq: int
    customer_id: str
    type: TransactionType
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    reference_id: str
    description: str
    operation: LedgerOperation
    created_at: datetime

    @property
    def is_consistent(self) -> bool:
        """행 단위 산술 검증"""
        return self.balance_after == self.balance_before + self.amount

    @property
    def is_deal_debit(self) -> bool:
        """딜 생성 차변 행 여부 (취소 시 삭제 대상)"""
        return self.operation == LedgerOperation.DEAL_CREATED

    def to_row(self) -> dict[str, Any]:
        """저장/직렬화용 dict (금액은 문자열)"""
        return {
            "seq": self.seq,
            "customer_id": self.customer_id,
            "type": self.type.value,
            "amount": str(self.amount),
            "balance_before": str(self.balance_before),
            "balance_after": str(self.balance_after),
            "reference_id": self.reference_id,
            "description": self.description,
            "operation": self.operation.value,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "LedgerTransaction":
        """customer_transactions 행 → LedgerTransaction"""
        return cls(
            seq=int(row["seq"]),
            customer_id=str(row["customer_id"]),
            type=TransactionType(row["type"]),
            amount=parse_amount(row["amount"]),
            balance_before=parse_amount(row["balance_before"]),
            balance_after=parse_amount(row["balance_after"]),
            reference_id=str(row["reference_id"]),
            description=row.get("description") or "",
            operation=LedgerOperation(row["operation"]),
            created_at=parse_iso(row["created_at"]),
        )
