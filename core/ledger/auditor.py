"""
Ledger Auditor

고객 원장의 잔액 체인 정합성 검사 및 딜 취소 후 남은 원본 행 정리.

검사 항목:
1. 행 불일치: balance_after != balance_before + amount
2. 체인 끊김: 이전 행의 balance_after != 다음 행의 balance_before
   (첫 행은 0 에서 시작해야 함)
   - 딜 취소 후 원본 deal_created 행이 삭제되면 끊김이 생김.
     끊긴 크기가 해당 취소 역분개 금액과 같으면 "설명된 끊김"으로 분류.
3. 고아 차변: 취소 역분개가 있는데 원본 deal_created 행이 남아 있음
   (취소 정리 단계 실패 흔적)
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from core.constants import ZERO
from core.ledger.transaction import LedgerTransaction
from core.ledger.types import LedgerOperation

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)


@dataclass
class ChainGap:
    """잔액 체인 끊김"""
    seq: int  # 끊김 직후 행
    expected_before: Decimal
    actual_before: Decimal
    explained_by: str | None = None  # 설명하는 취소 딜 ID

    @property
    def delta(self) -> Decimal:
        return self.actual_before - self.expected_before


@dataclass
class AuditReport:
    """고객 원장 감사 결과"""
    customer_id: str
    transaction_count: int = 0
    balance: Decimal = ZERO
    row_errors: list[LedgerTransaction] = field(default_factory=list)
    chain_gaps: list[ChainGap] = field(default_factory=list)
    orphaned_deal_ids: list[str] = field(default_factory=list)

    @property
    def unexplained_gaps(self) -> list[ChainGap]:
        return [gap for gap in self.chain_gaps if gap.explained_by is None]

    @property
    def ok(self) -> bool:
        return not self.row_errors and not self.unexplained_gaps and not self.orphaned_deal_ids


class LedgerAuditor:
    """원장 감사기

    BalanceLedger 와 같은 저장소를 읽기 전용으로 검사.
    cleanup_orphans 만 저장소를 변경한다.

    Args:
        store: 원장 저장소
    """

    def __init__(self, store: "ILedgerStore"):
        self.store = store

    @staticmethod
    def inspect(customer_id: str, transactions: list[LedgerTransaction]) -> AuditReport:
        """거래 목록 검사 (원장 순서 가정)"""
        report = AuditReport(customer_id=customer_id, transaction_count=len(transactions))

        cancellations = [
            tx for tx in transactions if tx.operation == LedgerOperation.DEAL_CANCELLED
        ]
        cancelled_ids = {tx.reference_id for tx in cancellations}
        unused = list(cancellations)

        expected_before = ZERO
        for tx in transactions:
            if not tx.is_consistent:
                report.row_errors.append(tx)

            if tx.balance_before != expected_before:
                gap = ChainGap(
                    seq=tx.seq,
                    expected_before=expected_before,
                    actual_before=tx.balance_before,
                )
                # 삭제된 딜 차변(-price)만큼 체인이 비어 있음
                for reversal in unused:
                    if gap.delta == -reversal.amount:
                        gap.explained_by = reversal.reference_id
                        unused.remove(reversal)
                        break
                report.chain_gaps.append(gap)

            expected_before = tx.balance_after

        report.orphaned_deal_ids = sorted({
            tx.reference_id
            for tx in transactions
            if tx.is_deal_debit and tx.reference_id in cancelled_ids
        })
        report.balance = transactions[-1].balance_after if transactions else ZERO
        return report

    async def audit_customer(self, customer_id: str) -> AuditReport:
        """고객 한 명 감사

        Raises:
            StoreUnavailable: 저장소 오류
        """
        transactions = await self.store.list_transactions(customer_id)
        report = self.inspect(customer_id, transactions)

        if report.ok:
            logger.debug(f"Ledger audit passed: {customer_id}")
        else:
            logger.warning(
                f"Ledger audit found issues for customer {customer_id}",
                extra={
                    "row_errors": len(report.row_errors),
                    "unexplained_gaps": len(report.unexplained_gaps),
                    "orphaned_deal_ids": report.orphaned_deal_ids,
                },
            )
        return report

    async def audit_customers(self, customer_ids: list[str]) -> dict[str, AuditReport]:
        """여러 고객 감사"""
        reports: dict[str, AuditReport] = {}
        for customer_id in dict.fromkeys(customer_ids):
            reports[customer_id] = await self.audit_customer(customer_id)
        return reports

    async def cleanup_orphans(self, customer_id: str) -> int:
        """취소된 딜의 남은 원본 차변 행 삭제

        Returns:
            삭제된 행 수
        """
        report = await self.audit_customer(customer_id)
        deleted = 0
        for deal_id in report.orphaned_deal_ids:
            removed = await self.store.delete_deal_debits(customer_id, deal_id)
            deleted += removed
            logger.info(
                f"Removed {removed} orphaned deal transaction(s)",
                extra={"customer_id": customer_id, "deal_id": deal_id},
            )
        return deleted
