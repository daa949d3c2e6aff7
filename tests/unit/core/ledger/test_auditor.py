"""LedgerAuditor 테스트"""

from dataclasses import replace
from decimal import Decimal

import pytest

from adapters.mock.ledger_store import MockLedgerStore
from core.ledger.auditor import LedgerAuditor
from core.ledger.balance import BalanceLedger


@pytest.fixture
def auditor(mock_store: MockLedgerStore) -> LedgerAuditor:
    return LedgerAuditor(mock_store)


class TestAuditCustomer:
    """audit_customer 테스트"""

    @pytest.mark.asyncio
    async def test_clean_ledger(self, ledger: BalanceLedger, auditor: LedgerAuditor) -> None:
        """정상 원장"""
        await ledger.record_deal_created("d1", "c1", 1000, "A")
        await ledger.record_exchange_car_credit("d1", "c1", 300, "Dana")

        report = await auditor.audit_customer("c1")

        assert report.ok
        assert report.transaction_count == 2
        assert report.balance == Decimal("-700")
        assert report.chain_gaps == []

    @pytest.mark.asyncio
    async def test_empty_customer(self, auditor: LedgerAuditor) -> None:
        report = await auditor.audit_customer("nobody")

        assert report.ok
        assert report.balance == 0

    @pytest.mark.asyncio
    async def test_cancellation_gap_explained(self, ledger: BalanceLedger, auditor: LedgerAuditor) -> None:
        """딜 취소로 생긴 체인 끊김은 설명됨"""
        await ledger.record_deal_created("d1", "c1", 1000, "A")
        await ledger.record_exchange_car_credit("d2", "c1", 50, "Dana")
        await ledger.record_deal_cancelled("d1", "c1", 1000, "A")

        report = await auditor.audit_customer("c1")

        assert report.ok
        assert len(report.chain_gaps) == 1
        assert report.chain_gaps[0].explained_by == "d1"
        assert report.chain_gaps[0].delta == Decimal("-1000")

    @pytest.mark.asyncio
    async def test_orphaned_debit_detected(self) -> None:
        """정리 실패로 남은 원본 차변"""
        store = MockLedgerStore(fail_deletes=True)
        ledger = BalanceLedger(store)
        await ledger.record_deal_created("d1", "c1", 1000, "A")
        await ledger.record_deal_cancelled("d1", "c1", 1000, "A")

        report = await LedgerAuditor(store).audit_customer("c1")

        assert not report.ok
        assert report.orphaned_deal_ids == ["d1"]
        assert report.chain_gaps == []

    @pytest.mark.asyncio
    async def test_row_error_detected(self, ledger: BalanceLedger, mock_store: MockLedgerStore, auditor: LedgerAuditor) -> None:
        """balance_after 가 맞지 않는 행"""
        await ledger.record_deal_created("d1", "c1", 1000, "A")
        mock_store.transactions[0] = replace(mock_store.transactions[0], balance_after=Decimal("5"))

        report = await auditor.audit_customer("c1")

        assert not report.ok
        assert [tx.reference_id for tx in report.row_errors] == ["d1"]

    @pytest.mark.asyncio
    async def test_unexplained_gap(self, ledger: BalanceLedger, mock_store: MockLedgerStore, auditor: LedgerAuditor) -> None:
        """설명되지 않는 체인 끊김 (수동 삭제 등)"""
        await ledger.record_deal_created("d1", "c1", 1000, "A")
        await ledger.record_deal_created("d2", "c1", 500, "B")
        del mock_store.transactions[0]

        report = await auditor.audit_customer("c1")

        assert not report.ok
        assert len(report.unexplained_gaps) == 1
        assert report.unexplained_gaps[0].expected_before == 0
        assert report.unexplained_gaps[0].actual_before == Decimal("-1000")


class TestCleanup:
    """cleanup_orphans / audit_customers 테스트"""

    @pytest.mark.asyncio
    async def test_cleanup_orphans(self) -> None:
        """남은 원본 차변 삭제 후 정상"""
        store = MockLedgerStore(fail_deletes=True)
        ledger = BalanceLedger(store)
        await ledger.record_deal_created("d1", "c1", 1000, "A")
        await ledger.record_deal_cancelled("d1", "c1", 1000, "A")

        store.fail_deletes = False
        auditor = LedgerAuditor(store)
        removed = await auditor.cleanup_orphans("c1")

        assert removed == 1
        assert (await auditor.audit_customer("c1")).ok
        assert await ledger.get_customer_balance("c1") == 0

    @pytest.mark.asyncio
    async def test_audit_customers(self, ledger: BalanceLedger, auditor: LedgerAuditor) -> None:
        await ledger.record_deal_created("d1", "c1", 10, "A")

        reports = await auditor.audit_customers(["c1", "c2", "c1"])

        assert list(reports) == ["c1", "c2"]
        assert all(report.ok for report in reports.values())
