"""LedgerStore 통합 테스트 (SQLite)"""

import asyncio
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import TableNames
from core.ledger.exceptions import StoreUnavailable
from core.ledger.store import BATCH_SIZE, LedgerStore
from core.ledger.transaction import NewTransaction
from core.ledger.types import LedgerOperation, TransactionType
from core.utils.timezone import to_iso


def _tx(customer_id: str = "c1", amount: str = "-100", operation: LedgerOperation = LedgerOperation.DEAL_CREATED, reference_id: str = "d1") -> NewTransaction:
    return NewTransaction.for_operation(
        operation=operation,
        customer_id=customer_id,
        amount=Decimal(amount),
        reference_id=reference_id,
        description=f"{operation.value}: {reference_id}",
    )


class TestAppendTransaction:
    """append_transaction 테스트"""

    @pytest.mark.asyncio
    async def test_first_transaction_starts_at_zero(self, sqlite_store: LedgerStore) -> None:
        saved = await sqlite_store.append_transaction(_tx())

        assert saved.seq >= 1
        assert saved.balance_before == 0
        assert saved.balance_after == Decimal("-100")

    @pytest.mark.asyncio
    async def test_round_trip_through_table(self, sqlite_store: LedgerStore) -> None:
        """저장 결과와 조회 결과 일치"""
        saved = await sqlite_store.append_transaction(_tx())
        second = await sqlite_store.append_transaction(
            _tx(amount="40.50", operation=LedgerOperation.RECEIPT_CREATED, reference_id="b1"),
        )

        history = await sqlite_store.list_transactions("c1")

        assert history == [saved, second]
        assert history[1].type == TransactionType.RECEIPT_CREATED
        assert history[1].balance_after == Decimal("-59.50")

    @pytest.mark.asyncio
    async def test_decimal_precision_kept(self, sqlite_store: LedgerStore) -> None:
        """금액은 TEXT 로 저장 (부동소수점 오차 없음)"""
        for amount in ("0.1", "0.2"):
            await sqlite_store.append_transaction(_tx(amount=amount))

        assert await sqlite_store.latest_balance("c1") == Decimal("0.3")

    @pytest.mark.asyncio
    async def test_created_at_never_goes_backwards(self, db: SQLiteAdapter, sqlite_store: LedgerStore) -> None:
        """시계 역행에도 created_at 단조 증가"""
        await sqlite_store.append_transaction(_tx())
        await db.execute(
            f"UPDATE {TableNames.CUSTOMER_TRANSACTIONS} SET created_at = ?",
            ("2999-01-01T00:00:00.000000+00:00",),
        )

        saved = await sqlite_store.append_transaction(_tx(amount="5"))

        assert to_iso(saved.created_at) == "2999-01-01T00:00:00.000000+00:00"
        assert saved.balance_before == Decimal("-100")
        assert await sqlite_store.latest_balance("c1") == Decimal("-95")

    @pytest.mark.asyncio
    async def test_concurrent_appends_serialized(self, sqlite_store: LedgerStore) -> None:
        """동시 append → 갱신 손실 없음"""
        await asyncio.gather(*[sqlite_store.append_transaction(_tx(amount="1")) for _ in range(25)])

        history = await sqlite_store.list_transactions("c1")
        assert len(history) == 25
        assert history[-1].balance_after == Decimal("25")
        for previous, current in zip(history, history[1:]):
            assert current.balance_before == previous.balance_after

    @pytest.mark.asyncio
    async def test_closed_connection_raises(self, db: SQLiteAdapter, sqlite_store: LedgerStore) -> None:
        """연결 끊김 → StoreUnavailable"""
        await db.close()

        with pytest.raises(StoreUnavailable):
            await sqlite_store.append_transaction(_tx())
        with pytest.raises(StoreUnavailable):
            await sqlite_store.latest_balance("c1")

    @pytest.mark.asyncio
    async def test_missing_table_raises(self, tmp_path) -> None:
        """스키마 없음 → StoreUnavailable, 행 없음"""
        async with SQLiteAdapter(tmp_path / "empty.db") as adapter:
            store = LedgerStore(adapter)

            with pytest.raises(StoreUnavailable):
                await store.append_transaction(_tx())


class TestDeleteDealDebits:
    """delete_deal_debits 테스트"""

    @pytest.mark.asyncio
    async def test_only_matching_debits(self, sqlite_store: LedgerStore) -> None:
        """같은 딜의 deal_created 작업 행만 삭제"""
        await sqlite_store.append_transaction(_tx())
        await sqlite_store.append_transaction(_tx(amount="30", operation=LedgerOperation.EXCHANGE_CAR_CREDIT))
        await sqlite_store.append_transaction(_tx(reference_id="d2"))
        await sqlite_store.append_transaction(_tx(customer_id="c2"))

        deleted = await sqlite_store.delete_deal_debits("c1", "d1")

        assert deleted == 1
        remaining = await sqlite_store.list_transactions("c1")
        assert [(tx.operation, tx.reference_id) for tx in remaining] == [
            (LedgerOperation.EXCHANGE_CAR_CREDIT, "d1"),
            (LedgerOperation.DEAL_CREATED, "d2"),
        ]
        assert len(await sqlite_store.list_transactions("c2")) == 1

    @pytest.mark.asyncio
    async def test_nothing_to_delete(self, sqlite_store: LedgerStore) -> None:
        assert await sqlite_store.delete_deal_debits("c1", "missing") == 0


class TestBalances:
    """latest_balance / latest_balances 테스트"""

    @pytest.mark.asyncio
    async def test_unknown_customer(self, sqlite_store: LedgerStore) -> None:
        assert await sqlite_store.latest_balance("nobody") == 0

    @pytest.mark.asyncio
    async def test_bulk_matches_single_reads(self, sqlite_store: LedgerStore) -> None:
        """일괄 조회 = 개별 조회"""
        for index, customer_id in enumerate(["c1", "c2", "c3", "c1"]):
            await sqlite_store.append_transaction(_tx(customer_id=customer_id, amount=str(-(index + 1) * 10)))

        ids = ["c1", "c2", "c3", "c4", "c1"]
        balances = await sqlite_store.latest_balances(ids)

        assert set(balances) == {"c1", "c2", "c3", "c4"}
        for customer_id in set(ids):
            assert balances[customer_id] == await sqlite_store.latest_balance(customer_id)
        assert balances["c1"] == Decimal("-50")
        assert balances["c4"] == 0

    @pytest.mark.asyncio
    async def test_bulk_across_batches(self, sqlite_store: LedgerStore) -> None:
        """배치 크기를 넘는 ID 목록"""
        await sqlite_store.append_transaction(_tx(customer_id="last", amount="7"))
        ids = [f"x{i}" for i in range(BATCH_SIZE + 10)] + ["last"]

        balances = await sqlite_store.latest_balances(ids)

        assert len(balances) == len(ids)
        assert balances["last"] == Decimal("7")
        assert balances["x0"] == 0


class TestAppendDealReversal:
    """append_deal_reversal 테스트"""

    @pytest.mark.asyncio
    async def test_open_debit_reversed_once(self, sqlite_store: LedgerStore) -> None:
        """열린 차변은 한 번만 역분개"""
        await sqlite_store.append_transaction(_tx())
        reversal = _tx(amount="100", operation=LedgerOperation.DEAL_CANCELLED)

        first = await sqlite_store.append_deal_reversal(reversal)
        second = await sqlite_store.append_deal_reversal(reversal)

        assert first is not None
        assert first.balance_after == Decimal("0")
        assert second is None
        assert len(await sqlite_store.list_transactions("c1")) == 2

    @pytest.mark.asyncio
    async def test_no_debit(self, sqlite_store: LedgerStore) -> None:
        """차변이 없거나 보상 차량 크레딧만 있으면 None"""
        await sqlite_store.append_transaction(_tx(amount="30", operation=LedgerOperation.EXCHANGE_CAR_CREDIT))

        saved = await sqlite_store.append_deal_reversal(_tx(amount="100", operation=LedgerOperation.DEAL_CANCELLED))

        assert saved is None
        assert await sqlite_store.latest_balance("c1") == Decimal("30")

    @pytest.mark.asyncio
    async def test_recreated_deal_reversible(self, sqlite_store: LedgerStore) -> None:
        """취소 후 같은 딜이 다시 생성되면 다시 역분개 가능"""
        reversal = _tx(amount="100", operation=LedgerOperation.DEAL_CANCELLED)
        await sqlite_store.append_transaction(_tx())
        await sqlite_store.append_deal_reversal(reversal)
        await sqlite_store.append_transaction(_tx())

        saved = await sqlite_store.append_deal_reversal(reversal)

        assert saved is not None
        assert await sqlite_store.latest_balance("c1") == Decimal("0")
