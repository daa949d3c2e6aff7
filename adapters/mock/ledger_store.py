"""
Mock 원장 저장소

테스트용 인메모리 ILedgerStore 구현.
지연(delay)과 실패 주입을 지원하여 동시성/장애 시나리오 검증에 사용.
"""

import asyncio
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal

from core.constants import ZERO
from core.ledger.exceptions import StoreUnavailable
from core.ledger.transaction import LedgerTransaction, NewTransaction
from core.ledger.types import LedgerOperation
from core.utils.timezone import now_utc

DEAL_LEVEL_OPERATIONS = (
    LedgerOperation.DEAL_CREATED,
    LedgerOperation.DEAL_DELETED,
    LedgerOperation.DEAL_CANCELLED,
)


class MockLedgerStore:
    """Mock 원장 저장소

    ILedgerStore Protocol 구현.
    append 는 고객별 asyncio.Lock 안에서 "잔액 조회 → 지연 → 추가" 순으로 수행되어
    지연 중 다른 코루틴이 끼어들어도 갱신 손실이 없다.

    사용 예시:
    ```python
    store = MockLedgerStore(delay=0.01)
    ledger = BalanceLedger(store)

    await ledger.record_deal_created("d1", "c1", Decimal("1000"), "Mazda 3")

    assert len(store.transactions) == 1
    ```
    """

    def __init__(
        self,
        delay: float = 0.0,
        should_fail: bool = False,
        fail_deletes: bool = False,
    ):
        """
        Args:
            delay: 잔액 조회와 추가 사이의 인위적 지연 (초)
            should_fail: True면 모든 호출 실패 (StoreUnavailable)
            fail_deletes: True면 delete_deal_debits 만 실패
        """
        self.delay = delay
        self.should_fail = should_fail
        self.fail_deletes = fail_deletes
        self.transactions: list[LedgerTransaction] = []
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._seq = 0

    def _check_available(self) -> None:
        if self.should_fail:
            raise StoreUnavailable("Mock store unavailable")

    def _latest(self, customer_id: str) -> LedgerTransaction | None:
        rows = [tx for tx in self.transactions if tx.customer_id == customer_id]
        if not rows:
            return None
        return max(rows, key=lambda tx: (tx.created_at, tx.seq))

    async def append_transaction(self, tx: NewTransaction) -> LedgerTransaction:
        """거래 추가"""
        self._check_available()

        async with self._locks[tx.customer_id]:
            return await self._append_locked(tx)

    async def append_deal_reversal(self, tx: NewTransaction) -> LedgerTransaction | None:
        """열린 딜 차변이 있을 때만 역분개 추가"""
        self._check_available()

        async with self._locks[tx.customer_id]:
            deal_rows = [
                row for row in self.transactions
                if row.customer_id == tx.customer_id
                and row.reference_id == tx.reference_id
                and row.operation in DEAL_LEVEL_OPERATIONS
            ]
            if not deal_rows:
                return None
            last = max(deal_rows, key=lambda row: (row.created_at, row.seq))
            if last.operation != LedgerOperation.DEAL_CREATED:
                return None
            return await self._append_locked(tx)

    async def _append_locked(self, tx: NewTransaction) -> LedgerTransaction:
        latest = self._latest(tx.customer_id)
        balance_before = latest.balance_after if latest else ZERO

        if self.delay:
            await asyncio.sleep(self.delay)

        self._check_available()

        created_at = now_utc()
        if latest is not None and latest.created_at >= created_at:
            created_at = latest.created_at + timedelta(microseconds=1)

        self._seq += 1
        saved = tx.persisted(
            seq=self._seq,
            balance_before=balance_before,
            created_at=created_at,
        )
        self.transactions.append(saved)
        return saved

    async def delete_deal_debits(self, customer_id: str, deal_id: str) -> int:
        """딜 생성 차변 행 삭제"""
        self._check_available()
        if self.fail_deletes:
            raise StoreUnavailable("Mock store delete failed")

        async with self._locks[customer_id]:
            before = len(self.transactions)
            self.transactions = [
                tx for tx in self.transactions
                if not (
                    tx.customer_id == customer_id
                    and tx.reference_id == deal_id
                    and tx.operation == LedgerOperation.DEAL_CREATED
                )
            ]
            return before - len(self.transactions)

    async def latest_balance(self, customer_id: str) -> Decimal:
        """최신 잔액 (거래 없으면 0)"""
        self._check_available()
        latest = self._latest(customer_id)
        return latest.balance_after if latest else ZERO

    async def latest_balances(self, customer_ids: list[str]) -> dict[str, Decimal]:
        """여러 고객의 최신 잔액"""
        self._check_available()
        balances: dict[str, Decimal] = {}
        for customer_id in customer_ids:
            latest = self._latest(customer_id)
            balances[customer_id] = latest.balance_after if latest else ZERO
        return balances

    async def list_transactions(self, customer_id: str) -> list[LedgerTransaction]:
        """고객 거래 내역 (오래된 순)"""
        self._check_available()
        rows = [tx for tx in self.transactions if tx.customer_id == customer_id]
        return sorted(rows, key=lambda tx: (tx.created_at, tx.seq))
