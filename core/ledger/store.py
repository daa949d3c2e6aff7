"""
Ledger 저장소

customer_transactions 테이블 기반 고객 원장 저장 및 조회.
ILedgerStore Protocol 구현 (SQLite).
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import aiosqlite

from core.constants import ZERO, TableNames
from core.ledger.exceptions import StoreUnavailable
from core.ledger.transaction import LedgerTransaction, NewTransaction
from core.ledger.types import LedgerOperation
from core.utils.money import parse_amount
from core.utils.timezone import now_utc, parse_iso, to_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

# IN 절 한 번에 넣을 최대 ID 수 (SQLite 변수 제한 회피)
BATCH_SIZE = 500

TABLE = TableNames.CUSTOMER_TRANSACTIONS

# 딜 단위 행 (보상 차량 크레딧 제외)
DEAL_LEVEL_OPERATIONS = (
    LedgerOperation.DEAL_CREATED.value,
    LedgerOperation.DEAL_DELETED.value,
    LedgerOperation.DEAL_CANCELLED.value,
)


class LedgerStore:
    """Ledger 저장소

    append-only 고객 원장을 저장하고 조회하는 클래스.
    잔액 컬럼은 없으며 최신 행의 balance_after 가 현재 잔액.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def append_transaction(self, tx: NewTransaction) -> LedgerTransaction:
        """거래 저장

        BEGIN IMMEDIATE 트랜잭션 내에서 최신 잔액 조회 + INSERT.
        실패 시 롤백되어 행이 남지 않음.

        Args:
            tx: 저장할 거래

        Returns:
            저장된 거래 (잔액 스냅샷 포함)

        Raises:
            StoreUnavailable: DB 오류
        """
        try:
            async with self.db.transaction() as conn:
                saved = await self._insert_next(conn, tx)
        except (aiosqlite.Error, RuntimeError) as e:
            raise StoreUnavailable(
                f"Failed to append transaction: {e}",
                details={"customer_id": tx.customer_id, "reference_id": tx.reference_id},
            ) from e

        logger.debug(
            f"Saved customer transaction: {saved.seq}",
            extra={"customer_id": tx.customer_id, "type": tx.type.value},
        )
        return saved

    async def append_deal_reversal(self, tx: NewTransaction) -> LedgerTransaction | None:
        """열린 딜 차변이 있을 때만 역분개 저장

        같은 트랜잭션 안에서 딜의 마지막 딜 단위 행
        (deal_created / deal_deleted / deal_cancelled)을 확인하고,
        그 행이 deal_created 일 때만 INSERT.

        Returns:
            저장된 거래 (이미 역분개되었거나 차변이 없으면 None)

        Raises:
            StoreUnavailable: DB 오류
        """
        try:
            async with self.db.transaction() as conn:
                cursor = await conn.execute(
                    f"""
                    SELECT operation FROM {TABLE}
                    WHERE customer_id = ? AND reference_id = ? AND operation IN (?, ?, ?)
                    ORDER BY created_at DESC, seq DESC
                    LIMIT 1
                    """,
                    (tx.customer_id, tx.reference_id, *DEAL_LEVEL_OPERATIONS),
                )
                row = await cursor.fetchone()
                if row is None or row[0] != LedgerOperation.DEAL_CREATED.value:
                    return None
                saved = await self._insert_next(conn, tx)
        except (aiosqlite.Error, RuntimeError) as e:
            raise StoreUnavailable(
                f"Failed to append deal reversal: {e}",
                details={"customer_id": tx.customer_id, "reference_id": tx.reference_id},
            ) from e

        logger.debug(
            f"Saved deal reversal: {saved.seq}",
            extra={"customer_id": tx.customer_id, "reference_id": tx.reference_id},
        )
        return saved

    @staticmethod
    async def _insert_next(conn: aiosqlite.Connection, tx: NewTransaction) -> LedgerTransaction:
        """최신 잔액 조회 + INSERT (열린 트랜잭션 안에서 호출)"""
        cursor = await conn.execute(
            f"""
            SELECT balance_after, created_at FROM {TABLE}
            WHERE customer_id = ?
            ORDER BY created_at DESC, seq DESC
            LIMIT 1
            """,
            (tx.customer_id,),
        )
        row = await cursor.fetchone()

        balance_before = parse_amount(row[0]) if row else ZERO

        # 시계가 역행해도 created_at 순서가 깨지지 않도록 보정
        created_at = now_utc()
        if row is not None:
            last_created_at = parse_iso(row[1])
            if last_created_at > created_at:
                created_at = last_created_at

        balance_after = balance_before + tx.amount
        cursor = await conn.execute(
            f"""
            INSERT INTO {TABLE} (
                customer_id, type, amount, balance_before, balance_after,
                reference_id, description, operation, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tx.customer_id,
                tx.type.value,
                str(tx.amount),
                str(balance_before),
                str(balance_after),
                tx.reference_id,
                tx.description,
                tx.operation.value,
                to_iso(created_at),
            ),
        )
        return tx.persisted(seq=cursor.lastrowid, balance_before=balance_before, created_at=created_at)

    async def delete_deal_debits(self, customer_id: str, deal_id: str) -> int:
        """딜 생성 차변 행 삭제

        operation=deal_created 인 행만 대상.
        (같은 type=deal_created 인 보상 차량 크레딧은 유지)

        Returns:
            삭제된 행 수

        Raises:
            StoreUnavailable: DB 오류
        """
        try:
            async with self.db.transaction() as conn:
                cursor = await conn.execute(
                    f"""
                    DELETE FROM {TABLE}
                    WHERE customer_id = ? AND reference_id = ? AND operation = ?
                    """,
                    (customer_id, deal_id, LedgerOperation.DEAL_CREATED.value),
                )
                deleted = cursor.rowcount
        except (aiosqlite.Error, RuntimeError) as e:
            raise StoreUnavailable(
                f"Failed to delete deal debits: {e}",
                details={"customer_id": customer_id, "deal_id": deal_id},
            ) from e

        return max(deleted, 0)

    async def latest_balance(self, customer_id: str) -> Decimal:
        """최신 잔액 조회

        Returns:
            최신 거래의 balance_after (거래 없으면 0)

        Raises:
            StoreUnavailable: DB 오류
        """
        try:
            row = await self.db.fetchone(
                f"""
                SELECT balance_after FROM {TABLE}
                WHERE customer_id = ?
                ORDER BY created_at DESC, seq DESC
                LIMIT 1
                """,
                (customer_id,),
            )
        except (aiosqlite.Error, RuntimeError) as e:
            raise StoreUnavailable(
                f"Failed to read balance: {e}",
                details={"customer_id": customer_id},
            ) from e

        if row is None:
            return ZERO
        return parse_amount(row[0])

    async def latest_balances(self, customer_ids: list[str]) -> dict[str, Decimal]:
        """여러 고객의 최신 잔액 조회

        고객별 최신 행 1개만 window 함수로 추려서 조회.

        Returns:
            {customer_id: balance} (요청한 모든 ID 포함, 거래 없으면 0)

        Raises:
            StoreUnavailable: DB 오류
        """
        # 순서 유지 중복 제거
        unique_ids = list(dict.fromkeys(customer_ids))
        balances: dict[str, Decimal] = {customer_id: ZERO for customer_id in unique_ids}

        for start in range(0, len(unique_ids), BATCH_SIZE):
            batch = unique_ids[start:start + BATCH_SIZE]
            placeholders = ", ".join("?" for _ in batch)

            try:
                rows = await self.db.fetchall(
                    f"""
                    SELECT customer_id, balance_after FROM (
                        SELECT
                            customer_id,
                            balance_after,
                            ROW_NUMBER() OVER (
                                PARTITION BY customer_id
                                ORDER BY created_at DESC, seq DESC
                            ) AS rn
                        FROM {TABLE}
                        WHERE customer_id IN ({placeholders})
                    )
                    WHERE rn = 1
                    """,
                    tuple(batch),
                )
            except (aiosqlite.Error, RuntimeError) as e:
                raise StoreUnavailable(
                    f"Failed to read balances: {e}",
                    details={"customer_count": len(unique_ids)},
                ) from e

            for row in rows:
                balances[str(row[0])] = parse_amount(row[1])

        return balances

    async def list_transactions(self, customer_id: str) -> list[LedgerTransaction]:
        """고객 거래 내역 조회 (오래된 순)

        Raises:
            StoreUnavailable: DB 오류
        """
        try:
            rows = await self.db.fetchall(
                f"""
                SELECT seq, customer_id, type, amount, balance_before, balance_after,
                       reference_id, description, operation, created_at
                FROM {TABLE}
                WHERE customer_id = ?
                ORDER BY created_at ASC, seq ASC
                """,
                (customer_id,),
            )
        except (aiosqlite.Error, RuntimeError) as e:
            raise StoreUnavailable(
                f"Failed to list transactions: {e}",
                details={"customer_id": customer_id},
            ) from e

        return [LedgerTransaction.from_row(self._row_to_dict(row)) for row in rows]

    @staticmethod
    def _row_to_dict(row: Any) -> dict[str, Any]:
        return {key: row[key] for key in row.keys()}
