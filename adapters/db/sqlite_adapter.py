"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
여러 프로세스(백오피스 API, 점검 스크립트)가 동시에 접근 가능하도록 설정.

트랜잭션은 명시적으로 BEGIN IMMEDIATE 로 시작 (isolation_level=None).
IMMEDIATE 는 시작 시점에 쓰기 잠금을 잡으므로
"최신 잔액 조회 → 행 추가"가 프로세스 간에도 직렬화된다.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Defaults, Paths, TableNames
from core.types import Environment

logger = logging.getLogger(__name__)


def get_db_path(
    environment: Environment | str,
    db_path: Path | str | None = None,
) -> Path:
    """환경에 따른 DB 경로 반환

    Args:
        environment: 실행 환경 (PRODUCTION/DEVELOPMENT)
        db_path: 직접 지정한 경로 (있으면 우선)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if db_path:
        return Path(db_path)

    if isinstance(environment, str):
        environment = Environment(environment.lower())

    if environment == Environment.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로 (":memory:" 허용)
        readonly: 읽기 전용 여부
        busy_timeout_ms: 잠금 대기 시간 (밀리초)

    Returns:
        aiosqlite 연결 객체
    """
    # pathlib.Path를 문자열로 변환
    db_path_str = str(db_path)

    if db_path_str != ":memory:":
        # 디렉토리가 없으면 생성
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    # 연결 생성 (isolation_level=None: 트랜잭션은 직접 BEGIN)
    if readonly:
        conn = await aiosqlite.connect(
            f"file:{db_path_str}?mode=ro", uri=True, isolation_level=None
        )
    else:
        conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    conn.row_factory = aiosqlite.Row

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    하나의 연결을 여러 코루틴이 공유하므로 트랜잭션은
    어댑터 내부 asyncio.Lock 으로 한 번에 하나만 열린다.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (조회/점검용)
        busy_timeout_ms: 잠금 대기 시간 (밀리초)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction() as conn:
        await conn.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        readonly: bool = False,
        busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
    ):
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.readonly = readonly
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(
            self.db_path, self.readonly, self.busy_timeout_ms
        )

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Row | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[aiosqlite.Row]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저 (BEGIN IMMEDIATE)

        성공 시 자동 커밋, 예외(취소 포함) 시 자동 롤백.

        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        async with self._tx_lock:
            # 잠금 대기 중 취소된 BEGIN 도 롤백 대상
            try:
                await self._conn.execute("BEGIN IMMEDIATE")
                yield self._conn
                await self._conn.execute("COMMIT")
            except BaseException:
                await asyncio.shield(self._rollback())
                raise

    async def _rollback(self) -> None:
        """ROLLBACK (열린 트랜잭션이 없으면 무시)

        aiosqlite 요청은 연결의 워커 스레드에서 순서대로 실행되므로
        취소된 BEGIN 이 나중에 성공하더라도 이 ROLLBACK 이 뒤따라 실행된다.
        """
        try:
            await self._conn.execute("ROLLBACK")
        except aiosqlite.OperationalError as e:
            # BEGIN 이 잠금 대기 끝에 실패한 경우
            logger.debug(f"ROLLBACK skipped: {e}")

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    Args:
        adapter: 연결된 SQLiteAdapter

    주의: 점검 스크립트(scripts.init_ledger_db) 및 테스트에서 호출.
    잔액 컬럼은 없음. 현재 잔액은 항상 최신 행의 balance_after.
    """
    # customer_transactions (append-only 원장)
    await adapter.execute(f"""
        CREATE TABLE IF NOT EXISTS {TableNames.CUSTOMER_TRANSACTIONS} (
            seq              INTEGER PRIMARY KEY AUTOINCREMENT,
            customer_id      TEXT NOT NULL,
            type             TEXT NOT NULL,
            amount           TEXT NOT NULL,
            balance_before   TEXT NOT NULL,
            balance_after    TEXT NOT NULL,
            reference_id     TEXT NOT NULL,
            description      TEXT NOT NULL DEFAULT '',
            operation        TEXT NOT NULL,
            created_at       TEXT NOT NULL
        )
    """)

    # 최신 잔액 조회용 (customer_id, created_at DESC, seq DESC)
    await adapter.execute(f"""
        CREATE INDEX IF NOT EXISTS ix_customer_transactions_latest
        ON {TableNames.CUSTOMER_TRANSACTIONS}(customer_id, created_at DESC, seq DESC)
    """)

    # 딜 취소 정리용
    await adapter.execute(f"""
        CREATE INDEX IF NOT EXISTS ix_customer_transactions_reference
        ON {TableNames.CUSTOMER_TRANSACTIONS}(customer_id, reference_id, operation)
    """)

    logger.info("스키마 초기화 완료")
