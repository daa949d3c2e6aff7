"""
고객 원장 스키마 초기화

사용법:
    python -m scripts.init_ledger_db
    python -m scripts.init_ledger_db --env production
    python -m scripts.init_ledger_db --db data/custom.db
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path, init_schema
from core.config.loader import load_config
from core.constants import TableNames
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main(env: str | None, db_override: str | None) -> None:
    config = load_config()
    setup_logging("init_ledger_db", config.logging.console_level, config.logging.file_level)

    if env:
        db_path = get_db_path(env, db_override)
    else:
        db_path = get_db_path(config.environment, db_override or config.store.db_path)

    logger.info(f"DB 경로: {db_path}")

    async with SQLiteAdapter(db_path, busy_timeout_ms=config.store.busy_timeout_ms) as db:
        await init_schema(db)

        if await db.table_exists(TableNames.CUSTOMER_TRANSACTIONS):
            logger.info("스키마 초기화 완료 ✓")
        else:
            logger.error("스키마 검증 실패!")
            raise RuntimeError("customer_transactions 테이블이 생성되지 않았습니다")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="고객 원장 스키마 초기화")
    parser.add_argument(
        "--env",
        choices=["development", "production"],
        default=None,
        help="실행 환경 (기본: ledger.yaml 설정)",
    )
    parser.add_argument("--db", default=None, help="DB 파일 경로 직접 지정")
    args = parser.parse_args()

    asyncio.run(main(args.env, args.db))
