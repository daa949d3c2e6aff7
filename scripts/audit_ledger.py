"""
고객 원장 감사

잔액 체인 정합성 검사. --cleanup 지정 시 취소된 딜의 남은 원본 차변 행 삭제.

사용법:
    python -m scripts.audit_ledger --customer 7
    python -m scripts.audit_ledger --customer 7 --customer 12 --cleanup
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path
from core.config.loader import load_config
from core.ledger.auditor import AuditReport, LedgerAuditor
from core.ledger.store import LedgerStore
from core.logging import setup_logging
from core.utils.money import format_amount

logger = logging.getLogger(__name__)


def print_report(report: AuditReport, currency_symbol: str) -> None:
    status = "OK" if report.ok else "ISSUES"
    print(f"[{status}] customer={report.customer_id} "
          f"transactions={report.transaction_count} "
          f"balance={format_amount(report.balance, currency_symbol)}")

    for tx in report.row_errors:
        print(f"  - row error seq={tx.seq}: {tx.balance_before} + {tx.amount} != {tx.balance_after}")
    for gap in report.chain_gaps:
        note = f"explained by cancelled deal {gap.explained_by}" if gap.explained_by else "UNEXPLAINED"
        print(f"  - chain gap before seq={gap.seq}: "
              f"expected {gap.expected_before}, got {gap.actual_before} ({note})")
    for deal_id in report.orphaned_deal_ids:
        print(f"  - orphaned debit for cancelled deal {deal_id}")


async def main(customer_ids: list[str], cleanup: bool) -> int:
    config = load_config()
    setup_logging("audit_ledger", config.logging.console_level, config.logging.file_level)

    db_path = get_db_path(config.environment, config.store.db_path)
    failed = 0

    async with SQLiteAdapter(db_path, busy_timeout_ms=config.store.busy_timeout_ms) as db:
        auditor = LedgerAuditor(LedgerStore(db))

        if cleanup:
            for customer_id in customer_ids:
                removed = await auditor.cleanup_orphans(customer_id)
                if removed:
                    print(f"customer={customer_id}: removed {removed} orphaned row(s)")

        reports = await auditor.audit_customers(customer_ids)
        for report in reports.values():
            print_report(report, config.currency_symbol)
            if not report.ok:
                failed += 1

    return 1 if failed else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="고객 원장 감사")
    parser.add_argument(
        "--customer",
        action="append",
        required=True,
        help="감사할 고객 ID (여러 번 지정 가능)",
    )
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="취소된 딜의 남은 원본 차변 행 삭제",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.customer, args.cleanup)))
