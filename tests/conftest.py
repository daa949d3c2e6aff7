"""
pytest 공통 fixture 정의

원장 테스트용 저장소, 청구서, 딜 fixture
"""

from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.mock.ledger_store import MockLedgerStore
from core.domain.models import Bill, BillPayment, Deal, LegacyPaymentFields
from core.ledger.balance import BalanceLedger
from core.ledger.store import LedgerStore
from core.types import BillDirection, BillType, DealType


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """테스트용 ledger.yaml 파일 생성"""
    config_content = """# 테스트용 ledger.yaml
environment: production
currency_symbol: "$"

store:
  timeout_sec: 2.5
  busy_timeout_ms: 1000

logging:
  console_level: debug
  file_level: WARNING
"""
    config_path = tmp_path / "ledger.yaml"
    config_path.write_text(config_content, encoding="utf-8")
    return config_path


# -------------------------------------------------------------------------
# 저장소
# -------------------------------------------------------------------------

@pytest.fixture
def mock_store() -> MockLedgerStore:
    """인메모리 저장소"""
    return MockLedgerStore()


@pytest.fixture
def ledger(mock_store: MockLedgerStore) -> BalanceLedger:
    """Mock 저장소 기반 원장"""
    return BalanceLedger(mock_store)


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 초기화된 임시 SQLite DB"""
    adapter = SQLiteAdapter(tmp_path / "test_ledger.db")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest.fixture
def sqlite_store(db: SQLiteAdapter) -> LedgerStore:
    return LedgerStore(db)


@pytest.fixture
def sqlite_ledger(sqlite_store: LedgerStore) -> BalanceLedger:
    """SQLite 저장소 기반 원장"""
    return BalanceLedger(sqlite_store)


# -------------------------------------------------------------------------
# 청구서 / 딜
# -------------------------------------------------------------------------

@pytest.fixture
def receipt_bill() -> Bill:
    """항목별 결제 200k receipt_only 청구서"""
    return Bill(
        bill_id="b1",
        bill_type=BillType.RECEIPT_ONLY,
        payments=(
            BillPayment(Decimal("150000"), "bank_transfer"),
            BillPayment(Decimal("50000"), "cash"),
        ),
        deal_id="d1",
    )


@pytest.fixture
def expense_bill() -> Bill:
    """legacy 필드 현금 5000 negative 청구서"""
    return Bill(
        bill_id="b2",
        bill_type=BillType.RECEIPT_ONLY,
        direction=BillDirection.NEGATIVE,
        legacy=LegacyPaymentFields(cash_amount=Decimal("5000")),
        deal_id="d1",
    )


@pytest.fixture
def exchange_deal() -> Deal:
    """판매가 350k, 보상 차량 100k exchange 딜"""
    return Deal(
        deal_id="d1",
        deal_type=DealType.EXCHANGE,
        selling_price=Decimal("350000"),
        customer_car_eval_value=Decimal("100000"),
        customer_id="c1",
        title="Mazda 3",
    )
