"""
고객 원장 시스템

고객별 누적 잔액 원장, 청구서 결제 합산, 딜 정산 계산.

사용 예시:
```python
from core.ledger import BalanceLedger, LedgerStore, DealSettlementCalculator

# 초기화
ledger = BalanceLedger(LedgerStore(db))

# 딜 생성 → 고객 채무
result = await ledger.record_deal_created("42", "7", Decimal("350000"), "Mazda 3")

# 잔액 조회
balance = await ledger.get_customer_balance("7")

# 딜 정산 (저장소 불필요)
outstanding = DealSettlementCalculator().outstanding(deal)
```
"""

from core.ledger.aggregator import aggregate, describe, raw_payment_total
from core.ledger.auditor import AuditReport, ChainGap, LedgerAuditor
from core.ledger.balance import BalanceLedger, CancellationResult, LedgerResult
from core.ledger.exceptions import (
    InvalidLedgerInput,
    LedgerError,
    PartialCleanupFailure,
    StoreUnavailable,
)
from core.ledger.settlement import (
    DealSettlementCalculator,
    receipt_effect,
    settlement_balance,
    settlement_status,
)
from core.ledger.store import LedgerStore
from core.ledger.transaction import LedgerTransaction, NewTransaction
from core.ledger.types import (
    CancellationOutcome,
    LedgerErrorCode,
    LedgerOperation,
    TransactionType,
)

__all__ = [
    # 핵심 클래스
    "BalanceLedger",
    "LedgerStore",
    "LedgerAuditor",
    "DealSettlementCalculator",
    # 결과/모델
    "LedgerResult",
    "CancellationResult",
    "AuditReport",
    "ChainGap",
    "LedgerTransaction",
    "NewTransaction",
    # 함수
    "aggregate",
    "describe",
    "raw_payment_total",
    "receipt_effect",
    "settlement_balance",
    "settlement_status",
    # Enum
    "TransactionType",
    "LedgerOperation",
    "CancellationOutcome",
    "LedgerErrorCode",
    # 예외
    "LedgerError",
    "StoreUnavailable",
    "InvalidLedgerInput",
    "PartialCleanupFailure",
]
