"""
Mock 어댑터

테스트용 Mock 구현체 제공.
"""

from adapters.mock.ledger_store import MockLedgerStore

__all__ = [
    "MockLedgerStore",
]
