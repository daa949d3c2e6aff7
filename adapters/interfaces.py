"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from core.ledger.transaction import LedgerTransaction, NewTransaction


@runtime_checkable
class ILedgerStore(Protocol):
    """고객 원장 저장소 인터페이스

    customer_transactions 테이블(또는 동등한 저장소)에 대한 접근.
    금액은 반드시 Decimal 타입 사용.
    모든 메서드는 실패 시 StoreUnavailable 을 발생시켜야 함.
    """

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    async def append_transaction(self, tx: "NewTransaction") -> "LedgerTransaction":
        """거래 추가

        같은 고객에 대해 "최신 잔액 조회 → 행 추가"를 원자적으로 수행.
        동시에 들어온 같은 고객의 append 는 직렬화되어야 함.

        Args:
            tx: 저장할 거래

        Returns:
            balance_before / balance_after 가 채워진 저장 결과

        Raises:
            StoreUnavailable: 저장 실패 (행이 남지 않음)
        """
        ...

    async def append_deal_reversal(self, tx: "NewTransaction") -> "LedgerTransaction | None":
        """딜 취소 역분개 추가 (열린 차변이 있을 때만)

        딜의 마지막 딜 단위 행(deal_created / deal_deleted / deal_cancelled)이
        deal_created 인 경우에만 append_transaction 과 같은 방식으로 추가.
        확인과 추가는 원자적으로 수행.

        Returns:
            저장 결과 (이미 역분개되었거나 차변이 없으면 None)
        """
        ...

    async def delete_deal_debits(self, customer_id: str, deal_id: str) -> int:
        """딜 생성 차변 행 삭제 (딜 취소 정리용)

        operation=deal_created 이고 reference_id=deal_id 인 행만 삭제.
        보상 차량 크레딧 행은 유지.

        Returns:
            삭제된 행 수
        """
        ...

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def latest_balance(self, customer_id: str) -> Decimal:
        """최신 거래의 balance_after (거래 없으면 0)"""
        ...

    async def latest_balances(self, customer_ids: list[str]) -> dict[str, Decimal]:
        """여러 고객의 최신 잔액

        Returns:
            요청한 모든 ID 를 키로 갖는 dict (거래 없는 고객은 0)
        """
        ...

    async def list_transactions(self, customer_id: str) -> list["LedgerTransaction"]:
        """고객 거래 내역 (created_at, seq 오름차순)"""
        ...
