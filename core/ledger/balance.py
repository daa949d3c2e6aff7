"""
Balance Ledger

고객별 누적 잔액 엔진.
잔액은 저장하지 않고 항상 최신 거래의 balance_after 로 파생.

모든 쓰기 작업은 "최신 잔액 조회 → 새 잔액 계산 → 거래 1건 추가"를
저장소 경계에서 원자적으로 수행하고 LedgerResult 를 반환한다.
저장소 오류는 예외가 아니라 실패 결과로 보고 (호출자는 로그 후 계속 진행).
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Awaitable, Iterable, TypeVar

from core.constants import Defaults, ZERO
from core.domain.models import Bill, BillPayment, Deal
from core.ledger import aggregator
from core.ledger.exceptions import (
    InvalidLedgerInput,
    LedgerError,
    PartialCleanupFailure,
    StoreUnavailable,
)
from core.ledger.transaction import LedgerTransaction, NewTransaction
from core.ledger.types import CancellationOutcome, LedgerErrorCode, LedgerOperation
from core.utils.money import format_amount, parse_amount

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore
    from core.config.loader import LedgerConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class LedgerResult:
    """원장 쓰기 작업 결과

    Attributes:
        ok: 성공 여부 (금액 0 으로 건너뛴 경우도 성공)
        transaction: 추가된 거래 (건너뛰었거나 실패 시 None)
        error: 실패 원인
    """

    ok: bool
    transaction: LedgerTransaction | None = None
    error: LedgerError | None = None

    @property
    def skipped(self) -> bool:
        """처리할 금액이 없어 거래를 추가하지 않은 경우"""
        return self.ok and self.transaction is None

    @property
    def balance(self) -> Decimal | None:
        """작업 후 잔액 (거래가 추가된 경우)"""
        if self.transaction is None:
            return None
        return self.transaction.balance_after

    @property
    def error_code(self) -> LedgerErrorCode | None:
        return self.error.code if self.error else None

    @classmethod
    def success(cls, transaction: LedgerTransaction) -> "LedgerResult":
        return cls(ok=True, transaction=transaction)

    @classmethod
    def noop(cls) -> "LedgerResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: LedgerError) -> "LedgerResult":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class CancellationResult:
    """딜 취소 결과

    - REVERSED_AND_CLEANED: 역분개 추가 + 원본 deal_created 행 삭제
    - REVERSED_CLEANUP_PENDING: 역분개만 추가 (원본 행 남음, LedgerAuditor 로 정리)
    - NOTHING_TO_REVERSE: 열린 차변 없음 (이미 취소/삭제된 딜, 아무것도 변경되지 않음)
    - FAILED: 역분개 실패 (아무것도 변경되지 않음)
    """

    outcome: CancellationOutcome
    reversal: LedgerResult
    deleted_rows: int = 0
    cleanup_error: LedgerError | None = None

    @property
    def ok(self) -> bool:
        """역분개 성공 여부 (정리 실패는 경고로 취급)"""
        return self.outcome != CancellationOutcome.FAILED

    @property
    def needs_reconciliation(self) -> bool:
        return self.outcome == CancellationOutcome.REVERSED_CLEANUP_PENDING


def _to_amount(value: Decimal | int | str, field: str) -> Decimal:
    """입력 금액 → Decimal

    Raises:
        InvalidLedgerInput: 숫자가 아니거나 유한하지 않은 값
    """
    if isinstance(value, bool):
        raise InvalidLedgerInput(f"{field} must be a number", details={field: value})
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (ValueError, TypeError, InvalidOperation) as e:
        raise InvalidLedgerInput(f"{field} must be a number", details={field: value}) from e
    if not amount.is_finite():
        raise InvalidLedgerInput(f"{field} must be finite", details={field: value})
    return amount


class BalanceLedger:
    """고객 원장

    저장소(ILedgerStore)는 생성자로 주입 (전역 클라이언트 없음).

    Args:
        store: 원장 저장소
        currency_symbol: 설명 문자열에 쓰는 통화 기호
        timeout_sec: 조회 제한 시간 (초과 시 StoreUnavailable)

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        ledger = BalanceLedger(LedgerStore(db))

        result = await ledger.record_deal_created("42", "7", Decimal("350000"), "Mazda 3")
        if not result.ok:
            logger.warning(f"잔액 갱신 실패: {result.error}")

        balance = await ledger.get_customer_balance("7")
    ```
    """

    def __init__(
        self,
        store: "ILedgerStore",
        currency_symbol: str = Defaults.CURRENCY_SYMBOL,
        timeout_sec: float = Defaults.STORE_TIMEOUT_SEC,
    ):
        self.store = store
        self.currency_symbol = currency_symbol
        self.timeout_sec = timeout_sec

    @classmethod
    def from_config(cls, store: "ILedgerStore", config: "LedgerConfig") -> "BalanceLedger":
        """설정값으로 생성"""
        return cls(
            store=store,
            currency_symbol=config.currency_symbol,
            timeout_sec=config.store.timeout_sec,
        )

    # -------------------------------------------------------------------------
    # 내부 헬퍼
    # -------------------------------------------------------------------------

    async def _call(self, awaitable: Awaitable[T], action: str) -> T:
        """조회 호출 (제한 시간 적용)

        쓰기에는 사용하지 않음. 실행 중인 쓰기를 취소하면 커밋 여부를 알 수 없으므로
        쓰기는 저장소의 잠금 대기 시간(busy_timeout)으로 제한된다.

        Raises:
            StoreUnavailable: 저장소 오류 또는 제한 시간 초과
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_sec)
        except asyncio.TimeoutError as e:
            raise StoreUnavailable(
                f"Ledger store timed out during {action}",
                details={"timeout_sec": self.timeout_sec},
            ) from e

    def _money(self, amount: Decimal) -> str:
        return format_amount(amount, self.currency_symbol)

    async def _append(
        self,
        operation: LedgerOperation,
        customer_id: str,
        amount: Decimal,
        reference_id: str,
        description: str,
        deal_reversal: bool = False,
    ) -> LedgerResult:
        """거래 1건 추가

        deal_reversal=True 면 열린 딜 차변이 있을 때만 추가 (없으면 noop).
        """
        tx = NewTransaction.for_operation(
            operation=operation,
            customer_id=customer_id,
            amount=amount,
            reference_id=reference_id,
            description=description,
        )

        try:
            if deal_reversal:
                saved = await self.store.append_deal_reversal(tx)
            else:
                saved = await self.store.append_transaction(tx)
        except StoreUnavailable as e:
            logger.error(
                f"Error inserting transaction: {e}",
                extra={
                    "customer_id": customer_id,
                    "operation": operation.value,
                    "reference_id": reference_id,
                },
            )
            return LedgerResult.failure(e)

        if saved is None:
            return LedgerResult.noop()

        logger.info(
            f"Balance updated for customer {customer_id}: "
            f"{saved.balance_before} -> {saved.balance_after}",
            extra={
                "customer_id": customer_id,
                "operation": operation.value,
                "reference_id": reference_id,
                "amount": str(amount),
            },
        )
        return LedgerResult.success(saved)

    @staticmethod
    def _check_customer(customer_id: str) -> None:
        if not customer_id or not str(customer_id).strip():
            raise InvalidLedgerInput("customer_id is required")

    def _invalid(self, error: InvalidLedgerInput, **context: Any) -> LedgerResult:
        logger.warning(f"Invalid ledger input: {error}", extra=context)
        return LedgerResult.failure(error)

    # -------------------------------------------------------------------------
    # 딜
    # -------------------------------------------------------------------------

    async def record_deal_created(
        self,
        deal_id: str,
        customer_id: str,
        selling_price: Decimal | int | str,
        title: str,
    ) -> LedgerResult:
        """딜 생성: 판매가만큼 고객 채무 발생 (amount = -selling_price)"""
        try:
            self._check_customer(customer_id)
            price = _to_amount(selling_price, "selling_price")
            if price < 0:
                raise InvalidLedgerInput(
                    "selling_price must not be negative",
                    details={"selling_price": str(price)},
                )
        except InvalidLedgerInput as e:
            return self._invalid(e, deal_id=deal_id, customer_id=customer_id)

        return await self._append(
            LedgerOperation.DEAL_CREATED,
            customer_id,
            -price,
            deal_id,
            f"Deal: {title}",
        )

    async def record_deal_deleted(
        self,
        deal_id: str,
        customer_id: str,
        selling_price: Decimal | int | str,
        title: str,
    ) -> LedgerResult:
        """딜 삭제: 채무 역분개 (amount = +selling_price)"""
        try:
            self._check_customer(customer_id)
            price = _to_amount(selling_price, "selling_price")
            if price < 0:
                raise InvalidLedgerInput(
                    "selling_price must not be negative",
                    details={"selling_price": str(price)},
                )
        except InvalidLedgerInput as e:
            return self._invalid(e, deal_id=deal_id, customer_id=customer_id)

        return await self._append(
            LedgerOperation.DEAL_DELETED,
            customer_id,
            price,
            deal_id,
            f"Reversed: {title}",
        )

    async def record_deal_cancelled(
        self,
        deal_id: str,
        customer_id: str,
        selling_price: Decimal | int | str,
        title: str,
    ) -> CancellationResult:
        """딜 취소

        1. 역분개 거래 추가 (+selling_price, operation=deal_cancelled)
           딜의 마지막 딜 단위 행이 deal_created 일 때만 추가.
           이미 취소/삭제된 딜이면 NOTHING_TO_REVERSE (잔액 변경 없음).
        2. 원본 deal_created 차변 행 삭제 (최선 노력)

        2단계 실패는 경고 로그 후 REVERSED_CLEANUP_PENDING 으로 보고.
        남은 원본 행은 LedgerAuditor 가 고아 행으로 감지/정리.
        """
        try:
            self._check_customer(customer_id)
            price = _to_amount(selling_price, "selling_price")
            if price < 0:
                raise InvalidLedgerInput(
                    "selling_price must not be negative",
                    details={"selling_price": str(price)},
                )
        except InvalidLedgerInput as e:
            return CancellationResult(
                outcome=CancellationOutcome.FAILED,
                reversal=self._invalid(e, deal_id=deal_id, customer_id=customer_id),
            )

        reversal = await self._append(
            LedgerOperation.DEAL_CANCELLED,
            customer_id,
            price,
            deal_id,
            f"Cancelled: {title}",
            deal_reversal=True,
        )
        if not reversal.ok:
            logger.error(
                "Error in deal cancellation: reversal failed",
                extra={"deal_id": deal_id, "customer_id": customer_id},
            )
            return CancellationResult(outcome=CancellationOutcome.FAILED, reversal=reversal)

        if reversal.skipped:
            logger.warning(
                f"Deal {deal_id} has no open debit to cancel",
                extra={"deal_id": deal_id, "customer_id": customer_id},
            )
            return CancellationResult(
                outcome=CancellationOutcome.NOTHING_TO_REVERSE,
                reversal=reversal,
            )

        try:
            deleted = await self.store.delete_deal_debits(customer_id, deal_id)
        except StoreUnavailable as e:
            cleanup_error = PartialCleanupFailure(
                f"Could not delete deal transaction record: {e.message}",
                details={"deal_id": deal_id, "customer_id": customer_id},
            )
            logger.warning(
                str(cleanup_error),
                extra={"deal_id": deal_id, "customer_id": customer_id},
            )
            return CancellationResult(
                outcome=CancellationOutcome.REVERSED_CLEANUP_PENDING,
                reversal=reversal,
                cleanup_error=cleanup_error,
            )

        logger.info(
            f"Deal cancelled - removed {deleted} original transaction(s)",
            extra={"deal_id": deal_id, "customer_id": customer_id},
        )
        return CancellationResult(
            outcome=CancellationOutcome.REVERSED_AND_CLEANED,
            reversal=reversal,
            deleted_rows=deleted,
        )

    async def record_exchange_car_credit(
        self,
        deal_id: str,
        customer_id: str,
        car_eval_amount: Decimal | int | str,
        customer_name: str,
    ) -> LedgerResult:
        """보상 차량 크레딧 (amount = +평가액, 0 이하면 건너뜀)

        딜 차변과 같은 type=deal_created 로 기록되어 같은 묶음으로 표시됨.
        """
        try:
            self._check_customer(customer_id)
            amount = _to_amount(car_eval_amount, "car_eval_amount")
        except InvalidLedgerInput as e:
            return self._invalid(e, deal_id=deal_id, customer_id=customer_id)

        if amount <= 0:
            logger.debug(
                f"No car evaluation amount to process for exchange deal: {deal_id}",
                extra={"customer_name": customer_name},
            )
            return LedgerResult.noop()

        return await self._append(
            LedgerOperation.EXCHANGE_CAR_CREDIT,
            customer_id,
            amount,
            deal_id,
            f"Car credit: {self._money(amount)}",
        )

    # -------------------------------------------------------------------------
    # 영수증
    # -------------------------------------------------------------------------

    @staticmethod
    def _effective_deal_amount(
        deal_selling_price: Decimal | int | str | None,
        deal: Deal | None,
    ) -> Decimal:
        """결제 대상 딜 금액 (exchange 딜은 보상 차량 평가액 차감, 0 하한)

        설명 문자열의 초과분 표시에만 쓰이므로 해석할 수 없는 값은 0.
        """
        if deal_selling_price is not None:
            effective = parse_amount(deal_selling_price)
        elif deal is not None:
            effective = deal.price
        else:
            effective = ZERO

        if deal is not None and deal.is_exchange and deal.customer_car_eval_value:
            effective = max(ZERO, effective - deal.customer_car_eval_value)
        return effective

    async def record_receipt_created(
        self,
        bill_id: str,
        customer_id: str,
        bill: Bill,
        deal_selling_price: Decimal | int | str | None = None,
        payments: Iterable[BillPayment] | None = None,
        deal: Deal | None = None,
    ) -> LedgerResult:
        """영수증 생성

        - negative 청구서: 비용/공제, -abs(결제 금액)
        - positive 청구서: 결제 전액을 크레딧.
          딜 금액을 넘어도 그대로 반영 (초과분은 양수 잔액).
        """
        payments = tuple(payments or ())
        try:
            self._check_customer(customer_id)
            effective_deal_amount = self._effective_deal_amount(deal_selling_price, deal)
        except InvalidLedgerInput as e:
            return self._invalid(e, bill_id=bill_id, customer_id=customer_id)

        payment_amount = aggregator.aggregate(bill, bill.direction, payments)
        if payment_amount == 0:
            logger.debug(f"No payment amount to process for receipt: {bill_id}")
            return LedgerResult.noop()

        details = aggregator.describe(bill, payments, self.currency_symbol)

        if bill.is_negative:
            balance_change = -abs(payment_amount)
            description = f"Expense: {details}"
        else:
            balance_change = payment_amount
            if effective_deal_amount > 0 and payment_amount > effective_deal_amount:
                excess = payment_amount - effective_deal_amount
                description = f"Payment: {details} (+{self._money(excess)} excess)"
            elif effective_deal_amount > 0:
                description = f"Payment: {details}"
            else:
                # 딜과 무관한 결제, 또는 보상 차량으로 전액 상쇄된 exchange 딜
                deal_note = " (exchange)" if deal is not None and deal.is_exchange else ""
                description = f"Payment: {details}{deal_note}"

        return await self._append(
            LedgerOperation.RECEIPT_CREATED,
            customer_id,
            balance_change,
            bill_id,
            description,
        )

    async def record_receipt_deleted(
        self,
        bill_id: str,
        customer_id: str,
        bill: Bill,
        customer_name: str,
        deal_selling_price: Decimal | int | str | None = None,
        payments: Iterable[BillPayment] | None = None,
    ) -> LedgerResult:
        """영수증 삭제: record_receipt_created 효과의 정확한 역분개"""
        payments = tuple(payments or ())
        try:
            self._check_customer(customer_id)
        except InvalidLedgerInput as e:
            return self._invalid(e, bill_id=bill_id, customer_id=customer_id)

        payment_amount = aggregator.aggregate(bill, bill.direction, payments)
        if payment_amount == 0:
            logger.debug(f"No payment amount to reverse for deleted receipt: {bill_id}")
            return LedgerResult.noop()

        details = aggregator.describe(bill, payments, self.currency_symbol)

        if bill.is_negative:
            balance_change = abs(payment_amount)
            description = f"Reversed expense: {details}"
        else:
            balance_change = -payment_amount
            description = f"Reversed: {details}"

        logger.debug(
            f"Reversing receipt {bill_id}",
            extra={
                "customer_name": customer_name,
                "deal_selling_price": str(deal_selling_price) if deal_selling_price is not None else None,
            },
        )
        return await self._append(
            LedgerOperation.RECEIPT_DELETED,
            customer_id,
            balance_change,
            bill_id,
            description,
        )

    # -------------------------------------------------------------------------
    # 계좌이체 지시
    # -------------------------------------------------------------------------

    async def record_bank_transfer_order_created(
        self,
        order_id: str,
        customer_id: str,
        amount: Decimal | int | str,
        description: str | None = None,
    ) -> LedgerResult:
        """계좌이체 지시 생성: 고객에게 지급하는 금액이므로 -abs(금액)"""
        try:
            self._check_customer(customer_id)
            value = abs(_to_amount(amount, "amount"))
        except InvalidLedgerInput as e:
            return self._invalid(e, order_id=order_id, customer_id=customer_id)

        if value == 0:
            return LedgerResult.noop()

        return await self._append(
            LedgerOperation.BANK_TRANSFER_ORDER_CREATED,
            customer_id,
            -value,
            order_id,
            description or f"Bank transfer order: {self._money(value)}",
        )

    async def record_bank_transfer_order_deleted(
        self,
        order_id: str,
        customer_id: str,
        amount: Decimal | int | str,
        description: str | None = None,
    ) -> LedgerResult:
        """계좌이체 지시 삭제: +abs(금액)"""
        try:
            self._check_customer(customer_id)
            value = abs(_to_amount(amount, "amount"))
        except InvalidLedgerInput as e:
            return self._invalid(e, order_id=order_id, customer_id=customer_id)

        if value == 0:
            return LedgerResult.noop()

        return await self._append(
            LedgerOperation.BANK_TRANSFER_ORDER_DELETED,
            customer_id,
            value,
            order_id,
            description or f"Reversed bank transfer order: {self._money(value)}",
        )

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_customer_balance(self, customer_id: str) -> Decimal:
        """고객 현재 잔액 (거래 없으면 0)

        Raises:
            StoreUnavailable: 저장소 오류 (0 으로 대체하지 않음)
        """
        return await self._call(self.store.latest_balance(customer_id), "balance read")

    async def get_customer_balances(self, customer_ids: list[str]) -> dict[str, Decimal]:
        """여러 고객의 현재 잔액

        Returns:
            요청한 모든 ID 포함 (거래 없으면 0)

        Raises:
            StoreUnavailable: 저장소 오류
        """
        if not customer_ids:
            return {}
        balances = await self._call(self.store.latest_balances(list(customer_ids)), "balances read")
        return {customer_id: balances.get(customer_id, ZERO) for customer_id in customer_ids}

    async def get_customer_history(self, customer_id: str) -> list[LedgerTransaction]:
        """고객 거래 내역 (원장 순서)

        Raises:
            StoreUnavailable: 저장소 오류
        """
        return await self._call(self.store.list_transactions(customer_id), "history read")
