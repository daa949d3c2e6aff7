"""
금액 유틸리티

모든 금액은 Decimal 로 처리.
DB/폼에서 들어오는 값은 문자열, 숫자, None 이 섞여 있으므로
parse_amount 로 정규화한다.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from core.constants import ZERO


def parse_amount(value: Any) -> Decimal:
    """임의 값을 Decimal 로 변환

    None, 빈 문자열, 숫자로 해석할 수 없는 값은 0.
    float 는 str 을 거쳐 변환 (이진 부동소수점 오차 방지).

    Args:
        value: 변환할 값 (str, int, float, Decimal, None)

    Returns:
        Decimal 금액 (변환 실패 시 0)

    Example:
        >>> parse_amount("1,500.50")
        Decimal('1500.50')
        >>> parse_amount("abc")
        Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO

    text = str(value).strip().replace(",", "")
    if not text:
        return ZERO

    try:
        amount = Decimal(text)
    except (ValueError, TypeError, InvalidOperation):
        return ZERO

    if not amount.is_finite():
        return ZERO
    return amount


def format_amount(amount: Decimal, symbol: str = "") -> str:
    """표시용 금액 문자열

    정수 금액은 소수점 없이, 그 외에는 불필요한 0 을 제거해 표시.

    Example:
        >>> format_amount(Decimal("500.00"), "₪")
        '₪500'
        >>> format_amount(Decimal("12.50"))
        '12.5'
    """
    if amount == amount.to_integral_value():
        text = str(amount.quantize(Decimal("1")))
    else:
        text = format(amount.normalize(), "f")
    return f"{symbol}{text}"
