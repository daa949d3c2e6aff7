"""
유틸리티 패키지

금액 파싱/표시, 타임존 처리 등 공통 유틸리티
"""

from core.utils.money import format_amount, parse_amount
from core.utils.timezone import now_utc, parse_iso, to_iso

__all__ = [
    "format_amount",
    "parse_amount",
    "now_utc",
    "parse_iso",
    "to_iso",
]
