"""
타임존 유틸리티

내부 저장: UTC ISO-8601 문자열 원칙 준수를 위한 헬퍼 함수
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """datetime 을 저장용 ISO 문자열로 변환

    naive datetime 은 UTC 로 간주.
    마이크로초까지 고정 폭으로 기록하여 문자열 정렬 = 시간 정렬.

    Example:
        >>> to_iso(datetime(2026, 2, 20, 16, 0, tzinfo=timezone.utc))
        '2026-02-20T16:00:00.000000+00:00'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_iso(value: str | datetime) -> datetime:
    """저장된 ISO 문자열을 UTC datetime 으로 변환"""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
