"""
시간 관련 유틸리티 함수

MongoDB는 datetime을 밀리초 단위 UTC로 저장합니다. 메시지 시각은 생성 시점에 밀리초로 잘라
저장된 값과 전송된 값이 같도록 하고, 클라이언트에는 `Z` 오프셋이 붙은 ISO 8601 문자열로 보냅니다.
"""
from datetime import datetime, timezone


def truncate_to_millis(dt: datetime) -> datetime:
    return dt.replace(microsecond=dt.microsecond // 1000 * 1000)


def utc_now() -> datetime:
    """현재 UTC 시각 (naive, 밀리초 단위)"""
    return truncate_to_millis(datetime.utcnow())


def isoformat_utc(dt: datetime) -> str:
    """
    datetime을 UTC ISO 8601 문자열로 변환합니다.

    naive datetime은 UTC로 간주합니다.

    Examples:
        >>> isoformat_utc(datetime(2024, 1, 1, 12, 0, 0, 123456))
        "2024-01-01T12:00:00.123Z"
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="milliseconds") + "Z"
