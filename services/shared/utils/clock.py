from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """現在時刻（UTC, タイムゾーン付き）"""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """naive な datetime は UTC とみなし、aware なものは UTC に揃える"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
