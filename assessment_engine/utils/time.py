"""
Timezone helpers.

SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
columns, so every value read from the store goes through ``ensure_utc``
before it is compared with ``utc_now()``.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds between two datetimes, never negative."""
    delta = ensure_utc(end) - ensure_utc(start)  # type: ignore[operator]
    return max(0, int(delta.total_seconds()))
