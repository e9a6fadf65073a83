"""
Time helpers shared by the models and the engine.

Naive datetimes coming from the data layer are treated as UTC.
days_since() counts whole 24-hour periods, truncating toward zero.
"""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; leave aware datetimes alone."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_since(moment: datetime | None, now: datetime) -> int | None:
    """Whole days elapsed from `moment` to `now`, or None when `moment` is missing."""
    if moment is None:
        return None
    delta = ensure_utc(now) - ensure_utc(moment)
    # int() truncates toward zero
    return int(delta.total_seconds() / 86400)


def days_until(due: date, today: date) -> int:
    """Calendar days from `today` to `due` (negative when `due` has passed)."""
    return (due - today).days
