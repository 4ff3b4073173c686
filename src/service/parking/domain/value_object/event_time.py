from datetime import datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.platform.exception.exceptions import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@lru_cache(maxsize=64)
def get_zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f'Unknown timezone: {tz_name}') from e


def to_event_time(instant: datetime, tz_name: str) -> datetime:
    """
    Express an instant in the event's timezone.

    Naive values are wall-clock times in the event zone (catalog authors write
    "7pm game day"), aware values are converted.
    """
    zone = get_zone(tz_name)
    if instant.tzinfo is None:
        return instant.replace(tzinfo=zone)
    return instant.astimezone(zone)


def within_window(
    now: datetime, *, starts_at: datetime | None, ends_at: datetime | None, tz_name: str
) -> bool:
    """Inclusive on both bounds, a missing bound is open."""
    local_now = to_event_time(now, tz_name)
    if starts_at is not None and local_now < to_event_time(starts_at, tz_name):
        return False
    if ends_at is not None and local_now > to_event_time(ends_at, tz_name):
        return False
    return True


def as_utc(instant: datetime | None) -> datetime | None:
    """Normalise for storage: naive values read back from SQLite are UTC"""
    if instant is None:
        return None
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)
