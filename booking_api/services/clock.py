"""
Conversions between the business timezone and stored instants.

Instants are naive UTC datetimes (the DB columns are TIMESTAMP WITHOUT TIME
ZONE); business rules compare aware datetimes in the business timezone.
"""

from datetime import UTC, date, datetime, time
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_api.core.exceptions import InvalidDateTime


@lru_cache
def business_tz(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc


def now_utc() -> datetime:
    """Naive UTC for comparison with TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    """Stored instant (naive UTC, or aware) -> aware local datetime."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(tz)


def parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        year, month, day = (int(part) for part in value.split("-"))
        return date(year, month, day)
    except (AttributeError, TypeError, ValueError) as exc:
        raise InvalidDateTime(f"Invalid date: {value!r}") from exc


def _coerce_time(value: time | str) -> time:
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    try:
        hour, minute = (int(part) for part in value.split(":"))
        return time(hour, minute)
    except (AttributeError, TypeError, ValueError) as exc:
        raise InvalidDateTime(f"Invalid time: {value!r}") from exc


def parse_local(local_date: date | str, local_time: time | str, tz: ZoneInfo) -> datetime:
    """Build an aware local datetime, rejecting civil times that don't exist or are ambiguous."""
    naive = datetime.combine(parse_date(local_date), _coerce_time(local_time))
    local = naive.replace(tzinfo=tz)
    # A time in a DST gap does not survive the round trip through UTC
    if local.astimezone(UTC).astimezone(tz).replace(tzinfo=None) != naive:
        raise InvalidDateTime(f"{naive.isoformat()} does not exist in {tz.key}")
    if local.replace(fold=1).utcoffset() != local.utcoffset():
        raise InvalidDateTime(f"{naive.isoformat()} is ambiguous in {tz.key}")
    return local


def to_instant(local_date: date | str, local_time: time | str, tz: ZoneInfo) -> datetime:
    return to_naive_utc(parse_local(local_date, local_time, tz))
