from datetime import date, datetime, time

from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.exceptions import (
    InvalidDateTime,
    InvalidInput,
    ServiceUnavailable,
    UnsupportedService,
)
from booking_api.models.availability_window import AvailabilityWindow
from booking_api.models.service import Service
from booking_api.services.clock import parse_date, to_instant, to_naive_utc
from booking_api.services.grid import SchedulingRules, day_grid, get_scheduling_rules
from booking_api.services.repository import (
    find_booked_starts,
    find_service,
    find_windows_overlapping,
)


def ensure_bookable(service: Service | None, rules: SchedulingRules) -> Service:
    """Only active services whose session and buffer lengths match the grid take bookings."""
    if service is None or not service.is_active:
        raise ServiceUnavailable()
    if (
        service.duration_minutes != rules.session_minutes
        or service.buffer_minutes != rules.buffer_minutes
    ):
        raise UnsupportedService(rules.session_minutes, rules.buffer_minutes)
    return service


def is_covered(start: datetime, end: datetime, windows: list[AvailabilityWindow]) -> bool:
    """True if [start, end] lies fully inside at least one window."""
    return any(w.start_at <= start and w.end_at >= end for w in windows)


async def compute_available_starts(
    session: AsyncSession,
    service_id: int,
    calendar_date: date | str,
    rules: SchedulingRules | None = None,
) -> list[time]:
    """
    Bookable local start times for a service on a calendar date, ascending.

    A grid point is bookable when one admin window covers the whole session and
    no non-cancelled booking already starts there.
    """
    rules = rules or get_scheduling_rules()
    ensure_bookable(await find_service(session, service_id), rules)

    try:
        d = parse_date(calendar_date)
        day_start = to_instant(d, rules.day_start, rules.tz)
        day_end = to_instant(d, rules.day_end, rules.tz)
    except InvalidDateTime as exc:
        raise InvalidInput(str(exc)) from exc

    windows = await find_windows_overlapping(session, service_id, day_start, day_end)
    if not windows:
        return []
    booked = await find_booked_starts(session, service_id, day_start, day_end)

    times: list[time] = []
    for candidate in day_grid(d, rules):
        start = to_naive_utc(candidate)
        if not is_covered(start, start + rules.session, windows):
            continue
        if start in booked:
            continue
        times.append(candidate.time())
    return times
