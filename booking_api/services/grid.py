"""
Scheduling grid and business-hours rules.

Session starts sit on a fixed grid: every ``step_minutes`` (session + buffer)
from the day's opening time. All arithmetic here is on local wall-clock time in
the business timezone; conversion to stored instants goes through ``clock``.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from functools import lru_cache
from zoneinfo import ZoneInfo

from booking_api.core.config import settings
from booking_api.services.clock import business_tz, to_instant


@dataclass(frozen=True)
class SchedulingRules:
    """
    Grid and opening-hours configuration for the booking flow.

    Attributes:
        timezone: IANA name of the business timezone
        session_minutes: Length of one session
        buffer_minutes: Gap after each session before the next may start
        day_start: Opening time, first grid point
        day_end: Closing time; bounds the last session *end*, not its start
        max_sessions: Upper bound on back-to-back sessions in one booking
    """

    timezone: str = "Europe/Oslo"
    session_minutes: int = 15
    buffer_minutes: int = 5
    day_start: time = time(8, 0)
    day_end: time = time(15, 0)
    max_sessions: int = 30

    def __post_init__(self):
        if self.session_minutes <= 0:
            raise ValueError(f"session_minutes must be positive, got {self.session_minutes}")
        if self.buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {self.buffer_minutes}")
        if self.day_start >= self.day_end:
            raise ValueError("day_start must be before day_end")
        if self.max_sessions < 1:
            raise ValueError(f"max_sessions must be at least 1, got {self.max_sessions}")
        business_tz(self.timezone)

    @property
    def step_minutes(self) -> int:
        return self.session_minutes + self.buffer_minutes

    @property
    def step(self) -> timedelta:
        return timedelta(minutes=self.step_minutes)

    @property
    def session(self) -> timedelta:
        return timedelta(minutes=self.session_minutes)

    @property
    def tz(self) -> ZoneInfo:
        return business_tz(self.timezone)


def _parse_hhmm(value: str) -> time:
    hour, minute = (int(part) for part in value.split(":"))
    return time(hour, minute)


@lru_cache
def get_scheduling_rules() -> SchedulingRules:
    return SchedulingRules(
        timezone=settings.business_timezone,
        session_minutes=settings.session_minutes,
        buffer_minutes=settings.buffer_minutes,
        day_start=_parse_hhmm(settings.day_start),
        day_end=_parse_hhmm(settings.day_end),
        max_sessions=settings.max_sessions_per_booking,
    )


class HoursViolation(str, Enum):
    BEFORE_OPENING = "before_opening"
    AFTER_CLOSING = "after_closing"


def _wall(dt: datetime) -> datetime:
    return dt.replace(tzinfo=None)


def is_on_grid(local_dt: datetime, rules: SchedulingRules) -> bool:
    """True if local_dt is a whole number of steps after that day's opening time."""
    wall = _wall(local_dt)
    elapsed = wall - datetime.combine(wall.date(), rules.day_start)
    if elapsed < timedelta(0):
        return False
    return elapsed % rules.step == timedelta(0)


def business_hours_violation(
    start_local: datetime, session_count: int, rules: SchedulingRules
) -> HoursViolation | None:
    """
    Check that session_count back-to-back sessions starting at start_local all
    fall inside opening hours. A last session ending exactly at closing is fine.
    """
    if session_count < 1:
        raise ValueError(f"session_count must be at least 1, got {session_count}")
    wall = _wall(start_local)
    opening = datetime.combine(wall.date(), rules.day_start)
    closing = datetime.combine(wall.date(), rules.day_end)
    if wall < opening:
        return HoursViolation.BEFORE_OPENING
    last_start = wall + (session_count - 1) * rules.step
    last_end = last_start + rules.session
    if last_end > closing:
        return HoursViolation.AFTER_CLOSING
    return None


def fits_business_hours(start_local: datetime, session_count: int, rules: SchedulingRules) -> bool:
    return business_hours_violation(start_local, session_count, rules) is None


def violation_message(violation: HoursViolation, rules: SchedulingRules) -> str:
    if violation is HoursViolation.BEFORE_OPENING:
        return f"Start time is before opening hours ({rules.day_start.strftime('%H:%M')})."
    return (
        "Selected sessions exceed opening hours "
        f"(must end by {rules.day_end.strftime('%H:%M')} {rules.timezone} time)."
    )


def expand_session_starts(
    start_local: datetime, session_count: int, rules: SchedulingRules
) -> list[datetime]:
    """Stored instants (naive UTC) of each session start, in order."""
    wall = _wall(start_local)
    starts: list[datetime] = []
    for i in range(session_count):
        s = wall + i * rules.step
        starts.append(to_instant(s.date(), s.time(), rules.tz))
    return starts


def day_grid(calendar_date: date, rules: SchedulingRules) -> list[datetime]:
    """Candidate session starts for the day as aware local datetimes, opening inclusive, closing exclusive."""
    current = datetime.combine(calendar_date, rules.day_start)
    closing = datetime.combine(calendar_date, rules.day_end)
    out: list[datetime] = []
    while current < closing:
        out.append(current.replace(tzinfo=rules.tz))
        current += rules.step
    return out
