import logging
from datetime import date, datetime, time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.exceptions import (
    BookingConflict,
    InThePast,
    InvalidDateTime,
    InvalidInput,
    NotOnGrid,
    NotWithinAvailability,
    OutsideBusinessHours,
)
from booking_api.models.booking import Booking, BookingStatus
from booking_api.services.clock import now_utc, parse_local, to_instant, to_local, to_naive_utc
from booking_api.services.grid import (
    SchedulingRules,
    business_hours_violation,
    expand_session_starts,
    get_scheduling_rules,
    is_on_grid,
    violation_message,
)
from booking_api.services.repository import (
    DuplicateSlotError,
    SlotsClaimed,
    find_bookings_with_starts_in,
    find_service,
    find_windows_overlapping,
    insert_bookings_if_none_exist,
)
from booking_api.services.slot_service import ensure_bookable, is_covered

logger = logging.getLogger(__name__)


def _conflict(starts: list[datetime], rules: SchedulingRules) -> BookingConflict:
    starts = sorted(starts)
    return BookingConflict(starts, [to_local(s, rules.tz).time() for s in starts])


async def commit_booking(
    session: AsyncSession,
    *,
    service_id: int,
    user_id: int,
    local_date: date | str,
    local_start_time: time | str,
    session_count: int,
    note: str | None = None,
    rules: SchedulingRules | None = None,
    now: datetime | None = None,
) -> list[Booking]:
    """
    Book session_count back-to-back sessions starting at a local date/time.

    Checks run in a fixed order and stop at the first failure; later checks
    rely on the earlier ones. Returns the created bookings ordered by start.

    Raises:
        InvalidInput, NotOnGrid, OutsideBusinessHours, InThePast,
        ServiceUnavailable, NotWithinAvailability, BookingConflict
    """
    rules = rules or get_scheduling_rules()

    # 1) Parse start time in the business timezone
    try:
        start_local = parse_local(local_date, local_start_time, rules.tz)
    except InvalidDateTime as exc:
        raise InvalidInput(str(exc)) from exc
    if not 1 <= session_count <= rules.max_sessions:
        raise InvalidInput(f"sessions must be between 1 and {rules.max_sessions}")

    # 2) Alignment to the step grid
    if not is_on_grid(start_local, rules):
        raise NotOnGrid(rules.step_minutes, rules.day_start)

    # 3) Opening hours
    violation = business_hours_violation(start_local, session_count, rules)
    if violation is not None:
        raise OutsideBusinessHours(violation.value, violation_message(violation, rules))

    # 4) Not in the past
    current = to_naive_utc(now) if now is not None else now_utc()
    if to_naive_utc(start_local) < current:
        raise InThePast()

    # 5) Service exists, is active and has the supported duration
    ensure_bookable(await find_service(session, service_id), rules)

    # 6) All session starts as stored instants
    starts = expand_session_starts(start_local, session_count, rules)

    # 7) Every session inside an admin window
    windows = await find_windows_overlapping(
        session, service_id, starts[0], starts[-1] + rules.session
    )
    for start in starts:
        if not is_covered(start, start + rules.session, windows):
            raise NotWithinAvailability(to_local(start, rules.tz).time())

    # 8) Re-check and insert atomically
    try:
        created = await insert_bookings_if_none_exist(
            session,
            service_id=service_id,
            user_id=user_id,
            starts=starts,
            session_minutes=rules.session_minutes,
            note=note,
        )
    except SlotsClaimed as exc:
        logger.info(
            "Booking conflict: service_id=%s user_id=%s claimed=%s",
            service_id, user_id, [s.isoformat() for s in exc.starts],
        )
        raise _conflict(exc.starts, rules) from exc
    except DuplicateSlotError as exc:
        logger.warning(
            "Unique index rejected booking: service_id=%s user_id=%s starts=%s",
            service_id, user_id, [s.isoformat() for s in exc.starts],
        )
        claimed = [b.start_at for b in await find_bookings_with_starts_in(session, service_id, starts)]
        if not claimed:
            raise
        raise _conflict(claimed, rules) from exc

    logger.info(
        "Booked %d session(s): service_id=%s user_id=%s first_start=%s",
        len(created), service_id, user_id, starts[0].isoformat(),
    )
    return created


async def list_bookings_for_user(
    session: AsyncSession,
    user_id: int,
    from_date: date | None = None,
    rules: SchedulingRules | None = None,
) -> list[Booking]:
    q = select(Booking).where(Booking.user_id == user_id).order_by(Booking.start_at)
    if from_date:
        rules = rules or get_scheduling_rules()
        q = q.where(Booking.start_at >= to_instant(from_date, time(0, 0), rules.tz))
    result = await session.execute(q)
    return list(result.scalars().all())


async def cancel_booking(session: AsyncSession, booking_id: int, user_id: int) -> Booking | None:
    """Mark the caller's booking CANCELLED, freeing its slot. None if not found or not theirs."""
    result = await session.execute(
        select(Booking).where(
            Booking.id == booking_id,
            Booking.user_id == user_id,
        )
    )
    booking = result.scalar_one_or_none()
    if not booking:
        return None
    if booking.status != BookingStatus.CANCELLED:
        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = now_utc()
        session.add(booking)
        await session.flush()
        logger.info("Booking %s cancelled by user_id=%s", booking_id, user_id)
    return booking
