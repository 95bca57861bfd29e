"""
Persistence reads used by availability and booking, plus the one transactional
write that creates bookings.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.models.availability_window import AvailabilityWindow
from booking_api.models.booking import ACTIVE_SLOT_INDEX, Booking, BookingStatus
from booking_api.models.service import Service


class SlotsClaimed(Exception):
    """Re-check inside the insert transaction found active bookings on requested starts."""

    def __init__(self, starts: Sequence[datetime]) -> None:
        self.starts = sorted(starts)
        super().__init__(f"{len(self.starts)} start(s) already claimed")


# PostgreSQL names the index; SQLite lists its columns
_ACTIVE_SLOT_MARKERS = (ACTIVE_SLOT_INDEX, "bookings.service_id, bookings.start_at")


def is_active_slot_violation(exc: IntegrityError) -> bool:
    """True if the IntegrityError came from the one-active-booking-per-slot index."""
    message = str(exc.orig)
    return any(marker in message for marker in _ACTIVE_SLOT_MARKERS)


class DuplicateSlotError(Exception):
    """The unique index on active (service_id, start_at) rejected the insert."""

    def __init__(self, service_id: int, starts: Sequence[datetime]) -> None:
        self.service_id = service_id
        self.starts = sorted(starts)
        super().__init__(f"Duplicate active booking for service {service_id}")


async def find_service(session: AsyncSession, service_id: int) -> Service | None:
    return await session.get(Service, service_id)


async def find_windows_overlapping(
    session: AsyncSession, service_id: int, start: datetime, end: datetime
) -> list[AvailabilityWindow]:
    result = await session.execute(
        select(AvailabilityWindow)
        .where(
            AvailabilityWindow.service_id == service_id,
            AvailabilityWindow.start_at < end,
            AvailabilityWindow.end_at > start,
        )
        .order_by(AvailabilityWindow.start_at)
    )
    return list(result.scalars().all())


async def find_booked_starts(
    session: AsyncSession, service_id: int, start_inclusive: datetime, end_exclusive: datetime
) -> set[datetime]:
    result = await session.execute(
        select(Booking.start_at).where(
            Booking.service_id == service_id,
            Booking.status != BookingStatus.CANCELLED,
            Booking.start_at >= start_inclusive,
            Booking.start_at < end_exclusive,
        )
    )
    return {row[0] for row in result.all()}


async def find_bookings_with_starts_in(
    session: AsyncSession, service_id: int, starts: Sequence[datetime]
) -> list[Booking]:
    if not starts:
        return []
    result = await session.execute(
        select(Booking)
        .where(
            Booking.service_id == service_id,
            Booking.status != BookingStatus.CANCELLED,
            Booking.start_at.in_(list(starts)),
        )
        .order_by(Booking.start_at)
    )
    return list(result.scalars().all())


async def insert_bookings_if_none_exist(
    session: AsyncSession,
    *,
    service_id: int,
    user_id: int,
    starts: Sequence[datetime],
    session_minutes: int,
    note: str | None = None,
) -> list[Booking]:
    """
    Re-check and insert in one transaction; all rows commit or none do.

    Raises SlotsClaimed when the re-check finds active bookings on any start,
    DuplicateSlotError when the unique index catches a concurrent writer. Other
    integrity errors (missing user or service rows) propagate unchanged.
    """
    claimed = await find_bookings_with_starts_in(session, service_id, starts)
    if claimed:
        raise SlotsClaimed([b.start_at for b in claimed])

    rows = [
        Booking(
            user_id=user_id,
            service_id=service_id,
            start_at=start,
            end_at=start + timedelta(minutes=session_minutes),
            status=BookingStatus.CONFIRMED,
            note=note,
        )
        for start in starts
    ]
    session.add_all(rows)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_active_slot_violation(exc):
            raise
        raise DuplicateSlotError(service_id, starts) from exc
    return sorted(rows, key=lambda b: b.start_at)
