import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.api.deps import get_current_user, get_rules, get_session
from booking_api.api.schemas.booking import (
    AvailabilityResponse,
    CreateBookingRequest,
    CreateBookingResponse,
)
from booking_api.models.booking import Booking, BookingPublic
from booking_api.models.user import User
from booking_api.services.booking_service import (
    cancel_booking,
    commit_booking,
    list_bookings_for_user,
)
from booking_api.services.clock import to_local
from booking_api.services.grid import SchedulingRules
from booking_api.services.slot_service import compute_available_starts

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


def _to_public(b: Booking, rules: SchedulingRules) -> BookingPublic:
    return BookingPublic(
        id=b.id,
        user_id=b.user_id,
        service_id=b.service_id,
        start_at=b.start_at,
        end_at=b.end_at,
        local_start=to_local(b.start_at, rules.tz),
        status=b.status,
        note=b.note,
        created_at=b.created_at,
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def availability(
    service_id: int = Query(..., ge=1),
    date_param: str = Query(..., alias="date", pattern=r"^\d{4}-\d{2}-\d{2}$"),
    session: AsyncSession = Depends(get_session),
    rules: SchedulingRules = Depends(get_rules),
) -> AvailabilityResponse:
    """Bookable start times (HH:MM, business timezone) for a service on a date."""
    times = await compute_available_starts(session, service_id, date_param, rules)
    return AvailabilityResponse(
        service_id=service_id,
        date=date_param,
        timezone=rules.timezone,
        times=[t.strftime("%H:%M") for t in times],
    )


@router.post("", response_model=CreateBookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: CreateBookingRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    rules: SchedulingRules = Depends(get_rules),
) -> CreateBookingResponse:
    created = await commit_booking(
        session,
        service_id=body.service_id,
        user_id=current_user.id,
        local_date=body.date,
        local_start_time=body.start_time,
        session_count=body.sessions,
        note=body.note,
        rules=rules,
    )
    return CreateBookingResponse(
        count=len(created),
        bookings=[_to_public(b, rules) for b in created],
    )


@router.get("", response_model=list[BookingPublic])
async def list_my_bookings(
    from_date: date | None = Query(None, alias="from_date"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    rules: SchedulingRules = Depends(get_rules),
) -> list[BookingPublic]:
    bookings = await list_bookings_for_user(session, current_user.id, from_date=from_date, rules=rules)
    return [_to_public(b, rules) for b in bookings]


@router.post("/{booking_id}/cancel", response_model=BookingPublic)
async def cancel_my_booking(
    booking_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    rules: SchedulingRules = Depends(get_rules),
) -> BookingPublic:
    booking = await cancel_booking(session, booking_id, current_user.id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found or not yours",
        )
    return _to_public(booking, rules)
