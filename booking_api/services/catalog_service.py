import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.models.availability_window import AvailabilityWindow, AvailabilityWindowCreate
from booking_api.models.service import Service
from booking_api.services.clock import to_naive_utc

logger = logging.getLogger(__name__)


async def list_active_services(session: AsyncSession) -> list[Service]:
    result = await session.execute(
        select(Service).where(Service.is_active == True).order_by(Service.created_at.desc())  # noqa: E712
    )
    return list(result.scalars().all())


async def list_windows_for_service(session: AsyncSession, service_id: int) -> list[AvailabilityWindow]:
    result = await session.execute(
        select(AvailabilityWindow)
        .where(AvailabilityWindow.service_id == service_id)
        .order_by(AvailabilityWindow.start_at)
    )
    return list(result.scalars().all())


async def create_window(session: AsyncSession, data: AvailabilityWindowCreate) -> AvailabilityWindow | None:
    """Create an availability window; None if the service does not exist.

    Raises ValueError when start_at is not before end_at.
    """
    start_at = to_naive_utc(data.start_at)
    end_at = to_naive_utc(data.end_at)
    if not start_at < end_at:
        raise ValueError("start_at must be before end_at")
    service = await session.get(Service, data.service_id)
    if not service:
        return None
    window = AvailabilityWindow(service_id=data.service_id, start_at=start_at, end_at=end_at)
    session.add(window)
    await session.flush()
    await session.refresh(window)
    logger.info(
        "Availability window %s created: service_id=%s %s..%s",
        window.id, window.service_id, start_at.isoformat(), end_at.isoformat(),
    )
    return window


async def delete_window(session: AsyncSession, window_id: int) -> bool:
    window = await session.get(AvailabilityWindow, window_id)
    if not window:
        return False
    await session.delete(window)
    await session.flush()
    return True
