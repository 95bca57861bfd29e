from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.api.deps import get_session
from booking_api.models.availability_window import AvailabilityWindowPublic
from booking_api.models.service import ServicePublic
from booking_api.services.catalog_service import list_active_services, list_windows_for_service

router = APIRouter(prefix="/services", tags=["services"])


@router.get("", response_model=list[ServicePublic])
async def active_services(session: AsyncSession = Depends(get_session)) -> list[ServicePublic]:
    services = await list_active_services(session)
    return [ServicePublic.model_validate(s, from_attributes=True) for s in services]


@router.get("/{service_id}/windows", response_model=list[AvailabilityWindowPublic])
async def service_windows(
    service_id: int,
    session: AsyncSession = Depends(get_session),
) -> list[AvailabilityWindowPublic]:
    windows = await list_windows_for_service(session, service_id)
    return [AvailabilityWindowPublic.model_validate(w, from_attributes=True) for w in windows]
