import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.api.deps import get_session, require_admin
from booking_api.models.availability_window import (
    AvailabilityWindowCreate,
    AvailabilityWindowPublic,
)
from booking_api.models.user import User
from booking_api.services.catalog_service import (
    create_window,
    delete_window,
    list_windows_for_service,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/windows", response_model=AvailabilityWindowPublic, status_code=status.HTTP_201_CREATED)
async def add_window(
    body: AvailabilityWindowCreate,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
) -> AvailabilityWindowPublic:
    try:
        window = await create_window(session, body)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    if not window:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    logger.info("Admin %s added window %s", admin.email, window.id)
    return AvailabilityWindowPublic.model_validate(window, from_attributes=True)


@router.get("/windows/{service_id}", response_model=list[AvailabilityWindowPublic])
async def windows_for_service(
    service_id: int,
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> list[AvailabilityWindowPublic]:
    windows = await list_windows_for_service(session, service_id)
    return [AvailabilityWindowPublic.model_validate(w, from_attributes=True) for w in windows]


@router.delete("/windows/{window_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_window(
    window_id: int,
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> None:
    if not await delete_window(session, window_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Window not found")
