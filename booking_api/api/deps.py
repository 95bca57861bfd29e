from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.db import get_session
from booking_api.core.security import decode_access_token
from booking_api.models.user import User, UserRole
from booking_api.services.grid import SchedulingRules, get_scheduling_rules

security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise _unauthenticated("Missing or invalid authorization header")
    user_id, _role = decode_access_token(credentials.credentials)
    if not user_id:
        raise _unauthenticated("Invalid or expired token")
    try:
        uid = int(user_id)
    except ValueError:
        raise _unauthenticated("Invalid token")
    result = await session.execute(select(User).where(User.id == uid))
    user = result.scalar_one_or_none()
    if not user:
        raise _unauthenticated("User not found")
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    # Role comes from the users row; the token's role claim is not trusted here
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return current_user


def get_rules() -> SchedulingRules:
    return get_scheduling_rules()
