from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from booking_api.core.config import settings


def create_access_token(subject: str | int, role: str, expires_minutes: int | None = None) -> str:
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    expire = datetime.now(UTC) + timedelta(minutes=minutes)
    to_encode = {"sub": str(subject), "role": role, "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> tuple[str | None, str | None]:
    """Returns (user_id_str, role) or (None, None)."""
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
        if payload.get("type") != "access":
            return None, None
        sub = payload.get("sub")
        if not sub:
            return None, None
        return str(sub), payload.get("role")
    except JWTError:
        return None, None
