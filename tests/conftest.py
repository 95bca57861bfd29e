import os

# Settings are read at import time; point them at throwaway values first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")

from datetime import date, datetime, time  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from booking_api.api.deps import get_rules  # noqa: E402
from booking_api.core.db import get_session  # noqa: E402
from booking_api.core.security import create_access_token  # noqa: E402
from booking_api.main import app  # noqa: E402
from booking_api.models import (  # noqa: E402
    AvailabilityWindow,
    Booking,
    BookingStatus,
    Service,
    User,
    UserRole,
)
from booking_api.services.clock import to_instant  # noqa: E402
from booking_api.services.grid import SchedulingRules  # noqa: E402

# A Wednesday in CEST (UTC+2)
BOOKING_DAY = date(2030, 6, 12)


def instant(d: date, hhmm: str, rules: SchedulingRules) -> datetime:
    """Stored instant for a local date and HH:MM in the rules' timezone."""
    return to_instant(d, hhmm, rules.tz)


def hhmm(values: list[time]) -> list[str]:
    return [t.strftime("%H:%M") for t in values]


async def add_window(
    session: AsyncSession, service: Service, d: date, start: str, end: str, rules: SchedulingRules
) -> AvailabilityWindow:
    window = AvailabilityWindow(
        service_id=service.id,
        start_at=instant(d, start, rules),
        end_at=instant(d, end, rules),
    )
    session.add(window)
    await session.commit()
    return window


async def add_booking(
    session: AsyncSession,
    service: Service,
    user: User,
    d: date,
    start: str,
    rules: SchedulingRules,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> Booking:
    start_at = instant(d, start, rules)
    booking = Booking(
        user_id=user.id,
        service_id=service.id,
        start_at=start_at,
        end_at=start_at + rules.session,
        status=status,
    )
    session.add(booking)
    await session.commit()
    return booking


@pytest.fixture
def rules() -> SchedulingRules:
    return SchedulingRules()


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}")

    # SQLite leaves foreign keys off unless asked per connection
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
async def service(session) -> Service:
    svc = Service(name="Singing lesson (15 min)", duration_minutes=15, buffer_minutes=5)
    session.add(svc)
    await session.commit()
    return svc


@pytest.fixture
async def user(session) -> User:
    u = User(email="user@test.com", full_name="Test User", role=UserRole.USER)
    session.add(u)
    await session.commit()
    return u


@pytest.fixture
async def other_user(session) -> User:
    u = User(email="other@test.com", full_name="Other User", role=UserRole.USER)
    session.add(u)
    await session.commit()
    return u


@pytest.fixture
async def admin(session) -> User:
    u = User(email="admin@test.com", full_name="Studio Admin", role=UserRole.ADMIN)
    session.add(u)
    await session.commit()
    return u


def auth_header(u: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(u.id, u.role.value)}"}


@pytest.fixture
async def client(session_maker, rules):
    async def override_get_session():
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_rules] = lambda: rules
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
