"""
Seed local data: an admin, a demo user and a 15-minute service.

    python -m booking_api.seed
    python -m booking_api.seed --window-date 2030-06-12 --window 09:00-12:00

Prints access tokens for both users so the API can be exercised without a
login flow.
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.db import async_session_maker, init_db
from booking_api.core.security import create_access_token
from booking_api.models.availability_window import AvailabilityWindowCreate
from booking_api.models.service import Service
from booking_api.models.user import User, UserRole
from booking_api.services.catalog_service import create_window
from booking_api.services.clock import parse_local
from booking_api.services.grid import SchedulingRules, get_scheduling_rules

logger = logging.getLogger(__name__)

ADMIN_EMAIL = "admin@test.com"
USER_EMAIL = "user@test.com"
SERVICE_NAME = "Singing lesson (15 min)"


@dataclass
class SeedResult:
    admin: User
    user: User
    service: Service


async def _upsert_user(session: AsyncSession, email: str, full_name: str, role: UserRole) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        user.full_name = full_name
        user.role = role
    else:
        user = User(email=email, full_name=full_name, role=role)
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def _upsert_service(session: AsyncSession, rules: SchedulingRules) -> Service:
    result = await session.execute(select(Service).where(Service.name == SERVICE_NAME))
    service = result.scalar_one_or_none()
    if not service:
        service = Service(name=SERVICE_NAME)
    service.description = f"{rules.session_minutes} minutes lesson + {rules.buffer_minutes} minutes break"
    service.duration_minutes = rules.session_minutes
    service.buffer_minutes = rules.buffer_minutes
    service.is_active = True
    session.add(service)
    await session.flush()
    await session.refresh(service)
    return service


async def seed(
    session: AsyncSession,
    rules: SchedulingRules | None = None,
    window_date: str | None = None,
    window: str = "09:00-12:00",
) -> SeedResult:
    """Upsert the demo users and service; optionally open a local HH:MM-HH:MM window on window_date."""
    rules = rules or get_scheduling_rules()
    admin = await _upsert_user(session, ADMIN_EMAIL, "Studio Admin", UserRole.ADMIN)
    user = await _upsert_user(session, USER_EMAIL, "Test User", UserRole.USER)
    service = await _upsert_service(session, rules)
    if window_date:
        start_s, end_s = window.split("-")
        await create_window(
            session,
            AvailabilityWindowCreate(
                service_id=service.id,
                start_at=parse_local(window_date, start_s, rules.tz),
                end_at=parse_local(window_date, end_s, rules.tz),
            ),
        )
    return SeedResult(admin=admin, user=user, service=service)


async def _main(args: argparse.Namespace) -> None:
    rules = get_scheduling_rules()
    if args.create_tables:
        await init_db()
    async with async_session_maker() as session:
        try:
            result = await seed(session, rules, args.window_date, args.window)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    logger.info("Seed done")
    print(f"Admin:     {result.admin.email}  token={create_access_token(result.admin.id, result.admin.role.value, 24 * 60)}")
    print(f"User:      {result.user.email}  token={create_access_token(result.user.id, result.user.role.value, 24 * 60)}")
    print(f"ServiceId: {result.service.id}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed booking data")
    parser.add_argument("--create-tables", action="store_true", help="run create_all before seeding")
    parser.add_argument("--window-date", help="YYYY-MM-DD to open an availability window on")
    parser.add_argument("--window", default="09:00-12:00", help="local HH:MM-HH:MM window")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main(args))


if __name__ == "__main__":
    main()
