from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel

from booking_api.services.clock import now_utc

ACTIVE_BOOKING_CLAUSE = "status <> 'CANCELLED'"
ACTIVE_SLOT_INDEX = "uq_bookings_service_start_active"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_service_id_start_at", "service_id", "start_at"),
        Index("ix_bookings_user_id_created_at", "user_id", "created_at"),
        # No two non-cancelled bookings may share a service slot
        Index(
            ACTIVE_SLOT_INDEX,
            "service_id",
            "start_at",
            unique=True,
            postgresql_where=text(ACTIVE_BOOKING_CLAUSE),
            sqlite_where=text(ACTIVE_BOOKING_CLAUSE),
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE")
    service_id: int = Field(foreign_key="services.id", ondelete="CASCADE")
    start_at: datetime = Field(sa_type=DateTime)
    end_at: datetime = Field(sa_type=DateTime)
    status: BookingStatus = BookingStatus.CONFIRMED
    note: str | None = Field(default=None, max_length=500)
    cancelled_at: datetime | None = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=now_utc, sa_type=DateTime)


class BookingPublic(SQLModel):
    id: int
    user_id: int
    service_id: int
    start_at: datetime
    end_at: datetime
    local_start: datetime
    status: BookingStatus
    note: str | None = None
    created_at: datetime
