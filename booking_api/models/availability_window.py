from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, SQLModel

from booking_api.services.clock import now_utc


class AvailabilityWindow(SQLModel, table=True):
    """Admin-declared open interval [start_at, end_at) for a service, naive UTC."""

    __tablename__ = "availability_windows"
    __table_args__ = (
        Index("ix_availability_windows_service_id_start_at", "service_id", "start_at"),
        CheckConstraint("start_at < end_at", name="ck_availability_windows_start_before_end"),
    )
    id: int | None = Field(default=None, primary_key=True)
    service_id: int = Field(foreign_key="services.id", ondelete="CASCADE")
    start_at: datetime = Field(sa_type=DateTime)
    end_at: datetime = Field(sa_type=DateTime)
    created_at: datetime = Field(default_factory=now_utc, sa_type=DateTime)


class AvailabilityWindowCreate(SQLModel):
    service_id: int
    start_at: datetime
    end_at: datetime


class AvailabilityWindowPublic(SQLModel):
    id: int
    service_id: int
    start_at: datetime
    end_at: datetime
