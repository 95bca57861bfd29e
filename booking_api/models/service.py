from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from booking_api.services.clock import now_utc


class Service(SQLModel, table=True):
    __tablename__ = "services"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    description: str | None = None
    duration_minutes: int = 15
    buffer_minutes: int = 5
    is_active: bool = True
    created_at: datetime = Field(default_factory=now_utc, sa_type=DateTime)


class ServicePublic(SQLModel):
    id: int
    name: str
    description: str | None = None
    duration_minutes: int
    buffer_minutes: int
    is_active: bool
