from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from booking_api.services.clock import now_utc


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    full_name: str | None = None
    role: UserRole = UserRole.USER


class User(UserBase, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=now_utc, sa_type=DateTime)


class UserPublic(SQLModel):
    id: int
    email: str
    full_name: str | None = None
    role: UserRole
