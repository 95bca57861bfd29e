from pydantic import BaseModel, Field

from booking_api.models.booking import BookingPublic


class AvailabilityResponse(BaseModel):
    service_id: int
    date: str  # YYYY-MM-DD
    timezone: str
    times: list[str]  # HH:MM, local to timezone


class CreateBookingRequest(BaseModel):
    service_id: int = Field(ge=1)
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD")
    start_time: str = Field(pattern=r"^\d{2}:\d{2}$", description="HH:MM (24h)")
    sessions: int = Field(default=1, ge=1, le=30)
    note: str | None = Field(default=None, max_length=500)


class CreateBookingResponse(BaseModel):
    message: str = "Booked"
    count: int
    bookings: list[BookingPublic]
