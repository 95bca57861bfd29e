"""
Booking-related exceptions.

Every ``BookingError`` is a client-recoverable rejection with a stable ``code``
and an HTTP status; ``main.py`` turns them into JSON responses.
"""

from datetime import datetime, time
from typing import Any


class InvalidDateTime(ValueError):
    """Local date/time fields do not form a real civil date-time in the business timezone."""


class BookingError(Exception):
    """Base exception for booking flow errors."""

    code = "booking_error"
    status_code = 400
    default_message = "Booking request rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra(self) -> dict[str, Any]:
        return {}


class InvalidInput(BookingError):
    code = "invalid_input"
    default_message = "Invalid date/start_time"


class NotOnGrid(BookingError):
    code = "not_on_grid"

    def __init__(self, step_minutes: int, day_start: time) -> None:
        self.step_minutes = step_minutes
        self.day_start = day_start
        start = day_start.strftime("%H:%M")
        super().__init__(
            f"start_time must be aligned to {step_minutes}-minute slots from {start}"
        )


class OutsideBusinessHours(BookingError):
    code = "outside_business_hours"

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        super().__init__(message)

    def extra(self) -> dict[str, Any]:
        return {"reason": self.reason}


class InThePast(BookingError):
    code = "in_the_past"
    default_message = "Cannot book a time in the past"


class ServiceUnavailable(BookingError):
    code = "service_unavailable"
    status_code = 404
    default_message = "Service not found or inactive"


class UnsupportedService(ServiceUnavailable):
    """Service exists but its session or buffer length is not the one this booking flow supports."""

    code = "unsupported_service"
    status_code = 400

    def __init__(self, session_minutes: int, buffer_minutes: int) -> None:
        self.session_minutes = session_minutes
        self.buffer_minutes = buffer_minutes
        super().__init__(
            f"Service must use {session_minutes}-minute sessions with a {buffer_minutes}-minute buffer"
            " for this booking flow"
        )


class NotWithinAvailability(BookingError):
    code = "not_within_availability"

    def __init__(self, first_uncovered: time) -> None:
        self.first_uncovered = first_uncovered
        super().__init__("Selected time is not within admin availability for this service")

    def extra(self) -> dict[str, Any]:
        return {"first_uncovered": self.first_uncovered.strftime("%H:%M")}


class BookingConflict(BookingError):
    code = "conflict"
    status_code = 409

    def __init__(self, starts: list[datetime], local_times: list[time]) -> None:
        self.starts = starts
        self.local_times = local_times
        super().__init__("One or more selected slots are already booked")

    def extra(self) -> dict[str, Any]:
        return {
            "conflicts": [
                {"start_at": s.isoformat(), "time": t.strftime("%H:%M")}
                for s, t in zip(self.starts, self.local_times)
            ]
        }
