from booking_api.models.user import User, UserPublic, UserRole
from booking_api.models.service import Service, ServicePublic
from booking_api.models.availability_window import (
    AvailabilityWindow,
    AvailabilityWindowCreate,
    AvailabilityWindowPublic,
)
from booking_api.models.booking import Booking, BookingPublic, BookingStatus

__all__ = [
    "User",
    "UserPublic",
    "UserRole",
    "Service",
    "ServicePublic",
    "AvailabilityWindow",
    "AvailabilityWindowCreate",
    "AvailabilityWindowPublic",
    "Booking",
    "BookingPublic",
    "BookingStatus",
]
