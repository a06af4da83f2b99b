from .tables import (
    BOOKING_ACTIVE,
    BOOKING_CANCELED,
    AdminUsers,
    Base,
    Bookings,
    Timeslots,
    metadata,
)

__all__ = [
    "BOOKING_ACTIVE",
    "BOOKING_CANCELED",
    "AdminUsers",
    "Base",
    "Bookings",
    "Timeslots",
    "metadata",
]
