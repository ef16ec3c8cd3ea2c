from venue_booking.schemas.booking.booking import (
    BookedSlot,
    Booking,
    BookingPolicy,
    BookingRequest,
    StatusHistoryEntry,
)

__all__ = [
    "BookedSlot",
    "Booking",
    "BookingPolicy",
    "BookingRequest",
    "StatusHistoryEntry",
]
