"""
Booking services: conflict detection, the booking state machine and the
booking workflow service.
"""

from venue_booking.services.booking.booking_lifecycle import (
    TRANSITION_TABLE,
    BookingLifecycle,
    TransitionRule,
)
from venue_booking.services.booking.booking_service import BookingService
from venue_booking.services.booking.conflict_detector import (
    ConflictDetector,
    available_slots,
    check_conflict,
    find_conflicts,
    overlaps,
)

__all__ = [
    "TRANSITION_TABLE",
    "BookingLifecycle",
    "BookingService",
    "ConflictDetector",
    "TransitionRule",
    "available_slots",
    "check_conflict",
    "find_conflicts",
    "overlaps",
]
