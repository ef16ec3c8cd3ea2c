# venue_booking/services/booking/conflict_detector.py
"""
Time-slot conflict detection for a venue and date.

Slots are half-open minute ranges ``[start, end)``, so back-to-back
bookings that only touch at a boundary do not conflict. A full-day request
or a full-day existing booking conflicts with everything on that date.
Cancelled bookings never block a slot.
"""

from datetime import date
from typing import Iterable, List, Optional

from venue_booking.core.exceptions import BookingConflictError
from venue_booking.core.logging import get_logger
from venue_booking.schemas.booking import BookedSlot
from venue_booking.schemas.common.enums import BookingStatus
from venue_booking.schemas.common.time_slot import TimeSlot
from venue_booking.utils.date_utils import MINUTES_PER_DAY

logger = get_logger(__name__)


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap; touching boundaries do not overlap."""
    return a_start < b_end and b_start < a_end


def _bounds(slot: Optional[TimeSlot]):
    if slot is None or slot.is_full_day:
        return 0, MINUTES_PER_DAY
    return slot.start_minutes, slot.end_minutes


def slots_conflict(candidate: Optional[TimeSlot], existing: BookedSlot) -> bool:
    """
    Whether ``candidate`` collides with an existing booking.

    A candidate of ``None`` is a full-day request.
    """
    if existing.status == BookingStatus.CANCELLED:
        return False
    if candidate is None or candidate.is_full_day or existing.is_full_day:
        return True
    return overlaps(*_bounds(candidate), *_bounds(existing.time_slot))


def find_conflicts(
    candidate: Optional[TimeSlot],
    existing: Iterable[BookedSlot],
) -> List[BookedSlot]:
    """Every active booking that collides with ``candidate``, in input order."""
    return [booked for booked in existing if slots_conflict(candidate, booked)]


def check_conflict(
    venue_id: str,
    event_date: date,
    candidate: Optional[TimeSlot],
    existing: Iterable[BookedSlot],
) -> None:
    """
    Reject a request that overlaps an active booking.

    Stops at the first overlap found.

    Raises:
        BookingConflictError: When any non-cancelled booking overlaps
    """
    for booked in existing:
        if slots_conflict(candidate, booked):
            logger.info(
                "Booking conflict detected",
                extra={
                    "venue_id": venue_id,
                    "event_date": event_date.isoformat(),
                    "conflicting_booking_id": booked.booking_id,
                },
            )
            raise BookingConflictError(
                f"Venue {venue_id} is already booked on {event_date.isoformat()}"
                f" for {booked.time_slot or 'the full day'}",
                venue_id=venue_id,
                event_date=event_date.isoformat(),
                conflicting_booking_id=booked.booking_id,
            )


def available_slots(
    offered: Iterable[TimeSlot],
    existing: Iterable[BookedSlot],
) -> List[TimeSlot]:
    """Offered slots that do not collide with any active booking."""
    booked = list(existing)
    return [slot for slot in offered if not find_conflicts(slot, booked)]


class ConflictDetector:
    """Thin object wrapper so the detector can be injected into services."""

    def check(
        self,
        venue_id: str,
        event_date: date,
        candidate: Optional[TimeSlot],
        existing: Iterable[BookedSlot],
    ) -> None:
        check_conflict(venue_id, event_date, candidate, existing)

    def find(
        self,
        candidate: Optional[TimeSlot],
        existing: Iterable[BookedSlot],
    ) -> List[BookedSlot]:
        return find_conflicts(candidate, existing)

    def available(
        self,
        offered: Iterable[TimeSlot],
        existing: Iterable[BookedSlot],
    ) -> List[TimeSlot]:
        return available_slots(offered, existing)
