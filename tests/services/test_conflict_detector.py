"""
Tests for time-slot conflict detection.

Verifies that:
- Touching boundaries never conflict; any real overlap does
- Full-day requests and full-day bookings block the whole date
- Cancelled bookings never block a slot
- Availability reporting filters offered slots correctly
"""

from datetime import date

import pytest

from venue_booking.core.exceptions import BookingConflictError
from venue_booking.schemas.booking import BookedSlot
from venue_booking.schemas.common import BookingStatus, TimeSlot
from venue_booking.services.booking import (
    ConflictDetector,
    available_slots,
    check_conflict,
    find_conflicts,
    overlaps,
)

EVENT_DATE = date(2025, 4, 4)


def slot(start, end, slot_id=None):
    return TimeSlot(id=slot_id or f"{start}-{end}", start_time=start, end_time=end)


def booked(booking_id, time_slot=None, status=BookingStatus.CONFIRMED):
    return BookedSlot(booking_id=booking_id, status=status, time_slot=time_slot)


class TestOverlaps:

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((600, 840), (780, 960), True),     # 10:00-14:00 vs 13:00-16:00
            ((600, 720), (720, 840), False),    # touching end to start
            ((720, 840), (600, 720), False),    # touching start to end
            ((600, 900), (660, 720), True),     # containment
            ((600, 720), (600, 720), True),     # identical
            ((0, 60), (1380, 1440), False),     # opposite ends of the day
        ],
    )
    def test_half_open_overlap(self, a, b, expected):
        assert overlaps(*a, *b) is expected
        assert overlaps(*b, *a) is expected


class TestCheckConflict:
    """check_conflict against a day's existing bookings."""

    def setup_method(self):
        self.morning = booked("bk-a", slot("10:00", "14:00"))

    # ------------------------------------------------------------------ #
    # Hourly against hourly
    # ------------------------------------------------------------------ #

    def test_overlapping_slot_is_rejected_with_conflicting_id(self):
        with pytest.raises(BookingConflictError) as exc_info:
            check_conflict("venue-1", EVENT_DATE, slot("13:00", "16:00"), [self.morning])

        details = exc_info.value.details
        assert details["conflicting_booking_id"] == "bk-a"
        assert details["venue_id"] == "venue-1"
        assert details["event_date"] == "2025-04-04"

    def test_back_to_back_slots_are_allowed(self):
        check_conflict("venue-1", EVENT_DATE, slot("14:00", "18:00"), [self.morning])
        check_conflict("venue-1", EVENT_DATE, slot("08:00", "10:00"), [self.morning])

    def test_slot_ending_at_midnight(self):
        late = booked("bk-late", slot("20:00", "24:00"))
        check_conflict("venue-1", EVENT_DATE, slot("18:00", "20:00"), [late])
        with pytest.raises(BookingConflictError):
            check_conflict("venue-1", EVENT_DATE, slot("23:00", "24:00"), [late])

    def test_first_conflict_is_reported(self):
        second = booked("bk-b", slot("12:00", "15:00"))
        with pytest.raises(BookingConflictError) as exc_info:
            check_conflict("venue-1", EVENT_DATE, slot("11:00", "13:00"), [self.morning, second])
        assert exc_info.value.details["conflicting_booking_id"] == "bk-a"

    # ------------------------------------------------------------------ #
    # Full day
    # ------------------------------------------------------------------ #

    def test_full_day_request_conflicts_with_any_booking(self):
        with pytest.raises(BookingConflictError):
            check_conflict("venue-1", EVENT_DATE, None, [self.morning])
        with pytest.raises(BookingConflictError):
            check_conflict("venue-1", EVENT_DATE, TimeSlot.full_day(), [self.morning])

    def test_full_day_booking_blocks_every_slot(self):
        whole_day = booked("bk-day")
        with pytest.raises(BookingConflictError) as exc_info:
            check_conflict("venue-1", EVENT_DATE, slot("06:00", "07:00"), [whole_day])
        assert "full day" in exc_info.value.message

    def test_empty_day_is_free(self):
        check_conflict("venue-1", EVENT_DATE, None, [])

    # ------------------------------------------------------------------ #
    # Statuses
    # ------------------------------------------------------------------ #

    def test_cancelled_bookings_are_ignored(self):
        cancelled_day = booked("bk-x", status=BookingStatus.CANCELLED)
        cancelled_slot = booked("bk-y", slot("10:00", "14:00"), BookingStatus.CANCELLED)
        check_conflict("venue-1", EVENT_DATE, None, [cancelled_day, cancelled_slot])

    @pytest.mark.parametrize(
        "status",
        [BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.PAYMENT_PENDING, BookingStatus.COMPLETED],
    )
    def test_active_statuses_block(self, status):
        existing = booked("bk-s", slot("10:00", "14:00"), status)
        with pytest.raises(BookingConflictError):
            check_conflict("venue-1", EVENT_DATE, slot("12:00", "13:00"), [existing])


class TestFindAndAvailable:

    def setup_method(self):
        self.existing = [
            booked("bk-a", slot("10:00", "14:00")),
            booked("bk-b", slot("18:00", "22:00")),
            booked("bk-c", slot("14:00", "18:00"), BookingStatus.CANCELLED),
        ]
        self.offered = [
            slot("08:00", "10:00", "early"),
            slot("10:00", "14:00", "midday"),
            slot("14:00", "18:00", "afternoon"),
            slot("18:00", "22:00", "evening"),
        ]

    def test_find_conflicts_lists_every_overlap_in_order(self):
        conflicts = find_conflicts(slot("12:00", "20:00"), self.existing)
        assert [c.booking_id for c in conflicts] == ["bk-a", "bk-b"]

    def test_find_conflicts_for_full_day_skips_cancelled(self):
        conflicts = find_conflicts(None, self.existing)
        assert [c.booking_id for c in conflicts] == ["bk-a", "bk-b"]

    def test_available_slots(self):
        free = available_slots(self.offered, self.existing)
        assert [s.id for s in free] == ["early", "afternoon"]

    def test_available_slots_accepts_generators(self):
        free = available_slots(iter(self.offered), (b for b in self.existing))
        assert len(free) == 2

    def test_detector_wrapper_delegates(self):
        detector = ConflictDetector()
        assert detector.available(self.offered, self.existing) == available_slots(self.offered, self.existing)
        assert detector.find(None, []) == []
        with pytest.raises(BookingConflictError):
            detector.check("venue-1", EVENT_DATE, slot("09:00", "11:00"), self.existing)
