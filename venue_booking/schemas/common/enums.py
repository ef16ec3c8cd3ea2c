# --- File: venue_booking/schemas/common/enums.py ---
"""
Enumerations shared across the booking core.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

__all__ = [
    "DayOfWeek",
    "BookingType",
    "BookingStatus",
    "BookingPaymentStatus",
    "ApprovalStatus",
    "BookingAction",
    "PaymentType",
    "PaymentStatus",
    "PaymentAction",
]


class DayOfWeek(str, Enum):
    """Day of week used as the key of every day-keyed pricing map."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, d: date) -> "DayOfWeek":
        return _WEEKDAYS[d.weekday()]


_WEEKDAYS = tuple(DayOfWeek)


class BookingType(str, Enum):
    """Booking type enumeration."""

    DAILY = "daily"
    HOURLY = "hourly"


class BookingStatus(str, Enum):
    """Booking status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAYMENT_PENDING = "payment_pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


class BookingPaymentStatus(str, Enum):
    """Payment progress of a booking as a whole."""

    PENDING = "pending"
    FIRST_PAID = "first_paid"
    FULLY_PAID = "fully_paid"
    FAILED = "failed"


class ApprovalStatus(str, Enum):
    """Venue owner's decision on a booking."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingAction(str, Enum):
    """Operations of the booking state machine."""

    APPROVE = "approve"
    REJECT = "reject"
    UPDATE_PAYMENT_STATUS = "update_payment_status"
    CANCEL = "cancel"
    COMPLETE = "complete"


class PaymentType(str, Enum):
    """Which leg of the payment plan a payment settles."""

    FIRST = "first"
    SECOND = "second"
    FULL = "full"


class PaymentStatus(str, Enum):
    """Status of a single payment attempt."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    EXPIRED = "expired"


class PaymentAction(str, Enum):
    """Operations of the payment state machine."""

    MARK_PROCESSING = "mark_processing"
    COMPLETE = "complete"
    FAIL = "fail"
    CANCEL = "cancel"
    EXPIRE = "expire"
    REFUND = "refund"
