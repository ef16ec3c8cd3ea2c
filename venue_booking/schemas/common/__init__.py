from venue_booking.schemas.common.base import BaseSchema, SnapshotSchema
from venue_booking.schemas.common.enums import (
    ApprovalStatus,
    BookingAction,
    BookingPaymentStatus,
    BookingStatus,
    BookingType,
    DayOfWeek,
    PaymentAction,
    PaymentStatus,
    PaymentType,
)
from venue_booking.schemas.common.time_slot import TimeSlot

__all__ = [
    "BaseSchema",
    "SnapshotSchema",
    "TimeSlot",
    "ApprovalStatus",
    "BookingAction",
    "BookingPaymentStatus",
    "BookingStatus",
    "BookingType",
    "DayOfWeek",
    "PaymentAction",
    "PaymentStatus",
    "PaymentType",
]
