# --- File: venue_booking/schemas/booking/booking.py ---
"""
Booking snapshot schemas.

A booking is never edited in place. Every lifecycle operation returns a new
snapshot carrying one more status history entry.
"""

from __future__ import annotations

from datetime import date as Date
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from pydantic import Field, model_validator

from venue_booking.config.settings import Settings
from venue_booking.schemas.common.base import BaseSchema, SnapshotSchema
from venue_booking.schemas.common.enums import (
    ApprovalStatus,
    BookingPaymentStatus,
    BookingStatus,
    BookingType,
)
from venue_booking.schemas.common.time_slot import TimeSlot
from venue_booking.schemas.pricing.pricing_breakdown import PaymentPlan, PricingBreakdown
from venue_booking.schemas.pricing.pricing_inputs import QuoteRequest

__all__ = [
    "StatusHistoryEntry",
    "BookingPolicy",
    "BookingRequest",
    "Booking",
    "BookedSlot",
]


class StatusHistoryEntry(BaseSchema):
    """One append-only entry of a booking's status history."""

    status: BookingStatus
    timestamp: datetime
    actor: str = Field(..., min_length=1, description="User or system that acted")
    note: Optional[str] = None


class BookingPolicy(BaseSchema):
    """Time thresholds applied by the booking lifecycle."""

    min_cancellation_hours: int = Field(24, ge=0)
    min_modification_hours: int = Field(48, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookingPolicy":
        return cls(
            min_cancellation_hours=settings.MIN_CANCELLATION_HOURS,
            min_modification_hours=settings.MIN_MODIFICATION_HOURS,
        )


def _require_slot_for_hourly(booking_type: BookingType, time_slot: Optional[TimeSlot]) -> None:
    if booking_type == BookingType.HOURLY and time_slot is None:
        raise ValueError("Hourly bookings require a time slot")


class BookingRequest(BaseSchema):
    """
    Customer request for a new booking.

    Identifiers are generated outside the core and passed in.
    """

    booking_id: str = Field(..., min_length=1)
    venue_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    booking_type: BookingType
    event_date: Date
    time_slot: Optional[TimeSlot] = None
    duration_hours: Optional[Decimal] = None
    guest_count: int = Field(..., ge=1)
    event_type: str = Field(..., min_length=1, max_length=100)
    event_description: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_slot(self) -> "BookingRequest":
        _require_slot_for_hourly(self.booking_type, self.time_slot)
        return self

    def to_quote_request(self) -> QuoteRequest:
        return QuoteRequest(
            event_date=self.event_date,
            booking_type=self.booking_type,
            time_slot=self.time_slot,
            duration_hours=self.duration_hours,
        )


class Booking(SnapshotSchema):
    """
    Booking snapshot.

    ``status``, ``payment_status`` and ``approval_status`` move together
    through :class:`~venue_booking.services.booking.booking_lifecycle.BookingLifecycle`
    only.
    """

    id: str = Field(..., min_length=1)
    venue_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    booking_type: BookingType
    event_date: Date
    time_slot: Optional[TimeSlot] = None
    guest_count: int = Field(..., ge=1)
    event_type: str = Field(..., min_length=1, max_length=100)
    event_description: Optional[str] = Field(None, max_length=1000)

    pricing: PricingBreakdown
    payment_plan: PaymentPlan

    status: BookingStatus = BookingStatus.PENDING
    payment_status: BookingPaymentStatus = BookingPaymentStatus.PENDING
    approval_status: ApprovalStatus = ApprovalStatus.PENDING

    created_at: datetime
    updated_at: datetime
    cancellation_reason: Optional[str] = None
    owner_approved_at: Optional[datetime] = None
    owner_rejection_reason: Optional[str] = None

    status_history: Tuple[StatusHistoryEntry, ...] = ()

    @model_validator(mode="after")
    def validate_slot(self) -> "Booking":
        _require_slot_for_hourly(self.booking_type, self.time_slot)
        return self

    @property
    def is_full_day(self) -> bool:
        if self.booking_type == BookingType.DAILY:
            return True
        return self.time_slot is not None and self.time_slot.is_full_day

    @property
    def total_amount(self) -> Decimal:
        return self.pricing.total_for_customer

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def last_history_entry(self) -> Optional[StatusHistoryEntry]:
        return self.status_history[-1] if self.status_history else None


class BookedSlot(BaseSchema):
    """
    Conflict detector's view of an existing booking on a venue/date.

    A missing time slot means the booking holds the whole day.
    """

    booking_id: str
    status: BookingStatus
    time_slot: Optional[TimeSlot] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookedSlot":
        return cls(
            booking_id=booking.id,
            status=booking.status,
            time_slot=None if booking.is_full_day else booking.time_slot,
        )

    @property
    def is_full_day(self) -> bool:
        return self.time_slot is None or self.time_slot.is_full_day
