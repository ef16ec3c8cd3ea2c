# --- File: venue_booking/schemas/pricing/pricing_inputs.py ---
"""
Inputs to the pricing engine.

Venue pricing profiles and discounts are authored by venue owners and are
read-only here. Commission and payment-plan settings are stored as entered;
the engine clamps them into the platform bounds when it uses them.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import Dict, FrozenSet, Optional

from pydantic import Field, field_validator, model_validator

from venue_booking.config.settings import Settings
from venue_booking.schemas.common.time_slot import TimeSlot
from venue_booking.schemas.common.base import BaseSchema
from venue_booking.schemas.common.enums import BookingType, DayOfWeek

__all__ = [
    "VenuePricingProfile",
    "Discount",
    "CommissionBounds",
    "CommissionProfile",
    "PaymentPlanConfig",
    "QuoteRequest",
]


class VenuePricingProfile(BaseSchema):
    """
    Owner-configured prices for a venue.

    Day-keyed maps only accept DayOfWeek keys; anything else fails
    validation instead of being ignored.
    """

    base_price: Decimal = Field(..., gt=0, description="Default full-day price")
    daily_pricing: Dict[DayOfWeek, Decimal] = Field(
        default_factory=dict,
        description="Full-day price overrides per day of week",
    )
    hourly_rate: Optional[Decimal] = Field(
        None,
        gt=0,
        description="Default hourly rate",
    )
    hourly_rates_by_day: Dict[DayOfWeek, Decimal] = Field(
        default_factory=dict,
        description="Hourly rate overrides per day of week",
    )

    @field_validator("daily_pricing", "hourly_rates_by_day")
    @classmethod
    def validate_positive_rates(cls, v: Dict[DayOfWeek, Decimal]) -> Dict[DayOfWeek, Decimal]:
        for day, rate in v.items():
            if rate <= 0:
                raise ValueError(f"Rate for {day.value} must be greater than zero")
        return v

    def daily_price_for(self, day: DayOfWeek) -> Decimal:
        return self.daily_pricing.get(day, self.base_price)


class Discount(BaseSchema):
    """Percentage-off rule with eligibility constraints."""

    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    percentage: Decimal = Field(..., ge=0, le=100)
    start_date: Date = Field(..., description="First eligible event date (inclusive)")
    end_date: Date = Field(..., description="Last eligible event date (inclusive)")
    applies_on_days: FrozenSet[DayOfWeek] = Field(
        ...,
        description="Days of week the discount applies on",
    )
    applies_to_daily: bool = True
    applies_to_hourly: bool = True
    specific_time_slot_ids: Optional[FrozenSet[str]] = Field(
        None,
        description="Restrict to these slots; empty or null means any slot",
    )
    minimum_booking_amount: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def validate_date_range(self) -> "Discount":
        if self.end_date < self.start_date:
            raise ValueError(
                f"End date ({self.end_date}) must not be before start date ({self.start_date})"
            )
        return self

    @property
    def has_slot_restriction(self) -> bool:
        return bool(self.specific_time_slot_ids)


class CommissionBounds(BaseSchema):
    """Platform-wide bounds every commission percentage is clamped into."""

    minimum: Decimal = Field(Decimal("1"), ge=0, le=100)
    maximum: Decimal = Field(Decimal("15"), ge=0, le=100)

    @model_validator(mode="after")
    def validate_bounds(self) -> "CommissionBounds":
        if self.minimum > self.maximum:
            raise ValueError(
                f"Minimum commission ({self.minimum}) cannot exceed maximum ({self.maximum})"
            )
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> "CommissionBounds":
        return cls(
            minimum=settings.MIN_COMMISSION_PERCENT,
            maximum=settings.MAX_COMMISSION_PERCENT,
        )


class CommissionProfile(BaseSchema):
    """Commission percentages as configured for a venue or the platform."""

    customer_commission_percent: Decimal = Field(Decimal("5"), ge=0, le=100)
    owner_commission_percent: Decimal = Field(Decimal("3"), ge=0, le=100)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CommissionProfile":
        return cls(
            customer_commission_percent=settings.DEFAULT_CUSTOMER_COMMISSION_PERCENT,
            owner_commission_percent=settings.DEFAULT_OWNER_COMMISSION_PERCENT,
        )


class PaymentPlanConfig(BaseSchema):
    """Split of the customer total into a first and a final installment."""

    first_payment_percent: Decimal = Field(Decimal("60"), ge=0, le=100)
    days_before_event_for_final_payment: int = Field(7, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentPlanConfig":
        return cls(
            first_payment_percent=settings.DEFAULT_FIRST_PAYMENT_PERCENT,
            days_before_event_for_final_payment=settings.DEFAULT_DAYS_BEFORE_EVENT_FOR_FINAL_PAYMENT,
        )


class QuoteRequest(BaseSchema):
    """The part of a booking request the pricing engine needs."""

    event_date: Date
    booking_type: BookingType
    time_slot: Optional[TimeSlot] = None
    duration_hours: Optional[Decimal] = Field(
        None,
        description="Hours booked; defaults to the slot duration",
    )

    @property
    def is_full_day(self) -> bool:
        return self.booking_type == BookingType.DAILY

    @property
    def slot_id(self) -> Optional[str]:
        return self.time_slot.id if self.time_slot else None

    @property
    def effective_duration_hours(self) -> Optional[Decimal]:
        if self.duration_hours is not None:
            return self.duration_hours
        if self.time_slot is not None:
            return self.time_slot.duration_hours
        return None
