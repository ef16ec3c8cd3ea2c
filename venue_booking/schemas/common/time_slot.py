# --- File: venue_booking/schemas/common/time_slot.py ---
"""
Time slot schema for hourly bookings.

A slot is a named range within one day, written as ``"HH:MM"`` strings the
way venue owners configure them. ``"24:00"`` closes a slot at midnight.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field, field_validator, model_validator

from venue_booking.schemas.common.base import BaseSchema
from venue_booking.utils.date_utils import (
    MINUTES_PER_DAY,
    DateUtilsError,
    parse_time_of_day,
)

__all__ = ["TimeSlot"]


class TimeSlot(BaseSchema):
    """
    Time slot within an event day.

    Full-day slots always span 00:00-24:00 regardless of the configured
    strings, so they conflict with every other booking on that date.
    """

    id: str = Field(..., min_length=1, description="Slot identifier")
    start_time: str = Field(..., description="Start time (HH:MM)")
    end_time: str = Field(..., description="End time (HH:MM, 24:00 allowed)")
    is_full_day: bool = Field(False, description="Slot covers the whole day")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, v: str) -> str:
        try:
            parse_time_of_day(v)
        except DateUtilsError as exc:
            raise ValueError(str(exc)) from exc
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "TimeSlot":
        """End must come after start; overnight slots are not supported."""
        if self.is_full_day:
            return self
        if parse_time_of_day(self.end_time) <= parse_time_of_day(self.start_time):
            raise ValueError(
                f"End time ({self.end_time}) must be after start time ({self.start_time})"
            )
        return self

    @classmethod
    def full_day(cls, slot_id: str = "full_day") -> "TimeSlot":
        return cls(id=slot_id, start_time="00:00", end_time="24:00", is_full_day=True)

    @property
    def start_minutes(self) -> int:
        return 0 if self.is_full_day else parse_time_of_day(self.start_time)

    @property
    def end_minutes(self) -> int:
        return MINUTES_PER_DAY if self.is_full_day else parse_time_of_day(self.end_time)

    @property
    def duration_hours(self) -> Decimal:
        return Decimal(self.end_minutes - self.start_minutes) / Decimal(60)

    def __str__(self) -> str:
        return "Full Day" if self.is_full_day else f"{self.start_time} - {self.end_time}"
