# --- File: venue_booking/schemas/payment/payment.py ---
"""
Payment snapshot schemas.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from pydantic import Field, model_validator

from venue_booking.schemas.common.base import BaseSchema, SnapshotSchema
from venue_booking.schemas.common.enums import PaymentStatus, PaymentType
from venue_booking.schemas.pricing.pricing_breakdown import CommissionSplit

__all__ = [
    "TERMINAL_PAYMENT_STATUSES",
    "PaymentHistoryEntry",
    "PaymentRecord",
]

TERMINAL_PAYMENT_STATUSES = frozenset(
    {
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
        PaymentStatus.REFUNDED,
        PaymentStatus.EXPIRED,
    }
)


class PaymentHistoryEntry(BaseSchema):
    status: PaymentStatus
    timestamp: datetime
    actor: str = Field(..., min_length=1)
    note: Optional[str] = None


class PaymentRecord(SnapshotSchema):
    """
    A single payment attempt against a booking.

    ``refund_amount`` is cumulative and never exceeds ``amount``.
    """

    id: str = Field(..., min_length=1)
    booking_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    payment_type: PaymentType
    amount: Decimal = Field(..., gt=0)
    currency: str = Field("OMR", min_length=3, max_length=3)
    status: PaymentStatus = PaymentStatus.PENDING

    created_at: datetime
    provider_reference: Optional[str] = None
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    failure_code: Optional[str] = None

    refund_amount: Decimal = Field(Decimal("0.00"), ge=0)
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    refund_reference: Optional[str] = None

    commission: Optional[CommissionSplit] = None
    status_history: Tuple[PaymentHistoryEntry, ...] = ()

    @model_validator(mode="after")
    def validate_refund(self) -> "PaymentRecord":
        if self.refund_amount > self.amount:
            raise ValueError(
                f"Refunded amount ({self.refund_amount}) cannot exceed payment amount ({self.amount})"
            )
        return self

    @property
    def is_terminal(self) -> bool:
        """Failed, cancelled, expired and fully refunded payments never move again."""
        return self.status in TERMINAL_PAYMENT_STATUSES

    @property
    def remaining_refundable_amount(self) -> Decimal:
        if self.status != PaymentStatus.COMPLETED:
            return Decimal("0.00")
        return self.amount - self.refund_amount

    @property
    def is_partially_refunded(self) -> bool:
        return Decimal("0") < self.refund_amount < self.amount
