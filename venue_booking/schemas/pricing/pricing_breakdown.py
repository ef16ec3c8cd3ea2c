# --- File: venue_booking/schemas/pricing/pricing_breakdown.py ---
"""
Pricing engine outputs.

A breakdown is produced once per booking at creation time and is never
mutated afterwards; a re-quote produces a new value.
"""

from __future__ import annotations

from datetime import date as Date
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from pydantic import Field

from venue_booking.schemas.common.base import BaseSchema
from venue_booking.schemas.pricing.pricing_inputs import Discount

__all__ = [
    "AppliedDiscount",
    "DiscountSelection",
    "CommissionSplit",
    "PricingBreakdown",
    "PaymentPlan",
    "Quote",
]


class AppliedDiscount(BaseSchema):
    """Discount actually applied to a booking."""

    discount_id: str
    name: Optional[str] = None
    discount_percent: Decimal = Field(..., ge=0, le=100)
    discount_amount: Decimal = Field(..., ge=0)


class DiscountSelection(BaseSchema):
    """Result of best-discount selection."""

    original_price: Decimal
    discounted_price: Decimal
    chosen_discount: Optional[Discount] = None
    applicable_discounts: Tuple[Discount, ...] = ()

    @property
    def discount_amount(self) -> Decimal:
        return self.original_price - self.discounted_price

    @property
    def has_discount(self) -> bool:
        return self.chosen_discount is not None

    def to_applied(self) -> Optional[AppliedDiscount]:
        if self.chosen_discount is None:
            return None
        return AppliedDiscount(
            discount_id=self.chosen_discount.id,
            name=self.chosen_discount.name,
            discount_percent=self.chosen_discount.percentage,
            discount_amount=self.discount_amount,
        )


class CommissionSplit(BaseSchema):
    """
    Commission amounts for a subtotal.

    Identities:
        total_for_customer = subtotal + customer_commission_amount
        owner_earnings     = subtotal - owner_commission_amount
        platform_earnings  = customer_commission_amount + owner_commission_amount
    """

    subtotal: Decimal = Field(..., ge=0)
    customer_commission_percent: Decimal
    owner_commission_percent: Decimal
    customer_commission_amount: Decimal
    owner_commission_amount: Decimal
    total_for_customer: Decimal
    owner_earnings: Decimal
    platform_earnings: Decimal


class PricingBreakdown(BaseSchema):
    """Auditable monetary breakdown of a booking."""

    base_price: Decimal = Field(..., ge=0)
    chosen_discount: Optional[AppliedDiscount] = None
    discounted_subtotal: Decimal = Field(..., ge=0)
    customer_commission_percent: Decimal
    owner_commission_percent: Decimal
    customer_commission_amount: Decimal
    owner_commission_amount: Decimal
    total_for_customer: Decimal
    owner_earnings: Decimal
    platform_earnings: Decimal

    @property
    def discount_amount(self) -> Decimal:
        return self.base_price - self.discounted_subtotal

    @property
    def has_discount(self) -> bool:
        return self.chosen_discount is not None

    @property
    def commission(self) -> CommissionSplit:
        return CommissionSplit(
            subtotal=self.discounted_subtotal,
            customer_commission_percent=self.customer_commission_percent,
            owner_commission_percent=self.owner_commission_percent,
            customer_commission_amount=self.customer_commission_amount,
            owner_commission_amount=self.owner_commission_amount,
            total_for_customer=self.total_for_customer,
            owner_earnings=self.owner_earnings,
            platform_earnings=self.platform_earnings,
        )


class PaymentPlan(BaseSchema):
    """First and final installment of the customer total."""

    first_payment_percent: Decimal
    first_amount: Decimal = Field(..., ge=0)
    final_amount: Decimal
    first_due_date: datetime
    final_due_date: datetime
    days_before_event_for_final_payment: int = Field(..., ge=0)

    @property
    def total_amount(self) -> Decimal:
        return self.first_amount + self.final_amount

    def final_due_day(self) -> Date:
        return self.final_due_date.date()


class Quote(BaseSchema):
    pricing: PricingBreakdown
    payment_plan: PaymentPlan
