# --- File: venue_booking/schemas/analytics/earnings.py ---
"""
Earnings summaries aggregated from booking pricing breakdowns.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from venue_booking.schemas.common.base import BaseSchema

__all__ = [
    "PlatformEarningsSummary",
    "OwnerEarningsSummary",
]

ZERO = Decimal("0.00")


class PlatformEarningsSummary(BaseSchema):
    """Commission the platform collected over a set of bookings."""

    total_bookings: int = Field(0, ge=0)
    total_customer_commissions: Decimal = ZERO
    total_owner_commissions: Decimal = ZERO
    total_platform_earnings: Decimal = ZERO
    total_revenue: Decimal = Field(ZERO, description="Sum of customer totals")
    average_booking_value: Decimal = ZERO
    average_platform_earning: Decimal = ZERO
    commission_rate: Decimal = Field(ZERO, description="Platform earnings as % of revenue")


class OwnerEarningsSummary(BaseSchema):
    """What a venue owner earned over a set of bookings."""

    total_bookings: int = Field(0, ge=0)
    total_earnings: Decimal = ZERO
    total_commissions_paid: Decimal = ZERO
    total_revenue: Decimal = Field(ZERO, description="Sum of discounted subtotals")
    average_booking_value: Decimal = ZERO
    average_earning: Decimal = ZERO
    effective_commission_rate: Decimal = ZERO

    @property
    def earnings_rate(self) -> Decimal:
        if self.total_revenue <= 0:
            return ZERO
        return (self.total_earnings / self.total_revenue * 100).quantize(Decimal("0.01"))
