"""
Earnings analytics over booking pricing breakdowns.

Aggregates what the platform and venue owners earned from a set of
bookings, optionally restricted to an event-date window.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
import logging

from venue_booking.schemas.analytics import OwnerEarningsSummary, PlatformEarningsSummary
from venue_booking.schemas.booking import Booking
from venue_booking.schemas.common.enums import BookingStatus
from venue_booking.utils.money import HUNDRED, round_money

logger = logging.getLogger(__name__)


def _average(total: Decimal, count: int) -> Decimal:
    return round_money(total / count) if count else Decimal("0.00")


def _rate(part: Decimal, whole: Decimal) -> Decimal:
    return round_money(part / whole * HUNDRED) if whole > 0 else Decimal("0.00")


class EarningsService:
    """
    Service for earnings analytics.

    Provides:
    - Platform commission totals, averages and effective rate
    - Owner earnings totals, averages and commission paid
    """

    def __init__(self, include_cancelled: bool = False):
        self.include_cancelled = include_cancelled

    def _select(
        self,
        bookings: Iterable[Booking],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> List[Booking]:
        selected = []
        for booking in bookings:
            if not self.include_cancelled and booking.status == BookingStatus.CANCELLED:
                continue
            if start_date and booking.event_date < start_date:
                continue
            if end_date and booking.event_date > end_date:
                continue
            selected.append(booking)
        return selected

    def platform_earnings(
        self,
        bookings: Iterable[Booking],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> PlatformEarningsSummary:
        """
        Summarize platform commission.

        Args:
            bookings: Bookings to aggregate
            start_date: First event date included (inclusive)
            end_date: Last event date included (inclusive)
        """
        selected = self._select(bookings, start_date, end_date)

        customer_total = sum((b.pricing.customer_commission_amount for b in selected), Decimal("0.00"))
        owner_total = sum((b.pricing.owner_commission_amount for b in selected), Decimal("0.00"))
        revenue = sum((b.pricing.total_for_customer for b in selected), Decimal("0.00"))
        platform_total = customer_total + owner_total

        logger.debug(
            "Platform earnings aggregated",
            extra={"booking_count": len(selected), "platform_total": str(platform_total)},
        )
        return PlatformEarningsSummary(
            total_bookings=len(selected),
            total_customer_commissions=customer_total,
            total_owner_commissions=owner_total,
            total_platform_earnings=platform_total,
            total_revenue=revenue,
            average_booking_value=_average(revenue, len(selected)),
            average_platform_earning=_average(platform_total, len(selected)),
            commission_rate=_rate(platform_total, revenue),
        )

    def owner_earnings(
        self,
        bookings: Iterable[Booking],
        owner_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> OwnerEarningsSummary:
        """Summarize owner earnings, optionally for a single owner."""
        selected = [
            b for b in self._select(bookings, start_date, end_date)
            if owner_id is None or b.owner_id == owner_id
        ]

        earnings = sum((b.pricing.owner_earnings for b in selected), Decimal("0.00"))
        commissions = sum((b.pricing.owner_commission_amount for b in selected), Decimal("0.00"))
        revenue = sum((b.pricing.discounted_subtotal for b in selected), Decimal("0.00"))

        return OwnerEarningsSummary(
            total_bookings=len(selected),
            total_earnings=earnings,
            total_commissions_paid=commissions,
            total_revenue=revenue,
            average_booking_value=_average(revenue, len(selected)),
            average_earning=_average(earnings, len(selected)),
            effective_commission_rate=_rate(commissions, revenue),
        )
