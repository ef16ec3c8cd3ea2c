# venue_booking/services/pricing/pricing_engine.py
"""
Pricing engine for venue bookings.

Turns a booking request into a pricing breakdown and a payment plan:
base price resolution, best-discount selection, commission split and
installment planning. The engine is pure: it reads only its arguments and
never samples the clock, so identical inputs and ``now`` give equal output.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from venue_booking.core.exceptions import ValidationError
from venue_booking.core.logging import get_logger
from venue_booking.schemas.common.enums import DayOfWeek
from venue_booking.schemas.pricing import (
    CommissionBounds,
    CommissionProfile,
    CommissionSplit,
    Discount,
    DiscountSelection,
    PaymentPlan,
    PaymentPlanConfig,
    PricingBreakdown,
    Quote,
    QuoteRequest,
    VenuePricingProfile,
)
from venue_booking.utils.date_utils import start_of_day
from venue_booking.utils.money import clamp, percent_of, round_money, to_decimal

MIN_FIRST_PAYMENT_PERCENT = Decimal("10")
MAX_FIRST_PAYMENT_PERCENT = Decimal("90")
DEFAULT_HOURS_PER_DAY = 8

DiscountInput = Union[Discount, Mapping[str, Any]]
TModel = TypeVar("TModel", bound=BaseModel)


def _coerce(model_cls: Type[TModel], value: Any, what: str) -> TModel:
    """Accept a model instance or a raw mapping; reject anything else."""
    if isinstance(value, model_cls):
        return value
    try:
        return model_cls.model_validate(value)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, f"Invalid {what}") from exc


def _as_amount(value: Any, field: str) -> Decimal:
    try:
        return to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"{field} must be a number",
            field_errors={field: [str(exc)]},
        ) from exc


class PricingEngine:
    """
    Computes prices, commissions and payment plans.

    Responsibilities:
    - Resolve the base price from the venue's day-keyed rates
    - Pick the single best applicable discount
    - Clamp commission percentages into platform bounds and split them
    - Split the customer total into first and final installments
    """

    def __init__(
        self,
        bounds: Optional[CommissionBounds] = None,
        hours_per_day: int = DEFAULT_HOURS_PER_DAY,
    ):
        if hours_per_day <= 0:
            raise ValidationError(
                "hours_per_day must be positive",
                field_errors={"hours_per_day": ["must be greater than zero"]},
            )
        self.bounds = bounds or CommissionBounds()
        self.hours_per_day = hours_per_day
        self._logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    # ==================== BASE PRICE ====================

    def resolve_base_price(
        self,
        profile: VenuePricingProfile,
        event_date: date,
        is_full_day: bool,
        duration_hours: Optional[Any] = None,
    ) -> Decimal:
        """
        Resolve the undiscounted price of a booking.

        Args:
            profile: Venue pricing profile
            event_date: Event date (selects the day-of-week override)
            is_full_day: Daily booking when True, hourly otherwise
            duration_hours: Hours booked, required for hourly bookings

        Returns:
            Base price rounded to two decimals

        Raises:
            ValidationError: Missing or non-positive duration for hourly bookings
        """
        profile = _coerce(VenuePricingProfile, profile, "pricing profile")
        day = DayOfWeek.from_date(event_date)
        daily_price = profile.daily_price_for(day)

        if is_full_day:
            return round_money(daily_price)

        if duration_hours is None:
            raise ValidationError(
                "Duration is required for hourly bookings",
                field_errors={"duration_hours": ["required for hourly bookings"]},
            )
        hours = _as_amount(duration_hours, "duration_hours")
        if hours <= 0:
            raise ValidationError(
                "Duration must be greater than zero",
                field_errors={"duration_hours": ["must be greater than zero"]},
            )

        rate = self._hourly_rate(profile, day, daily_price)
        return round_money(rate * hours)

    def _hourly_rate(
        self,
        profile: VenuePricingProfile,
        day: DayOfWeek,
        daily_price: Decimal,
    ) -> Decimal:
        if day in profile.hourly_rates_by_day:
            return profile.hourly_rates_by_day[day]
        if profile.hourly_rate is not None:
            return profile.hourly_rate
        # No hourly rate configured: spread the daily price over a business day.
        return daily_price / Decimal(self.hours_per_day)

    # ==================== DISCOUNTS ====================

    def select_best_discount(
        self,
        base_price: Any,
        event_date: date,
        is_full_day: bool,
        slot_id: Optional[str],
        discounts: Iterable[DiscountInput],
    ) -> DiscountSelection:
        """
        Pick the highest-percentage applicable discount.

        Discounts never stack. Ties keep the first discount in input order.
        Raw discount records that fail validation are logged and skipped.
        """
        price = round_money(_as_amount(base_price, "base_price"))
        if price < 0:
            raise ValidationError(
                "Base price cannot be negative",
                field_errors={"base_price": ["must not be negative"]},
            )

        applicable: List[Discount] = [
            discount
            for discount in self._parse_discounts(discounts)
            if self._is_applicable(discount, price, event_date, is_full_day, slot_id)
        ]

        best: Optional[Discount] = None
        for discount in applicable:
            # A 0% discount never lowers the price.
            if discount.percentage <= 0:
                continue
            if best is None or discount.percentage > best.percentage:
                best = discount

        if best is None:
            return DiscountSelection(original_price=price, discounted_price=price)

        discounted = round_money(price - percent_of(price, best.percentage))
        self._logger.debug(
            "Discount selected",
            extra={
                "discount_id": best.id,
                "discount_percent": str(best.percentage),
                "candidates": len(applicable),
            },
        )
        return DiscountSelection(
            original_price=price,
            discounted_price=discounted,
            chosen_discount=best,
            applicable_discounts=tuple(applicable),
        )

    def _parse_discounts(self, discounts: Iterable[DiscountInput]) -> List[Discount]:
        parsed: List[Discount] = []
        for raw in discounts or ():
            if isinstance(raw, Discount):
                parsed.append(raw)
                continue
            if not isinstance(raw, Mapping):
                self._logger.warning(
                    "Skipping discount of unsupported type",
                    extra={"discount_type": type(raw).__name__},
                )
                continue
            try:
                parsed.append(Discount.model_validate(raw))
            except PydanticValidationError as exc:
                self._logger.warning(
                    "Skipping malformed discount",
                    extra={"discount_id": raw.get("id"), "errors": exc.error_count()},
                )
        return parsed

    @staticmethod
    def _is_applicable(
        discount: Discount,
        base_price: Decimal,
        event_date: date,
        is_full_day: bool,
        slot_id: Optional[str],
    ) -> bool:
        if not (discount.start_date <= event_date <= discount.end_date):
            return False
        if DayOfWeek.from_date(event_date) not in discount.applies_on_days:
            return False
        if is_full_day and not discount.applies_to_daily:
            return False
        if not is_full_day and not discount.applies_to_hourly:
            return False
        if discount.has_slot_restriction and slot_id not in discount.specific_time_slot_ids:
            return False
        if (
            discount.minimum_booking_amount is not None
            and base_price < discount.minimum_booking_amount
        ):
            return False
        return True

    # ==================== COMMISSION ====================

    def split_commission(
        self,
        subtotal: Any,
        customer_percent: Any,
        owner_percent: Any,
    ) -> CommissionSplit:
        """
        Split commission on a subtotal.

        Both percentages are clamped into the engine's bounds first. Each
        published amount is rounded once.
        """
        amount = round_money(_as_amount(subtotal, "subtotal"))
        if amount < 0:
            raise ValidationError(
                "Subtotal cannot be negative",
                field_errors={"subtotal": ["must not be negative"]},
            )

        customer_pct = clamp(
            _as_amount(customer_percent, "customer_commission_percent"),
            self.bounds.minimum,
            self.bounds.maximum,
        )
        owner_pct = clamp(
            _as_amount(owner_percent, "owner_commission_percent"),
            self.bounds.minimum,
            self.bounds.maximum,
        )

        customer_commission = round_money(percent_of(amount, customer_pct))
        owner_commission = round_money(percent_of(amount, owner_pct))

        return CommissionSplit(
            subtotal=amount,
            customer_commission_percent=customer_pct,
            owner_commission_percent=owner_pct,
            customer_commission_amount=customer_commission,
            owner_commission_amount=owner_commission,
            total_for_customer=amount + customer_commission,
            owner_earnings=amount - owner_commission,
            platform_earnings=customer_commission + owner_commission,
        )

    # ==================== PAYMENT PLAN ====================

    def build_payment_plan(
        self,
        total: Any,
        event_date: date,
        first_payment_percent: Any,
        days_before_final: int,
        now: datetime,
    ) -> PaymentPlan:
        """
        Split a customer total into two installments.

        The final amount is derived by subtraction so both legs always sum
        to the rounded total. The first installment is due ``now``; the
        final one ``days_before_final`` days before the event day starts,
        but never earlier than ``now``.
        """
        amount = round_money(_as_amount(total, "total"))
        if amount < 0:
            raise ValidationError(
                "Total cannot be negative",
                field_errors={"total": ["must not be negative"]},
            )
        if days_before_final < 0:
            raise ValidationError(
                "Days before event for final payment cannot be negative",
                field_errors={"days_before_final": ["must not be negative"]},
            )

        first_pct = clamp(
            _as_amount(first_payment_percent, "first_payment_percent"),
            MIN_FIRST_PAYMENT_PERCENT,
            MAX_FIRST_PAYMENT_PERCENT,
        )
        first_amount = round_money(percent_of(amount, first_pct))
        final_amount = amount - first_amount

        final_due = start_of_day(event_date, now.tzinfo) - timedelta(days=days_before_final)

        return PaymentPlan(
            first_payment_percent=first_pct,
            first_amount=first_amount,
            final_amount=final_amount,
            first_due_date=now,
            final_due_date=max(now, final_due),
            days_before_event_for_final_payment=days_before_final,
        )

    # ==================== QUOTE ====================

    def compute_quote(
        self,
        profile: VenuePricingProfile,
        request: QuoteRequest,
        discounts: Iterable[DiscountInput],
        commission: Optional[CommissionProfile],
        plan_config: Optional[PaymentPlanConfig],
        now: datetime,
    ) -> Quote:
        """
        Price a booking request end to end.

        Args:
            profile: Venue pricing profile
            request: Event date, booking type and slot/duration
            discounts: Owner discounts (models or raw records)
            commission: Commission percentages (platform defaults when None)
            plan_config: Installment settings (platform defaults when None)
            now: Injected current time

        Returns:
            Quote with the pricing breakdown and payment plan
        """
        profile = _coerce(VenuePricingProfile, profile, "pricing profile")
        request = _coerce(QuoteRequest, request, "quote request")
        commission = _coerce(CommissionProfile, commission or {}, "commission profile")
        plan_config = _coerce(PaymentPlanConfig, plan_config or {}, "payment plan config")

        base_price = self.resolve_base_price(
            profile,
            request.event_date,
            request.is_full_day,
            request.effective_duration_hours,
        )
        selection = self.select_best_discount(
            base_price,
            request.event_date,
            request.is_full_day,
            request.slot_id,
            discounts,
        )
        split = self.split_commission(
            selection.discounted_price,
            commission.customer_commission_percent,
            commission.owner_commission_percent,
        )
        plan = self.build_payment_plan(
            split.total_for_customer,
            request.event_date,
            plan_config.first_payment_percent,
            plan_config.days_before_event_for_final_payment,
            now,
        )

        pricing = PricingBreakdown(
            base_price=base_price,
            chosen_discount=selection.to_applied(),
            discounted_subtotal=selection.discounted_price,
            customer_commission_percent=split.customer_commission_percent,
            owner_commission_percent=split.owner_commission_percent,
            customer_commission_amount=split.customer_commission_amount,
            owner_commission_amount=split.owner_commission_amount,
            total_for_customer=split.total_for_customer,
            owner_earnings=split.owner_earnings,
            platform_earnings=split.platform_earnings,
        )

        self._logger.debug(
            "Quote computed",
            extra={
                "event_date": request.event_date.isoformat(),
                "booking_type": request.booking_type.value,
                "total_for_customer": str(pricing.total_for_customer),
            },
        )
        return Quote(pricing=pricing, payment_plan=plan)
