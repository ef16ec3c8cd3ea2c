"""
Tests for the pricing engine.

Verifies that PricingEngine correctly:
- Resolves daily and hourly base prices from day-keyed rates
- Picks the single best applicable discount and skips malformed records
- Clamps commission percentages and keeps the commission identities
- Splits totals into installments that always sum exactly
- Produces the documented quote end to end, deterministically
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from venue_booking.core.exceptions import ValidationError
from venue_booking.schemas.common import BookingType, DayOfWeek, TimeSlot
from venue_booking.schemas.pricing import (
    CommissionBounds,
    Discount,
    QuoteRequest,
    VenuePricingProfile,
)
from venue_booking.services.pricing import PricingEngine

NOW = datetime(2025, 3, 3, 10, 0, tzinfo=timezone.utc)
FRIDAY = date(2025, 4, 4)
MONDAY = date(2025, 4, 7)


def _discount(discount_id, percentage, **overrides):
    data = {
        "id": discount_id,
        "percentage": Decimal(str(percentage)),
        "start_date": date(2025, 3, 1),
        "end_date": date(2025, 4, 30),
        "applies_on_days": frozenset(DayOfWeek),
    }
    data.update(overrides)
    return Discount(**data)


class TestResolveBasePrice:
    """Base price resolution."""

    def setup_method(self):
        self.engine = PricingEngine()
        self.profile = VenuePricingProfile(
            base_price=Decimal("100"),
            daily_pricing={DayOfWeek.FRIDAY: Decimal("120")},
            hourly_rate=Decimal("20"),
            hourly_rates_by_day={DayOfWeek.SATURDAY: Decimal("30")},
        )

    # ------------------------------------------------------------------ #
    # Daily
    # ------------------------------------------------------------------ #

    def test_daily_uses_base_price_without_override(self):
        assert self.engine.resolve_base_price(self.profile, MONDAY, True) == Decimal("100.00")

    def test_daily_uses_day_override(self):
        assert self.engine.resolve_base_price(self.profile, FRIDAY, True) == Decimal("120.00")

    # ------------------------------------------------------------------ #
    # Hourly
    # ------------------------------------------------------------------ #

    def test_hourly_uses_default_rate(self):
        assert self.engine.resolve_base_price(self.profile, MONDAY, False, 3) == Decimal("60.00")

    def test_hourly_uses_day_rate_override(self):
        saturday = date(2025, 4, 5)
        assert self.engine.resolve_base_price(self.profile, saturday, False, 2) == Decimal("60.00")

    def test_hourly_falls_back_to_daily_price_over_eight_hours(self):
        profile = VenuePricingProfile(
            base_price=Decimal("100"),
            daily_pricing={DayOfWeek.FRIDAY: Decimal("120")},
        )
        # 100 / 8 = 12.50 per hour
        assert self.engine.resolve_base_price(profile, MONDAY, False, 3) == Decimal("37.50")
        # Friday override applies to the fallback: 120 / 8 = 15.00 per hour
        assert self.engine.resolve_base_price(profile, FRIDAY, False, 3) == Decimal("45.00")

    def test_hourly_accepts_fractional_duration(self):
        assert self.engine.resolve_base_price(self.profile, MONDAY, False, Decimal("1.5")) == Decimal("30.00")

    def test_hourly_without_duration_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.engine.resolve_base_price(self.profile, MONDAY, False, None)
        assert "duration_hours" in exc_info.value.details["field_errors"]

    @pytest.mark.parametrize("duration", [0, -2])
    def test_hourly_with_non_positive_duration_is_rejected(self, duration):
        with pytest.raises(ValidationError):
            self.engine.resolve_base_price(self.profile, MONDAY, False, duration)

    # ------------------------------------------------------------------ #
    # Profile validation
    # ------------------------------------------------------------------ #

    def test_unknown_day_key_is_rejected(self):
        raw = {"base_price": "100", "daily_pricing": {"funday": "90"}}
        with pytest.raises(ValidationError):
            self.engine.resolve_base_price(raw, MONDAY, True)

    def test_non_positive_rates_are_rejected(self):
        raw = {"base_price": "100", "hourly_rates_by_day": {"monday": "0"}}
        with pytest.raises(ValidationError):
            self.engine.resolve_base_price(raw, MONDAY, True)

    def test_raw_profile_mapping_is_accepted(self):
        raw = {"base_price": "100", "daily_pricing": {"friday": "120"}}
        assert self.engine.resolve_base_price(raw, FRIDAY, True) == Decimal("120.00")


class TestSelectBestDiscount:
    """Best-discount selection."""

    def setup_method(self):
        self.engine = PricingEngine()
        self.price = Decimal("120.00")

    def _select(self, discounts, event_date=FRIDAY, is_full_day=True, slot_id=None, price=None):
        return self.engine.select_best_discount(
            price if price is not None else self.price,
            event_date,
            is_full_day,
            slot_id,
            discounts,
        )

    def test_no_discounts_returns_base_price(self):
        result = self._select([])
        assert result.discounted_price == self.price
        assert result.chosen_discount is None
        assert not result.has_discount

    def test_highest_percentage_wins_and_discounts_never_stack(self):
        result = self._select([_discount("a", 5), _discount("b", 15), _discount("c", 10)])
        assert result.chosen_discount.id == "b"
        assert result.discounted_price == Decimal("102.00")
        assert len(result.applicable_discounts) == 3

    def test_tie_keeps_first_in_input_order(self):
        result = self._select([_discount("first", 10), _discount("second", 10)])
        assert result.chosen_discount.id == "first"

    def test_date_window_is_inclusive(self):
        on_start = _discount("start", 10, start_date=FRIDAY, end_date=date(2025, 4, 30))
        on_end = _discount("end", 10, start_date=date(2025, 3, 1), end_date=FRIDAY)
        assert self._select([on_start]).has_discount
        assert self._select([on_end]).has_discount

    def test_discount_outside_window_is_ignored(self):
        expired = _discount("old", 50, start_date=date(2025, 1, 1), end_date=date(2025, 4, 3))
        assert not self._select([expired]).has_discount

    def test_day_of_week_must_match(self):
        weekend_only = _discount("wk", 20, applies_on_days=frozenset({DayOfWeek.SATURDAY, DayOfWeek.SUNDAY}))
        assert not self._select([weekend_only]).has_discount

    def test_booking_type_flags(self):
        hourly_only = _discount("h", 20, applies_to_daily=False)
        daily_only = _discount("d", 20, applies_to_hourly=False)
        assert not self._select([hourly_only], is_full_day=True).has_discount
        assert self._select([hourly_only], is_full_day=False, slot_id="s1").has_discount
        assert not self._select([daily_only], is_full_day=False, slot_id="s1").has_discount

    def test_slot_restriction(self):
        evening = _discount("eve", 20, specific_time_slot_ids=frozenset({"evening"}))
        assert self._select([evening], is_full_day=False, slot_id="evening").has_discount
        assert not self._select([evening], is_full_day=False, slot_id="morning").has_discount
        assert not self._select([evening], is_full_day=False, slot_id=None).has_discount

    def test_empty_slot_restriction_means_any_slot(self):
        anywhere = _discount("any", 20, specific_time_slot_ids=frozenset())
        assert self._select([anywhere], is_full_day=False, slot_id="morning").has_discount

    def test_zero_percent_discount_is_never_chosen(self):
        result = self._select([_discount("zero", 0)])
        assert result.chosen_discount is None
        assert result.discounted_price == self.price

        result = self._select([_discount("zero", 0), _discount("ten", 10)])
        assert result.chosen_discount.id == "ten"

    def test_minimum_booking_amount(self):
        big_spender = _discount("big", 25, minimum_booking_amount=Decimal("150"))
        assert not self._select([big_spender]).has_discount
        assert self._select([big_spender], price=Decimal("150")).has_discount

    def test_malformed_raw_records_are_skipped(self, caplog):
        raw_bad_date = {
            "id": "bad",
            "percentage": "50",
            "start_date": "2025-13-45",
            "end_date": "2025-04-30",
            "applies_on_days": ["friday"],
        }
        raw_good = {
            "id": "good",
            "percentage": "10",
            "start_date": "2025-03-01",
            "end_date": "2025-04-30",
            "applies_on_days": ["friday"],
        }
        with caplog.at_level("WARNING"):
            result = self._select([raw_bad_date, raw_good])

        assert result.chosen_discount.id == "good"
        assert result.discounted_price == Decimal("108.00")
        assert "Skipping malformed discount" in caplog.text

    def test_raw_record_with_unknown_key_is_skipped(self):
        raw = {
            "id": "typo",
            "percentage": "50",
            "start_date": "2025-03-01",
            "end_date": "2025-04-30",
            "applies_on_days": ["friday"],
            "applies_on_day": ["friday"],
        }
        assert not self._select([raw]).has_discount

    def test_selection_is_idempotent_and_never_raises_price(self):
        discounts = [_discount("a", 0), _discount("b", 35), _discount("c", 100)]
        first = self._select(discounts)
        second = self._select(discounts)

        assert first == second
        assert first.discounted_price <= self.price
        assert first.discounted_price == Decimal("0.00")

    def test_invalid_discount_percentage_cannot_be_constructed(self):
        with pytest.raises(PydanticValidationError):
            _discount("bad", 120)


class TestSplitCommission:
    """Commission split and clamping."""

    def setup_method(self):
        self.engine = PricingEngine(CommissionBounds(minimum=Decimal("1"), maximum=Decimal("15")))

    def test_reference_split(self):
        split = self.engine.split_commission(Decimal("108"), Decimal("5"), Decimal("3"))

        assert split.customer_commission_amount == Decimal("5.40")
        assert split.owner_commission_amount == Decimal("3.24")
        assert split.total_for_customer == Decimal("113.40")
        assert split.owner_earnings == Decimal("104.76")
        assert split.platform_earnings == Decimal("8.64")

    def test_percentages_are_clamped_into_bounds(self):
        split = self.engine.split_commission(Decimal("100"), Decimal("20"), Decimal("0"))

        assert split.customer_commission_percent == Decimal("15")
        assert split.owner_commission_percent == Decimal("1")
        assert split.customer_commission_amount == Decimal("15.00")
        assert split.owner_commission_amount == Decimal("1.00")

    @pytest.mark.parametrize("subtotal", ["0", "0.01", "99.99", "108", "1234.57", "3333.33"])
    @pytest.mark.parametrize("percent", ["1", "2.5", "7", "15"])
    def test_commission_identities_hold(self, subtotal, percent):
        split = self.engine.split_commission(Decimal(subtotal), Decimal(percent), Decimal(percent))

        assert split.customer_commission_amount + split.owner_commission_amount == split.platform_earnings
        assert split.owner_earnings + split.owner_commission_amount == split.subtotal
        assert split.total_for_customer - split.customer_commission_amount == split.subtotal

    def test_amounts_are_rounded_half_up(self):
        # 0.10 * 5% = 0.005 -> 0.01
        split = self.engine.split_commission(Decimal("0.10"), Decimal("5"), Decimal("5"))
        assert split.customer_commission_amount == Decimal("0.01")

    def test_negative_subtotal_is_rejected(self):
        with pytest.raises(ValidationError):
            self.engine.split_commission(Decimal("-1"), Decimal("5"), Decimal("3"))


class TestBuildPaymentPlan:
    """Installment planning."""

    def setup_method(self):
        self.engine = PricingEngine()

    def test_reference_plan(self):
        plan = self.engine.build_payment_plan(Decimal("113.40"), FRIDAY, Decimal("60"), 7, NOW)

        assert plan.first_amount == Decimal("68.04")
        assert plan.final_amount == Decimal("45.36")
        assert plan.total_amount == Decimal("113.40")
        assert plan.first_due_date == NOW
        assert plan.final_due_date == datetime(2025, 3, 28, tzinfo=timezone.utc)

    @pytest.mark.parametrize("total", ["0.01", "0.99", "33.33", "113.40", "1000.05", "99999.99"])
    def test_installments_sum_exactly(self, total):
        for percent in range(10, 91, 5):
            plan = self.engine.build_payment_plan(Decimal(total), FRIDAY, percent, 7, NOW)
            assert plan.first_amount + plan.final_amount == Decimal(total)

    def test_first_payment_percent_is_clamped(self):
        high = self.engine.build_payment_plan(Decimal("100"), FRIDAY, Decimal("95"), 7, NOW)
        low = self.engine.build_payment_plan(Decimal("100"), FRIDAY, Decimal("5"), 7, NOW)

        assert high.first_payment_percent == Decimal("90")
        assert high.first_amount == Decimal("90.00")
        assert low.first_payment_percent == Decimal("10")
        assert low.first_amount == Decimal("10.00")

    def test_final_due_date_is_never_before_now(self):
        soon = (NOW + timedelta(days=3)).date()
        plan = self.engine.build_payment_plan(Decimal("100"), soon, Decimal("60"), 7, NOW)
        assert plan.final_due_date == NOW

    def test_negative_inputs_are_rejected(self):
        with pytest.raises(ValidationError):
            self.engine.build_payment_plan(Decimal("-5"), FRIDAY, Decimal("60"), 7, NOW)
        with pytest.raises(ValidationError):
            self.engine.build_payment_plan(Decimal("5"), FRIDAY, Decimal("60"), -1, NOW)


class TestComputeQuote:
    """End-to-end quotes."""

    def test_reference_quote(self, engine, pricing_profile, friday_discount, commission, plan_config, now):
        request = QuoteRequest(event_date=FRIDAY, booking_type=BookingType.DAILY)
        quote = engine.compute_quote(pricing_profile, request, [friday_discount], commission, plan_config, now)

        pricing = quote.pricing
        assert pricing.base_price == Decimal("120.00")
        assert pricing.discounted_subtotal == Decimal("108.00")
        assert pricing.discount_amount == Decimal("12.00")
        assert pricing.chosen_discount.discount_id == "fri-10"
        assert pricing.customer_commission_amount == Decimal("5.40")
        assert pricing.owner_commission_amount == Decimal("3.24")
        assert pricing.total_for_customer == Decimal("113.40")
        assert pricing.owner_earnings == Decimal("104.76")

        plan = quote.payment_plan
        assert plan.first_amount == Decimal("68.04")
        assert plan.final_amount == Decimal("45.36")
        assert plan.first_amount + plan.final_amount == pricing.total_for_customer

    def test_quote_is_deterministic(self, engine, pricing_profile, friday_discount, commission, plan_config, now):
        request = QuoteRequest(event_date=FRIDAY, booking_type=BookingType.DAILY)
        first = engine.compute_quote(pricing_profile, request, [friday_discount], commission, plan_config, now)
        second = engine.compute_quote(pricing_profile, request, [friday_discount], commission, plan_config, now)
        assert first == second

    def test_hourly_quote_uses_slot_duration(self, engine, pricing_profile, commission, plan_config, now):
        request = QuoteRequest(
            event_date=MONDAY,
            booking_type=BookingType.HOURLY,
            time_slot=TimeSlot(id="morning", start_time="09:00", end_time="12:00"),
        )
        quote = engine.compute_quote(pricing_profile, request, [], commission, plan_config, now)

        assert quote.pricing.base_price == Decimal("60.00")
        assert quote.pricing.chosen_discount is None
        assert quote.pricing.total_for_customer == Decimal("63.00")

    def test_hourly_quote_without_duration_is_rejected(self, engine, pricing_profile, now):
        request = QuoteRequest(event_date=MONDAY, booking_type=BookingType.HOURLY)
        with pytest.raises(ValidationError):
            engine.compute_quote(pricing_profile, request, [], None, None, now)

    def test_defaults_apply_when_profiles_missing(self, engine, pricing_profile, now):
        request = QuoteRequest(event_date=MONDAY, booking_type=BookingType.DAILY)
        quote = engine.compute_quote(pricing_profile, request, [], None, None, now)

        assert quote.pricing.customer_commission_percent == Decimal("5")
        assert quote.pricing.owner_commission_percent == Decimal("3")
        assert quote.payment_plan.first_payment_percent == Decimal("60")
