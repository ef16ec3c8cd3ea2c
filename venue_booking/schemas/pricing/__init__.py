from venue_booking.schemas.pricing.pricing_breakdown import (
    AppliedDiscount,
    CommissionSplit,
    DiscountSelection,
    PaymentPlan,
    PricingBreakdown,
    Quote,
)
from venue_booking.schemas.pricing.pricing_inputs import (
    CommissionBounds,
    CommissionProfile,
    Discount,
    PaymentPlanConfig,
    QuoteRequest,
    VenuePricingProfile,
)

__all__ = [
    "AppliedDiscount",
    "CommissionBounds",
    "CommissionProfile",
    "CommissionSplit",
    "Discount",
    "DiscountSelection",
    "PaymentPlan",
    "PaymentPlanConfig",
    "PricingBreakdown",
    "Quote",
    "QuoteRequest",
    "VenuePricingProfile",
]
