from venue_booking.services.pricing.pricing_engine import (
    MAX_FIRST_PAYMENT_PERCENT,
    MIN_FIRST_PAYMENT_PERCENT,
    PricingEngine,
)

__all__ = [
    "MAX_FIRST_PAYMENT_PERCENT",
    "MIN_FIRST_PAYMENT_PERCENT",
    "PricingEngine",
]
