from venue_booking.services.analytics.earnings_service import EarningsService

__all__ = ["EarningsService"]
