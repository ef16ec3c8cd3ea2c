from venue_booking.schemas.analytics.earnings import (
    OwnerEarningsSummary,
    PlatformEarningsSummary,
)

__all__ = [
    "OwnerEarningsSummary",
    "PlatformEarningsSummary",
]
