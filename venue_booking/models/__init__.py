from venue_booking.models.base import Base
from venue_booking.models.booking import BookingModel, VenueDayGuard
from venue_booking.models.payment import PaymentModel

__all__ = [
    "Base",
    "BookingModel",
    "PaymentModel",
    "VenueDayGuard",
]
