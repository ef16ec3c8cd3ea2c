from venue_booking.repositories.base import (
    BookingRepository,
    ConflictCheck,
    PaymentRepository,
)
from venue_booking.repositories.booking_repository import SQLAlchemyBookingRepository
from venue_booking.repositories.payment_repository import SQLAlchemyPaymentRepository

__all__ = [
    "BookingRepository",
    "ConflictCheck",
    "PaymentRepository",
    "SQLAlchemyBookingRepository",
    "SQLAlchemyPaymentRepository",
]
