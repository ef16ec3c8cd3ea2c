from venue_booking.services.payment.payment_lifecycle import PaymentLifecycle
from venue_booking.services.payment.payment_service import PaymentService

__all__ = [
    "PaymentLifecycle",
    "PaymentService",
]
