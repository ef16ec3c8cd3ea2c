from venue_booking.schemas.payment.payment import (
    TERMINAL_PAYMENT_STATUSES,
    PaymentHistoryEntry,
    PaymentRecord,
)

__all__ = [
    "TERMINAL_PAYMENT_STATUSES",
    "PaymentHistoryEntry",
    "PaymentRecord",
]
