# --- File: venue_booking/models/payment.py ---
"""
Payment table.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from venue_booking.models.base import Base, SnapshotDocumentMixin
from venue_booking.schemas.payment import PaymentRecord


class PaymentModel(SnapshotDocumentMixin, Base):
    """Stored payment snapshot."""

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    payment_type: Mapped[str] = mapped_column(String(16), nullable=False)

    @classmethod
    def from_snapshot(cls, payment: PaymentRecord) -> "PaymentModel":
        model = cls(id=payment.id)
        model.apply_snapshot(payment)
        return model

    def apply_snapshot(self, payment: PaymentRecord) -> None:
        self.booking_id = payment.booking_id
        self.status = payment.status.value
        self.payment_type = payment.payment_type.value
        self.created_at = payment.created_at
        # Payments have no explicit updated_at; the last history entry is the last change.
        last = payment.status_history[-1].timestamp if payment.status_history else payment.created_at
        self.updated_at = last
        self.record = payment.to_record()

    def to_snapshot(self) -> PaymentRecord:
        return PaymentRecord.from_record(self.record)
