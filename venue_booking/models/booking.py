# --- File: venue_booking/models/booking.py ---
"""
Booking and venue-day guard tables.
"""

from datetime import date
from typing import Any, Dict

from sqlalchemy import Boolean, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from venue_booking.models.base import Base, SnapshotDocumentMixin
from venue_booking.schemas.booking import Booking


class BookingModel(SnapshotDocumentMixin, Base):
    """Stored booking snapshot."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_venue_event_date", "venue_id", "event_date"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    venue_id: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    payment_status: Mapped[str] = mapped_column(String(32), nullable=False)
    approval_status: Mapped[str] = mapped_column(String(32), nullable=False)
    is_full_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    history_length: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Number of status history entries; compare-and-set key for saves",
    )

    @classmethod
    def from_snapshot(cls, booking: Booking) -> "BookingModel":
        model = cls(id=booking.id)
        model.apply_snapshot(booking)
        return model

    @staticmethod
    def snapshot_columns(booking: Booking) -> Dict[str, Any]:
        return {
            "venue_id": booking.venue_id,
            "customer_id": booking.customer_id,
            "owner_id": booking.owner_id,
            "event_date": booking.event_date,
            "status": booking.status.value,
            "payment_status": booking.payment_status.value,
            "approval_status": booking.approval_status.value,
            "is_full_day": booking.is_full_day,
            "history_length": len(booking.status_history),
            "created_at": booking.created_at,
            "updated_at": booking.updated_at,
            "record": booking.to_record(),
        }

    def apply_snapshot(self, booking: Booking) -> None:
        for name, value in self.snapshot_columns(booking).items():
            setattr(self, name, value)

    def to_snapshot(self) -> Booking:
        return Booking.from_record(self.record)

    def __repr__(self) -> str:
        return f"<BookingModel {self.id} venue={self.venue_id} date={self.event_date} status={self.status}>"


class VenueDayGuard(Base):
    """
    Version counter per venue and event date.

    Every reservation bumps the version with a compare-and-set, so two
    writers that read the same bookings for a venue/date cannot both commit.
    """

    __tablename__ = "venue_day_guards"

    venue_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    event_date: Mapped[date] = mapped_column(Date, primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
