"""
Repository interfaces the service layer depends on.

Implementations are injected into services; nothing in the core reaches
for a global store.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, List, Optional

from venue_booking.schemas.booking import BookedSlot, Booking
from venue_booking.schemas.payment import PaymentRecord

ConflictCheck = Callable[[List[BookedSlot]], None]


class BookingRepository(ABC):
    """Store of booking snapshots."""

    @abstractmethod
    def get(self, booking_id: str) -> Optional[Booking]:
        ...

    @abstractmethod
    def save(self, booking: Booking) -> Booking:
        """
        Persist the next snapshot of an existing booking.

        ``booking`` must be exactly one transition ahead of the stored
        snapshot; otherwise ``OptimisticLockError`` is raised and nothing is
        written.
        """

    @abstractmethod
    def fetch_booked_slots(self, venue_id: str, event_date: date) -> List[BookedSlot]:
        """Authoritative (uncached) view of bookings on a venue/date."""

    @abstractmethod
    def reserve(self, booking: Booking, check: ConflictCheck) -> Booking:
        """
        Atomically run ``check`` against the current bookings for the
        booking's venue/date and insert ``booking`` if it passes.

        ``check`` raises to abort; nothing is written in that case.
        """


class PaymentRepository(ABC):
    """Store of payment snapshots."""

    @abstractmethod
    def get(self, payment_id: str) -> Optional[PaymentRecord]:
        ...

    @abstractmethod
    def save(self, payment: PaymentRecord) -> PaymentRecord:
        """Insert or replace a payment snapshot."""

    @abstractmethod
    def list_for_booking(self, booking_id: str) -> List[PaymentRecord]:
        """Payments of a booking, oldest first."""

    @abstractmethod
    def list_pending(self) -> List[PaymentRecord]:
        """Payments still in ``pending``, oldest first."""
