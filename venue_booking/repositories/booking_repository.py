"""
SQLAlchemy booking repository.

``reserve`` is the one place where two concurrent requests can race: both
read the bookings for a venue/date, both pass the conflict check, both
insert. Each reservation therefore bumps a per venue/date version row with
a compare-and-set inside the same transaction as the insert. The loser of
the race sees zero updated rows (or a duplicate guard key), rolls back and
re-runs the whole check against the fresh state.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from venue_booking.core.exceptions import OptimisticLockError, RepositoryError
from venue_booking.core.logging import get_struct_logger
from venue_booking.models import BookingModel, VenueDayGuard
from venue_booking.repositories.base import BookingRepository, ConflictCheck
from venue_booking.schemas.booking import BookedSlot, Booking

logger = get_struct_logger(__name__)


class _GuardVersionChanged(Exception):
    """Another writer bumped the venue/date guard first."""


class SQLAlchemyBookingRepository(BookingRepository):
    """
    Booking store backed by SQLAlchemy.

    Each call opens its own session from the injected factory, so the
    repository can be shared between threads.
    """

    def __init__(self, session_factory: sessionmaker, max_retries: int = 3):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._session_factory = session_factory
        self.max_retries = max_retries

    # ==================== Read Operations ====================

    def get(self, booking_id: str) -> Optional[Booking]:
        try:
            with self._session_factory() as session:
                model = session.get(BookingModel, booking_id)
                return model.to_snapshot() if model else None
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to load booking {booking_id}: {e}", operation="get") from e

    def fetch_booked_slots(self, venue_id: str, event_date: date) -> List[BookedSlot]:
        try:
            with self._session_factory() as session:
                return self._booked_slots(session, venue_id, event_date)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Failed to load bookings for venue {venue_id}: {e}",
                operation="fetch_booked_slots",
            ) from e

    @staticmethod
    def _booked_slots(session: Session, venue_id: str, event_date: date) -> List[BookedSlot]:
        stmt = (
            select(BookingModel)
            .where(BookingModel.venue_id == venue_id, BookingModel.event_date == event_date)
            .order_by(BookingModel.created_at, BookingModel.id)
        )
        return [
            BookedSlot.from_booking(model.to_snapshot())
            for model in session.scalars(stmt)
        ]

    def list_for_venue(self, venue_id: str, event_date: Optional[date] = None) -> List[Booking]:
        try:
            with self._session_factory() as session:
                stmt = select(BookingModel).where(BookingModel.venue_id == venue_id)
                if event_date is not None:
                    stmt = stmt.where(BookingModel.event_date == event_date)
                stmt = stmt.order_by(BookingModel.event_date, BookingModel.created_at)
                return [model.to_snapshot() for model in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to list bookings: {e}", operation="list_for_venue") from e

    # ==================== Write Operations ====================

    def save(self, booking: Booking) -> Booking:
        """
        Replace the stored snapshot with ``booking``, one transition later.

        The write is a compare-and-set on the stored history length: it only
        lands if the stored snapshot is the one ``booking`` was derived from.

        Raises:
            OptimisticLockError: Another transition was saved first
            RepositoryError: Unknown booking or storage failure
        """
        expected_length = len(booking.status_history) - 1
        try:
            with self._session_factory() as session, session.begin():
                result = session.execute(
                    update(BookingModel)
                    .where(
                        BookingModel.id == booking.id,
                        BookingModel.history_length == expected_length,
                    )
                    .values(**BookingModel.snapshot_columns(booking))
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    stored = session.get(BookingModel, booking.id)
                    if stored is None:
                        raise RepositoryError(
                            f"Booking {booking.id} does not exist; use reserve() to create it",
                            operation="save",
                        )
                    logger.warning(
                        "booking_save_conflict",
                        booking_id=booking.id,
                        expected_history_length=expected_length,
                        stored_history_length=stored.history_length,
                    )
                    raise OptimisticLockError(
                        f"Booking {booking.id} was modified concurrently",
                        resource=f"booking/{booking.id}",
                        attempts=1,
                        operation="save",
                    )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to save booking {booking.id}: {e}", operation="save") from e

        logger.debug("booking_saved", booking_id=booking.id, status=booking.status.value)
        return booking

    def reserve(self, booking: Booking, check: ConflictCheck) -> Booking:
        """
        Conflict-check and insert ``booking`` atomically.

        Raises:
            BookingConflictError: (or anything ``check`` raises) on conflict
            OptimisticLockError: Lost the race ``max_retries`` times in a row
            RepositoryError: Duplicate id or storage failure
        """
        for attempt in range(1, self.max_retries + 1):
            try:
                self._reserve_once(booking, check)
            except (_GuardVersionChanged, IntegrityError):
                logger.warning(
                    "reservation_retry",
                    booking_id=booking.id,
                    venue_id=booking.venue_id,
                    event_date=booking.event_date.isoformat(),
                    attempt=attempt,
                )
                continue
            except SQLAlchemyError as e:
                raise RepositoryError(
                    f"Failed to reserve booking {booking.id}: {e}",
                    operation="reserve",
                ) from e

            logger.info(
                "booking_reserved",
                booking_id=booking.id,
                venue_id=booking.venue_id,
                event_date=booking.event_date.isoformat(),
                attempt=attempt,
            )
            return booking

        raise OptimisticLockError(
            f"Could not reserve venue {booking.venue_id} on {booking.event_date.isoformat()} "
            f"after {self.max_retries} attempts",
            resource=f"{booking.venue_id}/{booking.event_date.isoformat()}",
            attempts=self.max_retries,
        )

    def _reserve_once(self, booking: Booking, check: ConflictCheck) -> None:
        with self._session_factory() as session, session.begin():
            if session.get(BookingModel, booking.id) is not None:
                raise RepositoryError(
                    f"Booking {booking.id} already exists",
                    operation="reserve",
                )

            guard = session.get(VenueDayGuard, (booking.venue_id, booking.event_date))
            expected_version = guard.version if guard is not None else None

            check(self._booked_slots(session, booking.venue_id, booking.event_date))

            if expected_version is None:
                session.add(
                    VenueDayGuard(
                        venue_id=booking.venue_id,
                        event_date=booking.event_date,
                        version=1,
                    )
                )
                # Raises IntegrityError when a concurrent writer created it first.
                session.flush()
            else:
                result = session.execute(
                    update(VenueDayGuard)
                    .where(
                        VenueDayGuard.venue_id == booking.venue_id,
                        VenueDayGuard.event_date == booking.event_date,
                        VenueDayGuard.version == expected_version,
                    )
                    .values(version=expected_version + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise _GuardVersionChanged()

            session.add(BookingModel.from_snapshot(booking))
