"""
SQLAlchemy payment repository.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from venue_booking.core.exceptions import RepositoryError
from venue_booking.core.logging import get_struct_logger
from venue_booking.models import PaymentModel
from venue_booking.repositories.base import PaymentRepository
from venue_booking.schemas.common.enums import PaymentStatus
from venue_booking.schemas.payment import PaymentRecord

logger = get_struct_logger(__name__)


class SQLAlchemyPaymentRepository(PaymentRepository):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, payment_id: str) -> Optional[PaymentRecord]:
        try:
            with self._session_factory() as session:
                model = session.get(PaymentModel, payment_id)
                return model.to_snapshot() if model else None
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to load payment {payment_id}: {e}", operation="get") from e

    def save(self, payment: PaymentRecord) -> PaymentRecord:
        try:
            with self._session_factory() as session, session.begin():
                model = session.get(PaymentModel, payment.id)
                if model is None:
                    session.add(PaymentModel.from_snapshot(payment))
                else:
                    model.apply_snapshot(payment)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to save payment {payment.id}: {e}", operation="save") from e

        logger.debug("payment_saved", payment_id=payment.id, status=payment.status.value)
        return payment

    def _list(self, *criteria) -> List[PaymentRecord]:
        stmt = select(PaymentModel).where(*criteria).order_by(PaymentModel.created_at, PaymentModel.id)
        try:
            with self._session_factory() as session:
                return [model.to_snapshot() for model in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to list payments: {e}", operation="list") from e

    def list_for_booking(self, booking_id: str) -> List[PaymentRecord]:
        return self._list(PaymentModel.booking_id == booking_id)

    def list_pending(self) -> List[PaymentRecord]:
        return self._list(PaymentModel.status == PaymentStatus.PENDING.value)
