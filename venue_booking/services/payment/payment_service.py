"""
Payment service.

Drives payment records through their state machine and routes every
settled payment back to its booking through ``BookingService.apply_payment``,
so a booking's payment status never drifts from its payments.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, List, Optional
import logging

from venue_booking.config.settings import Settings, get_settings
from venue_booking.core.exceptions import (
    BaseAppException,
    ResourceNotFoundError,
    StateError,
)
from venue_booking.repositories.base import PaymentRepository
from venue_booking.schemas.booking import Booking
from venue_booking.schemas.common.enums import (
    BookingPaymentStatus,
    PaymentAction,
    PaymentStatus,
    PaymentType,
)
from venue_booking.schemas.payment import PaymentRecord
from venue_booking.services.base import (
    LoggingStatusChangeDispatcher,
    ServiceResult,
    StatusChangeDispatcher,
    StatusChangeEvent,
)
from venue_booking.services.booking.booking_service import BookingService
from venue_booking.services.payment.payment_lifecycle import SYSTEM_ACTOR, PaymentLifecycle

# Booking payment statuses each payment type may be started from.
_STARTABLE_FROM = {
    PaymentType.FIRST: frozenset({BookingPaymentStatus.PENDING, BookingPaymentStatus.FAILED}),
    PaymentType.FULL: frozenset({BookingPaymentStatus.PENDING, BookingPaymentStatus.FAILED}),
    PaymentType.SECOND: frozenset({BookingPaymentStatus.FIRST_PAID}),
}

# A booking has at most one payment in these statuses at a time.
OPEN_PAYMENT_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PROCESSING})


class PaymentService:
    """
    Payment workflows.

    Features:
    - Starting first, second and full payments from the booking's plan
    - Gateway callbacks: processing, completion, failure
    - Cancellation and partial or full refunds
    - Expiry of payments left pending past the timeout
    """

    def __init__(
        self,
        repository: PaymentRepository,
        booking_service: BookingService,
        lifecycle: Optional[PaymentLifecycle] = None,
        dispatcher: Optional[StatusChangeDispatcher] = None,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.booking_service = booking_service
        self.settings = settings or get_settings()
        self.lifecycle = lifecycle or PaymentLifecycle(self.settings.PAYMENT_TIMEOUT_HOURS)
        self.dispatcher = dispatcher or LoggingStatusChangeDispatcher()
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _load(self, payment_id: str) -> PaymentRecord:
        payment = self.repository.get(payment_id)
        if payment is None:
            raise ResourceNotFoundError("Payment", payment_id)
        return payment

    def _notify(
        self,
        before: Optional[PaymentRecord],
        after: PaymentRecord,
        action: str,
        actor: str,
        now: datetime,
    ) -> None:
        self.dispatcher.dispatch(
            StatusChangeEvent(
                entity_type="payment",
                entity_id=after.id,
                action=action,
                from_status=before.status.value if before else None,
                to_status=after.status.value,
                actor=actor,
                occurred_at=now,
                payload={
                    "booking_id": after.booking_id,
                    "amount": str(after.amount),
                    "refund_amount": str(after.refund_amount),
                },
            )
        )

    def _transition(
        self,
        payment_id: str,
        action: PaymentAction,
        now: datetime,
        apply: Callable[[PaymentRecord], PaymentRecord],
        actor: str = SYSTEM_ACTOR,
        sync_booking: bool = False,
    ) -> ServiceResult[PaymentRecord]:
        try:
            payment = self._load(payment_id)
            updated = apply(payment)
            self.repository.save(updated)
        except BaseAppException as e:
            self._logger.warning(
                f"Payment {action.value} failed: {e.message}",
                extra={"payment_id": payment_id, "error_code": e.error_code.value},
            )
            return ServiceResult.from_exception(e)

        self._logger.info(
            f"Payment {action.value} succeeded",
            extra={
                "payment_id": payment_id,
                "booking_id": updated.booking_id,
                "from_status": payment.status.value,
                "to_status": updated.status.value,
            },
        )
        self._notify(payment, updated, action.value, actor, now)

        metadata = {}
        if sync_booking:
            booking_result = self.booking_service.apply_payment(updated.booking_id, updated, now, actor)
            metadata["booking_synced"] = booking_result.is_success
            if booking_result.is_success:
                metadata["booking_payment_status"] = booking_result.data.payment_status.value
            else:
                self._logger.error(
                    f"Booking update after payment {action.value} failed: {booking_result.message}",
                    extra={"payment_id": payment_id, "booking_id": updated.booking_id},
                )
        return ServiceResult.success(updated, message=f"Payment {action.value} succeeded", metadata=metadata)

    def _open_payment_for(self, booking_id: str) -> Optional[PaymentRecord]:
        for payment in self.repository.list_for_booking(booking_id):
            if payment.status in OPEN_PAYMENT_STATUSES:
                return payment
        return None

    def _complete(self, payment: PaymentRecord, provider_reference: str, now: datetime) -> PaymentRecord:
        booking = self.booking_service.load_booking(payment.booking_id)
        if booking.is_terminal:
            raise StateError(
                f"Cannot settle a payment for a {booking.status.value} booking",
                entity_type="Payment",
                entity_id=payment.id,
                operation=PaymentAction.COMPLETE.value,
                current_state={"status": payment.status.value, "booking_status": booking.status.value},
            )
        return self.lifecycle.complete(payment, provider_reference, now)

    @staticmethod
    def amount_for(booking: Booking, payment_type: PaymentType) -> Decimal:
        """Installment amount a payment of ``payment_type`` must cover."""
        if payment_type == PaymentType.FIRST:
            return booking.payment_plan.first_amount
        if payment_type == PaymentType.SECOND:
            return booking.payment_plan.final_amount
        return booking.payment_plan.total_amount

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def start_payment(
        self,
        payment_id: str,
        booking_id: str,
        payment_type: PaymentType,
        now: datetime,
    ) -> ServiceResult[PaymentRecord]:
        """Open a pending payment for the next installment of a booking."""
        try:
            booking = self.booking_service.load_booking(booking_id)
            if booking.is_terminal:
                raise StateError(
                    f"Cannot take payments for a {booking.status.value} booking",
                    entity_type="Booking",
                    entity_id=booking_id,
                    operation="start_payment",
                    current_state={"status": booking.status.value},
                )
            if booking.payment_status not in _STARTABLE_FROM[payment_type]:
                raise StateError(
                    f"Cannot start a {payment_type.value} payment while booking payment "
                    f"status is {booking.payment_status.value}",
                    entity_type="Booking",
                    entity_id=booking_id,
                    operation="start_payment",
                    current_state={"payment_status": booking.payment_status.value},
                )

            open_payment = self._open_payment_for(booking_id)
            if open_payment is not None:
                raise StateError(
                    f"Booking already has payment {open_payment.id} in progress",
                    entity_type="Booking",
                    entity_id=booking_id,
                    operation="start_payment",
                    current_state={
                        "open_payment_id": open_payment.id,
                        "open_payment_status": open_payment.status.value,
                    },
                )

            payment = self.lifecycle.create(
                payment_id=payment_id,
                booking_id=booking.id,
                customer_id=booking.customer_id,
                payment_type=payment_type,
                amount=self.amount_for(booking, payment_type),
                now=now,
                currency=self.settings.CURRENCY,
                commission=booking.pricing.commission,
            )
            self.repository.save(payment)
        except BaseAppException as e:
            self._logger.warning(
                f"Payment start failed: {e.message}",
                extra={"booking_id": booking_id, "error_code": e.error_code.value},
            )
            return ServiceResult.from_exception(e)

        self._logger.info(
            f"Payment {payment.id} started",
            extra={
                "payment_id": payment.id,
                "booking_id": booking_id,
                "payment_type": payment_type.value,
                "amount": str(payment.amount),
            },
        )
        self._notify(None, payment, "create", booking.customer_id, now)
        return ServiceResult.success(payment, message="Payment started")

    def mark_processing(
        self,
        payment_id: str,
        provider_reference: str,
        now: datetime,
    ) -> ServiceResult[PaymentRecord]:
        return self._transition(
            payment_id,
            PaymentAction.MARK_PROCESSING,
            now,
            lambda p: self.lifecycle.mark_processing(p, provider_reference, now),
        )

    def complete_payment(
        self,
        payment_id: str,
        provider_reference: str,
        now: datetime,
    ) -> ServiceResult[PaymentRecord]:
        return self._transition(
            payment_id,
            PaymentAction.COMPLETE,
            now,
            lambda p: self._complete(p, provider_reference, now),
            sync_booking=True,
        )

    def fail_payment(
        self,
        payment_id: str,
        reason: str,
        now: datetime,
        code: Optional[str] = None,
    ) -> ServiceResult[PaymentRecord]:
        return self._transition(
            payment_id,
            PaymentAction.FAIL,
            now,
            lambda p: self.lifecycle.fail(p, reason, now, code),
            sync_booking=True,
        )

    def cancel_payment(
        self,
        payment_id: str,
        now: datetime,
        reason: Optional[str] = None,
        actor: str = SYSTEM_ACTOR,
    ) -> ServiceResult[PaymentRecord]:
        return self._transition(
            payment_id,
            PaymentAction.CANCEL,
            now,
            lambda p: self.lifecycle.cancel(p, now, reason, actor),
            actor=actor,
        )

    def refund_payment(
        self,
        payment_id: str,
        amount: Any,
        reason: str,
        now: datetime,
        refund_reference: Optional[str] = None,
        actor: str = SYSTEM_ACTOR,
    ) -> ServiceResult[PaymentRecord]:
        return self._transition(
            payment_id,
            PaymentAction.REFUND,
            now,
            lambda p: self.lifecycle.process_refund(p, amount, reason, now, refund_reference, actor),
            actor=actor,
        )

    def expire_stale_payments(self, now: datetime) -> ServiceResult[List[PaymentRecord]]:
        """
        Expire every pending payment older than the payment timeout.

        Meant to be called by an external scheduler.
        """
        try:
            pending = self.repository.list_pending()
        except BaseAppException as e:
            return ServiceResult.from_exception(e)

        expired: List[PaymentRecord] = []
        for payment in pending:
            if not self.lifecycle.is_overdue(payment, now):
                continue
            result = self._transition(
                payment.id,
                PaymentAction.EXPIRE,
                now,
                lambda p: self.lifecycle.expire(p, now),
            )
            if result.is_success:
                expired.append(result.data)

        if expired:
            self._logger.info(
                f"Expired {len(expired)} stale payments",
                extra={"payment_ids": [p.id for p in expired]},
            )
        return ServiceResult.success(expired, metadata={"checked": len(pending)})

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_payment(self, payment_id: str) -> ServiceResult[PaymentRecord]:
        try:
            return ServiceResult.success(self._load(payment_id))
        except BaseAppException as e:
            return ServiceResult.from_exception(e)

    def list_for_booking(self, booking_id: str) -> ServiceResult[List[PaymentRecord]]:
        try:
            return ServiceResult.success(self.repository.list_for_booking(booking_id))
        except BaseAppException as e:
            return ServiceResult.from_exception(e)
