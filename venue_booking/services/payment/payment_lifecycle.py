# venue_booking/services/payment/payment_lifecycle.py
"""
Payment state machine.

    pending --mark_processing--> processing --complete--> completed
    pending|processing --fail--> failed
    pending|processing --cancel--> cancelled
    pending --expire--> expired           (after the payment timeout)
    completed --refund--> completed|refunded

Refunds are cumulative; the payment becomes ``refunded`` only once the
refunded total reaches the payment amount.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional

from venue_booking.core.exceptions import ErrorCode, StateError, ValidationError
from venue_booking.core.logging import get_logger
from venue_booking.schemas.common.enums import PaymentAction, PaymentStatus, PaymentType
from venue_booking.schemas.payment import PaymentHistoryEntry, PaymentRecord
from venue_booking.schemas.pricing import CommissionSplit
from venue_booking.utils.money import round_money, to_decimal

SYSTEM_ACTOR = "system"


def _as_money(value: Any, field: str) -> Decimal:
    try:
        amount = to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"{field} must be a number",
            field_errors={field: [str(exc)]},
        ) from exc
    if not amount.is_finite():
        raise ValidationError(
            f"{field} must be a finite number",
            field_errors={field: [f"got {value!r}"]},
        )
    return round_money(amount)


ALLOWED_SOURCES: Dict[PaymentAction, FrozenSet[PaymentStatus]] = {
    PaymentAction.MARK_PROCESSING: frozenset({PaymentStatus.PENDING}),
    PaymentAction.COMPLETE: frozenset({PaymentStatus.PROCESSING}),
    PaymentAction.FAIL: frozenset({PaymentStatus.PENDING, PaymentStatus.PROCESSING}),
    PaymentAction.CANCEL: frozenset({PaymentStatus.PENDING, PaymentStatus.PROCESSING}),
    PaymentAction.EXPIRE: frozenset({PaymentStatus.PENDING}),
    PaymentAction.REFUND: frozenset({PaymentStatus.COMPLETED}),
}


class PaymentLifecycle:
    """Transitions and predicates for payment records."""

    def __init__(self, payment_timeout_hours: int = 24):
        if payment_timeout_hours <= 0:
            raise ValidationError(
                "Payment timeout must be positive",
                field_errors={"payment_timeout_hours": ["must be greater than zero"]},
            )
        self.payment_timeout_hours = payment_timeout_hours
        self._logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @property
    def timeout(self) -> timedelta:
        return timedelta(hours=self.payment_timeout_hours)

    # ==================== HELPERS ====================

    def _guard(self, action: PaymentAction, payment: PaymentRecord) -> None:
        if payment.status not in ALLOWED_SOURCES[action]:
            raise StateError(
                f"Cannot {action.value.replace('_', ' ')} payment in status {payment.status.value}",
                entity_type="Payment",
                entity_id=payment.id,
                operation=action.value,
                current_state={"status": payment.status.value},
            )

    def _transition(
        self,
        payment: PaymentRecord,
        status: PaymentStatus,
        now: datetime,
        actor: str,
        note: Optional[str],
        **changes: Any,
    ) -> PaymentRecord:
        entry = PaymentHistoryEntry(status=status, timestamp=now, actor=actor, note=note)
        changes["status"] = status
        changes["status_history"] = payment.status_history + (entry,)
        self._logger.debug(
            "Payment transitioned",
            extra={
                "payment_id": payment.id,
                "from_status": payment.status.value,
                "to_status": status.value,
            },
        )
        return payment.model_copy(update=changes)

    # ==================== OPERATIONS ====================

    def create(
        self,
        payment_id: str,
        booking_id: str,
        customer_id: str,
        payment_type: PaymentType,
        amount: Any,
        now: datetime,
        currency: str = "OMR",
        commission: Optional[CommissionSplit] = None,
    ) -> PaymentRecord:
        """Start a payment attempt in ``pending`` with one history entry."""
        value = _as_money(amount, "amount")
        if value <= 0:
            raise ValidationError(
                "Payment amount must be greater than zero",
                field_errors={"amount": ["must be greater than zero"]},
            )
        return PaymentRecord(
            id=payment_id,
            booking_id=booking_id,
            customer_id=customer_id,
            payment_type=payment_type,
            amount=value,
            currency=currency,
            status=PaymentStatus.PENDING,
            created_at=now,
            commission=commission,
            status_history=(
                PaymentHistoryEntry(
                    status=PaymentStatus.PENDING,
                    timestamp=now,
                    actor=customer_id,
                    note="Payment initiated",
                ),
            ),
        )

    def mark_processing(
        self,
        payment: PaymentRecord,
        provider_reference: str,
        now: datetime,
        actor: str = SYSTEM_ACTOR,
    ) -> PaymentRecord:
        self._guard(PaymentAction.MARK_PROCESSING, payment)
        return self._transition(
            payment,
            PaymentStatus.PROCESSING,
            now,
            actor,
            "Payment processing",
            provider_reference=provider_reference,
            processed_at=now,
        )

    def complete(
        self,
        payment: PaymentRecord,
        provider_reference: str,
        now: datetime,
        actor: str = SYSTEM_ACTOR,
    ) -> PaymentRecord:
        self._guard(PaymentAction.COMPLETE, payment)
        return self._transition(
            payment,
            PaymentStatus.COMPLETED,
            now,
            actor,
            "Payment completed",
            provider_reference=provider_reference,
            completed_at=now,
        )

    def fail(
        self,
        payment: PaymentRecord,
        reason: str,
        now: datetime,
        code: Optional[str] = None,
        actor: str = SYSTEM_ACTOR,
    ) -> PaymentRecord:
        self._guard(PaymentAction.FAIL, payment)
        return self._transition(
            payment,
            PaymentStatus.FAILED,
            now,
            actor,
            f"Payment failed: {reason}",
            failure_reason=reason,
            failure_code=code,
            failed_at=now,
        )

    def cancel(
        self,
        payment: PaymentRecord,
        now: datetime,
        reason: Optional[str] = None,
        actor: str = SYSTEM_ACTOR,
    ) -> PaymentRecord:
        self._guard(PaymentAction.CANCEL, payment)
        return self._transition(
            payment,
            PaymentStatus.CANCELLED,
            now,
            actor,
            f"Payment cancelled: {reason}" if reason else "Payment cancelled",
            failure_reason=reason,
        )

    def expire(self, payment: PaymentRecord, now: datetime) -> PaymentRecord:
        """Expire a pending payment once it has outlived the timeout."""
        self._guard(PaymentAction.EXPIRE, payment)
        if not self.is_overdue(payment, now):
            raise StateError(
                f"Payment has not exceeded the {self.payment_timeout_hours}h timeout",
                entity_type="Payment",
                entity_id=payment.id,
                operation=PaymentAction.EXPIRE.value,
                current_state={"status": payment.status.value},
            )
        return self._transition(
            payment,
            PaymentStatus.EXPIRED,
            now,
            SYSTEM_ACTOR,
            "Payment expired",
        )

    def process_refund(
        self,
        payment: PaymentRecord,
        amount: Any,
        reason: str,
        now: datetime,
        refund_reference: Optional[str] = None,
        actor: str = SYSTEM_ACTOR,
    ) -> PaymentRecord:
        """
        Refund part or all of a completed payment.

        Raises:
            StateError: Payment not completed, or amount outside
                ``(0, remaining refundable]``
            ValidationError: Amount is not a finite number
        """
        self._guard(PaymentAction.REFUND, payment)

        refund = _as_money(amount, "refund_amount")
        remaining = self.remaining_refundable_amount(payment)
        if refund <= 0 or refund > remaining:
            raise StateError(
                f"Refund amount {refund} must be greater than zero and at most {remaining}",
                entity_type="Payment",
                entity_id=payment.id,
                operation=PaymentAction.REFUND.value,
                current_state={
                    "status": payment.status.value,
                    "refund_amount": str(payment.refund_amount),
                },
                error_code=ErrorCode.INVALID_REFUND_AMOUNT,
            )

        total_refunded = payment.refund_amount + refund
        status = (
            PaymentStatus.REFUNDED if total_refunded >= payment.amount else PaymentStatus.COMPLETED
        )
        return self._transition(
            payment,
            status,
            now,
            actor,
            f"Refunded {refund}: {reason}",
            refund_amount=total_refunded,
            refund_reason=reason,
            refunded_at=now,
            refund_reference=refund_reference,
        )

    # ==================== PREDICATES ====================

    @staticmethod
    def is_terminal(payment: PaymentRecord) -> bool:
        return payment.is_terminal

    @staticmethod
    def can_be_cancelled(payment: PaymentRecord) -> bool:
        return payment.status in ALLOWED_SOURCES[PaymentAction.CANCEL]

    @staticmethod
    def can_be_refunded(payment: PaymentRecord) -> bool:
        return (
            payment.status == PaymentStatus.COMPLETED
            and payment.refund_amount < payment.amount
        )

    @staticmethod
    def remaining_refundable_amount(payment: PaymentRecord) -> Decimal:
        return payment.remaining_refundable_amount

    def is_overdue(self, payment: PaymentRecord, now: datetime) -> bool:
        """A pending payment older than the timeout."""
        return (
            payment.status == PaymentStatus.PENDING
            and now - payment.created_at > self.timeout
        )
