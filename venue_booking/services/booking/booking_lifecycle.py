# venue_booking/services/booking/booking_lifecycle.py
"""
Booking state machine.

A booking carries three coupled axes: ``status``, ``payment_status`` and
``approval_status``. Every operation is checked against one transition
table, then returns a new snapshot with exactly one appended history
entry. A rejected operation raises :class:`StateError` and leaves the input
snapshot untouched.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional

from venue_booking.core.exceptions import StateError, ValidationError
from venue_booking.core.logging import get_logger
from venue_booking.schemas.booking import (
    Booking,
    BookingPolicy,
    BookingRequest,
    StatusHistoryEntry,
)
from venue_booking.schemas.common.enums import (
    ApprovalStatus,
    BookingAction,
    BookingPaymentStatus,
    BookingStatus,
)
from venue_booking.schemas.pricing import Quote
from venue_booking.utils.date_utils import (
    at_minutes,
    start_of_day,
    whole_days_between,
    whole_hours_between,
)

ANY_STATUS: FrozenSet[BookingStatus] = frozenset(BookingStatus)
NON_TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset(
    s for s in BookingStatus if not s.is_terminal
)
ANY_PAYMENT_STATUS: FrozenSet[BookingPaymentStatus] = frozenset(BookingPaymentStatus)
ANY_APPROVAL_STATUS: FrozenSet[ApprovalStatus] = frozenset(ApprovalStatus)

CANCELLABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


@dataclass(frozen=True)
class TransitionRule:
    """Source states an action may start from."""

    statuses: FrozenSet[BookingStatus]
    payment_statuses: FrozenSet[BookingPaymentStatus]
    approval_statuses: FrozenSet[ApprovalStatus]

    def allows(self, booking: Booking) -> bool:
        return (
            booking.status in self.statuses
            and booking.payment_status in self.payment_statuses
            and booking.approval_status in self.approval_statuses
        )


TRANSITION_TABLE: Dict[BookingAction, TransitionRule] = {
    BookingAction.APPROVE: TransitionRule(
        statuses=NON_TERMINAL_STATUSES,
        payment_statuses=ANY_PAYMENT_STATUS,
        approval_statuses=frozenset({ApprovalStatus.PENDING}),
    ),
    BookingAction.REJECT: TransitionRule(
        statuses=NON_TERMINAL_STATUSES,
        payment_statuses=ANY_PAYMENT_STATUS,
        approval_statuses=frozenset({ApprovalStatus.PENDING}),
    ),
    BookingAction.UPDATE_PAYMENT_STATUS: TransitionRule(
        statuses=ANY_STATUS,
        payment_statuses=ANY_PAYMENT_STATUS,
        approval_statuses=ANY_APPROVAL_STATUS,
    ),
    BookingAction.CANCEL: TransitionRule(
        statuses=CANCELLABLE_STATUSES,
        payment_statuses=ANY_PAYMENT_STATUS - {BookingPaymentStatus.FULLY_PAID},
        approval_statuses=ANY_APPROVAL_STATUS,
    ),
    BookingAction.COMPLETE: TransitionRule(
        statuses=NON_TERMINAL_STATUSES,
        payment_statuses=frozenset({BookingPaymentStatus.FULLY_PAID}),
        approval_statuses=ANY_APPROVAL_STATUS,
    ),
}


def _state_of(booking: Booking) -> Dict[str, Any]:
    return {
        "status": booking.status.value,
        "payment_status": booking.payment_status.value,
        "approval_status": booking.approval_status.value,
    }


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(
            f"{field} is required",
            field_errors={field: ["must not be empty"]},
        )
    return value.strip()


class BookingLifecycle:
    """
    Transitions and time-based predicates for bookings.

    Stateless apart from its policy; ``now`` is always passed in.
    """

    def __init__(self, policy: Optional[BookingPolicy] = None):
        self.policy = policy or BookingPolicy()
        self._logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    # ==================== TRANSITION TABLE ====================

    @staticmethod
    def is_allowed(action: BookingAction, booking: Booking) -> bool:
        return TRANSITION_TABLE[action].allows(booking)

    def _guard(self, action: BookingAction, booking: Booking) -> None:
        if not self.is_allowed(action, booking):
            raise StateError(
                f"Cannot {action.value.replace('_', ' ')} booking in state "
                f"{booking.status.value}/{booking.payment_status.value}/"
                f"{booking.approval_status.value}",
                entity_type="Booking",
                entity_id=booking.id,
                operation=action.value,
                current_state=_state_of(booking),
            )

    def _transition(
        self,
        booking: Booking,
        actor: str,
        now: datetime,
        note: Optional[str],
        **changes: Any,
    ) -> Booking:
        new_status = changes.get("status", booking.status)
        entry = StatusHistoryEntry(
            status=new_status,
            timestamp=now,
            actor=_require_text(actor, "actor"),
            note=note,
        )
        changes["updated_at"] = now
        changes["status_history"] = booking.status_history + (entry,)
        updated = booking.model_copy(update=changes)
        self._logger.debug(
            "Booking transitioned",
            extra={
                "booking_id": booking.id,
                "from_status": booking.status.value,
                "to_status": new_status.value,
            },
        )
        return updated

    # ==================== OPERATIONS ====================

    def create(
        self,
        request: BookingRequest,
        quote: Quote,
        now: datetime,
        actor: Optional[str] = None,
    ) -> Booking:
        """Build the initial snapshot: pending on every axis, one history entry."""
        creator = _require_text(actor or request.customer_id, "actor")
        return Booking(
            id=request.booking_id,
            venue_id=request.venue_id,
            customer_id=request.customer_id,
            owner_id=request.owner_id,
            booking_type=request.booking_type,
            event_date=request.event_date,
            time_slot=request.time_slot,
            guest_count=request.guest_count,
            event_type=request.event_type,
            event_description=request.event_description,
            pricing=quote.pricing,
            payment_plan=quote.payment_plan,
            status=BookingStatus.PENDING,
            payment_status=BookingPaymentStatus.PENDING,
            approval_status=ApprovalStatus.PENDING,
            created_at=now,
            updated_at=now,
            status_history=(
                StatusHistoryEntry(
                    status=BookingStatus.PENDING,
                    timestamp=now,
                    actor=creator,
                    note="Booking created",
                ),
            ),
        )

    def approve(
        self,
        booking: Booking,
        actor: str,
        now: datetime,
        note: Optional[str] = None,
    ) -> Booking:
        self._guard(BookingAction.APPROVE, booking)
        return self._transition(
            booking,
            actor,
            now,
            note or "Approved by venue owner",
            status=BookingStatus.CONFIRMED,
            approval_status=ApprovalStatus.APPROVED,
            owner_approved_at=now,
        )

    def reject(self, booking: Booking, actor: str, reason: str, now: datetime) -> Booking:
        reason = _require_text(reason, "reason")
        self._guard(BookingAction.REJECT, booking)
        return self._transition(
            booking,
            actor,
            now,
            f"Rejected by venue owner: {reason}",
            status=BookingStatus.CANCELLED,
            approval_status=ApprovalStatus.REJECTED,
            cancellation_reason=reason,
            owner_rejection_reason=reason,
        )

    def update_payment_status(
        self,
        booking: Booking,
        actor: str,
        new_status: BookingPaymentStatus,
        now: datetime,
    ) -> Booking:
        """
        Record a payment status change and apply its coupling rules.

        ``first_paid`` moves a pending booking to ``payment_pending``;
        ``fully_paid`` confirms it. Cancelled and completed bookings keep
        their status, and a completed booking stays fully paid.
        """
        try:
            new_status = BookingPaymentStatus(new_status)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown payment status: {new_status!r}",
                field_errors={"payment_status": [str(exc)]},
            ) from exc
        self._guard(BookingAction.UPDATE_PAYMENT_STATUS, booking)

        if (
            booking.status == BookingStatus.COMPLETED
            and new_status != BookingPaymentStatus.FULLY_PAID
        ):
            raise StateError(
                "Completed bookings must remain fully paid",
                entity_type="Booking",
                entity_id=booking.id,
                operation=BookingAction.UPDATE_PAYMENT_STATUS.value,
                current_state=_state_of(booking),
            )

        status = booking.status
        if not status.is_terminal:
            if new_status == BookingPaymentStatus.FULLY_PAID:
                status = BookingStatus.CONFIRMED
            elif new_status == BookingPaymentStatus.FIRST_PAID and status == BookingStatus.PENDING:
                status = BookingStatus.PAYMENT_PENDING

        return self._transition(
            booking,
            actor,
            now,
            f"Payment status changed to {new_status.value}",
            status=status,
            payment_status=new_status,
        )

    def cancel(self, booking: Booking, actor: str, reason: str, now: datetime) -> Booking:
        reason = _require_text(reason, "reason")
        self._guard(BookingAction.CANCEL, booking)

        hours_left = self.hours_until_event(booking, now)
        if hours_left < self.policy.min_cancellation_hours:
            raise StateError(
                f"Bookings can only be cancelled at least "
                f"{self.policy.min_cancellation_hours} hours before the event "
                f"({hours_left} hours left)",
                entity_type="Booking",
                entity_id=booking.id,
                operation=BookingAction.CANCEL.value,
                current_state=_state_of(booking),
            )

        return self._transition(
            booking,
            actor,
            now,
            f"Cancelled: {reason}",
            status=BookingStatus.CANCELLED,
            cancellation_reason=reason,
        )

    def complete(self, booking: Booking, actor: str, now: datetime) -> Booking:
        self._guard(BookingAction.COMPLETE, booking)
        return self._transition(
            booking,
            actor,
            now,
            "Booking completed",
            status=BookingStatus.COMPLETED,
        )

    # ==================== TIME HELPERS ====================

    @staticmethod
    def event_start(booking: Booking, now: datetime) -> datetime:
        """Event start in ``now``'s timezone: slot start, or midnight for full days."""
        minutes = 0
        if not booking.is_full_day and booking.time_slot is not None:
            minutes = booking.time_slot.start_minutes
        return at_minutes(booking.event_date, minutes, now.tzinfo)

    def hours_until_event(self, booking: Booking, now: datetime) -> int:
        return whole_hours_between(now, self.event_start(booking, now))

    @staticmethod
    def days_until_event(booking: Booking, now: datetime) -> int:
        return whole_days_between(now, start_of_day(booking.event_date, now.tzinfo))

    # ==================== PREDICATES ====================

    def can_be_cancelled(self, booking: Booking, now: datetime) -> bool:
        return (
            self.is_allowed(BookingAction.CANCEL, booking)
            and self.hours_until_event(booking, now) >= self.policy.min_cancellation_hours
        )

    def can_be_modified(self, booking: Booking, now: datetime) -> bool:
        return (
            booking.status == BookingStatus.PENDING
            and booking.approval_status == ApprovalStatus.PENDING
            and self.hours_until_event(booking, now) >= self.policy.min_modification_hours
        )

    @staticmethod
    def requires_owner_approval(booking: Booking) -> bool:
        return (
            booking.status == BookingStatus.PENDING
            and booking.approval_status == ApprovalStatus.PENDING
        )

    def is_second_payment_due(self, booking: Booking, now: datetime) -> bool:
        return (
            booking.payment_status == BookingPaymentStatus.FIRST_PAID
            and self.days_until_event(booking, now)
            <= booking.payment_plan.days_before_event_for_final_payment
        )

    def is_second_payment_overdue(self, booking: Booking, now: datetime) -> bool:
        return (
            self.is_second_payment_due(booking, now)
            and now > booking.payment_plan.final_due_date + timedelta(days=1)
        )

    @staticmethod
    def is_expired(booking: Booking, now: datetime) -> bool:
        return now > start_of_day(booking.event_date, now.tzinfo) + timedelta(hours=24)

    @staticmethod
    def remaining_payment_amount(booking: Booking) -> Decimal:
        """Amount the customer still owes under the payment plan."""
        if booking.payment_status == BookingPaymentStatus.FULLY_PAID:
            return Decimal("0.00")
        if booking.payment_status == BookingPaymentStatus.FIRST_PAID:
            return booking.payment_plan.final_amount
        return booking.payment_plan.total_amount
