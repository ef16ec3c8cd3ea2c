"""
Booking service.

Orchestrates conflict detection, pricing and the booking state machine on
top of an injected repository, and publishes every committed status change.
Domain errors come back as failed ``ServiceResult`` values.
"""

from datetime import date, datetime
from typing import Callable, Iterable, List, Optional
import logging

from venue_booking.config.settings import Settings, get_settings
from venue_booking.core.exceptions import BaseAppException, ResourceNotFoundError
from venue_booking.repositories.base import BookingRepository
from venue_booking.schemas.booking import Booking, BookingPolicy, BookingRequest
from venue_booking.schemas.common.enums import (
    BookingAction,
    BookingPaymentStatus,
    BookingType,
    PaymentStatus,
    PaymentType,
)
from venue_booking.schemas.common.time_slot import TimeSlot
from venue_booking.schemas.payment import PaymentRecord
from venue_booking.schemas.pricing import (
    CommissionBounds,
    CommissionProfile,
    PaymentPlanConfig,
    VenuePricingProfile,
)
from venue_booking.services.base import (
    LoggingStatusChangeDispatcher,
    ServiceResult,
    StatusChangeDispatcher,
    StatusChangeEvent,
)
from venue_booking.services.booking.booking_lifecycle import BookingLifecycle
from venue_booking.services.booking.conflict_detector import available_slots, check_conflict
from venue_booking.services.pricing.pricing_engine import DiscountInput, PricingEngine

_PAYMENT_PROGRESS = {
    BookingPaymentStatus.PENDING: 0,
    BookingPaymentStatus.FAILED: 0,
    BookingPaymentStatus.FIRST_PAID: 1,
    BookingPaymentStatus.FULLY_PAID: 2,
}


class BookingService:
    """
    Booking workflows.

    Features:
    - Conflict-checked, atomically reserved booking creation
    - Owner approval and rejection
    - Customer cancellation and post-event completion
    - Payment status propagation from payments to bookings
    - Slot availability reporting
    """

    def __init__(
        self,
        repository: BookingRepository,
        engine: Optional[PricingEngine] = None,
        lifecycle: Optional[BookingLifecycle] = None,
        dispatcher: Optional[StatusChangeDispatcher] = None,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.settings = settings or get_settings()
        self.engine = engine or PricingEngine(
            CommissionBounds.from_settings(self.settings),
            hours_per_day=self.settings.HOURS_PER_BUSINESS_DAY,
        )
        self.lifecycle = lifecycle or BookingLifecycle(BookingPolicy.from_settings(self.settings))
        self.dispatcher = dispatcher or LoggingStatusChangeDispatcher()
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def load_booking(self, booking_id: str) -> Booking:
        booking = self.repository.get(booking_id)
        if booking is None:
            raise ResourceNotFoundError("Booking", booking_id)
        return booking

    def _notify(
        self,
        before: Optional[Booking],
        after: Booking,
        action: str,
        actor: str,
        now: datetime,
    ) -> None:
        self.dispatcher.dispatch(
            StatusChangeEvent(
                entity_type="booking",
                entity_id=after.id,
                action=action,
                from_status=before.status.value if before else None,
                to_status=after.status.value,
                actor=actor,
                occurred_at=now,
                payload={
                    "venue_id": after.venue_id,
                    "customer_id": after.customer_id,
                    "owner_id": after.owner_id,
                    "payment_status": after.payment_status.value,
                    "approval_status": after.approval_status.value,
                },
            )
        )

    def _transition(
        self,
        booking_id: str,
        action: BookingAction,
        actor: str,
        now: datetime,
        apply: Callable[[Booking], Booking],
    ) -> ServiceResult[Booking]:
        try:
            booking = self.load_booking(booking_id)
            updated = apply(booking)
            self.repository.save(updated)
        except BaseAppException as e:
            self._logger.warning(
                f"Booking {action.value} failed: {e.message}",
                extra={"booking_id": booking_id, "error_code": e.error_code.value},
            )
            return ServiceResult.from_exception(e)

        self._logger.info(
            f"Booking {action.value} succeeded",
            extra={
                "booking_id": booking_id,
                "from_status": booking.status.value,
                "to_status": updated.status.value,
            },
        )
        self._notify(booking, updated, action.value, actor, now)
        return ServiceResult.success(updated, message=f"Booking {action.value} succeeded")

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_booking(
        self,
        request: BookingRequest,
        profile: VenuePricingProfile,
        now: datetime,
        discounts: Iterable[DiscountInput] = (),
        commission: Optional[CommissionProfile] = None,
        plan_config: Optional[PaymentPlanConfig] = None,
    ) -> ServiceResult[Booking]:
        """
        Create a booking in ``pending``.

        The conflict check runs first so overlapping requests are turned
        away before pricing. The repository then re-runs it atomically with
        the insert.
        """
        candidate = None if request.booking_type == BookingType.DAILY else request.time_slot

        def conflict_check(existing):
            check_conflict(request.venue_id, request.event_date, candidate, existing)

        try:
            conflict_check(
                self.repository.fetch_booked_slots(request.venue_id, request.event_date)
            )
            quote = self.engine.compute_quote(
                profile,
                request.to_quote_request(),
                discounts,
                commission or CommissionProfile.from_settings(self.settings),
                plan_config or PaymentPlanConfig.from_settings(self.settings),
                now,
            )
            booking = self.lifecycle.create(request, quote, now)
            self.repository.reserve(booking, conflict_check)
        except BaseAppException as e:
            self._logger.warning(
                f"Booking creation failed: {e.message}",
                extra={
                    "booking_id": request.booking_id,
                    "venue_id": request.venue_id,
                    "error_code": e.error_code.value,
                },
            )
            return ServiceResult.from_exception(e)

        self._logger.info(
            f"Booking {booking.id} created",
            extra={
                "booking_id": booking.id,
                "venue_id": booking.venue_id,
                "event_date": booking.event_date.isoformat(),
                "total_for_customer": str(booking.pricing.total_for_customer),
            },
        )
        self._notify(None, booking, "create", request.customer_id, now)
        return ServiceResult.success(booking, message="Booking created")

    # -------------------------------------------------------------------------
    # Owner decisions
    # -------------------------------------------------------------------------

    def approve(
        self,
        booking_id: str,
        actor: str,
        now: datetime,
        note: Optional[str] = None,
    ) -> ServiceResult[Booking]:
        return self._transition(
            booking_id,
            BookingAction.APPROVE,
            actor,
            now,
            lambda b: self.lifecycle.approve(b, actor, now, note),
        )

    def reject(self, booking_id: str, actor: str, reason: str, now: datetime) -> ServiceResult[Booking]:
        return self._transition(
            booking_id,
            BookingAction.REJECT,
            actor,
            now,
            lambda b: self.lifecycle.reject(b, actor, reason, now),
        )

    # -------------------------------------------------------------------------
    # Customer and system actions
    # -------------------------------------------------------------------------

    def cancel(self, booking_id: str, actor: str, reason: str, now: datetime) -> ServiceResult[Booking]:
        return self._transition(
            booking_id,
            BookingAction.CANCEL,
            actor,
            now,
            lambda b: self.lifecycle.cancel(b, actor, reason, now),
        )

    def complete(self, booking_id: str, actor: str, now: datetime) -> ServiceResult[Booking]:
        return self._transition(
            booking_id,
            BookingAction.COMPLETE,
            actor,
            now,
            lambda b: self.lifecycle.complete(b, actor, now),
        )

    def update_payment_status(
        self,
        booking_id: str,
        actor: str,
        new_status: BookingPaymentStatus,
        now: datetime,
    ) -> ServiceResult[Booking]:
        return self._transition(
            booking_id,
            BookingAction.UPDATE_PAYMENT_STATUS,
            actor,
            now,
            lambda b: self.lifecycle.update_payment_status(b, actor, new_status, now),
        )

    def apply_payment(
        self,
        booking_id: str,
        payment: PaymentRecord,
        now: datetime,
        actor: str = "system",
    ) -> ServiceResult[Booking]:
        """
        Propagate a settled payment to its booking.

        A completed first installment marks the booking ``first_paid``; a
        completed second or full payment marks it ``fully_paid``. A failed
        payment marks the booking ``failed`` only while nothing has been
        paid yet. A completion that would not advance the booking (a late
        first installment on a fully paid booking) and other payment states
        leave the booking untouched.
        """
        new_status = self._booking_payment_status_for(payment)
        if new_status is None:
            try:
                return ServiceResult.success(self.load_booking(booking_id), message="No change")
            except BaseAppException as e:
                return ServiceResult.from_exception(e)

        return self.update_payment_status(booking_id, actor, new_status, now)

    def _booking_payment_status_for(self, payment: PaymentRecord) -> Optional[BookingPaymentStatus]:
        booking = self.repository.get(payment.booking_id)
        if payment.status == PaymentStatus.COMPLETED:
            target = (
                BookingPaymentStatus.FIRST_PAID
                if payment.payment_type == PaymentType.FIRST
                else BookingPaymentStatus.FULLY_PAID
            )
            # Completions never move a booking backwards.
            if booking is not None and _PAYMENT_PROGRESS[booking.payment_status] >= _PAYMENT_PROGRESS[target]:
                return None
            return target
        if payment.status == PaymentStatus.FAILED:
            if booking is not None and booking.payment_status in (
                BookingPaymentStatus.PENDING,
                BookingPaymentStatus.FAILED,
            ):
                return BookingPaymentStatus.FAILED
        return None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> ServiceResult[Booking]:
        try:
            return ServiceResult.success(self.load_booking(booking_id))
        except BaseAppException as e:
            return ServiceResult.from_exception(e)

    def check_availability(
        self,
        venue_id: str,
        event_date: date,
        offered_slots: Iterable[TimeSlot],
    ) -> ServiceResult[List[TimeSlot]]:
        """Offered slots still free on ``event_date``."""
        try:
            existing = self.repository.fetch_booked_slots(venue_id, event_date)
        except BaseAppException as e:
            return ServiceResult.from_exception(e)

        free = available_slots(offered_slots, existing)
        return ServiceResult.success(free, metadata={"booked": len(existing)})
