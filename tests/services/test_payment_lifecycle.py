"""
Tests for the payment state machine.

Verifies that PaymentLifecycle:
- Moves payments through processing, completion, failure and cancellation
- Expires pending payments only after the timeout
- Accumulates partial refunds and flips to refunded at the full amount
- Rejects out-of-range refunds with a dedicated error code
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from venue_booking.core.exceptions import ErrorCode, StateError, ValidationError
from venue_booking.schemas.common import PaymentStatus, PaymentType
from venue_booking.schemas.payment import PaymentRecord
from venue_booking.services.payment import PaymentLifecycle

NOW = datetime(2025, 3, 3, 10, 0, tzinfo=timezone.utc)


class TestPaymentTransitions:

    def setup_method(self):
        self.lifecycle = PaymentLifecycle(payment_timeout_hours=24)
        self.payment = self.lifecycle.create(
            payment_id="pay-1",
            booking_id="bk-1",
            customer_id="cust-1",
            payment_type=PaymentType.FIRST,
            amount=Decimal("68.04"),
            now=NOW,
        )

    def _completed(self):
        processing = self.lifecycle.mark_processing(self.payment, "gw-123", NOW)
        return self.lifecycle.complete(processing, "gw-123", NOW + timedelta(minutes=2))

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    def test_create_starts_pending(self):
        assert self.payment.status == PaymentStatus.PENDING
        assert self.payment.currency == "OMR"
        assert self.payment.refund_amount == Decimal("0.00")
        assert len(self.payment.status_history) == 1
        assert self.payment.status_history[0].note == "Payment initiated"

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_create_rejects_non_positive_amount(self, amount):
        with pytest.raises(ValidationError):
            self.lifecycle.create("pay-2", "bk-1", "cust-1", PaymentType.FULL, Decimal(amount), NOW)

    @pytest.mark.parametrize("amount", ["abc", None, "NaN", "Infinity"])
    def test_create_rejects_non_numeric_amount(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            self.lifecycle.create("pay-2", "bk-1", "cust-1", PaymentType.FULL, amount, NOW)
        assert "amount" in exc_info.value.details["field_errors"]

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            PaymentLifecycle(payment_timeout_hours=0)

    # ------------------------------------------------------------------ #
    # Gateway flow
    # ------------------------------------------------------------------ #

    def test_happy_path(self):
        completed = self._completed()

        assert completed.status == PaymentStatus.COMPLETED
        assert completed.provider_reference == "gw-123"
        assert completed.processed_at == NOW
        assert completed.completed_at == NOW + timedelta(minutes=2)
        assert [e.status for e in completed.status_history] == [
            PaymentStatus.PENDING,
            PaymentStatus.PROCESSING,
            PaymentStatus.COMPLETED,
        ]

    def test_complete_requires_processing(self):
        with pytest.raises(StateError) as exc_info:
            self.lifecycle.complete(self.payment, "gw-123", NOW)
        assert exc_info.value.details["current_state"] == {"status": "pending"}

    def test_fail_records_reason_and_code(self):
        failed = self.lifecycle.fail(self.payment, "Card declined", NOW, code="card_declined")

        assert failed.status == PaymentStatus.FAILED
        assert failed.failure_reason == "Card declined"
        assert failed.failure_code == "card_declined"
        assert failed.failed_at == NOW
        assert self.lifecycle.is_terminal(failed)

    def test_cancel_from_processing(self):
        processing = self.lifecycle.mark_processing(self.payment, "gw-123", NOW)
        cancelled = self.lifecycle.cancel(processing, NOW, reason="Customer abandoned checkout")

        assert cancelled.status == PaymentStatus.CANCELLED
        assert cancelled.failure_reason == "Customer abandoned checkout"
        assert cancelled.status_history[-1].note == "Payment cancelled: Customer abandoned checkout"

    def test_terminal_payments_reject_further_transitions(self):
        failed = self.lifecycle.fail(self.payment, "Card declined", NOW)
        with pytest.raises(StateError):
            self.lifecycle.mark_processing(failed, "gw-123", NOW)
        with pytest.raises(StateError):
            self.lifecycle.cancel(failed, NOW)
        assert not self.lifecycle.can_be_cancelled(failed)

    # ------------------------------------------------------------------ #
    # Expiry
    # ------------------------------------------------------------------ #

    def test_expire_after_timeout(self):
        later = NOW + timedelta(hours=24, seconds=1)
        assert self.lifecycle.is_overdue(self.payment, later)

        expired = self.lifecycle.expire(self.payment, later)
        assert expired.status == PaymentStatus.EXPIRED
        assert expired.status_history[-1].actor == "system"

    def test_expire_at_exact_timeout_is_rejected(self):
        exactly = NOW + timedelta(hours=24)
        assert not self.lifecycle.is_overdue(self.payment, exactly)
        with pytest.raises(StateError):
            self.lifecycle.expire(self.payment, exactly)

    def test_processing_payment_never_expires(self):
        processing = self.lifecycle.mark_processing(self.payment, "gw-123", NOW)
        later = NOW + timedelta(days=3)
        assert not self.lifecycle.is_overdue(processing, later)
        with pytest.raises(StateError):
            self.lifecycle.expire(processing, later)


class TestRefunds:

    def setup_method(self):
        self.lifecycle = PaymentLifecycle()
        pending = self.lifecycle.create("pay-1", "bk-1", "cust-1", PaymentType.FULL, Decimal("100"), NOW)
        processing = self.lifecycle.mark_processing(pending, "gw-9", NOW)
        self.completed = self.lifecycle.complete(processing, "gw-9", NOW)

    def test_partial_then_full_refund(self):
        partial = self.lifecycle.process_refund(self.completed, Decimal("30"), "Guest count reduced", NOW)

        assert partial.status == PaymentStatus.COMPLETED
        assert partial.refund_amount == Decimal("30.00")
        assert partial.is_partially_refunded
        assert self.lifecycle.remaining_refundable_amount(partial) == Decimal("70.00")
        assert self.lifecycle.can_be_refunded(partial)

        full = self.lifecycle.process_refund(partial, Decimal("70"), "Event cancelled", NOW, refund_reference="rf-2")

        assert full.status == PaymentStatus.REFUNDED
        assert full.refund_amount == Decimal("100.00")
        assert full.refund_reference == "rf-2"
        assert self.lifecycle.remaining_refundable_amount(full) == Decimal("0")
        assert not self.lifecycle.can_be_refunded(full)

    def test_over_refund_is_rejected(self):
        partial = self.lifecycle.process_refund(self.completed, Decimal("30"), "Guest count reduced", NOW)
        with pytest.raises(StateError) as exc_info:
            self.lifecycle.process_refund(partial, Decimal("80"), "Too much", NOW)

        assert exc_info.value.error_code == ErrorCode.INVALID_REFUND_AMOUNT
        assert partial.refund_amount == Decimal("30.00")

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_refund_is_rejected(self, amount):
        with pytest.raises(StateError) as exc_info:
            self.lifecycle.process_refund(self.completed, Decimal(amount), "Nothing", NOW)
        assert exc_info.value.error_code == ErrorCode.INVALID_REFUND_AMOUNT

    @pytest.mark.parametrize("amount", ["lots", "NaN", "-Infinity"])
    def test_non_numeric_refund_is_rejected(self, amount):
        with pytest.raises(ValidationError):
            self.lifecycle.process_refund(self.completed, amount, "Nothing", NOW)

    def test_refund_requires_completed_payment(self):
        pending = self.lifecycle.create("pay-2", "bk-1", "cust-1", PaymentType.FULL, Decimal("50"), NOW)
        with pytest.raises(StateError) as exc_info:
            self.lifecycle.process_refund(pending, Decimal("10"), "Early refund", NOW)
        assert exc_info.value.error_code == ErrorCode.INVALID_STATE

    def test_refund_survives_record_round_trip(self):
        partial = self.lifecycle.process_refund(self.completed, Decimal("30"), "Guest count reduced", NOW)
        restored = PaymentRecord.from_record(partial.to_record())

        assert restored == partial
        assert restored.remaining_refundable_amount == Decimal("70.00")
