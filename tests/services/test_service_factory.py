"""
Tests for service wiring.
"""

from datetime import datetime, timezone
import logging

import structlog

from venue_booking.config.settings import Settings
from venue_booking.schemas.common import BookingPaymentStatus, PaymentType
from venue_booking.services.base import RecordingStatusChangeDispatcher
from venue_booking.services.service_factory import ServiceFactory

NOW = datetime(2025, 3, 3, 10, 0, tzinfo=timezone.utc)


class TestServiceFactory:

    def setup_method(self):
        self.settings = Settings(
            DATABASE_URL="sqlite://",
            ENVIRONMENT="test",
            RESERVATION_MAX_RETRIES=5,
        )
        self.dispatcher = RecordingStatusChangeDispatcher()
        self.factory = ServiceFactory.from_settings(
            self.settings,
            dispatcher=self.dispatcher,
            create_tables=True,
            configure_logging=False,
        )

    def test_repository_uses_configured_retries(self):
        assert self.factory.booking_repository().max_retries == 5

    def test_services_are_cached_and_shared(self):
        booking_service = self.factory.booking()

        assert self.factory.booking() is booking_service
        assert self.factory.payment().booking_service is booking_service
        assert self.factory.booking(use_cache=False) is not booking_service

        self.factory.clear_cache()
        assert self.factory.booking() is not booking_service

    def test_wired_services_work_end_to_end(self, make_booking_request, pricing_profile):
        booking = self.factory.booking().create_booking(make_booking_request(), pricing_profile, NOW).unwrap()
        payments = self.factory.payment()

        payments.start_payment("pay-1", booking.id, PaymentType.FULL, NOW)
        payments.mark_processing("pay-1", "gw-1", NOW)
        payments.complete_payment("pay-1", "gw-1", NOW)

        stored = self.factory.booking().get_booking(booking.id).unwrap()
        assert stored.payment_status == BookingPaymentStatus.FULLY_PAID
        assert self.dispatcher.actions().count("create") == 2


class TestFactoryLogging:

    def setup_method(self):
        root = logging.getLogger()
        self._handlers = list(root.handlers)
        self._level = root.level

    def teardown_method(self):
        root = logging.getLogger()
        root.handlers[:] = self._handlers
        root.setLevel(self._level)
        structlog.reset_defaults()

    def test_from_settings_configures_logging(self, capsys):
        settings = Settings(DATABASE_URL="sqlite://", ENVIRONMENT="test", LOG_LEVEL="DEBUG")

        ServiceFactory.from_settings(settings, create_tables=True)

        assert structlog.is_configured()
        assert logging.getLogger().level == logging.DEBUG
        assert "Logging system initialized" in capsys.readouterr().out
