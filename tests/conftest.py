# tests/conftest.py

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from venue_booking.config.settings import Settings
from venue_booking.db import create_db_engine, create_session_factory, init_db
from venue_booking.repositories import (
    SQLAlchemyBookingRepository,
    SQLAlchemyPaymentRepository,
)
from venue_booking.schemas.booking import BookingRequest
from venue_booking.schemas.common import BookingType, DayOfWeek
from venue_booking.schemas.pricing import (
    CommissionBounds,
    CommissionProfile,
    Discount,
    PaymentPlanConfig,
    VenuePricingProfile,
)
from venue_booking.services.base import RecordingStatusChangeDispatcher
from venue_booking.services.booking import BookingLifecycle, BookingService
from venue_booking.services.payment import PaymentLifecycle, PaymentService
from venue_booking.services.pricing import PricingEngine

# Monday morning; every test runs against this injected clock.
NOW = datetime(2025, 3, 3, 10, 0, tzinfo=timezone.utc)
FRIDAY_EVENT = date(2025, 4, 4)


def make_request(**overrides) -> BookingRequest:
    data = {
        "booking_id": "bk-1",
        "venue_id": "venue-1",
        "customer_id": "cust-1",
        "owner_id": "owner-1",
        "booking_type": BookingType.DAILY,
        "event_date": FRIDAY_EVENT,
        "guest_count": 120,
        "event_type": "wedding",
    }
    data.update(overrides)
    return BookingRequest(**data)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def event_date():
    return FRIDAY_EVENT


@pytest.fixture
def make_booking_request():
    return make_request


@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite://", ENVIRONMENT="test")


@pytest.fixture
def pricing_profile():
    return VenuePricingProfile(
        base_price=Decimal("100"),
        daily_pricing={DayOfWeek.FRIDAY: Decimal("120")},
        hourly_rate=Decimal("20"),
    )


@pytest.fixture
def friday_discount():
    return Discount(
        id="fri-10",
        name="Friday special",
        percentage=Decimal("10"),
        start_date=date(2025, 3, 1),
        end_date=date(2025, 4, 30),
        applies_on_days=frozenset({DayOfWeek.FRIDAY}),
    )


@pytest.fixture
def commission():
    return CommissionProfile(
        customer_commission_percent=Decimal("5"),
        owner_commission_percent=Decimal("3"),
    )


@pytest.fixture
def plan_config():
    return PaymentPlanConfig(
        first_payment_percent=Decimal("60"),
        days_before_event_for_final_payment=7,
    )


@pytest.fixture
def engine():
    return PricingEngine(CommissionBounds(minimum=Decimal("1"), maximum=Decimal("15")))


@pytest.fixture
def lifecycle():
    return BookingLifecycle()


@pytest.fixture
def payment_lifecycle():
    return PaymentLifecycle(payment_timeout_hours=24)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

@pytest.fixture
def db_engine(settings):
    engine = create_db_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def booking_repository(session_factory):
    return SQLAlchemyBookingRepository(session_factory, max_retries=3)


@pytest.fixture
def payment_repository(session_factory):
    return SQLAlchemyPaymentRepository(session_factory)


@pytest.fixture
def dispatcher():
    return RecordingStatusChangeDispatcher()


@pytest.fixture
def booking_service(booking_repository, engine, lifecycle, dispatcher, settings):
    return BookingService(
        booking_repository,
        engine=engine,
        lifecycle=lifecycle,
        dispatcher=dispatcher,
        settings=settings,
    )


@pytest.fixture
def payment_service(payment_repository, booking_service, payment_lifecycle, dispatcher, settings):
    return PaymentService(
        payment_repository,
        booking_service,
        lifecycle=payment_lifecycle,
        dispatcher=dispatcher,
        settings=settings,
    )
