"""
Service factory for dependency injection and service instantiation.
"""

from typing import Dict, Optional

from sqlalchemy.orm import sessionmaker

from venue_booking.config.settings import Settings, get_settings
from venue_booking.core.logging import get_logger, setup_logging
from venue_booking.db import create_db_engine, create_session_factory, init_db
from venue_booking.repositories import SQLAlchemyBookingRepository, SQLAlchemyPaymentRepository
from venue_booking.services.base.dispatcher import (
    LoggingStatusChangeDispatcher,
    StatusChangeDispatcher,
)
from venue_booking.services.booking.booking_service import BookingService
from venue_booking.services.payment.payment_service import PaymentService


class ServiceFactory:
    """
    Factory for creating service instances with dependency injection.

    Provides:
    - Repositories wired to one session factory
    - Booking and payment services sharing one dispatcher
    - Service caching/reuse
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        settings: Optional[Settings] = None,
        dispatcher: Optional[StatusChangeDispatcher] = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.dispatcher = dispatcher or LoggingStatusChangeDispatcher()
        self._logger = get_logger(self.__class__.__name__)
        self._service_cache: Dict[str, object] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        dispatcher: Optional[StatusChangeDispatcher] = None,
        create_tables: bool = False,
        configure_logging: bool = True,
    ) -> "ServiceFactory":
        """
        Build the engine and session factory from ``DATABASE_URL``.

        Also configures logging from the ``LOG_*`` settings; pass
        ``configure_logging=False`` when the host application owns logging.
        """
        settings = settings or get_settings()
        if configure_logging:
            setup_logging(settings)
        engine = create_db_engine(settings)
        if create_tables:
            init_db(engine)
        return cls(create_session_factory(engine), settings, dispatcher)

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------

    def booking_repository(self) -> SQLAlchemyBookingRepository:
        return SQLAlchemyBookingRepository(
            self.session_factory,
            max_retries=self.settings.RESERVATION_MAX_RETRIES,
        )

    def payment_repository(self) -> SQLAlchemyPaymentRepository:
        return SQLAlchemyPaymentRepository(self.session_factory)

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    def booking(self, use_cache: bool = True) -> BookingService:
        """
        Get or create the booking service.

        Args:
            use_cache: Whether to use cached instance

        Returns:
            BookingService instance
        """
        cache_key = "booking_service"
        if use_cache and cache_key in self._service_cache:
            return self._service_cache[cache_key]

        service = BookingService(
            self.booking_repository(),
            dispatcher=self.dispatcher,
            settings=self.settings,
        )
        if use_cache:
            self._service_cache[cache_key] = service

        self._logger.debug("Created BookingService instance")
        return service

    def payment(self, use_cache: bool = True) -> PaymentService:
        """Get or create the payment service, bound to the cached booking service."""
        cache_key = "payment_service"
        if use_cache and cache_key in self._service_cache:
            return self._service_cache[cache_key]

        service = PaymentService(
            self.payment_repository(),
            self.booking(use_cache=use_cache),
            dispatcher=self.dispatcher,
            settings=self.settings,
        )
        if use_cache:
            self._service_cache[cache_key] = service

        self._logger.debug("Created PaymentService instance")
        return service

    def clear_cache(self) -> None:
        self._service_cache.clear()
