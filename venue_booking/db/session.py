"""Database engine and session management."""
import logging
from typing import Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from venue_booking.config.settings import Settings, get_settings
from venue_booking.core.exceptions import ConfigurationError
from venue_booking.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(settings: Optional[Settings] = None, url: Optional[str] = None) -> Engine:
    """
    Build an engine from settings.

    In-memory SQLite shares one connection so every session sees the same
    database.
    """
    settings = settings or get_settings()
    database_url = url or settings.DATABASE_URL
    if not database_url:
        raise ConfigurationError("DATABASE_URL is not set", config_key="DATABASE_URL")

    kwargs = {"echo": settings.DATABASE_ECHO}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    try:
        return create_engine(database_url, **kwargs)
    except ArgumentError as exc:
        raise ConfigurationError(
            f"Invalid DATABASE_URL: {exc}",
            config_key="DATABASE_URL",
        ) from exc


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """
    Create the booking tables if they do not exist yet.

    Note: suitable for development and tests; production schemas are
    managed by migrations.
    """
    existing = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)
    created = set(Base.metadata.tables) - existing
    if created:
        logger.info("Database tables created", extra={"tables": sorted(created)})
