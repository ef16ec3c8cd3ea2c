"""
Environment configuration for the venue booking core.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application configuration
    APP_NAME: str = Field(default="Venue Booking Core", alias="PROJECT_NAME")
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    TIMEZONE: str = Field(default="Asia/Muscat", alias="TIMEZONE")
    CURRENCY: str = Field(default="OMR", alias="CURRENCY")

    # Commission (percent of the discounted subtotal)
    MIN_COMMISSION_PERCENT: Decimal = Decimal("1.0")
    MAX_COMMISSION_PERCENT: Decimal = Decimal("15.0")
    DEFAULT_CUSTOMER_COMMISSION_PERCENT: Decimal = Decimal("5.0")
    DEFAULT_OWNER_COMMISSION_PERCENT: Decimal = Decimal("3.0")

    # Payment plan
    DEFAULT_FIRST_PAYMENT_PERCENT: Decimal = Decimal("60.0")
    DEFAULT_DAYS_BEFORE_EVENT_FOR_FINAL_PAYMENT: int = Field(default=7, ge=0)
    PAYMENT_TIMEOUT_HOURS: int = Field(default=24, gt=0)

    # Booking policy
    MIN_CANCELLATION_HOURS: int = Field(default=24, ge=0)
    MIN_MODIFICATION_HOURS: int = Field(default=48, ge=0)
    HOURS_PER_BUSINESS_DAY: int = Field(default=8, gt=0)

    # Database configuration
    DATABASE_URL: str = "sqlite:///./venue_booking.db"
    DATABASE_ECHO: bool = Field(default=False, alias="DATABASE_ECHO")
    RESERVATION_MAX_RETRIES: int = Field(default=3, ge=1)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"
    LOG_FILE: Optional[str] = None
    LOG_SQL_QUERIES: bool = False

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept the standard logging level names."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"text", "json"}:
            raise ValueError(f"LOG_FORMAT must be 'text' or 'json', got {v!r}")
        return fmt

    @model_validator(mode="after")
    def validate_commission_bounds(self) -> "Settings":
        """Commission bounds must form a non-empty range within 0-100."""
        if self.MIN_COMMISSION_PERCENT < 0 or self.MAX_COMMISSION_PERCENT > 100:
            raise ValueError("Commission bounds must lie within 0-100")
        if self.MIN_COMMISSION_PERCENT > self.MAX_COMMISSION_PERCENT:
            raise ValueError(
                f"MIN_COMMISSION_PERCENT ({self.MIN_COMMISSION_PERCENT}) cannot exceed "
                f"MAX_COMMISSION_PERCENT ({self.MAX_COMMISSION_PERCENT})"
            )
        return self

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
