"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/storefront.log"

    # Every remote call (profile lookup, ledger write, settings read)
    # is treated as failed once this many seconds have passed
    request_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        lt=10,
        description="Timeout for a single database round trip in seconds"
    )

    # Storefront
    site_url: str = Field(
        default="http://localhost:5173",
        description="Public site URL used to build referral links"
    )
    subscription_price: Decimal = Field(
        default=Decimal("99.00"),
        gt=0,
        description="Default subscription price in rupees"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith((
            'postgresql://',
            'postgresql+asyncpg://',
            'sqlite+aiosqlite://',
        )):
            raise ValueError(
                'DATABASE_URL must start with postgresql+asyncpg:// '
                '(or sqlite+aiosqlite:// for local testing)'
            )
        return v

    @field_validator('site_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Referral links are built as f"{site_url}/register?ref=..."."""
        return v.rstrip('/')

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if self.database_url.startswith('sqlite'):
                logger.warning(
                    'SQLite DATABASE_URL configured in production. '
                    'Concurrent commission distribution requires PostgreSQL.'
                )
        return self

    @property
    def async_database_url(self) -> str:
        """Database URL with the async driver selected."""
        if self.database_url.startswith('postgresql://'):
            return self.database_url.replace(
                'postgresql://', 'postgresql+asyncpg://', 1
            )
        return self.database_url


# Global settings instance
settings = Settings()
