"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.business_constants import (
    ACTIVATION_THRESHOLD,
    BATCH_LOCK_TIMEOUT,
    CONFIG_DEBOUNCE_MS,
    DEFAULT_DAILY_ROI,
    DEFAULT_MAX_ROI,
    LEDGER_PAGE_SIZE,
    MAX_TEAM_DEPTH,
    PAYOUT_CUTOFF_HOUR,
    PAYOUT_TIMEZONE,
    REWARD_TEAM_LEVELS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (dashboard cache, config change events and Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/income_engine.log"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Scheduler health check HTTP port"
    )

    # Activation
    activation_threshold: Decimal = Field(
        default=ACTIVATION_THRESHOLD,
        ge=0,
        description="Balance or approved deposit total required to be active",
    )

    # ROI fallbacks when no admin ROI setting exists
    default_daily_roi: Decimal = Field(
        default=DEFAULT_DAILY_ROI, ge=0, le=1,
        description="Daily ROI fraction (0.01 = 1% per day)"
    )
    default_max_roi: Decimal = Field(
        default=DEFAULT_MAX_ROI, ge=0,
        description="Lifetime ROI cap fraction per deposit (0.30 = 30%)"
    )

    # Team aggregation
    team_max_depth: int = Field(
        default=MAX_TEAM_DEPTH, ge=1, le=100,
        description="Hard cap on referral levels walked below the root"
    )

    # Rank rewards
    reward_team_levels: int = Field(
        default=REWARD_TEAM_LEVELS, ge=1, le=100,
        description="Team levels counted for power leg / other legs business"
    )

    # Daily payout
    payout_cutoff_hour: int = Field(
        default=PAYOUT_CUTOFF_HOUR,
        description="Local hour after which yesterday's income may be posted"
    )
    payout_timezone: str = Field(
        default=PAYOUT_TIMEZONE,
        description="IANA time zone for calendar days and the cutoff"
    )
    payout_max_attempts: int = Field(
        default=3, ge=1,
        description="Transaction attempts per payout (conflicts and transient errors)"
    )
    payout_batch_size: int = Field(
        default=200, ge=1,
        description="Accounts loaded per page by the batch jobs"
    )
    payout_check_interval_minutes: int = Field(
        default=1, ge=1,
        description="Interval of the scheduled idempotent payout check"
    )
    batch_lock_timeout: int = Field(
        default=BATCH_LOCK_TIMEOUT, ge=1,
        description="Seconds before a forgotten batch job lock expires"
    )

    # Store retries (transient errors only)
    store_retry_attempts: int = Field(default=3, ge=1)
    store_retry_base_delay: float = Field(
        default=0.2, ge=0, description="Base delay in seconds for exponential backoff"
    )
    store_retry_max_delay: float = Field(default=5.0, ge=0)

    # Wallet ledger
    ledger_page_size: int = Field(default=LEDGER_PAGE_SIZE, ge=1, le=500)

    # Dashboard figures cache
    dashboard_cache_ttl: int = Field(
        default=300, ge=1, description="Dashboard figures cache TTL in seconds"
    )
    config_debounce_ms: int = Field(
        default=CONFIG_DEBOUNCE_MS, ge=0,
        description="Debounce window for admin configuration change bursts"
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
            'postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://'
        )):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        return v

    @field_validator('payout_cutoff_hour')
    @classmethod
    def validate_cutoff_hour(cls, v: int) -> int:
        """Validate payout cutoff hour."""
        if not 0 <= v <= 23:
            raise ValueError('PAYOUT_CUTOFF_HOUR must be between 0 and 23')
        return v

    @field_validator('payout_timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate payout time zone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f'Unknown PAYOUT_TIMEZONE: {v}') from e
        return v

    @model_validator(mode='after')
    def validate_roi_defaults(self) -> 'Settings':
        """Cap must allow at least one accrual day."""
        if self.default_daily_roi > 0 and self.default_max_roi < self.default_daily_roi:
            raise ValueError(
                'DEFAULT_MAX_ROI must be greater than or equal to DEFAULT_DAILY_ROI'
            )
        return self

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
                raise ValueError(
                    'SQLite is only supported for tests; '
                    'use PostgreSQL in production.'
                )
        return self

    @property
    def payout_zone(self) -> ZoneInfo:
        """Payout time zone object."""
        return ZoneInfo(self.payout_timezone)


# Global settings instance
settings = Settings()
