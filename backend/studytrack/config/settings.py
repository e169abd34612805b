"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from studytrack.config import settings

    # Access settings
    db_url = settings.DATABASE_URL_RESOLVED
    attempts = settings.FINALIZE_MAX_ATTEMPTS
"""

from datetime import tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

from studytrack.enums.api import RateLimitType
from studytrack.enums.study import ActiveSessionBackend


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Study Tracker"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["*"]

    # PostgreSQL (durable store)
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "studytrack"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "studytrack"

    # Full SQLAlchemy URL; overrides the POSTGRES_* values when set
    # (e.g. sqlite+aiosqlite:///./studytrack.db for local development).
    DATABASE_URL: str = ""

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_RESOLVED(self) -> str:
        """Connection URL actually used by the engine."""
        return self.DATABASE_URL or self.POSTGRES_URL

    # Redis (active-session slot when ACTIVE_SESSION_BACKEND=redis)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Local active-session storage
    ACTIVE_SESSION_BACKEND: ActiveSessionBackend = ActiveSessionBackend.FILE
    ACTIVE_SESSION_DIR: str = "~/.studytrack/active"

    # IANA timezone name used to derive local calendar dates.
    # Empty string means the host's local timezone.
    LOCAL_TIMEZONE: str = ""

    # Finalize path: durable commit retries and timeout
    FINALIZE_MAX_ATTEMPTS: int = 3
    FINALIZE_BACKOFF_MIN_SECONDS: float = 0.5
    FINALIZE_BACKOFF_MAX_SECONDS: float = 4.0
    STORE_TIMEOUT_SECONDS: float = 10.0

    # Streaks
    STREAK_MILESTONES: list[int] = [3, 7, 14, 30, 60, 100, 365]

    # Achievement thresholds
    EARLY_BIRD_BEFORE_HOUR: int = 8
    NIGHT_OWL_FROM_HOUR: int = 22
    MARATHON_MIN_SECONDS: int = 7200
    CONSISTENCY_STREAK_DAYS: int = 3

    # Planner
    DEADLINE_URGENT_DAYS: int = 7
    DEFAULT_DAILY_GOAL_MINUTES: int = 60

    # Rate limiting (slowapi)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "120/minute"
    RATE_LIMIT_SESSION: str = "30/minute"

    def get_rate_limit(self, rate_limit_type: RateLimitType) -> str:
        """Return the slowapi limit string for an endpoint category."""
        if rate_limit_type == RateLimitType.SESSION:
            return self.RATE_LIMIT_SESSION
        return self.RATE_LIMIT_DEFAULT

    @property
    def local_tz(self) -> Optional[tzinfo]:
        """Configured local timezone, or None for the host timezone."""
        if not self.LOCAL_TIMEZONE:
            return None
        return ZoneInfo(self.LOCAL_TIMEZONE)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
