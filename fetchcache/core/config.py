"""
fetchcache Configuration

Configuration management with environment variable support.
Call sites still pass tag and valid_for explicitly; these settings only
supply the defaults used when building a coordinator.
"""

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import DEFAULT_REDIS_KEY_PREFIX, DEFAULT_TICK_INTERVAL_SECONDS

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Package settings with validation and safe defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_JSON: bool = Field(default=False, description="Render log events as JSON")

    # Cache behaviour
    CACHE_BACKEND: str = Field(
        default="memory", description="Storage backend: memory or redis"
    )
    CACHE_TICK_INTERVAL_SECONDS: float = Field(
        default=DEFAULT_TICK_INTERVAL_SECONDS,
        gt=0,
        le=60,
        description="Interval between expiry timer ticks",
    )

    # Redis configuration
    REDIS_URL: str = Field(
        default="redis://localhost:6379", description="Redis connection URL"
    )
    REDIS_KEY_PREFIX: str = Field(
        default=DEFAULT_REDIS_KEY_PREFIX,
        min_length=1,
        description="Prefix applied to every cached key in Redis",
    )
    REDIS_MAX_CONNECTIONS: int = Field(
        default=10, ge=1, le=50, description="Redis connection pool size"
    )
    REDIS_PASSWORD: Optional[str] = Field(
        default=None, description="Redis password"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @field_validator("CACHE_BACKEND")
    @classmethod
    def validate_cache_backend(cls, v):
        """Validate storage backend name."""
        allowed = ["memory", "redis"]
        if v.lower() not in allowed:
            raise ValueError(f"CACHE_BACKEND must be one of: {allowed}")
        return v.lower()

    @field_validator("REDIS_URL")
    @classmethod
    def validate_redis_url(cls, v):
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("REDIS_URL must be a redis:// or rediss:// URL")
        return v

    @property
    def tick_interval(self) -> float:
        """Alias for CACHE_TICK_INTERVAL_SECONDS."""
        return self.CACHE_TICK_INTERVAL_SECONDS


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
