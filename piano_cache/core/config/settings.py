#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the cache
layer. All configuration is centralized here and read once per process.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing: construct Settings(...) directly or call reload_settings()

Date: 2026-09-02
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """
    Remote store and fallback configuration.

    STAGE-0.1: Cache configuration

    REDIS_URL and REDIS_TOKEN are paired: when either is missing or blank the
    remote store is treated as not configured and the service runs entirely on
    the in-process fallback store.
    """

    REDIS_URL: str | None = Field(default=None, description="Remote store endpoint (redis:// or rediss://)")
    REDIS_TOKEN: str | None = Field(default=None, description="Remote store credential (sent as password)")

    CACHE_REMOTE_TIMEOUT: float = Field(default=2.0, gt=0, description="Timeout per remote call in seconds")
    CACHE_REMOTE_MAX_ATTEMPTS: int = Field(default=2, ge=1, description="Attempts per remote call")
    CACHE_RETRY_BASE_DELAY: float = Field(default=0.05, ge=0, description="Backoff base delay in seconds")
    CACHE_RETRY_MAX_DELAY: float = Field(default=0.5, ge=0, description="Backoff delay cap in seconds")

    CACHE_DEFAULT_TTL: int = Field(default=300, gt=0, description="Default TTL for get_or_compute (5 minutes)")
    CACHE_RECOVERY_POLICY: Literal["latch", "probe"] = Field(
        default="latch", description="'latch' stays degraded after a failure, 'probe' retries the remote store"
    )
    CACHE_RECOVERY_INTERVAL: float = Field(default=30.0, ge=0, description="Seconds between recovery probes")
    CACHE_SWEEP_INTERVAL: float = Field(default=0.0, ge=0, description="Fallback sweeper period (0 disables)")

    CACHE_MEMORY_ONLY: bool = Field(default=False, description="Never use the remote store")
    CACHE_REMOTE_ONLY: bool = Field(default=False, description="Missing remote configuration is an error")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def has_remote_config(self) -> bool:
        """True when both endpoint and credential are present and non-blank."""
        return bool((self.REDIS_URL or "").strip() and (self.REDIS_TOKEN or "").strip())


class MetricsSettings(BaseSettings):
    """
    Metrics history configuration.

    STAGE-M: Snapshot retention (default: one week of hourly snapshots)
    """

    METRICS_HISTORY_MAX_SNAPSHOTS: int = Field(default=168, ge=1, description="Snapshots kept in history")
    METRICS_SNAPSHOT_INTERVAL: float = Field(default=3600.0, ge=0, description="Min seconds between snapshots")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Piano Cache Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all API routes")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from piano_cache.core.config.settings import get_settings

        settings = get_settings()
        timeout = settings.cache.CACHE_REMOTE_TIMEOUT
    """

    # Cache settings
    REDIS_URL: str | None = Field(default=None, description="Remote store endpoint (redis:// or rediss://)")
    REDIS_TOKEN: str | None = Field(default=None, description="Remote store credential (sent as password)")
    CACHE_REMOTE_TIMEOUT: float = Field(default=2.0, gt=0, description="Timeout per remote call in seconds")
    CACHE_REMOTE_MAX_ATTEMPTS: int = Field(default=2, ge=1, description="Attempts per remote call")
    CACHE_RETRY_BASE_DELAY: float = Field(default=0.05, ge=0, description="Backoff base delay in seconds")
    CACHE_RETRY_MAX_DELAY: float = Field(default=0.5, ge=0, description="Backoff delay cap in seconds")
    CACHE_DEFAULT_TTL: int = Field(default=300, gt=0, description="Default TTL for get_or_compute (5 minutes)")
    CACHE_RECOVERY_POLICY: Literal["latch", "probe"] = Field(
        default="latch", description="'latch' stays degraded after a failure, 'probe' retries the remote store"
    )
    CACHE_RECOVERY_INTERVAL: float = Field(default=30.0, ge=0, description="Seconds between recovery probes")
    CACHE_SWEEP_INTERVAL: float = Field(default=0.0, ge=0, description="Fallback sweeper period (0 disables)")
    CACHE_MEMORY_ONLY: bool = Field(default=False, description="Never use the remote store")
    CACHE_REMOTE_ONLY: bool = Field(default=False, description="Missing remote configuration is an error")

    # Metrics settings
    METRICS_HISTORY_MAX_SNAPSHOTS: int = Field(default=168, ge=1, description="Snapshots kept in history")
    METRICS_SNAPSHOT_INTERVAL: float = Field(default=3600.0, ge=0, description="Min seconds between snapshots")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Piano Cache Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all API routes")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Nested configuration objects
    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_TOKEN=self.REDIS_TOKEN,
            CACHE_REMOTE_TIMEOUT=self.CACHE_REMOTE_TIMEOUT,
            CACHE_REMOTE_MAX_ATTEMPTS=self.CACHE_REMOTE_MAX_ATTEMPTS,
            CACHE_RETRY_BASE_DELAY=self.CACHE_RETRY_BASE_DELAY,
            CACHE_RETRY_MAX_DELAY=self.CACHE_RETRY_MAX_DELAY,
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
            CACHE_RECOVERY_POLICY=self.CACHE_RECOVERY_POLICY,
            CACHE_RECOVERY_INTERVAL=self.CACHE_RECOVERY_INTERVAL,
            CACHE_SWEEP_INTERVAL=self.CACHE_SWEEP_INTERVAL,
            CACHE_MEMORY_ONLY=self.CACHE_MEMORY_ONLY,
            CACHE_REMOTE_ONLY=self.CACHE_REMOTE_ONLY,
        )

    @property
    def metrics(self) -> MetricsSettings:
        """Get metrics settings."""
        return MetricsSettings(
            METRICS_HISTORY_MAX_SNAPSHOTS=self.METRICS_HISTORY_MAX_SNAPSHOTS,
            METRICS_SNAPSHOT_INTERVAL=self.METRICS_SNAPSHOT_INTERVAL,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_BASE_PATH=self.API_BASE_PATH,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings from the environment (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
