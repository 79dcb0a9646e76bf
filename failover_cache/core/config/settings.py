#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
failover cache. The env-driven ``Settings`` object is the process-level
source of defaults; ``FailoverCacheOptions.from_settings()`` turns it into
the immutable options a cache instance is built from.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with ``reload_settings()``

Author: System Architect
Date: 2026-10-12
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from failover_cache.core.config.constants import (
    DEFAULT_FALLBACK_TTL_SEC,
    DEFAULT_KEEPALIVE_MS,
    DEFAULT_KEY_PREFIX,
    DEFAULT_POOL_SIZE,
    DEFAULT_PRIMARY_BACKOFF_SEC,
    DEFAULT_SHM_FALLBACK_PREFIX,
    DEFAULT_SHM_PRIMARY_DOWN_UNTIL_KEY,
    DEFAULT_TIMEOUT_MS,
    SHARED_STATE_MAX_SIZE,
)


def _validate_log_level(v: str) -> str:
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if v.upper() not in valid_levels:
        raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
    return v.upper()


class MemcachedSettings(BaseSettings):
    """
    Remote memcached tier configuration.

    STAGE-MC.0: Server endpoints, timeouts and pooling

    Architectural Decision: Tiny timeout, large keepalive pool
    - 20ms timeout keeps a dead server from stalling the request path
    - Connections are pooled per endpoint and reused across requests
    - Primary is skipped for MEMCACHED_PRIMARY_BACKOFF_SEC after it fails to connect
    """

    MEMCACHED_PRIMARY: str | None = Field(default=None, description="Primary server, 'host:port' or 'host'")
    MEMCACHED_BACKUP: str | None = Field(default=None, description="Backup server, 'host:port' or 'host'")
    MEMCACHED_TIMEOUT_MS: int = Field(default=DEFAULT_TIMEOUT_MS, description="Connect/operation timeout (ms)")
    MEMCACHED_KEEPALIVE_MS: int = Field(default=DEFAULT_KEEPALIVE_MS, description="Idle keepalive window (ms)")
    MEMCACHED_POOL_SIZE: int = Field(default=DEFAULT_POOL_SIZE, description="Connections per endpoint")
    MEMCACHED_PRIMARY_BACKOFF_SEC: int = Field(
        default=DEFAULT_PRIMARY_BACKOFF_SEC,
        description="Seconds to skip primary after a connect failure"
    )
    CACHE_KEY_PREFIX: str = Field(default=DEFAULT_KEY_PREFIX, description="Prefix for remote keys")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class SharedStateSettings(BaseSettings):
    """
    Host-local shared state configuration (backoff marker + fallback store).

    STAGE-FB: Local fallback store sizing and key names
    """

    CACHE_FALLBACK_TTL_SEC: int = Field(
        default=DEFAULT_FALLBACK_TTL_SEC,
        description="Fallback TTL when the caller passes no positive TTL"
    )
    SHM_PRIMARY_DOWN_UNTIL_KEY: str = Field(
        default=DEFAULT_SHM_PRIMARY_DOWN_UNTIL_KEY,
        description="Shared-state key holding the primary down-until timestamp"
    )
    SHM_FALLBACK_PREFIX: str = Field(default=DEFAULT_SHM_FALLBACK_PREFIX, description="Prefix for fallback keys")
    SHARED_STATE_MAX_SIZE: int = Field(default=SHARED_STATE_MAX_SIZE, description="Max entries before eviction")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration

    Architectural Decision: structlog for production-grade logging
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        return _validate_log_level(v)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from failover_cache.core.config.settings import get_settings

        settings = get_settings()
        primary = settings.memcached.MEMCACHED_PRIMARY
        fallback_ttl = settings.shared_state.CACHE_FALLBACK_TTL_SEC
    """

    # Memcached settings
    MEMCACHED_PRIMARY: str | None = Field(default=None, description="Primary server, 'host:port' or 'host'")
    MEMCACHED_BACKUP: str | None = Field(default=None, description="Backup server, 'host:port' or 'host'")
    MEMCACHED_TIMEOUT_MS: int = Field(default=DEFAULT_TIMEOUT_MS, description="Connect/operation timeout (ms)")
    MEMCACHED_KEEPALIVE_MS: int = Field(default=DEFAULT_KEEPALIVE_MS, description="Idle keepalive window (ms)")
    MEMCACHED_POOL_SIZE: int = Field(default=DEFAULT_POOL_SIZE, description="Connections per endpoint")
    MEMCACHED_PRIMARY_BACKOFF_SEC: int = Field(
        default=DEFAULT_PRIMARY_BACKOFF_SEC,
        description="Seconds to skip primary after a connect failure"
    )
    CACHE_KEY_PREFIX: str = Field(default=DEFAULT_KEY_PREFIX, description="Prefix for remote keys")

    # Shared state settings
    CACHE_FALLBACK_TTL_SEC: int = Field(
        default=DEFAULT_FALLBACK_TTL_SEC,
        description="Fallback TTL when the caller passes no positive TTL"
    )
    SHM_PRIMARY_DOWN_UNTIL_KEY: str = Field(
        default=DEFAULT_SHM_PRIMARY_DOWN_UNTIL_KEY,
        description="Shared-state key holding the primary down-until timestamp"
    )
    SHM_FALLBACK_PREFIX: str = Field(default=DEFAULT_SHM_FALLBACK_PREFIX, description="Prefix for fallback keys")
    SHARED_STATE_MAX_SIZE: int = Field(default=SHARED_STATE_MAX_SIZE, description="Max entries before eviction")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        return _validate_log_level(v)

    # Nested configuration objects
    @property
    def memcached(self) -> MemcachedSettings:
        """Get memcached settings."""
        return MemcachedSettings(
            MEMCACHED_PRIMARY=self.MEMCACHED_PRIMARY,
            MEMCACHED_BACKUP=self.MEMCACHED_BACKUP,
            MEMCACHED_TIMEOUT_MS=self.MEMCACHED_TIMEOUT_MS,
            MEMCACHED_KEEPALIVE_MS=self.MEMCACHED_KEEPALIVE_MS,
            MEMCACHED_POOL_SIZE=self.MEMCACHED_POOL_SIZE,
            MEMCACHED_PRIMARY_BACKOFF_SEC=self.MEMCACHED_PRIMARY_BACKOFF_SEC,
            CACHE_KEY_PREFIX=self.CACHE_KEY_PREFIX,
        )

    @property
    def shared_state(self) -> SharedStateSettings:
        """Get shared state settings."""
        return SharedStateSettings(
            CACHE_FALLBACK_TTL_SEC=self.CACHE_FALLBACK_TTL_SEC,
            SHM_PRIMARY_DOWN_UNTIL_KEY=self.SHM_PRIMARY_DOWN_UNTIL_KEY,
            SHM_FALLBACK_PREFIX=self.SHM_FALLBACK_PREFIX,
            SHARED_STATE_MAX_SIZE=self.SHARED_STATE_MAX_SIZE,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

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

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
