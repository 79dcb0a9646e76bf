"""
Failover Cache Options

Immutable per-instance configuration: the server endpoints, timeouts,
pool sizing and key namespacing a ``FailoverCache`` is built from.

Endpoint strings are parsed exactly once, here. Everything downstream
works with ``ServerEndpoint`` values.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from failover_cache.core.config.constants import (
    DEFAULT_FALLBACK_TTL_SEC,
    DEFAULT_KEEPALIVE_MS,
    DEFAULT_KEY_PREFIX,
    DEFAULT_MEMCACHED_PORT,
    DEFAULT_POOL_SIZE,
    DEFAULT_PRIMARY_BACKOFF_SEC,
    DEFAULT_SHM_FALLBACK_PREFIX,
    DEFAULT_SHM_PRIMARY_DOWN_UNTIL_KEY,
    DEFAULT_TIMEOUT_MS,
)
from failover_cache.core.config.settings import Settings, get_settings
from failover_cache.core.logging.logger import get_logger

logger = get_logger(__name__)

_HOST_PORT_RE = re.compile(r"^\s*([^:\s]+)\s*:\s*(\d+)\s*$")
_BARE_HOST_RE = re.compile(r"^\s*([^:\s]+)\s*$")


class ServerEndpoint(BaseModel):
    """A memcached server address."""

    host: str = Field(..., min_length=1)
    port: int = Field(default=DEFAULT_MEMCACHED_PORT, ge=1, le=65535)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, raw: str | None) -> "ServerEndpoint | None":
        """
        Parse ``"host:port"`` or a bare ``"host"`` (port 11211).

        Returns None for empty input and for strings that are neither form
        (embedded whitespace, non-numeric or out-of-range port).
        """
        if raw is None or not raw.strip():
            return None

        match = _HOST_PORT_RE.match(raw)
        if match:
            port = int(match.group(2))
            if 1 <= port <= 65535:
                return cls(host=match.group(1), port=port)
        else:
            match = _BARE_HOST_RE.match(raw)
            if match:
                return cls(host=match.group(1))

        logger.warning("Ignoring unparseable memcached endpoint", endpoint=raw)
        return None

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def _coerce_endpoint(value):
    if value is None or isinstance(value, ServerEndpoint):
        return value
    if isinstance(value, str):
        return ServerEndpoint.parse(value)
    return value


class FailoverCacheOptions(BaseModel):
    """
    Construction options for a failover cache instance.

    All fields are optional; defaults match the production deployment.
    Absence of both ``primary`` and ``backup`` is valid: the cache then
    runs purely against the local fallback store.

    Usage:
        options = FailoverCacheOptions(primary="10.0.0.5:11211", backup="10.0.0.6")
        options = FailoverCacheOptions.from_settings()
    """

    primary: ServerEndpoint | None = None
    backup: ServerEndpoint | None = None

    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    keepalive_ms: int = Field(default=DEFAULT_KEEPALIVE_MS, gt=0)
    pool_size: int = Field(default=DEFAULT_POOL_SIZE, gt=0)
    primary_backoff_sec: int = Field(default=DEFAULT_PRIMARY_BACKOFF_SEC, ge=0)

    key_prefix: str = DEFAULT_KEY_PREFIX
    fallback_ttl_sec: int = Field(default=DEFAULT_FALLBACK_TTL_SEC, ge=0)

    shm_primary_down_until_key: str = Field(default=DEFAULT_SHM_PRIMARY_DOWN_UNTIL_KEY, min_length=1)
    shm_fallback_prefix: str = Field(default=DEFAULT_SHM_FALLBACK_PREFIX, min_length=1)

    model_config = ConfigDict(frozen=True)

    @field_validator("primary", "backup", mode="before")
    @classmethod
    def parse_endpoint(cls, v):
        """Accept endpoint strings as well as ServerEndpoint values."""
        return _coerce_endpoint(v)

    @model_validator(mode="after")
    def check_key_isolation(self):
        """The backoff marker must never be addressable as a fallback entry."""
        if self.shm_primary_down_until_key.startswith(self.shm_fallback_prefix):
            raise ValueError(
                "shm_primary_down_until_key must not start with shm_fallback_prefix"
            )
        return self

    @property
    def has_remote(self) -> bool:
        """True when at least one remote endpoint is configured."""
        return self.primary is not None or self.backup is not None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FailoverCacheOptions":
        """Build options from the env-driven settings singleton."""
        settings = settings or get_settings()
        memcached = settings.memcached
        shared_state = settings.shared_state

        return cls(
            primary=memcached.MEMCACHED_PRIMARY,
            backup=memcached.MEMCACHED_BACKUP,
            timeout_ms=memcached.MEMCACHED_TIMEOUT_MS,
            keepalive_ms=memcached.MEMCACHED_KEEPALIVE_MS,
            pool_size=memcached.MEMCACHED_POOL_SIZE,
            primary_backoff_sec=memcached.MEMCACHED_PRIMARY_BACKOFF_SEC,
            key_prefix=memcached.CACHE_KEY_PREFIX,
            fallback_ttl_sec=shared_state.CACHE_FALLBACK_TTL_SEC,
            shm_primary_down_until_key=shared_state.SHM_PRIMARY_DOWN_UNTIL_KEY,
            shm_fallback_prefix=shared_state.SHM_FALLBACK_PREFIX,
        )
