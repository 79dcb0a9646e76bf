#!/usr/bin/env python3
"""
Failover Cache Manager

Architecture:
    FailoverCache (Public API: get / set / delete)
        ├── TieredOperationExecutor (primary -> backup decision tree)
        │   ├── MemcachedConnector (remote sessions, keepalive pools)
        │   └── PrimaryBackoffTracker (down-until marker in shared state)
        ├── SharedStateStore (local fallback copies)
        └── CacheObserver (logging & counters)

Consistency Rules:
    - A clean remote miss is authoritative: the fallback store is read only
      when no remote tier could be reached
    - A successful remote set deletes the fallback copy, so a later outage
      cannot resurrect a stale value
    - Every delete removes the fallback copy, whichever tier answered

Failure Contract:
    Remote unavailability never fails a caller. Reads degrade to absent or
    the fallback copy, writes degrade to the fallback store. Only a set whose
    fallback write also fails reports failure.

Author: System Architect
Date: 2026-10-12
"""

import time
from collections.abc import Callable
from typing import Any

from failover_cache.core.config.constants import CacheTier, Stage
from failover_cache.core.config.options import FailoverCacheOptions
from failover_cache.core.interfaces.cache import RemoteStoreConnector, SharedStateStore
from failover_cache.core.logging.logger import get_logger
from failover_cache.core.models import CachedValue, CacheEntry, OperationStatus
from failover_cache.core.resilience.backoff import PrimaryBackoffTracker
from failover_cache.infrastructure.cache.executor import TieredOperationExecutor
from failover_cache.infrastructure.cache.memcached_client import MemcachedConnector
from failover_cache.infrastructure.cache.observer import CacheObserver
from failover_cache.infrastructure.cache.shared_state import get_shared_state

logger = get_logger(__name__)

_MISS = CachedValue(None, None)


class FailoverCache:
    """
    Memcached-backed cache with primary/backup failover and a local fallback.

    Usage:
        cache = FailoverCache(FailoverCacheOptions(primary="10.0.0.5:11211", backup="10.0.0.6"))

        ok, err = await cache.set("session-abc", b"passed", ttl=1800, flags=1)
        value, flags = await cache.get("session-abc")
        ok, err = await cache.delete("session-abc")
    """

    def __init__(
        self,
        options: FailoverCacheOptions | None = None,
        *,
        shared_state: SharedStateStore | None = None,
        connector: RemoteStoreConnector | None = None,
        observer: CacheObserver | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            options: Instance options (default: built from settings)
            shared_state: Host/process shared store (default: process-wide instance)
            connector: Remote session factory (default: aiomcache-backed)
            observer: Event sink (default: structlog-backed CacheObserver)
            clock: Wall clock for the backoff marker
        """
        self._options = options or FailoverCacheOptions.from_settings()
        self._shared_state = shared_state if shared_state is not None else get_shared_state()
        self._connector = connector or MemcachedConnector.from_options(self._options)
        self._observer = observer or CacheObserver()
        self._tracker = PrimaryBackoffTracker(
            self._shared_state,
            self._options.shm_primary_down_until_key,
            self._options.primary_backoff_sec,
            clock=clock,
        )
        self._executor = TieredOperationExecutor(
            self._options, self._connector, self._tracker, self._observer
        )

        if not self._options.has_remote:
            logger.warning(
                "No memcached servers configured; using local fallback store only",
                stage=Stage.INITIALIZATION.value,
            )
        else:
            logger.info(
                "Failover cache initialized",
                stage=Stage.INITIALIZATION.value,
                primary=str(self._options.primary) if self._options.primary else None,
                backup=str(self._options.backup) if self._options.backup else None,
                timeout_ms=self._options.timeout_ms,
                primary_backoff_sec=self._options.primary_backoff_sec,
            )

    @property
    def options(self) -> FailoverCacheOptions:
        return self._options

    @property
    def tracker(self) -> PrimaryBackoffTracker:
        return self._tracker

    # -------------------------------------------------------------------------
    # Key namespacing
    # -------------------------------------------------------------------------

    def remote_key(self, key: str) -> str:
        return self._options.key_prefix + key

    def fallback_key(self, key: str) -> str:
        return self._options.shm_fallback_prefix + key

    # -------------------------------------------------------------------------
    # Core Cache Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> CachedValue:
        """
        Get value and flags.

        Returns:
            CachedValue: (value, flags), or (None, None) on a miss or remote error.
            The fallback store answers only when no remote tier was reachable.
        """
        result = await self._executor.get(self.remote_key(key))

        if result.ok:
            return CachedValue(result.entry.value, result.entry.flags)

        if result.is_unreachable:
            return await self._read_fallback(key)

        # Clean miss (authoritative) or operation error (fail open)
        return _MISS

    async def set(
        self, key: str, value: bytes | str, ttl: int = 0, flags: int = 0
    ) -> OperationStatus:
        """
        Store value with flags.

        Args:
            key: Logical cache key
            value: Opaque value (str is UTF-8 encoded)
            ttl: Time-to-live in seconds, 0 = no expiry
            flags: Caller-defined bitfield, returned verbatim by get

        Returns:
            OperationStatus: (True, None) when stored remotely or in the fallback store
        """
        if isinstance(value, str):
            value = value.encode("utf-8")
        ttl = ttl or 0
        flags = flags or 0

        result = await self._executor.set(self.remote_key(key), value, ttl, flags)
        fkey = self.fallback_key(key)

        if result.ok:
            # Remote is authoritative again; drop any stale local copy
            await self._delete_fallback(fkey)
            return OperationStatus(True, None)

        fallback_ttl = ttl if ttl > 0 else self._options.fallback_ttl_sec
        try:
            stored = await self._shared_state.set(fkey, CacheEntry(value, flags), fallback_ttl)
            local_error = None if stored else "not stored"
        except Exception as e:
            stored, local_error = False, str(e)

        self._observer.fallback_write(fkey, fallback_ttl, stored, local_error)
        if stored:
            return OperationStatus(True, None)

        return OperationStatus(
            False,
            f"memcached set failed ({result.fault}) and fallback store failed ({local_error})",
        )

    async def delete(self, key: str) -> OperationStatus:
        """
        Delete key from the remote tier and the fallback store.

        Returns:
            OperationStatus: (True, None) unless a reachable server rejected the delete
        """
        result = await self._executor.delete(self.remote_key(key))
        await self._delete_fallback(self.fallback_key(key))

        if result.ok or result.is_miss or result.is_unreachable:
            return OperationStatus(True, None)
        return OperationStatus(False, str(result.fault))

    # -------------------------------------------------------------------------
    # Fallback store helpers
    # -------------------------------------------------------------------------

    async def _read_fallback(self, key: str) -> CachedValue:
        fkey = self.fallback_key(key)
        try:
            entry = await self._shared_state.get(fkey)
        except Exception as e:
            self._observer.fallback_error(fkey, "get", str(e))
            return _MISS

        hit = isinstance(entry, CacheEntry)
        self._observer.fallback_read(fkey, hit)
        if not hit:
            return _MISS
        return CachedValue(entry.value, entry.flags)

    async def _delete_fallback(self, fkey: str) -> None:
        try:
            await self._shared_state.delete(fkey)
        except Exception as e:
            self._observer.fallback_error(fkey, "delete", str(e))

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with observer counters and endpoint configuration
        """
        stats = {
            **self._observer.get_stats(),
            "primary": str(self._options.primary) if self._options.primary else None,
            "backup": str(self._options.backup) if self._options.backup else None,
        }
        get_size = getattr(self._shared_state, "get_size", None)
        if get_size is not None:
            stats["shared_state_size"] = get_size()
        return stats

    async def health_check(self) -> dict[str, Any]:
        """
        Report configuration and backoff state.

        Status:
            healthy: primary configured and not backing off, or only backup configured
            degraded: primary backing off, or no remote servers at all
        """
        down_until = await self._tracker.down_until()
        primary_eligible = await self._tracker.is_primary_eligible()

        if not self._options.has_remote:
            status = "degraded"
        elif self._options.primary is not None and not primary_eligible:
            status = "degraded"
        else:
            status = "healthy"

        return {
            "status": status,
            "tiers": {
                CacheTier.PRIMARY.value: {
                    "endpoint": str(self._options.primary) if self._options.primary else None,
                    "eligible": self._options.primary is not None and primary_eligible,
                    "down_until": down_until or None,
                },
                CacheTier.BACKUP.value: {
                    "endpoint": str(self._options.backup) if self._options.backup else None,
                },
            },
        }

    async def close(self) -> None:
        """Close remote connection pools. Shared state is left to its owner."""
        await self._connector.close()
        logger.info("Failover cache closed", stage=Stage.SHUTDOWN.value)


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_failover_cache: FailoverCache | None = None


def get_failover_cache() -> FailoverCache:
    """
    Get the process-wide failover cache (built from settings on first use).

    Returns:
        FailoverCache: Global cache instance
    """
    global _failover_cache

    if _failover_cache is None:
        _failover_cache = FailoverCache(FailoverCacheOptions.from_settings())

    return _failover_cache


async def init_failover_cache(options: FailoverCacheOptions | None = None) -> FailoverCache:
    """
    Create the process-wide failover cache at process start.

    Args:
        options: Explicit options (default: built from settings)

    Returns:
        FailoverCache: Global cache instance
    """
    global _failover_cache

    if _failover_cache is None:
        _failover_cache = FailoverCache(options or FailoverCacheOptions.from_settings())

    return _failover_cache


async def close_failover_cache() -> None:
    """Close the process-wide failover cache."""
    global _failover_cache

    if _failover_cache is not None:
        await _failover_cache.close()
        _failover_cache = None
