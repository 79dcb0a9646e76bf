"""
Failover Cache

Client-side memcached cache with primary/backup failover, a shared primary
backoff window and a local fallback store.

Usage:
    from failover_cache import FailoverCache, FailoverCacheOptions

    cache = FailoverCache(FailoverCacheOptions(primary="10.0.0.5:11211"))
    value, flags = await cache.get("key")
"""

from failover_cache.core.config.options import FailoverCacheOptions, ServerEndpoint
from failover_cache.core.models import CachedValue, OperationStatus
from failover_cache.infrastructure.cache import (
    FailoverCache,
    close_failover_cache,
    get_failover_cache,
    init_failover_cache,
)

__version__ = "1.0.0"

__all__ = [
    "FailoverCache",
    "FailoverCacheOptions",
    "ServerEndpoint",
    "CachedValue",
    "OperationStatus",
    "get_failover_cache",
    "init_failover_cache",
    "close_failover_cache",
]
