"""
Cache-Related Exceptions

All exceptions raised by the cache collaborators (memcached handle,
shared state store). The tiered executor converts them into
``CacheFault`` values; they never reach callers of the public facade.

Author: System Architect
Date: 2026-10-12
"""

from failover_cache.core.exceptions.base import FailoverCacheError


class CacheError(FailoverCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when a memcached endpoint cannot be reached.

    Common causes:
    - Server is down or refusing connections
    - Connect or operation timeout
    - Connection reset mid-request

    Against the primary this marks the primary down for the backoff window.
    """
    pass


class CacheOperationError(CacheError):
    """
    Raised when the server was reached but rejected the operation.

    Common causes:
    - Invalid key (too long, contains whitespace or control characters)
    - Server error reply (SERVER_ERROR, out of memory)
    - Value not stored

    Never affects backoff state: the session itself worked.
    """
    pass


class SharedStateError(CacheError):
    """
    Raised when the host-local shared state store rejects an operation.

    Common causes:
    - Negative TTL
    - Backend for a host-wide store unavailable
    """
    pass
