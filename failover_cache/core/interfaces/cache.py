"""
Cache Collaborator Protocols

This module defines the protocols the failover cache depends on, enabling
dependency injection and testability.

Architectural Decision: Protocol-based abstraction
- The memcached handle and the shared state store are injected, never
  reached through hidden globals
- Tests swap in fakes for both without patching
- Type-safe interface with runtime checking

Author: System Architect
Date: 2026-10-12
"""

from typing import Any, Protocol, runtime_checkable

from failover_cache.core.config.options import ServerEndpoint
from failover_cache.core.models import CacheEntry


@runtime_checkable
class SharedStateStore(Protocol):
    """
    Process- or host-wide key/value region shared by all workers.

    Used for two unrelated purposes: the primary down-until marker and
    fallback copies of cache entries. Implementations must be safe for
    concurrent use.

    Implementations:
    - InMemorySharedState: process-wide store with TTL and LRU eviction
    """

    async def get(self, key: str) -> Any | None:
        """
        Get a value, or None when absent or expired.

        Raises:
            SharedStateError: If the backend is unavailable
        """
        ...

    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """
        Store a value. ``ttl`` of None or 0 means no expiry.

        Returns:
            bool: True if stored

        Raises:
            SharedStateError: If the value cannot be stored
        """
        ...

    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            bool: True if the key existed
        """
        ...


@runtime_checkable
class RemoteSession(Protocol):
    """
    One checked-out session against a single memcached endpoint.

    Errors:
    - CacheOperationError: the command failed. The endpoint was reached when
      the session was opened, so timeouts and dropped sockets land here too.
    """

    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry, or None when the key is not found."""
        ...

    async def set(self, key: str, value: bytes, ttl: int = 0, flags: int = 0) -> bool:
        """Store the value. Returns False when the server did not store it."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete the key. Returns False when the key was not found."""
        ...

    async def release(self, keepalive_ms: int, pool_size: int) -> None:
        """
        Return the session to the keepalive pool.

        Raises:
            CacheError: If the session could not be pooled
        """
        ...


@runtime_checkable
class RemoteStoreConnector(Protocol):
    """
    Factory for remote sessions, owner of the per-endpoint connection pools.

    Implementations:
    - MemcachedConnector: aiomcache-backed pools
    """

    async def connect(self, endpoint: ServerEndpoint) -> RemoteSession:
        """
        Open a session to ``endpoint``.

        Raises:
            CacheConnectionError: If the endpoint cannot be reached (refused,
                unresolvable, or no socket opened within the timeout)
        """
        ...

    async def close(self) -> None:
        """Close every pooled connection."""
        ...
