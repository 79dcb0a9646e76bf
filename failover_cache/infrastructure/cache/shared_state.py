"""
Shared Process State

Process-wide key/value region shared by every worker coroutine and thread
in the process. Holds the primary down-until marker and fallback copies of
cache entries.

Implementation Details:
- OrderedDict for O(1) access and LRU ordering
- threading.Lock so workers on other threads or event loops see atomic updates
- Per-entry expiry against an injectable clock
- Expired entries are evicted before live ones when at capacity

The lock is only held for dictionary operations, never across an await,
so access never blocks the event loop for longer than a dict update.
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from failover_cache.core.config.constants import SHARED_STATE_MAX_SIZE
from failover_cache.core.config.settings import get_settings
from failover_cache.core.exceptions import SharedStateError


class InMemorySharedState:
    """
    Thread-safe TTL + LRU store implementing ``SharedStateStore``.

    Created once per process (see ``get_shared_state``) and shared by all
    cache instances in it.
    """

    def __init__(
        self,
        max_size: int = SHARED_STATE_MAX_SIZE,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            max_size: Maximum number of entries to store
            clock: Time source in seconds, used for expiry
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._clock = clock
        # key -> (value, expires_at or None)
        self._data: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._lock = threading.Lock()

    async def get(self, key: str) -> Any | None:
        """
        Get value, or None if absent or expired.

        LRU Update: Moves accessed item to end (most recently used)
        """
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None

            value, expires_at = item
            if expires_at is not None and expires_at <= self._clock():
                del self._data[key]
                return None

            self._data.move_to_end(key)
            return value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """
        Set value with optional TTL in seconds (None or 0 = no expiry).

        Raises:
            SharedStateError: If ttl is negative
        """
        if ttl is not None and ttl < 0:
            raise SharedStateError(
                f"Invalid TTL for shared state key: {ttl}",
                details={"key": key, "ttl": ttl},
            )

        expires_at = self._clock() + ttl if ttl else None

        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            elif len(self._data) >= self._max_size:
                self._evict()

            self._data[key] = (value, expires_at)
        return True

    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if deleted, False if not found."""
        with self._lock:
            return self._data.pop(key, None) is not None

    async def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._data.clear()

    def _evict(self) -> None:
        # Caller holds the lock
        now = self._clock()
        expired = [
            k for k, (_, expires_at) in self._data.items()
            if expires_at is not None and expires_at <= now
        ]
        for k in expired:
            del self._data[k]

        while len(self._data) >= self._max_size:
            self._data.popitem(last=False)

    def get_size(self) -> int:
        """Get current number of entries (expired ones included until touched)."""
        return len(self._data)

    def get_max_size(self) -> int:
        """Get maximum capacity."""
        return self._max_size


# =============================================================================
# PROCESS-WIDE INSTANCE
# =============================================================================

_shared_state: InMemorySharedState | None = None


def get_shared_state() -> InMemorySharedState:
    """
    Get the process-wide shared state (created on first use).

    Returns:
        InMemorySharedState: Shared state for this process
    """
    global _shared_state

    if _shared_state is None:
        settings = get_settings()
        _shared_state = InMemorySharedState(max_size=settings.shared_state.SHARED_STATE_MAX_SIZE)

    return _shared_state


def reset_shared_state() -> None:
    """Drop the process-wide shared state (process exit, tests)."""
    global _shared_state
    _shared_state = None
