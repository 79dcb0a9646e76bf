"""
Primary Backoff Tracker.

Remembers "primary looked down until time T" across requests so that a dead
primary costs one connect timeout per backoff window instead of one per
request.

MECHANISM OF ACTION:
-------------------
1.  **Shared State**:
    The down-until timestamp lives in the shared state store, so every worker
    on the host skips the primary as soon as any one of them saw it fail.

2.  **Lifecycle**:
    - ``mark_down``: a connect attempt to primary failed. Store
      ``now + window`` with a store-level expiry of ``window + 1`` so a
      restarted store backend cannot keep a stale marker forever.
    - ``is_primary_eligible``: no marker, or marker <= now.
    - ``clear``: any operation completed against a live primary session.

3.  **Fail Open**:
    If the store itself raises, eligibility is reported as True and marking
    or clearing is skipped. A broken tracker costs at most one extra connect
    timeout, never correctness.

Races between workers are tolerated: a lost update to the marker means one
extra request pays the timeout.
"""

import time
from collections.abc import Callable

from failover_cache.core.config.constants import Stage
from failover_cache.core.interfaces.cache import SharedStateStore
from failover_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


class PrimaryBackoffTracker:
    """Reads and writes the primary down-until marker in shared state."""

    def __init__(
        self,
        store: SharedStateStore,
        key: str,
        window_sec: float,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._key = key
        self._window_sec = window_sec
        self._clock = clock

    @property
    def window_sec(self) -> float:
        return self._window_sec

    async def down_until(self) -> float:
        """Get the stored down-until timestamp, 0 if absent or unreadable."""
        try:
            value = await self._store.get(self._key)
        except Exception as e:
            logger.warning(
                "Failed to read primary backoff marker; treating primary as eligible",
                stage=Stage.BACKOFF_CHECK.value,
                error=str(e),
            )
            return 0.0

        if value is None:
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    async def is_primary_eligible(self, now: float | None = None) -> bool:
        """True iff no marker exists or the marker is not in the future."""
        now = self._clock() if now is None else now
        return await self.down_until() <= now

    async def mark_down(self, now: float | None = None) -> float:
        """
        Start a backoff window.

        Returns:
            float: The down-until timestamp that was written (or attempted)
        """
        now = self._clock() if now is None else now
        until_ts = now + self._window_sec
        try:
            await self._store.set(self._key, until_ts, self._window_sec + 1)
        except Exception as e:
            logger.warning(
                "Failed to write primary backoff marker",
                stage=Stage.PRIMARY_MARKED_DOWN.value,
                error=str(e),
            )
        return until_ts

    async def clear(self) -> bool:
        """
        Remove the marker.

        Returns:
            bool: True if a marker existed and was removed
        """
        try:
            return bool(await self._store.delete(self._key))
        except Exception as e:
            logger.warning(
                "Failed to clear primary backoff marker",
                stage=Stage.PRIMARY_RECOVERED.value,
                error=str(e),
            )
            return False
