"""
Cache Observer

Single structured-event interface for every decision point of the failover
cache: primary marked down or recovered, remote errors, total remote
failure, keepalive failures and fallback store traffic.

The executor and facade call one method per decision; all logging and
counters live here so their control flow stays free of side-effect calls.
"""

from typing import Any

from failover_cache.core.config.constants import CacheTier, Stage
from failover_cache.core.config.options import ServerEndpoint
from failover_cache.core.logging.logger import get_logger, log_stage
from failover_cache.core.models import CacheFault

logger = get_logger(__name__)


class CacheObserver:
    """
    Logs cache decision points and tracks counters for ``stats()``.

    Counters:
    - served_primary / served_backup / served_local: operations answered per tier
    - misses: clean NOT_FOUND answers
    - remote_errors: operation failures on a reachable server
    - remote_unavailable: operations where no remote tier could be reached
    - primary_marked_down: backoff windows started
    - fallback_writes / fallback_write_failures / fallback_hits
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger
        self._counters: dict[str, int] = {
            "served_primary": 0,
            "served_backup": 0,
            "served_local": 0,
            "misses": 0,
            "remote_errors": 0,
            "remote_unavailable": 0,
            "primary_marked_down": 0,
            "fallback_writes": 0,
            "fallback_write_failures": 0,
            "fallback_hits": 0,
        }

    # -------------------------------------------------------------------------
    # Remote tier events
    # -------------------------------------------------------------------------

    def record_served(self, operation: str, tier: CacheTier, miss: bool = False) -> None:
        """An operation completed against ``tier`` (hit, miss or write)."""
        if miss:
            self._counters["misses"] += 1
        counter = f"served_{tier.value}"
        if counter in self._counters:
            self._counters[counter] += 1
        self._logger.debug("Cache operation served", operation=operation, tier=tier.value, miss=miss)

    def primary_marked_down(
        self, endpoint: ServerEndpoint, operation: str, until_ts: float, error: str | None
    ) -> None:
        self._counters["primary_marked_down"] += 1
        log_stage(
            self._logger,
            Stage.PRIMARY_MARKED_DOWN,
            "Primary memcached unreachable, backing off",
            level="error",
            host=endpoint.host,
            port=endpoint.port,
            operation=operation,
            down_until=until_ts,
            error=error,
        )

    def primary_skipped(self, endpoint: ServerEndpoint, operation: str) -> None:
        log_stage(
            self._logger,
            Stage.BACKOFF_CHECK,
            "Primary memcached in backoff window, skipping",
            level="debug",
            host=endpoint.host,
            port=endpoint.port,
            operation=operation,
        )

    def primary_recovered(self, endpoint: ServerEndpoint) -> None:
        log_stage(
            self._logger,
            Stage.PRIMARY_RECOVERED,
            "Primary memcached reachable again, backoff cleared",
            host=endpoint.host,
            port=endpoint.port,
        )

    def remote_error(
        self, tier: CacheTier, endpoint: ServerEndpoint, operation: str, fault: CacheFault
    ) -> None:
        self._counters["remote_errors"] += 1
        stage = Stage.PRIMARY_ATTEMPT if tier is CacheTier.PRIMARY else Stage.BACKUP_ATTEMPT
        log_stage(
            self._logger,
            stage,
            f"{tier.value.capitalize()} memcached {operation} error",
            level="error",
            host=endpoint.host,
            port=endpoint.port,
            operation=operation,
            error=str(fault),
        )

    def remote_unavailable(
        self, operation: str, tier: CacheTier, fault: CacheFault, endpoint: ServerEndpoint | None = None
    ) -> None:
        self._counters["remote_unavailable"] += 1
        log_stage(
            self._logger,
            Stage.REMOTE_UNAVAILABLE,
            "No memcached tier reachable",
            level="error",
            operation=operation,
            tier=tier.value,
            host=endpoint.host if endpoint else None,
            port=endpoint.port if endpoint else None,
            error=str(fault),
        )

    def keepalive_failed(self, endpoint: ServerEndpoint, error: str) -> None:
        log_stage(
            self._logger,
            Stage.KEEPALIVE,
            "Failed to return memcached connection to pool",
            level="error",
            host=endpoint.host,
            port=endpoint.port,
            error=error,
        )

    # -------------------------------------------------------------------------
    # Fallback store events
    # -------------------------------------------------------------------------

    def fallback_write(self, key: str, ttl: int, ok: bool, error: str | None = None) -> None:
        if ok:
            self._counters["fallback_writes"] += 1
            self._counters["served_local"] += 1
            log_stage(self._logger, Stage.FALLBACK_WRITE, "Fallback entry written", cache_key=key, ttl=ttl)
        else:
            self._counters["fallback_write_failures"] += 1
            log_stage(
                self._logger,
                Stage.FALLBACK_WRITE,
                "Fallback store write failed",
                level="error",
                cache_key=key,
                error=error,
            )

    def fallback_read(self, key: str, hit: bool) -> None:
        if hit:
            self._counters["fallback_hits"] += 1
            self._counters["served_local"] += 1
        log_stage(self._logger, Stage.FALLBACK_READ, "Fallback store read", level="debug", cache_key=key, hit=hit)

    def fallback_error(self, key: str, operation: str, error: str) -> None:
        stage = Stage.FALLBACK_DELETE if operation == "delete" else Stage.FALLBACK_READ
        log_stage(
            self._logger,
            stage,
            f"Fallback store {operation} failed",
            level="warning",
            cache_key=key,
            error=error,
        )

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """
        Get counter snapshot plus derived rates.

        Returns:
            Dict with all counters, total served and local share
        """
        served = (
            self._counters["served_primary"]
            + self._counters["served_backup"]
            + self._counters["served_local"]
        )
        return {
            **self._counters,
            "total_served": served,
            "local_share": round(self._counters["served_local"] / served, 3) if served > 0 else 0.0,
        }
