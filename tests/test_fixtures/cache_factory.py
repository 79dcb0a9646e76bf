"""
Cache Test Factory

Fakes for the failover cache collaborators: a controllable clock, a
memcached connector whose endpoints can be switched up, down or broken,
and a shared state store that always fails.
"""

from typing import Any

from failover_cache.core.config.options import FailoverCacheOptions, ServerEndpoint
from failover_cache.core.exceptions import CacheConnectionError, CacheOperationError, SharedStateError
from failover_cache.core.models import CacheEntry
from failover_cache.infrastructure.cache.cache_manager import FailoverCache
from failover_cache.infrastructure.cache.shared_state import InMemorySharedState

PRIMARY = "10.0.0.5:11211"
BACKUP = "10.0.0.6:11211"

# Endpoint modes
UP = "up"  # connects, commands succeed
DOWN = "down"  # connect fails
DROP = "drop"  # connects, then every command times out
ERROR = "error"  # connects, commands rejected by the server


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSession:
    def __init__(self, connector: "FakeConnector", endpoint: ServerEndpoint):
        self._connector = connector
        self._endpoint = endpoint

    def _check(self, command: str) -> dict[str, CacheEntry]:
        self._connector.commands.append((str(self._endpoint), command))
        mode = self._connector.mode(self._endpoint)
        if mode == DROP:
            raise CacheOperationError(f"memcached {command} timed out after 20ms")
        if mode == ERROR:
            raise CacheOperationError(f"SERVER_ERROR {command} rejected")
        return self._connector.data_for(self._endpoint)

    async def get(self, key: str) -> CacheEntry | None:
        return self._check("get").get(key)

    async def set(self, key: str, value: bytes, ttl: int = 0, flags: int = 0) -> bool:
        self._check("set")[key] = CacheEntry(value, flags)
        self._connector.ttls[(str(self._endpoint), key)] = ttl
        return True

    async def delete(self, key: str) -> bool:
        return self._check("delete").pop(key, None) is not None

    async def release(self, keepalive_ms: int, pool_size: int) -> None:
        self._connector.releases.append((str(self._endpoint), keepalive_ms, pool_size))
        if self._connector.fail_release:
            raise CacheConnectionError("no open pool to return the session to")


class FakeConnector:
    """
    In-memory stand-in for MemcachedConnector.

    Each endpoint keeps its own data so tests can tell which tier answered.
    """

    def __init__(self, modes: dict[str, str] | None = None):
        self.modes: dict[str, str] = dict(modes or {})
        self.data: dict[str, dict[str, CacheEntry]] = {}
        self.ttls: dict[tuple[str, str], int] = {}
        self.connect_log: list[str] = []
        self.commands: list[tuple[str, str]] = []
        self.releases: list[tuple[str, int, int]] = []
        self.fail_release = False
        self.closed = False

    def mode(self, endpoint: ServerEndpoint) -> str:
        return self.modes.get(str(endpoint), UP)

    def set_mode(self, endpoint: str, mode: str) -> None:
        self.modes[endpoint] = mode

    def data_for(self, endpoint: ServerEndpoint | str) -> dict[str, CacheEntry]:
        return self.data.setdefault(str(endpoint), {})

    async def connect(self, endpoint: ServerEndpoint) -> FakeSession:
        self.connect_log.append(str(endpoint))
        if self.mode(endpoint) == DOWN:
            raise CacheConnectionError(f"connection refused: {endpoint}")
        return FakeSession(self, endpoint)

    async def close(self) -> None:
        self.closed = True


class FailingSharedState:
    """Shared state store whose backend is gone."""

    def __init__(self, error: Exception | None = None):
        self._error = error or SharedStateError("shared state unavailable")

    async def get(self, key: str) -> Any | None:
        raise self._error

    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        raise self._error

    async def delete(self, key: str) -> bool:
        raise self._error


class CacheTestFactory:
    """Factory for creating failover cache test objects."""

    @staticmethod
    def options(primary: str | None = PRIMARY, backup: str | None = BACKUP, **overrides) -> FailoverCacheOptions:
        return FailoverCacheOptions(primary=primary, backup=backup, **overrides)

    @staticmethod
    def failover_cache(
        primary: str | None = PRIMARY,
        backup: str | None = BACKUP,
        modes: dict[str, str] | None = None,
        shared_state=None,
        clock: FakeClock | None = None,
        **overrides,
    ) -> tuple[FailoverCache, FakeConnector, Any, FakeClock]:
        """
        Build a cache wired to fakes.

        Returns:
            (cache, connector, shared_state, clock)
        """
        clock = clock or FakeClock()
        connector = FakeConnector(modes)
        if shared_state is None:
            shared_state = InMemorySharedState(max_size=100, clock=clock)
        cache = FailoverCache(
            CacheTestFactory.options(primary, backup, **overrides),
            shared_state=shared_state,
            connector=connector,
            clock=clock,
        )
        return cache, connector, shared_state, clock
