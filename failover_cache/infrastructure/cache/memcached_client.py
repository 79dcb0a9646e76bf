"""
Memcached Client with Connection Pooling

Architecture:
    MemcachedConnector (RemoteStoreConnector)
        ├── one aiomcache.FlagClient pool per ServerEndpoint
        ├── idle pools closed after the keepalive window
        ├── connect() checks out a live socket under the per-attempt timeout
        └── MemcachedSession (RemoteSession)
              └── every command bounded by the per-attempt timeout

Error Classification:
    connect():
        - OSError, timeouts                -> CacheConnectionError (unreachable)
    session commands (server already reached):
        - timeouts, OSError, EOFError      -> CacheOperationError, pool discarded
        - aiomcache ClientException        -> CacheOperationError

A command cancelled by its timeout leaves its reply unread on the socket,
and aiomcache would hand that socket to the next command. The endpoint's
pool is therefore closed and rebuilt on the next connect.

Flags are carried through aiomcache's flag handlers so the caller-defined
bitfield round-trips verbatim.

Author: System Architect
Date: 2026-10-12
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import aiomcache
from aiomcache.exceptions import ClientException

from failover_cache.core.config.constants import Stage
from failover_cache.core.config.options import FailoverCacheOptions, ServerEndpoint
from failover_cache.core.exceptions import CacheConnectionError, CacheOperationError
from failover_cache.core.logging.logger import get_logger
from failover_cache.core.models import CacheEntry

logger = get_logger(__name__)


async def _decode_flagged(value: bytes, flags: int) -> CacheEntry:
    """aiomcache get_flag_handler: called for values stored with non-zero flags."""
    return CacheEntry(value=value, flags=flags)


async def _encode_flagged(entry: CacheEntry) -> tuple[bytes, int]:
    """aiomcache set_flag_handler: called for every non-bytes value."""
    return entry.value, entry.flags


@dataclass
class _EndpointPool:
    client: aiomcache.FlagClient
    last_used: float
    keepalive_sec: float


# =============================================================================
# SESSION
# =============================================================================


class MemcachedSession:
    """A checked-out session against one endpoint's pool."""

    def __init__(
        self,
        connector: "MemcachedConnector",
        endpoint: ServerEndpoint,
        client: aiomcache.FlagClient,
        timeout_sec: float,
    ):
        self._connector = connector
        self._endpoint = endpoint
        self._client = client
        self._timeout_sec = timeout_sec
        self._discarded = False

    @property
    def endpoint(self) -> ServerEndpoint:
        return self._endpoint

    async def _discard(self) -> None:
        self._discarded = True
        await self._connector.discard(self._endpoint, self._client)

    async def _call(self, command: str, coro: Awaitable[Any]) -> Any:
        """Run one aiomcache command under the timeout and classify its errors."""
        context = {"host": self._endpoint.host, "port": self._endpoint.port, "command": command}
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout_sec)
        except asyncio.TimeoutError as e:
            await self._discard()
            raise CacheOperationError(
                f"memcached {command} timed out after {self._timeout_sec * 1000:.0f}ms",
                details=context,
            ) from e
        except (OSError, EOFError) as e:
            await self._discard()
            raise CacheOperationError.from_exception(e, **context) from e
        except ClientException as e:
            raise CacheOperationError.from_exception(e, **context) from e

    async def get(self, key: str) -> CacheEntry | None:
        result = await self._call("get", self._client.get(key.encode("utf-8")))
        if result is None:
            return None
        if isinstance(result, CacheEntry):
            return result
        # Stored with flags == 0: aiomcache hands back the raw bytes
        return CacheEntry(value=result, flags=0)

    async def set(self, key: str, value: bytes, ttl: int = 0, flags: int = 0) -> bool:
        entry = CacheEntry(value=value, flags=flags)
        stored = await self._call(
            "set", self._client.set(key.encode("utf-8"), entry, exptime=ttl)
        )
        return bool(stored)

    async def delete(self, key: str) -> bool:
        deleted = await self._call("delete", self._client.delete(key.encode("utf-8")))
        return bool(deleted)

    async def release(self, keepalive_ms: int, pool_size: int) -> None:
        if self._discarded:
            return
        self._connector.release(self._endpoint, keepalive_ms, pool_size)


# =============================================================================
# CONNECTOR
# =============================================================================


class MemcachedConnector:
    """
    Owns one aiomcache pool per endpoint.

    aiomcache returns connections to its pool after every command; this
    class adds the keepalive window on top: a pool left idle for longer
    than ``keepalive_ms`` is closed and rebuilt on next use.

    A pool discarded while another task still has a socket checked out is
    kept in ``_retired`` until that socket comes back and can be closed.
    """

    def __init__(
        self,
        timeout_ms: int,
        keepalive_ms: int,
        pool_size: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._timeout_sec = timeout_ms / 1000.0
        self._keepalive_sec = keepalive_ms / 1000.0
        self._pool_size = pool_size
        self._clock = clock
        self._pools: dict[ServerEndpoint, _EndpointPool] = {}
        self._retired: list[tuple[ServerEndpoint, aiomcache.FlagClient]] = []

    @classmethod
    def from_options(cls, options: FailoverCacheOptions) -> "MemcachedConnector":
        return cls(
            timeout_ms=options.timeout_ms,
            keepalive_ms=options.keepalive_ms,
            pool_size=options.pool_size,
        )

    def _new_client(self, endpoint: ServerEndpoint) -> aiomcache.FlagClient:
        # pool_minsize=1: connect() opens a single socket, not the whole pool
        return aiomcache.FlagClient(
            endpoint.host,
            endpoint.port,
            pool_size=self._pool_size,
            pool_minsize=1,
            get_flag_handler=_decode_flagged,
            set_flag_handler=_encode_flagged,
        )

    async def _check_connection(self, client: aiomcache.FlagClient) -> None:
        """Check a socket out of the client's pool and put it straight back."""
        conn_pool = client._pool
        conn = await asyncio.wait_for(conn_pool.acquire(), timeout=self._timeout_sec)
        conn_pool.release(conn)

    async def connect(self, endpoint: ServerEndpoint) -> MemcachedSession:
        """
        Get a session on the endpoint's pool, creating the pool if needed.

        The session is only handed out once a socket to the server is open,
        so every error raised here means the endpoint is unreachable.

        Raises:
            CacheConnectionError: If the pool cannot be created or no socket
                can be opened within the timeout
        """
        now = self._clock()
        pool = self._pools.get(endpoint)

        if pool is not None and now - pool.last_used > pool.keepalive_sec:
            del self._pools[endpoint]
            await self._close_client(endpoint, pool.client)
            pool = None

        if pool is None:
            try:
                client = self._new_client(endpoint)
            except (OSError, ValueError) as e:
                raise CacheConnectionError.from_exception(
                    e, host=endpoint.host, port=endpoint.port
                ) from e
            pool = _EndpointPool(client=client, last_used=now, keepalive_sec=self._keepalive_sec)
            self._pools[endpoint] = pool

        try:
            await self._check_connection(pool.client)
        except asyncio.TimeoutError as e:
            await self.discard(endpoint, pool.client)
            raise CacheConnectionError(
                f"memcached connect timed out after {self._timeout_sec * 1000:.0f}ms",
                details={"host": endpoint.host, "port": endpoint.port},
            ) from e
        except OSError as e:
            await self.discard(endpoint, pool.client)
            raise CacheConnectionError.from_exception(
                e, host=endpoint.host, port=endpoint.port
            ) from e

        return MemcachedSession(self, endpoint, pool.client, self._timeout_sec)

    def release(self, endpoint: ServerEndpoint, keepalive_ms: int, pool_size: int) -> None:
        """
        Mark the endpoint's pool as used now.

        ``pool_size`` applies to pools created from now on.

        Raises:
            CacheConnectionError: If the endpoint has no open pool
        """
        pool = self._pools.get(endpoint)
        if pool is None:
            raise CacheConnectionError(
                "no open pool to return the session to",
                details={"host": endpoint.host, "port": endpoint.port},
            )
        pool.last_used = self._clock()
        pool.keepalive_sec = keepalive_ms / 1000.0
        self._pool_size = pool_size

    async def discard(self, endpoint: ServerEndpoint, client: aiomcache.FlagClient) -> None:
        """
        Close ``client``'s pool and forget it, so the next connect to
        ``endpoint`` starts on fresh sockets.

        A no-op for the pool map when ``endpoint`` already holds a newer pool.
        """
        pool = self._pools.get(endpoint)
        if pool is not None and pool.client is client:
            del self._pools[endpoint]
        if all(retired is not client for _, retired in self._retired):
            self._retired.append((endpoint, client))
        logger.warning(
            "Discarding memcached pool",
            stage=Stage.KEEPALIVE.value,
            host=endpoint.host,
            port=endpoint.port,
        )
        await self._sweep_retired()

    async def _sweep_retired(self) -> None:
        """Close idle sockets of discarded pools; keep pools with sockets still out."""
        retired, self._retired = self._retired, []
        for endpoint, client in retired:
            await self._close_client(endpoint, client)
            if client._pool.size():
                self._retired.append((endpoint, client))

    async def _close_client(self, endpoint: ServerEndpoint, client: aiomcache.FlagClient) -> None:
        try:
            await client.close()
        except (OSError, ClientException) as e:
            logger.warning(
                "Failed to close memcached pool",
                stage=Stage.KEEPALIVE.value,
                host=endpoint.host,
                port=endpoint.port,
                error=str(e),
            )

    async def close(self) -> None:
        """Close every pool."""
        pools, self._pools = self._pools, {}
        for endpoint, pool in pools.items():
            await self._close_client(endpoint, pool.client)
        await self._sweep_retired()
        self._retired = []

    def open_endpoints(self) -> list[ServerEndpoint]:
        """Endpoints that currently hold a pool."""
        return list(self._pools)
