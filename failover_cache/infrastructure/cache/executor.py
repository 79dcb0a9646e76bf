"""
Tiered Operation Executor

Implements the primary -> backup decision tree shared by get, set and delete.

Algorithm (per operation):
    1. Primary configured and not in its backoff window:
         a. Connect and run the command (each bounded by the per-attempt timeout)
         b. Connect failed: mark primary down, continue with backup
         c. Reached: clear the backoff marker and return the outcome.
            An operation error ends the call here; backup is NOT tried.
         d. Release the session to the keepalive pool whatever happened
    2. Backup configured: same sequence, never touching the backoff marker.
       Unreachable backup ends the call as REMOTE_UNAVAILABLE.
    3. Nothing left to try: REMOTE_UNAVAILABLE at tier NONE.

With no endpoint configured at all the executor returns
NO_SERVERS_CONFIGURED without touching the connector.

Policy table:

    | Situation                     | get                 | set          | delete              |
    |-------------------------------|---------------------|--------------|---------------------|
    | primary in backoff window     | skip primary        | skip primary | skip primary        |
    | primary unreachable           | mark down, backup   | same         | same                |
    | primary ok, key absent        | clear, NOT_FOUND    | n/a          | clear, success      |
    | primary ok, other error       | clear, error, stop  | same         | same                |
    | backup unreachable            | REMOTE_UNAVAILABLE  | same         | same                |
    | no servers configured         | NO_SERVERS_CONFIGURED, immediately               |

"Unreachable" means the connect itself failed. A command that times out or
loses its socket after connecting is an "other error" on a reached server.
"""

from collections.abc import Awaitable, Callable

from failover_cache.core.config.constants import NO_REMOTE_SERVERS_MESSAGE, CacheTier, ErrorKind
from failover_cache.core.config.options import FailoverCacheOptions, ServerEndpoint
from failover_cache.core.exceptions import CacheConnectionError, CacheError
from failover_cache.core.interfaces.cache import RemoteSession, RemoteStoreConnector
from failover_cache.core.models import CacheEntry, CacheFault, RemoteResult
from failover_cache.core.resilience.backoff import PrimaryBackoffTracker
from failover_cache.infrastructure.cache.observer import CacheObserver

# A remote command: runs against an open session, returns (entry, fault)
RemoteCall = Callable[[RemoteSession], Awaitable[tuple[CacheEntry | None, CacheFault | None]]]


class TieredOperationExecutor:
    """Runs get/set/delete against primary, then backup, with primary backoff."""

    def __init__(
        self,
        options: FailoverCacheOptions,
        connector: RemoteStoreConnector,
        tracker: PrimaryBackoffTracker,
        observer: CacheObserver,
    ):
        self._options = options
        self._connector = connector
        self._tracker = tracker
        self._observer = observer

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def get(self, remote_key: str) -> RemoteResult:
        async def call(session: RemoteSession):
            entry = await session.get(remote_key)
            if entry is None:
                return None, CacheFault(ErrorKind.NOT_FOUND)
            return entry, None

        return await self._execute("get", call)

    async def set(self, remote_key: str, value: bytes, ttl: int = 0, flags: int = 0) -> RemoteResult:
        async def call(session: RemoteSession):
            if await session.set(remote_key, value, ttl, flags):
                return None, None
            return None, CacheFault(ErrorKind.OPERATION_FAILURE, "set failed")

        return await self._execute("set", call)

    async def delete(self, remote_key: str) -> RemoteResult:
        async def call(session: RemoteSession):
            # False means NOT_FOUND, which is success for an idempotent delete
            await session.delete(remote_key)
            return None, None

        return await self._execute("delete", call)

    # -------------------------------------------------------------------------
    # Decision tree
    # -------------------------------------------------------------------------

    async def _execute(self, operation: str, call: RemoteCall) -> RemoteResult:
        primary = self._options.primary
        backup = self._options.backup

        if primary is None and backup is None:
            return RemoteResult(
                CacheTier.NONE,
                fault=CacheFault(ErrorKind.NO_SERVERS_CONFIGURED, NO_REMOTE_SERVERS_MESSAGE),
            )

        if primary is not None:
            if await self._tracker.is_primary_eligible():
                result = await self._attempt(primary, CacheTier.PRIMARY, call)
                if not _unreachable(result):
                    if await self._tracker.clear():
                        self._observer.primary_recovered(primary)
                    self._report(operation, primary, result)
                    return result

                until_ts = await self._tracker.mark_down()
                self._observer.primary_marked_down(primary, operation, until_ts, result.fault.cause)
            else:
                self._observer.primary_skipped(primary, operation)

        if backup is not None:
            result = await self._attempt(backup, CacheTier.BACKUP, call)
            if _unreachable(result):
                fault = CacheFault(ErrorKind.REMOTE_UNAVAILABLE, result.fault.cause)
                self._observer.remote_unavailable(operation, CacheTier.BACKUP, fault, backup)
                return RemoteResult(CacheTier.BACKUP, fault=fault)

            self._report(operation, backup, result)
            return result

        fault = CacheFault(ErrorKind.REMOTE_UNAVAILABLE, NO_REMOTE_SERVERS_MESSAGE)
        self._observer.remote_unavailable(operation, CacheTier.NONE, fault)
        return RemoteResult(CacheTier.NONE, fault=fault)

    async def _attempt(self, endpoint: ServerEndpoint, tier: CacheTier, call: RemoteCall) -> RemoteResult:
        """
        Connect, run ``call`` and release the session.

        Only a failed connect is a CONNECT_FAILURE (that kind never leaves the
        executor). Once a session is open the server counts as reached, so any
        error from ``call``, timeouts included, is an OPERATION_FAILURE.
        """
        try:
            session = await self._connector.connect(endpoint)
        except CacheConnectionError as e:
            return RemoteResult(tier, fault=CacheFault(ErrorKind.CONNECT_FAILURE, e.message))

        try:
            entry, fault = await call(session)
        except CacheError as e:
            entry, fault = None, CacheFault(ErrorKind.OPERATION_FAILURE, e.message)
        finally:
            await self._release(endpoint, session)

        return RemoteResult(tier, entry=entry, fault=fault)

    async def _release(self, endpoint: ServerEndpoint, session: RemoteSession) -> None:
        try:
            await session.release(self._options.keepalive_ms, self._options.pool_size)
        except CacheError as e:
            self._observer.keepalive_failed(endpoint, e.message)

    def _report(self, operation: str, endpoint: ServerEndpoint, result: RemoteResult) -> None:
        if result.fault is not None and result.fault.kind is ErrorKind.OPERATION_FAILURE:
            self._observer.remote_error(result.tier, endpoint, operation, result.fault)
        else:
            self._observer.record_served(operation, result.tier, miss=result.is_miss)


def _unreachable(result: RemoteResult) -> bool:
    return result.fault is not None and result.fault.kind is ErrorKind.CONNECT_FAILURE
