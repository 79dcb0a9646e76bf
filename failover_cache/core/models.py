"""
Cache Value Types

Small immutable records passed between the facade, the tiered executor and
the collaborators.

- CacheEntry: value bytes + caller-defined flags, stored and returned verbatim
- CacheFault: an ErrorKind plus an optional cause string for logging
- RemoteResult: which tier answered and how
- CachedValue / OperationStatus: what callers of the facade receive
"""

from dataclasses import dataclass
from typing import NamedTuple

from failover_cache.core.config.constants import CacheTier, ErrorKind


@dataclass(frozen=True)
class CacheEntry:
    """Opaque value plus flags bitfield; neither is interpreted."""

    value: bytes
    flags: int = 0


@dataclass(frozen=True)
class CacheFault:
    """Why a remote operation did not simply succeed."""

    kind: ErrorKind
    cause: str | None = None

    def __str__(self) -> str:
        return self.cause or self.kind.value


@dataclass(frozen=True)
class RemoteResult:
    """
    Outcome of one executor call.

    ``tier`` is the tier that produced the outcome (NONE when no tier was
    attempted). ``entry`` is only set for a successful get.
    """

    tier: CacheTier
    entry: CacheEntry | None = None
    fault: CacheFault | None = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    @property
    def is_miss(self) -> bool:
        return self.fault is not None and self.fault.kind is ErrorKind.NOT_FOUND

    @property
    def is_unreachable(self) -> bool:
        """True when no remote tier could even be reached."""
        return self.fault is not None and self.fault.kind in (
            ErrorKind.REMOTE_UNAVAILABLE,
            ErrorKind.NO_SERVERS_CONFIGURED,
        )


class CachedValue(NamedTuple):
    """Result of ``FailoverCache.get``; both fields are None on a miss."""

    value: bytes | None
    flags: int | None


class OperationStatus(NamedTuple):
    """Result of ``FailoverCache.set`` / ``delete``."""

    ok: bool
    error: str | None = None
