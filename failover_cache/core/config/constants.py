"""
System Constants and Enumerations

This module defines the defaults, enumerations and key names shared by
every layer of the failover cache.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for defaults (settings and options both read them)
- Type-safe enums for tiers, error kinds and log stages
- Easy to update and track changes

Author: System Architect
Date: 2026-10-12
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Decision points of a cache operation, used as the ``stage`` field of
    every structured log entry.

    Format: {PREFIX}.{SEQUENCE}_{DESCRIPTIVE_NAME}
    """

    INITIALIZATION = "MC.0_INITIALIZATION"
    BACKOFF_CHECK = "MC.1_BACKOFF_CHECK"
    PRIMARY_ATTEMPT = "MC.2_PRIMARY_ATTEMPT"
    PRIMARY_MARKED_DOWN = "MC.2.1_PRIMARY_MARKED_DOWN"
    PRIMARY_RECOVERED = "MC.2.2_PRIMARY_RECOVERED"
    BACKUP_ATTEMPT = "MC.3_BACKUP_ATTEMPT"
    REMOTE_UNAVAILABLE = "MC.4_REMOTE_UNAVAILABLE"
    KEEPALIVE = "MC.5_KEEPALIVE"
    FALLBACK_READ = "FB.1_FALLBACK_READ"
    FALLBACK_WRITE = "FB.2_FALLBACK_WRITE"
    FALLBACK_DELETE = "FB.3_FALLBACK_DELETE"
    SHUTDOWN = "MC.9_SHUTDOWN"


# ============================================================================
# Cache Tiers
# ============================================================================


class CacheTier(str, Enum):
    """
    Storage layer that ultimately served an operation.

    PRIMARY: Preferred memcached server
    BACKUP: Secondary memcached server, tried when primary is skipped or unreachable
    LOCAL: Host-local fallback store, used only when no remote tier is reachable
    NONE: No tier was attempted
    """

    PRIMARY = "primary"
    BACKUP = "backup"
    LOCAL = "local"
    NONE = "none"


# ============================================================================
# Error Kinds
# ============================================================================


class ErrorKind(str, Enum):
    """
    Closed set of remote-path outcomes other than plain success.

    NOT_FOUND: Clean miss, authoritative, not a failure
    CONNECT_FAILURE: Transport or session establishment failed
    OPERATION_FAILURE: Session worked but the server reported an error
    REMOTE_UNAVAILABLE: No configured remote tier could be reached
    NO_SERVERS_CONFIGURED: No remote endpoint exists at all
    """

    NOT_FOUND = "not_found"
    CONNECT_FAILURE = "connect_failure"
    OPERATION_FAILURE = "operation_failure"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    NO_SERVERS_CONFIGURED = "no_servers_configured"


# ============================================================================
# Remote Server Defaults
# ============================================================================

DEFAULT_MEMCACHED_PORT = 11211

# Tiny on purpose: the cache sits on the request path of a challenge gate
DEFAULT_TIMEOUT_MS = 20
DEFAULT_KEEPALIVE_MS = 60000
DEFAULT_POOL_SIZE = 100
DEFAULT_PRIMARY_BACKOFF_SEC = 10

# ============================================================================
# Key Namespacing
# ============================================================================

DEFAULT_KEY_PREFIX = "crowdsec:captcha:"
DEFAULT_SHM_PRIMARY_DOWN_UNTIL_KEY = "memc_primary_down_until"
DEFAULT_SHM_FALLBACK_PREFIX = "memc_fallback/"

# ============================================================================
# Local Fallback Store
# ============================================================================

DEFAULT_FALLBACK_TTL_SEC = 120
SHARED_STATE_MAX_SIZE = 10000  # Maximum entries before LRU eviction

# Error text reported when neither remote tier could serve an operation
NO_REMOTE_SERVERS_MESSAGE = "no remote servers available"
