"""
Configuration Module

Centralized, type-safe configuration for the failover cache.

Components:
-----------
- **constants.py**: Defaults, key names and enums (Stage, CacheTier, ErrorKind)
- **settings.py**: Pydantic-settings configuration loaded from the environment / .env
- **options.py**: Immutable per-instance options and endpoint parsing

Environment Variables:
---------------------
```bash
MEMCACHED_PRIMARY=10.0.0.5:11211
MEMCACHED_BACKUP=10.0.0.6
MEMCACHED_TIMEOUT_MS=20
MEMCACHED_PRIMARY_BACKOFF_SEC=10
CACHE_FALLBACK_TTL_SEC=120
LOG_LEVEL=INFO
LOG_FORMAT=json
```
"""

from failover_cache.core.config.constants import (
    DEFAULT_FALLBACK_TTL_SEC,
    DEFAULT_KEEPALIVE_MS,
    DEFAULT_KEY_PREFIX,
    DEFAULT_MEMCACHED_PORT,
    DEFAULT_POOL_SIZE,
    DEFAULT_PRIMARY_BACKOFF_SEC,
    DEFAULT_SHM_FALLBACK_PREFIX,
    DEFAULT_SHM_PRIMARY_DOWN_UNTIL_KEY,
    DEFAULT_TIMEOUT_MS,
    CacheTier,
    ErrorKind,
    Stage,
)
from failover_cache.core.config.settings import get_settings, reload_settings

# NOTE: options is not imported here to avoid circular imports (it depends on logging)
# Import it directly when needed: from failover_cache.core.config.options import FailoverCacheOptions

__all__ = [
    # Settings
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    "CacheTier",
    "ErrorKind",
    # Defaults
    "DEFAULT_MEMCACHED_PORT",
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_KEEPALIVE_MS",
    "DEFAULT_POOL_SIZE",
    "DEFAULT_PRIMARY_BACKOFF_SEC",
    "DEFAULT_KEY_PREFIX",
    "DEFAULT_FALLBACK_TTL_SEC",
    "DEFAULT_SHM_PRIMARY_DOWN_UNTIL_KEY",
    "DEFAULT_SHM_FALLBACK_PREFIX",
]
