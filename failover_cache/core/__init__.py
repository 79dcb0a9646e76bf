"""
Core Module

Foundational components: configuration, logging, exceptions, collaborator
protocols and the primary backoff tracker.
"""

from .exceptions import (
    CacheConnectionError,
    CacheError,
    CacheOperationError,
    FailoverCacheError,
    SharedStateError,
)
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    set_request_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    "log_stage",
    "FailoverCacheError",
    "CacheError",
    "CacheConnectionError",
    "CacheOperationError",
    "SharedStateError",
]
