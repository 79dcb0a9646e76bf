"""
Cache Module

Provides the memcached failover cache (primary -> backup -> local fallback).
"""

from .cache_manager import (
    FailoverCache,
    close_failover_cache,
    get_failover_cache,
    init_failover_cache,
)
from .shared_state import InMemorySharedState, get_shared_state, reset_shared_state

__all__ = [
    "FailoverCache",
    "get_failover_cache",
    "init_failover_cache",
    "close_failover_cache",
    "InMemorySharedState",
    "get_shared_state",
    "reset_shared_state",
]
