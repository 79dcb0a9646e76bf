"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import (
    BACKUP,
    DOWN,
    DROP,
    ERROR,
    PRIMARY,
    UP,
    CacheTestFactory,
    FailingSharedState,
    FakeClock,
    FakeConnector,
)

__all__ = [
    "CacheTestFactory",
    "FakeClock",
    "FakeConnector",
    "FailingSharedState",
    "PRIMARY",
    "BACKUP",
    "UP",
    "DOWN",
    "DROP",
    "ERROR",
]
