"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tests.test_fixtures.cache_factory import (  # noqa: E402
    BACKUP,
    PRIMARY,
    FakeClock,
    FakeConnector,
)

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode via pyproject.toml

_CACHE_ENV_VARS = (
    "MEMCACHED_PRIMARY",
    "MEMCACHED_BACKUP",
    "MEMCACHED_TIMEOUT_MS",
    "MEMCACHED_KEEPALIVE_MS",
    "MEMCACHED_POOL_SIZE",
    "MEMCACHED_PRIMARY_BACKOFF_SEC",
    "CACHE_KEY_PREFIX",
    "CACHE_FALLBACK_TTL_SEC",
    "SHM_PRIMARY_DOWN_UNTIL_KEY",
    "SHM_FALLBACK_PREFIX",
    "SHARED_STATE_MAX_SIZE",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """
    Keep host environment and process-wide singletons out of every test.
    """
    from failover_cache.core.config import settings as settings_module
    from failover_cache.infrastructure.cache import cache_manager as cache_manager_module
    from failover_cache.infrastructure.cache.shared_state import reset_shared_state

    for name in _CACHE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    settings_module._settings = None
    cache_manager_module._failover_cache = None
    reset_shared_state()
    yield
    settings_module._settings = None
    cache_manager_module._failover_cache = None
    reset_shared_state()


# ============================================================================
# Mock Configuration Fixtures
# ============================================================================


@pytest.fixture
def mock_settings():
    """
    Mock settings for testing.

    Returns a MagicMock with the memcached and shared state sections populated.
    """
    from failover_cache.core.config.settings import Settings

    settings = MagicMock(spec=Settings)

    settings.memcached.MEMCACHED_PRIMARY = PRIMARY
    settings.memcached.MEMCACHED_BACKUP = BACKUP
    settings.memcached.MEMCACHED_TIMEOUT_MS = 20
    settings.memcached.MEMCACHED_KEEPALIVE_MS = 60000
    settings.memcached.MEMCACHED_POOL_SIZE = 100
    settings.memcached.MEMCACHED_PRIMARY_BACKOFF_SEC = 10
    settings.memcached.CACHE_KEY_PREFIX = "crowdsec:captcha:"

    settings.shared_state.CACHE_FALLBACK_TTL_SEC = 120
    settings.shared_state.SHM_PRIMARY_DOWN_UNTIL_KEY = "memc_primary_down_until"
    settings.shared_state.SHM_FALLBACK_PREFIX = "memc_fallback/"
    settings.shared_state.SHARED_STATE_MAX_SIZE = 10000

    settings.logging.LOG_LEVEL = "INFO"
    settings.logging.LOG_FORMAT = "json"

    return settings


# ============================================================================
# Fake Infrastructure Fixtures
# ============================================================================


@pytest.fixture
def fake_clock():
    """Wall clock that only moves when the test advances it."""
    return FakeClock()


@pytest.fixture
def fake_connector():
    """Memcached connector with both endpoints up and empty."""
    return FakeConnector()


@pytest.fixture
def shared_state(fake_clock):
    """Fresh in-memory shared state on the fake clock."""
    from failover_cache.infrastructure.cache.shared_state import InMemorySharedState

    return InMemorySharedState(max_size=100, clock=fake_clock)


@pytest.fixture
def cache_options():
    """Options with both primary and backup configured."""
    from failover_cache.core.config.options import FailoverCacheOptions

    return FailoverCacheOptions(primary=PRIMARY, backup=BACKUP)


@pytest.fixture
def failover_cache(cache_options, shared_state, fake_connector, fake_clock):
    """FailoverCache wired to the fake connector, shared state and clock."""
    from failover_cache.infrastructure.cache.cache_manager import FailoverCache

    return FailoverCache(
        cache_options,
        shared_state=shared_state,
        connector=fake_connector,
        clock=fake_clock,
    )
