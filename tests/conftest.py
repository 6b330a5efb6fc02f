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

from tests.test_fixtures.cache_factory import CacheTestFactory, FakeClock, FakeRemoteStore  # noqa: E402

# ============================================================================
# Mock Configuration Fixtures
# ============================================================================


@pytest.fixture
def mock_settings():
    """
    Mock application settings for testing.

    Returns a MagicMock with common settings attributes.
    """
    from piano_cache.core.config.settings import Settings

    settings = MagicMock(spec=Settings)

    settings.logging.LOG_LEVEL = "INFO"
    settings.logging.LOG_FORMAT = "json"

    settings.app.ENVIRONMENT = "test"
    settings.app.APP_VERSION = "1.0.0-test"
    settings.app.APP_NAME = "Piano Cache Test"

    return settings


@pytest.fixture
def test_settings():
    """Real Settings with remote configuration, isolated from the environment."""
    return CacheTestFactory.settings()


# ============================================================================
# Environment-Based Integration Toggles
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def fake_clock():
    """Manually advanced clock shared by the fallback store and state machine."""
    return FakeClock()


@pytest.fixture
def fake_remote(fake_clock) -> FakeRemoteStore:
    """Healthy, configured remote store stand-in."""
    return CacheTestFactory.remote_store(clock=fake_clock)


@pytest.fixture
async def cache_service(fake_remote, fake_clock):
    """CacheService (latch policy) wired to a healthy fake remote store."""
    service = CacheTestFactory.service(remote=fake_remote, clock=fake_clock)
    yield service
    await service.close()


@pytest.fixture
async def probing_cache_service(fake_remote, fake_clock):
    """CacheService with the probe recovery policy (30s interval)."""
    service = CacheTestFactory.service(
        remote=fake_remote, clock=fake_clock, CACHE_RECOVERY_POLICY="probe", CACHE_RECOVERY_INTERVAL=30.0
    )
    yield service
    await service.close()


@pytest.fixture
async def memory_only_cache_service(fake_clock):
    """CacheService without remote configuration."""
    remote = CacheTestFactory.remote_store(configured=False, clock=fake_clock)
    service = CacheTestFactory.service(remote=remote, clock=fake_clock, REDIS_URL=None, REDIS_TOKEN=None)
    yield service
    await service.close()


@pytest.fixture
def reset_global_cache():
    """Drop the global cache service before and after the test."""
    from piano_cache.infrastructure.cache.cache_manager import reset_cache_service

    reset_cache_service()
    yield
    reset_cache_service()
