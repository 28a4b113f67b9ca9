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

from src.infrastructure.cache.cache_store import CacheStore  # noqa: E402
from src.infrastructure.cache.memory_backend import MemoryGenerationBackend  # noqa: E402
from tests.test_fixtures import FakeFetcher, FakeRedis  # noqa: E402

STATIC = "app-static-v1"
RUNTIME = "app-runtime-v1"


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """
    Real Settings for tests: memory backend, no startup install, small manifest.

    The .env file is ignored so a developer's local configuration never leaks
    into the test run.
    """
    from src.core.config.settings import Settings

    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        LOG_LEVEL="WARNING",
        LOG_FORMAT="console",
        CACHE_BACKEND="memory",
        CACHE_NAMESPACE="app",
        CACHE_VERSION="v1",
        PROXY_ORIGIN="http://localhost:8000",
        STATIC_MANIFEST=["/", "/index.html", "/app.js", "/offline.html"],
        OFFLINE_FALLBACK_URL="/offline.html",
        INSTALL_ON_STARTUP=False,
        ACTIVATE_AFTER_INSTALL=True,
        FETCH_TIMEOUT=2.0,
        BACKGROUND_TASK_MAX_ATTEMPTS=2,
        BACKGROUND_TASK_RETRY_DELAY=0.01,
    )


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Infrastructure Fixtures
# ============================================================================


@pytest.fixture
def memory_backend():
    return MemoryGenerationBackend()


@pytest.fixture
def store(memory_backend):
    """CacheStore over a fresh in-memory backend."""
    return CacheStore(memory_backend)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_fetcher():
    """Fetcher answering 404 to everything until responses are set."""
    return FakeFetcher()


@pytest.fixture
def mock_metrics():
    """MetricsCollector stand-in recording every call."""
    from src.infrastructure.monitoring.metrics_collector import MetricsCollector

    return MagicMock(spec=MetricsCollector)


@pytest.fixture
def generation_names():
    """Names of the current static and runtime generations."""
    return {"static": STATIC, "runtime": RUNTIME}
