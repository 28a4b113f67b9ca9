"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import CacheTestFactory, FailingBackend, FakeRedis
from .fetcher_factory import FakeFetcher, FetcherTestFactory
from .request_factory import API_URL, CDN_URL, ORIGIN, RequestFactory, SnapshotFactory

__all__ = [
    "API_URL",
    "CDN_URL",
    "ORIGIN",
    "CacheTestFactory",
    "FailingBackend",
    "FakeFetcher",
    "FakeRedis",
    "FetcherTestFactory",
    "RequestFactory",
    "SnapshotFactory",
]
