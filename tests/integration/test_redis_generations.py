"""
Integration Tests for the Redis generation backend

Runs against a real Redis server; skipped unless USE_REAL_REDIS=1.
"""

import uuid

import pytest

from src.core.config.settings import RedisSettings
from src.infrastructure.cache.cache_store import CacheStore
from src.infrastructure.cache.redis_backend import RedisGenerationBackend
from src.offline_proxy.services.lifecycle_manager import LifecycleManager
from tests.test_fixtures import ORIGIN, FakeFetcher, RequestFactory, SnapshotFactory


@pytest.fixture
async def redis_store(use_real_redis):
    if not use_real_redis:
        pytest.skip("Set USE_REAL_REDIS=1 to run against a real Redis server")

    store = CacheStore(RedisGenerationBackend(RedisSettings(), namespace=f"test-{uuid.uuid4().hex[:8]}"))
    await store.connect()
    yield store
    for name in await store.generation_names():
        await store.delete_generation(name)
    await store.close()


@pytest.mark.integration
class TestRedisGenerations:
    async def test_entries_survive_a_second_store(self, redis_store):
        request = RequestFactory.asset("/index.html")
        await redis_store.put("app-static-v1", request.identity, SnapshotFactory.html(b"shared"))

        found = await redis_store.match("app-static-v1", request.identity)

        assert found.body == b"shared"

    async def test_install_then_activate(self, redis_store):
        fetcher = FakeFetcher({f"{ORIGIN}/": SnapshotFactory.html(), f"{ORIGIN}/app.js": SnapshotFactory.ok()})
        await redis_store.open("app-static-v0")
        manager = LifecycleManager(
            redis_store, fetcher, "app-static-v1", "app-runtime-v1", manifest=["/", "/app.js"], origin=ORIGIN
        )

        await manager.install()
        report = await manager.activate()

        assert report.deleted == ["app-static-v0"]
        assert await redis_store.size("app-static-v1") == 2
