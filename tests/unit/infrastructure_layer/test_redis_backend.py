"""
Unit Tests for RedisGenerationBackend

Runs the backend against an in-memory fake of the redis.asyncio client.
"""

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from src.core.exceptions import CacheConnectionError, CacheStoreError
from src.infrastructure.cache.cache_store import CacheStore
from src.infrastructure.cache.redis_backend import RedisGenerationBackend
from src.offline_proxy.models.http import CacheEntry
from tests.test_fixtures import RequestFactory, SnapshotFactory

STATIC = "app-static-v1"


@pytest.fixture
async def backend(fake_redis):
    backend = RedisGenerationBackend(namespace="quran", client=fake_redis)
    await backend.connect()
    return backend


def entry(path: str = "/index.html", body: bytes = b"<html/>") -> CacheEntry:
    return CacheEntry(identity=RequestFactory.asset(path).identity, snapshot=SnapshotFactory.html(body))


@pytest.mark.unit
class TestRedisLayout:
    async def test_put_registers_generation_and_stores_hash(self, backend, fake_redis):
        await backend.put(STATIC, entry())

        assert fake_redis.sets["quran:generations"] == {STATIC}
        stored = fake_redis.hashes[f"quran:generation:{STATIC}"]
        assert list(stored) == ["GET http://localhost:8000/index.html"]
        assert orjson.loads(stored["GET http://localhost:8000/index.html"])["snapshot"]["status_code"] == 200

    async def test_put_uses_single_pipeline(self, backend, fake_redis):
        await backend.put(STATIC, entry())

        assert fake_redis.executed_pipelines == 1

    async def test_get_round_trips_body(self, backend):
        await backend.put(STATIC, entry(body=b"\x00binary\xff"))

        found = await backend.get(STATIC, "GET http://localhost:8000/index.html")

        assert found.snapshot.body == b"\x00binary\xff"
        assert found.identity.method == "GET"

    async def test_get_missing_returns_none(self, backend):
        assert await backend.get(STATIC, "GET http://localhost:8000/nope") is None

    async def test_generation_names_sorted(self, backend):
        await backend.create_generation("b")
        await backend.create_generation("a")

        assert await backend.generation_names() == ["a", "b"]

    async def test_delete_generation_removes_name_and_entries(self, backend, fake_redis):
        await backend.put(STATIC, entry())

        assert await backend.delete_generation(STATIC) is True
        assert STATIC not in fake_redis.sets.get("quran:generations", set())
        assert f"quran:generation:{STATIC}" not in fake_redis.hashes
        assert await backend.delete_generation(STATIC) is False

    async def test_keys_and_count(self, backend):
        await backend.put(STATIC, entry("/a"))
        await backend.put(STATIC, entry("/b"))

        assert sorted(await backend.keys(STATIC)) == [
            "GET http://localhost:8000/a",
            "GET http://localhost:8000/b",
        ]
        assert await backend.count(STATIC) == 2

    async def test_works_beneath_cache_store(self, fake_redis):
        store = CacheStore(RedisGenerationBackend(namespace="quran", client=fake_redis))
        await store.connect()
        request = RequestFactory.asset()

        await store.put(STATIC, request.identity, SnapshotFactory.ok(b"shared"))

        assert (await store.match(STATIC, request.identity)).body == b"shared"
        assert await store.generation_names() == [STATIC]


@pytest.mark.unit
class TestRedisFailures:
    async def test_connect_failure_raises_connection_error(self, fake_redis):
        fake_redis.fail_with = RedisConnectionError("refused")
        backend = RedisGenerationBackend(client=fake_redis)

        with pytest.raises(CacheConnectionError):
            await backend.connect()

    async def test_use_before_connect(self):
        backend = RedisGenerationBackend()

        with pytest.raises(CacheConnectionError) as exc_info:
            await backend.generation_names()

        assert "suggestion" in exc_info.value.details

    @pytest.mark.parametrize(
        "operation,args",
        [
            ("generation_names", ()),
            ("has_generation", (STATIC,)),
            ("create_generation", (STATIC,)),
            ("delete_generation", (STATIC,)),
            ("get", (STATIC, "GET http://localhost:8000/")),
            ("keys", (STATIC,)),
            ("count", (STATIC,)),
        ],
    )
    async def test_redis_errors_become_store_errors(self, backend, fake_redis, operation, args):
        fake_redis.fail_with = RedisError("boom")

        with pytest.raises(CacheStoreError) as exc_info:
            await getattr(backend, operation)(*args)

        assert exc_info.value.details["operation"] == operation

    async def test_put_failure_becomes_store_error(self, backend, fake_redis):
        fake_redis.fail_with = RedisError("boom")

        with pytest.raises(CacheStoreError):
            await backend.put(STATIC, entry())

    async def test_corrupt_entry_raises_store_error(self, backend, fake_redis):
        fake_redis.hashes[f"quran:generation:{STATIC}"] = {"GET http://localhost:8000/": "not json"}

        with pytest.raises(CacheStoreError) as exc_info:
            await backend.get(STATIC, "GET http://localhost:8000/")

        assert exc_info.value.message == "Corrupt cache entry"

    async def test_health_check(self, backend, fake_redis):
        assert (await backend.health_check())["status"] == "healthy"

        fake_redis.fail_with = RedisError("down")

        assert (await backend.health_check())["status"] == "unhealthy"

    async def test_disconnect_closes_client(self, backend, fake_redis):
        await backend.disconnect()

        assert fake_redis.closed is True
        assert (await backend.health_check())["status"] == "unhealthy"
