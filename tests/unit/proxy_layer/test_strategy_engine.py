"""
Unit Tests for StrategyEngine

Covers cache-first and network-first retrieval, the offline fallback
document, store-failure tolerance and write ordering.
"""

import asyncio

import pytest

from src.core.config.constants import ResponseSource, RouteKind
from src.core.exceptions import FetchTimeoutError, TransportError
from src.infrastructure.cache.cache_store import CacheStore
from src.offline_proxy.routing import RouteDecision
from src.offline_proxy.services.strategy_engine import StrategyEngine
from tests.test_fixtures import (
    API_URL,
    ORIGIN,
    CacheTestFactory,
    FakeFetcher,
    FetcherTestFactory,
    RequestFactory,
    SnapshotFactory,
)

STATIC = "app-static-v1"
RUNTIME = "app-runtime-v1"
OFFLINE_URL = f"{ORIGIN}/offline.html"


def make_engine(store, fetcher, metrics=None, **kwargs) -> StrategyEngine:
    return StrategyEngine(store, fetcher, offline_fallback_url=OFFLINE_URL, metrics=metrics, **kwargs)


@pytest.mark.unit
class TestCacheFirst:
    async def test_hit_is_served_without_network(self, store, fake_fetcher):
        request = RequestFactory.asset("/app.js")
        await store.put(STATIC, request.identity, SnapshotFactory.ok(b"cached"))

        served = await make_engine(store, fake_fetcher).cache_first(request, STATIC)

        assert served.source is ResponseSource.CACHE
        assert served.body == b"cached"
        assert served.route is RouteKind.CACHE_FIRST
        assert fake_fetcher.calls == 0

    async def test_miss_fetches_and_stores(self, store):
        request = RequestFactory.asset("/app.js")
        fetcher = FakeFetcher({request.url: SnapshotFactory.ok(b"fresh")})
        engine = make_engine(store, fetcher)

        served = await engine.cache_first(request, STATIC)

        assert served.source is ResponseSource.NETWORK
        assert served.body == b"fresh"
        assert (await store.match(STATIC, request.identity)).body == b"fresh"

    async def test_second_request_is_a_hit(self, store):
        request = RequestFactory.asset("/app.js")
        fetcher = FakeFetcher({request.url: SnapshotFactory.ok(b"fresh")})
        engine = make_engine(store, fetcher)

        await engine.cache_first(request, STATIC)
        second = await engine.cache_first(request, STATIC)

        assert second.source is ResponseSource.CACHE
        assert fetcher.calls == 1

    async def test_changing_a_served_hit_does_not_touch_the_entry(self, store, fake_fetcher):
        request = RequestFactory.asset("/app.js")
        await store.put(STATIC, request.identity, SnapshotFactory.ok(b"js", "text/js"))

        served = await make_engine(store, fake_fetcher).cache_first(request, STATIC)
        served.snapshot.headers["content-type"] = "changed"

        stored = await store.match(STATIC, request.identity)
        assert stored.headers["content-type"] == "text/js"

    async def test_non_200_is_returned_but_not_stored(self, store, fake_fetcher):
        request = RequestFactory.asset("/missing.js")

        served = await make_engine(store, fake_fetcher).cache_first(request, STATIC)

        assert served.status_code == 404
        assert served.source is ResponseSource.NETWORK
        assert await store.match(STATIC, request.identity) is None

    async def test_asset_transport_failure_propagates(self, store):
        with pytest.raises(TransportError):
            await make_engine(store, FetcherTestFactory.offline()).cache_first(
                RequestFactory.asset("/app.js"), STATIC
            )

    async def test_navigation_failure_serves_offline_document(self, store):
        offline = RequestFactory.asset("/offline.html")
        await store.put(STATIC, offline.identity, SnapshotFactory.html(b"you are offline"))

        served = await make_engine(store, FetcherTestFactory.offline()).cache_first(
            RequestFactory.navigation("/surah/1"), STATIC
        )

        assert served.source is ResponseSource.OFFLINE
        assert served.body == b"you are offline"

    async def test_offline_document_found_in_any_generation(self, store):
        offline = RequestFactory.asset("/offline.html")
        await store.put("app-static-v0", offline.identity, SnapshotFactory.html(b"old offline"))

        served = await make_engine(store, FetcherTestFactory.offline()).cache_first(
            RequestFactory.navigation("/"), STATIC
        )

        assert served.body == b"old offline"

    async def test_preloaded_offline_document_wins(self, store):
        engine = make_engine(
            store, FetcherTestFactory.offline(), offline_fallback=SnapshotFactory.html(b"preloaded")
        )

        served = await engine.cache_first(RequestFactory.navigation("/"), STATIC)

        assert served.body == b"preloaded"

    async def test_navigation_without_offline_document_propagates(self, store):
        with pytest.raises(TransportError):
            await make_engine(store, FetcherTestFactory.offline()).cache_first(
                RequestFactory.navigation("/"), STATIC
            )

    async def test_navigation_timeout_uses_offline_document(self, store):
        request = RequestFactory.navigation("/index.html")
        fetcher = FetcherTestFactory.timing_out(request.url)
        await store.put(STATIC, RequestFactory.asset("/offline.html").identity, SnapshotFactory.html(b"off"))

        served = await make_engine(store, fetcher).cache_first(request, STATIC)

        assert served.source is ResponseSource.OFFLINE


@pytest.mark.unit
class TestNetworkFirst:
    async def test_network_success_is_stored(self, store):
        request = RequestFactory.api()
        fetcher = FakeFetcher({API_URL: SnapshotFactory.json(b'{"v": 2}')})

        served = await make_engine(store, fetcher).network_first(request, RUNTIME)

        assert served.source is ResponseSource.NETWORK
        assert served.generation == RUNTIME
        assert (await store.match(RUNTIME, request.identity)).body == b'{"v": 2}'

    async def test_network_is_consulted_even_when_cached(self, store):
        request = RequestFactory.api()
        await store.put(RUNTIME, request.identity, SnapshotFactory.json(b'{"v": 1}'))
        fetcher = FakeFetcher({API_URL: SnapshotFactory.json(b'{"v": 2}')})

        served = await make_engine(store, fetcher).network_first(request, RUNTIME)

        assert served.body == b'{"v": 2}'
        assert (await store.match(RUNTIME, request.identity)).body == b'{"v": 2}'

    async def test_transport_failure_serves_stale_copy(self, store):
        request = RequestFactory.api()
        await store.put(RUNTIME, request.identity, SnapshotFactory.json(b'{"v": 1}'))

        served = await make_engine(store, FetcherTestFactory.offline()).network_first(request, RUNTIME)

        assert served.source is ResponseSource.CACHE
        assert served.body == b'{"v": 1}'

    async def test_timeout_serves_stale_copy(self, store):
        request = RequestFactory.api()
        await store.put(RUNTIME, request.identity, SnapshotFactory.json(b"stale"))

        served = await make_engine(store, FetcherTestFactory.timing_out(API_URL)).network_first(
            request, RUNTIME
        )

        assert served.body == b"stale"

    async def test_transport_failure_and_miss_reraises(self, store):
        with pytest.raises(TransportError):
            await make_engine(store, FetcherTestFactory.offline()).network_first(
                RequestFactory.api(), RUNTIME
            )

    async def test_non_200_is_returned_and_cache_untouched(self, store):
        request = RequestFactory.api()
        await store.put(RUNTIME, request.identity, SnapshotFactory.json(b"good"))
        fetcher = FakeFetcher({API_URL: SnapshotFactory.status(500, b"error")})

        served = await make_engine(store, fetcher).network_first(request, RUNTIME)

        assert served.status_code == 500
        assert served.source is ResponseSource.NETWORK
        assert (await store.match(RUNTIME, request.identity)).body == b"good"

    async def test_post_is_never_stored(self, store):
        request = RequestFactory.post()
        fetcher = FakeFetcher({API_URL: SnapshotFactory.json()})

        served = await make_engine(store, fetcher).network_first(request, RUNTIME)

        assert served.status_code == 200
        assert await store.size(RUNTIME) == 0


@pytest.mark.unit
class TestStoreFailures:
    async def test_lookup_failure_treated_as_miss(self, mock_metrics):
        store = CacheStore(CacheTestFactory.failing_backend("get"))
        request = RequestFactory.asset()
        fetcher = FakeFetcher({request.url: SnapshotFactory.html()})

        served = await make_engine(store, fetcher, mock_metrics).cache_first(request, STATIC)

        assert served.source is ResponseSource.NETWORK
        mock_metrics.record_store_failure.assert_any_call("match")

    async def test_write_failure_still_returns_response(self, mock_metrics):
        store = CacheStore(CacheTestFactory.failing_backend("put"))
        fetcher = FakeFetcher({API_URL: SnapshotFactory.json(b"live")})

        served = await make_engine(store, fetcher, mock_metrics).network_first(
            RequestFactory.api(), RUNTIME
        )

        assert served.body == b"live"
        mock_metrics.record_store_failure.assert_called_once_with("put")

    async def test_fallback_lookup_failure_reraises_transport_error(self):
        store = CacheStore(CacheTestFactory.failing_backend("get"))

        with pytest.raises(TransportError):
            await make_engine(store, FetcherTestFactory.offline()).network_first(
                RequestFactory.api(), RUNTIME
            )


@pytest.mark.unit
class TestWriteOrdering:
    async def test_write_survives_caller_cancellation(self, store):
        request = RequestFactory.asset("/big.js")
        fetcher = FakeFetcher({request.url: SnapshotFactory.ok(b"big")})
        engine = make_engine(store, fetcher)
        release = asyncio.Event()
        original_put = store.put

        async def slow_put(*args):
            await release.wait()
            await original_put(*args)

        store.put = slow_put

        caller = asyncio.create_task(engine.cache_first(request, STATIC))
        for _ in range(5):
            await asyncio.sleep(0)
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller

        release.set()
        await engine.drain()

        assert (await store.match(STATIC, request.identity)).body == b"big"

    async def test_concurrent_identical_misses_both_succeed(self, store):
        request = RequestFactory.asset("/app.js")
        fetcher = FakeFetcher({request.url: SnapshotFactory.ok(b"js")}, delay=0.01)
        engine = make_engine(store, fetcher)

        first, second = await asyncio.gather(
            engine.cache_first(request, STATIC), engine.cache_first(request, STATIC)
        )

        assert first.body == second.body == b"js"
        assert await store.size(STATIC) == 1


@pytest.mark.unit
class TestDispatchAndMetrics:
    async def test_execute_routes_by_decision(self, store):
        fetcher = FakeFetcher({API_URL: SnapshotFactory.json()})
        engine = make_engine(store, fetcher)

        served = await engine.execute(
            RequestFactory.api(), RouteDecision(RouteKind.NETWORK_FIRST, RUNTIME)
        )

        assert served.route is RouteKind.NETWORK_FIRST

    async def test_execute_rejects_ignored(self, store, fake_fetcher):
        with pytest.raises(ValueError):
            await make_engine(store, fake_fetcher).execute(
                RequestFactory.post(), RouteDecision(RouteKind.IGNORED)
            )

    async def test_metrics_recorded(self, store, mock_metrics):
        request = RequestFactory.asset()
        fetcher = FakeFetcher({request.url: SnapshotFactory.html()})

        await make_engine(store, fetcher, mock_metrics).cache_first(request, STATIC)

        mock_metrics.record_cache_lookup.assert_called_once_with("cache-first", False)
        mock_metrics.record_strategy_result.assert_called_once_with("cache-first", "network")
        assert mock_metrics.record_fetch.call_args.args[0] == "ok"

    async def test_timeout_recorded_as_timeout(self, store, mock_metrics):
        request = RequestFactory.api()

        with pytest.raises(FetchTimeoutError):
            await make_engine(store, FetcherTestFactory.timing_out(API_URL), mock_metrics).network_first(
                request, RUNTIME
            )

        assert mock_metrics.record_fetch.call_args.args[0] == "timeout"
