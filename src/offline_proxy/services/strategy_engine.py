"""
Strategy Engine

Executes the two retrieval strategies of the proxy against a CacheStore and a
Fetcher.

CACHE-FIRST (static assets):
----------------------------
┌──────────────┐  hit   ┌────────────────────────────┐
│ cache lookup │ ─────► │ return stored snapshot     │
└──────────────┘        └────────────────────────────┘
       │ miss
       ▼
┌──────────────┐  200   ┌────────────────────────────┐
│ network fetch│ ─────► │ store clone, then return   │
└──────────────┘        └────────────────────────────┘
       │ transport failure
       ▼
  navigation? ── yes ──► offline fallback document (if one exists)
       │ no
       ▼
  TransportError propagates

NETWORK-FIRST (live API calls):
-------------------------------
┌──────────────┐  any status  ┌─────────────────────────────────┐
│ network fetch│ ───────────► │ 200: store clone; then return   │
└──────────────┘              └─────────────────────────────────┘
       │ transport failure
       ▼
  cache lookup ── hit ──► stale snapshot (source = cache)
       │ miss
       ▼
  TransportError propagates

STORE FAILURES:
---------------
A CacheStoreError while reading or writing is logged and counted, then the
request proceeds as if the entry were absent (read) or as if the write had
succeeded (write). Store failures never fail a serve path.

WRITE ORDERING:
---------------
The store write completes before the response is returned, so a second
request for the same key issued after the first returns finds the entry.
The write runs in its own task under ``asyncio.shield``: a caller that is
cancelled mid-write does not abort the write.

Author: System Architect
Date: 2025-12-13
"""

import asyncio
import time

from src.core.config.constants import ResponseSource, RouteKind, Stage
from src.core.exceptions import CacheStoreError, FetchTimeoutError, TransportError
from src.core.interfaces.network import Fetcher
from src.core.logging.logger import get_logger, log_stage
from src.infrastructure.cache.cache_store import CacheStore
from src.infrastructure.monitoring.metrics_collector import MetricsCollector
from src.offline_proxy.models.http import (
    ProxyRequest,
    RequestIdentity,
    ResponseSnapshot,
    ServedResponse,
)
from src.offline_proxy.routing.route_policy import RouteDecision

logger = get_logger(__name__)


class StrategyEngine:
    """
    Cache-first and network-first retrieval.

    Args:
        store: Generation-partitioned cache store
        fetcher: Network fetch implementation
        offline_fallback: Pre-loaded offline document for failed navigations
        offline_fallback_url: URL whose stored entry (in any generation) serves
            as the offline document when no snapshot was pre-loaded
        metrics: Optional metrics collector
    """

    def __init__(
        self,
        store: CacheStore,
        fetcher: Fetcher,
        offline_fallback: ResponseSnapshot | None = None,
        offline_fallback_url: str | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.offline_fallback = offline_fallback
        self.offline_fallback_url = offline_fallback_url
        self.metrics = metrics
        self._pending_writes: set[asyncio.Task] = set()

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def execute(self, request: ProxyRequest, decision: RouteDecision) -> ServedResponse:
        """Run the strategy named by a route decision."""
        if decision.kind is RouteKind.CACHE_FIRST:
            return await self.cache_first(request, decision.generation)
        if decision.kind is RouteKind.NETWORK_FIRST:
            return await self.network_first(request, decision.generation)
        raise ValueError(f"No strategy for route kind '{decision.kind.value}'")

    # =========================================================================
    # Strategies
    # =========================================================================

    async def cache_first(self, request: ProxyRequest, generation: str) -> ServedResponse:
        """
        Serve from the cache, falling back to the network on a miss.

        Raises:
            TransportError: Miss plus transport failure, and no offline
                document applies
        """
        route = RouteKind.CACHE_FIRST

        cached = await self._lookup(generation, request.identity, route)
        if cached is not None:
            return self._served(cached, ResponseSource.CACHE, route, generation)

        try:
            snapshot = await self._fetch(request)
        except TransportError as e:
            if request.is_navigation:
                fallback = await self._offline_document()
                if fallback is not None:
                    log_stage(
                        logger, Stage.OFFLINE_FALLBACK, "Serving offline document",
                        level="warning", url=request.url, error=e.message,
                    )
                    return self._served(fallback, ResponseSource.OFFLINE, route, generation)
            raise

        if snapshot.ok and request.identity.is_cacheable:
            await self._store(generation, request.identity, snapshot)
        return self._served(snapshot, ResponseSource.NETWORK, route, generation)

    async def network_first(self, request: ProxyRequest, generation: str) -> ServedResponse:
        """
        Serve from the network, falling back to the cache on transport failure.

        A non-200 response is a valid network answer and is returned as-is;
        only a transport failure consults the cache.

        Raises:
            TransportError: Transport failure and no stored copy
        """
        route = RouteKind.NETWORK_FIRST

        try:
            snapshot = await self._fetch(request)
        except TransportError as e:
            cached = await self._lookup(generation, request.identity, route)
            if cached is None:
                log_stage(
                    logger, Stage.NETWORK_FETCH, "Network failed and no cached copy",
                    level="warning", url=request.url, generation=generation,
                )
                raise
            log_stage(
                logger, Stage.CACHE_LOOKUP, "Serving stored copy after network failure",
                url=request.url, generation=generation, error=e.message,
            )
            return self._served(cached, ResponseSource.CACHE, route, generation)

        if snapshot.ok and request.identity.is_cacheable:
            await self._store(generation, request.identity, snapshot)
        return self._served(snapshot, ResponseSource.NETWORK, route, generation)

    async def drain(self) -> None:
        """Wait for writes whose callers were cancelled."""
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _fetch(self, request: ProxyRequest) -> ResponseSnapshot:
        started = time.perf_counter()
        try:
            snapshot = await self.fetcher.fetch(request)
        except FetchTimeoutError:
            self._record_fetch("timeout", started)
            raise
        except TransportError:
            self._record_fetch("transport_error", started)
            raise
        self._record_fetch("ok" if snapshot.ok else "non_ok", started)
        return snapshot

    def _record_fetch(self, outcome: str, started: float) -> None:
        if self.metrics:
            self.metrics.record_fetch(outcome, time.perf_counter() - started)

    async def _lookup(
        self, generation: str, identity: RequestIdentity, route: RouteKind
    ) -> ResponseSnapshot | None:
        try:
            snapshot = await self.store.match(generation, identity)
        except CacheStoreError as e:
            self._store_failed("match", e, generation=generation, key=identity.key)
            return None

        hit = snapshot is not None
        if self.metrics:
            self.metrics.record_cache_lookup(route.value, hit)
        log_stage(
            logger, Stage.CACHE_LOOKUP, "Cache hit" if hit else "Cache miss", level="debug",
            key=identity.key, generation=generation,
        )
        return snapshot

    async def _store(self, generation: str, identity: RequestIdentity, snapshot: ResponseSnapshot) -> None:
        """Write a clone of the snapshot, shielded from caller cancellation."""
        task = asyncio.create_task(self._write(generation, identity, snapshot.clone()))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)
        await asyncio.shield(task)

    async def _write(self, generation: str, identity: RequestIdentity, snapshot: ResponseSnapshot) -> None:
        try:
            await self.store.put(generation, identity, snapshot)
        except CacheStoreError as e:
            self._store_failed("put", e, generation=generation, key=identity.key)
            return
        log_stage(
            logger, Stage.CACHE_WRITE, "Response stored", level="debug",
            key=identity.key, generation=generation,
        )

    async def _offline_document(self) -> ResponseSnapshot | None:
        if self.offline_fallback is not None:
            return self.offline_fallback
        if not self.offline_fallback_url:
            return None
        identity = RequestIdentity(method="GET", url=self.offline_fallback_url)
        try:
            return await self.store.match_any(identity)
        except CacheStoreError as e:
            self._store_failed("match_any", e, key=identity.key)
            return None

    def _store_failed(self, operation: str, error: CacheStoreError, **context) -> None:
        log_stage(
            logger, Stage.STORE, "Cache store failure ignored", level="error",
            operation=operation, error=error.message, error_type=type(error).__name__, **context,
        )
        if self.metrics:
            self.metrics.record_store_failure(operation)

    def _served(
        self, snapshot: ResponseSnapshot, source: ResponseSource, route: RouteKind, generation: str
    ) -> ServedResponse:
        if self.metrics:
            self.metrics.record_strategy_result(route.value, source.value)
        return ServedResponse(snapshot=snapshot, source=source, route=route, generation=generation)
