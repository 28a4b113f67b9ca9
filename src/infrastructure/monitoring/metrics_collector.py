#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

This module provides metrics for the offline cache proxy:
- Strategy results by strategy and response source
- Cache hit/miss counts per route kind
- Network fetch outcomes and latency
- Store failures by operation (logged and counted, never propagated)
- Lifecycle events (install / activate / clear-all)
- Entries per generation

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Histogram buckets for fetch latency percentiles

Author: Senior Solution Architect
Date: 2025-12-05
"""


from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from src.core.config.settings import get_settings
from src.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

STRATEGY_RESULTS = Counter(
    'offline_proxy_strategy_results_total',
    'Responses served, by strategy and source',
    ['strategy', 'source']  # source: network, cache, offline
)

CACHE_LOOKUPS = Counter(
    'offline_proxy_cache_lookups_total',
    'Cache lookups by strategy and result',
    ['strategy', 'result']  # hit, miss
)

FETCH_RESULTS = Counter(
    'offline_proxy_fetch_results_total',
    'Network fetch outcomes',
    ['outcome']  # ok, non_ok, transport_error, timeout
)

FETCH_DURATION = Histogram(
    'offline_proxy_fetch_duration_seconds',
    'Network fetch latency',
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

STORE_FAILURES = Counter(
    'offline_proxy_store_failures_total',
    'Cache store failures',
    ['operation']
)

LIFECYCLE_EVENTS = Counter(
    'offline_proxy_lifecycle_events_total',
    'Lifecycle operations by outcome',
    ['event', 'outcome']
)

GENERATION_ENTRIES = Gauge(
    'offline_proxy_generation_entries',
    'Entries per cache generation',
    ['generation']
)

APP_INFO = Info(
    'offline_proxy_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Usage:
        metrics = MetricsCollector()
        metrics.record_strategy_result("cache-first", "cache")
        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.settings = get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME,
            'cache_version': self.settings.cache.CACHE_VERSION,
        })

        logger.info("Metrics collector initialized", stage="M.0")

    # =========================================================================
    # Strategy Metrics
    # =========================================================================

    def record_strategy_result(self, strategy: str, source: str) -> None:
        """Record which source served a response."""
        STRATEGY_RESULTS.labels(strategy=strategy, source=source).inc()

    def record_cache_lookup(self, strategy: str, hit: bool) -> None:
        """Record cache hit or miss."""
        CACHE_LOOKUPS.labels(strategy=strategy, result="hit" if hit else "miss").inc()

    # =========================================================================
    # Network Metrics
    # =========================================================================

    def record_fetch(self, outcome: str, duration_seconds: float | None = None) -> None:
        """Record a fetch outcome and, when known, its latency."""
        FETCH_RESULTS.labels(outcome=outcome).inc()
        if duration_seconds is not None:
            FETCH_DURATION.observe(duration_seconds)

    # =========================================================================
    # Store Metrics
    # =========================================================================

    def record_store_failure(self, operation: str) -> None:
        """Record a store failure."""
        STORE_FAILURES.labels(operation=operation).inc()

    def set_generation_entries(self, generation: str, count: int) -> None:
        """Set the entry count of a generation."""
        GENERATION_ENTRIES.labels(generation=generation).set(count)

    def forget_generation(self, generation: str) -> None:
        """Drop the gauge series of a deleted generation."""
        try:
            GENERATION_ENTRIES.remove(generation)
        except KeyError:
            pass

    # =========================================================================
    # Lifecycle Metrics
    # =========================================================================

    def record_lifecycle_event(self, event: str, outcome: str) -> None:
        """Record install / activate / clear-all outcome."""
        LIFECYCLE_EVENTS.labels(event=event, outcome=outcome).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
