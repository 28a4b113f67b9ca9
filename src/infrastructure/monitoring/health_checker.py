#!/usr/bin/env python3
"""
Health Checker Module

Health checks for the offline cache proxy:
- Cache store backend connectivity (memory or Redis)
- State of the current static and runtime generations
- Latest background task outcomes

Status rules:
- healthy:   store reachable and static generation active
- degraded:  store reachable but static generation not active
             (install pending, failed, or cleared)
- unhealthy: store unreachable

Author: Senior Solution Architect
Date: 2025-12-05
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from src.core.config.constants import GenerationState
from src.core.config.settings import Settings
from src.core.exceptions import CacheStoreError
from src.core.logging.logger import get_logger
from src.infrastructure.cache.cache_store import CacheStore

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthChecker:
    """
    Health checker for the proxy components.

    STAGE-H: Health check orchestration

    Usage:
        checker = HealthChecker(settings, store, lifecycle, background)
        status = await checker.check_health()
    """

    def __init__(self, settings: Settings, store: CacheStore, lifecycle=None, background=None):
        self.settings = settings
        self._store = store
        self._lifecycle = lifecycle
        self._background = background

    async def check_health(self) -> dict[str, Any]:
        """
        Aggregated health status.

        STAGE-H.1: Quick health status

        Returns:
            Dict with status, timestamp, version and per-component details
        """
        components: dict[str, Any] = {}

        store_health = await self._store.health_check()
        components["cache_store"] = store_health
        store_ok = store_health.get("status") == "healthy"

        generations: dict[str, str] = {}
        if self._lifecycle is not None and store_ok:
            try:
                generations = await self._lifecycle.describe()
            except CacheStoreError as e:
                logger.warning(f"Generation listing failed: {e.message}", stage="H.1")
                store_ok = False
        components["generations"] = generations

        if self._background is not None:
            components["background_tasks"] = self._background.snapshot()

        static_state = generations.get(self.settings.cache.static_generation)
        if not store_ok:
            status = HealthStatus.UNHEALTHY
        elif static_state == GenerationState.ACTIVE.value:
            status = HealthStatus.HEALTHY
        else:
            status = HealthStatus.DEGRADED

        return {
            "status": status.value,
            "timestamp": _now(),
            "version": self.settings.app.APP_VERSION,
            "components": components,
        }

    async def liveness_check(self) -> dict[str, Any]:
        """
        Liveness probe. Does not touch any dependency.
        """
        return {
            "status": "alive",
            "timestamp": _now(),
            "version": self.settings.app.APP_VERSION,
        }

    async def readiness_check(self) -> dict[str, Any]:
        """
        Readiness probe: ready once the store answers.

        A degraded proxy (no installed static generation) still serves
        through the network, so it is reported ready.
        """
        store_health = await self._store.health_check()
        if store_health.get("status") == "healthy":
            return {"status": "ready", "timestamp": _now(), "version": self.settings.app.APP_VERSION}
        return {
            "status": "not_ready",
            "timestamp": _now(),
            "version": self.settings.app.APP_VERSION,
            "reason": store_health.get("error", "cache store unavailable"),
        }
