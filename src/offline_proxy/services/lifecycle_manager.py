"""
Lifecycle Manager

Owns the life of cache generations across deployments.

GENERATION STATE MACHINE:
-------------------------
    absent ──install()──► populating ──all assets stored──► active
                              │                               │
                              │ failure (stays populating,    │ activate() of a
                              │ retry install)                │ newer version
                              ▼                               ▼
                          populating                        stale ──delete──► deleted

OPERATIONS:
-----------
- install():   pre-populate the static generation from the asset manifest.
               All-or-nothing: either every asset is stored or the call raises
               InstallIncompleteError and nothing was written by it.
- activate():  delete every generation except the current static and runtime
               ones, one at a time. Idempotent.
- clear_all(): delete every generation unconditionally.

All three are serialised by one asyncio.Lock so an install cannot interleave
with the deletions of an activate.

Author: System Architect
Date: 2025-12-13
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from src.core.config.constants import GenerationState, Stage
from src.core.config.settings import Settings
from src.core.exceptions import (
    ActivationBlockedError,
    CacheStoreError,
    InstallIncompleteError,
    TransportError,
)
from src.core.interfaces.network import Fetcher
from src.core.logging.logger import get_logger, log_stage
from src.infrastructure.cache.cache_store import CacheStore
from src.infrastructure.monitoring.metrics_collector import MetricsCollector
from src.offline_proxy.models.http import ProxyRequest, ResponseSnapshot

logger = get_logger(__name__)


# ============================================================================
# Reports
# ============================================================================


@dataclass
class InstallReport:
    """Outcome of a successful install."""

    generation: str
    stored: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"generation": self.generation, "stored": list(self.stored), "count": len(self.stored)}


@dataclass
class ActivationReport:
    """Generations removed and kept by one activate() call."""

    deleted: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"deleted": list(self.deleted), "kept": list(self.kept)}


def resolve_manifest_url(origin: str, asset: str) -> str:
    """Resolve a manifest entry against the service origin."""
    if asset.startswith(("http://", "https://")):
        return asset
    return f"{origin}/{asset.lstrip('/')}"


# ============================================================================
# Manager
# ============================================================================


class LifecycleManager:
    """
    Install / activate / clear-all over a CacheStore.

    Args:
        store: Cache store
        fetcher: Network fetch used by install
        static_generation: Name of the current static generation
        runtime_generation: Name of the current runtime generation
        manifest: Absolute URLs (or origin-relative paths) to pre-populate
        origin: Origin used to resolve relative manifest entries
        install_concurrency: Maximum simultaneous asset fetches during install
        metrics: Optional metrics collector
    """

    def __init__(
        self,
        store: CacheStore,
        fetcher: Fetcher,
        static_generation: str,
        runtime_generation: str,
        manifest: list[str] | tuple[str, ...] = (),
        origin: str = "",
        install_concurrency: int = 4,
        metrics: MetricsCollector | None = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.static_generation = static_generation
        self.runtime_generation = runtime_generation
        self.manifest = [resolve_manifest_url(origin, asset) for asset in manifest]
        self.install_concurrency = max(1, install_concurrency)
        self.metrics = metrics

        self._states: dict[str, GenerationState] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: CacheStore,
        fetcher: Fetcher,
        metrics: MetricsCollector | None = None,
    ) -> "LifecycleManager":
        return cls(
            store=store,
            fetcher=fetcher,
            static_generation=settings.cache.static_generation,
            runtime_generation=settings.cache.runtime_generation,
            manifest=settings.lifecycle.STATIC_MANIFEST,
            origin=settings.routing.PROXY_ORIGIN,
            install_concurrency=settings.lifecycle.INSTALL_CONCURRENCY,
            metrics=metrics,
        )

    @property
    def current_generations(self) -> frozenset[str]:
        return frozenset({self.static_generation, self.runtime_generation})

    def state_of(self, name: str) -> GenerationState:
        return self._states.get(name, GenerationState.ABSENT)

    # =========================================================================
    # Install
    # =========================================================================

    async def install(self) -> InstallReport:
        """
        Populate the static generation with every manifest asset.

        Every asset is fetched before anything is written; a single failed or
        non-200 fetch aborts the install with nothing stored.

        Raises:
            InstallIncompleteError: An asset could not be fetched or stored.
                The static generation stays populating.
        """
        async with self._lock:
            name = self.static_generation
            self._states[name] = GenerationState.POPULATING
            log_stage(
                logger, Stage.LIFECYCLE_INSTALL, "Install started",
                generation=name, assets=len(self.manifest),
            )

            try:
                generation = await self.store.open(name)
                fetched, failed = await self._fetch_manifest()
                if failed:
                    raise InstallIncompleteError(
                        f"{len(failed)} of {len(self.manifest)} manifest assets could not be fetched",
                        details={"failed_assets": failed}, generation=name,
                    ).with_suggestion("Fix the failing assets and retry install")

                for request, snapshot in fetched:
                    await generation.put(request.identity, snapshot)
            except CacheStoreError as e:
                self._record("install", "failure")
                log_stage(
                    logger, Stage.LIFECYCLE_INSTALL, "Install failed on store write",
                    level="error", generation=name, error=e.message,
                )
                raise InstallIncompleteError(
                    f"Storing manifest assets failed: {e.message}",
                    details={"generation": name, "store_error": e.to_dict()},
                ) from e
            except InstallIncompleteError as e:
                self._record("install", "failure")
                log_stage(
                    logger, Stage.LIFECYCLE_INSTALL, "Install incomplete", level="error",
                    generation=name, failed_assets=e.details.get("failed_assets"),
                )
                raise

            self._states[name] = GenerationState.ACTIVE
            self._record("install", "success")
            await self._update_gauge(name)
            log_stage(
                logger, Stage.LIFECYCLE_INSTALL, "Install completed",
                generation=name, stored=len(fetched),
            )
            return InstallReport(generation=name, stored=[request.url for request, _ in fetched])

    async def _fetch_manifest(self) -> tuple[list[tuple[ProxyRequest, ResponseSnapshot]], list[dict[str, Any]]]:
        semaphore = asyncio.Semaphore(self.install_concurrency)

        async def fetch_one(url: str):
            request = ProxyRequest.get(url)
            async with semaphore:
                try:
                    snapshot = await self.fetcher.fetch(request)
                except TransportError as e:
                    return request, None, e.message
            if not snapshot.ok:
                return request, None, f"status {snapshot.status_code}"
            return request, snapshot, None

        results = await asyncio.gather(*(fetch_one(url) for url in self.manifest))

        fetched = [(request, snapshot) for request, snapshot, _ in results if snapshot is not None]
        failed = [
            {"url": request.url, "reason": reason}
            for request, snapshot, reason in results
            if snapshot is None
        ]
        return fetched, failed

    # =========================================================================
    # Activate
    # =========================================================================

    async def activate(self, force: bool = False) -> ActivationReport:
        """
        Delete every generation other than the current static and runtime ones.

        Stale generations are deleted one at a time, each fully before the
        next. Calling activate twice deletes nothing the second time.

        Args:
            force: Activate even while the static generation is populating

        Raises:
            ActivationBlockedError: Static generation still populating and not forced
        """
        async with self._lock:
            if not force and self.state_of(self.static_generation) is GenerationState.POPULATING:
                self._record("activate", "blocked")
                raise ActivationBlockedError(
                    "Static generation is still populating",
                    generation=self.static_generation,
                ).with_suggestion("Retry install, or send the activate-now command to force")

            report = ActivationReport()
            try:
                names = await self.store.generation_names()
                for name in names:
                    if name in self.current_generations:
                        report.kept.append(name)
                        continue
                    self._states[name] = GenerationState.STALE
                    await self.store.delete_generation(name)
                    self._states[name] = GenerationState.DELETED
                    report.deleted.append(name)
                    if self.metrics:
                        self.metrics.forget_generation(name)
            except CacheStoreError:
                self._record("activate", "failure")
                raise

            self._record("activate", "success")
            log_stage(
                logger, Stage.LIFECYCLE_ACTIVATE, "Activation completed",
                deleted=report.deleted, kept=report.kept, forced=force,
            )
            return report

    # =========================================================================
    # Clear all
    # =========================================================================

    async def clear_all(self) -> list[str]:
        """Delete every generation. Returns the deleted names."""
        async with self._lock:
            deleted = []
            try:
                for name in await self.store.generation_names():
                    if await self.store.delete_generation(name):
                        deleted.append(name)
                    self._states[name] = GenerationState.DELETED
                    if self.metrics:
                        self.metrics.forget_generation(name)
            except CacheStoreError:
                self._record("clear_all", "failure")
                raise

            self._record("clear_all", "success")
            log_stage(logger, Stage.LIFECYCLE_CLEAR, "All generations cleared", deleted=deleted)
            return deleted

    # =========================================================================
    # Introspection
    # =========================================================================

    async def describe(self) -> dict[str, str]:
        """
        Map every known generation to its state.

        Both current generations are always listed; the runtime generation is
        absent until its first write and active once it holds entries.
        """
        names = set(await self.store.generation_names())
        states: dict[str, str] = {}

        for name in sorted(names | set(self._states) | self.current_generations):
            tracked = self._states.get(name)
            if name not in names:
                state = tracked if tracked is GenerationState.DELETED else GenerationState.ABSENT
            elif tracked in (GenerationState.POPULATING, GenerationState.ACTIVE, GenerationState.STALE):
                state = tracked
            elif name in self.current_generations:
                state = GenerationState.ACTIVE
            else:
                state = GenerationState.STALE
            states[name] = state.value
        return states

    async def generation_size(self, name: str) -> int:
        """Entry count of an existing generation (GenerationNotFoundError otherwise)."""
        return await self.store.size(name, must_exist=True)

    def _record(self, event: str, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_lifecycle_event(event, outcome)

    async def _update_gauge(self, name: str) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.set_generation_entries(name, await self.store.size(name))
        except CacheStoreError as e:
            logger.warning("Could not read generation size", generation=name, error=e.message)
