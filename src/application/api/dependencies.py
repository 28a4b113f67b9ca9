"""
FastAPI Dependency Injection Module

Every proxy component is built once per application by ``build_container``
during the lifespan startup and stored on ``app.state.container``. Routes
receive components through the ``Annotated`` dependency aliases at the bottom
of this module.

There is no module-level store or engine: two applications in one process
(as in the tests) never share cache state.

WIRING:
-------
    Settings
       ├── GenerationBackend (memory | redis)  ──► CacheStore
       ├── HttpFetcher (or an injected Fetcher)
       ├── RoutePolicy
       ├── StrategyEngine(store, fetcher, offline fallback)
       ├── LifecycleManager(store, fetcher, manifest)
       ├── CommandChannel(lifecycle)
       ├── BackgroundTaskRunner (tags: install, activate)
       ├── OfflineProxyService(policy, engine, fetcher)
       └── HealthChecker
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request

from src.core.config.settings import Settings
from src.core.exceptions import ConfigurationError, InstallIncompleteError
from src.core.interfaces.cache import GenerationBackend
from src.core.interfaces.network import Fetcher
from src.core.logging.logger import get_logger
from src.infrastructure.cache.cache_store import CacheStore
from src.infrastructure.cache.memory_backend import MemoryGenerationBackend
from src.infrastructure.cache.redis_backend import RedisGenerationBackend
from src.infrastructure.monitoring.health_checker import HealthChecker
from src.infrastructure.monitoring.metrics_collector import MetricsCollector, get_metrics_collector
from src.infrastructure.network.http_fetcher import FetcherConfig, HttpFetcher
from src.offline_proxy.models.http import ResponseSnapshot, normalize_url
from src.offline_proxy.routing.route_policy import RoutePolicy
from src.offline_proxy.services.background_tasks import BackgroundTaskRunner
from src.offline_proxy.services.command_channel import CommandChannel
from src.offline_proxy.services.lifecycle_manager import LifecycleManager, resolve_manifest_url
from src.offline_proxy.services.proxy_service import OfflineProxyService
from src.offline_proxy.services.strategy_engine import StrategyEngine

logger = get_logger(__name__)


# ============================================================================
# CONTAINER
# ============================================================================


@dataclass
class ProxyContainer:
    """All per-application proxy components."""

    settings: Settings
    store: CacheStore
    fetcher: Fetcher
    policy: RoutePolicy
    engine: StrategyEngine
    lifecycle: LifecycleManager
    commands: CommandChannel
    background: BackgroundTaskRunner
    service: OfflineProxyService
    health: HealthChecker
    metrics: MetricsCollector
    owns_fetcher: bool = False

    async def start(self) -> None:
        """
        Connect the store, then install and activate when configured.

        An install failure is logged and leaves the proxy running: requests
        are still served through the network, and install can be retried
        through the admin API.
        """
        await self.store.connect()

        lifecycle_settings = self.settings.lifecycle
        if not lifecycle_settings.INSTALL_ON_STARTUP:
            return

        try:
            await self.lifecycle.install()
        except InstallIncompleteError as e:
            logger.error(
                "Startup install incomplete, activation skipped",
                error=e.message,
                details=e.details,
            )
            return

        if lifecycle_settings.ACTIVATE_AFTER_INSTALL:
            await self.lifecycle.activate()

    async def stop(self) -> None:
        await self.background.shutdown()
        await self.engine.drain()
        if self.owns_fetcher and isinstance(self.fetcher, HttpFetcher):
            await self.fetcher.aclose()
        await self.store.close()


def build_backend(settings: Settings) -> GenerationBackend:
    """Storage backend named by CACHE_BACKEND."""
    cache = settings.cache
    if cache.CACHE_BACKEND == "redis":
        return RedisGenerationBackend(settings.redis, namespace=cache.CACHE_NAMESPACE)
    return MemoryGenerationBackend(max_entries_per_generation=cache.CACHE_MAX_ENTRIES_PER_GENERATION)


def load_offline_fallback(settings: Settings) -> ResponseSnapshot | None:
    """
    Read OFFLINE_FALLBACK_FILE into a snapshot.

    Raises:
        ConfigurationError: The configured file cannot be read
    """
    path = settings.lifecycle.OFFLINE_FALLBACK_FILE
    if not path:
        return None
    try:
        body = Path(path).read_bytes()
    except OSError as e:
        raise ConfigurationError.from_exception(
            e, message=f"Cannot read offline fallback file '{path}'", path=path
        )
    return ResponseSnapshot(
        status_code=200,
        headers={"content-type": "text/html; charset=utf-8"},
        body=body,
    )


def build_container(
    settings: Settings,
    fetcher: Fetcher | None = None,
    backend: GenerationBackend | None = None,
) -> ProxyContainer:
    """
    Wire every proxy component from settings.

    Args:
        settings: Application settings
        fetcher: Fetcher to use instead of an HttpFetcher (tests)
        backend: Storage backend to use instead of the configured one (tests)
    """
    metrics = get_metrics_collector()
    store = CacheStore(backend or build_backend(settings))

    owns_fetcher = fetcher is None
    if fetcher is None:
        fetcher = HttpFetcher(FetcherConfig.from_settings(settings.network))

    origin = settings.routing.PROXY_ORIGIN
    fallback_url = settings.lifecycle.OFFLINE_FALLBACK_URL
    if fallback_url:
        fallback_url = normalize_url(resolve_manifest_url(origin, fallback_url))

    policy = RoutePolicy.from_settings(settings)
    engine = StrategyEngine(
        store,
        fetcher,
        offline_fallback=load_offline_fallback(settings),
        offline_fallback_url=fallback_url,
        metrics=metrics,
    )
    lifecycle = LifecycleManager.from_settings(settings, store, fetcher, metrics=metrics)

    background = BackgroundTaskRunner(
        max_attempts=settings.background.BACKGROUND_TASK_MAX_ATTEMPTS,
        retry_delay=settings.background.BACKGROUND_TASK_RETRY_DELAY,
    )
    background.register("install", lifecycle.install)
    background.register("activate", lifecycle.activate)

    return ProxyContainer(
        settings=settings,
        store=store,
        fetcher=fetcher,
        policy=policy,
        engine=engine,
        lifecycle=lifecycle,
        commands=CommandChannel(lifecycle),
        background=background,
        service=OfflineProxyService(policy, engine, fetcher, metrics=metrics),
        health=HealthChecker(settings, store, lifecycle, background),
        metrics=metrics,
        owns_fetcher=owns_fetcher,
    )


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_container(request: Request) -> ProxyContainer:
    """
    Retrieve the container built during lifespan startup.

    Raises:
        RuntimeError: The application lifespan has not run
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError(
            "Proxy container not initialized. The application lifespan startup "
            "did not run (use 'with TestClient(app)' in tests)."
        )
    return container


def get_settings_dep(request: Request) -> Settings:
    return get_container(request).settings


def get_proxy_service(request: Request) -> OfflineProxyService:
    return get_container(request).service


def get_lifecycle(request: Request) -> LifecycleManager:
    return get_container(request).lifecycle


def get_command_channel(request: Request) -> CommandChannel:
    return get_container(request).commands


def get_background_runner(request: Request) -> BackgroundTaskRunner:
    return get_container(request).background


def get_health_checker(request: Request) -> HealthChecker:
    return get_container(request).health


# ============================================================================
# TYPE ALIASES FOR CLEANER ROUTE SIGNATURES
# ============================================================================

ContainerDep = Annotated[ProxyContainer, Depends(get_container)]
SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
ProxyServiceDep = Annotated[OfflineProxyService, Depends(get_proxy_service)]
LifecycleDep = Annotated[LifecycleManager, Depends(get_lifecycle)]
CommandChannelDep = Annotated[CommandChannel, Depends(get_command_channel)]
BackgroundRunnerDep = Annotated[BackgroundTaskRunner, Depends(get_background_runner)]
HealthCheckerDep = Annotated[HealthChecker, Depends(get_health_checker)]
