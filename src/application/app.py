#!/usr/bin/env python3
"""
FastAPI Application Entry Point

This is the main entry point for the Offline Cache Proxy.
It configures the FastAPI application, middleware, and routes.

Author: Senior Solution Architect
Date: 2025-12-05
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.application.api.dependencies import build_container
from src.application.api.middleware import setup_middleware
from src.application.api.routes.admin import router as admin_router
from src.application.api.routes.health import router as health_router
from src.application.api.routes.proxy import router as proxy_router
from src.core.config.settings import Settings, get_settings
from src.core.interfaces.cache import GenerationBackend
from src.core.interfaces.network import Fetcher
from src.core.logging.logger import get_logger, setup_logging

logger = get_logger(__name__)


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    settings: Settings | None = None,
    fetcher: Fetcher | None = None,
    backend: GenerationBackend | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment
        fetcher: Fetcher to use instead of an HttpFetcher
        backend: Storage backend to use instead of the configured one

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Build the proxy container, connect the store, install and activate.
        """
        setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)
        logger.info(
            "Starting Offline Cache Proxy",
            environment=settings.app.ENVIRONMENT,
            version=settings.app.APP_VERSION,
            cache_backend=settings.cache.CACHE_BACKEND,
            static_generation=settings.cache.static_generation,
            runtime_generation=settings.cache.runtime_generation,
        )

        container = build_container(settings, fetcher=fetcher, backend=backend)
        app.state.container = container
        try:
            await container.start()
            logger.info("Application startup complete")
            yield
        finally:
            logger.info("Shutting down application")
            await container.stop()
            app.state.container = None
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Caching proxy with cache-first and network-first strategies",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    setup_middleware(app, settings)

    # All endpoints are prefixed with API_BASE_PATH (default: /api/v1)
    base_path = settings.API_BASE_PATH
    app.include_router(health_router, prefix=base_path)
    app.include_router(proxy_router, prefix=base_path)
    app.include_router(admin_router, prefix=base_path)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": f"{base_path}/health",
        }

    return app


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.application.app:create_app",
        factory=True,
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
