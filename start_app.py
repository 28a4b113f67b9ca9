#!/usr/bin/env python3
"""
Application Startup Script

Validates configuration, then starts the Offline Cache Proxy under uvicorn.

Usage:
    python start_app.py

Author: Senior Solution Architect
Date: 2025-12-05
"""

import sys

import uvicorn

from src.core.config.settings import get_settings
from src.core.exceptions import ConfigurationError
from src.offline_proxy.routing.route_policy import RoutePolicy


def main():
    """Start the application with configuration validation."""

    print("=" * 60)
    print("Offline Cache Proxy - Startup")
    print("=" * 60)
    print()

    # Step 1: Load and validate settings
    print("Step 1: Validating configuration...")
    try:
        settings = get_settings()
        RoutePolicy.from_settings(settings)
    except ConfigurationError as e:
        print(f"\n[X] Invalid configuration: {e.message}")
        for key, value in e.details.items():
            print(f"    {key}: {value}")
        sys.exit(1)

    print(f"[OK] Cache backend: {settings.cache.CACHE_BACKEND}")
    print(f"[OK] Static generation: {settings.cache.static_generation}")
    print(f"[OK] Runtime generation: {settings.cache.runtime_generation}")
    print()

    # Step 2: Start FastAPI application
    print("Step 2: Starting FastAPI application...")
    print("=" * 60)
    print()

    try:
        uvicorn.run(
            "src.application.app:create_app",
            factory=True,
            host=settings.app.API_HOST,
            port=settings.app.API_PORT,
            reload=settings.app.ENVIRONMENT == "development",
            log_level=settings.logging.LOG_LEVEL.lower(),
        )
    except KeyboardInterrupt:
        print("\n\n[!] Shutting down gracefully...")
        sys.exit(0)


if __name__ == "__main__":
    main()
