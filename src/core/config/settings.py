#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
offline cache proxy. All configuration is centralized here to ensure
consistency across modules.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- IDE autocomplete for all settings
- Easy testing with override mechanisms

Author: System Architect
Date: 2025-12-05
"""

import re
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.config.constants import (
    DEFAULT_ALLOWED_EXTERNAL_HOSTS,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_INSTALL_CONCURRENCY,
    DEFAULT_LIVE_API_HOSTS,
    DEFAULT_OFFLINE_FALLBACK_URL,
    DEFAULT_STATIC_MANIFEST,
)

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


class RedisSettings(BaseSettings):
    """
    Redis configuration for the shared generation backend.

    Only used when CACHE_BACKEND is "redis".
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Cache store configuration.

    STAGE-2: Generation naming and backend selection

    Generation names are derived from namespace + version so a deployment
    only has to bump CACHE_VERSION to roll every generation over.
    """

    CACHE_BACKEND: Literal["memory", "redis"] = Field(default="memory", description="Generation backend")
    CACHE_NAMESPACE: str = Field(default="app", description="Prefix for generation names")
    CACHE_VERSION: str = Field(default="v1", description="Deployment version of the cache")
    STATIC_CACHE_NAME: str | None = Field(default=None, description="Explicit static generation name")
    RUNTIME_CACHE_NAME: str | None = Field(default=None, description="Explicit runtime generation name")
    CACHE_MAX_ENTRIES_PER_GENERATION: int = Field(
        default=5000, ge=1, description="In-memory capacity of a single generation"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def static_generation(self) -> str:
        return self.STATIC_CACHE_NAME or f"{self.CACHE_NAMESPACE}-static-{self.CACHE_VERSION}"

    @property
    def runtime_generation(self) -> str:
        return self.RUNTIME_CACHE_NAME or f"{self.CACHE_NAMESPACE}-runtime-{self.CACHE_VERSION}"


class RoutingSettings(BaseSettings):
    """
    Route classification configuration.

    STAGE-1: Which requests are intercepted and with which strategy
    """

    PROXY_ORIGIN: str = Field(default="http://localhost:8000", description="The service's own origin")
    ALLOWED_EXTERNAL_HOSTS: list[str] = Field(
        default=list(DEFAULT_ALLOWED_EXTERNAL_HOSTS),
        description="Cross-origin hosts eligible for interception",
    )
    LIVE_API_HOSTS: list[str] = Field(
        default=list(DEFAULT_LIVE_API_HOSTS),
        description="Hosts served network-first (subset of the allow-list)",
    )
    RELAY_UNLISTED_HOSTS: bool = Field(
        default=False,
        description="Forward ignored requests to hosts outside the origin and the allow-list",
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class NetworkSettings(BaseSettings):
    """
    Outbound fetch configuration.

    STAGE-3: Network fetch timeouts and retries

    A fetch exceeding FETCH_TIMEOUT is treated as a transport failure.
    """

    FETCH_TIMEOUT: float = Field(default=DEFAULT_FETCH_TIMEOUT, gt=0, le=120, description="Fetch timeout in seconds")
    FETCH_MAX_ATTEMPTS: int = Field(default=1, ge=1, le=10, description="Attempts for idempotent fetches")
    FETCH_MAX_CONNECTIONS: int = Field(default=100, ge=1, description="Maximum pooled HTTP connections")
    FETCH_FOLLOW_REDIRECTS: bool = Field(default=True, description="Follow redirects like a browser fetch")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LifecycleSettings(BaseSettings):
    """
    Install / activate configuration.

    STAGE-LC: Static manifest and offline fallback document
    """

    STATIC_MANIFEST: list[str] = Field(
        default=list(DEFAULT_STATIC_MANIFEST), description="Assets preloaded at install"
    )
    OFFLINE_FALLBACK_URL: str | None = Field(
        default=DEFAULT_OFFLINE_FALLBACK_URL, description="Stored document served to offline navigations"
    )
    OFFLINE_FALLBACK_FILE: str | None = Field(
        default=None, description="Local HTML file served to offline navigations (takes precedence)"
    )
    INSTALL_CONCURRENCY: int = Field(default=DEFAULT_INSTALL_CONCURRENCY, ge=1, le=64)
    INSTALL_ON_STARTUP: bool = Field(default=True, description="Run install() during startup")
    ACTIVATE_AFTER_INSTALL: bool = Field(default=True, description="Run activate() right after a successful install")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class BackgroundTaskSettings(BaseSettings):
    """Background task retry configuration."""

    BACKGROUND_TASK_MAX_ATTEMPTS: int = Field(default=3, ge=1, le=10)
    BACKGROUND_TASK_RETRY_DELAY: float = Field(default=1.0, gt=0, le=60)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration

    Architectural Decision: structlog for production-grade logging
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Offline Cache Proxy", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from src.core.config.settings import get_settings

        settings = get_settings()
        static_name = settings.cache.static_generation
        timeout = settings.network.FETCH_TIMEOUT
    """

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    # Cache settings
    CACHE_BACKEND: Literal["memory", "redis"] = Field(default="memory", description="Generation backend")
    CACHE_NAMESPACE: str = Field(default="app", description="Prefix for generation names")
    CACHE_VERSION: str = Field(default="v1", description="Deployment version of the cache")
    STATIC_CACHE_NAME: str | None = Field(default=None, description="Explicit static generation name")
    RUNTIME_CACHE_NAME: str | None = Field(default=None, description="Explicit runtime generation name")
    CACHE_MAX_ENTRIES_PER_GENERATION: int = Field(default=5000, ge=1)

    # Routing settings
    PROXY_ORIGIN: str = Field(default="http://localhost:8000", description="The service's own origin")
    ALLOWED_EXTERNAL_HOSTS: list[str] = Field(default=list(DEFAULT_ALLOWED_EXTERNAL_HOSTS))
    LIVE_API_HOSTS: list[str] = Field(default=list(DEFAULT_LIVE_API_HOSTS))
    RELAY_UNLISTED_HOSTS: bool = Field(default=False)

    # Network settings
    FETCH_TIMEOUT: float = Field(default=DEFAULT_FETCH_TIMEOUT, gt=0, le=120)
    FETCH_MAX_ATTEMPTS: int = Field(default=1, ge=1, le=10)
    FETCH_MAX_CONNECTIONS: int = Field(default=100, ge=1)
    FETCH_FOLLOW_REDIRECTS: bool = Field(default=True)

    # Lifecycle settings
    STATIC_MANIFEST: list[str] = Field(default=list(DEFAULT_STATIC_MANIFEST))
    OFFLINE_FALLBACK_URL: str | None = Field(default=DEFAULT_OFFLINE_FALLBACK_URL)
    OFFLINE_FALLBACK_FILE: str | None = Field(default=None)
    INSTALL_CONCURRENCY: int = Field(default=DEFAULT_INSTALL_CONCURRENCY, ge=1, le=64)
    INSTALL_ON_STARTUP: bool = Field(default=True)
    ACTIVATE_AFTER_INSTALL: bool = Field(default=True)

    # Background task settings
    BACKGROUND_TASK_MAX_ATTEMPTS: int = Field(default=3, ge=1, le=10)
    BACKGROUND_TASK_RETRY_DELAY: float = Field(default=1.0, gt=0, le=60)

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Offline Cache Proxy", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for every API route")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("CACHE_NAMESPACE", "CACHE_VERSION")
    @classmethod
    def validate_name_part(cls, v):
        """Generation names end up in Redis keys and URLs."""
        if not _NAME_PATTERN.match(v):
            raise ValueError("must contain only letters, digits, '.', '_' or '-'")
        return v

    @field_validator("PROXY_ORIGIN")
    @classmethod
    def validate_origin(cls, v):
        """Origin must be scheme://host[:port] without a path."""
        if not re.match(r"^https?://[^/]+$", v.rstrip("/")):
            raise ValueError("PROXY_ORIGIN must look like http(s)://host[:port]")
        return v.rstrip("/")

    # Nested configuration objects
    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_BACKEND=self.CACHE_BACKEND,
            CACHE_NAMESPACE=self.CACHE_NAMESPACE,
            CACHE_VERSION=self.CACHE_VERSION,
            STATIC_CACHE_NAME=self.STATIC_CACHE_NAME,
            RUNTIME_CACHE_NAME=self.RUNTIME_CACHE_NAME,
            CACHE_MAX_ENTRIES_PER_GENERATION=self.CACHE_MAX_ENTRIES_PER_GENERATION,
        )

    @property
    def routing(self) -> RoutingSettings:
        """Get routing settings."""
        return RoutingSettings(
            PROXY_ORIGIN=self.PROXY_ORIGIN,
            ALLOWED_EXTERNAL_HOSTS=self.ALLOWED_EXTERNAL_HOSTS,
            LIVE_API_HOSTS=self.LIVE_API_HOSTS,
            RELAY_UNLISTED_HOSTS=self.RELAY_UNLISTED_HOSTS,
        )

    @property
    def network(self) -> NetworkSettings:
        """Get network settings."""
        return NetworkSettings(
            FETCH_TIMEOUT=self.FETCH_TIMEOUT,
            FETCH_MAX_ATTEMPTS=self.FETCH_MAX_ATTEMPTS,
            FETCH_MAX_CONNECTIONS=self.FETCH_MAX_CONNECTIONS,
            FETCH_FOLLOW_REDIRECTS=self.FETCH_FOLLOW_REDIRECTS,
        )

    @property
    def lifecycle(self) -> LifecycleSettings:
        """Get lifecycle settings."""
        return LifecycleSettings(
            STATIC_MANIFEST=self.STATIC_MANIFEST,
            OFFLINE_FALLBACK_URL=self.OFFLINE_FALLBACK_URL,
            OFFLINE_FALLBACK_FILE=self.OFFLINE_FALLBACK_FILE,
            INSTALL_CONCURRENCY=self.INSTALL_CONCURRENCY,
            INSTALL_ON_STARTUP=self.INSTALL_ON_STARTUP,
            ACTIVATE_AFTER_INSTALL=self.ACTIVATE_AFTER_INSTALL,
        )

    @property
    def background(self) -> BackgroundTaskSettings:
        """Get background task settings."""
        return BackgroundTaskSettings(
            BACKGROUND_TASK_MAX_ATTEMPTS=self.BACKGROUND_TASK_MAX_ATTEMPTS,
            BACKGROUND_TASK_RETRY_DELAY=self.BACKGROUND_TASK_RETRY_DELAY,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            DEBUG=self.DEBUG,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
