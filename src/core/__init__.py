"""
Core Module

Foundational components: configuration, logging, exceptions and interfaces.
"""

from .exceptions import (
    CacheMissError,
    CacheStoreError,
    ConfigurationError,
    InstallIncompleteError,
    OfflineCacheError,
    TransportError,
)

__all__ = [
    "OfflineCacheError",
    "ConfigurationError",
    "CacheStoreError",
    "CacheMissError",
    "TransportError",
    "InstallIncompleteError",
]
