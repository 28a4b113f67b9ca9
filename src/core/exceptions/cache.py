"""
Cache-Related Exceptions

All exceptions raised by the cache store and its backends (in-memory, Redis).

Author: System Architect
Date: 2025-12-08
"""

from src.core.exceptions.base import OfflineCacheError


class CacheStoreError(OfflineCacheError):
    """
    Base exception for cache store read/write/delete failures.

    On the per-request serve path these are logged and counted, never
    propagated. During install they fail the install.
    """
    pass


class CacheConnectionError(CacheStoreError):
    """
    Raised when the shared backend (Redis) cannot be reached.

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    """
    pass


class StoreCapacityError(CacheStoreError):
    """Raised when a generation has reached its configured entry limit."""
    pass


class UncacheableEntryError(CacheStoreError):
    """
    Raised when a put violates the entry invariants.

    Only GET identities with status 200 snapshots may be stored.
    """
    pass


class CacheMissError(OfflineCacheError):
    """Raised when a lookup has no entry and no fallback is available."""
    pass


class GenerationNotFoundError(CacheMissError):
    """Raised when a named generation does not exist."""
    pass
