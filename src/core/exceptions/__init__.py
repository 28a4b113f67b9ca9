"""
Exception Module

Structured exception hierarchy for the offline cache proxy.
All exceptions are organized by theme for better maintainability and debuggability.

Module Structure:
-----------------
- **base.py**: OfflineCacheError base class + ConfigurationError
- **cache.py**: Cache store exceptions (store failures, misses)
- **network.py**: Transport failures of the outbound fetch
- **lifecycle.py**: Install / activate failures
- **validation.py**: Command and request validation exceptions

Usage:
------
```python
from src.core.exceptions import CacheStoreError, TransportError

from src.core.exceptions.lifecycle import InstallIncompleteError
```

Author: System Architect
Date: 2025-12-08
"""

# Base exception
from src.core.exceptions.base import ConfigurationError, OfflineCacheError

# Cache exceptions
from src.core.exceptions.cache import (
    CacheConnectionError,
    CacheMissError,
    CacheStoreError,
    GenerationNotFoundError,
    StoreCapacityError,
    UncacheableEntryError,
)

# Lifecycle exceptions
from src.core.exceptions.lifecycle import (
    ActivationBlockedError,
    InstallIncompleteError,
    LifecycleError,
)

# Network exceptions
from src.core.exceptions.network import FetchTimeoutError, TransportError

# Validation exceptions
from src.core.exceptions.validation import (
    InvalidCommandError,
    InvalidRequestError,
    UpstreamNotAllowedError,
    ValidationError,
)

__all__ = [
    # Base
    "OfflineCacheError",
    "ConfigurationError",
    # Cache
    "CacheStoreError",
    "CacheConnectionError",
    "StoreCapacityError",
    "UncacheableEntryError",
    "CacheMissError",
    "GenerationNotFoundError",
    # Network
    "TransportError",
    "FetchTimeoutError",
    # Lifecycle
    "LifecycleError",
    "InstallIncompleteError",
    "ActivationBlockedError",
    # Validation
    "ValidationError",
    "InvalidCommandError",
    "InvalidRequestError",
    "UpstreamNotAllowedError",
]
