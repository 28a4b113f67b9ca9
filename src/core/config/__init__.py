"""
Configuration Module

This module provides centralized, type-safe configuration management
for the offline cache proxy.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: System-wide constants, enums, and default domain sets

Usage:
------
```python
from src.core.config import get_settings
from src.core.config.constants import RouteKind, GenerationState

settings = get_settings()

static_name = settings.cache.static_generation  # "app-static-v1"
origin = settings.routing.PROXY_ORIGIN
```

Environment Variables:
---------------------
Configuration is loaded from environment variables or `.env` file:

```bash
# Cache
CACHE_BACKEND=memory
CACHE_NAMESPACE=quran-app
CACHE_VERSION=v2.0

# Routing (JSON lists)
PROXY_ORIGIN=https://quran.example.org
ALLOWED_EXTERNAL_HOSTS='["api.quran.com", "fonts.gstatic.com"]'
LIVE_API_HOSTS='["api.quran.com"]'

# Network
FETCH_TIMEOUT=10

# Logging
LOG_LEVEL=INFO
LOG_FORMAT=json
```

Testing:
-------
```python
import os
from src.core.config import reload_settings

os.environ["CACHE_VERSION"] = "v9"
settings = reload_settings()
assert settings.cache.static_generation == "app-static-v9"
```

Author: System Architect
Date: 2025-12-05
"""

from src.core.config.constants import (
    ADMIN_COMMAND_ALIASES,
    CACHEABLE_METHOD,
    CACHEABLE_STATUS,
    DEFAULT_ALLOWED_EXTERNAL_HOSTS,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_LIVE_API_HOSTS,
    DEFAULT_STATIC_MANIFEST,
    HEADER_CACHE_SOURCE,
    HEADER_FETCH_MODE,
    HEADER_GENERATION,
    HEADER_REQUEST_ID,
    HEADER_ROUTE,
    AdminCommand,
    GenerationState,
    RequestMode,
    ResponseSource,
    RouteKind,
    Stage,
    TaskOutcome,
)
from src.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    "RouteKind",
    "RequestMode",
    "ResponseSource",
    "GenerationState",
    "AdminCommand",
    "TaskOutcome",
    "ADMIN_COMMAND_ALIASES",
    # Defaults
    "DEFAULT_ALLOWED_EXTERNAL_HOSTS",
    "DEFAULT_LIVE_API_HOSTS",
    "DEFAULT_STATIC_MANIFEST",
    "DEFAULT_FETCH_TIMEOUT",
    "CACHEABLE_METHOD",
    "CACHEABLE_STATUS",
    # HTTP headers
    "HEADER_REQUEST_ID",
    "HEADER_CACHE_SOURCE",
    "HEADER_ROUTE",
    "HEADER_GENERATION",
    "HEADER_FETCH_MODE",
]
