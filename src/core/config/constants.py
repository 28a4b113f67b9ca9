"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the offline cache proxy.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers and default domain sets
- Type-safe enums for route kinds, generation states and response sources
- Easy to update and track changes

Author: System Architect
Date: 2025-12-05
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for logging)
# ============================================================================


class Stage(str, Enum):
    """
    Request processing stages for structured logging.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}
    - SEQUENCE: Numeric order (0.0, 1.0, 2.0) or alphabetic prefix (LC, BG)
    - DESCRIPTIVE_NAME: Clear, uppercase description with underscores

    Examples:
        log_stage(logger, Stage.CACHE_LOOKUP, "Cache hit", key=identity.key)
    """

    # Per-request lifecycle (Sequential 1.0 - 4.0)
    ROUTE_CLASSIFICATION = "1.0_ROUTE_CLASSIFICATION"
    CACHE_LOOKUP = "2.0_CACHE_LOOKUP"
    NETWORK_FETCH = "3.0_NETWORK_FETCH"
    CACHE_WRITE = "4.0_CACHE_WRITE"
    OFFLINE_FALLBACK = "4.1_OFFLINE_FALLBACK"

    # Cross-cutting concerns (Alphabetic Prefixes)
    LIFECYCLE_INSTALL = "LC.1_INSTALL"
    LIFECYCLE_ACTIVATE = "LC.2_ACTIVATE"
    LIFECYCLE_CLEAR = "LC.3_CLEAR_ALL"
    ADMIN_COMMAND = "ADM_COMMAND"
    BACKGROUND_TASK = "BG_BACKGROUND_TASK"
    STORE = "ST_STORE_OPERATION"


# ============================================================================
# Routing
# ============================================================================


class RouteKind(str, Enum):
    """
    Classification of an inbound request.

    IGNORED: Not intercepted, goes straight to the network, never cached
    CACHE_FIRST: Served from the static generation when present
    NETWORK_FIRST: Fetched live, stored copy used only when offline
    """

    IGNORED = "ignored"
    CACHE_FIRST = "cache-first"
    NETWORK_FIRST = "network-first"


class RequestMode(str, Enum):
    """Fetch request modes, as sent by browsers in ``Sec-Fetch-Mode``."""

    NAVIGATE = "navigate"
    SAME_ORIGIN = "same-origin"
    CORS = "cors"
    NO_CORS = "no-cors"


class ResponseSource(str, Enum):
    """Where a served response came from."""

    NETWORK = "network"
    CACHE = "cache"
    OFFLINE = "offline"


# ============================================================================
# Generation Lifecycle
# ============================================================================


class GenerationState(str, Enum):
    """
    Lifecycle of a cache generation.

    absent -> populating -> active -> stale -> deleted
    """

    ABSENT = "absent"
    POPULATING = "populating"
    ACTIVE = "active"
    STALE = "stale"
    DELETED = "deleted"


class AdminCommand(str, Enum):
    """Commands accepted on the administrative channel."""

    ACTIVATE_NOW = "activate-now"
    CLEAR_ALL = "clear-all"


# Legacy message names still sent by older clients
ADMIN_COMMAND_ALIASES = {
    "skipWaiting": AdminCommand.ACTIVATE_NOW,
    "clearCache": AdminCommand.CLEAR_ALL,
}


class TaskOutcome(str, Enum):
    """Completion state of a background task."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# ============================================================================
# Default Domain Sets
# ============================================================================

# Hosts that may be intercepted even though they are cross-origin
DEFAULT_ALLOWED_EXTERNAL_HOSTS = (
    "api.quran.com",
    "api.aladhan.com",
    "cdn.jsdelivr.net",
    "api.bigdatacloud.net",
    "mp3quran.net",
    "fonts.googleapis.com",
    "fonts.gstatic.com",
    "raw.githubusercontent.com",
)

# Live API hosts served network-first (must be a subset of the allow-list)
DEFAULT_LIVE_API_HOSTS = (
    "api.quran.com",
    "api.aladhan.com",
    "cdn.jsdelivr.net",
    "api.bigdatacloud.net",
)

DEFAULT_STATIC_MANIFEST = (
    "/",
    "/index.html",
    "/styles.css",
    "/js/app.js",
    "/manifest.json",
    "/logo.png",
    "/splash.png",
    "/favicon.png",
    "/offline.html",
)

DEFAULT_OFFLINE_FALLBACK_URL = "/offline.html"

# ============================================================================
# Network
# ============================================================================

DEFAULT_FETCH_TIMEOUT = 10.0  # seconds, after which a fetch is a transport failure
DEFAULT_INSTALL_CONCURRENCY = 4
CACHEABLE_METHOD = "GET"
CACHEABLE_STATUS = 200

# Hop-by-hop headers never forwarded or stored
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",
        "content-encoding",
    }
)

# Retry settings
RETRY_BASE_DELAY = 0.5  # Base delay for exponential backoff (seconds)
RETRY_MAX_DELAY = 10.0  # Maximum delay for exponential backoff (seconds)

# ============================================================================
# Redis Key Prefixes
# ============================================================================

REDIS_KEY_GENERATIONS = "generations"
REDIS_KEY_GENERATION = "generation"

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_CACHE_SOURCE = "X-Cache-Source"
HEADER_ROUTE = "X-Route"
HEADER_GENERATION = "X-Cache-Generation"
HEADER_FETCH_MODE = "Sec-Fetch-Mode"
