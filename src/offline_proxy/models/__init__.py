"""Domain models for requests, responses and cache entries."""

from .http import (
    CacheEntry,
    ProxyRequest,
    RequestIdentity,
    ResponseSnapshot,
    ServedResponse,
    normalize_url,
    origin_of,
)

__all__ = [
    "CacheEntry",
    "ProxyRequest",
    "RequestIdentity",
    "ResponseSnapshot",
    "ServedResponse",
    "normalize_url",
    "origin_of",
]
