"""
Network Exceptions

Transport-level failures of the outbound fetch. A non-200 response is NOT a
transport failure; it is passed through to the caller.

Author: System Architect
Date: 2025-12-08
"""

from src.core.exceptions.base import OfflineCacheError


class TransportError(OfflineCacheError):
    """
    Raised when a network fetch could not complete.

    Common causes:
    - DNS resolution failure
    - Connection refused or reset
    - TLS handshake failure
    - Timeout (see FetchTimeoutError)

    Triggers the offline fallback for cache-first navigations and the
    stored-copy fallback for network-first requests.
    """
    pass


class FetchTimeoutError(TransportError):
    """Raised when a fetch exceeds the configured timeout."""
    pass
