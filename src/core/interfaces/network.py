"""
Fetcher Protocol

The network fetch capability the proxy core depends on. The core treats it
as opaque: a fetch either returns a response snapshot (any status) or raises
TransportError.

Author: System Architect
Date: 2025-12-08
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from src.offline_proxy.models.http import ProxyRequest, ResponseSnapshot


@runtime_checkable
class Fetcher(Protocol):
    """
    Protocol for outbound network fetches.

    Implementations:
    - HttpFetcher: httpx-based client with timeout and retries

    Usage in tests:
        class FakeFetcher:
            async def fetch(self, request):
                return ResponseSnapshot(status_code=200, body=b"ok")
    """

    async def fetch(self, request: "ProxyRequest") -> "ResponseSnapshot":
        """
        Perform the request against the network.

        Raises:
            TransportError: If the fetch could not complete (DNS, connect, timeout)
        """
        ...
