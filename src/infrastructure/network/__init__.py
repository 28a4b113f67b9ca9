"""
Network Module

Outbound fetch capability used by the proxy strategies.
"""

from .http_fetcher import FetcherConfig, HttpFetcher

__all__ = ["FetcherConfig", "HttpFetcher"]
