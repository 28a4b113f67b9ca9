"""
Fetcher Test Doubles

FakeFetcher answers from a URL table and records every request it saw.
"""

import asyncio

from src.core.exceptions import FetchTimeoutError, TransportError
from src.offline_proxy.models.http import ProxyRequest, ResponseSnapshot, normalize_url


class FakeFetcher:
    """
    Scriptable Fetcher.

    - ``responses[url]`` is a ResponseSnapshot or an exception instance to raise
    - unknown URLs answer 404
    - ``offline = True`` makes every fetch raise TransportError
    - ``delay`` sleeps before answering (for concurrency tests)
    """

    def __init__(self, responses: dict | None = None, delay: float = 0.0):
        self.responses = {normalize_url(url): value for url, value in (responses or {}).items()}
        self.requests: list[ProxyRequest] = []
        self.offline = False
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    def set(self, url: str, value) -> None:
        self.responses[normalize_url(url)] = value

    @property
    def calls(self) -> int:
        return len(self.requests)

    def urls(self) -> list[str]:
        return [request.url for request in self.requests]

    async def fetch(self, request: ProxyRequest) -> ResponseSnapshot:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.offline:
                raise TransportError("network unreachable", details={"url": request.url})
            value = self.responses.get(request.url)
            if value is None:
                return ResponseSnapshot(status_code=404, headers={}, body=b"not found")
            if isinstance(value, BaseException):
                raise value
            return value
        finally:
            self.in_flight -= 1


class FetcherTestFactory:
    """Factory for common fetcher set-ups."""

    @staticmethod
    def serving(responses: dict) -> FakeFetcher:
        return FakeFetcher(responses)

    @staticmethod
    def offline() -> FakeFetcher:
        fetcher = FakeFetcher()
        fetcher.offline = True
        return fetcher

    @staticmethod
    def timing_out(url: str) -> FakeFetcher:
        return FakeFetcher({url: FetchTimeoutError("timed out", details={"url": url})})
