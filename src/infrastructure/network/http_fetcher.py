"""
HTTP Fetcher

Production network fetch for the proxy, built on httpx.AsyncClient.

RESILIENCE LAYERS:
------------------
1. **Connection Pooling**: Reuse HTTP connections across requests
2. **Bounded Timeout**: A fetch never waits longer than FETCH_TIMEOUT;
   a timeout is a transport failure, which is what lets network-first fall
   back to the stored copy instead of hanging
3. **Retry with Backoff**: Idempotent GETs may be retried on transport
   errors (FETCH_MAX_ATTEMPTS, default 1 = no retry)

ERROR MAPPING:
--------------
httpx.TimeoutException  -> FetchTimeoutError
httpx.TransportError    -> TransportError
Any HTTP status         -> returned as a ResponseSnapshot (never raised)

LIFECYCLE MANAGEMENT:
---------------------
```python
async with HttpFetcher(FetcherConfig(timeout=5.0)) as fetcher:
    snapshot = await fetcher.fetch(ProxyRequest.get("https://api.quran.com/v4/chapters"))
```

Author: System Architect
Date: 2025-12-13
"""

from __future__ import annotations

import time

import httpx
from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from src.core.config.constants import (
    CACHEABLE_METHOD,
    DEFAULT_FETCH_TIMEOUT,
    HOP_BY_HOP_HEADERS,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
    Stage,
)
from src.core.config.settings import NetworkSettings
from src.core.exceptions import FetchTimeoutError, TransportError
from src.core.logging.logger import get_logger, log_stage
from src.offline_proxy.models.http import ProxyRequest, ResponseSnapshot

logger = get_logger(__name__)


class FetcherConfig(BaseModel):
    """
    Configuration for HttpFetcher with validation.

    Attributes:
        timeout: Whole-request timeout in seconds
        max_attempts: Attempts for GET requests on transport errors
        retry_base_delay: Initial delay between retries (seconds)
        retry_max_delay: Maximum delay between retries (seconds)
        max_connections: Maximum pooled HTTP connections
        follow_redirects: Follow redirects like a browser fetch
    """

    model_config = {"frozen": True}

    timeout: float = Field(default=DEFAULT_FETCH_TIMEOUT, gt=0, le=120)
    max_attempts: int = Field(default=1, ge=1, le=10)
    retry_base_delay: float = Field(default=RETRY_BASE_DELAY, ge=0, le=10)
    retry_max_delay: float = Field(default=RETRY_MAX_DELAY, ge=0, le=60)
    max_connections: int = Field(default=100, ge=1)
    follow_redirects: bool = True

    @classmethod
    def from_settings(cls, settings: NetworkSettings) -> FetcherConfig:
        return cls(
            timeout=settings.FETCH_TIMEOUT,
            max_attempts=settings.FETCH_MAX_ATTEMPTS,
            max_connections=settings.FETCH_MAX_CONNECTIONS,
            follow_redirects=settings.FETCH_FOLLOW_REDIRECTS,
        )


def _end_to_end(headers) -> dict[str, str]:
    return {k.lower(): v for k, v in headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}


class HttpFetcher:
    """
    Fetcher implementation over httpx.

    Args:
        config: Timeout / retry / pool configuration
        client: Pre-built AsyncClient (tests pass one with httpx.MockTransport).
            An injected client is not closed by this fetcher.
    """

    def __init__(self, config: FetcherConfig | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or FetcherConfig()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> HttpFetcher:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=max(1, self.config.max_connections // 2),
                ),
                follow_redirects=self.config.follow_redirects,
            )
            self._owns_client = True
            logger.debug(
                "HTTP client initialized",
                timeout=self.config.timeout,
                max_connections=self.config.max_connections,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            logger.debug("HTTP client closed")
            self._client = None

    async def fetch(self, request: ProxyRequest) -> ResponseSnapshot:
        """
        Send the request and capture the full response.

        Raises:
            FetchTimeoutError: The configured timeout elapsed
            TransportError: DNS / connection / protocol failure
        """
        attempts = self.config.max_attempts if request.method == CACHEABLE_METHOD else 1
        started = time.perf_counter()

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=wait_exponential_jitter(
                    initial=self.config.retry_base_delay,
                    max=self.config.retry_max_delay,
                    jitter=self.config.retry_base_delay,
                ),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await self._send(request)
        except httpx.TimeoutException as e:
            log_stage(
                logger, Stage.NETWORK_FETCH, "Fetch timed out", level="warning",
                url=request.url, timeout=self.config.timeout,
            )
            raise FetchTimeoutError.from_exception(
                e,
                message=f"Fetch timed out after {self.config.timeout}s",
                url=request.url,
                method=request.method,
                timeout=self.config.timeout,
            )
        except httpx.TransportError as e:
            log_stage(
                logger, Stage.NETWORK_FETCH, "Fetch failed", level="warning",
                url=request.url, error=str(e) or e.__class__.__name__,
            )
            raise TransportError.from_exception(e, url=request.url, method=request.method)

        snapshot = ResponseSnapshot(
            status_code=response.status_code,
            headers=_end_to_end(response.headers),
            body=response.content,
        )
        log_stage(
            logger, Stage.NETWORK_FETCH, "Fetch completed", level="debug",
            url=request.url,
            status_code=snapshot.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return snapshot

    async def _send(self, request: ProxyRequest) -> httpx.Response:
        client = self._ensure_client()
        return await client.request(
            request.method,
            request.url,
            headers=_end_to_end(request.headers),
            content=request.body or None,
        )
