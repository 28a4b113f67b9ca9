"""
Request and response models for the offline cache proxy.

Bodies are held as immutable ``bytes`` owned by the snapshot, so one fetched
response can be handed to the caller and written to the store without either
consumer invalidating the other.
"""

import base64
import time
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

from src.core.config.constants import (
    CACHEABLE_METHOD,
    CACHEABLE_STATUS,
    RequestMode,
    ResponseSource,
    RouteKind,
)
from src.core.exceptions import InvalidRequestError

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _netloc(url: httpx.URL) -> str:
    host = url.host
    if ":" in host:
        host = f"[{host}]"
    port = url.port
    if port is None or _DEFAULT_PORTS.get(url.scheme) == port:
        return host
    return f"{host}:{port}"


def normalize_url(raw: str | httpx.URL) -> str:
    """
    Normalize an absolute URL for use as a cache key.

    Scheme and host are lower-cased, default ports dropped and the fragment
    removed. Path and query are kept as sent.

    Raises:
        InvalidRequestError: If the URL is not absolute http(s)
    """
    try:
        url = raw if isinstance(raw, httpx.URL) else httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise InvalidRequestError.from_exception(e, url=str(raw))

    if url.scheme not in _DEFAULT_PORTS or not url.host:
        raise InvalidRequestError(
            f"Expected an absolute http(s) URL, got '{raw}'",
            url=str(raw),
        )
    path = url.raw_path.decode("ascii") or "/"
    return f"{url.scheme}://{_netloc(url)}{path}"


def origin_of(raw: str | httpx.URL) -> str:
    """Return ``scheme://host[:port]`` of an absolute URL."""
    url = raw if isinstance(raw, httpx.URL) else httpx.URL(normalize_url(raw))
    return f"{url.scheme}://{_netloc(url)}"


@dataclass(frozen=True)
class RequestIdentity:
    """Cache key of a request: upper-cased method plus normalized URL."""

    method: str
    url: str

    @property
    def key(self) -> str:
        return f"{self.method} {self.url}"

    @property
    def is_cacheable(self) -> bool:
        return self.method == CACHEABLE_METHOD

    @classmethod
    def from_key(cls, key: str) -> "RequestIdentity":
        method, _, url = key.partition(" ")
        return cls(method=method, url=url)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class ProxyRequest:
    """
    An inbound request in abstract HTTP terms.

    Attributes:
        method: HTTP method (normalized to upper case)
        url: Absolute URL (normalized)
        headers: Request headers
        body: Request body bytes
        mode: Fetch mode; ``navigate`` marks a top-level page load
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    mode: RequestMode = RequestMode.CORS

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "url", normalize_url(self.url))
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "body", bytes(self.body))
        object.__setattr__(self, "mode", RequestMode(self.mode))

    @classmethod
    def get(
        cls, url: str, mode: RequestMode = RequestMode.CORS, headers: dict[str, str] | None = None
    ) -> "ProxyRequest":
        return cls(method="GET", url=url, headers=headers or {}, mode=mode)

    @property
    def identity(self) -> RequestIdentity:
        return RequestIdentity(method=self.method, url=self.url)

    @property
    def hostname(self) -> str:
        return httpx.URL(self.url).host

    @property
    def origin(self) -> str:
        return origin_of(self.url)

    @property
    def is_navigation(self) -> bool:
        return self.mode is RequestMode.NAVIGATE


@dataclass(frozen=True)
class ResponseSnapshot:
    """
    Immutable capture of a response.

    Attributes:
        status_code: HTTP status
        headers: Response headers (end-to-end only)
        body: Full body bytes
        captured_at: Unix timestamp of the capture
    """

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    captured_at: float = field(default_factory=time.time)

    def __post_init__(self):
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "body", bytes(self.body))

    @property
    def ok(self) -> bool:
        """True when the response may be stored."""
        return self.status_code == CACHEABLE_STATUS

    def clone(self) -> "ResponseSnapshot":
        """
        Independent copy for a second consumer.

        The header mapping is copied; the body is immutable bytes and is shared.
        """
        return replace(self, headers=dict(self.headers))

    def to_dict(self) -> dict[str, Any]:
        return {
            "status_code": self.status_code,
            "headers": dict(self.headers),
            "body": base64.b64encode(self.body).decode("ascii"),
            "captured_at": self.captured_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResponseSnapshot":
        return cls(
            status_code=int(data["status_code"]),
            headers=data.get("headers") or {},
            body=base64.b64decode(data.get("body") or b""),
            captured_at=float(data.get("captured_at", time.time())),
        )


@dataclass(frozen=True)
class CacheEntry:
    """A stored snapshot addressed by its request identity."""

    identity: RequestIdentity
    snapshot: ResponseSnapshot

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.identity.key, "snapshot": self.snapshot.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        return cls(
            identity=RequestIdentity.from_key(data["key"]),
            snapshot=ResponseSnapshot.from_dict(data["snapshot"]),
        )


@dataclass(frozen=True)
class ServedResponse:
    """What the proxy hands back for one request."""

    snapshot: ResponseSnapshot
    source: ResponseSource
    route: RouteKind
    generation: str | None = None

    @property
    def status_code(self) -> int:
        return self.snapshot.status_code

    @property
    def body(self) -> bytes:
        return self.snapshot.body
