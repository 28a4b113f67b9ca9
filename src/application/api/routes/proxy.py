"""
Proxy Route

``{METHOD} /proxy?url=<target>`` runs one request through the offline proxy.

REQUEST MAPPING:
----------------
- ``url`` is an absolute URL, or a path resolved against PROXY_ORIGIN
- The fetch mode comes from ``Sec-Fetch-Mode`` (``navigate`` marks a page
  load and enables the offline document); unknown values count as ``cors``
- Request headers and body are forwarded; hop-by-hop headers are dropped by
  the fetcher

RESPONSE MAPPING:
-----------------
Status, headers and body of the served snapshot, plus:

    X-Cache-Source       network | cache | offline
    X-Route              ignored | cache-first | network-first
    X-Cache-Generation   generation consulted (intercepted routes only)

Failures are rendered by the OfflineCacheError handler (502 / 504 when the
network failed and no stored copy applies).
"""

from fastapi import APIRouter, Query, Request, Response

from src.application.api.dependencies import ProxyServiceDep, SettingsDep
from src.core.config.constants import (
    HEADER_CACHE_SOURCE,
    HEADER_FETCH_MODE,
    HEADER_GENERATION,
    HEADER_ROUTE,
    HOP_BY_HOP_HEADERS,
    RequestMode,
)
from src.offline_proxy.models.http import ProxyRequest, ServedResponse
from src.offline_proxy.services.lifecycle_manager import resolve_manifest_url

router = APIRouter(tags=["Proxy"])

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Headers that describe the call to this service rather than the proxied request
_LOCAL_HEADERS = HOP_BY_HOP_HEADERS | {"cookie", "x-request-id"}


def request_mode(value: str | None) -> RequestMode:
    try:
        return RequestMode((value or "").strip().lower())
    except ValueError:
        return RequestMode.CORS


async def build_proxy_request(request: Request, url: str, origin: str) -> ProxyRequest:
    """Translate the inbound HTTP request into a ProxyRequest."""
    headers = {
        key: value
        for key, value in request.headers.items()
        if key.lower() not in _LOCAL_HEADERS and not key.lower().startswith("sec-fetch-")
    }
    return ProxyRequest(
        method=request.method,
        url=resolve_manifest_url(origin, url),
        headers=headers,
        body=await request.body(),
        mode=request_mode(request.headers.get(HEADER_FETCH_MODE)),
    )


def to_response(served: ServedResponse) -> Response:
    headers = {
        key: value
        for key, value in served.snapshot.headers.items()
        if key.lower() not in HOP_BY_HOP_HEADERS
    }
    headers[HEADER_CACHE_SOURCE] = served.source.value
    headers[HEADER_ROUTE] = served.route.value
    if served.generation:
        headers[HEADER_GENERATION] = served.generation
    return Response(content=served.body, status_code=served.status_code, headers=headers)


@router.api_route("/proxy", methods=PROXY_METHODS)
async def proxy(
    request: Request,
    service: ProxyServiceDep,
    settings: SettingsDep,
    url: str = Query(..., min_length=1, description="Absolute URL or origin-relative path"),
) -> Response:
    """
    Serve a request through the proxy.

    Returns:
        Response: The proxied (or cached, or offline) response
    """
    proxy_request = await build_proxy_request(request, url, settings.routing.PROXY_ORIGIN)
    served = await service.handle(proxy_request)
    return to_response(served)
