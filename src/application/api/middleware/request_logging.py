"""
Request Logging Middleware

Binds a request ID to every inbound request and logs one line per request.

- The ID is taken from the ``X-Request-ID`` header or generated, stored in the
  logging context var (so every log line of the request carries it) and
  echoed in the response.
- Sensitive headers are never logged; proxied URLs are logged through the
  logger's redaction processor, which masks credential query parameters.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.config.constants import HEADER_REQUEST_ID
from src.core.logging.logger import clear_request_id, get_logger, set_request_id

logger = get_logger(__name__)


SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "x-api-key",
    "x-auth-token",
}


def sanitize_headers(headers: dict) -> dict:
    """Replace sensitive header values with "[REDACTED]"."""
    return {
        key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request ID binding plus request/response logging.

    Bodies are not logged.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)
        start_time = time.perf_counter()

        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            url=str(request.url),
            headers=sanitize_headers(dict(request.headers)),
        )

        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return response
        finally:
            clear_request_id()


def add_request_logging_middleware(app: FastAPI) -> None:
    app.add_middleware(RequestLoggingMiddleware)
