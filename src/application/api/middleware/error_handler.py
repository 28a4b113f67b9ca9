"""
Error Handling

Two layers turn exceptions into HTTP responses:

1. ``offline_cache_exception_handler``: registered with FastAPI for
   OfflineCacheError. Maps the exception class onto a status code and returns
   ``exc.to_dict()`` as the body.

2. ``ErrorHandlingMiddleware``: last line of defence for anything else. Logs
   the full error and returns a generic 500 without internal details.

STATUS MAPPING:
---------------
    FetchTimeoutError                            504
    TransportError                               502
    CacheMissError / GenerationNotFoundError     404
    ValidationError (InvalidCommandError, ...)   422
    UpstreamNotAllowedError                      403
    InstallIncompleteError / ActivationBlocked   409
    CacheConnectionError                         503
    any other OfflineCacheError                  500

The most specific class in the exception's MRO wins.
"""

import traceback
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.config.constants import HEADER_REQUEST_ID
from src.core.exceptions import (
    ActivationBlockedError,
    CacheConnectionError,
    CacheMissError,
    FetchTimeoutError,
    InstallIncompleteError,
    OfflineCacheError,
    TransportError,
    UpstreamNotAllowedError,
    ValidationError,
)
from src.core.logging.logger import get_logger, get_request_id

logger = get_logger(__name__)


ERROR_STATUS_CODES: dict[type[OfflineCacheError], int] = {
    FetchTimeoutError: 504,
    TransportError: 502,
    CacheMissError: 404,
    ValidationError: 422,
    UpstreamNotAllowedError: 403,
    InstallIncompleteError: 409,
    ActivationBlockedError: 409,
    CacheConnectionError: 503,
}


def status_code_for(exc: OfflineCacheError) -> int:
    """Status code of the most specific mapped class, 500 if none."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


async def offline_cache_exception_handler(request: Request, exc: OfflineCacheError) -> JSONResponse:
    """Render an OfflineCacheError as JSON."""
    if exc.request_id is None:
        exc.request_id = get_request_id()

    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Request failed: {exc.message}",
        error_type=type(exc).__name__,
        status_code=status_code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
        headers={HEADER_REQUEST_ID: exc.request_id or ""},
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Catch-all for exceptions no handler claimed.

    Args:
        app: The ASGI application
        include_traceback: Put the stack trace in the response body
            (development only)
    """

    def __init__(self, app, include_traceback: bool = False):
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            error_type = type(e).__name__
            logger.error(
                f"Unhandled exception in request: {request.method} {request.url.path}",
                method=request.method,
                path=request.url.path,
                error_type=error_type,
                error_message=str(e),
                exc_info=True,
            )

            error_response = {
                "error": "internal_server_error",
                "message": "An unexpected error occurred while processing your request",
                "error_type": error_type,
                "request_id": get_request_id(),
            }
            if self.include_traceback:
                error_response["traceback"] = traceback.format_exc()
                error_response["detail"] = str(e)

            return JSONResponse(status_code=500, content=error_response)


def add_error_handling(app: FastAPI, include_traceback: bool = False) -> None:
    """
    Register the OfflineCacheError handler and the catch-all middleware.

    Args:
        app: FastAPI application instance
        include_traceback: Whether to include stack traces in 500 responses
    """
    app.add_exception_handler(OfflineCacheError, offline_cache_exception_handler)
    app.add_middleware(ErrorHandlingMiddleware, include_traceback=include_traceback)
    logger.info("Error handling registered", include_traceback=include_traceback)
