"""
Middleware Package

AVAILABLE MIDDLEWARE:
---------------------
1. error_handler: OfflineCacheError -> HTTP status mapping, catch-all 500
2. request_logging: request ID binding and one log line per request

MIDDLEWARE ORDERING:
--------------------
Middleware added last runs first. Request logging is added after error
handling so the request ID is bound before any error is rendered.
"""

from fastapi import FastAPI

from src.core.config.settings import Settings

from .error_handler import (
    ErrorHandlingMiddleware,
    add_error_handling,
    offline_cache_exception_handler,
    status_code_for,
)
from .request_logging import RequestLoggingMiddleware, add_request_logging_middleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register error handling and request logging in the correct order."""
    add_error_handling(app, include_traceback=(settings.app.ENVIRONMENT == "development"))
    add_request_logging_middleware(app)


__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "add_error_handling",
    "add_request_logging_middleware",
    "offline_cache_exception_handler",
    "setup_middleware",
    "status_code_for",
]
