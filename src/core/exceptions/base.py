"""
Base Exception Class

Every proxy error carries the request it belongs to and, where it applies,
the upstream URL and the cache generation involved. Both are stored in
``details`` so they reach logs and JSON error bodies without extra wiring.

Specialized exceptions live in their themed modules.

Author: System Architect
Date: 2025-12-08
"""

from typing import Any


class OfflineCacheError(Exception):
    """
    Base exception for all offline cache proxy errors.

    Attributes:
        message: Error message
        request_id: Request ID for correlation (if available)
        details: Additional error details (dict)
        url: Upstream URL the error concerns, if any
        generation: Cache generation the error concerns, if any

    Example:
        raise TransportError(
            "Connection refused by upstream",
            url="https://api.quran.com/v4/chapters",
            details={"method": "GET"},
        )
    """

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        url: str | None = None,
        generation: str | None = None,
    ):
        self.message = message
        self.request_id = request_id
        self.details = (details or {}).copy()
        if url is not None:
            self.details["url"] = url
        if generation is not None:
            self.details["generation"] = generation
        super().__init__(self.message)

    @property
    def url(self) -> str | None:
        return self.details.get("url")

    @property
    def generation(self) -> str | None:
        return self.details.get("generation")

    def to_dict(self) -> dict[str, Any]:
        """Error body for logs and API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "OfflineCacheError":
        """Attach an operator hint. Returns self for chaining."""
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "OfflineCacheError":
        """Merge extra key-value pairs into details. Returns self for chaining."""
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        request_id_str = f", request_id='{self.request_id}'" if self.request_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{request_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        request_id: str | None = None,
        *,
        url: str | None = None,
        generation: str | None = None,
        **details,
    ) -> "OfflineCacheError":
        """
        Wrap a third-party exception (httpx, redis) in an error of this class.

        Example:
            >>> try:
            ...     await client.send(request)
            ... except httpx.ConnectError as e:
            ...     raise TransportError.from_exception(e, url=str(request.url))
        """
        error_message = message or str(exc) or exc.__class__.__name__
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details,
        }
        return cls(error_message, request_id=request_id, details=error_details, url=url, generation=generation)


# Configuration exception (kept here as it's fundamental)
class ConfigurationError(OfflineCacheError):
    """Raised when configuration is invalid or missing."""
    pass
