"""
Validation Exceptions

All exceptions related to inbound request and command validation

Author: System Architect
Date: 2025-12-08
"""

from src.core.exceptions.base import OfflineCacheError


class ValidationError(OfflineCacheError):
    """
    Raised when validation fails.

    This is the base class for all validation-related errors.
    """
    pass


class InvalidCommandError(ValidationError):
    """
    Raised when an administrative command or background task tag is unknown.

    Example:
        raise InvalidCommandError(
            f"Unknown command '{command}'",
            details={"supported_commands": ["activate-now", "clear-all"]},
        )
    """
    pass


class InvalidRequestError(ValidationError):
    """
    Raised when an inbound proxy request cannot be interpreted.

    Common causes:
    - Missing target URL
    - Relative URL with no origin to resolve against
    - Unsupported URL scheme
    """
    pass


class UpstreamNotAllowedError(InvalidRequestError):
    """
    Raised when an uncached request targets a host the proxy will not relay to.

    Only the origin and allow-listed hosts are reachable unless relaying to
    unlisted hosts is enabled.
    """
    pass
