"""
Lifecycle Exceptions

Failures of install / activate / clear-all. These are never swallowed.

Author: System Architect
Date: 2025-12-08
"""

from src.core.exceptions.base import OfflineCacheError


class LifecycleError(OfflineCacheError):
    """Base exception for generation lifecycle failures."""
    pass


class InstallIncompleteError(LifecycleError):
    """
    Raised when install() could not fetch or store every manifest asset.

    The static generation stays in the populating state; the caller must
    retry install before activating.

    Example:
        raise InstallIncompleteError(
            "2 of 5 manifest assets failed",
            details={"failed_assets": ["/app.js", "/logo.png"]},
        )
    """
    pass


class ActivationBlockedError(LifecycleError):
    """Raised when activate() runs while the static generation is still populating."""
    pass
