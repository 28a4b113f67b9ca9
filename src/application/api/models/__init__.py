"""
API Models Package
==================

Pydantic models for API request/response validation.

ORGANIZATION:
-------------
- admin.py: Admin endpoint request/response models

The proxy endpoint returns the proxied response verbatim and has no model.
"""

from src.application.api.models.admin import (
    BackgroundTaskResponse,
    BackgroundTasksResponse,
    CommandRequest,
    CommandResponse,
    GenerationDetailResponse,
    GenerationsResponse,
    InstallResponse,
)

__all__ = [
    "BackgroundTaskResponse",
    "BackgroundTasksResponse",
    "CommandRequest",
    "CommandResponse",
    "GenerationDetailResponse",
    "GenerationsResponse",
    "InstallResponse",
]
