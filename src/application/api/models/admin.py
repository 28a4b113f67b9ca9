"""
Admin API Models

Request and response bodies of the ``/admin`` endpoints. Field descriptions
show up in the OpenAPI docs.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# REQUESTS
# ============================================================================


class CommandRequest(BaseModel):
    """
    Administrative command.

    Accepts ``activate-now`` and ``clear-all`` plus the legacy names
    ``skipWaiting`` and ``clearCache``. Unknown names are rejected by the
    command channel with 422.
    """

    command: str = Field(..., min_length=1, max_length=64, description="Command name")

    @field_validator("command")
    @classmethod
    def strip_command(cls, v: str) -> str:
        return v.strip()


# ============================================================================
# RESPONSES
# ============================================================================


class CommandResponse(BaseModel):
    """Outcome of an administrative command."""

    command: str = Field(..., description="Resolved command name")
    deleted: list[str] = Field(default_factory=list, description="Generations deleted")
    kept: list[str] = Field(default_factory=list, description="Generations kept")


class InstallResponse(BaseModel):
    """Outcome of a successful install."""

    generation: str = Field(..., description="Static generation that was populated")
    stored: list[str] = Field(default_factory=list, description="URLs stored")
    count: int = Field(..., ge=0, description="Number of assets stored")
    activation: dict[str, list[str]] | None = Field(
        default=None, description="Activation report, when activation ran after install"
    )


class GenerationsResponse(BaseModel):
    """Every known generation and its lifecycle state."""

    static_generation: str
    runtime_generation: str
    generations: dict[str, str] = Field(..., description="Generation name -> state")


class GenerationDetailResponse(BaseModel):
    """One existing generation."""

    name: str
    state: str
    size: int = Field(..., ge=0)
    keys: list[str] = Field(default_factory=list, description="Stored identity keys")


class BackgroundTaskResponse(BaseModel):
    """Record of the latest run of a background task."""

    tag: str
    outcome: str
    attempts: int = Field(default=0, ge=0)
    error: str | None = None
    started_at: float | None = None
    finished_at: float | None = None


class BackgroundTasksResponse(BaseModel):
    registered: list[str]
    runs: dict[str, dict[str, Any]]
