"""
Health Check Routes

- ``GET /health``: aggregated status (store + generations + background tasks)
- ``GET /health/live``: liveness, touches no dependency
- ``GET /health/ready``: readiness, 503 while the cache store is unreachable
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.application.api.dependencies import HealthCheckerDep

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Standard health check response model."""

    status: str  # "healthy", "degraded", "unhealthy"
    timestamp: str
    version: str | None = None
    components: dict | None = None


@router.get("", response_model=HealthResponse)
async def health_check(health: HealthCheckerDep):
    """
    Aggregated health check.

    Always 200; the status field carries healthy / degraded / unhealthy.
    """
    return await health.check_health()


@router.get("/live")
async def liveness_probe(health: HealthCheckerDep):
    return await health.liveness_check()


@router.get("/ready")
async def readiness_probe(health: HealthCheckerDep):
    result = await health.readiness_check()
    status_code = 200 if result["status"] == "ready" else 503
    return JSONResponse(status_code=status_code, content=result)
