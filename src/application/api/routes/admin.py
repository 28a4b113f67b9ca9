"""
Admin Routes

Operational endpoints of the offline cache proxy:

    POST /admin/commands               activate-now | clear-all (and legacy aliases)
    POST /admin/install                (re)populate the static generation
    GET  /admin/generations            every generation and its state
    GET  /admin/generations/{name}     size and keys of one generation (404 if missing)
    GET  /admin/background             registered background tasks and latest runs
    POST /admin/background/{tag}       trigger a background task
    GET  /admin/metrics                Prometheus exposition

Errors are rendered by the OfflineCacheError handler: unknown commands and
tags -> 422, incomplete install -> 409, missing generation -> 404.
"""

from fastapi import APIRouter, Response, status

from src.application.api.dependencies import (
    BackgroundRunnerDep,
    CommandChannelDep,
    ContainerDep,
    LifecycleDep,
    SettingsDep,
)
from src.application.api.models.admin import (
    BackgroundTaskResponse,
    BackgroundTasksResponse,
    CommandRequest,
    CommandResponse,
    GenerationDetailResponse,
    GenerationsResponse,
    InstallResponse,
)
from src.core.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# COMMANDS
# ============================================================================


@router.post("/commands", response_model=CommandResponse)
async def dispatch_command(body: CommandRequest, commands: CommandChannelDep):
    """
    Run an administrative command to completion.

    - ``activate-now`` (alias ``skipWaiting``): force activation, deleting
      every non-current generation
    - ``clear-all`` (alias ``clearCache``): delete every generation
    """
    result = await commands.dispatch(body.command)
    return result.to_dict()


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.post("/install", response_model=InstallResponse)
async def install(lifecycle: LifecycleDep, settings: SettingsDep):
    """
    Populate the static generation from the asset manifest.

    Runs activation afterwards when ACTIVATE_AFTER_INSTALL is set.
    """
    logger.info("Install requested through admin API")
    report = await lifecycle.install()
    payload = report.to_dict()
    if settings.lifecycle.ACTIVATE_AFTER_INSTALL:
        payload["activation"] = (await lifecycle.activate()).to_dict()
    return payload


@router.get("/generations", response_model=GenerationsResponse)
async def list_generations(lifecycle: LifecycleDep):
    """Every known generation and its lifecycle state."""
    return {
        "static_generation": lifecycle.static_generation,
        "runtime_generation": lifecycle.runtime_generation,
        "generations": await lifecycle.describe(),
    }


@router.get("/generations/{name}", response_model=GenerationDetailResponse)
async def get_generation(name: str, container: ContainerDep):
    """Size and keys of one existing generation."""
    size = await container.lifecycle.generation_size(name)
    keys = await container.store.keys(name)
    states = await container.lifecycle.describe()
    return {"name": name, "state": states.get(name, "active"), "size": size, "keys": sorted(keys)}


# ============================================================================
# BACKGROUND TASKS
# ============================================================================


@router.get("/background", response_model=BackgroundTasksResponse)
async def list_background_tasks(background: BackgroundRunnerDep):
    return {"registered": background.tags, "runs": background.snapshot()}


@router.post(
    "/background/{tag}",
    response_model=BackgroundTaskResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def trigger_background_task(tag: str, background: BackgroundRunnerDep, wait: bool = False):
    """
    Trigger a registered background task.

    Returns immediately with the pending record unless ``wait=true``, in
    which case the final record is returned.
    """
    background.trigger(tag)
    if wait:
        record = await background.wait(tag)
    else:
        record = background.outcome(tag)
    return record.to_dict()


# ============================================================================
# METRICS
# ============================================================================


@router.get("/metrics")
async def get_prometheus_metrics(container: ContainerDep):
    """Expose metrics in Prometheus text format for scraping."""
    metrics = container.metrics
    return Response(content=metrics.get_prometheus_metrics(), media_type=metrics.get_content_type())
