"""
Scheduler router for scheduler control APIs.

Endpoints under /api/scheduler/* for start, stop, and status operations.
Start and stop are idempotent.
"""

from fastapi import APIRouter, Depends

from ..dependencies import get_scheduler_service
from ..schemas.scheduler import (
    SchedulerStatus,
    SchedulerStopRequest,
    SchedulerControlResponse,
    SchedulerStatusResponse,
)
from ...scheduler import SchedulerService


router = APIRouter()


@router.post("/start", response_model=SchedulerControlResponse)
async def start_scheduler(service: SchedulerService = Depends(get_scheduler_service)):
    """
    Start the poll loop.

    Idempotent: If scheduler is already running, returns success with message.
    """
    if service.is_running:
        return SchedulerControlResponse(
            success=True,
            message="Scheduler is already running",
            data=SchedulerStatus(**service.status()),
        )

    await service.start()

    return SchedulerControlResponse(
        success=True,
        message="Scheduler started successfully",
        data=SchedulerStatus(**service.status()),
    )


@router.post("/stop", response_model=SchedulerControlResponse)
async def stop_scheduler(
    request: SchedulerStopRequest = SchedulerStopRequest(),
    service: SchedulerService = Depends(get_scheduler_service),
):
    """
    Stop the poll loop.

    Dispatches already in flight run to completion.
    Idempotent: If scheduler is already stopped, returns success.
    """
    if not service.is_running:
        return SchedulerControlResponse(
            success=True,
            message="Scheduler is already stopped",
            data=SchedulerStatus(**service.status()),
        )

    await service.stop(timeout=request.timeout)

    return SchedulerControlResponse(
        success=True,
        message="Scheduler stopped successfully",
        data=SchedulerStatus(**service.status()),
    )


@router.get("/status", response_model=SchedulerStatusResponse)
async def get_scheduler_status(service: SchedulerService = Depends(get_scheduler_service)):
    """Current scheduler state and in-flight job count."""
    return SchedulerStatusResponse(data=SchedulerStatus(**service.status()))
