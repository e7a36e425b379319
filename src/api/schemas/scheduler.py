"""
Scheduler control API schemas.

Supports /api/scheduler/start, /stop and /status.
"""

from pydantic import BaseModel, Field


class SchedulerStatus(BaseModel):
    """Scheduler status snapshot."""

    is_running: bool = Field(..., description="Whether the poll loop is active")
    running_jobs: int = Field(..., description="Jobs currently in flight")
    max_concurrent_jobs: int = Field(..., description="Admission ceiling")
    poll_interval: int = Field(..., description="Milliseconds between poll cycles")


class SchedulerStopRequest(BaseModel):
    """Request to stop the scheduler."""

    timeout: float = Field(
        default=30.0,
        ge=0.0,
        le=300.0,
        description="Seconds to wait for an in-progress poll cycle",
    )


class SchedulerControlResponse(BaseModel):
    """Response from start/stop."""

    success: bool
    message: str
    data: SchedulerStatus


class SchedulerStatusResponse(BaseModel):
    success: bool = True
    data: SchedulerStatus
