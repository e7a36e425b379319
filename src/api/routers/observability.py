"""
Observability router.

- GET /api/observability/health - Liveness plus scheduler snapshot
- GET /api/observability/stats - Execution counts
- GET /api/observability/failures - Most recent failed attempts
"""

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_scheduler_service
from ..schemas.jobs import ExecutionResponse
from ..schemas.observability import (
    HealthResponse,
    ExecutionStats,
    StatsData,
    StatsResponse,
    FailureListResponse,
)
from ..schemas.scheduler import SchedulerStatus
from ...scheduler import SchedulerService
from ...scheduler.entities import to_iso, utc_now


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check(service: SchedulerService = Depends(get_scheduler_service)):
    """Health check endpoint."""
    return HealthResponse(
        timestamp=to_iso(utc_now()),
        scheduler=SchedulerStatus(**service.status()),
    )


@router.get("/stats", response_model=StatsResponse)
def get_stats(service: SchedulerService = Depends(get_scheduler_service)):
    """Execution totals and the last-24-hours count."""
    return StatsResponse(
        data=StatsData(
            executions=ExecutionStats(**service.get_stats()),
            scheduler=SchedulerStatus(**service.status()),
        )
    )


@router.get("/failures", response_model=FailureListResponse)
def get_recent_failures(
    limit: int = Query(default=10, ge=1, le=100, description="Maximum failures to return"),
    service: SchedulerService = Depends(get_scheduler_service),
):
    """Most recent failed execution attempts across all jobs."""
    failures = service.get_recent_failures(limit=limit)

    return FailureListResponse(
        data=[ExecutionResponse(**record.to_dict()) for record in failures]
    )
