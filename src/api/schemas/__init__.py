"""
API Schemas package.

Pydantic models for request/response validation.
"""

from .jobs import (
    JobCreateRequest,
    JobUpdateRequest,
    JobResponse,
    JobCreatedData,
    JobCreateResponse,
    JobEnvelope,
    JobListResponse,
    JobDeleteResponse,
    ExecutionResponse,
    ExecutionListResponse,
)
from .scheduler import (
    SchedulerStatus,
    SchedulerStopRequest,
    SchedulerControlResponse,
    SchedulerStatusResponse,
)
from .observability import (
    HealthResponse,
    ExecutionStats,
    StatsData,
    StatsResponse,
    FailureListResponse,
)

__all__ = [
    "JobCreateRequest",
    "JobUpdateRequest",
    "JobResponse",
    "JobCreatedData",
    "JobCreateResponse",
    "JobEnvelope",
    "JobListResponse",
    "JobDeleteResponse",
    "ExecutionResponse",
    "ExecutionListResponse",
    "SchedulerStatus",
    "SchedulerStopRequest",
    "SchedulerControlResponse",
    "SchedulerStatusResponse",
    "HealthResponse",
    "ExecutionStats",
    "StatsData",
    "StatsResponse",
    "FailureListResponse",
]
