"""
Observability API schemas.

Health, aggregate execution statistics and recent failures.
"""

from typing import List

from pydantic import BaseModel, Field

from .jobs import ExecutionResponse
from .scheduler import SchedulerStatus


class HealthResponse(BaseModel):
    success: bool = True
    status: str = "healthy"
    timestamp: str = Field(..., description="Current time (ISO, UTC)")
    scheduler: SchedulerStatus


class ExecutionStats(BaseModel):
    """Counts over the execution history."""

    total: int
    successful: int
    failed: int
    last_24_hours: int


class StatsData(BaseModel):
    executions: ExecutionStats
    scheduler: SchedulerStatus


class StatsResponse(BaseModel):
    success: bool = True
    data: StatsData


class FailureListResponse(BaseModel):
    success: bool = True
    data: List[ExecutionResponse] = Field(default_factory=list)
