"""
Job API schemas.

Request/response models for /api/jobs CRUD and execution history.
Every response is wrapped in a {success, data} envelope.
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field


HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


# =============================================================================
# Requests
# =============================================================================


class JobCreateRequest(BaseModel):
    """Request to create a new scheduled job."""

    schedule: str = Field(
        ...,
        description="Cron expression: second minute hour day month dayOfWeek",
        examples=["0 */15 * * * *"],
    )
    endpoint: str = Field(..., description="HTTP/HTTPS URL to call")
    method: HttpMethod = Field(default="POST", description="HTTP method")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers")
    body: Any = Field(
        default_factory=dict,
        description="JSON body (sent for POST/PUT/PATCH only)",
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Maximum attempts per run",
    )
    retry_delay: int = Field(
        default=5000,
        ge=0,
        description="Milliseconds between attempts",
    )


class JobUpdateRequest(BaseModel):
    """
    Partial update. Omitted or null fields keep their current values,
    except body: an explicit null resets it to {}.
    """

    schedule: Optional[str] = None
    endpoint: Optional[str] = None
    method: Optional[HttpMethod] = None
    headers: Optional[dict[str, str]] = None
    body: Any = None
    enabled: Optional[bool] = None
    retry_attempts: Optional[int] = Field(default=None, ge=1, le=100)
    retry_delay: Optional[int] = Field(default=None, ge=0)


# =============================================================================
# Responses
# =============================================================================


class JobResponse(BaseModel):
    """Response representing a Job."""

    job_id: str = Field(..., description="Unique job identifier")
    schedule: str
    endpoint: str
    method: str
    headers: dict = Field(default_factory=dict)
    body: Any = None
    enabled: bool = True
    retry_attempts: int
    retry_delay: int = Field(..., description="Milliseconds between attempts")
    execution_type: str
    next_run_at: Optional[str] = Field(default=None, description="Next due instant (ISO, UTC)")
    last_run_at: Optional[str] = Field(default=None, description="Last dispatch (ISO, UTC)")
    created_at: str
    updated_at: str


class JobCreatedData(BaseModel):
    """Summary returned after creating a job."""

    job_id: str
    schedule: str
    endpoint: str
    next_run_at: Optional[str] = None


class JobCreateResponse(BaseModel):
    success: bool = True
    data: JobCreatedData


class JobEnvelope(BaseModel):
    success: bool = True
    data: JobResponse


class JobListResponse(BaseModel):
    """Paginated job list."""

    success: bool = True
    data: List[JobResponse] = Field(default_factory=list)
    page: int
    limit: int


class JobDeleteResponse(BaseModel):
    success: bool = True
    message: str


class ExecutionResponse(BaseModel):
    """One attempt of one job run."""

    execution_id: str
    job_id: str
    attempt: int
    status: str = Field(..., description="running/success/failure")
    scheduled_at: Optional[str] = None
    started_at: str
    completed_at: Optional[str] = None
    duration: Optional[int] = Field(default=None, description="Milliseconds")
    response_code: Optional[int] = None
    response_body: Optional[str] = None
    error_message: Optional[str] = None


class ExecutionListResponse(BaseModel):
    success: bool = True
    data: List[ExecutionResponse] = Field(default_factory=list)
