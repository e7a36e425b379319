"""
Jobs router for job management API.

- POST /api/jobs - Create a scheduled job
- GET /api/jobs - List jobs (paginated)
- GET /api/jobs/{job_id} - Get job details
- PUT /api/jobs/{job_id} - Partially update a job
- DELETE /api/jobs/{job_id} - Delete a job
- GET /api/jobs/{job_id}/executions - Recent executions of a job

InvalidJobError and JobNotFoundError propagate to the application's
exception handlers (400 / 404).
"""

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_scheduler_service
from ..schemas.jobs import (
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
from ...scheduler import Job, SchedulerService


router = APIRouter()


def _job_to_response(job: Job) -> JobResponse:
    return JobResponse(**job.to_dict())


@router.post("", response_model=JobCreateResponse, status_code=201)
def create_job(
    request: JobCreateRequest,
    service: SchedulerService = Depends(get_scheduler_service),
):
    """
    Create a new job.

    The first next_run_at is computed immediately; the job is dispatched
    once the scheduler is running and that instant has passed.
    """
    job = service.create_job(
        schedule=request.schedule,
        endpoint=request.endpoint,
        method=request.method,
        headers=request.headers,
        body=request.body,
        retry_attempts=request.retry_attempts,
        retry_delay=request.retry_delay,
    )
    data = job.to_dict()

    return JobCreateResponse(
        data=JobCreatedData(
            job_id=data["job_id"],
            schedule=data["schedule"],
            endpoint=data["endpoint"],
            next_run_at=data["next_run_at"],
        )
    )


@router.get("", response_model=JobListResponse)
def list_jobs(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=20, ge=1, le=100, description="Jobs per page"),
    service: SchedulerService = Depends(get_scheduler_service),
):
    """List jobs ordered by creation time (oldest first)."""
    jobs = service.list_jobs(page=page, limit=limit)

    return JobListResponse(
        data=[_job_to_response(job) for job in jobs],
        page=page,
        limit=limit,
    )


@router.get("/{job_id}", response_model=JobEnvelope)
def get_job(
    job_id: str,
    service: SchedulerService = Depends(get_scheduler_service),
):
    """Get a specific job by ID."""
    return JobEnvelope(data=_job_to_response(service.get_job(job_id)))


@router.put("/{job_id}", response_model=JobEnvelope)
def update_job(
    job_id: str,
    request: JobUpdateRequest,
    service: SchedulerService = Depends(get_scheduler_service),
):
    """
    Update a job.

    Only the fields present in the request body change. A new schedule
    recomputes next_run_at.
    """
    job = service.update_job(job_id, request.model_dump(exclude_unset=True))
    return JobEnvelope(data=_job_to_response(job))


@router.delete("/{job_id}", response_model=JobDeleteResponse)
def delete_job(
    job_id: str,
    service: SchedulerService = Depends(get_scheduler_service),
):
    """Delete a job. A dispatch already in flight is not interrupted."""
    service.delete_job(job_id)
    return JobDeleteResponse(message="Job deleted successfully")


@router.get("/{job_id}/executions", response_model=ExecutionListResponse)
def get_job_executions(
    job_id: str,
    limit: int = Query(default=5, ge=1, le=100, description="Maximum executions to return"),
    service: SchedulerService = Depends(get_scheduler_service),
):
    """Most recent execution attempts of a job, newest first."""
    executions = service.get_job_executions(job_id, limit=limit)

    return ExecutionListResponse(
        data=[ExecutionResponse(**record.to_dict()) for record in executions]
    )
