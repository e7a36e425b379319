"""
Scheduler Service - Main entry point for the Job Scheduler.

This service wires the scheduler components together:
- PersistenceAdapter (job + execution storage)
- HttpCaller (outbound HTTP)
- JobExecutor (retrying dispatches)
- Scheduler (poll loop)

and exposes the job CRUD and observability operations the API layer needs.

Usage:
    service = SchedulerService.create(SchedulerSettings.from_env())
    await service.start()
    # ... scheduler polls in the background ...
    await service.shutdown()
"""

import logging
from typing import Any, Optional

import httpx

from .config import SchedulerSettings
from .cron import next_run_time, validate_expression
from .entities import Job, ExecutionRecord, utc_now
from .errors import InvalidJobError, JobNotFoundError
from .executor import JobExecutor
from .http_client import HttpCaller
from .persistence import PersistenceAdapter
from .scheduler import Scheduler


logger = logging.getLogger(__name__)

INVALID_SCHEDULE_MESSAGE = (
    "Invalid cron expression. Format: second minute hour day month dayOfWeek"
)
INVALID_ENDPOINT_MESSAGE = "Invalid endpoint. Must be a valid HTTP/HTTPS URL"

UPDATABLE_FIELDS = (
    "schedule",
    "endpoint",
    "method",
    "headers",
    "body",
    "enabled",
    "retry_attempts",
    "retry_delay",
)


class SchedulerService:
    """
    Main service that coordinates all scheduler components.

    Provides:
    - Component initialization and wiring
    - Startup and graceful shutdown
    - API-friendly methods for job operations
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        http_caller: HttpCaller,
        executor: JobExecutor,
        scheduler: Scheduler,
    ):
        """
        Initialize SchedulerService with all components.

        Use SchedulerService.create() for convenient construction.
        """
        self.persistence = persistence
        self.http_caller = http_caller
        self.executor = executor
        self.scheduler = scheduler

    @classmethod
    def create(
        cls,
        settings: SchedulerSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "SchedulerService":
        """
        Create a SchedulerService with all components wired together.

        Args:
            settings: Runtime settings
            transport: Optional httpx transport (tests use httpx.MockTransport)

        Returns:
            Configured SchedulerService
        """
        persistence = PersistenceAdapter(settings.db_path)
        http_caller = HttpCaller(timeout=settings.http_timeout, transport=transport)
        executor = JobExecutor(execution_store=persistence, http_caller=http_caller)
        scheduler = Scheduler(
            job_store=persistence,
            executor=executor,
            poll_interval=settings.poll_interval,
            max_concurrent_jobs=settings.max_concurrent_jobs,
        )

        return cls(
            persistence=persistence,
            http_caller=http_caller,
            executor=executor,
            scheduler=scheduler,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the poll loop (no-op if already running)."""
        await self.scheduler.start()

    async def stop(self, timeout: float = 30.0) -> None:
        """Stop polling. In-flight dispatches keep running."""
        await self.scheduler.stop(timeout=timeout)

    async def shutdown(self, timeout: float = 30.0) -> None:
        """
        Stop polling, give in-flight dispatches up to timeout to finish,
        then release the HTTP client.
        """
        await self.scheduler.stop(timeout=timeout)

        if not await self.scheduler.wait_for_dispatches(timeout=timeout):
            logger.warning(
                f"{self.scheduler.pending_dispatches} dispatch(es) still running at shutdown"
            )

        await self.http_caller.aclose()

    @property
    def is_running(self) -> bool:
        """Check if scheduler is polling."""
        return self.scheduler.is_running

    def status(self) -> dict:
        """Scheduler status snapshot."""
        return self.scheduler.status()

    # =========================================================================
    # Job Operations (API-friendly)
    # =========================================================================

    def create_job(
        self,
        schedule: str,
        endpoint: str,
        method: Optional[str] = None,
        headers: Optional[dict] = None,
        body: Any = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[int] = None,
    ) -> Job:
        """
        Validate, store and pre-schedule a new job.

        Raises:
            InvalidJobError: Bad schedule, endpoint or retry settings
        """
        _validate_schedule(schedule)
        _validate_endpoint(endpoint)
        _validate_retry(retry_attempts, retry_delay)

        job = Job.create(
            schedule=schedule,
            endpoint=endpoint,
            method=method,
            headers=headers,
            body=body,
            retry_attempts=retry_attempts,
            retry_delay=retry_delay,
        )
        job.next_run_at = next_run_time(schedule, utc_now())
        self.persistence.create_job(job)

        logger.info(
            f"Created job {job.job_id} ({job.method} {job.endpoint}, "
            f"schedule='{job.schedule}', next_run_at={job.next_run_at})"
        )
        return job

    def update_job(self, job_id: str, updates: dict) -> Job:
        """
        Apply a partial update.

        Unknown keys and None values are ignored, except "body": None, which
        resets the body to {}. A changed schedule (or re-enabling a job
        that has no next run) recomputes next_run_at.

        Raises:
            JobNotFoundError: If job doesn't exist
            InvalidJobError: If the new schedule/endpoint/retry values are invalid
        """
        job = self.persistence.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        changes = {
            key: value
            for key, value in updates.items()
            if key in UPDATABLE_FIELDS and value is not None
        }
        # An explicit null body clears it back to the default
        if "body" in updates and updates["body"] is None:
            changes["body"] = {}

        if "schedule" in changes:
            _validate_schedule(changes["schedule"])
        if "endpoint" in changes:
            _validate_endpoint(changes["endpoint"])
        _validate_retry(changes.get("retry_attempts"), changes.get("retry_delay"))
        if "method" in changes:
            changes["method"] = changes["method"].upper()

        self.persistence.update_job(job_id, **changes)

        reschedule = "schedule" in changes or (
            changes.get("enabled") is True and job.next_run_at is None
        )
        if reschedule:
            schedule = changes.get("schedule", job.schedule)
            self.persistence.set_next_run_at(job_id, next_run_time(schedule, utc_now()))

        logger.info(f"Updated job {job_id}: {sorted(changes)}")
        return self.get_job(job_id)

    def get_job(self, job_id: str) -> Job:
        """
        Get a job by ID.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = self.persistence.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(self, page: int = 1, limit: int = 20) -> list[Job]:
        """List jobs, paginated (page is 1-based)."""
        offset = (max(1, page) - 1) * limit
        return self.persistence.list_jobs(offset=offset, limit=limit)

    def delete_job(self, job_id: str) -> None:
        """
        Delete a job. An in-flight dispatch is not interrupted.

        Raises:
            JobNotFoundError: If nothing was deleted
        """
        if not self.persistence.delete_job(job_id):
            raise JobNotFoundError(job_id)
        logger.info(f"Deleted job {job_id}")

    def get_job_executions(self, job_id: str, limit: int = 5) -> list[ExecutionRecord]:
        """
        Most recent executions of a job, newest first.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        self.get_job(job_id)
        return self.persistence.list_executions_for_job(job_id, limit=limit)

    def get_stats(self) -> dict:
        """Aggregate execution statistics."""
        return self.persistence.get_execution_stats()

    def get_recent_failures(self, limit: int = 10) -> list[ExecutionRecord]:
        """Most recent failed executions across all jobs."""
        return self.persistence.list_recent_failures(limit=limit)


def _validate_schedule(schedule: Optional[str]) -> None:
    if not schedule or not validate_expression(schedule):
        raise InvalidJobError(INVALID_SCHEDULE_MESSAGE)


def _validate_endpoint(endpoint: Optional[str]) -> None:
    if not endpoint or not endpoint.startswith("http"):
        raise InvalidJobError(INVALID_ENDPOINT_MESSAGE)


def _validate_retry(retry_attempts: Optional[int], retry_delay: Optional[int]) -> None:
    if retry_attempts is not None and retry_attempts < 1:
        raise InvalidJobError("retry_attempts must be a positive integer")
    if retry_delay is not None and retry_delay < 0:
        raise InvalidJobError("retry_delay must not be negative")
