"""
Scheduler for the Job Scheduler.

- Polls the job store for due jobs on a fixed interval
- Advances each due job's next_run_at BEFORE dispatching it
- Dispatches to JobExecutor as independent asyncio tasks
- Caps in-flight dispatches at max_concurrent_jobs (admission control)

What Scheduler MUST NOT do:
- Wait for a dispatch to finish inside a poll cycle
- Retry failed calls (JobExecutor's responsibility)
- Cancel dispatched work on stop()
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Callable, Optional, Protocol

from .cron import next_run_time
from .entities import Job, utc_now
from .errors import DispatchError, MalformedExpressionError
from .stores import JobStore


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 1000
DEFAULT_MAX_CONCURRENT_JOBS = 10


class SchedulerState(str, Enum):
    """Scheduler lifecycle states."""

    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


class ExecutorProtocol(Protocol):
    """Protocol for the job executor."""

    async def execute(self, job: Job) -> None:
        """Run one dispatch of the job (all retry attempts)."""
        ...

    def running_count(self) -> int:
        """Number of jobs currently in flight."""
        ...


class Scheduler:
    """
    Poll-driven dispatcher of due jobs.

    Each poll cycle:
    1. available_slots = max_concurrent_jobs - executor.running_count()
       (skip the cycle when <= 0)
    2. Ask the store for up to available_slots due jobs
    3. For each job, in store order:
       a. Persist next_run_at computed from its schedule relative to now
       b. Spawn executor.execute(job) as a task

    Cycles never overlap: the loop sleeps poll_interval only after the
    previous cycle has returned.
    """

    def __init__(
        self,
        job_store: JobStore,
        executor: ExecutorProtocol,
        poll_interval: int = DEFAULT_POLL_INTERVAL_MS,
        max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize Scheduler.

        Args:
            job_store: JobStore for due-job lookup and next_run_at updates
            executor: Executor that runs dispatches
            poll_interval: Milliseconds between poll cycles
            max_concurrent_jobs: Ceiling on in-flight dispatches
            clock: Source of "now" (injectable for testing)
        """
        self.job_store = job_store
        self.executor = executor
        self.poll_interval = poll_interval
        self.max_concurrent_jobs = max_concurrent_jobs
        self._clock = clock

        self._state = SchedulerState.STOPPED
        self._poll_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._dispatch_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> SchedulerState:
        """Get current scheduler state."""
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    @property
    def pending_dispatches(self) -> int:
        """Number of dispatch tasks that have not finished yet."""
        return len(self._dispatch_tasks)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """
        Start polling.

        Idempotent: a second call while running only logs. Jobs without a
        next_run_at get one before the first cycle.
        """
        if self._state == SchedulerState.RUNNING:
            logger.info("Scheduler is already running")
            return

        self._state = SchedulerState.RUNNING
        self._stop_event = asyncio.Event()
        logger.info(
            f"Scheduler started (poll_interval={self.poll_interval}ms, "
            f"max_concurrent_jobs={self.max_concurrent_jobs})"
        )

        await self.initialize_jobs()

        # stop() may have been called while jobs were initialising
        if self._state != SchedulerState.RUNNING:
            return

        self._poll_task = asyncio.create_task(self._poll_loop(), name="scheduler-poll")

    async def stop(self, timeout: float = 30.0) -> None:
        """
        Stop polling.

        A cycle already in progress is allowed to finish (up to timeout) so
        no job is left advanced but undispatched. Dispatched jobs keep
        running.
        """
        if self._state == SchedulerState.STOPPED:
            return

        logger.info("Stopping scheduler...")
        self._state = SchedulerState.STOPPED
        if self._stop_event is not None:
            self._stop_event.set()

        task, self._poll_task = self._poll_task, None
        if task is not None:
            _, pending = await asyncio.wait({task}, timeout=timeout)
            if pending:
                logger.warning("Poll cycle did not finish within timeout, cancelling")
                task.cancel()

        logger.info("Scheduler stopped")

    def status(self) -> dict:
        """Snapshot of scheduler state for the API layer."""
        return {
            "is_running": self.is_running,
            "running_jobs": self.executor.running_count(),
            "max_concurrent_jobs": self.max_concurrent_jobs,
            "poll_interval": self.poll_interval,
        }

    async def wait_for_dispatches(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight dispatch tasks to finish.

        Returns:
            True if every dispatch finished, False if timeout was reached
        """
        tasks = set(self._dispatch_tasks)
        if not tasks:
            return True

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        return not pending

    # =========================================================================
    # Startup
    # =========================================================================

    async def initialize_jobs(self) -> int:
        """
        Give every enabled job without a next_run_at its first one.

        Returns:
            Number of enabled jobs seen
        """
        try:
            jobs = await asyncio.to_thread(self.job_store.list_enabled)
        except Exception as e:
            logger.error(f"Error initializing jobs: {e}", exc_info=True)
            return 0

        for job in jobs:
            if job.next_run_at is not None:
                continue

            try:
                next_run = next_run_time(job.schedule, self._clock())
            except MalformedExpressionError as e:
                logger.error(f"Job {job.job_id} has an unusable schedule: {e}")
                continue

            if next_run is None:
                logger.warning(
                    f"Job {job.job_id} schedule '{job.schedule}' has no run within a year"
                )
                continue

            try:
                await asyncio.to_thread(self.job_store.update_next_run_at, job.job_id, next_run)
            except Exception as e:
                logger.error(f"Error setting next run for job {job.job_id}: {e}")

        logger.info(f"Initialized {len(jobs)} jobs")
        return len(jobs)

    # =========================================================================
    # Poll Loop
    # =========================================================================

    async def _poll_loop(self) -> None:
        """Sleep, poll, repeat until stopped."""
        logger.info("Scheduler poll loop started")
        stop_event = self._stop_event

        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval / 1000)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Error in poll cycle: {e}", exc_info=True)

        logger.info("Scheduler poll loop ended")

    async def poll_once(self) -> list[Job]:
        """
        Run a single poll cycle.

        Returns:
            Jobs dispatched in this cycle
        """
        available_slots = self.max_concurrent_jobs - self.executor.running_count()
        if available_slots <= 0:
            logger.debug("No free slots, skipping poll cycle")
            return []

        try:
            due_jobs = await asyncio.to_thread(
                self.job_store.find_due, available_slots, self._clock()
            )
        except Exception as e:
            logger.error(f"Error querying due jobs: {e}", exc_info=True)
            return []

        if not due_jobs:
            return []

        logger.info(f"Found {len(due_jobs)} due jobs, executing...")

        dispatched = []
        for job in due_jobs:
            if not await self._advance(job):
                continue
            self._dispatch(job)
            dispatched.append(job)

        return dispatched

    async def _advance(self, job: Job) -> bool:
        """
        Persist the job's next_run_at ahead of dispatch.

        A job that reaches no further instant within a year still runs for
        the instant that made it due, then stays parked with no next_run_at.

        Returns:
            True if the job should be dispatched
        """
        try:
            next_run = next_run_time(job.schedule, self._clock())
        except MalformedExpressionError as e:
            # Park it: re-selecting it every cycle would only repeat the error
            logger.error(f"Job {job.job_id} not dispatched: {e}")
            try:
                await asyncio.to_thread(self.job_store.update_next_run_at, job.job_id, None)
            except Exception as store_error:
                logger.error(f"Error parking job {job.job_id}: {store_error}")
            return False

        try:
            await asyncio.to_thread(self.job_store.update_next_run_at, job.job_id, next_run)
        except Exception as e:
            # Left due; the next cycle picks it up again
            logger.error(f"Error advancing job {job.job_id}, will retry next cycle: {e}")
            return False

        if next_run is None:
            logger.warning(f"Job {job.job_id} has no next run within a year")

        return True

    def _dispatch(self, job: Job) -> None:
        """Hand the job to the executor without waiting for it."""
        task = asyncio.create_task(
            self.executor.execute(job),
            name=f"dispatch-{job.job_id}",
        )
        self._dispatch_tasks.add(task)
        task.add_done_callback(partial(self._on_dispatch_done, job.job_id))

    def _on_dispatch_done(self, job_id: str, task: asyncio.Task) -> None:
        self._dispatch_tasks.discard(task)

        if task.cancelled():
            logger.warning(f"Dispatch of job {job_id} was cancelled")
            return

        exc = task.exception()
        if exc is not None:
            error = DispatchError(job_id, exc)
            logger.error(str(error), exc_info=exc)
