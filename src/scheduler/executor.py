"""
Executor for the Job Scheduler.

- Runs one dispatch of a job: every attempt up to retry_attempts
- Keeps at most one dispatch per job in flight (RunningSet)
- Writes one ExecutionRecord per attempt

What Executor MUST NOT do:
- Touch next_run_at (Scheduler's responsibility)
- Decide admission (Scheduler reads running_count())
"""

import asyncio
import logging
import threading
import time
from typing import Protocol

from .entities import (
    Job,
    ERROR_MESSAGE_MAX_CHARS,
    RESPONSE_BODY_MAX_CHARS,
    truncate,
)
from .errors import TransportFailure
from .http_client import HttpResult
from .stores import ExecutionStore


logger = logging.getLogger(__name__)


class HttpCallerProtocol(Protocol):
    """Protocol for the HTTP collaborator."""

    async def call(self, job: Job) -> HttpResult:
        """
        Perform one request for the job.

        Raises:
            TransportFailure: If no usable response was produced
        """
        ...


class JobExecutor:
    """
    Executes job dispatches and tracks which jobs are in flight.

    A dispatch is the full retry sequence for one due instant:

        attempt 1 ── fail ── sleep(retry_delay) ── attempt 2 ── ... ── attempt N
             └── success: stop

    Each attempt gets its own ExecutionRecord, so a dispatch yields
    1..retry_attempts records.
    """

    def __init__(
        self,
        execution_store: ExecutionStore,
        http_caller: HttpCallerProtocol,
    ):
        """
        Initialize JobExecutor.

        Args:
            execution_store: Store for ExecutionRecords
            http_caller: Performs the HTTP call for each attempt
        """
        self.execution_store = execution_store
        self.http_caller = http_caller

        self._running: set[str] = set()
        self._lock = threading.Lock()

    # =========================================================================
    # RunningSet
    # =========================================================================

    def _try_claim(self, job_id: str) -> bool:
        with self._lock:
            if job_id in self._running:
                return False
            self._running.add(job_id)
            return True

    def _release(self, job_id: str) -> None:
        with self._lock:
            self._running.discard(job_id)

    def running_count(self) -> int:
        """Number of jobs currently being dispatched."""
        with self._lock:
            return len(self._running)

    def is_running(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._running

    def running_job_ids(self) -> list[str]:
        """Snapshot of in-flight job IDs."""
        with self._lock:
            return sorted(self._running)

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(self, job: Job) -> None:
        """
        Run one dispatch of a job.

        Returns immediately if the job is already in flight; the Scheduler
        can legitimately pick a job again while a slow retry sequence is
        still going.
        """
        if not self._try_claim(job.job_id):
            logger.debug(f"Job {job.job_id} already running, skipping dispatch")
            return

        try:
            await self.execute_with_retry(job)
        finally:
            self._release(job.job_id)

    async def execute_with_retry(self, job: Job) -> bool:
        """
        Attempt the job's HTTP call up to retry_attempts times.

        Store errors are not caught here; they end the dispatch and reach the
        Scheduler's task callback.

        Returns:
            True if an attempt succeeded
        """
        max_attempts = max(1, job.retry_attempts)

        for attempt in range(1, max_attempts + 1):
            if await self._run_attempt(job, attempt):
                return True

            if attempt < max_attempts:
                logger.info(
                    f"Job {job.job_id} attempt {attempt}/{max_attempts} failed, "
                    f"retrying in {job.retry_delay}ms"
                )
                await asyncio.sleep(job.retry_delay / 1000)

        logger.warning(
            f"Job {job.job_id} failed after {max_attempts} attempt(s)"
        )
        return False

    async def _run_attempt(self, job: Job, attempt: int) -> bool:
        """Run a single attempt and record its outcome."""
        execution_id = await asyncio.to_thread(
            self.execution_store.create_execution,
            job.job_id,
            attempt,
            job.next_run_at,
        )

        started = time.monotonic()
        try:
            result = await self.http_caller.call(job)
        except TransportFailure as e:
            duration_ms = _elapsed_ms(started)
            await asyncio.to_thread(
                self.execution_store.mark_failure,
                execution_id,
                truncate(e.message, ERROR_MESSAGE_MAX_CHARS),
                e.status_code,
                duration_ms,
            )
            logger.warning(
                f"Job {job.job_id} attempt {attempt} failed: {e.message} "
                f"(status={e.status_code}, {duration_ms}ms)"
            )
            return False
        except Exception as e:
            # Record stays terminal; the error itself ends the dispatch
            await asyncio.to_thread(
                self.execution_store.mark_failure,
                execution_id,
                truncate(f"Execution error: {e}", ERROR_MESSAGE_MAX_CHARS),
                None,
                _elapsed_ms(started),
            )
            raise

        duration_ms = _elapsed_ms(started)
        await asyncio.to_thread(
            self.execution_store.mark_success,
            execution_id,
            result.status_code,
            truncate(result.body, RESPONSE_BODY_MAX_CHARS),
            duration_ms,
        )
        logger.info(
            f"Job {job.job_id} attempt {attempt} succeeded: "
            f"status={result.status_code}, {duration_ms}ms"
        )
        return True


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
