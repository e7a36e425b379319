"""
Scheduler Test Fixtures.

Base fixtures:
  - Empty database (temporary SQLite file)
  - Mocked clock at fixed time
  - Scripted HTTP caller (no network)

Per-test fixtures:
  - Job factory that stores jobs with a given next_run_at
"""

import asyncio
import pytest
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, Optional, Union

from src.scheduler import (
    PersistenceAdapter,
    JobExecutor,
    Scheduler,
    Job,
    HttpResult,
    TransportFailure,
)


# Fixed time for deterministic tests
FIXED_DATETIME = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class MockClock:
    """
    Mock clock for deterministic time control.

    - Starts at fixed epoch
    - Advances only when explicitly ticked
    """

    def __init__(self, start_time: datetime = FIXED_DATETIME):
        self._current = start_time

    def now(self) -> datetime:
        return self._current

    def tick(self, seconds: int = 1) -> None:
        """Advance time by specified seconds."""
        self._current += timedelta(seconds=seconds)

    def set(self, time: datetime) -> None:
        """Set time to specific value."""
        self._current = time


Outcome = Union[HttpResult, Exception]


class ScriptedHttpCaller:
    """
    HTTP caller double.

    Returns (or raises) queued outcomes in order; once the script runs out
    every call succeeds with 200. An optional delay keeps calls in flight so
    tests can observe the RunningSet.
    """

    def __init__(self, outcomes: Optional[list] = None, delay: float = 0.0):
        self.outcomes: list[Outcome] = list(outcomes or [])
        self.delay = delay
        self.calls: list[Job] = []
        self.release = asyncio.Event()
        self.block = False

    async def call(self, job: Job) -> HttpResult:
        self.calls.append(job)
        if self.block:
            await self.release.wait()
        if self.delay:
            await asyncio.sleep(self.delay)

        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return HttpResult(status_code=200, body='{"ok":true}')


def failure(message: str = "Request failed with status code 500", status_code: int = 500):
    return TransportFailure(message, status_code=status_code)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def temp_db_path() -> Generator[str, None, None]:
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    yield db_path

    # Cleanup
    Path(db_path).unlink(missing_ok=True)
    # Also cleanup WAL and SHM files
    Path(f"{db_path}-wal").unlink(missing_ok=True)
    Path(f"{db_path}-shm").unlink(missing_ok=True)


@pytest.fixture
def persistence(temp_db_path: str) -> PersistenceAdapter:
    """Create a fresh PersistenceAdapter with empty database."""
    return PersistenceAdapter(temp_db_path)


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def mock_clock() -> MockClock:
    """Create a mock clock at fixed time."""
    return MockClock()


@pytest.fixture
def http_caller() -> ScriptedHttpCaller:
    """HTTP caller that succeeds unless told otherwise."""
    return ScriptedHttpCaller()


@pytest.fixture
def executor(persistence: PersistenceAdapter, http_caller: ScriptedHttpCaller) -> JobExecutor:
    """Create a JobExecutor backed by the test database."""
    return JobExecutor(execution_store=persistence, http_caller=http_caller)


@pytest.fixture
def scheduler(
    persistence: PersistenceAdapter,
    executor: JobExecutor,
    mock_clock: MockClock,
) -> Scheduler:
    """Create a Scheduler driven by the mock clock."""
    return Scheduler(
        job_store=persistence,
        executor=executor,
        poll_interval=10,  # Fast polling for tests
        max_concurrent_jobs=10,
        clock=mock_clock.now,
    )


# =============================================================================
# Job Factory Fixtures
# =============================================================================


@pytest.fixture
def create_job(persistence: PersistenceAdapter) -> Callable:
    """
    Factory fixture for creating jobs.

    Returns a function that stores a job with the given next_run_at.
    """

    def _create(
        schedule: str = "0 * * * * *",
        endpoint: str = "https://example.com/hook",
        next_run_at: Optional[datetime] = FIXED_DATETIME,
        retry_attempts: int = 1,
        retry_delay: int = 0,
        enabled: bool = True,
        method: str = "POST",
    ) -> Job:
        job = Job.create(
            schedule=schedule,
            endpoint=endpoint,
            method=method,
            retry_attempts=retry_attempts,
            retry_delay=retry_delay,
            enabled=enabled,
        )
        job.next_run_at = next_run_at
        return persistence.create_job(job)

    return _create
