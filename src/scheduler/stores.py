"""
Store protocols consumed by the Scheduler and JobExecutor.

Both are assumed to provide atomic single-record reads and updates; the
engine never needs a multi-record transaction. PersistenceAdapter
implements both against SQLite.
"""

from datetime import datetime
from typing import Optional, Protocol

from .entities import Job


class JobStore(Protocol):
    """Job definitions, as seen by the Scheduler."""

    def find_due(self, limit: int, now: Optional[datetime] = None) -> list[Job]:
        """Return up to limit enabled jobs with next_run_at <= now."""
        ...

    def update_next_run_at(self, job_id: str, next_run_at: Optional[datetime]) -> None:
        """Persist a new next_run_at (and stamp last_run_at)."""
        ...

    def list_enabled(self) -> list[Job]:
        """Return every enabled job."""
        ...


class ExecutionStore(Protocol):
    """Execution records, as seen by the JobExecutor."""

    def create_execution(
        self,
        job_id: str,
        attempt: int,
        scheduled_at: Optional[datetime],
    ) -> str:
        """Create a RUNNING record and return its ID."""
        ...

    def mark_success(
        self,
        execution_id: str,
        response_code: int,
        response_body: Optional[str],
        duration_ms: int,
    ) -> None:
        ...

    def mark_failure(
        self,
        execution_id: str,
        error_message: str,
        response_code: Optional[int],
        duration_ms: int,
    ) -> None:
        ...
