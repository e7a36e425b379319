"""
Persistence Adapter for the Job Scheduler.

SQLite storage (WAL mode, one connection per operation) for:
- jobs: HTTP job definitions and their next_run_at bookkeeping
- job_executions: one row per HTTP attempt

Implements both JobStore and ExecutionStore. Every engine-facing operation
touches a single row, so no multi-statement transactions are needed beyond
schema setup.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterator, Optional, Any

from .entities import (
    Job,
    ExecutionRecord,
    ExecutionStatus,
    ERROR_MESSAGE_MAX_CHARS,
    RESPONSE_BODY_MAX_CHARS,
    from_iso,
    to_iso,
    truncate,
    utc_now,
)


class PersistenceAdapter:
    """
    SQLite-based persistence for jobs and execution records.

    - Abstracts SQLite storage
    - CRUD operations for Job and ExecutionRecord
    - Does NOT contain scheduling logic
    - Does NOT validate beyond schema constraints
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize persistence adapter.

        Args:
            db_path: Path to SQLite database file. A connection is opened per
                operation, so ":memory:" would give every call a fresh database.
        """
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    job_id TEXT PRIMARY KEY,
                    schedule TEXT NOT NULL,
                    endpoint TEXT NOT NULL,
                    method TEXT NOT NULL DEFAULT 'POST',
                    headers TEXT NOT NULL DEFAULT '{}',
                    body TEXT NOT NULL DEFAULT '{}',
                    enabled INTEGER NOT NULL DEFAULT 1,
                    retry_attempts INTEGER NOT NULL DEFAULT 3,
                    retry_delay INTEGER NOT NULL DEFAULT 5000,
                    execution_type TEXT NOT NULL DEFAULT 'AT_LEAST_ONCE',
                    next_run_at TEXT,
                    last_run_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Due-job lookup
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_jobs_due
                ON jobs (enabled, next_run_at)
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS job_executions (
                    execution_id TEXT PRIMARY KEY,
                    job_id TEXT NOT NULL,
                    attempt INTEGER NOT NULL DEFAULT 1,
                    status TEXT NOT NULL,
                    scheduled_at TEXT,
                    started_at TEXT NOT NULL,
                    completed_at TEXT,
                    duration INTEGER,
                    response_code INTEGER,
                    response_body TEXT,
                    error_message TEXT
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_executions_job_started
                ON job_executions (job_id, started_at DESC)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_executions_status
                ON job_executions (status)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_executions_started
                ON job_executions (started_at DESC)
            """)

    # =========================================================================
    # Job Operations
    # =========================================================================

    def create_job(self, job: Job) -> Job:
        """Insert a new job."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO jobs
                (job_id, schedule, endpoint, method, headers, body, enabled,
                 retry_attempts, retry_delay, execution_type, next_run_at,
                 last_run_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job.job_id,
                    job.schedule,
                    job.endpoint,
                    job.method,
                    json.dumps(job.headers),
                    json.dumps(job.body),
                    1 if job.enabled else 0,
                    job.retry_attempts,
                    job.retry_delay,
                    job.execution_type,
                    to_iso(job.next_run_at),
                    to_iso(job.last_run_at),
                    to_iso(job.created_at),
                    to_iso(job.updated_at),
                ),
            )
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        """Get a job by ID."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM jobs WHERE job_id = ?",
                (job_id,),
            ).fetchone()

        if row is None:
            return None

        return self._row_to_job(row)

    def _row_to_job(self, row: sqlite3.Row) -> Job:
        """Convert database row to Job entity."""
        return Job(
            job_id=row["job_id"],
            schedule=row["schedule"],
            endpoint=row["endpoint"],
            method=row["method"],
            headers=json.loads(row["headers"]),
            body=json.loads(row["body"]),
            enabled=bool(row["enabled"]),
            retry_attempts=row["retry_attempts"],
            retry_delay=row["retry_delay"],
            execution_type=row["execution_type"],
            next_run_at=from_iso(row["next_run_at"]),
            last_run_at=from_iso(row["last_run_at"]),
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
        )

    def update_job(
        self,
        job_id: str,
        schedule: Optional[str] = None,
        endpoint: Optional[str] = None,
        method: Optional[str] = None,
        headers: Optional[dict] = None,
        body: Any = None,
        enabled: Optional[bool] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[int] = None,
    ) -> bool:
        """
        Update editable job fields. None means "leave unchanged".

        Returns:
            True if a row was modified
        """
        updates = []
        values: list[Any] = []

        if schedule is not None:
            updates.append("schedule = ?")
            values.append(schedule)
        if endpoint is not None:
            updates.append("endpoint = ?")
            values.append(endpoint)
        if method is not None:
            updates.append("method = ?")
            values.append(method)
        if headers is not None:
            updates.append("headers = ?")
            values.append(json.dumps(headers))
        if body is not None:
            updates.append("body = ?")
            values.append(json.dumps(body))
        if enabled is not None:
            updates.append("enabled = ?")
            values.append(1 if enabled else 0)
        if retry_attempts is not None:
            updates.append("retry_attempts = ?")
            values.append(retry_attempts)
        if retry_delay is not None:
            updates.append("retry_delay = ?")
            values.append(retry_delay)

        if not updates:
            return False

        updates.append("updated_at = ?")
        values.append(to_iso(utc_now()))
        values.append(job_id)

        with self._transaction() as conn:
            cursor = conn.execute(
                f"UPDATE jobs SET {', '.join(updates)} WHERE job_id = ?",
                values,
            )
            return cursor.rowcount > 0

    def delete_job(self, job_id: str) -> bool:
        """Delete a job. Its execution history is kept."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM jobs WHERE job_id = ?", (job_id,))
            return cursor.rowcount > 0

    def list_jobs(self, offset: int = 0, limit: int = 20) -> list[Job]:
        """List jobs, oldest first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM jobs ORDER BY created_at ASC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()

        return [self._row_to_job(row) for row in rows]

    def count_jobs(self) -> int:
        with self._connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS cnt FROM jobs").fetchone()
        return row["cnt"]

    # =========================================================================
    # JobStore (Scheduler-facing)
    # =========================================================================

    def list_enabled(self) -> list[Job]:
        """List every enabled job."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM jobs WHERE enabled = 1 ORDER BY created_at ASC"
            ).fetchall()

        return [self._row_to_job(row) for row in rows]

    def find_due(self, limit: int, now: Optional[datetime] = None) -> list[Job]:
        """
        Find up to limit enabled jobs whose next_run_at has passed.

        Most overdue first.
        """
        if limit <= 0:
            return []

        cutoff = to_iso(now or utc_now())
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM jobs
                WHERE enabled = 1
                  AND next_run_at IS NOT NULL
                  AND next_run_at <= ?
                ORDER BY next_run_at ASC
                LIMIT ?
                """,
                (cutoff, limit),
            ).fetchall()

        return [self._row_to_job(row) for row in rows]

    def update_next_run_at(self, job_id: str, next_run_at: Optional[datetime]) -> None:
        """Set next_run_at and stamp last_run_at with the current time."""
        now = to_iso(utc_now())
        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE jobs
                SET next_run_at = ?, last_run_at = ?, updated_at = ?
                WHERE job_id = ?
                """,
                (to_iso(next_run_at), now, now, job_id),
            )

    def set_next_run_at(self, job_id: str, next_run_at: Optional[datetime]) -> None:
        """Set next_run_at without marking a dispatch (used on create/edit)."""
        with self._transaction() as conn:
            conn.execute(
                "UPDATE jobs SET next_run_at = ?, updated_at = ? WHERE job_id = ?",
                (to_iso(next_run_at), to_iso(utc_now()), job_id),
            )

    # =========================================================================
    # ExecutionStore (Executor-facing)
    # =========================================================================

    def create_execution(
        self,
        job_id: str,
        attempt: int,
        scheduled_at: Optional[datetime],
    ) -> str:
        """Create a RUNNING execution record and return its ID."""
        record = ExecutionRecord.create(
            job_id=job_id,
            attempt=attempt,
            scheduled_at=scheduled_at,
        )

        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO job_executions
                (execution_id, job_id, attempt, status, scheduled_at, started_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.execution_id,
                    record.job_id,
                    record.attempt,
                    record.status.value,
                    to_iso(record.scheduled_at),
                    to_iso(record.started_at),
                ),
            )
        return record.execution_id

    def mark_success(
        self,
        execution_id: str,
        response_code: int,
        response_body: Optional[str],
        duration_ms: int,
    ) -> None:
        """Move a RUNNING record to SUCCESS."""
        self._complete_execution(
            execution_id,
            status=ExecutionStatus.SUCCESS,
            response_code=response_code,
            response_body=truncate(response_body, RESPONSE_BODY_MAX_CHARS),
            error_message=None,
            duration_ms=duration_ms,
        )

    def mark_failure(
        self,
        execution_id: str,
        error_message: str,
        response_code: Optional[int],
        duration_ms: int,
    ) -> None:
        """Move a RUNNING record to FAILURE."""
        self._complete_execution(
            execution_id,
            status=ExecutionStatus.FAILURE,
            response_code=response_code,
            response_body=None,
            error_message=truncate(error_message, ERROR_MESSAGE_MAX_CHARS),
            duration_ms=duration_ms,
        )

    def _complete_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        response_code: Optional[int],
        response_body: Optional[str],
        error_message: Optional[str],
        duration_ms: int,
    ) -> None:
        # Only RUNNING rows transition; a second completion is ignored
        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE job_executions
                SET status = ?, completed_at = ?, duration = ?,
                    response_code = ?, response_body = ?, error_message = ?
                WHERE execution_id = ? AND status = ?
                """,
                (
                    status.value,
                    to_iso(utc_now()),
                    duration_ms,
                    response_code,
                    response_body,
                    error_message,
                    execution_id,
                    ExecutionStatus.RUNNING.value,
                ),
            )

    def get_execution(self, execution_id: str) -> Optional[ExecutionRecord]:
        """Get an execution record by ID."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM job_executions WHERE execution_id = ?",
                (execution_id,),
            ).fetchone()

        if row is None:
            return None

        return self._row_to_execution(row)

    def _row_to_execution(self, row: sqlite3.Row) -> ExecutionRecord:
        """Convert database row to ExecutionRecord entity."""
        return ExecutionRecord(
            execution_id=row["execution_id"],
            job_id=row["job_id"],
            attempt=row["attempt"],
            status=ExecutionStatus(row["status"]),
            scheduled_at=from_iso(row["scheduled_at"]),
            started_at=from_iso(row["started_at"]),
            completed_at=from_iso(row["completed_at"]),
            duration=row["duration"],
            response_code=row["response_code"],
            response_body=row["response_body"],
            error_message=row["error_message"],
        )

    def list_executions_for_job(self, job_id: str, limit: int = 5) -> list[ExecutionRecord]:
        """Most recent executions for a job, newest first."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM job_executions
                WHERE job_id = ?
                ORDER BY started_at DESC, attempt DESC
                LIMIT ?
                """,
                (job_id, limit),
            ).fetchall()

        return [self._row_to_execution(row) for row in rows]

    def list_recent_failures(self, limit: int = 10) -> list[ExecutionRecord]:
        """Most recent FAILURE records across all jobs, newest first."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM job_executions
                WHERE status = ?
                ORDER BY started_at DESC
                LIMIT ?
                """,
                (ExecutionStatus.FAILURE.value, limit),
            ).fetchall()

        return [self._row_to_execution(row) for row in rows]

    def get_execution_stats(self, now: Optional[datetime] = None) -> dict:
        """
        Aggregate execution counts.

        Returns:
            Dict with total, successful, failed, last_24_hours
        """
        since = to_iso((now or utc_now()) - timedelta(hours=24))

        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    SUM(CASE WHEN status = ? THEN 1 ELSE 0 END) AS successful,
                    SUM(CASE WHEN status = ? THEN 1 ELSE 0 END) AS failed,
                    SUM(CASE WHEN started_at >= ? THEN 1 ELSE 0 END) AS last_24_hours
                FROM job_executions
                """,
                (
                    ExecutionStatus.SUCCESS.value,
                    ExecutionStatus.FAILURE.value,
                    since,
                ),
            ).fetchone()

        return {
            "total": row["total"] or 0,
            "successful": row["successful"] or 0,
            "failed": row["failed"] or 0,
            "last_24_hours": row["last_24_hours"] or 0,
        }
