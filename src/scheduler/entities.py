"""
Scheduler Domain Entities.

- Job: an HTTP call template plus the cron schedule it runs on
- ExecutionRecord: outcome of one HTTP attempt within a dispatch

Timestamps are timezone-aware UTC datetimes in memory and fixed-width
ISO-8601 strings ("2024-01-01T00:00:00.000000Z") in storage, so that string
order equals time order.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
import uuid


DEFAULT_METHOD = "POST"
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 5000
EXECUTION_TYPE_AT_LEAST_ONCE = "AT_LEAST_ONCE"

# Methods whose body is sent with the request
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

RESPONSE_BODY_MAX_CHARS = 1000
ERROR_MESSAGE_MAX_CHARS = 500

_ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class ExecutionStatus(str, Enum):
    """
    ExecutionRecord status values.

    RUNNING on creation; moves exactly once to SUCCESS or FAILURE.
    """

    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(moment: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for storage. Naive values are taken as UTC."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(_ISO_FORMAT)


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp back into an aware UTC datetime."""
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def truncate(text: Optional[str], limit: int) -> Optional[str]:
    if text is None:
        return None
    return text[:limit]


@dataclass
class Job:
    """
    A recurring HTTP call.

    Mutability rules:
    - job_id, execution_type, created_at: Immutable
    - next_run_at, last_run_at: Written by the Scheduler before each dispatch
    - everything else: Editable through the service layer
    """

    job_id: str
    schedule: str
    endpoint: str
    method: str = DEFAULT_METHOD
    headers: dict = field(default_factory=dict)
    body: Any = field(default_factory=dict)
    enabled: bool = True
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: int = DEFAULT_RETRY_DELAY_MS
    execution_type: str = EXECUTION_TYPE_AT_LEAST_ONCE
    next_run_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        schedule: str,
        endpoint: str,
        method: Optional[str] = None,
        headers: Optional[dict] = None,
        body: Any = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[int] = None,
        enabled: bool = True,
    ) -> "Job":
        """Create a new Job with generated ID and defaults filled in."""
        return cls(
            job_id=generate_uuid(),
            schedule=schedule,
            endpoint=endpoint,
            method=(method or DEFAULT_METHOD).upper(),
            headers=headers or {},
            body=body if body is not None else {},
            enabled=enabled,
            retry_attempts=retry_attempts or DEFAULT_RETRY_ATTEMPTS,
            retry_delay=retry_delay if retry_delay is not None else DEFAULT_RETRY_DELAY_MS,
        )

    def to_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "schedule": self.schedule,
            "endpoint": self.endpoint,
            "method": self.method,
            "headers": self.headers,
            "body": self.body,
            "enabled": self.enabled,
            "retry_attempts": self.retry_attempts,
            "retry_delay": self.retry_delay,
            "execution_type": self.execution_type,
            "next_run_at": to_iso(self.next_run_at),
            "last_run_at": to_iso(self.last_run_at),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


@dataclass
class ExecutionRecord:
    """
    Historical record of one HTTP attempt.

    A dispatch for one due instant yields 1..retry_attempts records; the
    last one is SUCCESS or FAILURE.
    """

    execution_id: str
    job_id: str
    attempt: int
    status: ExecutionStatus = ExecutionStatus.RUNNING
    scheduled_at: Optional[datetime] = None
    started_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    duration: Optional[int] = None
    response_code: Optional[int] = None
    response_body: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def create(
        cls,
        job_id: str,
        attempt: int = 1,
        scheduled_at: Optional[datetime] = None,
    ) -> "ExecutionRecord":
        """Create a RUNNING record for a new attempt."""
        now = utc_now()
        return cls(
            execution_id=generate_uuid(),
            job_id=job_id,
            attempt=attempt,
            scheduled_at=scheduled_at or now,
            started_at=now,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status != ExecutionStatus.RUNNING

    def to_dict(self) -> dict:
        return {
            "execution_id": self.execution_id,
            "job_id": self.job_id,
            "attempt": self.attempt,
            "status": self.status.value,
            "scheduled_at": to_iso(self.scheduled_at),
            "started_at": to_iso(self.started_at),
            "completed_at": to_iso(self.completed_at),
            "duration": self.duration,
            "response_code": self.response_code,
            "response_body": self.response_body,
            "error_message": self.error_message,
        }
