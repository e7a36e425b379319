"""
Scheduler-specific exceptions.

Per-job failures are isolated: none of these are fatal to the process.
- MalformedExpressionError: schedule text fails structural parsing
- TransportFailure: HTTP call failed or timed out (drives retry)
- DispatchError: unexpected fault escaping a dispatch task
"""

from typing import Optional


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""
    pass


class MalformedExpressionError(SchedulerError):
    """
    Raised when a cron expression cannot be parsed.

    Surfaced to whoever asked for a next-run computation; never silently
    defaulted to "matches everything".
    """

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Malformed cron expression '{expression}': {reason}")


class TransportFailure(SchedulerError):
    """
    Raised by the HTTP caller when a request does not produce a usable response.

    Covers timeouts, connection errors and non-2xx statuses. status_code is
    set when the server did answer.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DispatchError(SchedulerError):
    """Raised (and logged) when a dispatch task dies with an unexpected error."""

    def __init__(self, job_id: str, cause: BaseException):
        self.job_id = job_id
        self.cause = cause
        super().__init__(f"Dispatch of job {job_id} failed: {cause}")


class JobNotFoundError(SchedulerError):
    """Raised when a requested job does not exist."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__("Job not found")


class InvalidJobError(SchedulerError):
    """Raised when a job definition or update fails validation."""
    pass
