"""
Job Scheduler Core Module.

- cron: next-run computation for six-field cron expressions
- scheduler: poll loop with admission control
- executor: retrying HTTP dispatches, one in flight per job
- persistence: SQLite job and execution storage
- service: wiring plus job CRUD for the API layer
"""

from .entities import (
    ExecutionStatus,
    Job,
    ExecutionRecord,
)
from .errors import (
    SchedulerError,
    MalformedExpressionError,
    TransportFailure,
    DispatchError,
    JobNotFoundError,
    InvalidJobError,
)
from .cron import (
    CronExpression,
    parse_expression,
    validate_expression,
    next_run_time,
)
from .config import SchedulerSettings
from .stores import JobStore, ExecutionStore
from .persistence import PersistenceAdapter
from .http_client import HttpCaller, HttpResult
from .executor import JobExecutor
from .scheduler import Scheduler, SchedulerState
from .service import SchedulerService

__all__ = [
    # Entities
    "ExecutionStatus",
    "Job",
    "ExecutionRecord",
    # Errors
    "SchedulerError",
    "MalformedExpressionError",
    "TransportFailure",
    "DispatchError",
    "JobNotFoundError",
    "InvalidJobError",
    # Cron
    "CronExpression",
    "parse_expression",
    "validate_expression",
    "next_run_time",
    # Config
    "SchedulerSettings",
    # Stores
    "JobStore",
    "ExecutionStore",
    "PersistenceAdapter",
    # HTTP
    "HttpCaller",
    "HttpResult",
    # Executor
    "JobExecutor",
    # Scheduler
    "Scheduler",
    "SchedulerState",
    # Service
    "SchedulerService",
]
