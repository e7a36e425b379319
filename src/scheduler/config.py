"""
Runtime configuration for the scheduler service.

Loop:
- SCHEDULER_POLL_INTERVAL: milliseconds between poll cycles (default: 1000)
- MAX_CONCURRENT_JOBS: ceiling on in-flight dispatches (default: 10)
- SCHEDULER_AUTOSTART: start polling with the API server (default: true)
- SHUTDOWN_TIMEOUT: seconds to wait for in-flight dispatches on shutdown (default: 30)

Storage / HTTP:
- SCHEDULER_DB_PATH: SQLite file (default: data/scheduler.db)
- HTTP_TIMEOUT_SECONDS: per-attempt request timeout (default: 30)

Server:
- HOST (default: 0.0.0.0), PORT (default: 3000), LOG_LEVEL (default: INFO)
"""

import os
from dataclasses import dataclass


DEFAULT_DB_PATH = "data/scheduler.db"


@dataclass(frozen=True)
class SchedulerSettings:
    """Settings consumed when wiring the service."""

    poll_interval: int = 1000
    max_concurrent_jobs: int = 10
    db_path: str = DEFAULT_DB_PATH
    http_timeout: float = 30.0
    autostart: bool = True
    shutdown_timeout: float = 30.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "SchedulerSettings":
        return cls(
            poll_interval=max(10, _env_int("SCHEDULER_POLL_INTERVAL", 1000)),
            max_concurrent_jobs=max(1, _env_int("MAX_CONCURRENT_JOBS", 10)),
            db_path=(os.environ.get("SCHEDULER_DB_PATH") or DEFAULT_DB_PATH).strip(),
            http_timeout=max(1.0, _env_float("HTTP_TIMEOUT_SECONDS", 30.0)),
            autostart=_env_bool("SCHEDULER_AUTOSTART", True),
            shutdown_timeout=max(0.0, _env_float("SHUTDOWN_TIMEOUT", 30.0)),
            log_level=(os.environ.get("LOG_LEVEL") or "INFO").strip().upper(),
            host=(os.environ.get("HOST") or "0.0.0.0").strip(),
            port=_env_int("PORT", 3000),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return int(default)
    try:
        return int(str(raw).strip())
    except ValueError:
        return int(default)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return float(default)
    try:
        return float(str(raw).strip())
    except ValueError:
        return float(default)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")
