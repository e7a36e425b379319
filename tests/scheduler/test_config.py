"""
SchedulerSettings Tests.
"""

import pytest

from src.scheduler import SchedulerSettings


ENV_VARS = (
    "SCHEDULER_POLL_INTERVAL",
    "MAX_CONCURRENT_JOBS",
    "SCHEDULER_DB_PATH",
    "HTTP_TIMEOUT_SECONDS",
    "SCHEDULER_AUTOSTART",
    "SHUTDOWN_TIMEOUT",
    "LOG_LEVEL",
    "HOST",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = SchedulerSettings.from_env()

    assert settings.poll_interval == 1000
    assert settings.max_concurrent_jobs == 10
    assert settings.db_path == "data/scheduler.db"
    assert settings.http_timeout == 30.0
    assert settings.autostart is True
    assert settings.port == 3000


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("SCHEDULER_POLL_INTERVAL", "250")
    monkeypatch.setenv("MAX_CONCURRENT_JOBS", "4")
    monkeypatch.setenv("SCHEDULER_DB_PATH", "/tmp/jobs.db")
    monkeypatch.setenv("SCHEDULER_AUTOSTART", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = SchedulerSettings.from_env()

    assert settings.poll_interval == 250
    assert settings.max_concurrent_jobs == 4
    assert settings.db_path == "/tmp/jobs.db"
    assert settings.autostart is False
    assert settings.log_level == "DEBUG"


def test_invalid_and_out_of_range_values(monkeypatch):
    monkeypatch.setenv("SCHEDULER_POLL_INTERVAL", "1")
    monkeypatch.setenv("MAX_CONCURRENT_JOBS", "0")
    monkeypatch.setenv("PORT", "not-a-port")

    settings = SchedulerSettings.from_env()

    assert settings.poll_interval == 10
    assert settings.max_concurrent_jobs == 1
    assert settings.port == 3000
