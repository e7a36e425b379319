"""
Persistence Tests.

- Job CRUD round trip through SQLite
- find_due ordering, limit and filtering
- next_run_at bookkeeping
- Execution record lifecycle and aggregates
"""

import pytest
from datetime import timedelta

from src.scheduler import ExecutionStatus, Job, PersistenceAdapter
from src.scheduler.entities import ERROR_MESSAGE_MAX_CHARS, RESPONSE_BODY_MAX_CHARS

from .conftest import FIXED_DATETIME


# =============================================================================
# Jobs
# =============================================================================


class TestJobStorage:

    def test_create_and_get(self, persistence: PersistenceAdapter):
        job = Job.create(
            schedule="0 */5 * * * *",
            endpoint="https://example.com/hook",
            method="put",
            headers={"Authorization": "Bearer x"},
            body={"items": [1, 2, 3]},
            retry_attempts=5,
            retry_delay=250,
        )
        job.next_run_at = FIXED_DATETIME
        persistence.create_job(job)

        loaded = persistence.get_job(job.job_id)

        assert loaded is not None
        assert loaded.method == "PUT"
        assert loaded.headers == {"Authorization": "Bearer x"}
        assert loaded.body == {"items": [1, 2, 3]}
        assert loaded.retry_attempts == 5
        assert loaded.retry_delay == 250
        assert loaded.execution_type == "AT_LEAST_ONCE"
        assert loaded.enabled is True
        assert loaded.next_run_at == FIXED_DATETIME
        assert loaded.last_run_at is None

    def test_get_missing_job(self, persistence: PersistenceAdapter):
        assert persistence.get_job("missing") is None

    def test_update_only_given_fields(self, persistence: PersistenceAdapter, create_job):
        job = create_job()

        assert persistence.update_job(job.job_id, endpoint="https://example.com/other", enabled=False)

        loaded = persistence.get_job(job.job_id)
        assert loaded.endpoint == "https://example.com/other"
        assert loaded.enabled is False
        assert loaded.schedule == job.schedule
        assert loaded.updated_at >= job.updated_at

    def test_update_without_changes(self, persistence: PersistenceAdapter, create_job):
        job = create_job()
        assert persistence.update_job(job.job_id) is False

    def test_update_missing_job(self, persistence: PersistenceAdapter):
        assert persistence.update_job("missing", enabled=False) is False

    def test_delete(self, persistence: PersistenceAdapter, create_job):
        job = create_job()

        assert persistence.delete_job(job.job_id) is True
        assert persistence.get_job(job.job_id) is None
        assert persistence.delete_job(job.job_id) is False

    def test_list_jobs_paginates(self, persistence: PersistenceAdapter, create_job):
        jobs = [create_job() for _ in range(5)]

        first_page = persistence.list_jobs(offset=0, limit=2)
        last_page = persistence.list_jobs(offset=4, limit=2)

        assert len(first_page) == 2
        assert len(last_page) == 1
        assert persistence.count_jobs() == 5
        assert {j.job_id for j in persistence.list_jobs(limit=10)} == {j.job_id for j in jobs}

    def test_list_enabled(self, persistence: PersistenceAdapter, create_job):
        enabled = create_job()
        create_job(enabled=False)

        assert [j.job_id for j in persistence.list_enabled()] == [enabled.job_id]


# =============================================================================
# Due-job lookup
# =============================================================================


class TestFindDue:

    def test_most_overdue_first(self, persistence: PersistenceAdapter, create_job):
        late = create_job(next_run_at=FIXED_DATETIME - timedelta(minutes=1))
        later = create_job(next_run_at=FIXED_DATETIME - timedelta(minutes=5))
        on_time = create_job(next_run_at=FIXED_DATETIME)

        due = persistence.find_due(10, FIXED_DATETIME)

        assert [j.job_id for j in due] == [later.job_id, late.job_id, on_time.job_id]

    def test_excludes_future_disabled_and_unscheduled(
        self, persistence: PersistenceAdapter, create_job
    ):
        due = create_job(next_run_at=FIXED_DATETIME)
        create_job(next_run_at=FIXED_DATETIME + timedelta(seconds=1))
        create_job(next_run_at=FIXED_DATETIME, enabled=False)
        create_job(next_run_at=None)

        assert [j.job_id for j in persistence.find_due(10, FIXED_DATETIME)] == [due.job_id]

    def test_respects_limit(self, persistence: PersistenceAdapter, create_job):
        for _ in range(3):
            create_job()

        assert len(persistence.find_due(2, FIXED_DATETIME)) == 2

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit(self, persistence: PersistenceAdapter, create_job, limit):
        create_job()
        assert persistence.find_due(limit, FIXED_DATETIME) == []

    def test_microsecond_ordering(self, persistence: PersistenceAdapter, create_job):
        first = create_job(next_run_at=FIXED_DATETIME + timedelta(microseconds=1))
        second = create_job(next_run_at=FIXED_DATETIME + timedelta(microseconds=2))

        due = persistence.find_due(10, FIXED_DATETIME + timedelta(seconds=1))
        assert [j.job_id for j in due] == [first.job_id, second.job_id]


class TestNextRunBookkeeping:

    def test_update_next_run_at_stamps_last_run(self, persistence: PersistenceAdapter, create_job):
        job = create_job()
        next_run = FIXED_DATETIME + timedelta(minutes=1)

        persistence.update_next_run_at(job.job_id, next_run)

        loaded = persistence.get_job(job.job_id)
        assert loaded.next_run_at == next_run
        assert loaded.last_run_at is not None

    def test_update_next_run_at_to_none_parks_job(
        self, persistence: PersistenceAdapter, create_job
    ):
        job = create_job()

        persistence.update_next_run_at(job.job_id, None)

        assert persistence.get_job(job.job_id).next_run_at is None
        assert persistence.find_due(10, FIXED_DATETIME) == []

    def test_set_next_run_at_leaves_last_run(self, persistence: PersistenceAdapter, create_job):
        job = create_job(next_run_at=None)

        persistence.set_next_run_at(job.job_id, FIXED_DATETIME)

        loaded = persistence.get_job(job.job_id)
        assert loaded.next_run_at == FIXED_DATETIME
        assert loaded.last_run_at is None


# =============================================================================
# Execution records
# =============================================================================


class TestExecutionRecords:

    def test_create_is_running(self, persistence: PersistenceAdapter):
        execution_id = persistence.create_execution("job-1", 1, FIXED_DATETIME)

        record = persistence.get_execution(execution_id)
        assert record.status == ExecutionStatus.RUNNING
        assert record.scheduled_at == FIXED_DATETIME
        assert record.completed_at is None
        assert record.is_terminal is False

    def test_mark_success_truncates_body(self, persistence: PersistenceAdapter):
        execution_id = persistence.create_execution("job-1", 1, FIXED_DATETIME)

        persistence.mark_success(execution_id, 200, "x" * 5000, 42)

        record = persistence.get_execution(execution_id)
        assert record.status == ExecutionStatus.SUCCESS
        assert record.response_code == 200
        assert len(record.response_body) == RESPONSE_BODY_MAX_CHARS
        assert record.duration == 42
        assert record.completed_at is not None
        assert record.error_message is None

    def test_mark_failure_truncates_error(self, persistence: PersistenceAdapter):
        execution_id = persistence.create_execution("job-1", 2, FIXED_DATETIME)

        persistence.mark_failure(execution_id, "e" * 2000, 503, 7)

        record = persistence.get_execution(execution_id)
        assert record.status == ExecutionStatus.FAILURE
        assert record.attempt == 2
        assert record.response_code == 503
        assert len(record.error_message) == ERROR_MESSAGE_MAX_CHARS
        assert record.response_body is None

    def test_terminal_record_is_not_rewritten(self, persistence: PersistenceAdapter):
        execution_id = persistence.create_execution("job-1", 1, FIXED_DATETIME)
        persistence.mark_success(execution_id, 200, "ok", 1)

        persistence.mark_failure(execution_id, "late failure", None, 2)

        record = persistence.get_execution(execution_id)
        assert record.status == ExecutionStatus.SUCCESS
        assert record.error_message is None

    def test_list_for_job_newest_first(self, persistence: PersistenceAdapter):
        ids = [persistence.create_execution("job-1", attempt, FIXED_DATETIME) for attempt in (1, 2, 3)]
        persistence.create_execution("job-2", 1, FIXED_DATETIME)

        records = persistence.list_executions_for_job("job-1", limit=2)

        assert [r.execution_id for r in records] == [ids[2], ids[1]]

    def test_recent_failures(self, persistence: PersistenceAdapter):
        ok = persistence.create_execution("job-1", 1, FIXED_DATETIME)
        bad = persistence.create_execution("job-2", 1, FIXED_DATETIME)
        persistence.mark_success(ok, 200, None, 1)
        persistence.mark_failure(bad, "boom", None, 1)

        failures = persistence.list_recent_failures()

        assert [r.execution_id for r in failures] == [bad]

    def test_stats(self, persistence: PersistenceAdapter):
        assert persistence.get_execution_stats() == {
            "total": 0,
            "successful": 0,
            "failed": 0,
            "last_24_hours": 0,
        }

        ok = persistence.create_execution("job-1", 1, FIXED_DATETIME)
        bad = persistence.create_execution("job-1", 2, FIXED_DATETIME)
        persistence.create_execution("job-1", 3, FIXED_DATETIME)
        persistence.mark_success(ok, 200, None, 1)
        persistence.mark_failure(bad, "boom", None, 1)

        stats = persistence.get_execution_stats()
        assert stats == {"total": 3, "successful": 1, "failed": 1, "last_24_hours": 3}
