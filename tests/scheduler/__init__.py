"""
Job Scheduler Test Suite.

- Cron evaluation (next-run search, parsing errors)
- Persistence (jobs, execution records, due-job lookup)
- Executor (retry loop, duplicate suppression)
- Scheduler (poll cycle, admission control, lifecycle)
- Service (job CRUD validation, rescheduling)
"""
