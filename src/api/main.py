"""
FastAPI application entry point.

Wires the SchedulerService into the application lifespan:
- startup: build the service from SchedulerSettings, optionally start polling
- shutdown: stop polling, drain in-flight dispatches, close the HTTP client

Errors are returned as {"success": false, "error": "..."}.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from src import __version__
from .routers import jobs, observability, scheduler
from ..scheduler import (
    InvalidJobError,
    JobNotFoundError,
    SchedulerError,
    SchedulerService,
    SchedulerSettings,
)


logger = logging.getLogger(__name__)

# Tag metadata for Swagger UI
tags_metadata = [
    {
        "name": "jobs",
        "description": "Create, inspect, update and delete scheduled HTTP jobs.",
    },
    {
        "name": "scheduler",
        "description": "Start, stop and inspect the poll loop.",
    },
    {
        "name": "observability",
        "description": "Health check, execution statistics and recent failures.",
    },
]


def create_app(
    settings: Optional[SchedulerSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Runtime settings; read from the environment at startup if omitted
        transport: Optional httpx transport for outbound calls (tests)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or SchedulerSettings.from_env()
        service = SchedulerService.create(resolved, transport=transport)
        app.state.scheduler_service = service

        if resolved.autostart:
            await service.start()
        else:
            logger.info("Scheduler autostart disabled; POST /api/scheduler/start to begin")

        yield

        await service.shutdown(timeout=resolved.shutdown_timeout)
        app.state.scheduler_service = None

    app = FastAPI(
        title="Job Scheduler API",
        description="""
## Job Scheduler API

Runs HTTP calls on six-field cron schedules
(`second minute hour day month dayOfWeek`), retrying failed attempts
and keeping a record of every attempt.

### Usage
```bash
# Start server
python main.py --port 3000

# Call a webhook every 15 minutes
curl -X POST http://localhost:3000/api/jobs \\
  -H "Content-Type: application/json" \\
  -d '{"schedule": "0 */15 * * * *", "endpoint": "https://example.com/hook"}'
```
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )

    @app.exception_handler(JobNotFoundError)
    async def job_not_found_handler(request: Request, exc: JobNotFoundError):
        return JSONResponse(status_code=404, content={"success": False, "error": str(exc)})

    @app.exception_handler(InvalidJobError)
    async def invalid_job_handler(request: Request, exc: InvalidJobError):
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(SchedulerError)
    async def scheduler_error_handler(request: Request, exc: SchedulerError):
        logger.error(f"Unhandled scheduler error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
        )

    @app.get("/")
    async def root():
        """Service banner."""
        return {
            "success": True,
            "message": "Job Scheduler API",
            "version": __version__,
            "endpoints": {
                "jobs": "/api/jobs",
                "scheduler": "/api/scheduler",
                "observability": "/api/observability",
                "docs": "/docs",
            },
        }

    app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
    app.include_router(scheduler.router, prefix="/api/scheduler", tags=["scheduler"])
    app.include_router(
        observability.router, prefix="/api/observability", tags=["observability"]
    )

    return app


app = create_app()
