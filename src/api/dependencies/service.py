"""
Scheduler service dependency.

The service is built in the application lifespan and kept on app.state;
routers receive it through Depends(get_scheduler_service).
"""

from fastapi import HTTPException, Request

from ...scheduler import SchedulerService


def get_scheduler_service(request: Request) -> SchedulerService:
    """
    Resolve the SchedulerService for the current application.

    Raises:
        HTTPException: 503 if the lifespan has not built the service
    """
    service = getattr(request.app.state, "scheduler_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Scheduler service is not initialized")
    return service
