"""
API Dependencies package.

Cross-cutting concerns injected into routers.
"""

from .service import get_scheduler_service

__all__ = ["get_scheduler_service"]
