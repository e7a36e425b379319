"""
API Routers package.
"""

from . import jobs, observability, scheduler

__all__ = ["jobs", "observability", "scheduler"]
