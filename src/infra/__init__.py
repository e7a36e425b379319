"""
Infrastructure module - logging setup shared by the server entry point.
"""

from .logging_config import setup_logging, DailyRotatingFileHandler

__all__ = [
    # logging
    "setup_logging",
    "DailyRotatingFileHandler",
]
