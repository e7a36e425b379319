"""
HTTP job scheduler: cron-driven outbound HTTP calls with retries,
execution history and a FastAPI control surface.
"""

__version__ = "1.0.0"
