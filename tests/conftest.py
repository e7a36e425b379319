"""
Pytest configuration and shared fixtures.
"""

import logging

import pytest

from src.infra.logging_config import APP_LOGGER_NAME, PACKAGE_LOGGER_NAME


@pytest.fixture(autouse=True, scope="function")
def reset_loggers():
    """
    Undo setup_logging() after each test.

    setup_logging disables propagation on the application and package
    loggers, which would hide records from caplog in later tests.
    """
    yield

    for name in (APP_LOGGER_NAME, PACKAGE_LOGGER_NAME):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
