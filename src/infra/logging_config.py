"""
Logging configuration module.

Daily log rotation with process start time tracking.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

APP_LOGGER_NAME = "job_scheduler"

# Module loggers live under the "src" package (logging.getLogger(__name__))
PACKAGE_LOGGER_NAME = "src"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Process start time is captured once and reused for all daily logs
_PROCESS_START_TIME: Optional[str] = None


class DailyRotatingFileHandler(logging.FileHandler):
    """
    Daily rotating file handler.

    Creates one log file per calendar day with format:
    logs/job_scheduler_YYYYMMDD_<START_HHMMSS>.log

    START_HHMMSS is fixed at process start, only YYYYMMDD changes.
    """

    def __init__(self, log_dir: str = "logs", encoding: str = "utf-8"):
        global _PROCESS_START_TIME

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        if _PROCESS_START_TIME is None:
            _PROCESS_START_TIME = datetime.now().strftime("%H%M%S")

        self._start_hhmmss = _PROCESS_START_TIME
        self._current_date: Optional[str] = None

        initial_path = self._get_current_log_path()
        super().__init__(initial_path, mode='a', encoding=encoding)
        self._current_date = datetime.now().strftime("%Y%m%d")

    def _get_current_log_path(self) -> str:
        """Get log file path for current date."""
        date_str = datetime.now().strftime("%Y%m%d")
        return str(self.log_dir / f"{APP_LOGGER_NAME}_{date_str}_{self._start_hhmmss}.log")

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a record, rotating to new file if date changed."""
        current_date = datetime.now().strftime("%Y%m%d")

        if self._current_date != current_date:
            self.close()

            self.baseFilename = self._get_current_log_path()
            self._current_date = current_date
            self.stream = self._open()

        super().emit(record)


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = "logs") -> logging.Logger:
    """
    Configure logging and return the application logger.

    The same console + daily file handlers are attached to the application
    logger and to the package logger, so module loggers created with
    logging.getLogger(__name__) end up in the same places.

    Format: logs/job_scheduler_YYYYMMDD_<START_HHMMSS>.log

    Args:
        log_level (str): Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir (str): Directory for log files; None disables file logging

    Returns:
        logging.Logger: Configured application logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    file_handler: Optional[DailyRotatingFileHandler] = None
    if log_dir is not None:
        file_handler = DailyRotatingFileHandler(log_dir=log_dir, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in (APP_LOGGER_NAME, PACKAGE_LOGGER_NAME):
        target = logging.getLogger(name)
        target.setLevel(numeric_level)

        # Prevent propagation to root logger (avoid duplicate logs)
        target.propagate = False

        # Remove existing handlers (prevent duplicates)
        if target.handlers:
            target.handlers.clear()

        for handler in handlers:
            target.addHandler(handler)

    logger = logging.getLogger(APP_LOGGER_NAME)
    if file_handler is not None:
        logger.info(f"Logging started - level: {log_level}, log file: {file_handler.baseFilename}")
    else:
        logger.info(f"Logging started - level: {log_level}, console only")

    return logger
