"""
Tests for logging_config module.
"""

import logging

from src.infra.logging_config import (
    APP_LOGGER_NAME,
    PACKAGE_LOGGER_NAME,
    DailyRotatingFileHandler,
    setup_logging,
)


class TestDailyRotatingFileHandler:
    """Tests for DailyRotatingFileHandler class."""

    def test_handler_creates_log_directory(self, tmp_path):
        """Test that handler creates log directory if it doesn't exist."""
        log_dir = tmp_path / "new_logs"
        assert not log_dir.exists()

        handler = DailyRotatingFileHandler(log_dir=str(log_dir))
        assert log_dir.exists()
        handler.close()

    def test_handler_creates_log_file(self, tmp_path):
        """Test that handler creates a log file with correct naming."""
        handler = DailyRotatingFileHandler(log_dir=str(tmp_path))

        log_files = list(tmp_path.glob("job_scheduler_*.log"))
        assert len(log_files) == 1

        # Verify filename pattern
        filename = log_files[0].name
        assert filename.startswith("job_scheduler_")
        assert filename.endswith(".log")
        handler.close()

    def test_handler_emits_record(self, tmp_path):
        """Test that handler writes log records to file."""
        handler = DailyRotatingFileHandler(log_dir=str(tmp_path))
        handler.setFormatter(logging.Formatter('%(message)s'))

        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="",
            lineno=0,
            msg="Test message",
            args=(),
            exc_info=None
        )
        handler.emit(record)
        handler.close()

        log_files = list(tmp_path.glob("job_scheduler_*.log"))
        assert len(log_files) == 1

        content = log_files[0].read_text()
        assert "Test message" in content


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_returns_logger(self, tmp_path):
        """Test that setup_logging returns the application logger."""
        logger = setup_logging("INFO", log_dir=str(tmp_path))

        assert isinstance(logger, logging.Logger)
        assert logger.name == APP_LOGGER_NAME

    def test_sets_correct_log_level(self, tmp_path):
        """Test that setup_logging sets the correct log level."""
        logger = setup_logging("DEBUG", log_dir=str(tmp_path))
        assert logger.level == logging.DEBUG

        logger = setup_logging("WARNING", log_dir=str(tmp_path))
        assert logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging("LOUD", log_dir=None)
        assert logger.level == logging.INFO

    def test_adds_console_handler(self):
        """Test that setup_logging adds a console handler."""
        logger = setup_logging("INFO", log_dir=None)

        has_stream_handler = any(
            isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
            for h in logger.handlers
        )
        assert has_stream_handler
        assert not any(isinstance(h, logging.FileHandler) for h in logger.handlers)

    def test_prevents_propagation(self, tmp_path):
        """Test that logger propagation is disabled."""
        logger = setup_logging("INFO", log_dir=str(tmp_path))
        assert logger.propagate is False

    def test_module_loggers_share_handlers(self, tmp_path):
        """Records from package modules land in the same log file."""
        setup_logging("INFO", log_dir=str(tmp_path))

        logging.getLogger("src.scheduler.scheduler").info("poll cycle marker")
        for handler in logging.getLogger(PACKAGE_LOGGER_NAME).handlers:
            handler.flush()

        log_files = list(tmp_path.glob("job_scheduler_*.log"))
        assert len(log_files) == 1
        assert "poll cycle marker" in log_files[0].read_text()
