"""Tests for logging setup."""

import logging
import logging.handlers

import pytest

from rolegraph.core.logger import BACKUP_COUNT, LOG_FORMAT, MAX_BYTES, get_logger, setup_logger


@pytest.fixture
def logger_name(request):
    name = f"rolegraph-test-{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestSetupLogger:
    """Test logger configuration."""

    def test_console_handler(self, logger_name):
        """Test the default console handler."""
        logger = setup_logger(logger_name, level="debug")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_no_duplicate_handlers(self, logger_name):
        """Test that repeated setup does not stack handlers."""
        setup_logger(logger_name)
        logger = setup_logger(logger_name)
        assert len(logger.handlers) == 1

    def test_file_logging(self, logger_name, tmp_path):
        """Test rotating file output."""
        logger = setup_logger(logger_name, log_dir=str(tmp_path), file_logging=True, console_logging=False)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in (tmp_path / f"{logger_name}.log").read_text()

    def test_file_rotation_settings(self, logger_name, tmp_path):
        """Test that the log file rotates at the module limits and uses the shared format."""
        logger = setup_logger(logger_name, log_dir=str(tmp_path), file_logging=True, console_logging=False)
        (handler,) = logger.handlers
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert handler.maxBytes == MAX_BYTES
        assert handler.backupCount == BACKUP_COUNT
        assert handler.formatter._fmt == LOG_FORMAT

    def test_invalid_level(self, logger_name):
        """Test that unknown levels are refused."""
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logger(logger_name, level="LOUD")


class TestGetLogger:
    """Test module logger naming."""

    def test_prefix(self):
        """Test that component names are placed under the package logger."""
        assert get_logger("graph").name == "rolegraph.graph"

    def test_already_prefixed(self):
        """Test that full names are kept."""
        assert get_logger("rolegraph.store").name == "rolegraph.store"
        assert get_logger("rolegraph").name == "rolegraph"
