import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import patch

from rich.logging import RichHandler

from addon_manifest import log_utils


def _own_handlers():
    """Handlers attached by log_utils, ignoring any added by the test runner."""
    return [
        h
        for h in log_utils.logger.handlers
        if isinstance(h, (RichHandler, RotatingFileHandler))
    ]


class TestLogUtils:
    """Test suite for log_utils module."""

    def setup_method(self):
        """Reset logger state before each test."""
        for handler in log_utils.logger.handlers[:]:
            log_utils.logger.removeHandler(handler)
            handler.close()

        log_utils._file_handler = None
        log_utils._initialize_logger()

    def test_logger_initialization(self):
        """Test that logger is properly initialized."""
        assert log_utils.logger.name == "addon_manifest"
        assert not log_utils.logger.propagate
        assert len(_own_handlers()) == 1
        assert isinstance(_own_handlers()[0], RichHandler)

    def test_logger_initialization_with_env_var(self):
        """Test logger initialization with environment variable."""
        with patch.dict(os.environ, {"ADDON_MANIFEST_LOG_LEVEL": "DEBUG"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.DEBUG
            assert _own_handlers()[0].level == logging.DEBUG

    def test_logger_initialization_with_invalid_env_var(self):
        """Test logger initialization with invalid environment variable."""
        with patch.dict(os.environ, {"ADDON_MANIFEST_LOG_LEVEL": "INVALID"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.INFO

    def test_set_log_level_valid(self):
        """Test setting valid log levels."""
        log_utils.set_log_level("debug")
        assert log_utils.logger.level == logging.DEBUG

        log_utils.set_log_level("WARNING")
        assert log_utils.logger.level == logging.WARNING

    def test_set_log_level_invalid(self):
        """Test setting invalid log level."""
        original_level = log_utils.logger.level
        log_utils.set_log_level("INVALID_LEVEL")
        assert log_utils.logger.level == original_level

    def test_set_log_level_keeps_rich_formatter_terse(self):
        """RichHandler output stays message-only at every level."""
        log_utils.set_log_level("DEBUG")
        assert _own_handlers()[0].formatter._fmt == "%(message)s"

    def test_add_file_logging(self):
        """Test adding file logging functionality."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir)
            log_utils.add_file_logging(log_dir, "INFO")

            assert len(_own_handlers()) == 2  # Console + File
            assert log_utils._file_handler in _own_handlers()
            assert (log_dir / "addon-manifest.log").exists()
            log_utils._file_handler.close()

    def test_add_file_logging_replaces_existing(self):
        """Test that adding file logging replaces existing file handler."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir)

            log_utils.add_file_logging(log_dir, "INFO")
            first_handler = log_utils._file_handler
            log_utils.add_file_logging(log_dir, "DEBUG")

            assert log_utils._file_handler is not first_handler
            assert len(_own_handlers()) == 2
            assert log_utils._file_handler.level == logging.DEBUG
            assert "%(name)s" in log_utils._file_handler.formatter._fmt
            log_utils._file_handler.close()

    def test_add_file_logging_invalid_level_defaults_to_info(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            log_utils.add_file_logging(Path(temp_dir) / "nested", "NOPE")

            assert isinstance(log_utils._file_handler, RotatingFileHandler)
            assert log_utils._file_handler.level == logging.INFO
            assert (Path(temp_dir) / "nested").exists()
            log_utils._file_handler.close()
