"""Tests for setup_logging functionality."""
import logging
from logging.handlers import RotatingFileHandler
import tempfile
import os
import subprocess
import sys

from src.shared.logging_config import setup_logging


class TestSetupLogging:
    """Tests for setup_logging idempotency."""

    def setup_method(self):
        """Clear handlers before each test."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

    def teardown_method(self):
        """Clean up handlers after each test."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

    def test_console_handler_not_duplicated_on_multiple_calls(self):
        """Calling setup_logging multiple times should not add duplicate console handlers.

        Runs in a subprocess so pytest's own capture handlers are not counted.
        """
        test_code = '''
import logging
from logging.handlers import RotatingFileHandler
import tempfile
import os
import sys

root_logger = logging.getLogger()
for handler in root_logger.handlers[:]:
    root_logger.removeHandler(handler)
    handler.close()

from src.shared.logging_config import setup_logging

with tempfile.TemporaryDirectory() as tmpdir:
    log_file = os.path.join(tmpdir, "crawler.log")

    setup_logging(log_file)
    setup_logging(log_file)
    setup_logging(log_file)

    console_handlers = [
        h for h in root_logger.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]

    if len(console_handlers) != 1:
        print(f"FAIL: Expected 1 console handler, got {len(console_handlers)}")
        sys.exit(1)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    print("PASS")
    sys.exit(0)
'''
        result = subprocess.run(
            [sys.executable, '-c', test_code],
            capture_output=True,
            text=True,
            cwd=os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        )
        assert result.returncode == 0, f"Test failed: {result.stdout} {result.stderr}"

    def test_file_handler_not_duplicated_on_multiple_calls(self):
        """Calling setup_logging multiple times should not add duplicate file handlers."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "crawler.log")

            setup_logging(log_file)
            setup_logging(log_file)
            setup_logging(log_file)

            file_handlers = [
                h for h in logging.getLogger().handlers
                if isinstance(h, RotatingFileHandler)
            ]
            assert len(file_handlers) == 1, f"Expected 1 file handler, got {len(file_handlers)}"

            self.teardown_method()

    def test_changed_rotation_settings_replace_handler(self):
        """A second call with different rotation settings swaps the file handler."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "crawler.log")

            setup_logging(log_file, max_bytes=1024, backup_count=1)
            setup_logging(log_file, max_bytes=2048, backup_count=2)

            file_handlers = [
                h for h in logging.getLogger().handlers
                if isinstance(h, RotatingFileHandler)
            ]
            assert len(file_handlers) == 1
            assert file_handlers[0].maxBytes == 2048
            assert file_handlers[0].backupCount == 2

            self.teardown_method()

    def test_level_applied(self):
        """The root level follows the level argument (DEBUG for --verbose)."""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(os.path.join(tmpdir, "crawler.log"), level=logging.DEBUG)
            assert logging.getLogger().level == logging.DEBUG

            self.teardown_method()

    def test_creates_log_directory(self):
        """The log file's parent directory is created if missing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "nested", "logs", "crawler.log")
            setup_logging(log_file)
            assert os.path.isdir(os.path.dirname(log_file))

            self.teardown_method()
