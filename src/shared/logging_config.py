"""Logging configuration and setup.

Rotating file log plus console output on the root logger. Crawl stages log
through the standard logging module with a '[site]' message prefix.
"""

import logging
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

from src.shared.constants import LOGGING

__all__ = [
    'LOG_FORMAT',
    'setup_logging',
]

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

# Guards handler setup so concurrent callers cannot add duplicates
_logging_lock = threading.Lock()


def setup_logging(
    log_file: str = "logs/crawler.log",
    level: int = logging.INFO,
    max_bytes: int = LOGGING.MAX_BYTES,
    backup_count: int = LOGGING.BACKUP_COUNT,
) -> None:
    """Configure root logging with a rotating file handler and console output.

    Idempotent: repeated calls with the same log file only adjust the level.
    A file handler for the same path with different rotation settings is
    replaced.

    Args:
        log_file: Path to log file
        level: Root log level (logging.DEBUG for --verbose)
        max_bytes: Maximum file size before rotation
        backup_count: Number of rotated files to keep
    """
    with _logging_lock:
        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        log_path = Path(log_file)

        has_file_handler = False
        for handler in root_logger.handlers[:]:
            if isinstance(handler, RotatingFileHandler) and handler.baseFilename == str(log_path.absolute()):
                if handler.maxBytes == max_bytes and handler.backupCount == backup_count:
                    has_file_handler = True
                    continue
                root_logger.removeHandler(handler)
                handler.close()

        # FileHandler is the base of RotatingFileHandler, so this excludes all file handlers
        has_console_handler = any(
            isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
            for h in root_logger.handlers
        )

        if has_file_handler and has_console_handler:
            return

        formatter = logging.Formatter(LOG_FORMAT)

        if not has_file_handler:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8',
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        if not has_console_handler:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)
