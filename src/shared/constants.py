"""Centralized constants for the store directory crawler.

Frozen dataclass groups keep the magic numbers in one place and make
them immutable at runtime.

Usage:
    from src.shared.constants import HTTP, WORKERS

    timeout = HTTP.TIMEOUT
    workers = config.get('discovery_workers', WORKERS.DISCOVERY_WORKERS)
"""

from dataclasses import dataclass

__all__ = [
    'EXPORT',
    'ExportDefaults',
    'HTTP',
    'HttpDefaults',
    'LOGGING',
    'LoggingDefaults',
    'PROGRESS',
    'ProgressDefaults',
    'VALIDATION',
    'ValidationDefaults',
    'WORKERS',
    'WorkerDefaults',
]


@dataclass(frozen=True)
class HttpDefaults:
    """HTTP request defaults.

    Pages are fetched exactly once; there is no retry budget.
    """

    TIMEOUT: int = 30
    """Request timeout in seconds."""

    GEOCODE_TIMEOUT: int = 15
    """Timeout in seconds for a single geocoding request."""


@dataclass(frozen=True)
class WorkerDefaults:
    """Parallel worker configuration."""

    DISCOVERY_WORKERS: int = 1
    """Default workers for city/address discovery (1 = sequential)."""

    MAX_DISCOVERY_WORKERS: int = 8
    """Upper bound on in-flight requests against the target site."""


@dataclass(frozen=True)
class ProgressDefaults:
    """Progress logging intervals."""

    STATE_INTERVAL: int = 10
    """Log progress every N states."""

    CITY_INTERVAL: int = 100
    """Log progress every N cities."""


@dataclass(frozen=True)
class ExportDefaults:
    """Export configuration."""

    FIELD_SAMPLE_SIZE: int = 100
    """Number of records to sample for field discovery in exports."""

    EXCEL_MAX_COLUMN_WIDTH: int = 80
    """Maximum column width in Excel exports."""


@dataclass(frozen=True)
class LoggingDefaults:
    """Log file rotation settings."""

    MAX_BYTES: int = 10 * 1024 * 1024
    """Maximum log file size before rotation (10MB)."""

    BACKUP_COUNT: int = 5
    """Number of backup log files to keep."""


@dataclass(frozen=True)
class ValidationDefaults:
    """Coordinate bounds for geocoded rows."""

    LAT_MIN: float = -90.0
    LAT_MAX: float = 90.0
    LON_MIN: float = -180.0
    LON_MAX: float = 180.0


# Singleton instances for easy import
HTTP = HttpDefaults()
WORKERS = WorkerDefaults()
PROGRESS = ProgressDefaults()
EXPORT = ExportDefaults()
LOGGING = LoggingDefaults()
VALIDATION = ValidationDefaults()
