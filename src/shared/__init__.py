"""Shared utilities for the store directory crawler"""

from .errors import (
    FetchError,
    GeocodeError,
    NameConversionError,
    ParseError,
    ScraperError,
)

from .extract import (
    clean_text,
    dedupe_preserving_order,
    extract_texts,
)

from .fetcher import (
    FixtureFetcher,
    LiveFetcher,
    PageFetcher,
    parse_html,
)

from .http import (
    DEFAULT_USER_AGENTS,
    get_headers,
    log_safe,
    redact_credentials,
    sanitize_url,
)

from .session_factory import (
    create_session_factory,
)

from .logging_config import (
    setup_logging,
)

from .export_service import (
    ExportFormat,
    ExportService,
    parse_format_list,
)

from .sentry_integration import (
    init_sentry,
    capture_scraper_error,
    set_site_context,
    flush as sentry_flush,
)

__all__ = [
    # Errors
    'FetchError',
    'GeocodeError',
    'NameConversionError',
    'ParseError',
    'ScraperError',
    # Text extraction
    'clean_text',
    'dedupe_preserving_order',
    'extract_texts',
    # Page fetchers
    'FixtureFetcher',
    'LiveFetcher',
    'PageFetcher',
    'parse_html',
    # HTTP helpers
    'DEFAULT_USER_AGENTS',
    'get_headers',
    'log_safe',
    'redact_credentials',
    'sanitize_url',
    # Session factory
    'create_session_factory',
    # Logging
    'setup_logging',
    # Export
    'ExportFormat',
    'ExportService',
    'parse_format_list',
    # Sentry integration
    'init_sentry',
    'capture_scraper_error',
    'set_site_context',
    'sentry_flush',
]
