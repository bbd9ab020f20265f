"""Sentry.io integration for error monitoring.

Initialized once from run.py. Disabled unless SENTRY_DSN is set, so local
and fixture runs never report anything.

Usage:
    from src.shared.sentry_integration import init_sentry, capture_scraper_error

    init_sentry()
    capture_scraper_error(exception, site="locations", extra={"url": url})
"""

import logging
import os
from typing import Any, Dict, Optional

import sentry_sdk

from src.shared.http import redact_credentials

__all__ = [
    'capture_scraper_error',
    'flush',
    'init_sentry',
    'is_initialized',
    'set_site_context',
]

_sentry_initialized = False

logger = logging.getLogger(__name__)


def init_sentry(
    dsn: Optional[str] = None,
    environment: Optional[str] = None,
    traces_sample_rate: Optional[float] = None,
) -> bool:
    """Initialize Sentry SDK with project configuration.

    Args:
        dsn: Sentry DSN (defaults to SENTRY_DSN env var)
        environment: Environment name (defaults to SENTRY_ENVIRONMENT or 'development')
        traces_sample_rate: Performance monitoring sample rate (0.0 to 1.0)

    Returns:
        True if Sentry was initialized, False if disabled
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    dsn = dsn or os.getenv("SENTRY_DSN", "")
    if not dsn:
        logger.debug("SENTRY_DSN not set, Sentry disabled")
        return False

    environment = environment or os.getenv("SENTRY_ENVIRONMENT", "development")
    if traces_sample_rate is None:
        traces_sample_rate = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        before_send=_before_send,
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )
    sentry_sdk.set_tag("project", "store-directory-crawler")

    _sentry_initialized = True
    logger.info(f"Sentry initialized (environment={environment})")
    return True


def is_initialized() -> bool:
    return _sentry_initialized


def _before_send(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Scrub API keys from exception messages and breadcrumbs."""
    for exception in event.get("exception", {}).get("values", []):
        if "value" in exception:
            exception["value"] = _scrub_sensitive_data(exception["value"])

    for breadcrumb in event.get("breadcrumbs", {}).get("values", []):
        if "message" in breadcrumb:
            breadcrumb["message"] = _scrub_sensitive_data(breadcrumb["message"])

    return event


def _scrub_sensitive_data(text: str) -> str:
    if not isinstance(text, str):
        return text
    return redact_credentials(text)


def set_site_context(site: str) -> None:
    """Tag subsequent events with the site being crawled."""
    if _sentry_initialized:
        sentry_sdk.set_tag("site", site)
        sentry_sdk.set_context("crawler", {"site": site})


def capture_scraper_error(
    exception: Exception,
    site: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """Capture an exception with crawl context.

    Returns:
        Sentry event ID if captured, None otherwise
    """
    if not _sentry_initialized:
        return None

    with sentry_sdk.new_scope() as scope:
        if site:
            scope.set_tag("site", site)
        if extra:
            scope.set_context("crawler_context", {
                key: _scrub_sensitive_data(value) if isinstance(value, str) else value
                for key, value in extra.items()
            })
        return sentry_sdk.capture_exception(exception)


def flush(timeout: float = 2.0) -> None:
    """Flush pending events before exit."""
    if _sentry_initialized:
        sentry_sdk.flush(timeout=timeout)
