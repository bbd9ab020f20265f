"""Session factory for the live page fetcher.

requests.Session is NOT thread-safe, so each discovery worker thread needs
its own session instance. The factory gives every session the same headers
so parallel and sequential runs send identical requests.
"""

from typing import Callable, Dict, Optional

import requests

from src.shared.http import get_headers


__all__ = [
    'create_session_factory',
]


def create_session_factory(
    site_config: Optional[dict] = None,
    headers_func: Optional[Callable[[], Dict[str, str]]] = None,
) -> Callable[[], requests.Session]:
    """Create a factory function that produces per-worker sessions.

    Args:
        site_config: Site configuration dict (base_url is used as Referer)
        headers_func: Optional callable returning headers; overrides the
            default browser-like headers

    Returns:
        Callable that creates new configured session instances

    Usage:
        session_factory = create_session_factory(config)
        session = session_factory()
        try:
            response = session.get(url, timeout=30)
        finally:
            session.close()
    """
    base_url = (site_config or {}).get('base_url')

    def factory() -> requests.Session:
        session = requests.Session()
        if headers_func:
            session.headers.update(headers_func())
        else:
            session.headers.update(get_headers(base_url=base_url))
        return session

    return factory
