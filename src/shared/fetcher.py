"""Page fetchers for the store directory crawler.

Two interchangeable implementations of the same contract:

- LiveFetcher: one blocking HTTP GET per page via requests
- FixtureFetcher: canned HTML (an offline snapshot of the site)

Both return a parsed BeautifulSoup document or raise FetchError. The
crawler receives one of them from its caller and never checks which.
"""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from src.shared.constants import HTTP
from src.shared.errors import FetchError
from src.shared.http import log_safe, redact_credentials, sanitize_url
from src.shared.session_factory import create_session_factory

__all__ = [
    'FixtureFetcher',
    'LiveFetcher',
    'PageFetcher',
    'parse_html',
]


def parse_html(html: str, url: str) -> BeautifulSoup:
    """Parse markup, converting parser rejection into FetchError."""
    try:
        return BeautifulSoup(html, 'html.parser')
    except ParserRejectedMarkup as e:
        raise FetchError(url, f"unparsable markup: {e}") from e


class PageFetcher(ABC):
    """Given a URL, return the parsed document or raise FetchError."""

    @abstractmethod
    def fetch(self, url: str) -> BeautifulSoup:
        """Fetch and parse a single page."""

    def close(self) -> None:
        """Release any held resources."""

    def __enter__(self) -> 'PageFetcher':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class LiveFetcher(PageFetcher):
    """Fetch pages over HTTP with a single attempt per URL.

    Each thread gets its own requests.Session from the session factory, so
    the same fetcher can be shared by discovery workers.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], requests.Session]] = None,
        timeout: Optional[float] = None,
    ):
        self._session_factory = session_factory or create_session_factory()
        self.timeout = timeout if timeout is not None else HTTP.TIMEOUT
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def _get_session(self) -> requests.Session:
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def fetch(self, url: str) -> BeautifulSoup:
        safe_url = sanitize_url(url)
        try:
            response = self._get_session().get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            log_safe(f"Request error for {safe_url}: {e}", level=logging.WARNING)
            raise FetchError(url, redact_credentials(str(e))) from e

        if not 200 <= response.status_code < 300:
            log_safe(f"HTTP {response.status_code} for {safe_url}", level=logging.WARNING)
            raise FetchError(url, status_code=response.status_code)

        log_safe(f"Successfully fetched {safe_url}", level=logging.DEBUG)
        return parse_html(response.text, url)

    def close(self) -> None:
        with self._sessions_lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()
        self._local = threading.local()


class FixtureFetcher(PageFetcher):
    """Serve pages from canned HTML keyed by URL.

    URLs are matched after stripping any trailing slash, so
    'https://x.com/ar' and 'https://x.com/ar/' are the same page.
    """

    def __init__(self, pages: Dict[str, str]):
        self._pages = {self._key(url): html for url, html in pages.items()}

    @staticmethod
    def _key(url: str) -> str:
        return url.rstrip('/')

    @classmethod
    def from_directory(cls, base_url: str, directory: str) -> 'FixtureFetcher':
        """Load a snapshot laid out like the site's URL paths.

        base_url/             -> directory/index.html
        base_url/ar/          -> directory/ar/index.html
        base_url/ar/conway/   -> directory/ar/conway/index.html

        Args:
            base_url: Site root the snapshot was taken from
            directory: Snapshot root directory

        Returns:
            FixtureFetcher serving every index.html found
        """
        root = Path(directory)
        if not root.is_dir():
            raise FileNotFoundError(f"Fixture directory not found: {directory}")

        base = base_url.rstrip('/')
        pages = {}
        for path in sorted(root.rglob('index.html')):
            relative = path.parent.relative_to(root).as_posix()
            url = base if relative == '.' else f"{base}/{relative}"
            pages[url] = path.read_text(encoding='utf-8')

        logging.info(f"Loaded {len(pages)} fixture pages from {directory}")
        return cls(pages)

    @property
    def urls(self) -> List[str]:
        return list(self._pages)

    def fetch(self, url: str) -> BeautifulSoup:
        html = self._pages.get(self._key(url))
        if html is None:
            logging.warning(f"No fixture page for {urlparse(url).path or url}")
            raise FetchError(url, "no fixture page", status_code=404)
        return parse_html(html, url)
