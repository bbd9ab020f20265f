"""Exception types raised by the crawler and its collaborators."""

from typing import Optional

__all__ = [
    'FetchError',
    'GeocodeError',
    'NameConversionError',
    'ParseError',
    'ScraperError',
]


class ScraperError(Exception):
    """Base class for crawler errors."""


class FetchError(ScraperError):
    """A page could not be retrieved or parsed into a document."""

    def __init__(self, url: str, message: str = "", status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        detail = message or (f"HTTP {status_code}" if status_code else "request failed")
        super().__init__(f"Failed to fetch {url}: {detail}")


class ParseError(ScraperError):
    """Extractor was called with input it cannot work with."""


class NameConversionError(ScraperError):
    """A state name has no abbreviation in the lookup table."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No state abbreviation for {name!r}")


class GeocodeError(ScraperError):
    """The geocoding service could not resolve an address."""

    def __init__(self, address: str, reason: str = ""):
        self.address = address
        self.reason = reason
        super().__init__(f"Could not geocode {address!r}" + (f": {reason}" if reason else ""))
