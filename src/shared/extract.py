"""Text extraction helpers shared by every crawl stage.

All three stages (states, cities, addresses) pull text out of a parsed
page with the same cleaning rule, so it lives here and nowhere else:

1. remove every carriage return and line feed
2. strip surrounding whitespace
3. drop empties and duplicates, keeping first-seen order
"""

from typing import Hashable, Iterable, List, TypeVar

from bs4 import BeautifulSoup

from src.shared.errors import ParseError

__all__ = [
    'clean_text',
    'dedupe_preserving_order',
    'extract_texts',
]

T = TypeVar('T', bound=Hashable)


def clean_text(text: str) -> str:
    """Remove CR/LF characters and trim surrounding whitespace.

    Applying this twice gives the same result as applying it once.

    Examples:
        >>> clean_text("  123 Main St\\r\\nLittle Rock, AR  ")
        '123 Main StLittle Rock, AR'
    """
    return text.replace('\r', '').replace('\n', '').strip()


def dedupe_preserving_order(values: Iterable[T]) -> List[T]:
    """Drop duplicates while keeping the first occurrence of each value."""
    seen = set()
    unique = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


def extract_texts(document: BeautifulSoup, selector: str) -> List[str]:
    """Return cleaned, deduplicated text of every element matching selector.

    A selector that matches nothing yields an empty list rather than an
    error; a directory page with no entries is a legitimate result.

    Args:
        document: Parsed page
        selector: CSS selector (e.g. '.c-directory-list-content-item-link')

    Returns:
        Text contents in document order

    Raises:
        ParseError: If selector is empty
    """
    if not selector or not selector.strip():
        raise ParseError("Selector must be a non-empty CSS selector")

    texts = (clean_text(element.get_text()) for element in document.select(selector))
    return dedupe_preserving_order(text for text in texts if text)
