"""Core crawling functions for a three-level store locator directory

The directory is laid out as:
- Root page: one list item per state ("Arkansas", "Indiana", ...)
- State page (/{state_code}/): one list item per city
- City page (/{state_code}/{city_slug}/): the store address block

Phases run strictly in order (states -> cities -> addresses). Within the
city and address phases pages may be fetched in parallel, but results are
always reassembled in first-seen page order so output is repeatable.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from config import store_locator_config
from src.shared.constants import PROGRESS, WORKERS
from src.shared.errors import FetchError, NameConversionError
from src.shared.extract import dedupe_preserving_order, extract_texts
from src.shared.fetcher import PageFetcher
from src.shared.sentry_integration import capture_scraper_error

T = TypeVar('T')
R = TypeVar('R')


@dataclass(frozen=True)
class StateRecord:
    """A state advertised on the root directory page"""
    long_name: str          # As shown on the page, e.g. "Indiana"
    short_code: str         # Lowercase USPS code used in URLs, e.g. "in"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CityRecord:
    """A city listed on a state directory page"""
    city_full_name: str
    city_slug: str
    state_code: str
    page_url: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AddressRecord:
    """Address block text from a city page"""
    raw_address_text: str

    def to_dict(self) -> dict:
        """Single-column export row."""
        return {'address': self.raw_address_text}


# =============================================================================
# NORMALIZATION
# =============================================================================

def to_state_code(long_name: str, abbreviations: Optional[Mapping[str, str]] = None) -> str:
    """Convert a state name to its lowercase USPS code.

    Args:
        long_name: State name as shown on the page (e.g. 'New York')
        abbreviations: Name -> code table (defaults to STATE_ABBREVIATIONS)

    Returns:
        Lowercase two-letter code (e.g. 'ny')

    Raises:
        NameConversionError: If the name is not in the table
    """
    table = abbreviations if abbreviations is not None else store_locator_config.STATE_ABBREVIATIONS
    try:
        return table[long_name].lower()
    except KeyError:
        raise NameConversionError(long_name) from None


def derive_city_slug(city_name: str, collapse_all_whitespace: bool = False) -> str:
    """Build the URL slug for a city.

    The site's historical rule removes only the FIRST whitespace character
    and lowercases, so 'North Little Rock' becomes 'northlittle rock'.
    collapse_all_whitespace=True removes every whitespace character instead
    ('northlittlerock').

    Examples:
        >>> derive_city_slug('North Little Rock')
        'northlittle rock'
        >>> derive_city_slug('North Little Rock', collapse_all_whitespace=True)
        'northlittlerock'
    """
    if collapse_all_whitespace:
        return re.sub(r'\s', '', city_name).lower()
    return re.sub(r'\s', '', city_name, count=1).lower()


def build_state_url(base_url: str, state_code: str) -> str:
    """'https://x.com' + 'ar' -> 'https://x.com/ar/'"""
    return f"{base_url.rstrip('/')}/{state_code}/"


def build_city_url(base_url: str, state_code: str, city_slug: str) -> str:
    """'https://x.com' + 'ar' + 'conway' -> 'https://x.com/ar/conway/'"""
    return f"{base_url.rstrip('/')}/{state_code}/{city_slug}/"


def _failure(stage: str, name: str, error: FetchError) -> Dict[str, Any]:
    return {
        'stage': stage,
        'name': name,
        'url': error.url,
        'status_code': error.status_code,
        'error': str(error),
    }


def _map_in_order(func: Callable[[T], R], items: Sequence[T], workers: int) -> List[R]:
    """Apply func to every item, optionally on a capped thread pool.

    Futures are collected in submission order, so the result list lines
    up with items no matter which request finishes first.
    """
    workers = max(1, min(workers, WORKERS.MAX_DISCOVERY_WORKERS))
    if workers == 1 or len(items) <= 1:
        return [func(item) for item in items]

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='discovery') as executor:
        futures = [executor.submit(func, item) for item in items]
        return [future.result() for future in futures]


# =============================================================================
# PHASE 1 - STATES
# =============================================================================

def get_all_states(
    fetcher: PageFetcher,
    base_url: str,
    selector: str = store_locator_config.STATE_SELECTOR,
    excluded_state: Optional[str] = store_locator_config.EXCLUDED_STATE_NAME,
    abbreviations: Optional[Mapping[str, str]] = None,
    site: str = 'locations',
) -> List[StateRecord]:
    """Read the state list from the root directory page.

    A FetchError here propagates: without the root page there is nothing
    meaningful to crawl.

    Args:
        fetcher: Page fetcher
        base_url: Site root
        selector: CSS selector for state list items
        excluded_state: Territory name to drop instead of converting
        abbreviations: Optional name -> code table override
        site: Site name for logging

    Returns:
        StateRecords in page order, unique by long name
    """
    logging.info(f"[{site}] Fetching states from {base_url}")
    document = fetcher.fetch(base_url)

    states = []
    seen_names = set()
    for name in extract_texts(document, selector):
        if name == excluded_state:
            logging.info(f"[{site}] Skipping excluded state: {name}")
            continue
        if name in seen_names:
            continue
        try:
            code = to_state_code(name, abbreviations)
        except NameConversionError as e:
            logging.warning(f"[{site}] {e}; dropping it")
            continue
        states.append(StateRecord(long_name=name, short_code=code))
        seen_names.add(name)

    logging.info(f"[{site}] Found {len(states)} states")
    return states


# =============================================================================
# PHASE 2 - CITIES
# =============================================================================

def get_cities_for_state(
    fetcher: PageFetcher,
    base_url: str,
    state: StateRecord,
    selector: str = store_locator_config.CITY_SELECTOR,
    collapse_all_whitespace: bool = False,
    site: str = 'locations',
) -> List[CityRecord]:
    """Read the city list from one state's directory page.

    Raises:
        FetchError: If the state page cannot be fetched
    """
    state_url = build_state_url(base_url, state.short_code)
    logging.debug(f"[{site}] Fetching cities for state: {state.long_name}")

    document = fetcher.fetch(state_url)
    cities = []
    for city_name in extract_texts(document, selector):
        slug = derive_city_slug(city_name, collapse_all_whitespace)
        cities.append(CityRecord(
            city_full_name=city_name,
            city_slug=slug,
            state_code=state.short_code,
            page_url=build_city_url(base_url, state.short_code, slug),
        ))

    logging.info(f"[{site}] Found {len(cities)} cities for {state.long_name}")
    return cities


def _fetch_cities_for_state_worker(
    state: StateRecord,
    fetcher: PageFetcher,
    base_url: str,
    selector: str,
    collapse_all_whitespace: bool,
    site: str,
) -> Tuple[StateRecord, List[CityRecord], Optional[FetchError]]:
    """Fetch one state's cities, returning the FetchError instead of raising it."""
    try:
        cities = get_cities_for_state(fetcher, base_url, state, selector, collapse_all_whitespace, site)
        return (state, cities, None)
    except FetchError as e:
        logging.warning(f"[{site}] Skipping state {state.long_name}: {e}")
        return (state, [], e)


def get_all_cities(
    fetcher: PageFetcher,
    states: Sequence[StateRecord],
    base_url: str,
    selector: str = store_locator_config.CITY_SELECTOR,
    collapse_all_whitespace: bool = False,
    workers: int = WORKERS.DISCOVERY_WORKERS,
    site: str = 'locations',
) -> Tuple[List[CityRecord], List[Dict[str, Any]]]:
    """Collect cities for every state, skipping states whose page fails.

    Returns:
        Tuple of (cities in state order, failure dicts for skipped states)
    """
    results = _map_in_order(
        lambda state: _fetch_cities_for_state_worker(
            state, fetcher, base_url, selector, collapse_all_whitespace, site
        ),
        states,
        workers,
    )

    all_cities: List[CityRecord] = []
    failures: List[Dict[str, Any]] = []
    for i, (state, cities, error) in enumerate(results, 1):
        if error is not None:
            failures.append(_failure('cities', state.long_name, error))
        all_cities.extend(cities)

        if i % PROGRESS.STATE_INTERVAL == 0 or i == len(results):
            logging.info(f"[{site}] Phase 2 progress: {i}/{len(results)} states, {len(all_cities)} cities found")

    return all_cities, failures


# =============================================================================
# PHASE 3 - ADDRESSES
# =============================================================================

def get_addresses_for_city(
    fetcher: PageFetcher,
    city: CityRecord,
    selector: str = store_locator_config.ADDRESS_SELECTOR,
    site: str = 'locations',
) -> List[str]:
    """Read the address block text(s) from one city page.

    Raises:
        FetchError: If the city page cannot be fetched
    """
    logging.debug(f"[{site}] Fetching address for {city.city_full_name}, {city.state_code.upper()}")
    document = fetcher.fetch(city.page_url)
    return extract_texts(document, selector)


def _fetch_addresses_for_city_worker(
    city: CityRecord,
    fetcher: PageFetcher,
    selector: str,
    site: str,
) -> Tuple[CityRecord, List[str], Optional[FetchError]]:
    """Fetch one city's addresses, returning the FetchError instead of raising it."""
    try:
        return (city, get_addresses_for_city(fetcher, city, selector, site), None)
    except FetchError as e:
        logging.warning(f"[{site}] Skipping city {city.city_full_name}, {city.state_code.upper()}: {e}")
        return (city, [], e)


def collect_addresses(
    fetcher: PageFetcher,
    cities: Sequence[CityRecord],
    selector: str = store_locator_config.ADDRESS_SELECTOR,
    collected: Optional[Sequence[str]] = None,
    workers: int = WORKERS.DISCOVERY_WORKERS,
    site: str = 'locations',
) -> Tuple[List[str], List[Dict[str, Any]]]:
    """Append every city's address texts to an accumulator.

    No deduplication happens here; duplicates across cities are kept so the
    caller can deduplicate the whole collection once.

    Args:
        fetcher: Page fetcher
        cities: Cities to visit, in order
        selector: CSS selector for the address block
        collected: Existing accumulator; it is copied, never mutated
        workers: Max in-flight requests (1 = sequential)
        site: Site name for logging

    Returns:
        Tuple of (new accumulator, failure dicts for skipped cities)
    """
    accumulator = list(collected or [])
    failures: List[Dict[str, Any]] = []

    results = _map_in_order(
        lambda city: _fetch_addresses_for_city_worker(city, fetcher, selector, site),
        cities,
        workers,
    )

    for i, (city, texts, error) in enumerate(results, 1):
        if error is not None:
            failures.append(_failure('addresses', city.city_full_name, error))
        accumulator.extend(texts)

        if i % PROGRESS.CITY_INTERVAL == 0:
            logging.info(f"[{site}] Phase 3 progress: {i}/{len(results)} cities")

    return accumulator, failures


def get_all_addresses(
    fetcher: PageFetcher,
    cities: Sequence[CityRecord],
    selector: str = store_locator_config.ADDRESS_SELECTOR,
    workers: int = WORKERS.DISCOVERY_WORKERS,
    site: str = 'locations',
) -> Tuple[List[AddressRecord], List[Dict[str, Any]]]:
    """Collect addresses from every city and deduplicate across all of them.

    Returns:
        Tuple of (unique AddressRecords in first-seen order, failure dicts)
    """
    collected, failures = collect_addresses(fetcher, cities, selector, workers=workers, site=site)
    unique = dedupe_preserving_order(collected)
    logging.info(f"[{site}] Collected {len(collected)} address blocks, {len(unique)} unique")
    return [AddressRecord(raw_address_text=text) for text in unique], failures


# =============================================================================
# ENTRY POINT
# =============================================================================

def run(fetcher: PageFetcher, config: dict, **kwargs) -> dict:
    """Standard crawler entry point.

    Args:
        fetcher: LiveFetcher or FixtureFetcher
        config: Site configuration dict (see config.load_site_config)
        **kwargs: Additional options
            - site: str - Site name for logging
            - limit: int - Max cities to visit (for testing)
            - target_states: List[str] - State codes to keep (e.g. ['AR', 'IN'])

    Returns:
        dict with keys:
            - states: List[StateRecord]
            - cities: List[CityRecord]
            - addresses: List[AddressRecord]
            - count: int - Number of unique addresses
            - failures: List[dict] - Skipped state/city pages
    """
    site = kwargs.get('site') or config.get('site', 'locations')
    limit = kwargs.get('limit')
    target_states = kwargs.get('target_states')

    base_url = config.get('base_url', store_locator_config.BASE_URL).rstrip('/')
    collapse = bool(config.get('collapse_city_slugs', False))
    workers = int(config.get('discovery_workers', WORKERS.DISCOVERY_WORKERS))

    logging.info(f"[{site}] Starting crawl of {base_url} (discovery workers: {workers})")

    try:
        logging.info(f"[{site}] Phase 1: Discovering states")
        states = get_all_states(
            fetcher,
            base_url,
            selector=config.get('state_selector', store_locator_config.STATE_SELECTOR),
            excluded_state=config.get('excluded_state', store_locator_config.EXCLUDED_STATE_NAME),
            site=site,
        )

        if target_states:
            wanted = {code.lower() for code in target_states}
            states = [s for s in states if s.short_code in wanted]
            logging.info(f"[{site}] Filtered to {len(states)} target states: {[s.long_name for s in states]}")

        logging.info(f"[{site}] Phase 2: Discovering cities")
        cities, city_failures = get_all_cities(
            fetcher,
            states,
            base_url,
            selector=config.get('city_selector', store_locator_config.CITY_SELECTOR),
            collapse_all_whitespace=collapse,
            workers=workers,
            site=site,
        )

        if limit and limit < len(cities):
            logging.info(f"[{site}] Limiting to {limit} cities (from {len(cities)})")
            cities = cities[:limit]

        logging.info(f"[{site}] Phase 3: Extracting addresses ({len(cities)} cities)")
        addresses, address_failures = get_all_addresses(
            fetcher,
            cities,
            selector=config.get('address_selector', store_locator_config.ADDRESS_SELECTOR),
            workers=workers,
            site=site,
        )

        failures = city_failures + address_failures
        if failures:
            logging.warning(f"[{site}] {len(failures)} pages skipped after fetch errors")

        logging.info(f"[{site}] Completed: {len(addresses)} unique addresses")

        return {
            'states': states,
            'cities': cities,
            'addresses': addresses,
            'count': len(addresses),
            'failures': failures,
        }

    except Exception as e:
        logging.error(f"[{site}] Fatal error: {e}", exc_info=True)
        capture_scraper_error(e, site=site, extra={'base_url': base_url})
        raise
