"""Canned directory pages for crawler tests"""

import pytest

from src.shared.fetcher import FixtureFetcher

BASE_URL = "https://locations.example.com"


def directory_page(*names):
    """Directory list page with one link per name."""
    items = "\n".join(
        f'<li class="c-directory-list-content-item">'
        f'<a class="c-directory-list-content-item-link" href="#">\n    {name}\n</a></li>'
        for name in names
    )
    return f'<html><body><ul class="c-directory-list-content">\n{items}\n</ul></body></html>'


def city_page(*addresses):
    """City page with one address block per entry."""
    blocks = "\n".join(f'<address class="c-address">\r\n  {address}\r\n</address>' for address in addresses)
    return f'<html><body><div class="Core">{blocks}</div></body></html>'


ROOT_PAGE = directory_page("Arkansas", "Indiana", "Puerto Rico")
ARKANSAS_PAGE = directory_page("North Little Rock", "Conway")
INDIANA_PAGE = directory_page("Indianapolis")

NORTH_LITTLE_ROCK_ADDRESS = "4120 E McCain Blvd North Little Rock, AR 72117"
CONWAY_ADDRESS = "1200 Oak St Conway, AR 72032"
INDIANAPOLIS_ADDRESS = "55 Monument Cir Indianapolis, IN 46204"


@pytest.fixture
def directory_pages():
    """Small but complete directory: 2 states (+ excluded territory), 3 cities"""
    return {
        f"{BASE_URL}/": ROOT_PAGE,
        f"{BASE_URL}/ar/": ARKANSAS_PAGE,
        f"{BASE_URL}/in/": INDIANA_PAGE,
        f"{BASE_URL}/ar/northlittle rock/": city_page(NORTH_LITTLE_ROCK_ADDRESS),
        f"{BASE_URL}/ar/conway/": city_page(CONWAY_ADDRESS),
        # Same block twice on one page
        f"{BASE_URL}/in/indianapolis/": city_page(INDIANAPOLIS_ADDRESS, INDIANAPOLIS_ADDRESS),
    }


@pytest.fixture
def fixture_fetcher(directory_pages):
    return FixtureFetcher(directory_pages)


@pytest.fixture
def make_directory_page():
    return directory_page


@pytest.fixture
def make_city_page():
    return city_page
