"""Pytest configuration and fixtures for crawler tests"""

import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from unittest.mock import Mock


BASE_URL = "https://locations.example.com"


@pytest.fixture
def mock_config_data():
    """Sample pipeline.yaml contents for testing"""
    return {
        'sites': {
            'locations': {
                'name': 'Store Locations',
                'enabled': True,
                'base_url': BASE_URL,
                'state_selector': '.c-directory-list-content-item-link',
                'city_selector': '.c-directory-list-content-item-link',
                'address_selector': 'address.c-address',
                'excluded_state': 'Puerto Rico',
                'collapse_city_slugs': False,
                'discovery_workers': 1,
                'timeout': 30,
            },
            'archive': {
                'name': 'Archived Directory',
                'enabled': False,
                'base_url': 'https://old.example.com',
            }
        },
        'geocoding': {
            'provider': 'google',
            'timeout': 15,
        }
    }


@pytest.fixture
def site_config():
    """Merged site configuration as returned by load_site_config"""
    return {
        'site': 'locations',
        'enabled': True,
        'base_url': BASE_URL,
        'state_selector': '.c-directory-list-content-item-link',
        'city_selector': '.c-directory-list-content-item-link',
        'address_selector': 'address.c-address',
        'excluded_state': 'Puerto Rico',
        'collapse_city_slugs': False,
        'discovery_workers': 1,
        'timeout': 30,
        'output_fields': ['address'],
    }


@pytest.fixture
def mock_response_factory():
    """Factory for creating mock HTTP responses with various scenarios.

    Usage:
        response = mock_response_factory(status_code=200, text="<html>...</html>")
        response = mock_response_factory(status_code=404, text="Not Found")
        response = mock_response_factory(json_data={"status": "OK", "results": []})
    """
    def _create_response(
        status_code: int = 200,
        text: str = "",
        json_data: Optional[dict] = None,
        headers: Optional[dict] = None,
        raise_error: Optional[Exception] = None
    ):
        response = Mock()
        response.status_code = status_code
        response.text = text
        response.headers = headers or {}
        response.content = text.encode('utf-8') if text else b''

        if json_data is not None:
            response.json.return_value = json_data
        else:
            response.json.side_effect = ValueError("No JSON data")

        if raise_error:
            response.raise_for_status.side_effect = raise_error
        else:
            response.raise_for_status.return_value = None

        return response

    return _create_response


@pytest.fixture
def mock_session(mock_response_factory):
    """Mock requests.Session returning a 200 empty page by default"""
    session = Mock()
    session.get.return_value = mock_response_factory(status_code=200, text="<html></html>")
    return session
