"""Geocoding of crawled addresses.

The crawler's output table has one address per row. Geocoding adds
longitude/latitude to each row through an external service. One
unresolvable address must not sink the batch: failures are logged and the
row is kept with empty coordinates.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional, Tuple

import requests

from src.shared.constants import HTTP
from src.shared.errors import GeocodeError
from src.shared.http import redact_credentials

__all__ = [
    'GeocodedAddress',
    'Geocoder',
    'GoogleGeocoder',
    'geocode_addresses',
    'summarize_geocoding',
]


@dataclass(frozen=True)
class GeocodedAddress:
    """Address row with coordinates (None when geocoding failed)"""
    raw_address_text: str
    longitude: Optional[float]
    latitude: Optional[float]

    @property
    def resolved(self) -> bool:
        return self.longitude is not None and self.latitude is not None

    def to_dict(self) -> dict:
        result = asdict(self)
        result['address'] = result.pop('raw_address_text')
        return result


class Geocoder(ABC):
    """Resolve an address string to (longitude, latitude)."""

    @abstractmethod
    def geocode(self, address: str) -> Tuple[float, float]:
        """Return (longitude, latitude) or raise GeocodeError."""


class GoogleGeocoder(Geocoder):
    """Google Geocoding API client.

    The API key is taken from GOOGLE_MAPS_API_KEY unless passed explicitly.
    Statuses other than OK (ZERO_RESULTS, OVER_QUERY_LIMIT, REQUEST_DENIED,
    ...) raise GeocodeError with the status as the reason.
    """

    GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP.GEOCODE_TIMEOUT,
    ):
        self.api_key = api_key or os.getenv("GOOGLE_MAPS_API_KEY", "")
        if not self.api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is not set")
        self.session = session or requests.Session()
        self.timeout = timeout

    def geocode(self, address: str) -> Tuple[float, float]:
        try:
            response = self.session.get(
                self.GEOCODE_URL,
                params={'address': address, 'key': self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise GeocodeError(address, redact_credentials(str(e))) from e
        except ValueError as e:
            raise GeocodeError(address, f"invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise GeocodeError(address, "malformed response: expected a JSON object")

        status = data.get('status')
        if status != 'OK' or not data.get('results'):
            raise GeocodeError(address, status or 'no results')

        try:
            location = data['results'][0]['geometry']['location']
            return (float(location['lng']), float(location['lat']))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GeocodeError(address, f"malformed response: {e!r}") from e

    def close(self) -> None:
        self.session.close()


def geocode_addresses(
    addresses: Iterable[str],
    geocoder: Geocoder,
    site: str = 'locations',
) -> List[GeocodedAddress]:
    """Geocode each address, keeping failed rows with empty coordinates.

    Args:
        addresses: Address strings in output order
        geocoder: Geocoder implementation
        site: Site name for logging

    Returns:
        One GeocodedAddress per input, in the same order
    """
    rows = []
    for address in addresses:
        try:
            longitude, latitude = geocoder.geocode(address)
        except GeocodeError as e:
            logging.warning(f"[{site}] {e}")
            rows.append(GeocodedAddress(address, None, None))
            continue
        rows.append(GeocodedAddress(address, longitude, latitude))

    summary = summarize_geocoding(rows)
    logging.info(
        f"[{site}] Geocoding: {summary['resolved']}/{summary['total']} resolved, "
        f"{summary['failed']} failed"
    )
    return rows


def summarize_geocoding(rows: List[GeocodedAddress]) -> Dict[str, int]:
    resolved = sum(1 for row in rows if row.resolved)
    return {'total': len(rows), 'resolved': resolved, 'failed': len(rows) - resolved}
