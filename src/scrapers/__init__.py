"""Store directory crawler stages"""

from .directory import (
    AddressRecord,
    CityRecord,
    StateRecord,
    build_city_url,
    build_state_url,
    collect_addresses,
    derive_city_slug,
    get_addresses_for_city,
    get_all_addresses,
    get_all_cities,
    get_all_states,
    get_cities_for_state,
    run,
    to_state_code,
)

__all__ = [
    'AddressRecord',
    'CityRecord',
    'StateRecord',
    'build_city_url',
    'build_state_url',
    'collect_addresses',
    'derive_city_slug',
    'get_addresses_for_city',
    'get_all_addresses',
    'get_all_cities',
    'get_all_states',
    'get_cities_for_state',
    'run',
    'to_state_code',
]
