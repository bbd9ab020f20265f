"""Configuration module for the store directory crawler"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from config import store_locator_config

DEFAULT_CONFIG_PATH = str(Path(__file__).parent / "pipeline.yaml")

# Defaults applied underneath every site entry in pipeline.yaml
SITE_DEFAULTS: Dict[str, Any] = {
    'enabled': True,
    'base_url': store_locator_config.BASE_URL,
    'state_selector': store_locator_config.STATE_SELECTOR,
    'city_selector': store_locator_config.CITY_SELECTOR,
    'address_selector': store_locator_config.ADDRESS_SELECTOR,
    'excluded_state': store_locator_config.EXCLUDED_STATE_NAME,
    'collapse_city_slugs': False,
    'discovery_workers': 1,
    'timeout': store_locator_config.TIMEOUT,
}


def load_pipeline_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load the raw pipeline.yaml contents.

    Returns an empty dict when the file is missing or empty.
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        logging.error(f"Config file {config_path} not found")
        return {}

    # Handle empty YAML files (safe_load returns None)
    return config or {}


def load_site_config(site: str, config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load one site's configuration merged over the module defaults.

    Args:
        site: Site key under `sites` in pipeline.yaml
        config_path: Path to pipeline.yaml

    Returns:
        Dict with every key in SITE_DEFAULTS plus anything the YAML adds
    """
    config = load_pipeline_config(config_path)
    site_config = dict(SITE_DEFAULTS)
    site_config.update(config.get('sites', {}).get(site, {}) or {})

    # Site name for logging prefixes
    site_config['site'] = site
    site_config['base_url'] = site_config['base_url'].rstrip('/')
    return site_config


def get_enabled_sites(config_path: str = DEFAULT_CONFIG_PATH) -> List[str]:
    """Site keys with enabled: true (missing field defaults to True)."""
    sites = load_pipeline_config(config_path).get('sites', {}) or {}
    return [name for name, cfg in sites.items() if (cfg or {}).get('enabled', True)]


__all__ = [
    'DEFAULT_CONFIG_PATH',
    'SITE_DEFAULTS',
    'get_enabled_sites',
    'load_pipeline_config',
    'load_site_config',
]
