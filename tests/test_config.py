"""Tests for pipeline.yaml loading."""

import yaml

from config import (
    DEFAULT_CONFIG_PATH,
    SITE_DEFAULTS,
    get_enabled_sites,
    load_pipeline_config,
    load_site_config,
)
from config import store_locator_config


def _write_config(tmp_path, data):
    path = tmp_path / "pipeline.yaml"
    path.write_text(yaml.safe_dump(data), encoding='utf-8')
    return str(path)


class TestLoadPipelineConfig:
    """Tests for load_pipeline_config."""

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_pipeline_config(str(tmp_path / "missing.yaml")) == {}

    def test_empty_file_returns_empty(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("", encoding='utf-8')
        assert load_pipeline_config(str(path)) == {}

    def test_shipped_config_has_default_site(self):
        """The bundled pipeline.yaml defines the 'locations' site."""
        config = load_pipeline_config(DEFAULT_CONFIG_PATH)
        assert 'locations' in config['sites']


class TestLoadSiteConfig:
    """Tests for load_site_config."""

    def test_yaml_overrides_defaults(self, tmp_path, mock_config_data):
        mock_config_data['sites']['locations']['discovery_workers'] = 4
        path = _write_config(tmp_path, mock_config_data)

        site_config = load_site_config('locations', path)

        assert site_config['discovery_workers'] == 4
        assert site_config['site'] == 'locations'

    def test_missing_keys_fall_back_to_defaults(self, tmp_path):
        path = _write_config(tmp_path, {'sites': {'mini': {'base_url': 'https://mini.example.com/'}}})

        site_config = load_site_config('mini', path)

        assert site_config['base_url'] == 'https://mini.example.com'
        assert site_config['address_selector'] == store_locator_config.ADDRESS_SELECTOR
        assert site_config['excluded_state'] == 'Puerto Rico'
        assert site_config['collapse_city_slugs'] is False

    def test_unknown_site_gets_defaults(self, tmp_path, mock_config_data):
        path = _write_config(tmp_path, mock_config_data)
        site_config = load_site_config('unknown', path)
        assert {k: site_config[k] for k in SITE_DEFAULTS} == SITE_DEFAULTS

    def test_defaults_not_mutated(self, tmp_path, mock_config_data):
        mock_config_data['sites']['locations']['timeout'] = 5
        load_site_config('locations', _write_config(tmp_path, mock_config_data))
        assert SITE_DEFAULTS['timeout'] == store_locator_config.TIMEOUT


class TestGetEnabledSites:
    """Tests for get_enabled_sites."""

    def test_disabled_sites_excluded(self, tmp_path, mock_config_data):
        path = _write_config(tmp_path, mock_config_data)
        assert get_enabled_sites(path) == ['locations']

    def test_enabled_defaults_to_true(self, tmp_path):
        path = _write_config(tmp_path, {'sites': {'a': {'base_url': 'https://a.example.com'}}})
        assert get_enabled_sites(path) == ['a']


class TestStoreLocatorConfig:
    """Tests for the static site constants."""

    def test_fifty_states_plus_dc(self):
        assert len(store_locator_config.STATE_ABBREVIATIONS) == 51
        assert store_locator_config.STATE_ABBREVIATIONS['District of Columbia'] == 'DC'

    def test_excluded_state_not_in_table(self):
        assert store_locator_config.EXCLUDED_STATE_NAME not in store_locator_config.STATE_ABBREVIATIONS
