#!/usr/bin/env python3
"""
CLI for the Store Directory Crawler

Usage:
    python run.py                                   # Crawl the default site
    python run.py --site locations --states AR,IN   # Only some states
    python run.py --fixtures snapshot/              # Crawl an offline snapshot
    python run.py --geocode --format csv,geojson    # Add coordinates (needs GOOGLE_MAPS_API_KEY)
    python run.py --limit 10 --verbose              # Quick test run
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

import yaml

from config import (
    DEFAULT_CONFIG_PATH,
    get_enabled_sites,
    load_pipeline_config,
    load_site_config,
    store_locator_config,
)
from src.geocoder import Geocoder, GoogleGeocoder, geocode_addresses, summarize_geocoding
from src.scrapers import directory
from src.shared.constants import HTTP, WORKERS
from src.shared.errors import FetchError
from src.shared.export_service import ExportFormat, ExportService, parse_format_list
from src.shared.fetcher import FixtureFetcher, LiveFetcher, PageFetcher
from src.shared.logging_config import setup_logging
from src.shared.sentry_integration import flush as sentry_flush
from src.shared.sentry_integration import init_sentry, set_site_context
from src.shared.session_factory import create_session_factory


# Valid state abbreviations for CLI validation (50 states + DC)
VALID_STATE_ABBREVS = frozenset(store_locator_config.STATE_ABBREVIATIONS.values())


def validate_states(states_str: str) -> Optional[List[str]]:
    """Validate and parse comma-separated state abbreviations.

    Args:
        states_str: Comma-separated state abbreviations (e.g., "AR,IN")

    Returns:
        List of uppercase state abbreviations, or None if empty

    Raises:
        argparse.ArgumentTypeError: If any state abbreviation is invalid
    """
    if not states_str:
        return None

    states = [s.strip().upper() for s in states_str.split(',') if s.strip()]
    if not states:
        return None

    invalid = [s for s in states if s not in VALID_STATE_ABBREVS]
    if invalid:
        raise argparse.ArgumentTypeError(
            f"Invalid state abbreviation(s): {', '.join(invalid)}. "
            f"Use standard 2-letter US state codes (e.g., AR, IN, DC)."
        )

    return states


def validate_config_on_startup(config_path: str = DEFAULT_CONFIG_PATH) -> List[str]:
    """Check pipeline.yaml for common mistakes before crawling.

    Args:
        config_path: Path to pipeline.yaml

    Returns:
        List of validation errors (empty if config is valid)
    """
    errors = []

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        return [f"Configuration file not found: {config_path}"]
    except yaml.YAMLError as e:
        return [f"Invalid YAML syntax in config file: {e}"]

    if not config:
        return ["Configuration file is empty"]

    if not isinstance(config, dict):
        return ["Configuration must be a dictionary"]

    sites = config.get('sites')
    if sites is None:
        return ["Missing required 'sites' section"]
    if not isinstance(sites, dict):
        return ["'sites' must be a dictionary"]

    for site_name, site_config in sites.items():
        prefix = f"Site '{site_name}'"

        if not isinstance(site_config, dict):
            errors.append(f"{prefix}: configuration must be a dictionary")
            continue

        base_url = site_config.get('base_url')
        if base_url is not None and (not isinstance(base_url, str) or not base_url.startswith(('http://', 'https://'))):
            errors.append(f"{prefix}: 'base_url' must be a valid HTTP/HTTPS URL")

        for field in ('state_selector', 'city_selector', 'address_selector'):
            if field in site_config and (not isinstance(site_config[field], str) or not site_config[field].strip()):
                errors.append(f"{prefix}: '{field}' must be a non-empty CSS selector")

        if 'timeout' in site_config:
            value = site_config['timeout']
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                errors.append(f"{prefix}: 'timeout' must be a positive number")

        if 'discovery_workers' in site_config:
            value = site_config['discovery_workers']
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(f"{prefix}: 'discovery_workers' must be a positive integer")
            elif value > WORKERS.MAX_DISCOVERY_WORKERS:
                errors.append(
                    f"{prefix}: 'discovery_workers' ({value}) exceeds the maximum of {WORKERS.MAX_DISCOVERY_WORKERS}"
                )

        if 'collapse_city_slugs' in site_config and not isinstance(site_config['collapse_city_slugs'], bool):
            errors.append(f"{prefix}: 'collapse_city_slugs' must be true or false")

    return errors


def setup_parser() -> argparse.ArgumentParser:
    """Setup command line argument parser"""
    parser = argparse.ArgumentParser(
        description="Store Directory Crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--site', '-s',
        type=str,
        default='locations',
        help='Site key from the config file (default: locations)'
    )
    parser.add_argument(
        '--config', '-c',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help='Path to pipeline.yaml'
    )
    parser.add_argument(
        '--fixtures',
        type=str,
        default=None,
        metavar='DIR',
        help='Crawl an offline snapshot directory instead of the live site'
    )

    # Crawl options
    parser.add_argument(
        '--states',
        type=validate_states,
        default=None,
        metavar='STATES',
        help='Comma-separated state abbreviations to crawl. Example: --states AR,IN'
    )
    parser.add_argument(
        '--limit',
        type=int,
        default=None,
        help='Limit number of city pages to visit'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help=f'Max in-flight requests during discovery (1-{WORKERS.MAX_DISCOVERY_WORKERS}, default from config)'
    )
    parser.add_argument(
        '--collapse-slugs',
        action='store_true',
        help='Remove all whitespace from city slugs instead of only the first space'
    )

    # Geocoding
    parser.add_argument(
        '--geocode',
        action='store_true',
        help='Geocode addresses with the Google Geocoding API (requires GOOGLE_MAPS_API_KEY)'
    )

    # Export options
    export_group = parser.add_argument_group('export options', 'Output format selection')
    export_group.add_argument(
        '--format', '-f',
        type=str,
        default='json,csv',
        help='Export formats (comma-separated): json,csv,excel,geojson (default: json,csv)'
    )
    export_group.add_argument(
        '--output-dir',
        type=str,
        default=None,
        help='Output directory (default: data/<site>/output)'
    )

    # Logging
    parser.add_argument(
        '--log-file',
        type=str,
        default='logs/crawler.log',
        help='Log file path (default: logs/crawler.log)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    return parser


def validate_cli_options(args) -> List[str]:
    """Validate CLI options for conflicts.

    Returns:
        List of validation errors (empty if options are valid)
    """
    errors = []

    if args.limit is not None and args.limit < 1:
        errors.append("--limit must be a positive integer")

    if args.workers is not None and not 1 <= args.workers <= WORKERS.MAX_DISCOVERY_WORKERS:
        errors.append(f"--workers must be between 1 and {WORKERS.MAX_DISCOVERY_WORKERS}")

    formats = parse_format_list(args.format)
    if not formats:
        errors.append("No valid export formats specified. Valid formats: json, csv, excel, geojson")
    elif ExportFormat.GEOJSON in formats and not args.geocode:
        errors.append("--format geojson requires --geocode (rows need coordinates)")

    if args.fixtures and not Path(args.fixtures).is_dir():
        errors.append(f"--fixtures directory not found: {args.fixtures}")

    return errors


def create_fetcher(site_config: Dict[str, Any], fixtures_dir: Optional[str] = None) -> PageFetcher:
    """Build the page fetcher: offline snapshot if given, else live HTTP."""
    if fixtures_dir:
        logging.info(f"[{site_config['site']}] Using fixture snapshot: {fixtures_dir}")
        return FixtureFetcher.from_directory(site_config['base_url'], fixtures_dir)
    return LiveFetcher(
        session_factory=create_session_factory(site_config),
        timeout=site_config.get('timeout'),
    )


def create_geocoder(geocoding_config: Dict[str, Any]) -> GoogleGeocoder:
    """Build the geocoder from the `geocoding` section of pipeline.yaml.

    Raises:
        ValueError: If the provider is unsupported or the API key is missing
    """
    provider = geocoding_config.get('provider', 'google')
    if provider != 'google':
        raise ValueError(f"Unsupported geocoding provider: {provider}")
    return GoogleGeocoder(timeout=geocoding_config.get('timeout', HTTP.GEOCODE_TIMEOUT))


def export_results(
    site: str,
    rows: List[Dict[str, Any]],
    export_formats: List[ExportFormat],
    output_dir: str,
    site_config: Optional[Dict[str, Any]] = None,
) -> List[str]:
    """Write rows in every requested format; returns the formats written."""
    written = []
    for fmt in export_formats:
        output_path = f"{output_dir}/addresses_latest.{fmt.extension}"
        try:
            ExportService.export_rows(rows, fmt, output_path, site_config)
        except (OSError, ValueError) as export_err:
            logging.warning(f"[{site}] Failed to export {fmt.value}: {export_err}")
            continue
        written.append(fmt.value)
    return written


def run_site(
    site: str,
    site_config: Dict[str, Any],
    fetcher: PageFetcher,
    export_formats: List[ExportFormat],
    output_dir: Optional[str] = None,
    geocoder: Optional[Geocoder] = None,
    **kwargs
) -> dict:
    """Crawl one site, optionally geocode, and export.

    Args:
        site: Site key
        site_config: Merged site configuration
        fetcher: Page fetcher to crawl with
        export_formats: Formats to write
        output_dir: Output directory (default: data/<site>/output)
        geocoder: Geocoder to add coordinates with (None skips geocoding)
        **kwargs: Passed to directory.run (limit, target_states)

    Returns:
        Summary dict with status, counts, failures, and formats written
    """
    logging.info(f"[{site}] Starting crawler")
    set_site_context(site)

    try:
        crawl = directory.run(fetcher, site_config, site=site, **kwargs)
    except FetchError as e:
        return {
            'site': site,
            'status': 'error',
            'states': 0,
            'cities': 0,
            'addresses': 0,
            'failures': [],
            'geocoding': None,
            'formats': [],
            'error': str(e),
        }

    addresses = [record.raw_address_text for record in crawl['addresses']]
    rows = [record.to_dict() for record in crawl['addresses']]
    geocoding = None

    if geocoder is not None and addresses:
        geocoded = geocode_addresses(addresses, geocoder, site=site)
        rows = [row.to_dict() for row in geocoded]
        geocoding = summarize_geocoding(geocoded)

    output_dir = output_dir or f"data/{site}/output"
    formats = export_results(site, rows, export_formats, output_dir, site_config)

    logging.info(f"[{site}] Completed crawler")
    return {
        'site': site,
        'status': 'completed',
        'states': len(crawl['states']),
        'cities': len(crawl['cities']),
        'addresses': crawl['count'],
        'failures': crawl['failures'],
        'geocoding': geocoding,
        'formats': formats,
        'error': None,
    }


def main():
    """Main entry point"""
    parser = setup_parser()
    args = parser.parse_args()

    setup_logging(args.log_file, level=logging.DEBUG if args.verbose else logging.INFO)
    init_sentry()

    config_errors = validate_config_on_startup(args.config)
    if config_errors:
        print("Configuration errors found:")
        for error in config_errors:
            print(f"  - {error}")
        return 1

    cli_errors = validate_cli_options(args)
    if cli_errors:
        print("Invalid command line options:")
        for error in cli_errors:
            print(f"  - {error}")
        return 1

    enabled_sites = get_enabled_sites(args.config)
    if args.site not in enabled_sites:
        print(f"Unknown or disabled site: {args.site}")
        print(f"Available sites: {', '.join(enabled_sites)}")
        return 1

    site_config = load_site_config(args.site, args.config)
    if args.workers is not None:
        site_config['discovery_workers'] = args.workers
    if args.collapse_slugs:
        site_config['collapse_city_slugs'] = True

    export_formats = parse_format_list(args.format)
    logging.info(f"Export formats: {', '.join(f.value for f in export_formats)}")
    if args.limit:
        logging.info(f"Limit: {args.limit} cities")
    if args.states:
        logging.info(f"Targeted states mode: {args.states}")

    geocoder = None
    if args.geocode:
        geocoding_config = load_pipeline_config(args.config).get('geocoding') or {}
        try:
            geocoder = create_geocoder(geocoding_config)
        except ValueError as e:
            print(f"Geocoding unavailable: {e}")
            return 1

    fetcher = create_fetcher(site_config, args.fixtures)
    try:
        result = run_site(
            args.site,
            site_config,
            fetcher,
            export_formats,
            output_dir=args.output_dir,
            geocoder=geocoder,
            limit=args.limit,
            target_states=args.states,
        )
    except KeyboardInterrupt:
        logging.info("Crawl interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Crawl failed: {e}")
        return 1
    finally:
        fetcher.close()
        if geocoder is not None:
            geocoder.close()
        sentry_flush()

    print(f"\nResult for {args.site}: {result['status']}")
    if result['status'] != 'completed':
        print(f"  Error: {result['error']}")
        return 1

    print(f"  States: {result['states']}, cities: {result['cities']}, addresses: {result['addresses']}")
    if result['failures']:
        print(f"  Skipped pages: {len(result['failures'])}")
    if result['geocoding']:
        print(f"  Geocoded: {result['geocoding']['resolved']}/{result['geocoding']['total']}")
    if result['formats']:
        print(f"  Exported: {', '.join(result['formats'])}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
