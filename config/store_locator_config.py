"""Configuration constants for the store directory crawler

The target site is a three-level store locator directory:
- Root page lists states (/)
- State pages list cities (/{state_code}/)
- City pages carry the store address block (/{state_code}/{city_slug}/)

Every value here can be overridden per site in config/pipeline.yaml.
Request headers come from src/shared/http.get_headers, with the site's
base_url as Referer.
"""

# Base URL (no trailing slash)
BASE_URL = "https://locations.example.com"

# CSS selectors for directory list items and the address block
STATE_SELECTOR = ".c-directory-list-content-item-link"
CITY_SELECTOR = ".c-directory-list-content-item-link"
ADDRESS_SELECTOR = "address.c-address"

# US state name to USPS abbreviation mapping (50 states + DC)
STATE_ABBREVIATIONS = {
    'Alabama': 'AL', 'Alaska': 'AK', 'Arizona': 'AZ', 'Arkansas': 'AR',
    'California': 'CA', 'Colorado': 'CO', 'Connecticut': 'CT', 'Delaware': 'DE',
    'District of Columbia': 'DC', 'Florida': 'FL', 'Georgia': 'GA', 'Hawaii': 'HI',
    'Idaho': 'ID', 'Illinois': 'IL', 'Indiana': 'IN', 'Iowa': 'IA',
    'Kansas': 'KS', 'Kentucky': 'KY', 'Louisiana': 'LA', 'Maine': 'ME',
    'Maryland': 'MD', 'Massachusetts': 'MA', 'Michigan': 'MI', 'Minnesota': 'MN',
    'Mississippi': 'MS', 'Missouri': 'MO', 'Montana': 'MT', 'Nebraska': 'NE',
    'Nevada': 'NV', 'New Hampshire': 'NH', 'New Jersey': 'NJ', 'New Mexico': 'NM',
    'New York': 'NY', 'North Carolina': 'NC', 'North Dakota': 'ND', 'Ohio': 'OH',
    'Oklahoma': 'OK', 'Oregon': 'OR', 'Pennsylvania': 'PA', 'Rhode Island': 'RI',
    'South Carolina': 'SC', 'South Dakota': 'SD', 'Tennessee': 'TN', 'Texas': 'TX',
    'Utah': 'UT', 'Vermont': 'VT', 'Virginia': 'VA', 'Washington': 'WA',
    'West Virginia': 'WV', 'Wisconsin': 'WI', 'Wyoming': 'WY',
}

# Territory listed in the directory that has no entry in the table above
EXCLUDED_STATE_NAME = "Puerto Rico"

# Request settings (single attempt, no retries)
TIMEOUT = 30
