"""
Export Service - flat table export for crawled addresses.

Rows are plain dicts ({'address': ...}, plus 'longitude'/'latitude' once
geocoded). Supports JSON, CSV, Excel (.xlsx), and GeoJSON.
"""

import csv
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from src.shared.constants import EXPORT, VALIDATION


class ExportFormat(Enum):
    """Supported export formats."""
    JSON = "json"
    CSV = "csv"
    EXCEL = "excel"
    GEOJSON = "geojson"

    @property
    def extension(self) -> str:
        return {"excel": "xlsx"}.get(self.value, self.value)

    @classmethod
    def from_string(cls, value: str) -> "ExportFormat":
        """Parse format from string, case-insensitive."""
        value_lower = value.lower().strip()
        if value_lower == "xlsx":
            value_lower = "excel"
        for fmt in cls:
            if fmt.value == value_lower:
                return fmt
        raise ValueError(f"Unknown export format: {value}")


# Characters that can trigger formula injection in spreadsheet applications
CSV_INJECTION_CHARS = ('=', '+', '-', '@', '\t', '\r', '\n')


def sanitize_csv_value(value: Any) -> Any:
    """Prefix values that a spreadsheet would run as a formula with a quote.

    Negative numbers (e.g. longitudes like '-92.28') are left untouched.
    """
    if not isinstance(value, str) or not value:
        return value
    if value[0] in CSV_INJECTION_CHARS:
        if value[0] == '-':
            try:
                float(value)
                return value
            except ValueError:
                pass
        return f"'{value}"
    return value


def sanitize_row_for_csv(row: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize all string values in a row for CSV/Excel export."""
    return {key: sanitize_csv_value(value) for key, value in row.items()}


class ExportService:
    """Service for exporting address rows to various formats."""

    DEFAULT_FIELDS = ['address']
    GEOCODED_FIELDS = ['address', 'longitude', 'latitude']

    @staticmethod
    def export_rows(
        rows: List[Dict[str, Any]],
        export_format: ExportFormat,
        output_path: str,
        site_config: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Export rows to a file in the specified format.

        Args:
            rows: List of row dictionaries
            export_format: Target format (JSON, CSV, EXCEL, GEOJSON)
            output_path: Path to save the output file
            site_config: Optional site config with output_fields
        """
        if not rows:
            logging.warning("No rows to export")
            return

        path = Path(output_path)
        if ".." in path.parts:
            raise ValueError(f"Invalid output path: {output_path}. Path traversal not allowed.")

        path.parent.mkdir(parents=True, exist_ok=True)

        fieldnames = ExportService._get_fieldnames(rows, site_config)

        if export_format == ExportFormat.JSON:
            ExportService._save_json(rows, path)
        elif export_format == ExportFormat.CSV:
            ExportService._save_csv(rows, path, fieldnames)
        elif export_format == ExportFormat.EXCEL:
            ExportService._save_excel(rows, path, fieldnames)
        elif export_format == ExportFormat.GEOJSON:
            ExportService._save_geojson(rows, path)

        logging.info(f"Exported {len(rows)} rows to {export_format.value.upper()}: {output_path}")

    @staticmethod
    def _get_fieldnames(
        rows: List[Dict[str, Any]],
        site_config: Optional[Dict[str, Any]] = None,
        sample_size: int = EXPORT.FIELD_SAMPLE_SIZE
    ) -> List[str]:
        """Column order: address first, then coordinates, then anything else.

        Configured output_fields are extended with coordinate columns when
        the rows carry them, so a geocoded run never loses its coordinates.
        """
        present = set()
        for row in rows[:sample_size]:
            present.update(row.keys())

        if site_config and site_config.get('output_fields'):
            fields = list(site_config['output_fields'])
        else:
            fields = [f for f in ExportService.DEFAULT_FIELDS if f in present]

        for field in ExportService.GEOCODED_FIELDS + sorted(present):
            if field in present and field not in fields:
                fields.append(field)
        return fields

    @staticmethod
    def _save_json(rows: List[Dict[str, Any]], path: Path) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)

    @staticmethod
    def _save_csv(rows: List[Dict[str, Any]], path: Path, fieldnames: List[str]) -> None:
        sanitized_rows = [sanitize_row_for_csv(row) for row in rows]
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction='ignore')
            writer.writeheader()
            writer.writerows(sanitized_rows)

    @staticmethod
    def _save_excel(
        rows: List[Dict[str, Any]],
        path: Path,
        fieldnames: List[str],
        sheet_name: str = "Addresses"
    ) -> None:
        """Save rows to a single-sheet workbook with a bold, frozen header."""
        sanitized_rows = [sanitize_row_for_csv(row) for row in rows]

        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name

        header_font = Font(bold=True)
        for col_idx, field in enumerate(fieldnames, start=1):
            cell = ws.cell(row=1, column=col_idx, value=field)
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center')

        for row_idx, row in enumerate(sanitized_rows, start=2):
            for col_idx, field in enumerate(fieldnames, start=1):
                ws.cell(row=row_idx, column=col_idx, value=row.get(field, ''))

        # Auto-fit column widths from the first 100 rows
        for col_idx, field in enumerate(fieldnames, start=1):
            max_length = len(str(field))
            for row_idx in range(2, min(len(rows) + 2, 100)):
                cell_value = ws.cell(row=row_idx, column=col_idx).value
                if cell_value:
                    max_length = max(max_length, len(str(cell_value)))
            ws.column_dimensions[get_column_letter(col_idx)].width = min(
                max_length + 2, EXPORT.EXCEL_MAX_COLUMN_WIDTH
            )

        ws.freeze_panes = 'A2'
        wb.save(path)

    @staticmethod
    def _save_geojson(rows: List[Dict[str, Any]], path: Path) -> None:
        geojson = ExportService.generate_geojson(rows)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(geojson, f, indent=2, ensure_ascii=False)

    @staticmethod
    def generate_geojson(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Generate a GeoJSON FeatureCollection from geocoded rows.

        Rows without usable coordinates (not geocoded, or geocoding failed)
        are skipped and counted in a warning.

        Args:
            rows: List of row dictionaries with longitude/latitude

        Returns:
            GeoJSON FeatureCollection dictionary
        """
        features = []
        skipped = 0

        for row in rows:
            lng = row.get('longitude')
            lat = row.get('latitude')
            if lat is None or lng is None:
                skipped += 1
                continue

            try:
                lat_float = float(lat)
                lng_float = float(lng)
            except (ValueError, TypeError):
                skipped += 1
                continue

            if not (VALIDATION.LAT_MIN <= lat_float <= VALIDATION.LAT_MAX) or \
                    not (VALIDATION.LON_MIN <= lng_float <= VALIDATION.LON_MAX):
                skipped += 1
                continue

            features.append({
                "type": "Feature",
                "geometry": {
                    "type": "Point",
                    # GeoJSON uses [longitude, latitude] order
                    "coordinates": [lng_float, lat_float]
                },
                "properties": dict(row.items())
            })

        if skipped > 0:
            logging.warning(f"Skipped {skipped} rows with missing or invalid coordinates")

        return {
            "type": "FeatureCollection",
            "features": features
        }


def parse_format_list(format_string: str) -> List[ExportFormat]:
    """
    Parse comma-separated format string into list of ExportFormat.

    Unknown names are logged and skipped.

    Args:
        format_string: Comma-separated format names (e.g., "json,csv,excel")

    Returns:
        List of ExportFormat enums
    """
    formats = []
    for fmt_str in format_string.split(','):
        fmt_str = fmt_str.strip()
        if fmt_str:
            try:
                formats.append(ExportFormat.from_string(fmt_str))
            except ValueError as e:
                logging.warning(str(e))
    return formats
