"""
License import field mapping and validation.

Shared by the JSON bulk import, CSV upload and Google Sheets import. A row
is accepted only with a software name, a valid renewal date, a responsible
email and an amount greater than zero; rejected rows are reported, never
fatal to the batch.
"""

import csv
import re
from datetime import date, datetime
from io import StringIO
from typing import Any, Optional

from dateutil import parser as date_parser

# Header names written by the CSV / Google Sheets export
EXPORT_HEADERS = [
    "ID",
    "Software Name",
    "Renewal Date",
    "Amount",
    "Currency",
    "Responsible Email",
    "Renewal URL",
    "Status",
    "Created At",
    "Updated At",
]

# Accepted spellings for each import field (compared case-insensitively)
FIELD_ALIASES = {
    "software_name": ("software_name", "software name", "softwarename", "software"),
    "renewal_date": ("renewal_date", "renewal date", "renewaldate"),
    # "ammount" is how the legacy spreadsheets and JSON payloads spell it
    "amount": ("amount", "ammount"),
    "currency": ("currency",),
    "responsible_email": ("responsible_email", "responsible email", "responsibleemail", "email"),
    "renewal_url": ("renewal_url", "renewal url", "renewalurl", "url"),
    "status": ("status",),
    "source_sheet": ("source_sheet", "sourcesheet", "source sheet"),
}

# Column order of the external spreadsheet tabs
SHEET_COLUMNS = (
    "software_name",
    "renewal_date",
    "amount",
    "currency",
    "responsible_email",
    "renewal_url",
    "status",
)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def parse_renewal_date(raw: Any) -> Optional[date]:
    """Parse ISO strings, dd/mm/yyyy (export format) and date objects; None when invalid"""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    text = str(raw).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def parse_amount(raw: Any) -> Optional[float]:
    """Parse a number or a formatted amount such as "$1,200.50"; None when not numeric"""
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    cleaned = _NON_NUMERIC.sub("", str(raw).replace(",", ""))
    try:
        return float(cleaned)
    except ValueError:
        return None


def _pick(raw: dict, field: str) -> Any:
    lowered = {str(k).strip().lower(): v for k, v in raw.items()}
    for alias in FIELD_ALIASES[field]:
        if alias in lowered:
            return lowered[alias]
    return None


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def normalize_row(
    raw: dict, source_sheet: Optional[str] = None
) -> tuple[Optional[dict], Optional[str]]:
    """
    Map an incoming row to License column values.

    Returns (values, None) for a valid row, or (None, error message).
    """
    software_name = _text(_pick(raw, "software_name"))
    responsible_email = _text(_pick(raw, "responsible_email"))
    renewal_raw = _pick(raw, "renewal_date")

    if not software_name or not renewal_raw or not responsible_email:
        return None, (
            f"Skipping invalid license: missing required fields for {software_name or 'unknown'}"
        )

    renewal_date = parse_renewal_date(renewal_raw)
    if renewal_date is None:
        return None, f"Invalid renewal date for {software_name}: {renewal_raw}"

    amount = parse_amount(_pick(raw, "amount"))
    if amount is None or amount <= 0:
        return None, f"Invalid amount for {software_name}: amount must be greater than 0"

    return {
        "software_name": software_name,
        "renewal_date": renewal_date,
        "amount": amount,
        "currency": (_text(_pick(raw, "currency")) or "USD").upper(),
        "responsible_email": responsible_email,
        "renewal_url": _text(_pick(raw, "renewal_url")) or None,
        "status": _text(_pick(raw, "status")) or "active",
        "source_sheet": source_sheet or (_text(_pick(raw, "source_sheet")) or None),
    }, None


def sheet_row_to_dict(row: list) -> dict:
    """Positional spreadsheet row -> named fields (missing trailing cells are empty)"""
    return {
        column: (row[index] if index < len(row) else "")
        for index, column in enumerate(SHEET_COLUMNS)
    }


def read_csv_rows(content: str) -> list[dict]:
    """Parse an uploaded CSV (header row required) into dicts"""
    # Excel writes a BOM at the start of UTF-8 CSV files
    reader = csv.DictReader(StringIO(content.lstrip("\ufeff")))
    return [row for row in reader if any(isinstance(v, str) and v.strip() for v in row.values())]


def format_export_date(value: Optional[date]) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def format_export_timestamp(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y %H:%M:%S") if value else ""


def license_export_row(license) -> list:
    return [
        license.id,
        license.software_name,
        format_export_date(license.renewal_date),
        license.amount,
        license.currency,
        license.responsible_email,
        license.renewal_url or "",
        license.status,
        format_export_timestamp(license.created_at),
        format_export_timestamp(license.updated_at),
    ]
