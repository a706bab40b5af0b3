"""
Parsing of values extracted by the IA scan.

Extracted fields are free text ("CHF 1'234.50", "01.01.2025", "3 ans").
Everything unparseable becomes None; callers decide on defaults.
"""

import re
from datetime import date, datetime
from typing import Optional

_AMOUNT_CLEANUP = re.compile(r"[^0-9.,\-]")
_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%d.%m.%y", "%d-%m-%Y")
_YEARS = re.compile(r"(\d+)")


def parse_amount(value) -> Optional[float]:
    """
    Parse a monetary amount.

    Swiss thousand separators (') and spaces are dropped, a comma is
    read as the decimal separator when no dot is present.

    Examples:
        "CHF 1'234.50" -> 1234.5
        "320,40" -> 320.4
        "" -> None
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)

    text = _AMOUNT_CLEANUP.sub("", str(value))
    if not text:
        return None

    if "," in text and "." in text:
        # 1,234.50 -> thousands comma
        text = text.replace(",", "")
    else:
        text = text.replace(",", ".")

    try:
        return float(text)
    except ValueError:
        return None


def parse_date(value) -> Optional[date]:
    """Parse ISO or Swiss formatted dates ("2025-01-01", "01.01.2025")."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_duration_years(value) -> Optional[int]:
    """Extract a contract duration in years ("3 ans" -> 3)."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _YEARS.search(str(value))
    if not match:
        return None
    return int(match.group(1))


def clean_text(value) -> Optional[str]:
    """Strip a value, returning None for empty strings."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
