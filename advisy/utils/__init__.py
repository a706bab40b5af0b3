"""Utility functions."""

from advisy.utils.audit import log_action
from advisy.utils.categories import normalize_category
from advisy.utils.parsing import parse_amount, parse_date, parse_duration_years

__all__ = [
    "log_action",
    "normalize_category",
    "parse_amount",
    "parse_date",
    "parse_duration_years",
]
