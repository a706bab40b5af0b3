"""
Parsing and category helper tests.
"""

from datetime import date, datetime

from sqlalchemy.pool import NullPool

from advisy.db.session import engine_options
from advisy.utils.categories import HEALTH, LIFE, OTHER, is_health_or_life, normalize_category
from advisy.utils.parsing import clean_text, parse_amount, parse_date, parse_duration_years


def test_parse_amount():
    """Test amount parsing of scanned values."""
    assert parse_amount("CHF 1'234.50") == 1234.5
    assert parse_amount("320,40") == 320.4
    assert parse_amount("1,234.50") == 1234.5
    assert parse_amount(45) == 45.0
    assert parse_amount("-12.5") == -12.5

    # Unparseable values
    assert parse_amount(None) is None
    assert parse_amount("") is None
    assert parse_amount("n/a") is None
    assert parse_amount("1.2.3") is None


def test_parse_date():
    """Test date parsing of ISO and Swiss formats."""
    assert parse_date("2025-01-31") == date(2025, 1, 31)
    assert parse_date("31.01.2025") == date(2025, 1, 31)
    assert parse_date("31/01/2025") == date(2025, 1, 31)
    assert parse_date("31.01.25") == date(2025, 1, 31)
    assert parse_date(datetime(2025, 1, 31, 10, 0)) == date(2025, 1, 31)
    assert parse_date(date(2025, 1, 31)) == date(2025, 1, 31)

    assert parse_date("  ") is None
    assert parse_date("31.13.2025") is None
    assert parse_date(None) is None


def test_parse_duration_years():
    assert parse_duration_years("3 ans") == 3
    assert parse_duration_years("Durée: 25 ans") == 25
    assert parse_duration_years(10) == 10
    assert parse_duration_years("à vie") is None
    assert parse_duration_years(None) is None


def test_clean_text():
    assert clean_text("  CSS ") == "CSS"
    assert clean_text("   ") is None
    assert clean_text(None) is None


def test_normalize_category():
    """Test category normalization."""
    assert normalize_category("LAMal") == HEALTH
    assert normalize_category(" Santé ") == HEALTH
    assert normalize_category("LCA") == HEALTH
    assert normalize_category("Vie") == LIFE
    assert normalize_category("3a") == LIFE
    assert normalize_category("3e pilier") == LIFE
    assert normalize_category("RC Ménage") == "rc ménage"
    assert normalize_category(None) == OTHER
    assert normalize_category("") == OTHER

    assert is_health_or_life("lamal")
    assert not is_health_or_life("auto")


def test_engine_options_per_driver():
    """Pooler settings only apply to asyncpg."""
    pooled = engine_options("postgresql+asyncpg://user:pw@pooler:6543/postgres")
    assert pooled["poolclass"] is NullPool
    assert pooled["connect_args"] == {"statement_cache_size": 0}

    local = engine_options("sqlite+aiosqlite:///:memory:")
    assert "poolclass" not in local
    assert "connect_args" not in local
