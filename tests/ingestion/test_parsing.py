"""
Tests for spreadsheet cell parsing heuristics.

Covers:
- Locale-tolerant money parsing (comma or dot decimal mark)
- Serial, day-first, ISO and fallback date layouts
- Margin normalization (fractions scaled, absent derived)
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from sales_ingestion.parsing import normalize_margin, parse_date, parse_money


class TestParseMoney:
    """Tests for parse_money."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1.234,56", "1234.56"),
            ("1,234.56", "1234.56"),
            ("75,00", "75.00"),
            ("R$ 1.500,00", "1500.00"),
            ("80", "80"),
            ("-12,5", "-12.5"),
            (" 10 ", "10"),
        ],
    )
    def test_strings(self, raw, expected):
        assert parse_money(raw) == Decimal(expected)

    def test_numbers(self):
        assert parse_money(10) == Decimal("10")
        assert parse_money(0.1) == Decimal("0.1")
        assert parse_money(Decimal("3.375")) == Decimal("3.375")

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "-", True])
    def test_unparseable_is_zero(self, raw):
        assert parse_money(raw) == Decimal("0")


class TestParseDate:
    """Tests for parse_date."""

    def test_day_first_matches_iso(self):
        assert parse_date("31/12/2025") == parse_date("2025-12-31")
        assert parse_date("31/12/2025") == datetime(2025, 12, 31, tzinfo=timezone.utc)

    def test_two_digit_year(self):
        assert parse_date("25/12/25") == datetime(2025, 12, 25, tzinfo=timezone.utc)

    def test_serial_number(self):
        assert parse_date(45658) == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_serial_string(self):
        assert parse_date("45658") == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_datetime_passthrough(self):
        naive = datetime(2025, 5, 20, 10, 0)
        assert parse_date(naive) == datetime(2025, 5, 20, 10, 0, tzinfo=timezone.utc)

    def test_date_object(self):
        assert parse_date(date(2025, 5, 20)) == datetime(2025, 5, 20, tzinfo=timezone.utc)

    def test_fallback_layouts(self):
        assert parse_date("20.05.2025") == datetime(2025, 5, 20, tzinfo=timezone.utc)
        assert parse_date("2025/05/20") == datetime(2025, 5, 20, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw", [None, "", "   ", "not a date", "32/13/2025"])
    def test_unparseable_is_none(self, raw):
        assert parse_date(raw) is None


class TestNormalizeMargin:
    """Tests for normalize_margin."""

    def setup_method(self):
        self.proposed = Decimal("100")
        self.sold = Decimal("110")

    def test_percentage_kept(self):
        assert normalize_margin("6,66", self.proposed, self.sold) == Decimal("6.66")

    def test_fraction_scaled(self):
        assert normalize_margin("0.0666", self.proposed, self.sold) == Decimal("6.66")
        assert normalize_margin(1, self.proposed, self.sold) == Decimal("100")

    def test_absent_derived_from_prices(self):
        assert normalize_margin("", self.proposed, self.sold) == Decimal("10.00")
        assert normalize_margin(None, self.proposed, self.sold) == Decimal("10.00")

    def test_explicit_zero_is_kept(self):
        assert normalize_margin("0", self.proposed, self.sold) == Decimal("0")

    def test_negative_fraction_scaled(self):
        assert normalize_margin("-0.05", self.proposed, self.sold) == Decimal("-5")
