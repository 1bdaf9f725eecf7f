"""
Tests for display formatting
"""

from datetime import date, datetime, timedelta

from follow_dashboard.formatters import (
    format_amount,
    format_date,
    format_number,
    format_rate,
    format_relative_time,
    to_display_unit,
)


class TestAmounts:
    def test_display_unit(self):
        assert to_display_unit(250_000_000) == 2.5
        assert to_display_unit(None) is None

    def test_format_amount(self):
        assert format_amount(1_230_000_000) == "12.3億円"
        assert format_amount(5_000_000, display_unit=1_000_000, unit_label="M") == "5.0M"
        assert format_amount(None) == "-"

    def test_format_number(self):
        assert format_number(1234.6) == "1,235"
        assert format_number(1234.56, decimals=1) == "1,234.6"
        assert format_number(None) == "-"


class TestRates:
    def test_signed(self):
        assert format_rate(3) == "+3.0%"
        assert format_rate(-2.34) == "-2.3%"

    def test_unsigned(self):
        assert format_rate(85.0, signed=False) == "85.0%"

    def test_missing(self):
        assert format_rate(None) == "-"
        assert format_rate(float("nan")) == "-"


class TestDates:
    def test_format_date(self):
        assert format_date(date(2025, 9, 1)) == "2025/09/01"
        assert format_date("2025-09-01") == "2025/09/01"
        assert format_date("") == "-"
        assert format_date(None) == "-"

    def test_relative_time(self):
        now = datetime(2025, 10, 1, 12, 0, 0)
        assert format_relative_time(now - timedelta(seconds=30), now) == "just now"
        assert format_relative_time(now - timedelta(minutes=5), now) == "5m ago"
        assert format_relative_time(now - timedelta(hours=3), now) == "3h ago"
        assert format_relative_time(now - timedelta(days=2), now) == "2d ago"
        assert format_relative_time(now - timedelta(days=10), now) == "09/21"
        assert format_relative_time(None, now) == "-"
