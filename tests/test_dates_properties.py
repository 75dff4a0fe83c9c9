"""
Property-based tests for the date parsing helpers.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_panel.dates import is_valid_date, parse_date, resolve_now, try_parse_date


class TestParseDateProperty:
    """Property-based tests for lenient ISO parsing."""

    @given(day=st.dates(min_value=date(1970, 1, 1), max_value=date(2100, 12, 31)))
    @settings(max_examples=100)
    def test_calendar_dates_are_utc_midnight(self, day: date) -> None:
        """*For any* ISO calendar date, parsing SHALL give midnight UTC of that day."""
        parsed = parse_date(day.isoformat())

        assert parsed == datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
        assert parse_date(day.strftime("%Y/%m/%d")) == parsed
        assert parse_date(day) == parsed

    def test_zulu_suffix(self) -> None:
        assert parse_date("2025-06-01T08:30:00Z") == datetime(2025, 6, 1, 8, 30, tzinfo=timezone.utc)

    def test_offset_kept(self) -> None:
        parsed = parse_date("2025-06-01T08:00:00+08:00")
        assert parsed == datetime(2025, 6, 1, 0, 0, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(hours=8)

    def test_surrounding_whitespace(self) -> None:
        assert parse_date("  2025-06-01 ") == datetime(2025, 6, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "   ", "2025-13-01", "2025-02-30", "tomorrow", "01.06.2025", None, 20250601])
    def test_invalid_values(self, value) -> None:
        with pytest.raises(ValueError):
            parse_date(value)
        assert try_parse_date(value) is None
        assert is_valid_date(value) is False


class TestResolveNow:
    """Default clock handling."""

    def test_naive_now_becomes_utc(self) -> None:
        assert resolve_now(datetime(2025, 6, 1, 12)) == datetime(2025, 6, 1, 12, tzinfo=timezone.utc)

    def test_default_is_aware(self) -> None:
        assert resolve_now().tzinfo is not None
