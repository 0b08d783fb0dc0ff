"""
Tests for analytics.validators module.
"""
import pytest
from datetime import date

from analytics.exceptions import ValidationError
from analytics.models import RangePreset, ViewMode
from analytics.validators import (
    resolve_date_range,
    validate_date_range,
    validate_date_string,
    validate_period,
    validate_view_mode,
)

TODAY = date(2026, 3, 10)


class TestValidateDateString:
    """Tests for validate_date_string function."""

    def test_valid_date(self):
        """Valid date string should return date object."""
        assert validate_date_string("2026-01-15") == date(2026, 1, 15)

    def test_invalid_format(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string("15-01-2026")
        assert "Invalid date format" in str(exc_info.value)

    def test_invalid_date(self):
        """Feb 30 doesn't exist."""
        with pytest.raises(ValidationError):
            validate_date_string("2026-02-30")

    def test_empty_string(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string("")
        assert "required" in str(exc_info.value).lower()

    def test_non_string(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string(12345)
        assert "string" in str(exc_info.value).lower()


class TestValidateDateRange:
    """Tests for validate_date_range function."""

    def test_valid_range(self):
        assert validate_date_range("2026-01-01", "2026-01-31") == (date(2026, 1, 1), date(2026, 1, 31))

    def test_same_day(self):
        start, end = validate_date_range("2026-01-15", "2026-01-15")
        assert start == end

    def test_inverted_range(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_range("2026-01-31", "2026-01-01")
        assert exc_info.value.field == "date_range"

    def test_exceeds_max_days(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_range("2026-01-01", "2026-03-01", max_days=30)
        assert "cannot exceed 30 days" in str(exc_info.value)


class TestValidateViewMode:
    """Tests for validate_view_mode function."""

    @pytest.mark.parametrize("value,expected", [
        (None, ViewMode.COUNT),
        ("count", ViewMode.COUNT),
        ("COST", ViewMode.COST),
        (" drill ", ViewMode.DRILL),
    ])
    def test_valid(self, value, expected):
        assert validate_view_mode(value) == expected

    def test_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_view_mode("pie")
        assert "count, cost, drill" in str(exc_info.value)


class TestValidatePeriod:
    """Tests for validate_period function."""

    def test_default(self):
        assert validate_period(None) == RangePreset.LAST_7_DAYS

    @pytest.mark.parametrize("value", ["today", "7d", "14d", "30d", "90d", "custom"])
    def test_valid(self, value):
        assert validate_period(value).value == value

    def test_invalid(self):
        with pytest.raises(ValidationError):
            validate_period("year")


class TestResolveDateRange:
    """Tests for turning request parameters into a DateRange."""

    def test_preset(self):
        date_range = resolve_date_range("14d", None, None, TODAY)
        assert date_range.start == date(2026, 2, 24)
        assert date_range.end == TODAY

    def test_explicit_dates_imply_custom(self):
        date_range = resolve_date_range("7d", "2026-02-01", "2026-02-03", TODAY)
        assert (date_range.start, date_range.end) == (date(2026, 2, 1), date(2026, 2, 3))
        assert date_range.label == "2026-02-01 to 2026-02-03"

    def test_custom_without_dates(self):
        date_range = resolve_date_range("custom", None, None, TODAY)
        assert date_range.days == 31

    def test_one_date_only(self):
        with pytest.raises(ValidationError):
            resolve_date_range(None, "2026-02-01", None, TODAY)
