"""
Input validation functions for analytics request parameters.

All validators raise ValidationError on invalid input.
"""
from datetime import date, datetime
from typing import Optional, Tuple

from analytics.config import config
from analytics.exceptions import ValidationError
from analytics.models import DateRange, RangePreset, ViewMode


def validate_date_string(value: str, field: str = "date", format: str = "%Y-%m-%d") -> date:
    """
    Validate and parse a date string.

    Raises:
        ValidationError: If date is missing or in the wrong format
    """
    if not value:
        raise ValidationError(field, "Date is required", value)

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    try:
        return datetime.strptime(value, format).date()
    except ValueError:
        raise ValidationError(field, f"Invalid date format. Expected {format}", value)


def validate_date_range(
    start_date: str,
    end_date: str,
    max_days: int = config.analytics.max_range_days,
) -> Tuple[date, date]:
    """
    Validate a custom date range.

    Returns:
        Tuple of (start_date, end_date) as date objects
    """
    start = validate_date_string(start_date, "start_date")
    end = validate_date_string(end_date, "end_date")

    if start > end:
        raise ValidationError(
            "date_range",
            "Start date must be before or equal to end date",
            f"{start_date} to {end_date}",
        )

    days_diff = (end - start).days
    if days_diff > max_days:
        raise ValidationError("date_range", f"Date range cannot exceed {max_days} days", f"{days_diff} days")

    return start, end


def validate_view_mode(value: Optional[str]) -> ViewMode:
    if value is None:
        return ViewMode.COUNT
    try:
        return ViewMode(value.strip().lower())
    except (ValueError, AttributeError):
        valid = ", ".join(mode.value for mode in ViewMode)
        raise ValidationError("mode", f"Must be one of: {valid}", value)


def validate_period(value: Optional[str]) -> RangePreset:
    if value is None:
        return RangePreset(config.analytics.default_preset)
    try:
        return RangePreset(value.strip().lower())
    except (ValueError, AttributeError):
        valid = ", ".join(preset.value for preset in RangePreset)
        raise ValidationError("period", f"Must be one of: {valid}", value)


def resolve_date_range(
    period: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    today: date,
) -> DateRange:
    """
    Turn request parameters into a DateRange.

    Explicit start/end dates imply a custom range. A custom preset without
    both dates falls back to the last 30 days.
    """
    if start_date or end_date:
        if not (start_date and end_date):
            raise ValidationError("date_range", "Both start_date and end_date are required")
        start, end = validate_date_range(start_date, end_date)
        return DateRange.from_preset(RangePreset.CUSTOM, today, start, end)

    return DateRange.from_preset(validate_period(period), today)
