"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from typing import Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def parse_date(value: Union[str, date, None]) -> date:
    """Parse a statement or schedule date.

    Supports various formats including relative dates:
    - date and datetime objects (returned as a date)
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow",
      "last/this/next month", "last/this/next year", "last monday", etc.

    Args:
        value: Date or date string

    Returns:
        Date object

    Raises:
        ValueError: If the value is missing or cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise ValueError("Date is required")

    date_str = str(value).strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    prefix, _, period = date_str.partition(" ")
    if prefix == "last":
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        if period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        if period in _WEEKDAYS:
            days_ago = (today.weekday() - _WEEKDAYS.index(period)) % 7 or 7
            return today - timedelta(days=days_ago)
    elif prefix == "this":
        if period == "month":
            return today.replace(day=1)
        if period == "year":
            return today.replace(month=1, day=1)
    elif prefix == "next":
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        if period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")


def parse_month(value: Union[str, date]) -> str:
    """Normalize a month to YYYY-MM.

    Accepts "2024-03", "March 2024" or anything parse_date accepts.
    """
    if isinstance(value, str) and len(value.strip()) == 7 and value.strip()[4] == "-":
        year, month = value.strip().split("-")
        if year.isdigit() and month.isdigit() and 1 <= int(month) <= 12:
            return f"{int(year):04d}-{int(month):02d}"
    return parse_date(value).strftime("%Y-%m")


def add_months(start: date, months: int) -> date:
    """Shift a date by whole calendar months, clamping to month end."""
    return start + relativedelta(months=months)
