"""Tests for date parser with relative dates."""

import pytest
from datetime import date, datetime, timedelta
from dateutil.relativedelta import relativedelta
from budgetsync.utils.date_parser import add_months, parse_date, parse_month


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    result = parse_date("2024-01-15")
    assert result == date(2024, 1, 15)


def test_parse_date_objects():
    """Test dates and datetimes pass through."""
    assert parse_date(date(2024, 1, 15)) == date(2024, 1, 15)
    assert parse_date(datetime(2024, 1, 15, 8, 30)) == date(2024, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    result = parse_date("today")
    assert result == date.today()


def test_parse_yesterday():
    """Test parsing 'yesterday'."""
    result = parse_date("yesterday")
    assert result == date.today() - timedelta(days=1)


def test_parse_tomorrow():
    """Test parsing 'tomorrow'."""
    result = parse_date("Tomorrow")
    assert result == date.today() + timedelta(days=1)


def test_parse_last_month():
    """Test parsing 'last month'."""
    result = parse_date("last month")
    # Should be first day of last month
    today = date.today()
    if today.month == 1:
        expected = date(today.year - 1, 12, 1)
    else:
        expected = date(today.year, today.month - 1, 1)
    assert result == expected


def test_parse_next_month():
    """Test parsing 'next month'."""
    result = parse_date("next month")
    assert result == (date.today() + relativedelta(months=1)).replace(day=1)


def test_parse_this_year():
    """Test parsing 'this year'."""
    result = parse_date("this year")
    today = date.today()
    assert result == date(today.year, 1, 1)


def test_parse_last_year():
    """Test parsing 'last year'."""
    result = parse_date("last year")
    today = date.today()
    assert result == date(today.year - 1, 1, 1)


def test_parse_last_weekday():
    """Test 'last friday' is a Friday within the past week."""
    result = parse_date("last friday")
    assert result.weekday() == 4
    assert 1 <= (date.today() - result).days <= 7


def test_parse_invalid_relative():
    """Test parsing invalid relative date."""
    with pytest.raises(ValueError):
        parse_date("last invalid")


@pytest.mark.parametrize("value", [None, "", "  "])
def test_parse_missing_date(value):
    with pytest.raises(ValueError, match="required"):
        parse_date(value)


def test_parse_standard_formats():
    """Test parsing various standard date formats."""
    # These should all work via dateutil parser
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15/01/2024") == date(2024, 1, 15)


def test_parse_month():
    """Test months normalize to YYYY-MM."""
    assert parse_month("2024-03") == "2024-03"
    assert parse_month("March 2024") == "2024-03"
    assert parse_month(date(2024, 12, 31)) == "2024-12"


def test_add_months_clamps_to_month_end():
    """Test shifting Jan 31 lands on the last day of February."""
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
