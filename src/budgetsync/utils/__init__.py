"""Utility functions for budgetsync."""

from budgetsync.utils.date_parser import parse_date, parse_month
from budgetsync.utils.amount_parser import parse_amount, round_currency
from budgetsync.utils.account_resolver import resolve_account

__all__ = ["parse_date", "parse_month", "parse_amount", "round_currency", "resolve_account"]
