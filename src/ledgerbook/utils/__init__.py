"""Utility functions for ledgerbook."""

from ledgerbook.utils.date_parser import (
    parse_date,
    parse_localized_date,
    add_days,
    add_months_keep_day,
    month_key,
    month_range,
)
from ledgerbook.utils.amount_parser import parse_localized_amount, format_currency_localized

__all__ = [
    "parse_date",
    "parse_localized_date",
    "add_days",
    "add_months_keep_day",
    "month_key",
    "month_range",
    "parse_localized_amount",
    "format_currency_localized",
]
