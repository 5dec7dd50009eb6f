"""Date parsing and calendar arithmetic utilities."""

from datetime import date, timedelta
import re

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from ledgerbook.domain.errors import InvalidDateError

_LOCALIZED_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")


def _normalized_date(year: int, month: int, day: int) -> date:
    """Build a date, rolling day overflow into the following month(s).

    ``month`` may be outside 1..12; it is carried into the year first. A day
    past the end of the resulting month spills forward, so February 31st
    becomes early March.
    """
    year_offset, month_index = divmod(month - 1, 12)
    first = date(year + year_offset, month_index + 1, 1)
    return first + timedelta(days=day - 1)


def parse_localized_date(date_str: str) -> date:
    """Parse a DD/MM/YYYY date.

    Month must be 1..12 and day 1..31. The day is not checked against the
    month length: "31/02/2024" is accepted and rolls over to 2024-03-02.

    Raises:
        InvalidDateError: If the text is not a valid DD/MM/YYYY date
    """
    match = _LOCALIZED_DATE.match((date_str or "").strip())
    if match is None:
        raise InvalidDateError(f"Could not parse date '{date_str}' (dd/mm/yyyy)")

    day, month, year = (int(g) for g in match.groups())
    if year == 0 or not 1 <= month <= 12 or not 1 <= day <= 31:
        raise InvalidDateError(f"Date out of range: '{date_str}'")

    return _normalized_date(year, month, day)


def add_days(value: date, days: int) -> date:
    """Return ``value`` shifted by ``days`` calendar days."""
    return value + timedelta(days=days)


def add_months_keep_day(value: date, months: int) -> date:
    """Shift a date by whole months keeping the day of month.

    The day is not clamped: when it does not exist in the target month the
    date rolls into the next month (2024-01-31 + 1 month = 2024-03-02).
    """
    return _normalized_date(value.year, value.month + months, value.day)


def month_key(value: date) -> str:
    """Return the YYYY-MM key of a date."""
    return f"{value.year:04d}-{value.month:02d}"


def month_range(key: str) -> tuple[date, date]:
    """Return ``[start, end)`` of a YYYY-MM month key.

    Raises:
        InvalidDateError: If the key is not YYYY-MM
    """
    match = re.match(r"^(\d{4})-(\d{2})$", (key or "").strip())
    if match is None or not 1 <= int(match.group(2)) <= 12:
        raise InvalidDateError(f"Invalid month '{key}' (expected YYYY-MM)")
    start = date(int(match.group(1)), int(match.group(2)), 1)
    return start, start + relativedelta(months=1)


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "15/01/2024", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        InvalidDateError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            return today - timedelta(days=today.weekday() + 7)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)
        elif period == "week":
            return today + timedelta(days=(7 - today.weekday()))

    if _LOCALIZED_DATE.match(date_str):
        return parse_localized_date(date_str)

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Get start and end dates (both inclusive) for a named period.

    Args:
        period: One of this-month, last-month, this-year, last-30-days,
            today, next-5-days, last-5-days
        today: Reference date, defaults to the current date

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "today":
        return (today, today)

    elif period == "next-5-days":
        return (today, today + timedelta(days=5))

    elif period == "last-5-days":
        return (today - timedelta(days=4), today)

    elif period == "last-30-days":
        return (today - timedelta(days=29), today)

    elif period == "this-month":
        start, end = month_range(month_key(today))
        return (start, end - timedelta(days=1))

    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "this-year":
        return (today.replace(month=1, day=1), today)

    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: today, next-5-days, "
            "last-5-days, last-30-days, this-month, last-month, this-year"
        )
