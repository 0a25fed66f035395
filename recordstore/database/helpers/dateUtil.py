"""
Date helpers for query conditions.

- `parse_date_literal` reads the external ``dd-MMM-yy`` literal (e.g.
  ``"21-Nov-24"``) with English month abbreviations, whatever the process
  locale is.
- `start_of_day` / `add_days` / `day_window` build the local-time
  ``[start of day, start of next day)`` window used by "created today" lookups.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

DATE_LITERAL_FORMAT = "dd-MMM-yy"
"""External textual format accepted for date-valued conditions."""

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_DATE_LITERAL = re.compile(r"^\s*(\d{1,2})-([A-Za-z]{3})-(\d{2})\s*$")


def _expand_two_digit_year(year: int, reference: date) -> int:
    # Two-digit years resolve into the 100-year window [reference - 80, reference + 20).
    low = reference.year - 80
    candidate = (low // 100) * 100 + year
    if candidate < low:
        candidate += 100
    return candidate


def parse_date_literal(text: str, reference: Optional[date] = None) -> datetime:
    """
    Parse a ``dd-MMM-yy`` literal into a naive datetime at midnight.

    Parameters
    ----------
    text : str
        The literal, e.g. ``"05-Jan-24"``. Month names are English and
        case-insensitive.
    reference : date, optional
        Date the two-digit year window is anchored on. Defaults to today.

    Returns
    -------
    datetime
        Midnight of the parsed day.

    Raises
    ------
    ValueError
        If the text does not match the format or names an impossible day.
    """
    match = _DATE_LITERAL.match(text) if isinstance(text, str) else None
    if match is None:
        raise ValueError(f"'{text}' does not match the date format {DATE_LITERAL_FORMAT}")

    day, month_name, year = match.groups()
    month = _MONTHS.get(month_name.lower())
    if month is None:
        raise ValueError(f"'{month_name}' is not an English month abbreviation")

    reference = reference or date.today()
    try:
        return datetime(_expand_two_digit_year(int(year), reference), month, int(day))
    except ValueError as e:
        raise ValueError(f"'{text}' is not a valid calendar date: {e}") from e


def start_of_day(moment: datetime) -> datetime:
    """Return the same datetime truncated to midnight."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def add_days(moment: datetime, days: int) -> datetime:
    return moment + timedelta(days=days)


def day_window(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Return ``(start of today, start of tomorrow)`` in local time.

    The window is half-open: a row stamped exactly at the upper bound belongs
    to the next day.
    """
    today = start_of_day(now or datetime.now())
    return today, add_days(today, 1)
