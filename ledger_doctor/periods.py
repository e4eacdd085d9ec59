"""Month keys ('YYYY-MM') and the date keys they cover."""

from __future__ import annotations

import calendar
import re
from datetime import date

from ledger_doctor.dates import format_date_key
from ledger_doctor.errors import InvalidPeriodError

MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")
SHEET_MONTH_NAMES = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")


def parse_month_key(month_key: str) -> tuple[int, int]:
    match = MONTH_KEY_RE.match(str(month_key or "").strip())
    if not match:
        raise InvalidPeriodError(f"Invalid month key {month_key!r}; expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Invalid month key {month_key!r}; month must be 01-12")
    return year, month


def format_month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def sheet_name_for_month(month_key: str) -> str:
    """'2026-02' -> 'FEB'"""
    _, month = parse_month_key(month_key)
    return SHEET_MONTH_NAMES[month - 1]


def previous_month_key(month_key: str) -> str:
    year, month = parse_month_key(month_key)
    if month == 1:
        return format_month_key(year - 1, 12)
    return format_month_key(year, month - 1)


def month_year(month_key: str) -> int:
    return parse_month_key(month_key)[0]


def _days(month_key: str) -> list[str]:
    year, month = parse_month_key(month_key)
    last_day = calendar.monthrange(year, month)[1]
    return [format_date_key(date(year, month, day)) for day in range(1, last_day + 1)]


def month_date_keys(month_key: str, include_previous: bool = False) -> tuple[str, ...]:
    """
    All 'YYYY-MM-DD' keys of a month in calendar order, optionally preceded
    by the previous month's keys (late entries carried into this sheet).
    """
    keys = _days(month_key)
    if include_previous:
        keys = _days(previous_month_key(month_key)) + keys
    return tuple(keys)
