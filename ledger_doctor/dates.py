from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any

from ledger_doctor.cells import CellKind, classify_cell, fold_digits

EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_SERIAL_MIN = 25_000
EXCEL_SERIAL_MAX = 60_000

MONTH_NAMES = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11, "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "jun": 6, "jul": 7, "aug": 8,
    "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
ISO_DATETIME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?Z?$")
DAY_FIRST_RE = re.compile(r"^(\d{1,2})([/-])(\d{1,2})\2(\d{4})$")
DAY_MONTH_NAME_RE = re.compile(r"^(\d{1,2})\s*[-/ ]\s*([A-Za-z]{3,9})\.?$")
MONTH_NAME_DAY_RE = re.compile(r"^([A-Za-z]{3,9})\.?\s*[-/ ]\s*(\d{1,2})$")


def format_date_key(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_excel_serial(number: float) -> date | None:
    if not (EXCEL_SERIAL_MIN <= number <= EXCEL_SERIAL_MAX):
        return None
    if number != int(number):
        # Time-of-day fractions still belong to the calendar day.
        number = int(number)
    return EXCEL_EPOCH + timedelta(days=int(number))


def _month_from_name(name: str) -> int | None:
    return MONTH_NAMES.get(name.lower())


def _parse_short_form(text: str, inferred_year: int | None) -> date | None:
    if inferred_year is None:
        return None
    match = DAY_MONTH_NAME_RE.match(text)
    if match:
        day, month = int(match.group(1)), _month_from_name(match.group(2))
    else:
        match = MONTH_NAME_DAY_RE.match(text)
        if not match:
            return None
        month, day = _month_from_name(match.group(1)), int(match.group(2))
    if month is None:
        return None
    return _safe_date(inferred_year, month, day)


def parse_date_text(text: str, inferred_year: int | None = None) -> date | None:
    v = fold_digits(text.strip())
    if not v:
        return None

    m = ISO_RE.match(v)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    # Exported ISO timestamps keep only the calendar day
    m = ISO_DATETIME_RE.match(v)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    # DD/MM/YYYY and DD-MM-YYYY; day-first only, never month-first
    m = DAY_FIRST_RE.match(v)
    if m:
        return _safe_date(int(m.group(4)), int(m.group(3)), int(m.group(1)))

    return _parse_short_form(v, inferred_year)


def parse_date(raw: Any, inferred_year: int | None = None) -> date | None:
    """
    Parse a date cell.

    Accepts native date/datetime values, Excel serial numbers, YYYY-MM-DD,
    DD/MM/YYYY, DD-MM-YYYY, and D-Mon / D/Mon / Mon-D short forms (which
    need inferred_year). Anything else returns None.
    """
    cell = classify_cell(raw)
    if cell.kind is CellKind.DATE:
        value = cell.value
        return value.date() if isinstance(value, datetime) else value
    if cell.kind is CellKind.NUMBER:
        return _from_excel_serial(float(cell.value))
    if cell.kind is CellKind.TEXT:
        return parse_date_text(cell.text, inferred_year)
    return None


def parse_date_key(raw: Any, inferred_year: int | None = None) -> str | None:
    parsed = parse_date(raw, inferred_year)
    return format_date_key(parsed) if parsed else None


def looks_like_date(raw: Any) -> bool:
    return parse_date(raw) is not None
