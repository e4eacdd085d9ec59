"""
Cell normalizer and ingress cell classification.

Every comparison in ledger-doctor goes through normalize(); every
amount/date decision starts from classify_cell(), which maps the loose
spreadsheet value space (str | number | date | blank | dash sentinel) onto
a closed set of kinds.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

import pandas as pd

DASH_SENTINELS = frozenset({"-", "\u2014"})

ARABIC_FOLDS = (
    ("\u0623", "\u0627"),
    ("\u0625", "\u0627"),
    ("\u0622", "\u0627"),
    ("\u0649", "\u064a"),
    ("\u0629", "\u0647"),
)
ARABIC_MARKS_RE = re.compile("[\u064b-\u065f\u0670]")
WHITESPACE_RE = re.compile(r"\s+")
ARABIC_INDIC_DIGITS = str.maketrans(
    "\u0660\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668\u0669"
    "\u06f0\u06f1\u06f2\u06f3\u06f4\u06f5\u06f6\u06f7\u06f8\u06f9",
    "01234567890123456789",
)


class CellKind(str, Enum):
    BLANK = "blank"
    DASH = "dash"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Any
    text: str


def unwrap_scalar(value: Any) -> Any:
    """Collapse pandas/NaN/timezone noise into plain Python values."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        if value.tzinfo is not None:
            value = value.tz_convert(None)
        return value.to_pydatetime()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (str, bool, int, float, Decimal, date, datetime, time)):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if hasattr(value, "item"):
        # numpy scalars
        return value.item()
    return value


def _number_text(number: int | float | Decimal) -> str:
    if isinstance(number, bool):
        return str(number).lower()
    if isinstance(number, int):
        return str(number)
    if isinstance(number, float):
        if math.isinf(number):
            return "inf" if number > 0 else "-inf"
        if number.is_integer():
            return str(int(number))
        return repr(number)
    if number == number.to_integral_value():
        return str(int(number))
    return str(number)


def classify_cell(raw: Any) -> Cell:
    value = unwrap_scalar(raw)
    if value is None:
        return Cell(CellKind.BLANK, None, "")
    if isinstance(value, bool):
        return Cell(CellKind.BOOLEAN, value, str(value).lower())
    if isinstance(value, (datetime, date)):
        return Cell(CellKind.DATE, value, "")
    if isinstance(value, time):
        return Cell(CellKind.TEXT, value, value.strftime("%H:%M:%S"))
    if isinstance(value, (int, float, Decimal)):
        return Cell(CellKind.NUMBER, value, _number_text(value))
    text = str(value).replace("\x00", "").replace("\ufeff", "").strip()
    if not text:
        return Cell(CellKind.BLANK, None, "")
    if text in DASH_SENTINELS:
        return Cell(CellKind.DASH, text, text)
    return Cell(CellKind.TEXT, text, text)


def is_blank(raw: Any) -> bool:
    return classify_cell(raw).kind is CellKind.BLANK


def is_blank_or_dash(raw: Any) -> bool:
    return classify_cell(raw).kind in {CellKind.BLANK, CellKind.DASH}


def cell_text(raw: Any) -> str:
    """Display text of a cell; dates render as ISO dates."""
    cell = classify_cell(raw)
    if cell.kind is CellKind.DATE:
        value = cell.value
        if isinstance(value, datetime):
            value = value.date()
        return value.isoformat()
    return cell.text


def fold_arabic(text: str) -> str:
    for source, target in ARABIC_FOLDS:
        text = text.replace(source, target)
    return ARABIC_MARKS_RE.sub("", text)


def fold_digits(text: str) -> str:
    return text.translate(ARABIC_INDIC_DIGITS)


def normalize_text(text: str) -> str:
    collapsed = WHITESPACE_RE.sub(" ", text).strip()
    return fold_arabic(collapsed.lower())


def normalize(raw: Any) -> str:
    """
    Normalize a cell for comparison.

    Trim, collapse whitespace and line breaks to single spaces, lowercase,
    fold Arabic compatibility letters and strip Arabic diacritics. Dates and
    blanks normalize to "". Never raises.
    """
    cell = classify_cell(raw)
    if cell.kind in {CellKind.BLANK, CellKind.DATE}:
        return ""
    return normalize_text(cell.text)


def squash_spaces(normalized: str) -> str:
    return WHITESPACE_RE.sub("", normalized)


def is_numeric_text(normalized: str) -> bool:
    return bool(normalized) and fold_digits(normalized).isdigit()
