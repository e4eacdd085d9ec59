"""Integer SAR amount policy for employee cells."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ledger_doctor.cells import CellKind, classify_cell, fold_digits
from ledger_doctor.errors import BlockingErrorKind

INTEGER_TEXT_RE = re.compile(r"^[+-]?\d+$")
DECIMAL_TEXT_RE = re.compile(r"^[+-]?\d*\.\d*$")
ARABIC_SEPARATORS = {"\u066b": ".", "\u066c": ","}


@dataclass(frozen=True)
class AmountOutcome:
    """One of: skip (blank/dash), accepted value, or a blocking error kind."""

    skipped: bool = False
    value: int | None = None
    error: BlockingErrorKind | None = None
    reason: str = ""

    @property
    def accepted(self) -> bool:
        return self.value is not None


SKIP = AmountOutcome(skipped=True)


def _accept(value: int) -> AmountOutcome:
    return AmountOutcome(value=value)


def _reject(kind: BlockingErrorKind, reason: str) -> AmountOutcome:
    return AmountOutcome(error=kind, reason=reason)


def _clean_amount_text(text: str) -> str:
    cleaned = fold_digits(text)
    for source, target in ARABIC_SEPARATORS.items():
        cleaned = cleaned.replace(source, target)
    return cleaned.replace(",", "").replace(" ", "").strip()


def _from_text(text: str) -> AmountOutcome:
    cleaned = _clean_amount_text(text)
    if DECIMAL_TEXT_RE.match(cleaned) and any(ch.isdigit() for ch in cleaned):
        return _reject(BlockingErrorKind.DECIMAL, "Decimals not allowed")
    if not INTEGER_TEXT_RE.match(cleaned):
        return _reject(BlockingErrorKind.NOT_A_NUMBER, "Value is not a number")
    value = int(cleaned)
    if value < 0:
        return _reject(BlockingErrorKind.NEGATIVE, "Negative amount")
    return _accept(value)


def _from_number(number: int | float | Decimal) -> AmountOutcome:
    if isinstance(number, float) and (math.isnan(number) or math.isinf(number)):
        return _reject(BlockingErrorKind.NOT_A_NUMBER, "Invalid number")
    if isinstance(number, Decimal) and not number.is_finite():
        return _reject(BlockingErrorKind.NOT_A_NUMBER, "Invalid number")
    if number != int(number):
        return _reject(BlockingErrorKind.DECIMAL, "Decimals not allowed")
    value = int(number)
    if value < 0:
        return _reject(BlockingErrorKind.NEGATIVE, "Negative amount")
    return _accept(value)


def parse_amount(raw: Any) -> AmountOutcome:
    """
    Apply the amount policy to one cell.

    Blank and lone dash cells are skipped. Text containing a decimal point
    and non-integer numbers are DECIMAL, negatives are NEGATIVE, anything
    else that is not a whole number is NOT_A_NUMBER. Thousands separators
    are stripped and Arabic-Indic digits are accepted.
    """
    cell = classify_cell(raw)
    if cell.kind in {CellKind.BLANK, CellKind.DASH}:
        return SKIP
    if cell.kind is CellKind.NUMBER:
        return _from_number(cell.value)
    if cell.kind is CellKind.TEXT:
        return _from_text(cell.text)
    if cell.kind is CellKind.DATE:
        return _reject(BlockingErrorKind.NOT_A_NUMBER, "Date is not an amount")
    return _reject(BlockingErrorKind.NOT_A_NUMBER, "Value is not a number")
