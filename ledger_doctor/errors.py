"""
Shared ledger-doctor error taxonomy.

Hard errors abort a parse call and are raised as exceptions. Collected
errors are BlockingError values accumulated into the ParseResult; their
kinds and default messages live here so the parser, the gate and the CLI
do not drift.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class BlockingErrorKind(str, Enum):
    INVALID_DATE = "INVALID_DATE"
    NOT_A_NUMBER = "NOT_A_NUMBER"
    DECIMAL = "DECIMAL"
    NEGATIVE = "NEGATIVE"
    NO_EMPLOYEE_COLUMNS = "NO_EMPLOYEE_COLUMNS"
    HEADER_NOT_FOUND = "HEADER_NOT_FOUND"


BLOCKING_ERROR_DEFINITIONS = {
    BlockingErrorKind.INVALID_DATE: {
        "message": "Invalid date",
        "hint": "Use YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY or D-Mon (e.g. 14-Feb).",
    },
    BlockingErrorKind.NOT_A_NUMBER: {
        "message": "Value is not a number",
        "hint": "Enter a whole SAR amount, leave the cell blank, or use '-' for no sale.",
    },
    BlockingErrorKind.DECIMAL: {
        "message": "Decimals not allowed (amounts must be whole SAR)",
        "hint": "Round the amount to a whole number before importing.",
    },
    BlockingErrorKind.NEGATIVE: {
        "message": "Negative amounts are not allowed",
        "hint": "Returns are recorded separately; enter zero or leave the cell blank.",
    },
    BlockingErrorKind.NO_EMPLOYEE_COLUMNS: {
        "message": "No employee columns detected before the first stop column",
        "hint": "Put employee names between the Day column and the Total column.",
    },
    BlockingErrorKind.HEADER_NOT_FOUND: {
        "message": "Header row not found",
        "hint": "The header row must contain both a Date and a Day column.",
    },
}


def default_message(kind: BlockingErrorKind) -> str:
    return BLOCKING_ERROR_DEFINITIONS[kind]["message"]


def error_hint(kind: BlockingErrorKind) -> str:
    return BLOCKING_ERROR_DEFINITIONS[kind]["hint"]


class LedgerDoctorError(ValueError):
    """Base class for hard errors that abort a parse call."""


class WorkbookReadError(LedgerDoctorError):
    pass


class SheetNotFoundError(LedgerDoctorError):
    def __init__(self, sheet_name: str, available: list[str] | None = None) -> None:
        self.sheet_name = sheet_name
        self.available = list(available or [])
        message = f'Sheet "{sheet_name}" not found'
        if self.available:
            message += f". Available sheets: {self.available}"
        super().__init__(message)


class InvalidPeriodError(LedgerDoctorError):
    pass


class RosterError(LedgerDoctorError):
    pass


class HeaderNotFoundError(LedgerDoctorError):
    """No row in the scanned range qualified as the header row."""

    def __init__(
        self,
        scanned_rows: int,
        *,
        sheet_name: str | None = None,
        candidates: list[dict[str, Any]] | None = None,
    ) -> None:
        self.scanned_rows = scanned_rows
        self.sheet_name = sheet_name
        self.candidates = list(candidates or [])
        where = f' in sheet "{sheet_name}"' if sheet_name else ""
        super().__init__(
            f"Cannot find header row{where}. Scanned rows 1-{scanned_rows}; "
            "a header needs both a Date and a Day column."
        )

    def as_blocking_error(self):
        from ledger_doctor.models import BlockingError

        return BlockingError(
            kind=BlockingErrorKind.HEADER_NOT_FOUND,
            row_index=None,
            column_index=None,
            raw_value=None,
            message=str(self),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "kind": BlockingErrorKind.HEADER_NOT_FOUND.value,
            "sheet_name": self.sheet_name,
            "header_scan_rows": self.scanned_rows,
            "header_candidates": self.candidates,
        }
