"""Shared value types produced by one sheet parse."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from openpyxl.utils import get_column_letter

from ledger_doctor.errors import BlockingErrorKind

MODE_MONTHLY = "monthly"
MODE_MATRIX = "matrix"


def cell_reference(row_index: int | None, column_index: int | None) -> str | None:
    """0-based grid position -> spreadsheet reference like 'F14'."""
    if row_index is None:
        return None
    if column_index is None:
        return f"row {row_index + 1}"
    return f"{get_column_letter(column_index + 1)}{row_index + 1}"


def describe_cell(row_index: int, column_index: int | None = None) -> str:
    """'row 14, column F' for user-facing messages."""
    if column_index is None:
        return f"row {row_index + 1}"
    return f"row {row_index + 1}, column {get_column_letter(column_index + 1)}"


def json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class EmployeeRecord:
    employee_id: str
    display_name: str

    def to_dict(self) -> dict[str, str]:
        return {"employee_id": self.employee_id, "display_name": self.display_name}


@dataclass(frozen=True)
class ColumnHeader:
    column_index: int
    raw_text: str


@dataclass(frozen=True)
class ResolvedColumn:
    column_index: int
    raw_text: str
    employee_id: str
    employee_name: str = ""
    strategy: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "column_index": self.column_index,
            "column": get_column_letter(self.column_index + 1),
            "raw_text": self.raw_text,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "strategy": self.strategy,
            "mapped": True,
        }


@dataclass(frozen=True)
class UnmappedColumn:
    column_index: int
    raw_text: str
    normalized_text: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "column_index": self.column_index,
            "column": get_column_letter(self.column_index + 1),
            "raw_text": self.raw_text,
            "normalized_text": self.normalized_text,
            "mapped": False,
        }


EmployeeColumn = Union[ResolvedColumn, UnmappedColumn]


@dataclass(frozen=True)
class DailyRecord:
    date_key: str
    employee_id: str
    amount_minor_units: int
    row_index: int | None = None
    column_index: int | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.date_key, self.employee_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date_key": self.date_key,
            "employee_id": self.employee_id,
            "amount_minor_units": self.amount_minor_units,
            "cell": cell_reference(self.row_index, self.column_index),
        }


@dataclass(frozen=True)
class BlockingError:
    kind: BlockingErrorKind
    row_index: int | None
    column_index: int | None
    raw_value: Any
    message: str

    @property
    def cell(self) -> str | None:
        return cell_reference(self.row_index, self.column_index)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "row_index": self.row_index,
            "column_index": self.column_index,
            "cell": self.cell,
            "raw_value": json_safe(self.raw_value),
            "message": self.message,
        }


@dataclass(frozen=True)
class SampleCell:
    row_index: int
    column_index: int
    header: str
    raw_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "cell": cell_reference(self.row_index, self.column_index),
            "header": self.header,
            "raw_value": json_safe(self.raw_value),
        }


@dataclass(frozen=True)
class Diagnostics:
    total_rows: int = 0
    total_columns: int = 0
    header_scan_rows: int = 0
    date_column: int | None = None
    employee_start_column: int | None = None
    employee_end_column: int | None = None
    data_rows_read: int = 0
    non_blank_cells: int = 0
    skipped_empty_cells: int = 0
    skipped_per_row: tuple[tuple[int, int], ...] = ()
    rows_outside_scope: int = 0
    rows_outside_period: int = 0
    unmapped_headers: tuple[str, ...] = ()
    matched_override_headers: tuple[str, ...] = ()
    duplicate_employee_columns: tuple[str, ...] = ()
    sample_non_blank_cells: tuple[SampleCell, ...] = ()
    stopped_at_row: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "total_columns": self.total_columns,
            "header_scan_rows": self.header_scan_rows,
            "date_column": self.date_column,
            "employee_start_column": self.employee_start_column,
            "employee_end_column": self.employee_end_column,
            "data_rows_read": self.data_rows_read,
            "non_blank_cells": self.non_blank_cells,
            "skipped_empty_cells": self.skipped_empty_cells,
            "skipped_per_row": {str(row): count for row, count in self.skipped_per_row},
            "rows_outside_scope": self.rows_outside_scope,
            "rows_outside_period": self.rows_outside_period,
            "unmapped_headers": list(self.unmapped_headers),
            "matched_override_headers": list(self.matched_override_headers),
            "duplicate_employee_columns": list(self.duplicate_employee_columns),
            "sample_non_blank_cells": [cell.to_dict() for cell in self.sample_non_blank_cells],
            "stopped_at_row": self.stopped_at_row,
        }


@dataclass(frozen=True)
class ParseResult:
    mode: str
    header_row_index: int
    employee_columns: tuple[EmployeeColumn, ...] = ()
    records: tuple[DailyRecord, ...] = ()
    blocking_errors: tuple[BlockingError, ...] = ()
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    sheet_name: str | None = None

    @property
    def resolved_columns(self) -> tuple[ResolvedColumn, ...]:
        return tuple(col for col in self.employee_columns if isinstance(col, ResolvedColumn))

    @property
    def unmapped_columns(self) -> tuple[UnmappedColumn, ...]:
        return tuple(col for col in self.employee_columns if isinstance(col, UnmappedColumn))

    @property
    def is_blocked(self) -> bool:
        return bool(self.blocking_errors)

    @property
    def total_amount(self) -> int:
        return sum(record.amount_minor_units for record in self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "sheet_name": self.sheet_name,
            "header_row_index": self.header_row_index,
            "employee_columns": [col.to_dict() for col in self.employee_columns],
            "records": [record.to_dict() for record in self.records],
            "blocking_errors": [error.to_dict() for error in self.blocking_errors],
            "diagnostics": self.diagnostics.to_dict(),
            "summary": {
                "record_count": len(self.records),
                "total_amount": self.total_amount,
                "mapped_columns": len(self.resolved_columns),
                "unmapped_columns": len(self.unmapped_columns),
                "blocking_error_count": len(self.blocking_errors),
            },
        }
