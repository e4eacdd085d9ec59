"""
Row assembly: walk the data rows under a header, validate every employee
cell, and collect records plus blocking errors in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Collection, Optional, Sequence

from ledger_doctor.amounts import parse_amount
from ledger_doctor.cells import is_blank, is_blank_or_dash, normalize, normalize_text
from ledger_doctor.config import DEFAULT_SAMPLE_CELLS
from ledger_doctor.dates import parse_date_key
from ledger_doctor.errors import BlockingErrorKind, default_message
from ledger_doctor.models import (
    BlockingError,
    DailyRecord,
    EmployeeColumn,
    ResolvedColumn,
    SampleCell,
    describe_cell,
)

TOTAL_MARKERS = tuple(normalize_text(token) for token in ("total", "الإجمالي", "المجموع"))


def is_total_marker(raw: Any) -> bool:
    text = normalize(raw)
    return bool(text) and any(marker in text for marker in TOTAL_MARKERS)


@dataclass(frozen=True)
class RowAssembly:
    records: tuple[DailyRecord, ...] = ()
    blocking_errors: tuple[BlockingError, ...] = ()
    skipped_per_row: tuple[tuple[int, int], ...] = ()
    data_rows_read: int = 0
    non_blank_cells: int = 0
    skipped_empty_cells: int = 0
    rows_outside_scope: int = 0
    rows_outside_period: int = 0
    sample_non_blank_cells: tuple[SampleCell, ...] = ()
    stopped_at_row: Optional[int] = None


@dataclass
class _RowCollector:
    """Mutable accumulator owned by a single assemble_rows call."""

    sample_limit: int
    records: list[DailyRecord] = field(default_factory=list)
    errors: list[BlockingError] = field(default_factory=list)
    skipped_per_row: list[tuple[int, int]] = field(default_factory=list)
    samples: list[SampleCell] = field(default_factory=list)
    data_rows_read: int = 0
    non_blank_cells: int = 0
    skipped_empty_cells: int = 0
    rows_outside_scope: int = 0
    rows_outside_period: int = 0
    stopped_at_row: Optional[int] = None

    def error(
        self,
        kind: BlockingErrorKind,
        row_index: int,
        column_index: int | None,
        raw_value: Any,
        reason: str = "",
    ) -> None:
        text = reason or default_message(kind)
        self.errors.append(
            BlockingError(
                kind=kind,
                row_index=row_index,
                column_index=column_index,
                raw_value=raw_value,
                message=f"{describe_cell(row_index, column_index)}: {text}",
            )
        )

    def sample(self, row_index: int, column_index: int, header: str, raw_value: Any) -> None:
        if len(self.samples) < self.sample_limit:
            self.samples.append(SampleCell(row_index, column_index, header, raw_value))

    def build(self) -> RowAssembly:
        return RowAssembly(
            records=tuple(self.records),
            blocking_errors=tuple(self.errors),
            skipped_per_row=tuple(self.skipped_per_row),
            data_rows_read=self.data_rows_read,
            non_blank_cells=self.non_blank_cells,
            skipped_empty_cells=self.skipped_empty_cells,
            rows_outside_scope=self.rows_outside_scope,
            rows_outside_period=self.rows_outside_period,
            sample_non_blank_cells=tuple(self.samples),
            stopped_at_row=self.stopped_at_row,
        )


def _cell(row: Sequence[Any], column_index: int) -> Any:
    return row[column_index] if 0 <= column_index < len(row) else None


def _in_scope(raw_scope: Any, scope_id: str) -> bool:
    return normalize(raw_scope) == normalize(scope_id)


def assemble_rows(
    grid: Sequence[Sequence[Any]],
    header_row_index: int,
    date_column: int,
    employee_columns: Sequence[EmployeeColumn],
    inferred_year: int | None = None,
    *,
    allowed_dates: Collection[str] | None = None,
    scope_column: int | None = None,
    scope_id: str | None = None,
    sample_limit: int = DEFAULT_SAMPLE_CELLS,
) -> RowAssembly:
    """
    Validate every row strictly below the header.

    A date cell mentioning "total" ends the data region. Blank dates skip the
    row; unparseable dates are INVALID_DATE and skip the row. Every employee
    column is validated, but records are only emitted for resolved columns.
    """
    collector = _RowCollector(sample_limit=sample_limit)

    for row_index in range(header_row_index + 1, len(grid)):
        row = list(grid[row_index] or [])
        raw_date = _cell(row, date_column)

        if is_total_marker(raw_date):
            collector.stopped_at_row = row_index
            break
        if is_blank_or_dash(raw_date):
            continue
        if scope_column is not None and scope_id and not _in_scope(_cell(row, scope_column), scope_id):
            collector.rows_outside_scope += 1
            continue

        date_key = parse_date_key(raw_date, inferred_year)
        if date_key is None:
            collector.error(BlockingErrorKind.INVALID_DATE, row_index, date_column, raw_date)
            continue
        if allowed_dates is not None and date_key not in allowed_dates:
            collector.rows_outside_period += 1
            continue

        collector.data_rows_read += 1
        skipped = 0
        for column in employee_columns:
            raw = _cell(row, column.column_index)
            outcome = parse_amount(raw)
            if not is_blank(raw):
                collector.non_blank_cells += 1
                collector.sample(row_index, column.column_index, column.raw_text, raw)
            if outcome.skipped:
                skipped += 1
                continue
            if outcome.error is not None:
                collector.error(outcome.error, row_index, column.column_index, raw, outcome.reason)
                continue
            if isinstance(column, ResolvedColumn):
                collector.records.append(
                    DailyRecord(
                        date_key=date_key,
                        employee_id=column.employee_id,
                        amount_minor_units=outcome.value,
                        row_index=row_index,
                        column_index=column.column_index,
                    )
                )
        if skipped:
            collector.skipped_empty_cells += skipped
            collector.skipped_per_row.append((row_index, skipped))

    return collector.build()

