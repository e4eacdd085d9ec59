"""
Sheet parse orchestration.

parse_monthly_sheet() and parse_matrix_sheet() wire header discovery, the
employee column resolver and the row assembler together and freeze the
outcome into a ParseResult. Hard errors (no header) raise; everything else
is collected.
"""

from __future__ import annotations

from typing import Any, Collection, Iterable, Mapping, Sequence

from ledger_doctor.cells import cell_text
from ledger_doctor.config import (
    DEFAULT_HEADER_SCAN_ROWS,
    DEFAULT_SAMPLE_CELLS,
    MATRIX_DATE_COLUMN,
    MATRIX_EMPLOYEE_START_COLUMN,
    MATRIX_HEADER_ROW,
    MATRIX_SCOPE_COLUMN,
    MATRIX_SHEET_NAME,
)
from ledger_doctor.employees import build_roster, employee_map_keys, resolve_employee_columns
from ledger_doctor.errors import BlockingErrorKind, default_message
from ledger_doctor.header import (
    find_date_column,
    find_employee_start_column,
    find_header_row,
    fixed_header_row,
    grid_row,
)
from ledger_doctor.logging import get_logger
from ledger_doctor.models import (
    MODE_MATRIX,
    MODE_MONTHLY,
    BlockingError,
    Diagnostics,
    EmployeeColumn,
    EmployeeRecord,
    ParseResult,
    ResolvedColumn,
    UnmappedColumn,
    describe_cell,
)
from ledger_doctor.periods import month_year
from ledger_doctor.rows import RowAssembly, assemble_rows

log = get_logger(__name__)


def _no_employee_columns_error(header_row: Sequence[Any], header_row_index: int, start_column: int) -> BlockingError:
    raw = header_row[start_column] if start_column < len(header_row) else None
    return BlockingError(
        kind=BlockingErrorKind.NO_EMPLOYEE_COLUMNS,
        row_index=header_row_index,
        column_index=start_column,
        raw_value=raw,
        message=f"{describe_cell(header_row_index, start_column)}: "
        f"{default_message(BlockingErrorKind.NO_EMPLOYEE_COLUMNS)}",
    )


def _duplicate_columns(columns: Iterable[EmployeeColumn]) -> tuple[str, ...]:
    seen: dict[str, str] = {}
    duplicates: list[str] = []
    for column in columns:
        if not isinstance(column, ResolvedColumn):
            continue
        first = seen.get(column.employee_id)
        if first is None:
            seen[column.employee_id] = column.raw_text
            continue
        duplicates.append(f"{column.raw_text} -> {column.employee_id} (also {first})")
    return tuple(duplicates)


def _override_headers(columns: Iterable[EmployeeColumn], employee_map: Mapping[str, str] | None) -> tuple[str, ...]:
    if not employee_map:
        return ()
    return tuple(
        column.raw_text
        for column in columns
        if isinstance(column, ResolvedColumn)
        and column.strategy == "embedded_id"
        and any(key in employee_map for key in employee_map_keys(column.raw_text))
    )


def _employee_end_column(columns: Sequence[EmployeeColumn], start_column: int) -> int:
    if not columns:
        return start_column
    return columns[-1].column_index + 1


def _build_result(
    *,
    mode: str,
    grid: Sequence[Sequence[Any]],
    sheet_name: str | None,
    header_row_index: int,
    header_scan_rows: int,
    date_column: int,
    start_column: int,
    columns: Sequence[EmployeeColumn],
    assembly: RowAssembly,
    employee_map: Mapping[str, str] | None,
) -> ParseResult:
    header_row = grid_row(grid, header_row_index)
    errors: list[BlockingError] = []
    if not columns:
        errors.append(_no_employee_columns_error(header_row, header_row_index, start_column))
    errors.extend(assembly.blocking_errors)

    diagnostics = Diagnostics(
        total_rows=len(grid),
        total_columns=max((len(row or []) for row in grid), default=0),
        header_scan_rows=header_scan_rows,
        date_column=date_column,
        employee_start_column=start_column,
        employee_end_column=_employee_end_column(columns, start_column),
        data_rows_read=assembly.data_rows_read,
        non_blank_cells=assembly.non_blank_cells,
        skipped_empty_cells=assembly.skipped_empty_cells,
        skipped_per_row=assembly.skipped_per_row,
        rows_outside_scope=assembly.rows_outside_scope,
        rows_outside_period=assembly.rows_outside_period,
        unmapped_headers=tuple(col.raw_text for col in columns if isinstance(col, UnmappedColumn)),
        matched_override_headers=_override_headers(columns, employee_map),
        duplicate_employee_columns=_duplicate_columns(columns),
        sample_non_blank_cells=assembly.sample_non_blank_cells,
        stopped_at_row=assembly.stopped_at_row,
    )
    result = ParseResult(
        mode=mode,
        header_row_index=header_row_index,
        employee_columns=tuple(columns),
        records=assembly.records,
        blocking_errors=tuple(errors),
        diagnostics=diagnostics,
        sheet_name=sheet_name,
    )
    log.info(
        "sheet_parsed",
        mode=mode,
        sheet=sheet_name,
        header_row=header_row_index,
        mapped_columns=len(result.resolved_columns),
        unmapped_columns=len(result.unmapped_columns),
        records=len(result.records),
        blocking_errors=len(result.blocking_errors),
    )
    return result


def _inferred_year(month_key: str | None, inferred_year: int | None) -> int | None:
    if inferred_year is not None:
        return inferred_year
    if month_key:
        return month_year(month_key)
    return None


def parse_monthly_sheet(
    grid: Sequence[Sequence[Any]],
    roster: Iterable[EmployeeRecord],
    *,
    month_key: str | None = None,
    inferred_year: int | None = None,
    employee_map: Mapping[str, str] | None = None,
    max_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS,
    allowed_dates: Collection[str] | None = None,
    sheet_name: str | None = None,
    sample_limit: int = DEFAULT_SAMPLE_CELLS,
) -> ParseResult:
    """
    Parse one monthly sheet (header row somewhere in the first rows, a date
    column, a day column, then employee columns up to the first stop column).

    Raises HeaderNotFoundError when no header qualifies.
    """
    snapshot = build_roster(roster)
    header_row_index = find_header_row(grid, max_scan_rows, sheet_name=sheet_name)
    header_row = grid_row(grid, header_row_index)
    date_column = find_date_column(grid, header_row_index)
    start_column = find_employee_start_column(header_row, date_column)
    columns = resolve_employee_columns(header_row, start_column, snapshot, employee_map)

    assembly = assemble_rows(
        grid,
        header_row_index,
        date_column,
        columns,
        _inferred_year(month_key, inferred_year),
        allowed_dates=allowed_dates,
        sample_limit=sample_limit,
    )
    return _build_result(
        mode=MODE_MONTHLY,
        grid=grid,
        sheet_name=sheet_name,
        header_row_index=header_row_index,
        header_scan_rows=max_scan_rows,
        date_column=date_column,
        start_column=start_column,
        columns=columns,
        assembly=assembly,
        employee_map=employee_map,
    )


def parse_matrix_sheet(
    grid: Sequence[Sequence[Any]],
    roster: Iterable[EmployeeRecord],
    *,
    scope_id: str | None = None,
    month_key: str | None = None,
    inferred_year: int | None = None,
    employee_map: Mapping[str, str] | None = None,
    allowed_dates: Collection[str] | None = None,
    sheet_name: str | None = MATRIX_SHEET_NAME,
    sample_limit: int = DEFAULT_SAMPLE_CELLS,
) -> ParseResult:
    """
    Parse the fixed matrix template: header on row 0, scope id, date and day
    in the first three columns, employees from the fourth column on. Rows
    for another scope are skipped when scope_id is given.
    """
    snapshot = build_roster(roster)
    header_row_index = fixed_header_row(grid, MATRIX_HEADER_ROW, sheet_name=sheet_name)
    header_row = grid_row(grid, header_row_index)
    columns = resolve_employee_columns(header_row, MATRIX_EMPLOYEE_START_COLUMN, snapshot, employee_map)
    scope = cell_text(scope_id) if scope_id is not None else None

    assembly = assemble_rows(
        grid,
        header_row_index,
        MATRIX_DATE_COLUMN,
        columns,
        _inferred_year(month_key, inferred_year),
        allowed_dates=allowed_dates,
        scope_column=MATRIX_SCOPE_COLUMN,
        scope_id=scope,
        sample_limit=sample_limit,
    )
    return _build_result(
        mode=MODE_MATRIX,
        grid=grid,
        sheet_name=sheet_name,
        header_row_index=header_row_index,
        header_scan_rows=header_row_index + 1,
        date_column=MATRIX_DATE_COLUMN,
        start_column=MATRIX_EMPLOYEE_START_COLUMN,
        columns=columns,
        assembly=assembly,
        employee_map=employee_map,
    )
