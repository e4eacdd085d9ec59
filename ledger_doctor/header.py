"""
Header discovery for monthly sheets and the fixed matrix template.

Monthly sheets carry a title band of unknown height above the real header,
so the first rows are scanned for a row mentioning both a date and a day
column. The matrix template always has its header on row 0.
"""

from __future__ import annotations

import re
from typing import Any, Sequence

from ledger_doctor.cells import normalize, normalize_text
from ledger_doctor.config import DEFAULT_HEADER_SCAN_ROWS, MATRIX_HEADER_ROW
from ledger_doctor.dates import looks_like_date
from ledger_doctor.errors import HeaderNotFoundError
from ledger_doctor.logging import get_logger

log = get_logger(__name__)

DATE_TOKENS = tuple(
    normalize_text(token)
    for token in ("date", "transaction date", "sales date", "التاريخ", "تاريخ", "بتاريخ")
)
DATE_EXACT_TOKENS = frozenset({"dt"})
DAY_TOKENS = tuple(
    normalize_text(token)
    for token in ("day", "day name", "weekday", "dow", "اليوم", "اسم اليوم", "يوم")
)
DAY_WORD_PATTERNS = tuple(re.compile(r"(?<!\w)" + re.escape(token) + r"(?!\w)") for token in DAY_TOKENS)

MAX_HEADER_COLUMNS = 80
DATE_FALLBACK_COLUMNS = 20
DATE_FALLBACK_PROBE_ROWS = 5
DATE_FALLBACK_MIN_HITS = 3
MAX_CANDIDATES = 5


def has_date_token(normalized: str) -> bool:
    if not normalized:
        return False
    if normalized in DATE_EXACT_TOKENS:
        return True
    return any(token in normalized for token in DATE_TOKENS)


def has_day_token(normalized: str) -> bool:
    if not normalized:
        return False
    return any(token in normalized for token in DAY_TOKENS)


def is_day_header(normalized: str) -> bool:
    """Day column header: a day token as a whole word, so "Dayana" is not a day column."""
    if not normalized:
        return False
    return any(pattern.search(normalized) for pattern in DAY_WORD_PATTERNS)


def grid_row(grid: Sequence[Sequence[Any]], row_index: int) -> list[Any]:
    if row_index < 0 or row_index >= len(grid):
        return []
    return list(grid[row_index] or [])


def normalized_row(row: Sequence[Any], limit: int | None = None) -> list[str]:
    cells = row if limit is None else row[:limit]
    return [normalize(value) for value in cells]


def _candidate(row_index: int, normalized: list[str], raw: Sequence[Any]) -> dict[str, Any] | None:
    sample = [str(value).strip() for value in raw if normalize(value)]
    if not sample:
        return None
    date_hit = any(has_date_token(cell) for cell in normalized)
    day_hit = any(has_day_token(cell) for cell in normalized)
    return {
        "row_index": row_index,
        "date_hit": date_hit,
        "day_hit": day_hit,
        "score": (5 if date_hit else 0) + (5 if day_hit else 0) + len(sample),
        "sample": sample[:12],
    }


def find_header_row(
    grid: Sequence[Sequence[Any]],
    max_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS,
    *,
    sheet_name: str | None = None,
) -> int:
    """
    Return the index of the first row in [0, max_scan_rows) that has a date
    token and a day token. The earliest qualifying row is authoritative.

    Raises HeaderNotFoundError with the best-scoring candidate rows.
    """
    scan_end = min(len(grid), max_scan_rows)
    candidates: list[dict[str, Any]] = []
    for row_index in range(scan_end):
        raw = grid_row(grid, row_index)[:MAX_HEADER_COLUMNS]
        normalized = normalized_row(raw)
        if any(has_date_token(cell) for cell in normalized) and any(
            has_day_token(cell) for cell in normalized
        ):
            log.debug("header_row_found", sheet=sheet_name, row_index=row_index)
            return row_index
        candidate = _candidate(row_index, normalized, raw)
        if candidate:
            candidates.append(candidate)

    best = sorted(candidates, key=lambda item: (-item["score"], item["row_index"]))[:MAX_CANDIDATES]
    log.debug("header_row_missing", sheet=sheet_name, scanned_rows=max_scan_rows)
    raise HeaderNotFoundError(max_scan_rows, sheet_name=sheet_name, candidates=best)


def fixed_header_row(
    grid: Sequence[Sequence[Any]],
    row_index: int = MATRIX_HEADER_ROW,
    *,
    sheet_name: str | None = None,
) -> int:
    """Matrix-template mode: the header lives at a caller-fixed row."""
    if row_index >= len(grid) or not any(normalize(value) for value in grid_row(grid, row_index)):
        raise HeaderNotFoundError(row_index + 1, sheet_name=sheet_name)
    return row_index


def find_date_column(grid: Sequence[Sequence[Any]], header_row_index: int) -> int:
    """
    Date column of a monthly sheet: the header naming a date, else the first
    column whose next few cells mostly parse as dates, else column 0.
    """
    header = normalized_row(grid_row(grid, header_row_index))
    for column_index, text in enumerate(header):
        if has_date_token(text):
            return column_index

    probe_rows = range(header_row_index + 1, min(header_row_index + 1 + DATE_FALLBACK_PROBE_ROWS, len(grid)))
    for column_index in range(min(len(header), DATE_FALLBACK_COLUMNS)):
        hits = 0
        for row_index in probe_rows:
            row = grid_row(grid, row_index)
            if column_index < len(row) and looks_like_date(row[column_index]):
                hits += 1
        if hits >= DATE_FALLBACK_MIN_HITS:
            return column_index
    return 0


def find_employee_start_column(header_row: Sequence[Any], date_column: int) -> int:
    """First column after the date column that is neither a day column nor empty."""
    normalized = normalized_row(header_row)
    start = date_column + 1
    while start < len(normalized) and (not normalized[start] or is_day_header(normalized[start])):
        start += 1
    return start
