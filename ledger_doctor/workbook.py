"""
Workbook adapter: turn .xlsx/.xlsm/.csv files into plain row grids, and
read the roster and ledger snapshots the CLI reconciles against.

The parsing engine only ever sees list[list[Any]]; nothing in here is
needed when a caller already has the grid.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import chardet
import pandas as pd
from openpyxl import load_workbook

from ledger_doctor.amounts import parse_amount
from ledger_doctor.cells import is_blank
from ledger_doctor.dates import parse_date_key
from ledger_doctor.employees import build_roster
from ledger_doctor.errors import RosterError, SheetNotFoundError, WorkbookReadError
from ledger_doctor.models import EmployeeRecord

EXCEL_FORMATS = {".xlsx", ".xlsm"}
TEXT_FORMATS = {".csv"}
ALL_FORMATS = EXCEL_FORMATS | TEXT_FORMATS

ROSTER_ID_COLUMNS = ("employee_id", "empid", "emp_id", "id")
ROSTER_NAME_COLUMNS = ("display_name", "name", "employee_name")
STORE_DATE_COLUMNS = ("date_key", "date")
STORE_AMOUNT_COLUMNS = ("amount_minor_units", "amount", "amount_sar")


@dataclass(frozen=True)
class SheetGrid:
    sheet_name: Optional[str]
    rows: list[list[Any]]
    sheet_names: tuple[str, ...] = ()


# ── text decoding ──────────────────────────────────────────────────────────────

def detect_encoding(raw: bytes) -> str:
    result = chardet.detect(raw)
    return result.get("encoding") or "utf-8"


def read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode line by line: UTF-8, then the detected encoding, then latin-1,
    finally cp1252 with replacement. Null bytes are stripped.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            if not enc:
                continue
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", "").rstrip("\r"))
    return "\n".join(decoded_lines)


def _read_csv_frame(path: Path, *, ragged: bool = False, **kwargs: Any) -> pd.DataFrame:
    raw = path.read_bytes()
    text = read_text_safely(raw, detect_encoding(raw))
    if ragged:
        # title bands are shorter than the header row
        width = max((len(row) for row in csv.reader(io.StringIO(text))), default=1)
        kwargs["names"] = list(range(width))
        kwargs["skip_blank_lines"] = False
    try:
        return pd.read_csv(io.StringIO(text), keep_default_na=False, **kwargs)
    except (ValueError, pd.errors.ParserError) as exc:
        raise WorkbookReadError(f"Could not parse {path.suffix} file: {exc}") from exc


# ── grids ──────────────────────────────────────────────────────────────────────

def _check_path(path: "str | Path") -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if path.suffix.lower() not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise WorkbookReadError(f"Unsupported format '{path.suffix}'. Supported: {supported}")
    return path


def match_sheet_name(wanted: str, available: list[str]) -> str | None:
    """Exact name first, then case-insensitive after trimming."""
    if wanted in available:
        return wanted
    folded = wanted.strip().lower()
    for name in available:
        if name.strip().lower() == folded:
            return name
    return None


def _trim_row(values: tuple[Any, ...] | list[Any]) -> list[Any]:
    row = list(values)
    while row and is_blank(row[-1]):
        row.pop()
    return row


def _read_excel_grid(path: Path, sheet_name: Optional[str], required: bool) -> SheetGrid | None:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except Exception as exc:
        raise WorkbookReadError(f"Could not read workbook: {exc}") from exc
    try:
        available = list(workbook.sheetnames)
        if sheet_name is None:
            chosen = available[0] if available else None
        else:
            chosen = match_sheet_name(sheet_name, available)
        if chosen is None:
            if required:
                raise SheetNotFoundError(sheet_name or "", available)
            return None
        worksheet = workbook[chosen]
        rows = [_trim_row(values) for values in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()
    while rows and not rows[-1]:
        rows.pop()
    return SheetGrid(sheet_name=chosen, rows=rows, sheet_names=tuple(available))


def _read_csv_grid(path: Path) -> SheetGrid:
    frame = _read_csv_frame(path, ragged=True, header=None, dtype=object)
    rows = [_trim_row(values) for values in frame.itertuples(index=False, name=None)]
    while rows and not rows[-1]:
        rows.pop()
    return SheetGrid(sheet_name=None, rows=rows, sheet_names=())


def read_sheet_grid(path: "str | Path", sheet_name: Optional[str] = None) -> SheetGrid:
    """
    Read one sheet as a row grid. For workbooks the sheet is matched
    case-insensitively (first sheet when sheet_name is None); a .csv file is
    a single anonymous sheet.

    Raises FileNotFoundError, SheetNotFoundError or WorkbookReadError.
    """
    path = _check_path(path)
    if path.suffix.lower() in TEXT_FORMATS:
        return _read_csv_grid(path)
    return _read_excel_grid(path, sheet_name, required=True)


def read_optional_sheet(path: "str | Path", sheet_name: str) -> SheetGrid | None:
    """Like read_sheet_grid() but None when the workbook has no such sheet (or is a .csv)."""
    path = _check_path(path)
    if path.suffix.lower() in TEXT_FORMATS:
        return None
    return _read_excel_grid(path, sheet_name, required=False)


# ── roster / store snapshots ───────────────────────────────────────────────────

def _pick_column(columns: list[str], candidates: tuple[str, ...], what: str, source: Path) -> str:
    lowered = {str(column).strip().lower(): column for column in columns}
    for candidate in candidates:
        if candidate in lowered:
            return lowered[candidate]
    raise WorkbookReadError(f"{source.name}: missing {what} column (expected one of {list(candidates)})")


def load_roster_csv(path: "str | Path") -> tuple[EmployeeRecord, ...]:
    """employee_id,name CSV -> roster snapshot in file order."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    frame = _read_csv_frame(path, dtype=str)
    columns = list(frame.columns)
    try:
        id_column = _pick_column(columns, ROSTER_ID_COLUMNS, "employee id", path)
        name_column = _pick_column(columns, ROSTER_NAME_COLUMNS, "employee name", path)
    except WorkbookReadError as exc:
        raise RosterError(str(exc)) from exc
    pairs = [
        (str(employee_id).strip(), str(name).strip())
        for employee_id, name in zip(frame[id_column], frame[name_column])
        if str(employee_id).strip()
    ]
    return build_roster(pairs)


def load_store_csv(path: "str | Path") -> dict[tuple[str, str], int]:
    """date,employee_id,amount CSV -> {(date_key, employee_id): amount}."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    frame = _read_csv_frame(path, dtype=str)
    columns = list(frame.columns)
    date_column = _pick_column(columns, STORE_DATE_COLUMNS, "date", path)
    id_column = _pick_column(columns, ROSTER_ID_COLUMNS, "employee id", path)
    amount_column = _pick_column(columns, STORE_AMOUNT_COLUMNS, "amount", path)

    store: dict[tuple[str, str], int] = {}
    for line, (raw_date, employee_id, raw_amount) in enumerate(
        zip(frame[date_column], frame[id_column], frame[amount_column]), start=2
    ):
        date_key = parse_date_key(raw_date)
        if date_key is None:
            raise WorkbookReadError(f"{path.name} line {line}: invalid date {raw_date!r}")
        outcome = parse_amount(raw_amount)
        if not outcome.accepted:
            raise WorkbookReadError(f"{path.name} line {line}: invalid amount {raw_amount!r}")
        store[(date_key, str(employee_id).strip())] = outcome.value
    return store
