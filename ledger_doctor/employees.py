"""
Employee column range detection and header -> employee identity resolution.

Resolution is an explicit ordered list of strategies. Each strategy is a
pure function (header, roster, employee_map) -> EmployeeRecord | None and
the first one that answers wins:

    embedded_id -> exact_name -> first_name -> space_insensitive -> substring
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ledger_doctor.cells import cell_text, is_numeric_text, normalize, normalize_text, squash_spaces
from ledger_doctor.errors import RosterError
from ledger_doctor.logging import get_logger
from ledger_doctor.models import ColumnHeader, EmployeeColumn, EmployeeRecord, ResolvedColumn, UnmappedColumn

log = get_logger(__name__)

STOP_WORDS = frozenset(
    normalize_text(word)
    for word in (
        "total", "totals", "quantity", "qty", "pieces", "notes", "note",
        "sales", "invoice", "invoices", "avt", "avp", "upt", "target", "details",
        "grand total", "total sales", "day target", "daily target",
        "الإجمالي", "اجمالي", "المجموع", "القطع", "الفواتير", "الكمية", "تارجت", "ملاحظات",
    )
)
TOKEN_SPLIT_RE = re.compile(r"[^\w]+", re.UNICODE)

EMBEDDED_ID_SPACED_RE = re.compile(r"^\s*([A-Za-z0-9_]+)\s+-\s+(\S.*)$")
EMBEDDED_ID_COMPACT_RE = re.compile(r"^\s*([A-Za-z]{0,4}\d[A-Za-z0-9_]*)\s*-\s*(\S.*)$")
EMPLOYEE_TOKEN_PREFIX = "emp_"

Strategy = Callable[[str, Sequence[EmployeeRecord], Mapping[str, str]], Optional[EmployeeRecord]]


def header_tokens(normalized: str) -> list[str]:
    return [token for token in TOKEN_SPLIT_RE.split(normalized) if token]


def is_stop_header(raw: Any) -> bool:
    """Empty, purely numeric, or a stop word ('Total Sales', 'TOTAL:', 'SALES', '0')."""
    normalized = normalize(raw)
    if not normalized:
        return True
    if is_numeric_text(normalized.replace(" ", "")):
        return True
    if normalized in STOP_WORDS:
        return True
    return any(token in STOP_WORDS for token in header_tokens(normalized))


def detect_employee_range(header_row: Sequence[Any], start_column: int) -> tuple[int, int]:
    """
    Return (start, end_exclusive) of the employee block. The first stop
    column and everything after it are excluded.
    """
    end = start_column
    while end < len(header_row) and not is_stop_header(header_row[end]):
        end += 1
    log.debug("employee_range", start=start_column, end=end)
    return start_column, end


def candidate_headers(header_row: Sequence[Any], start: int, end: int) -> list[ColumnHeader]:
    return [ColumnHeader(column_index, cell_text(header_row[column_index])) for column_index in range(start, end)]


# ── roster helpers ─────────────────────────────────────────────────────────────

def build_roster(rows: Iterable[Mapping[str, Any] | tuple[Any, Any] | EmployeeRecord]) -> tuple[EmployeeRecord, ...]:
    """
    Snapshot a roster into an immutable tuple, keeping caller order.

    Accepts EmployeeRecord values, (id, name) pairs, or mappings with
    employee_id/empId and display_name/name keys. Duplicate ids are rejected.
    """
    roster: list[EmployeeRecord] = []
    seen: set[str] = set()
    for item in rows:
        if isinstance(item, EmployeeRecord):
            record = item
        elif isinstance(item, Mapping):
            employee_id = item.get("employee_id", item.get("empId", item.get("emp_id")))
            name = item.get("display_name", item.get("name", ""))
            record = EmployeeRecord(str(employee_id or "").strip(), str(name or "").strip())
        else:
            employee_id, name = item
            record = EmployeeRecord(str(employee_id or "").strip(), str(name or "").strip())
        if not record.employee_id:
            raise RosterError(f"Roster entry without an employee id: {item!r}")
        key = record.employee_id.lower()
        if key in seen:
            raise RosterError(f"Duplicate employee id in roster: {record.employee_id}")
        seen.add(key)
        roster.append(record)
    return tuple(roster)


def _find_by_id(employee_id: str, roster: Sequence[EmployeeRecord]) -> EmployeeRecord | None:
    wanted = employee_id.strip().lower()
    if not wanted:
        return None
    for employee in roster:
        if employee.employee_id.strip().lower() == wanted:
            return employee
    return None


def extract_embedded_id(raw_header: str) -> str | None:
    """'E001 - Ali' -> 'E001'; '1205-Abdulaziz' -> '1205'; 'Al-Said' -> None."""
    text = str(raw_header or "")
    match = EMBEDDED_ID_SPACED_RE.match(text) or EMBEDDED_ID_COMPACT_RE.match(text)
    if not match:
        return None
    return match.group(1)


def employee_map_keys(raw_header: str) -> list[str]:
    """Keys to try in an override map, most specific first."""
    normalized = normalize(raw_header)
    keys = [normalized] if normalized else []
    embedded = extract_embedded_id(raw_header)
    if normalized.startswith(EMPLOYEE_TOKEN_PREFIX):
        keys.append(normalized)
    elif embedded:
        keys.append(EMPLOYEE_TOKEN_PREFIX + embedded.lower())
    elif normalized and " " not in normalized:
        keys.append(EMPLOYEE_TOKEN_PREFIX + normalized)
    return list(dict.fromkeys(keys))


# ── strategies ─────────────────────────────────────────────────────────────────

def match_embedded_id(
    raw_header: str,
    roster: Sequence[EmployeeRecord],
    employee_map: Mapping[str, str],
) -> EmployeeRecord | None:
    for key in employee_map_keys(raw_header):
        mapped = employee_map.get(key)
        if mapped:
            employee = _find_by_id(mapped, roster)
            if employee:
                return employee
    embedded = extract_embedded_id(raw_header)
    if embedded:
        return _find_by_id(embedded, roster)
    return None


def _name_strategy(compare: Callable[[str, str], bool]) -> Strategy:
    def strategy(
        raw_header: str,
        roster: Sequence[EmployeeRecord],
        employee_map: Mapping[str, str],
    ) -> EmployeeRecord | None:
        header = normalize(raw_header)
        if not header:
            return None
        for employee in roster:
            name = normalize(employee.display_name)
            if name and compare(header, name):
                return employee
        return None

    return strategy


def _first_name(header: str, name: str) -> bool:
    return header == name.split(" ")[0]


def _space_insensitive(header: str, name: str) -> bool:
    return squash_spaces(header) == squash_spaces(name)


match_exact_name = _name_strategy(lambda header, name: header == name)
match_first_name = _name_strategy(_first_name)
match_space_insensitive = _name_strategy(_space_insensitive)
match_substring = _name_strategy(lambda header, name: header in name)

STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("embedded_id", match_embedded_id),
    ("exact_name", match_exact_name),
    ("first_name", match_first_name),
    ("space_insensitive", match_space_insensitive),
    ("substring", match_substring),
)


@dataclass(frozen=True)
class Resolution:
    employee: EmployeeRecord
    strategy: str


def resolve_header(
    raw_header: str,
    roster: Sequence[EmployeeRecord],
    employee_map: Mapping[str, str] | None = None,
    strategies: Sequence[tuple[str, Strategy]] = STRATEGIES,
) -> Resolution | None:
    mapping = employee_map or {}
    for name, strategy in strategies:
        employee = strategy(raw_header, roster, mapping)
        if employee is not None:
            return Resolution(employee, name)
    return None


def resolve_employee_columns(
    header_row: Sequence[Any],
    start_column: int,
    roster: Sequence[EmployeeRecord],
    employee_map: Mapping[str, str] | None = None,
) -> list[EmployeeColumn]:
    """
    Detect the employee block starting at start_column and resolve each
    header. Unresolved headers come back as UnmappedColumn, in sheet order.
    """
    start, end = detect_employee_range(header_row, start_column)
    columns: list[EmployeeColumn] = []
    for header in candidate_headers(header_row, start, end):
        column_index, raw_text = header.column_index, header.raw_text
        resolution = resolve_header(raw_text, roster, employee_map)
        if resolution is None:
            columns.append(UnmappedColumn(column_index, raw_text, normalize(raw_text)))
            log.debug("column_unmapped", column_index=column_index, header=raw_text)
            continue
        columns.append(
            ResolvedColumn(
                column_index=column_index,
                raw_text=raw_text,
                employee_id=resolution.employee.employee_id,
                employee_name=resolution.employee.display_name,
                strategy=resolution.strategy,
            )
        )
    return columns


# ── Employees_Map override sheet ───────────────────────────────────────────────

def load_employee_map(grid: Sequence[Sequence[Any]]) -> dict[str, str]:
    """
    Read an Employees_Map sheet grid (headers empId / Name_in_Data on row 0)
    into {normalized name -> id, emp_<id> -> id}. Missing columns give {}.
    """
    if not grid or len(grid) < 2:
        return {}
    header = [normalize(value) for value in (grid[0] or [])]
    id_column = next((i for i, h in enumerate(header) if h in {"empid", "emp id", "employee id", "employee_id"}), None)
    name_column = next((i for i, h in enumerate(header) if h in {"name_in_data", "name in data"}), None)
    if id_column is None or name_column is None:
        return {}

    mapping: dict[str, str] = {}
    for row in grid[1:]:
        row = list(row or [])
        employee_id = cell_text(row[id_column]) if id_column < len(row) else ""
        name_in_data = cell_text(row[name_column]) if name_column < len(row) else ""
        if not employee_id:
            continue
        if name_in_data:
            mapping[normalize(name_in_data)] = employee_id
        lowered = employee_id.lower()
        token = lowered if lowered.startswith(EMPLOYEE_TOKEN_PREFIX) else EMPLOYEE_TOKEN_PREFIX + lowered
        mapping[token] = employee_id
    return mapping
