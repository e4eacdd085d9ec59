"""Environment-driven defaults for the parser and CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_HEADER_SCAN_ROWS = 15
DEFAULT_SAMPLE_CELLS = 12
DEFAULT_LOG_LEVEL = "WARNING"

MATRIX_SHEET_NAME = "DATA_MATRIX"
EMPLOYEES_MAP_SHEET_NAME = "Employees_Map"
MATRIX_HEADER_ROW = 0
MATRIX_SCOPE_COLUMN = 0
MATRIX_DATE_COLUMN = 1
MATRIX_DAY_COLUMN = 2
MATRIX_EMPLOYEE_START_COLUMN = 3

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is not None:
        value = value.strip()
        if value == "":
            return default
        return value
    return default


def _get_int(key: str, default: int, *, minimum: int = 1) -> int:
    value = _get_env(key)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer") from exc
    if parsed < minimum:
        raise ValueError(f"Environment variable {key} must be >= {minimum}")
    return parsed


@dataclass(frozen=True)
class EngineConfig:
    header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS
    sample_cells: int = DEFAULT_SAMPLE_CELLS
    log_level: str = DEFAULT_LOG_LEVEL
    output_stamp: Optional[str] = None


def load_config() -> EngineConfig:
    log_level = (_get_env("LEDGER_DOCTOR_LOG_LEVEL", DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Environment variable LEDGER_DOCTOR_LOG_LEVEL must be one of {sorted(LOG_LEVELS)}"
        )
    return EngineConfig(
        header_scan_rows=_get_int("LEDGER_DOCTOR_HEADER_SCAN_ROWS", DEFAULT_HEADER_SCAN_ROWS),
        sample_cells=_get_int("LEDGER_DOCTOR_SAMPLE_CELLS", DEFAULT_SAMPLE_CELLS, minimum=0),
        log_level=log_level,
        output_stamp=_get_env("LEDGER_DOCTOR_OUTPUT_STAMP"),
    )
