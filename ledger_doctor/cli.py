from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from ledger_doctor import __version__ as TOOL_VERSION
from ledger_doctor.config import EMPLOYEES_MAP_SHEET_NAME, MATRIX_SHEET_NAME, EngineConfig, load_config
from ledger_doctor.contracts import (
    apply_decision_contract,
    parse_failure_contract,
    parse_result_contract,
    reconciliation_contract,
)
from ledger_doctor.employees import load_employee_map
from ledger_doctor.errors import HeaderNotFoundError, error_hint
from ledger_doctor.gate import ApplyDecision, can_apply
from ledger_doctor.logging import configure_logging
from ledger_doctor.models import MODE_MATRIX, MODE_MONTHLY, ParseResult
from ledger_doctor.parser import parse_matrix_sheet, parse_monthly_sheet
from ledger_doctor.periods import month_date_keys, sheet_name_for_month
from ledger_doctor.reconcile import ReconciliationReport, build_report, records_to_map
from ledger_doctor.workbook import load_roster_csv, load_store_csv, read_optional_sheet, read_sheet_grid

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_ISSUES_FOUND = 3
EXIT_APPLY_REFUSED = 4

MAX_LISTED_ERRORS = 20


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class LedgerDoctorArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_dumps(payload), encoding="utf-8")


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, UnicodeDecodeError):
        return EXIT_PARSE_FAILED
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, ValueError):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


# ── rendering ──────────────────────────────────────────────────────────────────

def render_parse_text(result: ParseResult) -> str:
    lines = [
        f"Sheet: {result.sheet_name or '(csv)'}  mode: {result.mode}",
        f"Header row: {result.header_row_index + 1}",
        f"Mapped columns: {len(result.resolved_columns)}",
    ]
    for column in result.resolved_columns:
        lines.append(f"  {column.raw_text} -> {column.employee_id} ({column.strategy})")
    if result.unmapped_columns:
        lines.append(f"Unmapped columns: {len(result.unmapped_columns)}")
        for column in result.unmapped_columns:
            lines.append(f"  {column.raw_text}")
    lines.append(f"Records: {len(result.records)}  total: {result.total_amount}")
    if result.blocking_errors:
        lines.append(f"Blocking errors: {len(result.blocking_errors)}")
        for error in result.blocking_errors[:MAX_LISTED_ERRORS]:
            lines.append(f"  [{error.kind.value}] {error.message}")
        remaining = len(result.blocking_errors) - MAX_LISTED_ERRORS
        if remaining > 0:
            lines.append(f"  ... and {remaining} more")
        kinds = sorted({error.kind for error in result.blocking_errors}, key=lambda kind: kind.value)
        for kind in kinds:
            lines.append(f"Hint ({kind.value}): {error_hint(kind)}")
    return "\n".join(lines)


def render_reconcile_text(report: ReconciliationReport) -> str:
    summary = report.summary
    lines = [
        f"File: {summary.file_records} records, total {summary.file_total}",
        f"Store: {summary.store_records} records, total {summary.store_total}",
        f"Missing in store: {summary.missing_in_store}",
        f"Extra in store: {summary.extra_in_store}",
        f"Mismatches: {summary.mismatches}",
    ]
    for entry in report.entries[:MAX_LISTED_ERRORS]:
        payload = entry.to_dict()
        amounts = ", ".join(
            f"{key}={payload[key]}" for key in ("file_amount", "store_amount", "delta") if key in payload
        )
        lines.append(f"  {entry.kind}: {entry.date_key} {entry.employee_id} {amounts}")
    if summary.in_sync:
        lines.append("File and store are in sync.")
    return "\n".join(lines)


def render_decision_text(decision: ApplyDecision) -> str:
    if decision.allowed:
        return "Apply allowed."
    payload = decision.to_dict()
    lines = ["Apply refused:"]
    for reason, message in zip(payload["reasons"], payload["messages"]):
        lines.append(f"  {reason}: {message}")
    return "\n".join(lines)


# ── arguments ──────────────────────────────────────────────────────────────────

def add_sheet_arguments(command: argparse.ArgumentParser) -> None:
    command.add_argument("input", help="Workbook (.xlsx/.xlsm) or .csv export")
    command.add_argument("--roster", required=True, help="Roster CSV with employee_id,name columns")
    command.add_argument("--mode", choices=[MODE_MONTHLY, MODE_MATRIX], default=MODE_MONTHLY, help="Sheet layout")
    command.add_argument("--month", help="Month key YYYY-MM; selects the monthly sheet and the allowed dates")
    command.add_argument("--sheet", dest="sheet_name", help="Explicit sheet name")
    command.add_argument(
        "--include-previous-month",
        action="store_true",
        help="Also accept dates from the month before --month",
    )
    command.add_argument("--scope-id", help="Matrix mode: only rows for this scope id")
    command.add_argument("--output", help="Write the JSON contract to this path")
    command.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    command.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    command.add_argument("-v", "--verbose", action="store_true", help="Structured debug logs on stderr")


def build_parser() -> argparse.ArgumentParser:
    parser = LedgerDoctorArgumentParser(
        prog="ledger-doctor",
        description="Parse sales sheets, reconcile them against the ledger, and gate imports.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse = subparsers.add_parser("parse", help="Parse a sheet into daily records and blocking errors.")
    add_sheet_arguments(parse)

    reconcile = subparsers.add_parser("reconcile", help="Diff a parsed sheet against a ledger snapshot.")
    add_sheet_arguments(reconcile)
    reconcile.add_argument("--store", required=True, help="Ledger snapshot CSV with date,employee_id,amount")
    reconcile.add_argument("--tolerance", type=int, default=0, help="Treat |delta| <= N as equal")

    gate = subparsers.add_parser("gate", help="Decide whether the parsed sheet may be applied.")
    add_sheet_arguments(gate)
    gate.add_argument("--locked", action="store_true", help="The target period is locked")

    subparsers.add_parser("version", help="Print version")
    return parser


# ── commands ───────────────────────────────────────────────────────────────────

def resolve_sheet_name(args: argparse.Namespace) -> str | None:
    if args.sheet_name:
        return args.sheet_name
    if args.mode == MODE_MATRIX:
        return MATRIX_SHEET_NAME
    if args.month:
        return sheet_name_for_month(args.month)
    return None


def load_parse_result(args: argparse.Namespace, config: EngineConfig) -> ParseResult:
    input_path = Path(args.input)
    if args.include_previous_month and not args.month:
        raise CliError("--include-previous-month requires --month", EXIT_COMMAND_ERROR)
    if args.scope_id and args.mode != MODE_MATRIX:
        raise CliError("--scope-id only applies to --mode matrix", EXIT_COMMAND_ERROR)

    roster = load_roster_csv(args.roster)
    sheet = read_sheet_grid(input_path, resolve_sheet_name(args))
    map_sheet = read_optional_sheet(input_path, EMPLOYEES_MAP_SHEET_NAME)
    employee_map = load_employee_map(map_sheet.rows) if map_sheet else {}
    allowed_dates = (
        frozenset(month_date_keys(args.month, include_previous=args.include_previous_month))
        if args.month
        else None
    )

    if args.mode == MODE_MATRIX:
        return parse_matrix_sheet(
            sheet.rows,
            roster,
            scope_id=args.scope_id,
            month_key=args.month,
            employee_map=employee_map,
            allowed_dates=allowed_dates,
            sheet_name=sheet.sheet_name,
            sample_limit=config.sample_cells,
        )
    return parse_monthly_sheet(
        sheet.rows,
        roster,
        month_key=args.month,
        employee_map=employee_map,
        max_scan_rows=config.header_scan_rows,
        allowed_dates=allowed_dates,
        sheet_name=sheet.sheet_name,
        sample_limit=config.sample_cells,
    )


def emit_contract(args: argparse.Namespace, payload: dict[str, Any]) -> None:
    if args.output:
        write_json(Path(args.output), payload)
        if not args.json:
            emit_human(f"Output written: {args.output}", quiet=args.quiet)
    if args.json:
        print(json_dumps(payload))


def run_parse(args: argparse.Namespace, config: EngineConfig) -> int:
    result = load_parse_result(args, config)
    output_path = Path(args.output) if args.output else None
    payload = parse_result_contract(
        result,
        input_path=Path(args.input),
        output_path=output_path,
        generated_at=config.output_stamp,
    )
    if not args.json:
        emit_human(render_parse_text(result), quiet=args.quiet)
    emit_contract(args, payload)
    return EXIT_ISSUES_FOUND if result.is_blocked else EXIT_SUCCESS


def run_reconcile(args: argparse.Namespace, config: EngineConfig) -> int:
    if args.tolerance < 0:
        raise CliError("--tolerance must be >= 0", EXIT_COMMAND_ERROR)
    result = load_parse_result(args, config)
    store_map = load_store_csv(args.store)
    names = {column.employee_id: column.employee_name or column.employee_id for column in result.resolved_columns}
    report = build_report(
        records_to_map(result.records),
        store_map,
        tolerance=args.tolerance,
        employee_names=names,
    )
    output_path = Path(args.output) if args.output else None
    payload = reconciliation_contract(
        report,
        result,
        input_path=Path(args.input),
        output_path=output_path,
        generated_at=config.output_stamp,
    )
    if not args.json:
        emit_human(render_reconcile_text(report), quiet=args.quiet)
    emit_contract(args, payload)
    return EXIT_SUCCESS if report.summary.in_sync else EXIT_ISSUES_FOUND


def run_gate(args: argparse.Namespace, config: EngineConfig) -> int:
    result = load_parse_result(args, config)
    decision = can_apply(result, args.locked)
    output_path = Path(args.output) if args.output else None
    payload = apply_decision_contract(
        decision,
        result,
        input_path=Path(args.input),
        output_path=output_path,
        generated_at=config.output_stamp,
    )
    if not args.json:
        emit_human(render_decision_text(decision), quiet=args.quiet)
    emit_contract(args, payload)
    return EXIT_SUCCESS if decision.allowed else EXIT_APPLY_REFUSED


def report_parse_failure(args: argparse.Namespace, config: EngineConfig, exc: HeaderNotFoundError) -> int:
    eprint(str(exc))
    for candidate in exc.candidates:
        emit_human(
            f"  candidate row {candidate['row_index'] + 1}: {candidate['sample']}",
            quiet=args.quiet or args.json,
        )
    output_path = Path(args.output) if args.output else None
    payload = parse_failure_contract(
        exc,
        command=args.command,
        input_path=Path(args.input),
        output_path=output_path,
        generated_at=config.output_stamp,
    )
    emit_contract(args, payload)
    return EXIT_PARSE_FAILED


COMMANDS = {
    "parse": run_parse,
    "reconcile": run_reconcile,
    "gate": run_gate,
}


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "version":
            print(TOOL_VERSION)
            return EXIT_SUCCESS
        try:
            config = load_config()
        except ValueError as exc:
            raise CliError(str(exc), EXIT_COMMAND_ERROR) from exc
        configure_logging("DEBUG" if args.verbose else config.log_level)

        handler = COMMANDS.get(args.command)
        if handler is None:
            raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
        input_path = Path(args.input)
        if not input_path.exists():
            eprint(f"File not found: {input_path}")
            return EXIT_COMMAND_ERROR
        try:
            return handler(args, config)
        except CliError:
            raise
        except HeaderNotFoundError as exc:
            return report_parse_failure(args, config, exc)
        except Exception as exc:
            eprint(str(exc))
            return classify_exception(exc)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
