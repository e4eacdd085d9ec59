"""Shared versioned contracts for ledger-doctor outputs."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ledger_doctor import __version__ as TOOL_VERSION
from ledger_doctor.errors import HeaderNotFoundError
from ledger_doctor.gate import ApplyDecision
from ledger_doctor.models import ParseResult
from ledger_doctor.reconcile import ReconciliationReport

PARSE_RESULT = "ledger_doctor.parse_result"
RECONCILIATION = "ledger_doctor.reconciliation"
APPLY_DECISION = "ledger_doctor.apply_decision"

CONTRACT_VERSIONS = {
    PARSE_RESULT: "1.0.0",
    RECONCILIATION: "1.0.0",
    APPLY_DECISION: "1.0.0",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    command: str,
    input_path: Path | None,
    status: str = "ok",
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
    generated_at: str | None = None,
) -> dict[str, Any]:
    return {
        "tool": "ledger-doctor",
        "command": command,
        "status": status,
        "generated_at": generated_at or utc_now_iso(),
        "input_file": str(input_path) if input_path else None,
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }


def _envelope(name: str, body: dict[str, Any], run_summary: dict[str, Any]) -> dict[str, Any]:
    return {
        "contract": build_contract(name),
        "schema_version": CONTRACT_VERSIONS[name],
        "tool_version": TOOL_VERSION,
        "run_summary": run_summary,
        **body,
    }


def parse_warnings(result: ParseResult) -> list[str]:
    warnings = [f"Unmapped column {col.raw_text!r}" for col in result.unmapped_columns]
    warnings.extend(f"Duplicate employee column {entry}" for entry in result.diagnostics.duplicate_employee_columns)
    return warnings


def parse_status(result: ParseResult) -> str:
    if result.is_blocked:
        return "blocked"
    if result.unmapped_columns:
        return "warnings"
    return "ok"


def parse_result_contract(
    result: ParseResult,
    *,
    input_path: Path | None = None,
    output_path: Path | None = None,
    generated_at: str | None = None,
) -> dict[str, Any]:
    summary = build_run_summary(
        command="parse",
        input_path=input_path,
        status=parse_status(result),
        output_path=output_path,
        metrics={
            "records": len(result.records),
            "total_amount": result.total_amount,
            "mapped_columns": len(result.resolved_columns),
            "unmapped_columns": len(result.unmapped_columns),
            "blocking_errors": len(result.blocking_errors),
        },
        warnings=parse_warnings(result),
        generated_at=generated_at,
    )
    return _envelope(PARSE_RESULT, {"result": result.to_dict()}, summary)


def reconciliation_contract(
    report: ReconciliationReport,
    result: ParseResult,
    *,
    input_path: Path | None = None,
    output_path: Path | None = None,
    generated_at: str | None = None,
) -> dict[str, Any]:
    warnings = parse_warnings(result)
    if result.is_blocked:
        warnings.append(f"Sheet has {len(result.blocking_errors)} blocking error(s); file amounts are partial")
    summary = build_run_summary(
        command="reconcile",
        input_path=input_path,
        status="ok" if report.summary.in_sync else "differences",
        output_path=output_path,
        metrics={
            "missing_in_store": report.summary.missing_in_store,
            "extra_in_store": report.summary.extra_in_store,
            "mismatches": report.summary.mismatches,
            "net_delta": report.summary.net_delta,
        },
        warnings=warnings,
        generated_at=generated_at,
    )
    body = {
        "reconciliation": report.to_dict(),
        "blocking_errors": [error.to_dict() for error in result.blocking_errors],
    }
    return _envelope(RECONCILIATION, body, summary)


def apply_decision_contract(
    decision: ApplyDecision,
    result: ParseResult,
    *,
    input_path: Path | None = None,
    output_path: Path | None = None,
    generated_at: str | None = None,
) -> dict[str, Any]:
    summary = build_run_summary(
        command="gate",
        input_path=input_path,
        status="allowed" if decision.allowed else "refused",
        output_path=output_path,
        metrics={
            "records": len(result.records),
            "mapped_columns": len(result.resolved_columns),
            "blocking_errors": len(result.blocking_errors),
        },
        warnings=parse_warnings(result),
        generated_at=generated_at,
    )
    body = {
        "decision": decision.to_dict(),
        "blocking_errors": [error.to_dict() for error in result.blocking_errors],
    }
    return _envelope(APPLY_DECISION, body, summary)


def parse_failure_contract(
    error: HeaderNotFoundError,
    *,
    command: str = "parse",
    input_path: Path | None = None,
    output_path: Path | None = None,
    generated_at: str | None = None,
) -> dict[str, Any]:
    """A parse_result contract for a sheet whose header could not be found."""
    summary = build_run_summary(
        command=command,
        input_path=input_path,
        status="failed",
        output_path=output_path,
        metrics={
            "header_scan_rows": error.scanned_rows,
            "header_candidates": len(error.candidates),
        },
        warnings=[str(error)],
        generated_at=generated_at,
    )
    body = {
        "failure": error.to_dict(),
        "blocking_errors": [error.as_blocking_error().to_dict()],
    }
    return _envelope(PARSE_RESULT, body, summary)
