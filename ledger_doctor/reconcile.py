"""
Reconciliation of parsed file facts against a persisted ledger snapshot.

Both sides are maps keyed by (date_key, employee_id). The key is opaque to
the engine apart from its ordering: date first, then employee id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Tuple, Union

from ledger_doctor.models import DailyRecord

ReconciliationKey = Tuple[str, str]
AmountMap = Mapping[ReconciliationKey, int]

MISSING_IN_STORE = "missing_in_store"
EXTRA_IN_STORE = "extra_in_store"
MISMATCH = "mismatch"


@dataclass(frozen=True)
class MissingInStore:
    date_key: str
    employee_id: str
    file_amount: int

    kind = MISSING_IN_STORE

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "date_key": self.date_key,
            "employee_id": self.employee_id,
            "file_amount": self.file_amount,
        }


@dataclass(frozen=True)
class ExtraInStore:
    date_key: str
    employee_id: str
    store_amount: int

    kind = EXTRA_IN_STORE

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "date_key": self.date_key,
            "employee_id": self.employee_id,
            "store_amount": self.store_amount,
        }


@dataclass(frozen=True)
class Mismatch:
    date_key: str
    employee_id: str
    file_amount: int
    store_amount: int
    delta: int

    kind = MISMATCH

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "date_key": self.date_key,
            "employee_id": self.employee_id,
            "file_amount": self.file_amount,
            "store_amount": self.store_amount,
            "delta": self.delta,
        }


DiffEntry = Union[MissingInStore, ExtraInStore, Mismatch]


def records_to_map(records: Iterable[DailyRecord]) -> dict[ReconciliationKey, int]:
    """Fold records into a key -> amount map; a later record for the same key wins."""
    amounts: dict[ReconciliationKey, int] = {}
    for record in records:
        amounts[record.key] = record.amount_minor_units
    return amounts


def _diff(file_map: AmountMap, store_map: AmountMap, tolerance: int) -> list[DiffEntry]:
    entries: list[DiffEntry] = []
    for key in sorted(set(file_map) | set(store_map)):
        date_key, employee_id = key
        if key not in store_map:
            entries.append(MissingInStore(date_key, employee_id, file_map[key]))
        elif key not in file_map:
            entries.append(ExtraInStore(date_key, employee_id, store_map[key]))
        else:
            file_amount, store_amount = file_map[key], store_map[key]
            delta = file_amount - store_amount
            if abs(delta) > tolerance:
                entries.append(Mismatch(date_key, employee_id, file_amount, store_amount, delta))
    return entries


def reconcile(file_map: AmountMap, store_map: AmountMap) -> list[DiffEntry]:
    """
    Diff two amount maps over the union of their keys, in key order.

    Keys only in the file are MissingInStore, keys only in the store are
    ExtraInStore, and keys in both with different amounts are Mismatch with
    delta = file - store. Equality is exact and zero amounts are not special.
    """
    return _diff(file_map, store_map, 0)


def reconcile_with_tolerance(file_map: AmountMap, store_map: AmountMap, tolerance: int) -> list[DiffEntry]:
    """Like reconcile(), but amounts within +/- tolerance count as equal."""
    if tolerance < 0:
        raise ValueError("tolerance must be >= 0")
    return _diff(file_map, store_map, tolerance)


@dataclass(frozen=True)
class ReconciliationSummary:
    file_records: int
    file_total: int
    store_records: int
    store_total: int
    employees_detected: tuple[str, ...] = ()
    missing_in_store: int = 0
    extra_in_store: int = 0
    mismatches: int = 0
    net_delta: int = 0

    @property
    def in_sync(self) -> bool:
        return not (self.missing_in_store or self.extra_in_store or self.mismatches)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": {
                "records": self.file_records,
                "total": self.file_total,
                "employees_detected": list(self.employees_detected),
            },
            "store": {"records": self.store_records, "total": self.store_total},
            "missing_in_store": self.missing_in_store,
            "extra_in_store": self.extra_in_store,
            "mismatches": self.mismatches,
            "net_delta": self.net_delta,
            "in_sync": self.in_sync,
        }


def summarize(diff: Iterable[DiffEntry], file_map: AmountMap, store_map: AmountMap) -> ReconciliationSummary:
    entries = list(diff)
    file_total = sum(file_map.values())
    store_total = sum(store_map.values())
    return ReconciliationSummary(
        file_records=len(file_map),
        file_total=file_total,
        store_records=len(store_map),
        store_total=store_total,
        employees_detected=tuple(sorted({employee_id for _, employee_id in file_map})),
        missing_in_store=sum(1 for entry in entries if isinstance(entry, MissingInStore)),
        extra_in_store=sum(1 for entry in entries if isinstance(entry, ExtraInStore)),
        mismatches=sum(1 for entry in entries if isinstance(entry, Mismatch)),
        net_delta=file_total - store_total,
    )


@dataclass(frozen=True)
class ReconciliationReport:
    entries: tuple[DiffEntry, ...]
    summary: ReconciliationSummary
    tolerance: int = 0
    employee_names: Mapping[str, str] = field(default_factory=dict)

    def _with_name(self, entry: DiffEntry) -> dict[str, Any]:
        payload = entry.to_dict()
        payload["employee_name"] = self.employee_names.get(entry.employee_id, entry.employee_id)
        return payload

    def to_dict(self) -> dict[str, Any]:
        return {
            "tolerance": self.tolerance,
            "summary": self.summary.to_dict(),
            "missing_in_store": [self._with_name(e) for e in self.entries if isinstance(e, MissingInStore)],
            "extra_in_store": [self._with_name(e) for e in self.entries if isinstance(e, ExtraInStore)],
            "mismatch": [self._with_name(e) for e in self.entries if isinstance(e, Mismatch)],
        }


def build_report(
    file_map: AmountMap,
    store_map: AmountMap,
    *,
    tolerance: int = 0,
    employee_names: Mapping[str, str] | None = None,
) -> ReconciliationReport:
    """Diff plus summary, grouped the way the compare report presents it."""
    if tolerance:
        entries = reconcile_with_tolerance(file_map, store_map, tolerance)
    else:
        entries = reconcile(file_map, store_map)
    return ReconciliationReport(
        entries=tuple(entries),
        summary=summarize(entries, file_map, store_map),
        tolerance=tolerance,
        employee_names=dict(employee_names or {}),
    )


# ── summary total vs entered lines ─────────────────────────────────────────────

@dataclass(frozen=True)
class TotalsCheck:
    """A day's declared summary total against the sum of its entered lines."""

    summary_total: int
    lines_total: int
    diff: int
    can_lock: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary_total": self.summary_total,
            "lines_total": self.lines_total,
            "diff": self.diff,
            "can_lock": self.can_lock,
        }


def compute_diff(summary_total: int, lines_total: int) -> int:
    """Positive when the summary exceeds the lines, negative when the lines exceed it."""
    return summary_total - lines_total


def check_totals(summary_total: int, line_amounts: Iterable[int], *, is_draft: bool = True) -> TotalsCheck:
    """Locking is only allowed for a draft whose lines add up to the summary exactly."""
    lines_total = sum(line_amounts)
    diff = compute_diff(summary_total, lines_total)
    return TotalsCheck(
        summary_total=summary_total,
        lines_total=lines_total,
        diff=diff,
        can_lock=is_draft and diff == 0,
    )
