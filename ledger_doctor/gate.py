"""Apply gate: may a parsed sheet be written to the ledger?"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ledger_doctor.models import ParseResult

BLOCKING_ERRORS = "BLOCKING_ERRORS"
NO_MAPPED_EMPLOYEES = "NO_MAPPED_EMPLOYEES"
PERIOD_LOCKED = "PERIOD_LOCKED"

REASON_MESSAGES = {
    BLOCKING_ERRORS: "Fix the blocking errors in the sheet first.",
    NO_MAPPED_EMPLOYEES: "No sheet column could be matched to a known employee.",
    PERIOD_LOCKED: "The period is locked.",
}


@dataclass(frozen=True)
class ApplyDecision:
    allowed: bool
    reasons: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reasons": list(self.reasons),
            "messages": [REASON_MESSAGES[reason] for reason in self.reasons],
        }


def can_apply(parse_result: ParseResult, is_period_locked: bool) -> ApplyDecision:
    """
    Every failing condition is reported, always in the order
    BLOCKING_ERRORS, NO_MAPPED_EMPLOYEES, PERIOD_LOCKED.
    """
    reasons: list[str] = []
    if parse_result.blocking_errors:
        reasons.append(BLOCKING_ERRORS)
    if not parse_result.resolved_columns:
        reasons.append(NO_MAPPED_EMPLOYEES)
    if is_period_locked:
        reasons.append(PERIOD_LOCKED)
    return ApplyDecision(allowed=not reasons, reasons=tuple(reasons))
