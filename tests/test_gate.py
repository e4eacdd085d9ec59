import unittest

from ledger_doctor.errors import BlockingErrorKind
from ledger_doctor.gate import BLOCKING_ERRORS, NO_MAPPED_EMPLOYEES, PERIOD_LOCKED, can_apply
from ledger_doctor.models import BlockingError, ParseResult, ResolvedColumn, UnmappedColumn


def make_result(*, errors=0, resolved=True):
    columns = (
        (ResolvedColumn(2, "Ali", "E001"),)
        if resolved
        else (UnmappedColumn(2, "Mystery", "mystery"),)
    )
    blocking = tuple(
        BlockingError(BlockingErrorKind.DECIMAL, 3, 2, 1.5, "row 4, column C: Decimals not allowed")
        for _ in range(errors)
    )
    return ParseResult(mode="monthly", header_row_index=0, employee_columns=columns, blocking_errors=blocking)


class CanApplyTests(unittest.TestCase):
    def test_clean_unlocked_parse_is_allowed(self):
        decision = can_apply(make_result(), False)
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.reasons, ())

    def test_all_reasons_are_reported_together(self):
        decision = can_apply(make_result(errors=1, resolved=False), True)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reasons, (BLOCKING_ERRORS, NO_MAPPED_EMPLOYEES, PERIOD_LOCKED))

    def test_single_reasons(self):
        self.assertEqual(can_apply(make_result(errors=2), False).reasons, (BLOCKING_ERRORS,))
        self.assertEqual(can_apply(make_result(resolved=False), False).reasons, (NO_MAPPED_EMPLOYEES,))
        self.assertEqual(can_apply(make_result(), True).reasons, (PERIOD_LOCKED,))

    def test_to_dict(self):
        payload = can_apply(make_result(), True).to_dict()
        self.assertEqual(payload["allowed"], False)
        self.assertEqual(payload["reasons"], ["PERIOD_LOCKED"])
        self.assertEqual(len(payload["messages"]), 1)


if __name__ == "__main__":
    unittest.main()
