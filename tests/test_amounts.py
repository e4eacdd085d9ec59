import unittest
from datetime import date

from ledger_doctor.amounts import parse_amount
from ledger_doctor.errors import BlockingErrorKind


class AmountPolicyTests(unittest.TestCase):
    def assertAccepted(self, raw, expected):
        outcome = parse_amount(raw)
        self.assertTrue(outcome.accepted, f"{raw!r} -> {outcome}")
        self.assertEqual(outcome.value, expected)

    def assertRejected(self, raw, kind):
        outcome = parse_amount(raw)
        self.assertFalse(outcome.accepted)
        self.assertIs(outcome.error, kind, f"{raw!r} -> {outcome}")

    def test_whole_numbers_are_accepted(self):
        self.assertAccepted(100, 100)
        self.assertAccepted(0, 0)
        self.assertAccepted("250", 250)
        self.assertAccepted("+7", 7)

    def test_integral_float_is_accepted(self):
        self.assertAccepted(100.0, 100)

    def test_thousands_separators_are_stripped(self):
        self.assertAccepted("1,250", 1250)
        self.assertAccepted(" 12 500 ", 12500)

    def test_arabic_indic_digits(self):
        self.assertAccepted("١٢٠", 120)
        self.assertAccepted("١٬٢٠٠", 1200)

    def test_blank_and_dash_are_skipped(self):
        for raw in ("", "   ", None, "-", "—", float("nan")):
            outcome = parse_amount(raw)
            self.assertTrue(outcome.skipped, repr(raw))
            self.assertIsNone(outcome.error)
            self.assertIsNone(outcome.value)

    def test_decimals(self):
        self.assertRejected(50.5, BlockingErrorKind.DECIMAL)
        self.assertRejected("50.5", BlockingErrorKind.DECIMAL)
        self.assertRejected("50.0", BlockingErrorKind.DECIMAL)
        self.assertRejected("-5.5", BlockingErrorKind.DECIMAL)
        self.assertRejected("١٢٫٥", BlockingErrorKind.DECIMAL)

    def test_negatives(self):
        self.assertRejected(-5, BlockingErrorKind.NEGATIVE)
        self.assertRejected("-5", BlockingErrorKind.NEGATIVE)
        self.assertRejected(-5.0, BlockingErrorKind.NEGATIVE)

    def test_not_a_number(self):
        self.assertRejected("abc", BlockingErrorKind.NOT_A_NUMBER)
        self.assertRejected("12a", BlockingErrorKind.NOT_A_NUMBER)
        self.assertRejected(".", BlockingErrorKind.NOT_A_NUMBER)
        self.assertRejected("N.A.", BlockingErrorKind.NOT_A_NUMBER)
        self.assertRejected("1.2.3", BlockingErrorKind.NOT_A_NUMBER)
        self.assertRejected(True, BlockingErrorKind.NOT_A_NUMBER)
        self.assertRejected(date(2026, 2, 1), BlockingErrorKind.NOT_A_NUMBER)
        self.assertRejected(float("inf"), BlockingErrorKind.NOT_A_NUMBER)


if __name__ == "__main__":
    unittest.main()
