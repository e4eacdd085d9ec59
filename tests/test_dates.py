import unittest
from datetime import date, datetime

from ledger_doctor.dates import looks_like_date, parse_date, parse_date_key


class ParseDateKeyTests(unittest.TestCase):
    def test_iso(self):
        self.assertEqual(parse_date_key("2026-02-14"), "2026-02-14")
        self.assertEqual(parse_date_key("2026-2-4"), "2026-02-04")

    def test_iso_timestamp_keeps_calendar_day(self):
        self.assertEqual(parse_date_key("2026-02-14T00:00:00"), "2026-02-14")
        self.assertEqual(parse_date_key("2026-02-14 18:45"), "2026-02-14")

    def test_day_first_forms(self):
        self.assertEqual(parse_date_key("14/02/2026"), "2026-02-14")
        self.assertEqual(parse_date_key("14-02-2026"), "2026-02-14")
        self.assertEqual(parse_date_key("4/2/2026"), "2026-02-04")

    def test_mixed_separators_are_rejected(self):
        self.assertIsNone(parse_date_key("14/02-2026"))

    def test_invalid_calendar_dates(self):
        self.assertIsNone(parse_date_key("31/02/2026"))
        self.assertIsNone(parse_date_key("2026-13-01"))
        self.assertIsNone(parse_date_key("29/02/2026"))
        self.assertEqual(parse_date_key("29/02/2028"), "2028-02-29")

    def test_short_month_forms_need_inferred_year(self):
        self.assertEqual(parse_date_key("14-Feb", 2026), "2026-02-14")
        self.assertEqual(parse_date_key("14/Feb", 2026), "2026-02-14")
        self.assertEqual(parse_date_key("Feb-14", 2026), "2026-02-14")
        self.assertEqual(parse_date_key("1-September", 2026), "2026-09-01")
        self.assertIsNone(parse_date_key("14-Feb"))
        self.assertIsNone(parse_date_key("30-Feb", 2026))
        self.assertIsNone(parse_date_key("14-Foo", 2026))

    def test_native_values(self):
        self.assertEqual(parse_date_key(date(2026, 2, 14)), "2026-02-14")
        self.assertEqual(parse_date_key(datetime(2026, 2, 14, 10, 30)), "2026-02-14")

    def test_excel_serial_numbers(self):
        self.assertEqual(parse_date_key(46067), "2026-02-14")
        self.assertEqual(parse_date_key(46067.75), "2026-02-14")
        self.assertIsNone(parse_date_key(100))
        self.assertIsNone(parse_date_key(250))

    def test_arabic_indic_digits(self):
        self.assertEqual(parse_date_key("١٤/٠٢/٢٠٢٦"), "2026-02-14")

    def test_non_dates(self):
        self.assertIsNone(parse_date_key("Total"))
        self.assertIsNone(parse_date_key(""))
        self.assertIsNone(parse_date_key(None))
        self.assertIsNone(parse_date_key(True))
        self.assertIsNone(parse_date("Sun"))

    def test_looks_like_date(self):
        self.assertTrue(looks_like_date("2026-02-01"))
        self.assertFalse(looks_like_date("Ali"))
        # short forms never qualify without a year
        self.assertFalse(looks_like_date("1-Feb"))


if __name__ == "__main__":
    unittest.main()
