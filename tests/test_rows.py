import unittest

from ledger_doctor.errors import BlockingErrorKind
from ledger_doctor.models import ResolvedColumn, UnmappedColumn
from ledger_doctor.rows import assemble_rows, is_total_marker


COLUMNS = (
    ResolvedColumn(column_index=2, raw_text="Ali", employee_id="E001"),
    UnmappedColumn(column_index=3, raw_text="Stranger", normalized_text="stranger"),
)


def grid_with(*rows):
    return [["Date", "Day", "Ali", "Stranger"], *rows]


class AssembleRowsTests(unittest.TestCase):
    def test_records_only_for_resolved_columns(self):
        grid = grid_with(["2026-02-01", "Sun", 100, 40])
        assembly = assemble_rows(grid, 0, 0, COLUMNS)
        self.assertEqual(len(assembly.records), 1)
        record = assembly.records[0]
        self.assertEqual((record.date_key, record.employee_id, record.amount_minor_units), ("2026-02-01", "E001", 100))
        self.assertEqual((record.row_index, record.column_index), (1, 2))
        self.assertEqual(assembly.blocking_errors, ())

    def test_unmapped_columns_are_still_validated(self):
        grid = grid_with(["2026-02-01", "Sun", 100, "abc"])
        assembly = assemble_rows(grid, 0, 0, COLUMNS)
        self.assertEqual(len(assembly.records), 1)
        self.assertEqual(len(assembly.blocking_errors), 1)
        error = assembly.blocking_errors[0]
        self.assertIs(error.kind, BlockingErrorKind.NOT_A_NUMBER)
        self.assertEqual((error.row_index, error.column_index, error.raw_value), (1, 3, "abc"))

    def test_error_messages_use_spreadsheet_notation(self):
        grid = grid_with(["2026-02-01", "Sun", 50.5, None])
        error = assemble_rows(grid, 0, 0, COLUMNS).blocking_errors[0]
        self.assertIs(error.kind, BlockingErrorKind.DECIMAL)
        self.assertEqual(error.message, "row 2, column C: Decimals not allowed")
        self.assertEqual(error.cell, "C2")

    def test_total_row_is_a_hard_stop(self):
        grid = grid_with(
            ["2026-02-01", "Sun", 10, None],
            ["2026-02-02", "Mon", 20, None],
            ["Total", None, 30, None],
            ["2026-02-03", "Tue", 99, None],
        )
        assembly = assemble_rows(grid, 0, 0, COLUMNS)
        self.assertEqual([r.amount_minor_units for r in assembly.records], [10, 20])
        self.assertEqual(assembly.stopped_at_row, 3)

    def test_arabic_total_marker(self):
        self.assertTrue(is_total_marker("الإجمالي"))
        self.assertTrue(is_total_marker("Grand TOTAL"))
        self.assertFalse(is_total_marker("2026-02-01"))
        self.assertFalse(is_total_marker(None))

    def test_blank_date_rows_are_skipped_silently(self):
        grid = grid_with([None, "Sun", 10, None], ["", None, None, None])
        assembly = assemble_rows(grid, 0, 0, COLUMNS)
        self.assertEqual(assembly.records, ())
        self.assertEqual(assembly.blocking_errors, ())
        self.assertEqual(assembly.data_rows_read, 0)

    def test_invalid_date_skips_row(self):
        grid = grid_with(["32/02/2026", "Sun", -5, None], ["2026-02-02", "Mon", 7, None])
        assembly = assemble_rows(grid, 0, 0, COLUMNS)
        self.assertEqual([e.kind for e in assembly.blocking_errors], [BlockingErrorKind.INVALID_DATE])
        self.assertEqual(assembly.blocking_errors[0].message, "row 2, column A: Invalid date")
        self.assertEqual([r.amount_minor_units for r in assembly.records], [7])

    def test_skipped_cells_are_counted_per_row(self):
        grid = grid_with(["2026-02-01", "Sun", "-", ""], ["2026-02-02", "Mon", 5, "—"])
        assembly = assemble_rows(grid, 0, 0, COLUMNS)
        self.assertEqual(assembly.skipped_per_row, ((1, 2), (2, 1)))
        self.assertEqual(assembly.skipped_empty_cells, 3)
        self.assertEqual(assembly.non_blank_cells, 3)
        self.assertEqual(assembly.blocking_errors, ())

    def test_sample_cells_are_capped(self):
        grid = grid_with(*[[f"2026-02-{day:02d}", "x", day, day] for day in range(1, 11)])
        assembly = assemble_rows(grid, 0, 0, COLUMNS, sample_limit=4)
        self.assertEqual(len(assembly.sample_non_blank_cells), 4)
        self.assertEqual(assembly.sample_non_blank_cells[0].header, "Ali")

    def test_allowed_dates_filter(self):
        grid = grid_with(["2026-01-31", "Sat", 5, None], ["2026-02-01", "Sun", 6, None])
        assembly = assemble_rows(grid, 0, 0, COLUMNS, allowed_dates={"2026-02-01"})
        self.assertEqual([r.date_key for r in assembly.records], ["2026-02-01"])
        self.assertEqual(assembly.rows_outside_period, 1)

    def test_short_dates_use_inferred_year(self):
        grid = grid_with(["1-Feb", "Sun", 5, None])
        assembly = assemble_rows(grid, 0, 0, COLUMNS, inferred_year=2026)
        self.assertEqual(assembly.records[0].date_key, "2026-02-01")


if __name__ == "__main__":
    unittest.main()
