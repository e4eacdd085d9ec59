import unittest

from ledger_doctor.employees import (
    STRATEGIES,
    build_roster,
    candidate_headers,
    detect_employee_range,
    extract_embedded_id,
    is_stop_header,
    load_employee_map,
    resolve_employee_columns,
    resolve_header,
)
from ledger_doctor.errors import RosterError
from ledger_doctor.models import ColumnHeader, EmployeeRecord, ResolvedColumn, UnmappedColumn


ROSTER = (
    EmployeeRecord("E001", "Abdulhadi Saleh"),
    EmployeeRecord("E002", "Muslim Ahmed"),
)


class StopHeaderTests(unittest.TestCase):
    def test_stop_words(self):
        for header in ("Total", "TOTAL:", "Total Sales", "SALES", "Qty", "Quantity", "Pieces", "Notes", "AVT", "ملاحظات", "الإجمالي"):
            self.assertTrue(is_stop_header(header), header)

    def test_empty_and_numeric_headers_stop(self):
        for header in ("", None, "   ", "0", 0, 0.0, "12"):
            self.assertTrue(is_stop_header(header), repr(header))

    def test_names_containing_stop_word_letters_do_not_stop(self):
        for header in ("Salesh", "Ali", "Totah", "E001 - Ali"):
            self.assertFalse(is_stop_header(header), header)

    def test_range_ends_before_first_stop(self):
        header = ["Date", "Day", "Abdulhadi", "Muslim", "SALES", "0", "Total Sales"]
        self.assertEqual(detect_employee_range(header, 2), (2, 4))

    def test_candidate_headers_keep_raw_text_and_position(self):
        header = ["Date", "Day", " Abdulhadi ", 101, "Total"]
        self.assertEqual(
            candidate_headers(header, 2, 4),
            [ColumnHeader(2, "Abdulhadi"), ColumnHeader(3, "101")],
        )

    def test_range_can_be_empty(self):
        self.assertEqual(detect_employee_range(["Date", "Day", "Total"], 2), (2, 2))
        self.assertEqual(detect_employee_range(["Date", "Day"], 2), (2, 2))


class ResolveHeaderTests(unittest.TestCase):
    def resolve(self, header, roster, employee_map=None):
        resolution = resolve_header(header, roster, employee_map)
        if resolution is None:
            return None
        return resolution.employee.employee_id, resolution.strategy

    def test_strategy_order(self):
        self.assertEqual(
            [name for name, _ in STRATEGIES],
            ["embedded_id", "exact_name", "first_name", "space_insensitive", "substring"],
        )

    def test_embedded_id_wins_over_exact_name(self):
        roster = (EmployeeRecord("E001", "Ali Hassan"), EmployeeRecord("E002", "Ali"))
        self.assertEqual(self.resolve("E001 - Ali", roster), ("E001", "embedded_id"))

    def test_embedded_id_is_case_insensitive(self):
        roster = (EmployeeRecord("E001", "Ali Hassan"),)
        self.assertEqual(self.resolve("e001 - Someone", roster), ("E001", "embedded_id"))

    def test_compact_numeric_id(self):
        roster = (EmployeeRecord("1205", "Abdulaziz Saleh"),)
        self.assertEqual(self.resolve("1205-Abdulaziz", roster), ("1205", "embedded_id"))

    def test_hyphenated_name_is_not_an_id(self):
        self.assertIsNone(extract_embedded_id("Al-Said"))
        self.assertEqual(extract_embedded_id("E001 - Ali"), "E001")

    def test_unknown_embedded_id_is_left_for_a_human(self):
        roster = (EmployeeRecord("E001", "Ali"),)
        self.assertIsNone(self.resolve("E999 - Ali", roster))

    def test_exact_name(self):
        roster = (EmployeeRecord("E001", "Ali Hassan"),)
        self.assertEqual(self.resolve("  ALI   Hassan ", roster), ("E001", "exact_name"))

    def test_first_name(self):
        roster = (EmployeeRecord("E003", "Sara Ahmed"),)
        self.assertEqual(self.resolve("Sara", roster), ("E003", "first_name"))

    def test_space_insensitive(self):
        roster = (EmployeeRecord("E004", "Abdul Aziz"),)
        self.assertEqual(self.resolve("AbdulAziz", roster), ("E004", "space_insensitive"))

    def test_substring(self):
        roster = (EmployeeRecord("E001", "Ali Hassan"),)
        self.assertEqual(self.resolve("Hassan", roster), ("E001", "substring"))

    def test_arabic_folding_applies_to_names(self):
        roster = (EmployeeRecord("E005", "أحمد علي"),)
        self.assertEqual(self.resolve("احمد", roster), ("E005", "first_name"))

    def test_ties_go_to_first_roster_entry(self):
        roster = (EmployeeRecord("E001", "Ali Hassan"), EmployeeRecord("E002", "Ali Saleh"))
        self.assertEqual(self.resolve("Ali", roster), ("E001", "first_name"))

    def test_unresolved(self):
        self.assertIsNone(self.resolve("Unknown Person", ROSTER))
        self.assertIsNone(self.resolve("", ROSTER))

    def test_override_map_is_consulted_first(self):
        roster = (EmployeeRecord("E001", "Ali"), EmployeeRecord("E002", "Ali Two"))
        self.assertEqual(self.resolve("Ali", roster, {"ali": "E002"}), ("E002", "embedded_id"))

    def test_override_to_unknown_id_is_ignored(self):
        roster = (EmployeeRecord("E001", "Ali"),)
        self.assertEqual(self.resolve("Ali", roster, {"ali": "E999"}), ("E001", "exact_name"))

    def test_override_by_employee_token(self):
        roster = (EmployeeRecord("E001", "Ali"),)
        self.assertEqual(self.resolve("emp_E001", roster, {"emp_e001": "E001"}), ("E001", "embedded_id"))


class ResolveColumnsTests(unittest.TestCase):
    def test_stop_word_boundary(self):
        header = ["Date", "Day", "Abdulhadi", "Muslim", "SALES", "0", "Total Sales"]
        columns = resolve_employee_columns(header, 2, ROSTER)
        self.assertEqual([column.raw_text for column in columns], ["Abdulhadi", "Muslim"])
        self.assertEqual(columns[-1].column_index, header.index("SALES") - 1)
        self.assertTrue(all(isinstance(column, ResolvedColumn) for column in columns))
        self.assertEqual([column.employee_id for column in columns], ["E001", "E002"])

    def test_unmapped_columns_are_kept_in_sheet_order(self):
        header = ["Date", "Day", "Stranger", "Muslim", "Total"]
        columns = resolve_employee_columns(header, 2, ROSTER)
        self.assertIsInstance(columns[0], UnmappedColumn)
        self.assertEqual(columns[0].normalized_text, "stranger")
        self.assertIsInstance(columns[1], ResolvedColumn)
        self.assertEqual(columns[1].column_index, 3)


class EmployeeMapTests(unittest.TestCase):
    def test_loads_names_and_id_tokens(self):
        grid = [["empId", "Name_in_Data"], ["E001", "Ali"], ["E002", " Sara "], [None, "Ghost"]]
        self.assertEqual(
            load_employee_map(grid),
            {"ali": "E001", "emp_e001": "E001", "sara": "E002", "emp_e002": "E002"},
        )

    def test_missing_columns_or_rows_give_empty_map(self):
        self.assertEqual(load_employee_map([]), {})
        self.assertEqual(load_employee_map([["empId", "Name_in_Data"]]), {})
        self.assertEqual(load_employee_map([["id", "name"], ["E001", "Ali"]]), {})


class BuildRosterTests(unittest.TestCase):
    def test_accepts_records_pairs_and_mappings(self):
        roster = build_roster(
            [
                EmployeeRecord("E001", "Ali"),
                ("E002", "Sara"),
                {"empId": "E003", "name": "Omar"},
            ]
        )
        self.assertEqual([employee.employee_id for employee in roster], ["E001", "E002", "E003"])
        self.assertIsInstance(roster, tuple)

    def test_duplicate_ids_are_rejected(self):
        with self.assertRaises(RosterError):
            build_roster([("E001", "Ali"), ("e001", "Ali Again")])

    def test_missing_id_is_rejected(self):
        with self.assertRaises(RosterError):
            build_roster([("", "Nobody")])


if __name__ == "__main__":
    unittest.main()
