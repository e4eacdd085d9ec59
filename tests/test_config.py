import os
import unittest
from unittest import mock

from ledger_doctor.config import DEFAULT_HEADER_SCAN_ROWS, DEFAULT_SAMPLE_CELLS, load_config

ENV_KEYS = (
    "LEDGER_DOCTOR_HEADER_SCAN_ROWS",
    "LEDGER_DOCTOR_SAMPLE_CELLS",
    "LEDGER_DOCTOR_LOG_LEVEL",
    "LEDGER_DOCTOR_OUTPUT_STAMP",
)


def clean_env(**overrides):
    env = {key: value for key, value in os.environ.items() if key not in ENV_KEYS}
    env.update(overrides)
    return mock.patch.dict(os.environ, env, clear=True)


class LoadConfigTests(unittest.TestCase):
    def test_defaults(self):
        with clean_env():
            config = load_config()
        self.assertEqual(config.header_scan_rows, DEFAULT_HEADER_SCAN_ROWS)
        self.assertEqual(config.sample_cells, DEFAULT_SAMPLE_CELLS)
        self.assertEqual(config.log_level, "WARNING")
        self.assertIsNone(config.output_stamp)

    def test_overrides(self):
        with clean_env(
            LEDGER_DOCTOR_HEADER_SCAN_ROWS="30",
            LEDGER_DOCTOR_SAMPLE_CELLS="0",
            LEDGER_DOCTOR_LOG_LEVEL="debug",
            LEDGER_DOCTOR_OUTPUT_STAMP="2026-03-01T01:02:03Z",
        ):
            config = load_config()
        self.assertEqual(config.header_scan_rows, 30)
        self.assertEqual(config.sample_cells, 0)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.output_stamp, "2026-03-01T01:02:03Z")

    def test_blank_values_fall_back_to_defaults(self):
        with clean_env(LEDGER_DOCTOR_HEADER_SCAN_ROWS="  "):
            self.assertEqual(load_config().header_scan_rows, DEFAULT_HEADER_SCAN_ROWS)

    def test_invalid_values_name_the_variable(self):
        with clean_env(LEDGER_DOCTOR_HEADER_SCAN_ROWS="many"):
            with self.assertRaisesRegex(ValueError, "LEDGER_DOCTOR_HEADER_SCAN_ROWS"):
                load_config()
        with clean_env(LEDGER_DOCTOR_HEADER_SCAN_ROWS="0"):
            with self.assertRaisesRegex(ValueError, "LEDGER_DOCTOR_HEADER_SCAN_ROWS"):
                load_config()
        with clean_env(LEDGER_DOCTOR_LOG_LEVEL="LOUD"):
            with self.assertRaisesRegex(ValueError, "LEDGER_DOCTOR_LOG_LEVEL"):
                load_config()


if __name__ == "__main__":
    unittest.main()
