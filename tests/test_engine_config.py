from __future__ import annotations

import unittest
from datetime import time

from shiftledger.errors import ConfigurationError
from shiftledger.services.engine_config import NightWindow, build_engine_config

VALID = {
    "night_start": "22:00",
    "night_end": "05:00",
    "min_break_minutes": 60,
    "diurnal_overtime_rate": 1.5,
    "nocturnal_overtime_rate": 1.7,
}


class EngineConfigTests(unittest.TestCase):
    def test_builds_from_mapping(self) -> None:
        config = build_engine_config(VALID)
        self.assertEqual(config.night_start, time(22, 0))
        self.assertEqual(config.night_end, time(5, 0))
        self.assertEqual(config.min_break_minutes, 60)
        self.assertEqual(config.diurnal_overtime_rate, 1.5)
        self.assertEqual(config.night_differential_rate, 0.2)
        self.assertTrue(config.night_window.crosses_midnight)

    def test_accepts_camel_case_names(self) -> None:
        config = build_engine_config(
            {
                "nightStart": time(23, 0),
                "nightEnd": time(6, 0),
                "minBreakMinutes": 30,
                "diurnalOvertimeRate": 1.5,
                "nocturnalOvertimeRate": 2,
                "nightDifferentialRate": 0.3,
            }
        )
        self.assertEqual(config.night_start, time(23, 0))
        self.assertEqual(config.min_break_minutes, 30)
        self.assertEqual(config.nocturnal_overtime_rate, 2.0)
        self.assertEqual(config.night_differential_rate, 0.3)

    def test_missing_fields_are_named(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            build_engine_config({"night_start": "22:00"})
        self.assertIn("night_end", ctx.exception.message)
        self.assertIn("nocturnal_overtime_rate", ctx.exception.message)
        self.assertEqual(ctx.exception.code, "CONFIGURATION_ERROR")

    def test_invalid_time_is_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_engine_config({**VALID, "night_start": "late"})

    def test_empty_night_window_is_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_engine_config({**VALID, "night_end": "22:00"})

    def test_rates_below_one_are_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_engine_config({**VALID, "diurnal_overtime_rate": 0.5})

    def test_night_differential_rate_must_be_a_fraction(self) -> None:
        self.assertEqual(build_engine_config({**VALID, "night_differential_rate": 0}).night_differential_rate, 0.0)
        with self.assertRaises(ConfigurationError):
            build_engine_config({**VALID, "night_differential_rate": 20})
        with self.assertRaises(ConfigurationError):
            build_engine_config({**VALID, "night_differential_rate": -0.1})

    def test_non_numeric_values_are_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_engine_config({**VALID, "min_break_minutes": True})
        with self.assertRaises(ConfigurationError):
            build_engine_config({**VALID, "min_break_minutes": "60"})

    def test_daytime_window_does_not_cross_midnight(self) -> None:
        self.assertFalse(NightWindow(start=time(0, 0), end=time(5, 0)).crosses_midnight)


if __name__ == "__main__":
    unittest.main()
