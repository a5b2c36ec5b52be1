"""
Unit Tests for Simulation Options

Run with:
    python -m pytest tests/test_options.py -v
"""

import unittest
from datetime import datetime, timezone
from unittest import mock

from pydantic import ValidationError

from orbit_engine.options import SimulationOptions

MIDNIGHT = datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


class TestCalendarFields(unittest.TestCase):
    """Manual date and time fields."""

    def test_defaults_from_single_reading(self):
        with mock.patch("orbit_engine.options._now", return_value=MIDNIGHT) as now:
            options = SimulationOptions()
        now.assert_called_once()
        self.assertEqual(options.manual_instant(), MIDNIGHT)

    def test_explicit_fields_kept(self):
        with mock.patch("orbit_engine.options._now", return_value=MIDNIGHT):
            options = SimulationOptions(date_year=2021, time_hour=6)
        self.assertEqual(options.manual_instant(), datetime(2021, 12, 31, 6, 59, 59, tzinfo=timezone.utc))

    def test_day_rolls_over_month_end(self):
        options = SimulationOptions(date_year=2024, date_month=1, date_day=31,
                                    time_hour=12, time_minute=0, time_second=0)
        options.date_month = 2
        self.assertEqual(options.manual_instant(), datetime(2024, 3, 2, 12, tzinfo=timezone.utc))

        options.date_year = 2023
        self.assertEqual(options.manual_instant(), datetime(2023, 3, 3, 12, tzinfo=timezone.utc))

    def test_osv_day_rolls_over(self):
        options = SimulationOptions(osv_year=2021, osv_month=11, osv_day=31,
                                    osv_hour=0, osv_minute=0, osv_second=1.5)
        self.assertEqual(options.osv_instant(),
                         datetime(2021, 12, 1, 0, 0, 1, 500000, tzinfo=timezone.utc))

    def test_out_of_range_rejected(self):
        with self.assertRaises(ValidationError):
            SimulationOptions(date_day=32)
        options = SimulationOptions()
        with self.assertRaises(ValidationError):
            options.date_month = 13
        with self.assertRaises(ValidationError):
            options.time_second = 60


if __name__ == "__main__":
    unittest.main()
