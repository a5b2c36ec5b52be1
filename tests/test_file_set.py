"""
Unit Tests for Time-Sliced TLE File Sets

Run with:
    python -m pytest tests/test_file_set.py -v
"""

import unittest
from datetime import datetime, timezone

from orbit_engine.file_set import FileSwitcher, TimeSlicedFileSet, select_active_file

from tle_samples import make_triplet

NOV_1 = datetime(2023, 11, 1, tzinfo=timezone.utc)
NOV_2 = datetime(2023, 11, 2, tzinfo=timezone.utc)


def _file_set():
    # Given out of order on purpose
    return TimeSlicedFileSet.from_contents([
        ("day2.txt", make_triplet("SAT DAY2", 30002, epoch_year=23, epoch_days=306.0)),
        ("day1.txt", make_triplet("SAT DAY1", 30001, epoch_year=23, epoch_days=305.0)),
    ])


class TestTimeSlicedFileSet(unittest.TestCase):
    """Building and indexing file sets."""

    def test_sorted_by_epoch(self):
        file_set = _file_set()
        self.assertEqual(len(file_set), 2)
        self.assertEqual(file_set.epochs, (NOV_1, NOV_2))
        self.assertEqual(file_set[0].filename, "day1.txt")

    def test_unparsable_file_dropped(self):
        with self.assertLogs("orbit_engine.file_set", level="WARNING"):
            file_set = TimeSlicedFileSet.from_contents([
                ("empty.txt", "nothing here\n"),
                ("day1.txt", make_triplet("SAT DAY1", 30001, epoch_year=23, epoch_days=305.0)),
            ])
        self.assertEqual([f.filename for f in file_set.files], ["day1.txt"])


class TestSelectActiveFile(unittest.TestCase):
    """Choosing the file for an instant."""

    def setUp(self):
        self.file_set = _file_set()

    def test_within_first_day(self):
        self.assertEqual(select_active_file(self.file_set, datetime(2023, 11, 1, 12, tzinfo=timezone.utc)), 0)

    def test_within_second_day(self):
        self.assertEqual(select_active_file(self.file_set, datetime(2023, 11, 2, 1, tzinfo=timezone.utc)), 1)

    def test_exact_epoch(self):
        self.assertEqual(select_active_file(self.file_set, NOV_2), 1)

    def test_clamped(self):
        self.assertEqual(select_active_file(self.file_set, datetime(2020, 1, 1, tzinfo=timezone.utc)), 0)
        self.assertEqual(select_active_file(self.file_set, datetime(2030, 1, 1, tzinfo=timezone.utc)), 1)

    def test_empty_set(self):
        with self.assertRaises(ValueError):
            select_active_file(TimeSlicedFileSet(()), NOV_1)


class TestFileSwitcher(unittest.TestCase):
    """Reloading the roster as time moves."""

    def setUp(self):
        self.loaded = []
        self.switcher = FileSwitcher(_file_set(), lambda tle_file: self.loaded.append(tle_file.filename))

    def test_switches_only_on_change(self):
        self.assertIsNone(self.switcher.current_file)
        self.assertEqual(self.switcher.earliest_epoch, NOV_1)

        self.assertTrue(self.switcher.check_and_switch(datetime(2023, 11, 1, 6, tzinfo=timezone.utc)))
        self.assertFalse(self.switcher.check_and_switch(datetime(2023, 11, 1, 18, tzinfo=timezone.utc)))
        self.assertTrue(self.switcher.check_and_switch(datetime(2023, 11, 2, 6, tzinfo=timezone.utc)))
        self.assertTrue(self.switcher.check_and_switch(datetime(2023, 11, 1, 6, tzinfo=timezone.utc)))

        self.assertEqual(self.loaded, ["day1.txt", "day2.txt", "day1.txt"])
        self.assertEqual(self.switcher.current_index, 0)

    def test_empty_set_never_loads(self):
        switcher = FileSwitcher(TimeSlicedFileSet(()), self.loaded.append)
        self.assertIsNone(switcher.earliest_epoch)
        self.assertFalse(switcher.check_and_switch(NOV_1))
        self.assertEqual(self.loaded, [])


if __name__ == "__main__":
    unittest.main()
