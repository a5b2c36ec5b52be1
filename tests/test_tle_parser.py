"""
Unit Tests for the TLE Parser

Run with:
    python -m pytest tests/test_tle_parser.py -v
"""

import unittest
from datetime import datetime, timezone

from orbit_engine.exceptions import MalformedSourceError
from orbit_engine.tle_parser import TLEParser

from tle_samples import ISS_LINE1, ISS_LINE2, ISS_NAME, iss_triplet, make_triplet


class TestTLEParsing(unittest.TestCase):
    """Parsing single element sets."""

    def setUp(self):
        self.parser = TLEParser()

    def test_parse_iss(self):
        data = self.parser.parse_tle(ISS_LINE1, ISS_LINE2, ISS_NAME)
        self.assertEqual(data["norad_id"], 25544)
        self.assertEqual(data["epoch_year"], 21)
        self.assertAlmostEqual(data["epoch_days"], 356.70730882, places=8)
        self.assertAlmostEqual(data["inclination_deg"], 51.6431, places=6)
        self.assertAlmostEqual(data["eccentricity"], 0.000454, places=9)
        self.assertAlmostEqual(data["mean_motion_rev_per_day"], 15.49048054, places=7)
        self.assertAlmostEqual(data["ndot"], 0.00006423, places=12)
        self.assertAlmostEqual(data["bstar_drag"], 1.2443e-4, places=12)

    def test_epoch(self):
        satellite = self.parser.parse_satellite(ISS_NAME, ISS_LINE1, ISS_LINE2)
        expected = datetime(2021, 12, 22, 16, 58, 31, tzinfo=timezone.utc)
        self.assertLess(abs((satellite.epoch - expected).total_seconds()), 1.0)
        self.assertEqual(satellite.catalog_number, 25544)
        self.assertEqual(satellite.lines, (ISS_NAME, ISS_LINE1, ISS_LINE2))

    def test_two_digit_year_pivot(self):
        self.assertEqual(self.parser.epoch_to_datetime(57, 1.0).year, 1957)
        self.assertEqual(self.parser.epoch_to_datetime(56, 1.0).year, 2056)
        self.assertEqual(self.parser.epoch_to_datetime(23, 305.0),
                         datetime(2023, 11, 1, tzinfo=timezone.utc))

    def test_datetime_to_epoch(self):
        year, days = self.parser.datetime_to_epoch(datetime(2023, 11, 1, 12, tzinfo=timezone.utc))
        self.assertEqual(year, 23)
        self.assertAlmostEqual(days, 305.5, places=9)

    def test_bad_line_numbers(self):
        with self.assertRaises(MalformedSourceError):
            self.parser.create_satrec(ISS_LINE2, ISS_LINE1)

    def test_short_line(self):
        with self.assertRaises(MalformedSourceError):
            self.parser.create_satrec(ISS_LINE1[:50], ISS_LINE2)

    def test_catalog_mismatch(self):
        other = make_triplet("OTHER", 40000).splitlines()
        with self.assertRaises(MalformedSourceError):
            self.parser.create_satrec(ISS_LINE1, other[2])

    def test_checksum_mismatch_is_logged(self):
        broken = ISS_LINE1[:68] + "0"
        with self.assertLogs("orbit_engine.tle_parser", level="WARNING"):
            self.parser.create_satrec(broken, ISS_LINE2)


class TestRoster(unittest.TestCase):
    """Multi-satellite file content."""

    def setUp(self):
        self.parser = TLEParser()

    def test_two_satellites(self):
        text = iss_triplet() + "\n" + make_triplet("0 CSS (TIANHE)", 48274)
        roster = self.parser.parse_roster(text)
        self.assertEqual([sat.name for sat in roster], [ISS_NAME, "CSS (TIANHE)"])
        self.assertEqual(roster[1].catalog_number, 48274)

    def test_duplicate_names_get_index(self):
        text = iss_triplet() + make_triplet(ISS_NAME, 11111)
        roster = self.parser.parse_roster(text)
        self.assertEqual([sat.name for sat in roster], [ISS_NAME, f"{ISS_NAME}_1"])

    def test_malformed_triplet_dropped(self):
        text = iss_triplet() + "BROKEN\n1 garbage\n2 garbage\n" + make_triplet("SAT B", 22222)
        with self.assertLogs("orbit_engine.tle_parser", level="WARNING") as logs:
            roster = self.parser.parse_roster(text)
        self.assertEqual([sat.name for sat in roster], [ISS_NAME, "SAT B"])
        self.assertTrue(any("BROKEN" in message for message in logs.output))

    def test_empty_input(self):
        self.assertEqual(self.parser.parse_roster(""), [])
        self.assertIsNone(self.parser.first_epoch(""))

    def test_first_epoch_skips_bad_elements(self):
        text = "BROKEN\n1 garbage\n2 garbage\n" + make_triplet("SAT", 22222, epoch_year=23, epoch_days=305.0)
        self.assertEqual(self.parser.first_epoch(text), datetime(2023, 11, 1, tzinfo=timezone.utc))


class TestLineReconstruction(unittest.TestCase):
    """Building TLE lines from fields."""

    def setUp(self):
        self.parser = TLEParser()

    def test_reference_lines_reproduced(self):
        data = self.parser.parse_tle(ISS_LINE1, ISS_LINE2, ISS_NAME)
        line1, line2 = self.parser.tle_data_to_lines(data)
        self.assertEqual(line1, ISS_LINE1)
        self.assertEqual(line2, ISS_LINE2)

    def test_edited_fields_parse_back(self):
        data = self.parser.parse_tle(ISS_LINE1, ISS_LINE2)
        data.update({"norad_id": 48274, "raan_deg": 200.25, "eccentricity": 0.0123456})
        line1, line2 = self.parser.tle_data_to_lines(data)
        self.assertEqual(len(line1), 69)
        self.assertEqual(len(line2), 69)

        edited = self.parser.parse_tle(line1, line2)
        self.assertEqual(edited["norad_id"], 48274)
        self.assertAlmostEqual(edited["raan_deg"], 200.25, places=6)
        self.assertAlmostEqual(edited["eccentricity"], 0.0123456, places=9)

    def test_exponential_format(self):
        self.assertEqual(self.parser._format_exponential(0.0), " 00000+0")
        self.assertEqual(self.parser._format_exponential(1.2443e-4), " 12443-3")
        self.assertEqual(self.parser._format_exponential(-1.1606e-5), "-11606-4")

    def test_first_derivative_format(self):
        self.assertEqual(self.parser._format_first_derivative(0.00006423), " .00006423")
        self.assertEqual(self.parser._format_first_derivative(-0.00000123), "-.00000123")

    def test_checksum(self):
        self.assertEqual(self.parser._checksum(ISS_LINE1), 3)
        self.assertEqual(self.parser._checksum(ISS_LINE2), 6)


if __name__ == "__main__":
    unittest.main()
