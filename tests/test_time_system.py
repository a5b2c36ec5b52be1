"""
Unit Tests for the Time System

Julian time, sidereal time and nutation are checked against the worked
examples in Meeus, Astronomical Algorithms (2nd ed.).

Run with:
    python -m pytest tests/test_time_system.py -v
"""

import unittest
from datetime import datetime, timedelta, timezone

from orbit_engine.time_system import (
    as_utc,
    compute_julian_time,
    compute_sidereal_time,
    julian_century,
    julian_to_datetime,
    mean_obliquity,
    nutation_for,
    nutation_terms,
    parse_instant,
)


class TestJulianTime(unittest.TestCase):
    """Calendar to Julian date conversion."""

    def test_j2000_epoch(self):
        """2000-01-01 12:00 UTC is JD 2451545.0."""
        julian = compute_julian_time(datetime(2000, 1, 1, 12, tzinfo=timezone.utc))
        self.assertAlmostEqual(julian.jd, 2451544.5, places=9)
        self.assertAlmostEqual(julian.jt, 2451545.0, places=9)
        self.assertAlmostEqual(julian_century(julian.jt), 0.0, places=12)

    def test_sputnik_launch(self):
        """Meeus example 7.a: 1957 October 4.81."""
        julian = compute_julian_time(datetime(1957, 10, 4, 19, 26, 24, tzinfo=timezone.utc))
        self.assertAlmostEqual(julian.jt, 2436116.31, places=6)

    def test_january_uses_previous_year(self):
        """January and February are months 13 and 14 of the previous year."""
        julian = compute_julian_time(datetime(1988, 1, 27, tzinfo=timezone.utc))
        self.assertAlmostEqual(julian.jd, 2447187.5, places=9)

    def test_microseconds_included(self):
        base = datetime(2021, 12, 22, 16, 58, 31, tzinfo=timezone.utc)
        later = base + timedelta(microseconds=500000)
        diff = compute_julian_time(later).jt - compute_julian_time(base).jt
        self.assertAlmostEqual(diff * 86400.0, 0.5, places=4)

    def test_naive_instant_is_utc(self):
        naive = datetime(2021, 12, 22, 16, 58, 31)
        aware = datetime(2021, 12, 22, 16, 58, 31, tzinfo=timezone.utc)
        self.assertEqual(compute_julian_time(naive), compute_julian_time(aware))
        self.assertEqual(as_utc(naive), aware)

    def test_julian_to_datetime_inverse(self):
        instant = datetime(2021, 11, 20, 19, 28, 4, 250000, tzinfo=timezone.utc)
        back = julian_to_datetime(compute_julian_time(instant).jt)
        self.assertLess(abs((back - instant).total_seconds()), 1e-3)


class TestSiderealTime(unittest.TestCase):
    """Greenwich sidereal time."""

    def test_mean_sidereal_time_at_midnight(self):
        """Meeus example 12.a: 1987 April 10, 0h UT -> 13h10m46.3668s."""
        julian = compute_julian_time(datetime(1987, 4, 10, tzinfo=timezone.utc))
        expected = (13 + 10 / 60.0 + 46.3668 / 3600.0) * 15.0
        self.assertAlmostEqual(compute_sidereal_time(0.0, julian.jd, julian.jt), expected, places=4)

    def test_mean_sidereal_time_with_time_of_day(self):
        """Meeus example 12.b: 1987 April 10, 19:21:00 UT -> 128.7378734 deg."""
        julian = compute_julian_time(datetime(1987, 4, 10, 19, 21, tzinfo=timezone.utc))
        self.assertAlmostEqual(compute_sidereal_time(0.0, julian.jd, julian.jt), 128.7378734, places=3)

    def test_apparent_sidereal_time(self):
        """Equation of the equinoxes is about -0.2317 s on 1987 April 10."""
        julian = compute_julian_time(datetime(1987, 4, 10, tzinfo=timezone.utc))
        nutation = nutation_terms(julian_century(julian.jt))
        mean = compute_sidereal_time(0.0, julian.jd, julian.jt)
        apparent = compute_sidereal_time(0.0, julian.jd, julian.jt, nutation)
        self.assertAlmostEqual(apparent - mean, -0.2317 * 15.0 / 3600.0, delta=2e-4)

    def test_longitude_offset(self):
        julian = compute_julian_time(datetime(2021, 12, 22, 6, tzinfo=timezone.utc))
        gst = compute_sidereal_time(0.0, julian.jd, julian.jt)
        lst = compute_sidereal_time(24.66, julian.jd, julian.jt)
        self.assertAlmostEqual((lst - gst) % 360.0, 24.66, places=9)

    def test_range(self):
        """Sidereal time is always in [0, 360)."""
        start = datetime(2021, 1, 1, tzinfo=timezone.utc)
        for hours in range(0, 24 * 40, 7):
            instant = start + timedelta(hours=hours)
            julian = compute_julian_time(instant)
            for longitude in (-180.0, 0.0, 359.9):
                value = compute_sidereal_time(longitude, julian.jd, julian.jt, nutation_for(instant))
                self.assertGreaterEqual(value, 0.0)
                self.assertLess(value, 360.0)

    def test_increases_over_short_interval(self):
        """Apparent sidereal time advances about 0.042 deg every 10 s."""
        start = datetime(2021, 12, 22, 23, 30, tzinfo=timezone.utc)
        previous = None
        for step in range(360):
            instant = start + timedelta(seconds=10 * step)
            julian = compute_julian_time(instant)
            value = compute_sidereal_time(0.0, julian.jd, julian.jt, nutation_for(instant))
            if previous is not None:
                advance = (value - previous) % 360.0
                self.assertGreater(advance, 0.0)
                self.assertLess(advance, 1.0)
            previous = value


class TestNutation(unittest.TestCase):
    """Low-precision nutation series."""

    def setUp(self):
        self.T = julian_century(2446895.5)  # 1987 April 10, 0h

    def test_nutation_in_longitude_and_obliquity(self):
        """Meeus example 22.a: dpsi = -3.788", deps = +9.443"."""
        nutation = nutation_terms(self.T)
        self.assertAlmostEqual(nutation.dpsi * 3600.0, -3.788, delta=0.5)
        self.assertAlmostEqual(nutation.deps * 3600.0, 9.443, delta=0.1)

    def test_mean_obliquity(self):
        """Meeus example 22.a: eps0 = 23 deg 26' 27.407"."""
        expected = 23.0 + 26.0 / 60.0 + 27.407 / 3600.0
        self.assertAlmostEqual(mean_obliquity(self.T), expected, delta=1e-5)
        self.assertEqual(nutation_terms(self.T).eps, mean_obliquity(self.T))

    def test_terms_are_small(self):
        for T in (-1.0, -0.1, 0.0, 0.22, 1.0):
            nutation = nutation_terms(T)
            self.assertLess(abs(nutation.dpsi), 20.0 / 3600.0)
            self.assertLess(abs(nutation.deps), 10.0 / 3600.0)


class TestParseInstant(unittest.TestCase):
    """ISO 8601 timestamp parsing."""

    def test_calendar_form(self):
        instant = parse_instant("2021-12-05T18:10:00.125")
        self.assertEqual(instant, datetime(2021, 12, 5, 18, 10, 0, 125000, tzinfo=timezone.utc))

    def test_day_of_year_form(self):
        self.assertEqual(parse_instant("2021-339T18:10:00Z"),
                         datetime(2021, 12, 5, 18, 10, tzinfo=timezone.utc))

    def test_long_fraction(self):
        instant = parse_instant("2021-11-20T19:28:04.123456789")
        self.assertEqual(instant.microsecond, 123457)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            parse_instant("yesterday")
        with self.assertRaises(ValueError):
            parse_instant("2021-12-05T18:10:00.abc")


if __name__ == "__main__":
    unittest.main()
