"""
Unit Tests for the SGP4 Ephemeris Adapter

Run with:
    python -m pytest tests/test_ephemeris.py -v
"""

import unittest
from datetime import datetime, timedelta, timezone

import numpy as np

from orbit_engine.ephemeris import ERROR_HISTORY_LIMIT, EphemerisAdapter, compute_epoch
from orbit_engine.exceptions import EphemerisError, PropagationError
from orbit_engine.state import Frame
from orbit_engine.tle_parser import TLEParser

from tle_samples import ISS_LINE1, ISS_LINE2, FakeSatrec, RaisingSatrec

ISS_EPOCH = datetime(2021, 12, 22, 16, 58, 31, tzinfo=timezone.utc)


class TestEphemerisAdapter(unittest.TestCase):
    """SGP4 propagation and normalization."""

    def setUp(self):
        self.adapter = EphemerisAdapter()
        self.satrec = TLEParser().create_satrec(ISS_LINE1, ISS_LINE2)

    def test_iss_at_epoch(self):
        osv = self.adapter.propagate_target(self.satrec, ISS_EPOCH)
        self.assertEqual(osv.frame, Frame.TEME)
        self.assertEqual(osv.timestamp, ISS_EPOCH)
        # Meters and m/s
        self.assertGreater(osv.radius, 6600e3)
        self.assertLess(osv.radius, 6900e3)
        self.assertGreater(osv.speed, 7.5e3)
        self.assertLess(osv.speed, 7.8e3)

    def test_offset_shifts_target(self):
        offset = self.adapter.propagate_target(self.satrec, ISS_EPOCH, offset_seconds=90.0)
        direct = self.adapter.propagate_target(self.satrec, ISS_EPOCH + timedelta(seconds=90))
        self.assertEqual(offset.timestamp, ISS_EPOCH + timedelta(seconds=90))
        np.testing.assert_allclose(offset.position, direct.position, rtol=1e-12)

    def test_j2000_conversion(self):
        teme = self.adapter.propagate_target(self.satrec, ISS_EPOCH)
        j2000 = self.adapter.propagate_j2000(self.satrec, ISS_EPOCH)
        self.assertEqual(j2000.frame, Frame.J2000)
        self.assertAlmostEqual(j2000.radius, teme.radius, delta=1e-3)

    def test_runaway_position_rejected(self):
        adapter = EphemerisAdapter(max_component_km=1000.0)
        with self.assertRaises(EphemerisError):
            adapter.propagate_target(self.satrec, ISS_EPOCH)

    def test_error_code(self):
        satrec = FakeSatrec(error=6)
        with self.assertRaises(EphemerisError) as context:
            self.adapter.propagate_target(satrec, ISS_EPOCH)
        self.assertEqual(context.exception.error_code, 6)
        self.assertIsInstance(context.exception, PropagationError)
        self.assertIn("decayed", str(context.exception))

        history = self.adapter.get_error_history(satrec.satnum)
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["error_code"], 6)
        self.assertEqual(self.adapter.get_error_history(12345), [])

    def test_error_history_is_bounded(self):
        satrec = FakeSatrec(error=1)
        for _ in range(ERROR_HISTORY_LIMIT + 5):
            with self.assertRaises(EphemerisError):
                self.adapter.propagate_target(satrec, ISS_EPOCH)
        self.assertEqual(len(self.adapter.get_error_history(satrec.satnum)), ERROR_HISTORY_LIMIT)

    def test_propagator_exception_wrapped(self):
        satrec = RaisingSatrec()
        with self.assertRaises(EphemerisError) as context:
            self.adapter.propagate_target(satrec, ISS_EPOCH)
        self.assertIsInstance(context.exception.__cause__, ZeroDivisionError)
        self.assertIsNone(context.exception.error_code)

    def test_non_finite_result(self):
        satrec = FakeSatrec(position=(float("nan"), 0.0, 0.0))
        with self.assertRaises(EphemerisError):
            self.adapter.propagate_target(satrec, ISS_EPOCH)

    def test_split_julian_date(self):
        satrec = FakeSatrec()
        osv = self.adapter.propagate_target(satrec, ISS_EPOCH)
        jd, fr = satrec.calls[0]
        self.assertEqual(jd % 1.0, 0.5)
        self.assertGreaterEqual(fr, 0.0)
        self.assertLess(fr, 1.0)
        np.testing.assert_allclose(osv.position, [7000e3, 0.0, 0.0])
        np.testing.assert_allclose(osv.velocity, [0.0, 7500.0, 0.0])

    def test_diagnostics(self):
        diagnostics = self.adapter.get_error_diagnostics(FakeSatrec(), 6, ISS_EPOCH + timedelta(days=10))
        self.assertEqual(diagnostics["error_code"], 6)
        self.assertAlmostEqual(diagnostics["orbital_parameters"]["mean_motion_rev_day"], 15.5, places=9)
        self.assertAlmostEqual(diagnostics["orbital_parameters"]["epoch_age_days"], 10.0, places=4)

    def test_compute_epoch(self):
        self.assertLess(abs((compute_epoch(self.satrec) - ISS_EPOCH).total_seconds()), 1.0)


if __name__ == "__main__":
    unittest.main()
