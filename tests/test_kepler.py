"""
Unit Tests for Keplerian Orbit Determination and Propagation

Run with:
    python -m pytest tests/test_kepler.py -v
"""

import math
import unittest
from datetime import datetime, timedelta, timezone

import numpy as np

from config import DEFAULT_TELEMETRY_OSV, MU_EARTH
from orbit_engine.exceptions import KeplerConvergenceError, PropagationError
from orbit_engine.kepler import (
    Converged,
    DidNotConverge,
    KeplerianElements,
    compute_period,
    elements_from_options,
    osv_to_kepler,
    propagate,
    sample_orbit,
    solve_eccentric_anomaly,
)
from orbit_engine.state import Frame

EPOCH = datetime(2021, 11, 20, 19, 28, 4, tzinfo=timezone.utc)


class TestKeplerEquation(unittest.TestCase):
    """Newton-Raphson solution of Kepler's equation."""

    def test_zero_mean_anomaly(self):
        solution = solve_eccentric_anomaly(0.0, 0.5)
        self.assertIsInstance(solution, Converged)
        self.assertEqual(solution.value, 0.0)
        self.assertEqual(solution.iterations, 0)

    def test_solution_satisfies_equation(self):
        for e in (0.0, 0.001, 0.3, 0.85, 0.99):
            for m in (1.0, 100.0, 180.0, 270.0):
                solution = solve_eccentric_anomaly(m, e)
                self.assertIsInstance(solution, Converged)
                ecc_anomaly = math.radians(solution.value)
                residual = ecc_anomaly - e * math.sin(ecc_anomaly) - math.radians(m)
                self.assertLess(abs(residual), 1e-10)

    def test_non_convergence_is_a_value(self):
        solution = solve_eccentric_anomaly(100.0, 0.9, max_iterations=0)
        self.assertIsInstance(solution, DidNotConverge)
        self.assertEqual(solution.iterations, 0)
        self.assertGreater(solution.residual, 1e-10)


class TestOrbitDetermination(unittest.TestCase):
    """State vector to Keplerian elements and back."""

    def setUp(self):
        self.r = np.array(DEFAULT_TELEMETRY_OSV["position"])
        self.v = np.array(DEFAULT_TELEMETRY_OSV["velocity"])
        self.elements = osv_to_kepler(self.r, self.v, EPOCH)

    def test_iss_elements(self):
        self.assertAlmostEqual(self.elements.a, 6.78e6, delta=50e3)
        self.assertLess(self.elements.e, 0.01)
        self.assertAlmostEqual(self.elements.inclination, 51.6, delta=1.0)
        self.assertAlmostEqual(self.elements.period, 5550.0, delta=60.0)
        self.assertEqual(self.elements.mu, MU_EARTH)

    def test_round_trip_at_epoch(self):
        osv = propagate(self.elements, EPOCH)
        self.assertEqual(osv.frame, Frame.J2000)
        np.testing.assert_allclose(osv.position, self.r, rtol=1e-6)
        np.testing.assert_allclose(osv.velocity, self.v, rtol=1e-6)

    def test_full_period_returns_to_start(self):
        later = EPOCH + timedelta(seconds=self.elements.period)
        osv = propagate(self.elements, later)
        self.assertEqual(osv.timestamp, later)
        np.testing.assert_allclose(osv.position, self.r, rtol=1e-6)

    def test_backward_propagation(self):
        """Propagating back and re-fitting lands on the original state."""
        earlier = EPOCH - timedelta(minutes=37)
        past = propagate(self.elements, earlier)
        self.assertEqual(past.timestamp, earlier)
        refit = osv_to_kepler(past.position, past.velocity, past.timestamp)
        osv = propagate(refit, EPOCH)
        np.testing.assert_allclose(osv.position, self.r, rtol=1e-6)

    def test_energy_conserved(self):
        def energy(osv):
            return 0.5 * osv.speed ** 2 - MU_EARTH / osv.radius

        start = propagate(self.elements, EPOCH)
        for minutes in (10, 45, 90, 600):
            osv = propagate(self.elements, EPOCH + timedelta(minutes=minutes))
            self.assertAlmostEqual(energy(osv), energy(start), delta=1e-6 * abs(energy(start)))

    def test_circular_equatorial(self):
        r = np.array([7000e3, 0.0, 0.0])
        v = np.array([0.0, math.sqrt(MU_EARTH / 7000e3), 0.0])
        elements = osv_to_kepler(r, v, EPOCH)
        self.assertAlmostEqual(elements.a, 7000e3, delta=1e-3)
        self.assertLess(elements.e, 1e-12)
        self.assertEqual(elements.raan, 0.0)
        np.testing.assert_allclose(propagate(elements, EPOCH).position, r, atol=1e-3)

    def test_retrograde_equatorial(self):
        r = np.array([7000e3, 0.0, 0.0])
        v = np.array([0.0, -math.sqrt(MU_EARTH / 7000e3), 0.0])
        elements = osv_to_kepler(r, v, EPOCH)
        self.assertAlmostEqual(elements.inclination, 180.0, places=6)

        osv = propagate(elements, EPOCH)
        np.testing.assert_allclose(osv.position, r, atol=1e-3)
        np.testing.assert_allclose(osv.velocity, v, atol=1e-6)

        # Moves clockwise seen from the north
        later = propagate(elements, EPOCH + timedelta(seconds=100))
        self.assertLess(later.position[1], 0.0)

    def test_degenerate_state(self):
        with self.assertRaises(PropagationError):
            osv_to_kepler([0.0, 0.0, 0.0], [1.0, 0.0, 0.0], EPOCH)
        with self.assertRaises(PropagationError):
            osv_to_kepler([7000e3, 0.0, 0.0], [1000.0, 0.0, 0.0], EPOCH)


class TestPropagationEdgeCases(unittest.TestCase):
    """Skips and failures of propagate."""

    def _elements(self, **overrides):
        values = dict(a=7000e3, e=0.0, inclination=51.6, raan=10.0, arg_periapsis=20.0,
                      mean_anomaly=30.0, mu=MU_EARTH, epoch=EPOCH)
        values.update(overrides)
        return KeplerianElements(**values)

    def test_zero_semi_major_axis_is_skipped(self):
        self.assertIsNone(propagate(self._elements(a=0.0), EPOCH))

    def test_hyperbolic_rejected(self):
        with self.assertRaises(PropagationError):
            propagate(self._elements(a=-7000e3, e=1.5), EPOCH)

    def test_convergence_failure_raises(self):
        elements = self._elements(e=0.9, mean_anomaly=100.0)
        with self.assertRaises(KeplerConvergenceError) as context:
            propagate(elements, EPOCH, max_iterations=0)
        self.assertIsInstance(context.exception, PropagationError)
        self.assertEqual(context.exception.iterations, 0)

    def test_elements_from_options(self):
        elements = elements_from_options(6778.0, 0.001, 51.6, 130.0, 40.0, 0.0, EPOCH)
        self.assertEqual(elements.a, 6778e3)
        self.assertAlmostEqual(elements.b, 6778e3 * math.sqrt(1.0 - 0.001 ** 2))
        osv = propagate(elements, EPOCH)
        # At periapsis
        self.assertAlmostEqual(osv.radius, 6778e3 * (1.0 - 0.001), delta=1e-3)

    def test_compute_period(self):
        self.assertAlmostEqual(compute_period(6778e3, MU_EARTH), 5553.4, delta=1.0)

    def test_sample_orbit(self):
        elements = self._elements()
        samples = sample_orbit(elements, EPOCH, 1.0, 1.0, 10)
        self.assertEqual(len(samples), 21)
        self.assertEqual(samples[0].timestamp, EPOCH - timedelta(seconds=elements.period))
        self.assertTrue(all(osv.frame is Frame.J2000 for osv in samples))
        self.assertEqual(sample_orbit(self._elements(a=0.0), EPOCH, 1.0, 1.0, 10), [])


if __name__ == "__main__":
    unittest.main()
