"""
Keplerian Orbit Determination and Propagation

Conversion between a Cartesian state vector and classical orbital elements,
and two-body propagation of the elements to an arbitrary earlier or later
instant. Only elliptical orbits (0 <= e < 1, a > 0) are propagated.

Angles are in degrees throughout, distances in meters.

References:
    Vallado, D. A. (2013). Fundamentals of Astrodynamics and Applications (4th ed.).
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Union

import numpy as np

from config import (
    MU_EARTH,
    INCLINATION_MIN_DEG,
    KEPLER_TOLERANCE,
    KEPLER_MAX_ITERATIONS,
)
from orbit_engine.exceptions import KeplerConvergenceError, PropagationError
from orbit_engine.rotations import rot_x, rot_z
from orbit_engine.state import Frame, OrbitalStateVector
from orbit_engine.time_system import as_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeplerianElements:
    """
    Classical orbital elements at a reference epoch.

    Attributes:
        a: Semi-major axis (m)
        e: Eccentricity
        inclination: Inclination (deg)
        raan: Right ascension of the ascending node (deg)
        arg_periapsis: Argument of periapsis (deg)
        mean_anomaly: Mean anomaly at epoch (deg)
        mu: Gravitational parameter (m³/s²)
        epoch: Reference instant
    """
    a: float
    e: float
    inclination: float
    raan: float
    arg_periapsis: float
    mean_anomaly: float
    mu: float
    epoch: datetime

    @property
    def b(self) -> float:
        """Semi-minor axis (m)."""
        return self.a * math.sqrt(1.0 - self.e * self.e)

    @property
    def period(self) -> float:
        """Orbital period (s)."""
        return compute_period(self.a, self.mu)

    def to_dict(self) -> dict:
        return {
            "a_km": self.a / 1000.0,
            "e": self.e,
            "inclination_deg": self.inclination,
            "raan_deg": _non_negative(self.raan),
            "arg_periapsis_deg": _non_negative(self.arg_periapsis),
            "mean_anomaly_deg": _non_negative(self.mean_anomaly),
            "epoch": self.epoch.isoformat(),
        }


@dataclass(frozen=True)
class Converged:
    """Kepler's equation was solved; ``value`` is the eccentric anomaly (deg)."""
    value: float
    iterations: int


@dataclass(frozen=True)
class DidNotConverge:
    """The iteration budget ran out with ``residual`` (rad) still above tolerance."""
    iterations: int
    residual: float
    last_estimate: float


KeplerSolution = Union[Converged, DidNotConverge]


def _non_negative(angle: float) -> float:
    return angle + 360.0 if angle < 0.0 else angle


def compute_period(a: float, mu: float) -> float:
    """
    Orbital period from Kepler's third law.

    Args:
        a: Semi-major axis (m)
        mu: Gravitational parameter (m³/s²)

    Returns:
        Period in seconds
    """
    return 2.0 * math.pi * math.sqrt(a * a * a / mu)


def solve_eccentric_anomaly(mean_anomaly: float, e: float,
                            tolerance: float = KEPLER_TOLERANCE,
                            max_iterations: int = KEPLER_MAX_ITERATIONS) -> KeplerSolution:
    """
    Solve Kepler's equation E - e*sin(E) = M with Newton-Raphson.

    Args:
        mean_anomaly: Mean anomaly M (deg)
        e: Eccentricity
        tolerance: Residual below which the solution is accepted (rad)
        max_iterations: Newton steps allowed before giving up

    Returns:
        Converged with E in degrees, or DidNotConverge
    """
    m_rad = math.radians(mean_anomaly)

    # Initial guess
    if e < 0.8:
        ecc_anomaly = m_rad
    else:
        ecc_anomaly = math.pi

    residual = ecc_anomaly - e * math.sin(ecc_anomaly) - m_rad
    iterations = 0

    while abs(residual) > tolerance:
        if iterations >= max_iterations:
            return DidNotConverge(iterations, abs(residual), math.degrees(ecc_anomaly))
        iterations += 1
        ecc_anomaly -= residual / (1.0 - e * math.cos(ecc_anomaly))
        residual = ecc_anomaly - e * math.sin(ecc_anomaly) - m_rad

    return Converged(math.degrees(ecc_anomaly), iterations)


def osv_to_kepler(position, velocity, epoch: datetime, mu: float = MU_EARTH) -> KeplerianElements:
    """
    Convert a position/velocity pair to osculating Keplerian elements.

    Below INCLINATION_MIN_DEG from the equatorial plane (prograde or
    retrograde) the node is undefined: the node is fixed at zero and the
    periapsis and anomaly are measured from the x axis instead.

    Args:
        position: Inertial position [x, y, z] (m)
        velocity: Inertial velocity [vx, vy, vz] (m/s)
        epoch: Instant of the state
        mu: Gravitational parameter (m³/s²)

    Returns:
        KeplerianElements

    Raises:
        PropagationError: Zero position or zero angular momentum
    """
    r = np.asarray(position, dtype=float)
    v = np.asarray(velocity, dtype=float)
    r_norm = np.linalg.norm(r)
    v_norm = np.linalg.norm(v)

    # Angular momentum
    k = np.cross(r, v)
    k_norm = np.linalg.norm(k)

    if r_norm == 0.0 or k_norm == 0.0:
        raise PropagationError("Degenerate state vector: zero radius or rectilinear motion")

    # Eccentricity vector
    ecc = np.cross(v, k) / mu - r / r_norm
    e = float(np.linalg.norm(ecc))

    incl = math.degrees(math.acos(np.clip(k[2] / k_norm, -1.0, 1.0)))

    # Energy integral
    energy = 0.5 * v_norm * v_norm - mu / r_norm
    if energy == 0.0:
        raise PropagationError("Parabolic state vector has no finite semi-major axis")
    a = -mu / (2.0 * energy)

    if incl < INCLINATION_MIN_DEG or 180.0 - incl < INCLINATION_MIN_DEG:
        raan = 0.0
        sense = 1.0 if k[2] > 0.0 else -1.0
        arg_periapsis = sense * math.degrees(math.atan2(ecc[1], ecc[0]))
        true_longitude = sense * math.degrees(math.atan2(r[1], r[0]))
        true_anomaly = true_longitude - arg_periapsis
    else:
        raan = math.degrees(math.atan2(k[0], -k[1]))
        sin_i = math.sin(math.radians(incl))
        cos_raan = math.cos(math.radians(raan))
        sin_raan = math.sin(math.radians(raan))

        arg_periapsis = math.degrees(math.atan2(ecc[2] / sin_i,
                                                ecc[0] * cos_raan + ecc[1] * sin_raan))
        arg_latitude = math.degrees(math.atan2(r[2] / sin_i,
                                               r[0] * cos_raan + r[1] * sin_raan))
        true_anomaly = arg_latitude - arg_periapsis

    half_nu = math.radians(true_anomaly) / 2.0
    ecc_anomaly = 2.0 * math.atan2(math.sqrt(1.0 - e) * math.sin(half_nu),
                                   math.sqrt(1.0 + e) * math.cos(half_nu)) if e < 1.0 else 0.0
    mean_anomaly = math.degrees(ecc_anomaly - e * math.sin(ecc_anomaly)) % 360.0

    return KeplerianElements(
        a=float(a),
        e=e,
        inclination=incl,
        raan=raan,
        arg_periapsis=arg_periapsis,
        mean_anomaly=mean_anomaly,
        mu=mu,
        epoch=as_utc(epoch),
    )


def elements_from_options(a_km: float, e: float, inclination: float, raan: float,
                          arg_periapsis: float, mean_anomaly: float, epoch: datetime,
                          mu: float = MU_EARTH) -> KeplerianElements:
    """Build elements entered by the operator (semi-major axis in km)."""
    return KeplerianElements(
        a=a_km * 1000.0,
        e=e,
        inclination=inclination,
        raan=raan,
        arg_periapsis=arg_periapsis,
        mean_anomaly=mean_anomaly,
        mu=mu,
        epoch=as_utc(epoch),
    )


def propagate(elements: KeplerianElements, target: datetime,
              tolerance: float = KEPLER_TOLERANCE,
              max_iterations: int = KEPLER_MAX_ITERATIONS) -> Optional[OrbitalStateVector]:
    """
    Propagate elements to ``target`` with two-body dynamics.

    The mean anomaly advances linearly with the elapsed time, which may be
    negative. The orbital-plane state is rotated by the argument of
    periapsis, the inclination and the node into the inertial frame.

    Args:
        elements: Elements at their epoch
        target: Instant to propagate to

    Returns:
        J2000 state vector, or None when the semi-major axis is zero

    Raises:
        KeplerConvergenceError: Kepler's equation did not converge
        PropagationError: The elements do not describe an ellipse
    """
    if elements.a == 0:
        return None
    if elements.a < 0 or not 0.0 <= elements.e < 1.0:
        raise PropagationError(
            f"Only elliptical orbits can be propagated (a={elements.a:.1f} m, e={elements.e:.6f})"
        )

    target = as_utc(target)
    dt = (target - elements.epoch).total_seconds()
    period = elements.period
    mean_anomaly = (elements.mean_anomaly + 360.0 * dt / period) % 360.0

    solution = solve_eccentric_anomaly(mean_anomaly, elements.e, tolerance, max_iterations)
    if isinstance(solution, DidNotConverge):
        raise KeplerConvergenceError(mean_anomaly, elements.e,
                                     solution.iterations, solution.residual)

    ecc_anomaly = math.radians(solution.value)
    cos_e = math.cos(ecc_anomaly)
    sin_e = math.sin(ecc_anomaly)
    a = elements.a
    b = elements.b
    n = 2.0 * math.pi / period
    rate = n / (1.0 - elements.e * cos_e)

    r_orbital = [a * (cos_e - elements.e), b * sin_e, 0.0]
    v_orbital = [-a * rate * sin_e, b * rate * cos_e, 0.0]

    r = rot_z(rot_x(rot_z(r_orbital, elements.arg_periapsis), elements.inclination), elements.raan)
    v = rot_z(rot_x(rot_z(v_orbital, elements.arg_periapsis), elements.inclination), elements.raan)

    return OrbitalStateVector(r, v, target, Frame.J2000)


def sample_orbit(elements: KeplerianElements, center: datetime,
                 orbits_before: float, orbits_after: float,
                 points: int) -> List[OrbitalStateVector]:
    """
    Sample the orbit before and after ``center`` for trail rendering.

    Samples that fail to propagate are skipped.

    Args:
        elements: Elements to propagate
        center: Current instant
        orbits_before: Number of periods to sample into the past
        orbits_after: Number of periods to sample into the future
        points: Samples per period

    Returns:
        J2000 state vectors ordered by time
    """
    if elements.a <= 0 or points <= 0:
        return []

    period = elements.period
    step = period / points
    start = -orbits_before * period
    count = int(math.floor((orbits_after + orbits_before) * points)) + 1

    samples = []
    for index in range(count):
        offset = start + index * step
        instant = center + timedelta(seconds=offset)
        try:
            osv = propagate(elements, instant)
        except PropagationError as e:
            logger.debug(f"Skipping trail sample at {instant.isoformat()}: {e}")
            continue
        if osv is not None:
            samples.append(osv)
    return samples
