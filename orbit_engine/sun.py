"""
Sun Position
============

Low-precision solar coordinates (about 0.01 deg) and the sub-solar point.

The geometric longitude of the Sun is computed against the mean equinox of
date, reduced to the J2000 equinox and rotated into J2000 equatorial
coordinates. The CEP-frame right ascension and declination then follow from
the same precession and nutation chain used for satellites.

References:
    Meeus, J. (1998). Astronomical Algorithms (2nd ed.), chapter 25.
"""

import math
from datetime import datetime
from typing import Optional, Tuple

import numpy as np

from orbit_engine.frames import pos_j2000_to_cep
from orbit_engine.rotations import rot_x
from orbit_engine.time_system import (
    NutationTerms,
    compute_julian_time,
    compute_sidereal_time,
    julian_century,
    nutation_terms,
)

AU_M = 149597870700.0

# Obliquity of the ecliptic at J2000 (deg)
OBLIQUITY_J2000 = 23.4392911


def sun_position_j2000(jt: float) -> np.ndarray:
    """
    Geocentric position of the Sun in J2000 equatorial coordinates.

    Args:
        jt: Julian Time

    Returns:
        Position [x, y, z] in meters
    """
    T = julian_century(jt)

    # Mean longitude and mean anomaly (deg)
    L0 = 280.46646 + 36000.76983 * T + 0.0003032 * T * T
    M = 357.52911 + 35999.05029 * T - 0.0001537 * T * T
    M_rad = math.radians(M % 360.0)

    # Eccentricity of Earth's orbit
    e = 0.016708634 - 0.000042037 * T - 0.0000001267 * T * T

    # Equation of center (deg)
    C = ((1.914602 - 0.004817 * T - 0.000014 * T * T) * math.sin(M_rad)
         + (0.019993 - 0.000101 * T) * math.sin(2.0 * M_rad)
         + 0.000289 * math.sin(3.0 * M_rad))

    true_anomaly = math.radians(M + C)
    distance = 1.000001018 * (1.0 - e * e) / (1.0 + e * math.cos(true_anomaly)) * AU_M

    # Reduce the longitude to the J2000 equinox
    longitude = math.radians(L0 + C - 1.397 * T)

    r_ecliptic = [distance * math.cos(longitude), distance * math.sin(longitude), 0.0]
    return rot_x(r_ecliptic, OBLIQUITY_J2000)


def sun_equatorial(jt: float, nutation: Optional[NutationTerms] = None) -> Tuple[float, float]:
    """
    Right ascension and declination of the Sun in the CEP frame.

    Args:
        jt: Julian Time
        nutation: Nutation terms, computed from ``jt`` when None

    Returns:
        Tuple of (right ascension, declination) in degrees, RA in [0, 360)
    """
    r = pos_j2000_to_cep(jt, sun_position_j2000(jt), nutation)
    ra = math.degrees(math.atan2(r[1], r[0])) % 360.0
    decl = math.degrees(math.atan2(r[2], math.hypot(r[0], r[1])))
    return ra, decl


def subsolar_point(instant: datetime, nutation: Optional[NutationTerms] = None) -> Tuple[float, float]:
    """
    Geographic point where the Sun is at the zenith.

    Args:
        instant: Instant (UTC)
        nutation: Nutation terms for the instant, computed when None

    Returns:
        Tuple of (latitude, longitude) in degrees, longitude in [-180, 180)
    """
    julian = compute_julian_time(instant)
    if nutation is None:
        nutation = nutation_terms(julian_century(julian.jt))

    ra, decl = sun_equatorial(julian.jt, nutation)
    gast = compute_sidereal_time(0.0, julian.jd, julian.jt, nutation)

    lon = (ra - gast + 180.0) % 360.0 - 180.0
    return decl, lon
