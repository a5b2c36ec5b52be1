"""
Moon Position
=============

Geocentric lunar coordinates from the principal periodic terms of the ELP
series (about 10" in longitude, 4" in latitude) and the sub-lunar point.

The series gives ecliptic longitude and latitude against the mean equinox
of date. Adding the nutation in longitude and rotating by the true
obliquity yields CEP-frame coordinates directly.

References:
    Meeus, J. (1998). Astronomical Algorithms (2nd ed.), chapter 47.
"""

import math
from datetime import datetime
from typing import Optional, Tuple

import numpy as np

from orbit_engine.frames import pos_cep_to_j2000
from orbit_engine.rotations import rot_x
from orbit_engine.time_system import (
    NutationTerms,
    compute_julian_time,
    compute_sidereal_time,
    julian_century,
    nutation_terms,
)

# Multiples of (D, M, M', F) with the longitude (1e-6 deg) and distance
# (1e-3 km) coefficients
LONGITUDE_DISTANCE_TERMS = (
    (0, 0, 1, 0, 6288774, -20905355),
    (2, 0, -1, 0, 1274027, -3699111),
    (2, 0, 0, 0, 658314, -2955968),
    (0, 0, 2, 0, 213618, -569925),
    (0, 1, 0, 0, -185116, 48888),
    (0, 0, 0, 2, -114332, -3149),
    (2, 0, -2, 0, 58793, 246158),
    (2, -1, -1, 0, 57066, -152138),
    (2, 0, 1, 0, 53322, -170733),
    (2, -1, 0, 0, 45758, -204586),
    (0, 1, -1, 0, -40923, -129620),
    (1, 0, 0, 0, -34720, 108743),
    (0, 1, 1, 0, -30383, 104755),
    (2, 0, 0, -2, 15327, 10321),
    (0, 0, 1, 2, -12528, 0),
    (0, 0, 1, -2, 10980, 79661),
    (4, 0, -1, 0, 10675, -34782),
    (0, 0, 3, 0, 10034, -23210),
    (4, 0, -2, 0, 8548, -21636),
    (2, 1, -1, 0, -7888, 24208),
    (2, 1, 0, 0, -6766, 30824),
    (1, 0, -1, 0, -5163, -8379),
    (1, 1, 0, 0, 4987, -16675),
    (2, -1, 1, 0, 4036, -12831),
    (2, 0, 2, 0, 3994, -10445),
    (4, 0, 0, 0, 3861, -11650),
    (2, 0, -3, 0, 3665, 14403),
    (0, 1, -2, 0, -2689, -7003),
    (2, 0, -1, 2, -2602, 0),
    (2, -1, -2, 0, 2390, 10056),
    (1, 0, 1, 0, -2348, 6322),
    (2, -2, 0, 0, 2236, -9884),
)

# Multiples of (D, M, M', F) with the latitude coefficient (1e-6 deg)
LATITUDE_TERMS = (
    (0, 0, 0, 1, 5128122),
    (0, 0, 1, 1, 280602),
    (0, 0, 1, -1, 277693),
    (2, 0, 0, -1, 173237),
    (2, 0, -1, 1, 55413),
    (2, 0, -1, -1, 46271),
    (2, 0, 0, 1, 32573),
    (0, 0, 2, 1, 17198),
    (2, 0, 1, -1, 9266),
    (0, 0, 2, -1, 8822),
    (2, -1, 0, -1, 8216),
    (2, 0, -2, -1, 4324),
    (2, 0, 1, 1, 4200),
    (2, 1, 0, -1, -3359),
    (2, -1, -1, 1, 2463),
    (2, -1, 0, 1, 2211),
    (2, -1, -1, -1, 2065),
)

MEAN_DISTANCE_KM = 385000.56


def moon_ecliptic(T: float) -> Tuple[float, float, float]:
    """
    Ecliptic coordinates of the Moon against the mean equinox of date.

    Args:
        T: Julian centuries since J2000

    Returns:
        Tuple of (longitude deg, latitude deg, distance m)
    """
    L = (218.3164477 + 481267.88123421 * T - 0.0015786 * T ** 2
         + T ** 3 / 538841.0 - T ** 4 / 65194000.0)
    D = (297.8501921 + 445267.1114034 * T - 0.0018819 * T ** 2
         + T ** 3 / 545868.0 - T ** 4 / 113065000.0)
    M = 357.5291092 + 35999.0502909 * T - 0.0001536 * T ** 2 + T ** 3 / 24490000.0
    Mp = (134.9633964 + 477198.8675055 * T + 0.0087414 * T ** 2
          + T ** 3 / 69699.0 - T ** 4 / 14712000.0)
    F = (93.2720950 + 483202.0175233 * T - 0.0036539 * T ** 2
         - T ** 3 / 3526000.0 + T ** 4 / 863310000.0)

    A1 = 119.75 + 131.849 * T
    A2 = 53.09 + 479264.290 * T
    A3 = 313.45 + 481266.484 * T

    # Eccentricity of Earth's orbit scales the terms containing M
    E = 1.0 - 0.002516 * T - 0.0000074 * T * T

    def argument(d, m, mp, f):
        return math.radians(d * D + m * M + mp * Mp + f * F)

    sum_l = 0.0
    sum_r = 0.0
    for d, m, mp, f, coeff_l, coeff_r in LONGITUDE_DISTANCE_TERMS:
        scale = E ** abs(m)
        arg = argument(d, m, mp, f)
        sum_l += scale * coeff_l * math.sin(arg)
        sum_r += scale * coeff_r * math.cos(arg)

    sum_b = 0.0
    for d, m, mp, f, coeff_b in LATITUDE_TERMS:
        sum_b += E ** abs(m) * coeff_b * math.sin(argument(d, m, mp, f))

    sum_l += (3958.0 * math.sin(math.radians(A1))
              + 1962.0 * math.sin(math.radians(L - F))
              + 318.0 * math.sin(math.radians(A2)))
    sum_b += (-2235.0 * math.sin(math.radians(L))
              + 382.0 * math.sin(math.radians(A3))
              + 175.0 * math.sin(math.radians(A1 - F))
              + 175.0 * math.sin(math.radians(A1 + F))
              + 127.0 * math.sin(math.radians(L - Mp))
              - 115.0 * math.sin(math.radians(L + Mp)))

    longitude = (L + sum_l / 1e6) % 360.0
    latitude = sum_b / 1e6
    distance = (MEAN_DISTANCE_KM + sum_r / 1000.0) * 1000.0
    return longitude, latitude, distance


def moon_position_cep(jt: float, nutation: Optional[NutationTerms] = None) -> np.ndarray:
    """
    Geocentric position of the Moon in the CEP frame.

    Args:
        jt: Julian Time
        nutation: Nutation terms, computed from ``jt`` when None

    Returns:
        Position [x, y, z] in meters
    """
    T = julian_century(jt)
    if nutation is None:
        nutation = nutation_terms(T)

    longitude, latitude, distance = moon_ecliptic(T)
    lon = math.radians(longitude + nutation.dpsi)
    lat = math.radians(latitude)
    r_ecliptic = [distance * math.cos(lat) * math.cos(lon),
                  distance * math.cos(lat) * math.sin(lon),
                  distance * math.sin(lat)]
    return rot_x(r_ecliptic, nutation.eps + nutation.deps)


def moon_position_j2000(jt: float, nutation: Optional[NutationTerms] = None) -> np.ndarray:
    """Geocentric position of the Moon in J2000 (m)."""
    return pos_cep_to_j2000(jt, moon_position_cep(jt, nutation), nutation)


def moon_equatorial(jt: float, nutation: Optional[NutationTerms] = None) -> Tuple[float, float]:
    """
    Right ascension and declination of the Moon in the CEP frame.

    Returns:
        Tuple of (right ascension, declination) in degrees, RA in [0, 360)
    """
    r = moon_position_cep(jt, nutation)
    ra = math.degrees(math.atan2(r[1], r[0])) % 360.0
    decl = math.degrees(math.atan2(r[2], math.hypot(r[0], r[1])))
    return ra, decl


def sublunar_point(instant: datetime, nutation: Optional[NutationTerms] = None) -> Tuple[float, float]:
    """
    Geographic point where the Moon is at the zenith.

    Args:
        instant: Instant (UTC)
        nutation: Nutation terms for the instant, computed when None

    Returns:
        Tuple of (latitude, longitude) in degrees, longitude in [-180, 180)
    """
    julian = compute_julian_time(instant)
    if nutation is None:
        nutation = nutation_terms(julian_century(julian.jt))

    ra, decl = moon_equatorial(julian.jt, nutation)
    gast = compute_sidereal_time(0.0, julian.jd, julian.jt, nutation)

    lon = (ra - gast + 180.0) % 360.0 - 180.0
    return decl, lon
