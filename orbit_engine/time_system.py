"""
Time System Module

Julian date/time, sidereal time and nutation terms. Everything here is a pure
function of its inputs; nothing is cached between frames because the Julian
century changes continuously.

References:
    Meeus, J. (1998). Astronomical Algorithms (2nd ed.), chapters 7, 12 and 22.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

from config import JD_J2000, DAYS_PER_CENTURY


class JulianTime(NamedTuple):
    """Julian Date at 0h UT (``jd``) and Julian Date including the time of day (``jt``)."""
    jd: float
    jt: float


class NutationTerms(NamedTuple):
    """Nutation in longitude, nutation in obliquity and mean obliquity, all in degrees."""
    dpsi: float
    deps: float
    eps: float


def as_utc(instant: datetime) -> datetime:
    """Return ``instant`` as an aware UTC datetime. Naive values are taken to be UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def compute_julian_time(instant: datetime) -> JulianTime:
    """
    Convert a calendar instant to Julian Date and Julian Time.

    January and February are handled as months 13 and 14 of the previous
    year before the Gregorian century correction is applied.

    Args:
        instant: Calendar instant (UTC)

    Returns:
        JulianTime with the date at 0h and the full Julian time
    """
    instant = as_utc(instant)

    year = instant.year
    month = instant.month
    day = instant.day
    hours = (instant.hour
             + instant.minute / 60.0
             + (instant.second + instant.microsecond / 1e6) / 3600.0)

    if month <= 2:
        year -= 1
        month += 12

    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)

    jd = math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + day + b - 1524.5
    jt = jd + hours / 24.0

    return JulianTime(jd, jt)


def julian_century(jt: float) -> float:
    """Julian centuries elapsed since J2000.0."""
    return (jt - JD_J2000) / DAYS_PER_CENTURY


def days_since_j2000(jd: float) -> float:
    """Days elapsed since J2000.0."""
    return jd - JD_J2000


def julian_to_datetime(jd: float) -> datetime:
    """
    Convert a Julian Date back to a UTC datetime.

    Args:
        jd: Julian Date (may include the fraction of day)

    Returns:
        Aware UTC datetime, microsecond resolution
    """
    z = math.floor(jd + 0.5)
    f = jd + 0.5 - z

    a = z
    if z >= 2299161:
        alpha = math.floor((z - 1867216.25) / 36524.25)
        a += 1 + alpha - math.floor(alpha / 4)

    b = a + 1524
    c = math.floor((b - 122.1) / 365.25)
    d = math.floor(365.25 * c)
    e = math.floor((b - d) / 30.6001)

    day = b - d - math.floor(30.6001 * e)
    month = e - 1 if e < 14 else e - 13
    year = c - 4716 if month > 2 else c - 4715

    base = datetime(int(year), int(month), int(day), tzinfo=timezone.utc)
    return base + timedelta(microseconds=round(f * 86400.0 * 1e6))


def mean_obliquity(T: float) -> float:
    """
    Mean obliquity of the ecliptic.

    Args:
        T: Julian centuries since J2000

    Returns:
        Obliquity in degrees
    """
    arcsec = (84381.448
              - 46.8150 * T
              - 0.00059 * T * T
              + 0.001813 * T * T * T)
    return arcsec / 3600.0


def nutation_terms(T: float) -> NutationTerms:
    """
    Low-precision nutation series.

    Uses the longitude of the Moon's ascending node and the mean longitudes of
    the Sun and the Moon. Accuracy is about 0.5" in longitude and 0.1" in
    obliquity, which is well below what the display can resolve.

    Args:
        T: Julian centuries since J2000

    Returns:
        NutationTerms (degrees)
    """
    omega = math.radians(125.04452 - 1934.136261 * T)
    l_sun = math.radians(280.4665 + 36000.7698 * T)
    l_moon = math.radians(218.3165 + 481267.8813 * T)

    dpsi = (-17.20 * math.sin(omega)
            - 1.32 * math.sin(2.0 * l_sun)
            - 0.23 * math.sin(2.0 * l_moon)
            + 0.21 * math.sin(2.0 * omega))
    deps = (9.20 * math.cos(omega)
            + 0.57 * math.cos(2.0 * l_sun)
            + 0.10 * math.cos(2.0 * l_moon)
            - 0.09 * math.cos(2.0 * omega))

    return NutationTerms(dpsi / 3600.0, deps / 3600.0, mean_obliquity(T))


def nutation_for(instant: datetime) -> NutationTerms:
    """Nutation terms for a calendar instant."""
    return nutation_terms(julian_century(compute_julian_time(instant).jt))


def compute_sidereal_time(longitude: float, jd: float, jt: float,
                          nutation: Optional[NutationTerms] = None) -> float:
    """
    Compute local sidereal time.

    Greenwich mean sidereal time from the IAU 1982 polynomial; when nutation
    terms are supplied the equation of the equinoxes is added, giving
    apparent sidereal time.

    Args:
        longitude: Observer longitude (deg, east positive)
        jd: Julian Date at 0h (kept for symmetry with compute_julian_time)
        jt: Julian Time
        nutation: Optional nutation terms

    Returns:
        Sidereal time in degrees, in [0, 360)
    """
    T = julian_century(jt)

    gast = (280.46061837
            + 360.98564736629 * (jt - JD_J2000)
            + 0.000387933 * T * T
            - T * T * T / 38710000.0)

    if nutation is not None:
        gast += nutation.dpsi * math.cos(math.radians(nutation.eps))

    lst = (gast + longitude) % 360.0
    # A tiny negative argument can round up to exactly 360.0
    if lst >= 360.0:
        lst -= 360.0
    return lst


def parse_instant(text: str) -> datetime:
    """
    Parse an ISO 8601 timestamp as used in ephemeris files and exports.

    Accepts calendar (``2021-12-05T18:10:00.000``) and day-of-year
    (``2021-339T18:10:00``) forms, an optional trailing ``Z`` and any number of
    fractional second digits.

    Raises:
        ValueError: The text is not a recognised timestamp
    """
    value = text.strip()
    if value.endswith("Z"):
        value = value[:-1]

    fraction = ""
    if "." in value:
        value, fraction = value.split(".", 1)
        if not fraction.isdigit():
            raise ValueError(f"Invalid fractional seconds in {text!r}")

    try:
        instant = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        instant = datetime.strptime(value, "%Y-%jT%H:%M:%S")

    if fraction:
        instant += timedelta(microseconds=round(float("0." + fraction) * 1e6))
    return instant.replace(tzinfo=timezone.utc)
