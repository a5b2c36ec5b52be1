"""
Reference Frame Transformations

Rotations between the frames used by the engine:

    J2000 --precession--> MOD --nutation--> CEP --sidereal time--> ECEF --> WGS84

plus the TEME -> J2000 step for SGP4 output. Each stage is a pure rotation
(geodetic conversion is a bounded iterative inversion) and has an inverse.

Velocities go through the same rotation chain as positions; precession and
nutation change slowly enough to be treated as constant over one frame. The
Earth-fixed velocity also receives the Earth rotation term.

A missing nutation argument (None) is recomputed from the state's instant.

References:
    Lieske, J. H. et al. (1977). Expressions for the precession quantities
    based upon the IAU (1976) system of astronomical constants.
    Meeus, J. (1998). Astronomical Algorithms (2nd ed.), chapters 11 and 21.
"""

import math
from datetime import datetime
from typing import Optional, Tuple

import numpy as np

from config import WGS84_A, WGS84_B, SIDEREAL_RATE_DEG_S, GEODETIC_ITERATIONS
from orbit_engine.rotations import rot_x, rot_y, rot_z
from orbit_engine.state import Frame, Geodetic, OrbitalStateVector, require_frame
from orbit_engine.time_system import (
    NutationTerms,
    compute_julian_time,
    compute_sidereal_time,
    julian_century,
    nutation_terms,
)


def precession_angles(T: float) -> Tuple[float, float, float]:
    """
    IAU 1976 precession angles.

    Args:
        T: Julian centuries since J2000

    Returns:
        Tuple of (z, nu, zeta) in degrees
    """
    z = 0.6406161388 * T + 3.04e-4 * T * T + 5.05e-6 * T * T * T
    nu = 0.5567530277 * T - 1.185e-4 * T * T - 1.162e-5 * T * T * T
    zeta = 0.6406161388 * T + 8.385e-5 * T * T + 4.999e-6 * T * T * T
    return z, nu, zeta


def _precess(vec, T: float) -> np.ndarray:
    z, nu, zeta = precession_angles(T)
    return rot_z(rot_y(rot_z(vec, zeta), -nu), z)


def _unprecess(vec, T: float) -> np.ndarray:
    z, nu, zeta = precession_angles(T)
    return rot_z(rot_y(rot_z(vec, -z), nu), -zeta)


def _nutate(vec, nutation: NutationTerms) -> np.ndarray:
    return rot_x(rot_z(rot_x(vec, -nutation.eps), nutation.dpsi),
                 nutation.eps + nutation.deps)


def _unnutate(vec, nutation: NutationTerms) -> np.ndarray:
    return rot_x(rot_z(rot_x(vec, -(nutation.eps + nutation.deps)), -nutation.dpsi),
                 nutation.eps)


def _resolve_nutation(nutation: Optional[NutationTerms], T: float) -> NutationTerms:
    if nutation is None:
        return nutation_terms(T)
    return nutation


def _earth_rotation_term(r_ecef: np.ndarray) -> np.ndarray:
    """Time derivative of the sidereal rotation applied to an Earth-fixed position."""
    omega = math.radians(SIDEREAL_RATE_DEG_S)
    return np.array([omega * r_ecef[1], -omega * r_ecef[0], 0.0])


def _century_of(instant: datetime) -> float:
    return julian_century(compute_julian_time(instant).jt)


# ---------------------------------------------------------------------------
# State vectors
# ---------------------------------------------------------------------------

def osv_j2000_to_mod(osv: OrbitalStateVector) -> OrbitalStateVector:
    """Apply precession: J2000 -> Mean-of-Date."""
    require_frame(osv, Frame.J2000)
    T = _century_of(osv.timestamp)
    return OrbitalStateVector(_precess(osv.position, T), _precess(osv.velocity, T),
                              osv.timestamp, Frame.MOD)


def osv_j2000_to_cep(osv: OrbitalStateVector,
                     nutation: Optional[NutationTerms] = None) -> OrbitalStateVector:
    """
    Transform a state vector from J2000 to the Celestial Ephemeris Pole frame.

    Args:
        osv: State vector tagged J2000
        nutation: Nutation terms for the instant, recomputed when None

    Returns:
        State vector tagged CEP
    """
    require_frame(osv, Frame.J2000)
    T = _century_of(osv.timestamp)
    nutation = _resolve_nutation(nutation, T)

    r_cep = _nutate(_precess(osv.position, T), nutation)
    v_cep = _nutate(_precess(osv.velocity, T), nutation)

    return OrbitalStateVector(r_cep, v_cep, osv.timestamp, Frame.CEP)


def osv_cep_to_j2000(osv: OrbitalStateVector,
                     nutation: Optional[NutationTerms] = None) -> OrbitalStateVector:
    """Inverse of osv_j2000_to_cep."""
    require_frame(osv, Frame.CEP)
    T = _century_of(osv.timestamp)
    nutation = _resolve_nutation(nutation, T)

    r_j2000 = _unprecess(_unnutate(osv.position, nutation), T)
    v_j2000 = _unprecess(_unnutate(osv.velocity, nutation), T)

    return OrbitalStateVector(r_j2000, v_j2000, osv.timestamp, Frame.J2000)


def osv_j2000_to_ecef(osv: OrbitalStateVector,
                      nutation: Optional[NutationTerms] = None) -> OrbitalStateVector:
    """
    Transform a state vector from J2000 to Earth-Centered Earth-Fixed.

    The position is rotated by Greenwich apparent sidereal time after the
    J2000 -> CEP step. The velocity is rotated the same way and then gets the
    Earth rotation term (derivative of the sidereal rotation matrix times the
    position).

    Args:
        osv: State vector tagged J2000
        nutation: Nutation terms for the instant, recomputed when None

    Returns:
        State vector tagged ECEF
    """
    require_frame(osv, Frame.J2000)
    julian = compute_julian_time(osv.timestamp)
    nutation = _resolve_nutation(nutation, julian_century(julian.jt))

    osv_cep = osv_j2000_to_cep(osv, nutation)
    gast = compute_sidereal_time(0.0, julian.jd, julian.jt, nutation)

    r_ecef = rot_z(osv_cep.position, -gast)
    v_ecef = rot_z(osv_cep.velocity, -gast) + _earth_rotation_term(r_ecef)

    return OrbitalStateVector(r_ecef, v_ecef, osv.timestamp, Frame.ECEF)


def osv_ecef_to_j2000(osv: OrbitalStateVector,
                      nutation: Optional[NutationTerms] = None) -> OrbitalStateVector:
    """Inverse of osv_j2000_to_ecef, including removal of the Earth rotation term."""
    require_frame(osv, Frame.ECEF)
    julian = compute_julian_time(osv.timestamp)
    nutation = _resolve_nutation(nutation, julian_century(julian.jt))
    gast = compute_sidereal_time(0.0, julian.jd, julian.jt, nutation)

    r_cep = rot_z(osv.position, gast)
    v_cep = rot_z(osv.velocity - _earth_rotation_term(osv.position), gast)

    return osv_cep_to_j2000(OrbitalStateVector(r_cep, v_cep, osv.timestamp, Frame.CEP), nutation)


def osv_teme_to_j2000(osv: OrbitalStateVector,
                      nutation: Optional[NutationTerms] = None) -> OrbitalStateVector:
    """
    Transform SGP4 output (True Equator Mean Equinox) to J2000.

    TEME differs from the CEP frame only by the equation of the equinoxes
    about the z axis; the rest of the chain is the CEP -> J2000 inverse.
    """
    require_frame(osv, Frame.TEME)
    T = _century_of(osv.timestamp)
    nutation = _resolve_nutation(nutation, T)
    eqeq = nutation.dpsi * math.cos(math.radians(nutation.eps))

    osv_cep = OrbitalStateVector(rot_z(osv.position, eqeq), rot_z(osv.velocity, eqeq),
                                 osv.timestamp, Frame.CEP)
    return osv_cep_to_j2000(osv_cep, nutation)


def to_display_frame(osv: OrbitalStateVector, frame: Frame,
                     nutation: Optional[NutationTerms] = None) -> OrbitalStateVector:
    """Convert a J2000 state vector to the frame requested for display."""
    require_frame(osv, Frame.J2000)
    if frame is Frame.J2000:
        return osv
    if frame is Frame.ECEF:
        return osv_j2000_to_ecef(osv, nutation)
    if frame is Frame.CEP:
        return osv_j2000_to_cep(osv, nutation)
    if frame is Frame.MOD:
        return osv_j2000_to_mod(osv)
    raise ValueError(f"Unsupported display frame: {frame.value}")


# ---------------------------------------------------------------------------
# Positions without velocity (sub-solar point, ground stations)
# ---------------------------------------------------------------------------

def pos_j2000_to_cep(jt: float, r, nutation: Optional[NutationTerms] = None) -> np.ndarray:
    """Rotate a J2000 position into the CEP frame at Julian time ``jt``."""
    T = julian_century(jt)
    nutation = _resolve_nutation(nutation, T)
    return _nutate(_precess(r, T), nutation)


def pos_cep_to_j2000(jt: float, r, nutation: Optional[NutationTerms] = None) -> np.ndarray:
    """Rotate a CEP position back to J2000 at Julian time ``jt``."""
    T = julian_century(jt)
    nutation = _resolve_nutation(nutation, T)
    return _unprecess(_unnutate(r, nutation), T)


def pos_cep_to_ecef(jd: float, jt: float, r,
                    nutation: Optional[NutationTerms] = None) -> np.ndarray:
    """Rotate a CEP position to ECEF by apparent sidereal time."""
    nutation = _resolve_nutation(nutation, julian_century(jt))
    return rot_z(r, -compute_sidereal_time(0.0, jd, jt, nutation))


def pos_ecef_to_cep(jd: float, jt: float, r,
                    nutation: Optional[NutationTerms] = None) -> np.ndarray:
    """Rotate an ECEF position to CEP by apparent sidereal time."""
    nutation = _resolve_nutation(nutation, julian_century(jt))
    return rot_z(r, compute_sidereal_time(0.0, jd, jt, nutation))


# ---------------------------------------------------------------------------
# WGS84
# ---------------------------------------------------------------------------

_E2 = (WGS84_A * WGS84_A - WGS84_B * WGS84_B) / (WGS84_A * WGS84_A)


def cart_to_wgs84(r_ecef) -> Geodetic:
    """
    ECEF position to WGS84 geodetic coordinates.

    Longitude comes straight from atan2. Latitude and altitude are refined
    for a fixed number of iterations (GEODETIC_ITERATIONS) without checking
    the residual.

    Args:
        r_ecef: Position [x, y, z] in meters

    Returns:
        Geodetic (deg, deg, m)
    """
    x, y, z = float(r_ecef[0]), float(r_ecef[1]), float(r_ecef[2])
    lon = math.degrees(math.atan2(y, x))
    p = math.sqrt(x * x + y * y)

    # Handle pole cases
    if p < 1e-10:
        lat = 90.0 if z >= 0.0 else -90.0
        return Geodetic(lat, lon, abs(z) - WGS84_B)

    lat = math.atan(z / ((1.0 - _E2) * p))
    h = 0.0

    for _ in range(GEODETIC_ITERATIONS):
        sin_lat = math.sin(lat)
        n = WGS84_A / math.sqrt(1.0 - _E2 * sin_lat * sin_lat)
        h = p / math.cos(lat) - n
        d = (1.0 - _E2 * n / (n + h)) * p
        lat = math.atan(z / d)

    return Geodetic(math.degrees(lat), lon, h)


def wgs84_to_cart(lat: float, lon: float, alt: float) -> np.ndarray:
    """
    WGS84 geodetic coordinates to ECEF position.

    Args:
        lat: Latitude (deg)
        lon: Longitude (deg)
        alt: Height above the ellipsoid (m)

    Returns:
        Position [x, y, z] in meters
    """
    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    sin_lat = math.sin(lat_rad)
    n = WGS84_A / math.sqrt(1.0 - _E2 * sin_lat * sin_lat)

    return np.array([
        (n + alt) * math.cos(lat_rad) * math.cos(lon_rad),
        (n + alt) * math.cos(lat_rad) * math.sin(lon_rad),
        ((1.0 - _E2) * n + alt) * sin_lat,
    ])
