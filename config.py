"""
Orbit Engine Configuration and Constants

This module contains the physical constants, numerical defaults and reference
data used throughout the project.

Constants:
    WGS-84 ellipsoid parameters for geodetic conversion and the Earth
    gravitational parameter used for Keplerian orbit determination. All values
    are SI (meters, seconds) unless the name says otherwise.

Reference Data:
    ISS TLE and telemetry state vector used as the default primary target
    when no file has been loaded.

    Current TLE epoch: 2021-12-22 (day 356.70730882)

References:
    Meeus, J. (1998). Astronomical Algorithms (2nd ed.). Willmann-Bell.
    NIMA TR8350.2 (2000). Department of Defense World Geodetic System 1984.
"""

from typing import Dict, Any

# WGS-84 ellipsoid
WGS84_A: float = 6378137.0  # Semi-major axis (m)
WGS84_B: float = 6356752.314245  # Semi-minor axis (m)
WGS84_F: float = 1.0 / 298.257223563  # Flattening

# Earth gravitational parameter (m³/s²)
MU_EARTH: float = 3.986004418e14

# Sidereal rotation (deg per solar second) and the matching angular rate (rad/s)
SIDEREAL_RATE_DEG_S: float = 360.985647366 / 86400.0
EARTH_ROTATION_RATE: float = 7.2921158553e-5

# Julian dates
JD_J2000: float = 2451545.0
DAYS_PER_CENTURY: float = 36525.0
SECONDS_PER_DAY: float = 86400.0

# Kepler equation solver defaults
KEPLER_TOLERANCE: float = 1e-10  # Residual of E - e*sin(E) - M (rad)
KEPLER_MAX_ITERATIONS: int = 20

# Below this inclination (deg) the node is undefined and the equatorial branch is used
INCLINATION_MIN_DEG: float = 1e-7

# Fixed iteration count of the ECEF -> WGS84 refinement
GEODETIC_ITERATIONS: int = 5

# SGP4 positions with any component above this magnitude are discarded (km)
MAX_TEME_COMPONENT_KM: float = 100000.0

# Default trail sampling
ORBITS_BEFORE: float = 1.0
ORBITS_AFTER: float = 1.0
ORBIT_POINTS: int = 100

# Reference ISS TLE
# Epoch: 2021-12-22T16:58:31Z
REFERENCE_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   21356.70730882  .00006423  00000+0  12443-3 0  9993',
    'line2': '2 25544  51.6431 130.5342 0004540 343.5826 107.2903 15.49048054317816',
    'epoch_days': 356.70730882,
    'mean_motion': 15.49048054,
    'inclination': 51.6431,
    'eccentricity': 0.0004540,
}

# Default telemetry state vector (J2000, meters and m/s)
DEFAULT_TELEMETRY_OSV: Dict[str, Any] = {
    'timestamp': '2021-11-20T19:28:04Z',
    'position': [-4228282.012, 4080666.827, -3421191.697],
    'velocity': [-1904.50887, -5821.53009, -4594.77013],
}
