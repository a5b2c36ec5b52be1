"""
Orbit Determination and Reference-Frame Transformation Engine

Converts raw tracking data (telemetry, ephemeris tables, two-line elements
or a manual state vector) into consistent position/velocity states in a
chosen reference frame, once per simulated time step, for a primary target
and a list of secondary satellites.

Modules:
    time_system: Julian time, sidereal time and nutation
    frames: J2000, MOD, CEP, ECEF, TEME and WGS84 conversions
    kepler: Orbit determination and two-body propagation
    tle_parser: TLE parsing and line reconstruction
    ephemeris: SGP4 adapter
    oem: Orbit ephemeris message tables
    telemetry: Streamed telemetry feed
    sources: Primary target data source selection
    clock: Simulation clock and time warp
    file_set: Time-sliced TLE file switching
    fleet: Satellite list propagation
    sun: Solar position and sub-solar point
    moon: Lunar position and sub-lunar point
    links: Inter-satellite links and shortest-path schedules
    context: Per-frame pipeline

References:
    Meeus, J. (1998). Astronomical Algorithms (2nd ed.). Willmann-Bell.
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

__version__ = "1.0.0"
