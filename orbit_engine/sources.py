"""
Primary target data sources.

Chooses where the primary target's state comes from each frame and brings
it to the frame instant:

    Telemetry        latest streamed state, Kepler-propagated
    Ephemeris table  closest table entry, Kepler-propagated
    TLE              SGP4 at the instant, used as is
    Manual vector    operator-entered state, Kepler-propagated

With the Keplerian override enabled the operator's elements replace the
source state entirely.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from orbit_engine.ephemeris import EphemerisAdapter
from orbit_engine.exceptions import MalformedSourceError, PropagationError
from orbit_engine.frames import cart_to_wgs84, osv_j2000_to_ecef, osv_teme_to_j2000, to_display_frame
from orbit_engine.kepler import KeplerianElements, elements_from_options, osv_to_kepler, propagate
from orbit_engine.oem import EphemerisTable
from orbit_engine.options import DataSource, SimulationOptions
from orbit_engine.satellite import Satellite
from orbit_engine.state import Frame, Geodetic, OrbitalStateVector
from orbit_engine.telemetry import TelemetryFeed
from orbit_engine.time_system import NutationTerms, nutation_for, parse_instant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrimaryState:
    """
    State of the primary target for one frame.

    Attributes:
        osv: Raw J2000 state taken from the source
        propagated: J2000 state at the frame instant
        display: ``propagated`` in the display frame
        kepler: Elements used for propagation
        geodetic: Sub-satellite point
        osculating: Osculating elements of ``propagated``
    """
    source: DataSource
    osv: OrbitalStateVector
    propagated: OrbitalStateVector
    display: OrbitalStateVector
    kepler: KeplerianElements
    geodetic: Geodetic
    osculating: KeplerianElements


def parse_manual_osv(text: str) -> OrbitalStateVector:
    """
    Parse ``"<ISO timestamp> x y z vx vy vz"`` (km, km/s) into a J2000 state.

    Raises:
        MalformedSourceError: Wrong field count or unparsable values
    """
    fields = text.split()
    if len(fields) != 7:
        raise MalformedSourceError(f"Expected a timestamp and six values, got {len(fields)} fields")

    try:
        timestamp = parse_instant(fields[0])
        values = [float(value) * 1000.0 for value in fields[1:]]
    except ValueError as e:
        raise MalformedSourceError(f"Invalid state vector {text!r}: {e}") from e

    return OrbitalStateVector(values[:3], values[3:], timestamp, Frame.J2000)


def format_osv(osv: OrbitalStateVector) -> str:
    """Format a state vector the way parse_manual_osv reads it (km, km/s)."""
    ts = osv.timestamp
    stamp = ts.strftime("%Y-%m-%dT%H:%M:%S") + f".{ts.microsecond // 1000:03d}"
    position = " ".join(f"{value / 1000.0:.6f}" for value in osv.position)
    velocity = " ".join(f"{value / 1000.0:.9f}" for value in osv.velocity)
    return f"{stamp} {position} {velocity}"


def manual_osv_from_options(options: SimulationOptions) -> OrbitalStateVector:
    """State vector from the manual fields of the options (km, km/s)."""
    return OrbitalStateVector(
        [options.osv_x * 1000.0, options.osv_y * 1000.0, options.osv_z * 1000.0],
        [options.osv_vx * 1000.0, options.osv_vy * 1000.0, options.osv_vz * 1000.0],
        options.osv_instant(),
        Frame.J2000,
    )


class DataSourceSelector:
    """
    Resolves the primary target state for each frame.

    Args:
        adapter: SGP4 adapter for the TLE source
        telemetry: Telemetry feed for the Telemetry source
        table: Ephemeris table for the ephemeris table source
    """

    def __init__(self, adapter: Optional[EphemerisAdapter] = None,
                 telemetry: Optional[TelemetryFeed] = None,
                 table: Optional[EphemerisTable] = None):
        self.adapter = adapter or EphemerisAdapter()
        self.telemetry = telemetry or TelemetryFeed()
        self.table = table
        self.primary: Optional[Satellite] = None

    def source_osv(self, source: DataSource, instant: datetime, options: SimulationOptions,
                   nutation: NutationTerms) -> Optional[OrbitalStateVector]:
        """
        Raw J2000 state from ``source``, or None when it has no data.

        Raises:
            PropagationError: SGP4 failed for the primary target
        """
        if source is DataSource.TELEMETRY:
            return self.telemetry.latest()

        if source is DataSource.EPHEMERIS_TABLE:
            if self.table is None:
                return None
            osv = self.table.closest(instant)
            if osv is not None and osv.frame is Frame.TEME:
                osv = osv_teme_to_j2000(osv, nutation_for(osv.timestamp))
            return osv

        if source is DataSource.TLE:
            if self.primary is None:
                return None
            return self.adapter.propagate_j2000(self.primary.satrec, instant, nutation)

        return manual_osv_from_options(options)

    def select(self, instant: datetime, options: SimulationOptions,
               nutation: Optional[NutationTerms] = None) -> Optional[PrimaryState]:
        """
        Compute the primary target state at ``instant``.

        Returns:
            PrimaryState, or None when the source has no data or the state
            cannot be propagated this frame
        """
        if nutation is None:
            nutation = nutation_for(instant)
        display_frame = options.display_frame.to_frame()

        try:
            if options.kepler_fix:
                kepler = elements_from_options(
                    options.kepler_a, options.kepler_e, options.kepler_inclination,
                    options.kepler_raan, options.kepler_arg_periapsis,
                    options.kepler_mean_anomaly, instant)
                propagated = propagate(kepler, instant)
                osv = propagated
            else:
                osv = self.source_osv(options.source, instant, options, nutation)
                if osv is None:
                    logger.debug(f"No {options.source.value} data for the primary target")
                    return None
                kepler = osv_to_kepler(osv.position, osv.velocity, osv.timestamp)
                if options.source is DataSource.TLE:
                    propagated = osv
                else:
                    propagated = propagate(kepler, instant)
        except PropagationError as e:
            logger.warning(f"Primary target not available this frame: {e}")
            return None

        if propagated is None:
            logger.debug("Primary target has a zero semi-major axis; skipping")
            return None

        osv_ecef = osv_j2000_to_ecef(propagated, nutation)
        display = osv_ecef if display_frame is Frame.ECEF else to_display_frame(
            propagated, display_frame, nutation)
        osculating = osv_to_kepler(propagated.position, propagated.velocity, propagated.timestamp)

        return PrimaryState(
            source=options.source,
            osv=osv,
            propagated=propagated,
            display=display,
            kepler=kepler,
            geodetic=cart_to_wgs84(osv_ecef.position),
            osculating=osculating,
        )
