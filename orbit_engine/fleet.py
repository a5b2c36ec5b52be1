"""
Satellite fleet propagation.

Propagates every satellite of the loaded roster to the frame instant with
SGP4 and converts the result to the display frame. A satellite that fails
for any reason is left out of that frame only; it is retried on the next.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from config import ORBITS_BEFORE, ORBITS_AFTER, ORBIT_POINTS
from orbit_engine.ephemeris import EphemerisAdapter
from orbit_engine.exceptions import PropagationError
from orbit_engine.frames import cart_to_wgs84, osv_j2000_to_ecef, to_display_frame
from orbit_engine.kepler import KeplerianElements, osv_to_kepler, sample_orbit
from orbit_engine.satellite import Satellite
from orbit_engine.state import Frame, Geodetic, OrbitalStateVector
from orbit_engine.time_system import NutationTerms, nutation_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FleetState:
    """Per-frame state of one satellite."""
    satellite: Satellite
    osv: OrbitalStateVector
    osv_j2000: OrbitalStateVector
    kepler: KeplerianElements
    geodetic: Geodetic

    @property
    def name(self) -> str:
        return self.satellite.name


class SatelliteFleetPropagator:
    """
    Propagates the satellite roster once per frame.

    Args:
        adapter: SGP4 adapter shared with the data source selector
    """

    def __init__(self, adapter: Optional[EphemerisAdapter] = None):
        self.adapter = adapter or EphemerisAdapter()

    def propagate_one(self, satellite: Satellite, instant: datetime, display_frame: Frame,
                      nutation: NutationTerms) -> FleetState:
        """
        Propagate a single satellite and update its cached state.

        Raises:
            PropagationError: SGP4 failed or returned an unusable state
        """
        osv_j2000 = self.adapter.propagate_j2000(satellite.satrec, instant, nutation)
        osv_ecef = osv_j2000_to_ecef(osv_j2000, nutation)
        osv_display = osv_ecef if display_frame is Frame.ECEF else to_display_frame(
            osv_j2000, display_frame, nutation)

        kepler = osv_to_kepler(osv_j2000.position, osv_j2000.velocity, osv_j2000.timestamp)
        geodetic = cart_to_wgs84(osv_ecef.position)

        satellite.osv = osv_j2000
        satellite.kepler = kepler
        satellite.geodetic = geodetic

        return FleetState(satellite, osv_display, osv_j2000, kepler, geodetic)

    def propagate(self, roster: Sequence[Satellite], instant: datetime,
                  display_frame: Frame = Frame.J2000,
                  nutation: Optional[NutationTerms] = None) -> List[FleetState]:
        """
        Propagate every satellite in ``roster`` to ``instant``.

        Args:
            roster: Satellites to propagate
            instant: Frame instant
            display_frame: Frame of the returned state vectors
            nutation: Nutation terms of the frame, computed when None

        Returns:
            States of the satellites that propagated, in roster order
        """
        if nutation is None:
            nutation = nutation_for(instant)

        states = []
        for satellite in roster:
            try:
                states.append(self.propagate_one(satellite, instant, display_frame, nutation))
            except PropagationError as e:
                logger.warning(f"Dropping {satellite.name} for this frame: {e}")

        logger.debug(f"Propagated {len(states)}/{len(roster)} satellites")
        return states

    def sample_orbit_for(self, satellite: Satellite, instant: datetime,
                         display_frame: Frame = Frame.J2000,
                         orbits_before: float = ORBITS_BEFORE,
                         orbits_after: float = ORBITS_AFTER,
                         points: int = ORBIT_POINTS,
                         nutation: Optional[NutationTerms] = None) -> List[OrbitalStateVector]:
        """
        Orbit trail for one satellite from its osculating elements.

        All samples use the nutation terms of the frame instant.

        Returns:
            State vectors in the display frame, empty when the satellite has
            no elements yet
        """
        if satellite.kepler is None:
            logger.debug(f"No elements for {satellite.name}; skipping orbit trail")
            return []
        if nutation is None:
            nutation = nutation_for(instant)

        samples = sample_orbit(satellite.kepler, instant, orbits_before, orbits_after, points)
        return [to_display_frame(osv, display_frame, nutation) for osv in samples]
