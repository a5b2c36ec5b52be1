"""
Simulation context.

Owns everything that changes between frames: options, clock, satellite
roster, file switching, telemetry, ephemeris table, inter-satellite links
and the primary target.
``update_frame`` runs the per-frame pipeline and returns a ``FrameResult``
for the render layer.

Per-frame order:
    1. Apply option-driven clock state
    2. Read the simulated instant
    3. Switch TLE files if the instant crossed an epoch boundary
    4. Compute Julian time, nutation and sidereal time once
    5. Resolve the primary target
    6. Propagate the satellite list
    7. Resolve inter-satellite links and the shortest path
    8. Advance the warp offset
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from config import REFERENCE_ISS_TLE
from orbit_engine.clock import ClockMode, SimulationClock
from orbit_engine.ephemeris import EphemerisAdapter
from orbit_engine.file_set import FileSwitcher, TimeSlicedFileSet, TleFile
from orbit_engine.fleet import FleetState, SatelliteFleetPropagator
from orbit_engine.frames import to_display_frame
from orbit_engine.kepler import sample_orbit
from orbit_engine.links import (
    LinkKey,
    PathCursor,
    SatelliteLink,
    ShortestPathSchedule,
    catalog_map,
    parse_link_file,
    resolve_pairs,
)
from orbit_engine.moon import sublunar_point
from orbit_engine.oem import EphemerisTable
from orbit_engine.options import SimulationOptions
from orbit_engine.satellite import Satellite
from orbit_engine.sources import DataSourceSelector, PrimaryState, manual_osv_from_options
from orbit_engine.state import OrbitalStateVector
from orbit_engine.sun import subsolar_point
from orbit_engine.telemetry import TelemetryFeed
from orbit_engine.time_system import (
    JulianTime,
    NutationTerms,
    compute_julian_time,
    compute_sidereal_time,
    julian_century,
    nutation_terms,
)
from orbit_engine.tle_parser import TLEParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    """Everything the render layer needs for one frame."""
    instant: datetime
    julian: JulianTime
    nutation: NutationTerms
    sidereal_time: float
    primary: Optional[PrimaryState]
    fleet: List[FleetState]
    subsolar: Tuple[float, float]
    sublunar: Tuple[float, float]
    links: List[Tuple[str, str]]
    path: List[Tuple[str, str]]
    link_states: Dict[str, FleetState]


class SimulationContext:
    """
    Explicit container for the engine state.

    Args:
        options: Initial options (defaults used when None)
        clock: Simulation clock (a wall-clock driven one when None)
        adapter: SGP4 adapter shared by the selector and the fleet
    """

    def __init__(self, options: Optional[SimulationOptions] = None,
                 clock: Optional[SimulationClock] = None,
                 adapter: Optional[EphemerisAdapter] = None):
        self.options = options or SimulationOptions()
        self.clock = clock or SimulationClock(warp_rate=self.options.warp_seconds)
        self.parser = TLEParser()
        self.adapter = adapter or EphemerisAdapter()
        self.telemetry = TelemetryFeed()
        self.selector = DataSourceSelector(self.adapter, self.telemetry)
        self.fleet = SatelliteFleetPropagator(self.adapter)
        self.roster: List[Satellite] = []
        self.switcher: Optional[FileSwitcher] = None
        self.links: List[SatelliteLink] = []
        self.path_cursor: Optional[PathCursor] = None
        self._epoch_base: Optional[datetime] = None

        self.selector.primary = self._reference_satellite()

    def _reference_satellite(self) -> Satellite:
        return self.parser.parse_satellite(
            REFERENCE_ISS_TLE["name"], REFERENCE_ISS_TLE["line1"], REFERENCE_ISS_TLE["line2"])

    @property
    def primary(self) -> Optional[Satellite]:
        return self.selector.primary

    @property
    def epoch_base(self) -> Optional[datetime]:
        """Epoch the clock locks to while free running is not requested."""
        return self._epoch_base

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_tle_text(self, text: str) -> List[Satellite]:
        """
        Replace the roster with the satellites of a single TLE file.

        The clock locks to the epoch of the file's first satellite unless
        free running was requested.
        """
        roster = self.parser.parse_roster(text)
        self.switcher = None
        self._replace_roster(roster)
        self._epoch_base = roster[0].epoch if roster else None
        self._seed_clock()
        return roster

    def load_tle_files(self, files: Iterable[Tuple[str, str]]) -> TimeSlicedFileSet:
        """
        Load several TLE files covering consecutive periods.

        Args:
            files: (filename, content) pairs in any order

        Returns:
            The sorted file set
        """
        file_set = TimeSlicedFileSet.from_contents(files, self.parser)
        self.switcher = FileSwitcher(file_set, self._load_file)
        self._epoch_base = self.switcher.earliest_epoch
        self._seed_clock()

        if len(file_set) > 0:
            self.switcher.check_and_switch(self.clock.current_instant())
        else:
            self._replace_roster([])
        return file_set

    def load_ephemeris_table(self, text: str) -> EphemerisTable:
        """Parse and install an ephemeris table for the primary target."""
        table = EphemerisTable.parse(text)
        self.selector.table = table
        return table

    def load_link_file(self, text: str, key: LinkKey = LinkKey.NAME) -> List[SatelliteLink]:
        """
        Replace the inter-satellite links.

        Catalog numbers are resolved against the roster loaded now.
        """
        self.links = parse_link_file(text, key, catalog_map(self.roster))
        return self.links

    def load_shortest_path_file(self, text: str) -> ShortestPathSchedule:
        """Replace the shortest-path schedule; catalog numbers resolve against the current roster."""
        schedule = ShortestPathSchedule.parse(text, catalog_map(self.roster))
        self.path_cursor = PathCursor(schedule)
        return schedule

    def select_target(self, name: str) -> Satellite:
        """
        Make the roster satellite called ``name`` the primary target.

        Raises:
            KeyError: No satellite with that name is loaded
        """
        for satellite in self.roster:
            if satellite.name == name:
                self.selector.primary = satellite
                self.options.target_name = name
                return satellite
        raise KeyError(f"No satellite named {name!r} in the roster")

    def _load_file(self, tle_file: TleFile) -> None:
        self._replace_roster(self.parser.parse_roster(tle_file.content))

    def _replace_roster(self, roster: List[Satellite]) -> None:
        self.roster = roster
        for satellite in roster:
            if satellite.name == self.options.target_name:
                self.selector.primary = satellite
                break
        else:
            logger.info(f"Target {self.options.target_name} is not in the roster; using the reference ISS")
            self.selector.primary = self._reference_satellite()
        logger.info(f"Roster replaced with {len(roster)} satellites")

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def _seed_clock(self) -> None:
        if self.options.enable_clock:
            self.clock.request_free_running(True)
            return
        if self._epoch_base is not None and self.clock.lock_to_epoch(self._epoch_base):
            return
        self.clock.set_manual(self.options.manual_instant())

    def _apply_clock_options(self) -> None:
        options = self.options
        clock = self.clock

        if clock.mode is ClockMode.IDLE or options.enable_clock != clock.free_running_requested:
            clock.request_free_running(options.enable_clock)
            if not options.enable_clock:
                self._seed_clock()
        elif clock.mode is ClockMode.MANUAL:
            # The fields hold whole seconds; a base set from an epoch keeps its fraction
            if options.manual_instant() != clock.base.replace(microsecond=0):
                clock.set_manual(options.manual_instant())

        clock.set_delta(days=options.delta_days, hours=options.delta_hours,
                        minutes=options.delta_minutes, seconds=options.delta_seconds)
        clock.set_warp_rate(options.warp_seconds)
        if options.warp_enabled and not clock.warp_enabled:
            clock.enable_warp()
        elif not options.warp_enabled and clock.warp_enabled:
            clock.disable_warp()

    def _set_manual_fields(self, instant: datetime) -> None:
        self.options.enable_clock = False
        self.options.date_year = instant.year
        self.options.date_month = instant.month
        self.options.date_day = instant.day
        self.options.time_hour = instant.hour
        self.options.time_minute = instant.minute
        self.options.time_second = instant.second

    def set_clock_from_osv(self) -> None:
        """Move the clock to the timestamp of the manual state vector."""
        osv = manual_osv_from_options(self.options)
        self._set_manual_fields(osv.timestamp)
        self.clock.set_from_osv(osv)

    def set_clock_from_tle(self) -> None:
        """Move the clock to the epoch of the primary target's element set."""
        if self.primary is None:
            raise KeyError("No primary target selected")
        self._set_manual_fields(self.primary.epoch)
        self.clock.set_from_tle(self.primary)

    def reset_clock(self) -> None:
        """Clear warp and deltas and return to the live wall clock."""
        self.options.delta_days = 0
        self.options.delta_hours = 0
        self.options.delta_minutes = 0
        self.options.delta_seconds = 0
        self.options.enable_clock = True
        self.clock.reset()
        self.clock.request_free_running(True)

    # ------------------------------------------------------------------
    # Frame pipeline
    # ------------------------------------------------------------------

    def update_frame(self) -> FrameResult:
        """Run one frame of the simulation."""
        self._apply_clock_options()
        instant = self.clock.current_instant()

        if self.switcher is not None:
            self.switcher.check_and_switch(instant)

        julian = compute_julian_time(instant)
        nutation = nutation_terms(julian_century(julian.jt))
        sidereal_time = compute_sidereal_time(0.0, julian.jd, julian.jt, nutation)

        primary = self.selector.select(instant, self.options, nutation)

        fleet: List[FleetState] = []
        if self.options.enable_list:
            fleet = self.fleet.propagate(self.roster, instant,
                                         self.options.display_frame.to_frame(), nutation)

        links, path, link_states = self._resolve_links(instant, fleet, nutation)

        subsolar = subsolar_point(instant, nutation)
        sublunar = sublunar_point(instant, nutation)

        self.clock.tick()
        logger.debug(f"Frame at {instant.isoformat()}: {len(fleet)} satellites, {len(links)} links")

        return FrameResult(
            instant=instant,
            julian=julian,
            nutation=nutation,
            sidereal_time=sidereal_time,
            primary=primary,
            fleet=fleet,
            subsolar=subsolar,
            sublunar=sublunar,
            links=links,
            path=path,
            link_states=link_states,
        )

    def _resolve_links(self, instant: datetime, fleet: List[FleetState],
                       nutation: NutationTerms):
        """Link and path segments whose two satellites have a state this frame."""
        path_slice = self.path_cursor.advance(instant) if self.path_cursor is not None else None
        link_pairs = [link.names for link in self.links]
        path_pairs = path_slice.segments() if path_slice is not None else []
        if not link_pairs and not path_pairs:
            return [], [], {}

        wanted = {name for pair in link_pairs + path_pairs for name in pair}
        states = {state.name: state for state in fleet if state.name in wanted}

        # Endpoints outside the propagated list are propagated on their own
        missing = [satellite for satellite in self.roster
                   if satellite.name in wanted and satellite.name not in states]
        if missing:
            for state in self.fleet.propagate(missing, instant,
                                              self.options.display_frame.to_frame(), nutation):
                states[state.name] = state

        return resolve_pairs(link_pairs, states), resolve_pairs(path_pairs, states), states

    def primary_orbit_trail(self, frame: FrameResult) -> List[OrbitalStateVector]:
        """Orbit trail of the primary target around the frame instant, in the display frame."""
        if frame.primary is None:
            return []
        samples = sample_orbit(frame.primary.osculating, frame.instant,
                               self.options.orbits_before, self.options.orbits_after,
                               self.options.orbit_points)
        display_frame = self.options.display_frame.to_frame()
        return [to_display_frame(osv, display_frame, frame.nutation) for osv in samples]

    def satellite_orbit_trail(self, frame: FrameResult, name: str) -> List[OrbitalStateVector]:
        """Orbit trail of a roster satellite, in the display frame."""
        for satellite in self.roster:
            if satellite.name == name:
                return self.fleet.sample_orbit_for(
                    satellite, frame.instant, self.options.display_frame.to_frame(),
                    self.options.orbits_before, self.options.orbits_after,
                    self.options.orbit_points, frame.nutation)
        raise KeyError(f"No satellite named {name!r} in the roster")
