"""
Inter-satellite links and shortest-path schedules.

Link files list one pair of satellites per line, either by name or by
catalog number (``25544, 48274``). Catalog numbers are resolved to names
through the loaded roster when the file is read; pairs that cannot be
resolved are dropped.

Shortest-path files list one path per line: a timestamp followed by the
satellites along the path. Catalog numbers found in the roster are replaced
by names and anything else is kept as given. The path shown at an instant
follows the same rule as TLE file switching: the latest path whose
timestamp is not after the instant, clamped to the first and last paths.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from orbit_engine.file_set import select_active_file
from orbit_engine.satellite import Satellite
from orbit_engine.time_system import parse_instant

logger = logging.getLogger(__name__)


class LinkKey(str, Enum):
    """How satellites are identified in a link file."""
    NAME = "name"
    CATALOG = "catalog"


@dataclass(frozen=True)
class SatelliteLink:
    """A link between two satellites, by name."""
    first: str
    second: str

    @property
    def names(self) -> Tuple[str, str]:
        return self.first, self.second


def _catalog_key(item: str) -> str:
    item = item.strip()
    return str(int(item)) if item.isdigit() else item


def catalog_map(roster: Iterable[Satellite]) -> Dict[str, str]:
    """Map of catalog number (as text) to satellite name."""
    return {str(satellite.catalog_number): satellite.name for satellite in roster}


def parse_link_file(text: str, key: LinkKey = LinkKey.NAME,
                    catalog: Optional[Mapping[str, str]] = None) -> List[SatelliteLink]:
    """
    Parse a link file.

    Args:
        text: File content, one comma-separated pair per line
        key: Whether the pairs are names or catalog numbers
        catalog: Catalog number to name map, required for ``LinkKey.CATALOG``

    Returns:
        Links in file order
    """
    catalog = catalog or {}
    links = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        items = [item.strip() for item in line.split(",")]
        if len(items) < 2 or not items[0] or not items[1]:
            logger.warning(f"Skipping link line {line_number}: expected two satellites")
            continue

        first, second = items[0], items[1]
        if key is LinkKey.CATALOG:
            first = catalog.get(_catalog_key(items[0]))
            second = catalog.get(_catalog_key(items[1]))
            if first is None or second is None:
                logger.warning(f"Catalog number not found: {items[0]} or {items[1]}")
                continue

        links.append(SatelliteLink(first, second))

    logger.info(f"Parsed {len(links)} inter-satellite links")
    return links


@dataclass(frozen=True)
class PathSlice:
    """Satellites along the shortest path from ``timestamp`` onwards."""
    timestamp: datetime
    satellites: Tuple[str, ...]

    def segments(self) -> List[Tuple[str, str]]:
        """Consecutive satellite pairs along the path."""
        return list(zip(self.satellites, self.satellites[1:]))


@dataclass(frozen=True)
class ShortestPathSchedule:
    """Path slices sorted by ascending timestamp."""
    slices: Tuple[PathSlice, ...]

    def __len__(self) -> int:
        return len(self.slices)

    def __getitem__(self, index: int) -> PathSlice:
        return self.slices[index]

    @property
    def epochs(self) -> Tuple[datetime, ...]:
        return tuple(s.timestamp for s in self.slices)

    @classmethod
    def parse(cls, text: str, catalog: Optional[Mapping[str, str]] = None) -> "ShortestPathSchedule":
        """
        Parse a shortest-path file.

        Lines without a valid timestamp or without satellites are skipped.
        Timestamps without a zone are taken as UTC.
        """
        catalog = catalog or {}
        slices = []
        for line_number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            timestamp, *ids = [item.strip() for item in line.split(",")]
            ids = [item for item in ids if item]
            if not ids:
                logger.warning(f"Skipping path line {line_number}: no satellites")
                continue
            try:
                instant = parse_instant(timestamp)
            except ValueError:
                logger.warning(f"Skipping path line {line_number}: bad timestamp {timestamp!r}")
                continue
            names = tuple(catalog.get(_catalog_key(item), item) for item in ids)
            slices.append(PathSlice(instant, names))

        slices.sort(key=lambda s: s.timestamp)
        logger.info(f"Parsed {len(slices)} shortest-path slices")
        return cls(tuple(slices))


class PathCursor:
    """
    Tracks the path slice shown as the simulated instant moves.

    The instant may move forwards or backwards between frames.
    """

    def __init__(self, schedule: ShortestPathSchedule):
        self.schedule = schedule
        self.current_index: Optional[int] = None

    def advance(self, instant: datetime) -> Optional[PathSlice]:
        """Path slice for ``instant``; None when the schedule is empty."""
        if len(self.schedule) == 0:
            return None

        index = select_active_file(self.schedule, instant)
        if index != self.current_index:
            logger.debug(f"Shortest path slice {index} at {self.schedule[index].timestamp.isoformat()}")
            self.current_index = index
        return self.schedule[index]


def resolve_pairs(pairs: Iterable[Tuple[str, str]], available: Mapping) -> List[Tuple[str, str]]:
    """
    Keep the pairs whose two satellites are both in ``available``.

    Missing satellites are logged and the pair is left out of the frame.
    """
    resolved = []
    for first, second in pairs:
        if first in available and second in available:
            resolved.append((first, second))
        else:
            logger.debug(f"Link not shown: missing state for {first} or {second}")
    return resolved
