"""
Orbit Ephemeris Message (OEM) tables.

Parses CCSDS OEM-style text into a time-ordered table of state vectors and
looks up the entry closest to a given instant. Data lines hold an epoch
followed by position (km) and velocity (km/s); optional acceleration columns
are ignored. Covariance blocks are skipped.
"""

import bisect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from orbit_engine.exceptions import MalformedSourceError
from orbit_engine.state import Frame, OrbitalStateVector
from orbit_engine.time_system import as_utc, parse_instant

logger = logging.getLogger(__name__)

# REF_FRAME values accepted from the metadata block
REF_FRAMES = {
    "EME2000": Frame.J2000,
    "J2000": Frame.J2000,
    "TEME": Frame.TEME,
}


@dataclass
class EphemerisTable:
    """
    State vectors from one ephemeris file, sorted by timestamp.

    Attributes:
        states: State vectors (m, m/s) in ascending time order
        metadata: KEY = VALUE pairs from the header and metadata blocks
    """
    states: List[OrbitalStateVector]
    metadata: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.states = sorted(self.states, key=lambda osv: osv.timestamp)
        self._timestamps = [osv.timestamp for osv in self.states]

    def __len__(self) -> int:
        return len(self.states)

    @property
    def start(self) -> Optional[datetime]:
        return self._timestamps[0] if self._timestamps else None

    @property
    def stop(self) -> Optional[datetime]:
        return self._timestamps[-1] if self._timestamps else None

    def closest(self, instant: datetime) -> Optional[OrbitalStateVector]:
        """
        State vector whose timestamp is closest to ``instant``.

        Ties go to the earlier entry. Returns None for an empty table.
        """
        if not self.states:
            return None

        instant = as_utc(instant)
        index = bisect.bisect_left(self._timestamps, instant)
        if index == 0:
            return self.states[0]
        if index == len(self.states):
            return self.states[-1]

        before = self.states[index - 1]
        after = self.states[index]
        if instant - before.timestamp <= after.timestamp - instant:
            return before
        return after

    @classmethod
    def parse(cls, text: str) -> "EphemerisTable":
        """
        Parse OEM text.

        Args:
            text: File content

        Returns:
            EphemerisTable

        Raises:
            MalformedSourceError: Unsupported reference frame or a data line
                that cannot be parsed
        """
        metadata: Dict[str, str] = {}
        states: List[OrbitalStateVector] = []
        frame = Frame.J2000
        in_meta = False
        in_covariance = False

        for number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("COMMENT"):
                continue

            if line == "META_START":
                in_meta = True
                continue
            if line == "META_STOP":
                in_meta = False
                continue
            if line == "COVARIANCE_START":
                in_covariance = True
                continue
            if line == "COVARIANCE_STOP":
                in_covariance = False
                continue
            if in_covariance:
                continue

            if in_meta or "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                metadata[key] = value
                if key == "REF_FRAME":
                    if value not in REF_FRAMES:
                        raise MalformedSourceError(f"Unsupported reference frame {value!r}")
                    frame = REF_FRAMES[value]
                continue

            states.append(_parse_data_line(line, number, frame))

        logger.info(f"Parsed ephemeris table with {len(states)} states ({frame.value})")
        return cls(states, metadata)


def _parse_data_line(line: str, number: int, frame: Frame) -> OrbitalStateVector:
    fields = line.split()
    if len(fields) < 7:
        raise MalformedSourceError(f"Line {number}: expected epoch and six state values, got {line!r}")

    try:
        timestamp = parse_instant(fields[0])
        values = [float(value) * 1000.0 for value in fields[1:7]]
    except ValueError as e:
        raise MalformedSourceError(f"Line {number}: {e}") from e

    return OrbitalStateVector(values[:3], values[3:], timestamp, frame)
