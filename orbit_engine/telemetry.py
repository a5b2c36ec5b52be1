"""
Live telemetry feed.

Holds the most recent J2000 state vector of the primary target. Streamed
position and velocity components arrive one item at a time; a new state is
published once all six components have been received since the last one.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from config import DEFAULT_TELEMETRY_OSV
from orbit_engine.state import Frame, OrbitalStateVector
from orbit_engine.time_system import as_utc, parse_instant

logger = logging.getLogger(__name__)

# Telemetry item -> (vector, axis). Positions in km, velocities in km/s.
TELEMETRY_ITEMS = {
    "USLAB000032": ("r", 0),
    "USLAB000033": ("r", 1),
    "USLAB000034": ("r", 2),
    "USLAB000035": ("v", 0),
    "USLAB000036": ("v", 1),
    "USLAB000037": ("v", 2),
}


def default_osv() -> OrbitalStateVector:
    """Seed state used until the first complete telemetry update."""
    return OrbitalStateVector(
        DEFAULT_TELEMETRY_OSV["position"],
        DEFAULT_TELEMETRY_OSV["velocity"],
        parse_instant(DEFAULT_TELEMETRY_OSV["timestamp"]),
        Frame.J2000,
    )


def timestamp_from_hours(year: int, hours: float) -> datetime:
    """Convert a feed timestamp (hours since the start of ``year``, UTC) to a datetime."""
    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(hours=hours)


class TelemetryFeed:
    """
    Latest-state store for streamed telemetry.

    Args:
        initial: State used before any update completes (defaults to the
            reference ISS state)
    """

    def __init__(self, initial: Optional[OrbitalStateVector] = None):
        self._latest = initial if initial is not None else default_osv()
        self._pending: Dict[str, float] = {}
        self._pending_timestamp: Optional[datetime] = None

    def latest(self) -> OrbitalStateVector:
        return self._latest

    def publish(self, osv: OrbitalStateVector) -> None:
        """Replace the latest state with a complete vector."""
        if osv.frame is not Frame.J2000:
            raise ValueError(f"Telemetry states must be J2000, got {osv.frame.value}")
        self._latest = osv
        self._pending.clear()
        self._pending_timestamp = None

    def update_component(self, key: str, value: float, timestamp: datetime) -> bool:
        """
        Accept one streamed component.

        Args:
            key: Telemetry item name (USLAB000032..USLAB000037)
            value: Component value (km or km/s)
            timestamp: Instant of the sample

        Returns:
            True when this update completed a new state vector

        Raises:
            KeyError: Unknown telemetry item
        """
        if key not in TELEMETRY_ITEMS:
            raise KeyError(f"Unknown telemetry item {key!r}")

        timestamp = as_utc(timestamp)
        self._pending[key] = float(value)
        if self._pending_timestamp is None or timestamp > self._pending_timestamp:
            self._pending_timestamp = timestamp

        if len(self._pending) < len(TELEMETRY_ITEMS):
            return False

        r = [0.0, 0.0, 0.0]
        v = [0.0, 0.0, 0.0]
        for item, (vector, axis) in TELEMETRY_ITEMS.items():
            target = r if vector == "r" else v
            target[axis] = self._pending[item] * 1000.0

        osv = OrbitalStateVector(r, v, self._pending_timestamp, Frame.J2000)
        logger.debug(f"Telemetry state complete at {osv.timestamp.isoformat()}")
        self.publish(osv)
        return True
