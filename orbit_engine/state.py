"""
State types shared across the engine.

Every state vector carries an explicit reference frame tag. Transform
functions check the tag of their input with ``require_frame`` so a vector in
one frame cannot silently be treated as another.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import numpy as np

from orbit_engine.exceptions import FrameMismatchError
from orbit_engine.time_system import as_utc


class Frame(Enum):
    """Reference frames handled by the engine."""
    TEME = "TEME"
    J2000 = "J2000"
    MOD = "MOD"
    CEP = "CEP"
    ECEF = "ECEF"


@dataclass(frozen=True, eq=False)
class OrbitalStateVector:
    """
    Position and velocity at an instant in a named frame.

    Attributes:
        position: [x, y, z] in meters
        velocity: [vx, vy, vz] in m/s
        timestamp: Instant (aware UTC)
        frame: Reference frame of both vectors
    """
    position: np.ndarray
    velocity: np.ndarray
    timestamp: datetime
    frame: Frame

    def __post_init__(self):
        object.__setattr__(self, "position", np.asarray(self.position, dtype=float).reshape(3))
        object.__setattr__(self, "velocity", np.asarray(self.velocity, dtype=float).reshape(3))
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))

    @property
    def radius(self) -> float:
        return float(np.linalg.norm(self.position))

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.position)) and np.all(np.isfinite(self.velocity)))

    def to_dict(self) -> dict:
        """Export in the units used by captions and exports (km, km/s)."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "frame": self.frame.value,
            "position_km": {"x": self.position[0] / 1000.0,
                            "y": self.position[1] / 1000.0,
                            "z": self.position[2] / 1000.0},
            "velocity_kms": {"x": self.velocity[0] / 1000.0,
                             "y": self.velocity[1] / 1000.0,
                             "z": self.velocity[2] / 1000.0},
        }


@dataclass(frozen=True)
class Geodetic:
    """WGS84 geodetic coordinates: degrees and meters."""
    latitude: float
    longitude: float
    altitude: float


def require_frame(osv: OrbitalStateVector, expected: Frame) -> None:
    """Raise FrameMismatchError unless ``osv`` is tagged with ``expected``."""
    if osv.frame is not expected:
        raise FrameMismatchError(expected, osv.frame)
