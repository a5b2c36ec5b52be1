"""
Tracked satellite record.

A Satellite is created for each two-line element set parsed from an uploaded
file and is updated in place every frame by the fleet propagator. Loading a
new file replaces the whole roster.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Tuple

from orbit_engine.kepler import KeplerianElements
from orbit_engine.state import Geodetic, OrbitalStateVector

DEFAULT_COLOR = (200, 200, 200)


@dataclass(eq=False)
class Satellite:
    """
    Satellite tracked by the engine.

    Attributes:
        name: Display name (unique within a roster)
        catalog_number: NORAD catalog number
        line1: TLE line 1
        line2: TLE line 2
        satrec: sgp4 ``Satrec`` handle
        epoch: TLE epoch (UTC)
        osv: J2000 state from the latest frame
        kepler: Osculating elements from the latest frame
        geodetic: Sub-satellite point from the latest frame
        color: Display color (RGB)
    """
    name: str
    catalog_number: int
    line1: str
    line2: str
    satrec: Any
    epoch: datetime
    osv: Optional[OrbitalStateVector] = None
    kepler: Optional[KeplerianElements] = None
    geodetic: Optional[Geodetic] = None
    color: Tuple[int, int, int] = field(default=DEFAULT_COLOR)

    @property
    def lines(self) -> Tuple[str, str, str]:
        return self.name, self.line1, self.line2

    def __repr__(self) -> str:
        return f"Satellite(name={self.name!r}, catalog_number={self.catalog_number}, epoch={self.epoch.isoformat()})"
