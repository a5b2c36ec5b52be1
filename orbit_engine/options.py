"""
Simulation options.

The option set the operator edits between frames: data source, display
frame, clock and warp controls, Keplerian override values, the manual state
vector and orbit trail sampling. Values are validated on construction and on
assignment; invalid input raises ``pydantic.ValidationError``.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from config import ORBITS_BEFORE, ORBITS_AFTER, ORBIT_POINTS, REFERENCE_ISS_TLE
from orbit_engine.state import Frame


class DataSource(str, Enum):
    """Where the primary target's state comes from."""
    TELEMETRY = "Telemetry"
    EPHEMERIS_TABLE = "OEM"
    TLE = "TLE"
    MANUAL = "OSV"


class DisplayFrame(str, Enum):
    """Frames offered for display."""
    J2000 = "J2000"
    ECEF = "ECEF"

    def to_frame(self) -> Frame:
        return Frame(self.value)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SimulationOptions(BaseModel):
    """Operator-controlled simulation options."""

    model_config = ConfigDict(validate_assignment=True)

    source: DataSource = DataSource.TELEMETRY
    display_frame: DisplayFrame = DisplayFrame.ECEF
    target_name: str = REFERENCE_ISS_TLE["name"]
    enable_list: bool = False

    # Clock
    enable_clock: bool = False
    warp_enabled: bool = False
    warp_seconds: float = 1.0
    # Omitted calendar fields are filled from one wall-clock reading
    date_year: int = Field(ge=1900, le=2100)
    date_month: int = Field(ge=1, le=12)
    date_day: int = Field(ge=1, le=31)
    time_hour: int = Field(ge=0, le=23)
    time_minute: int = Field(ge=0, le=59)
    time_second: int = Field(ge=0, le=59)
    delta_days: int = Field(default=0, ge=-185, le=185)
    delta_hours: int = Field(default=0, ge=-12, le=12)
    delta_minutes: int = Field(default=0, ge=-30, le=30)
    delta_seconds: int = Field(default=0, ge=-30, le=30)

    # Keplerian override (a in km, angles in degrees)
    kepler_fix: bool = False
    kepler_a: float = Field(default=6778.0, ge=0.0)
    kepler_e: float = Field(default=0.0, ge=0.0, lt=1.0)
    kepler_inclination: float = Field(default=51.6, ge=0.0, le=180.0)
    kepler_raan: float = 0.0
    kepler_arg_periapsis: float = 0.0
    kepler_mean_anomaly: float = 0.0

    # Manual state vector (km, km/s)
    osv_year: int = Field(default=2021, ge=1900, le=2100)
    osv_month: int = Field(default=11, ge=1, le=12)
    osv_day: int = Field(default=22, ge=1, le=31)
    osv_hour: int = Field(default=0, ge=0, le=23)
    osv_minute: int = Field(default=43, ge=0, le=59)
    osv_second: float = Field(default=0.0, ge=0.0, lt=60.0)
    osv_x: float = 0.0
    osv_y: float = 0.0
    osv_z: float = 0.0
    osv_vx: float = 0.0
    osv_vy: float = 0.0
    osv_vz: float = 0.0

    # Orbit trail
    orbits_before: float = Field(default=ORBITS_BEFORE, ge=0.0)
    orbits_after: float = Field(default=ORBITS_AFTER, ge=0.0)
    orbit_points: int = Field(default=ORBIT_POINTS, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _fill_calendar_from_now(cls, data):
        if not isinstance(data, dict):
            return data
        now = _now()
        data = dict(data)
        data.setdefault("date_year", now.year)
        data.setdefault("date_month", now.month)
        data.setdefault("date_day", now.day)
        data.setdefault("time_hour", now.hour)
        data.setdefault("time_minute", now.minute)
        data.setdefault("time_second", now.second)
        return data

    def manual_instant(self) -> datetime:
        """
        Calendar instant from the date/time fields (UTC).

        A day past the end of the month rolls over into the next one, so
        31 February 2024 is 2 March 2024.
        """
        return _rolled_over(self.date_year, self.date_month, self.date_day,
                            self.time_hour, self.time_minute, self.time_second)

    def osv_instant(self) -> datetime:
        """Timestamp of the manual state vector (UTC), rolling over like ``manual_instant``."""
        whole = int(self.osv_second)
        instant = _rolled_over(self.osv_year, self.osv_month, self.osv_day,
                               self.osv_hour, self.osv_minute, whole)
        return instant + timedelta(seconds=self.osv_second - whole)


def _rolled_over(year: int, month: int, day: int, hour: int, minute: int, second: int) -> datetime:
    start = datetime(year, month, 1, hour, minute, second, tzinfo=timezone.utc)
    return start + timedelta(days=day - 1)
