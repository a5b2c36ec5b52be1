"""
Simulation clock.

The visible instant is ``base + manual delta + warp offset``. The base
depends on the mode:

    FREE_RUNNING  live wall clock
    MANUAL        calendar instant entered by the operator
    EPOCH_LOCKED  epoch of the earliest loaded TLE file

Warp advances by a fixed number of simulated seconds per rendered frame
(``tick``), independent of how much wall-clock time passed between frames.
Switching modes never resets the warp offset; only ``reset`` does.
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from orbit_engine.exceptions import ClockNotStartedError
from orbit_engine.time_system import as_utc

logger = logging.getLogger(__name__)


class ClockMode(Enum):
    IDLE = "idle"
    FREE_RUNNING = "free_running"
    MANUAL = "manual"
    EPOCH_LOCKED = "epoch_locked"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SimulationClock:
    """
    State machine producing the simulated instant for each frame.

    Args:
        now_fn: Wall clock used in FREE_RUNNING mode (injectable for tests)
        warp_rate: Simulated seconds added per frame while warp is enabled
    """

    def __init__(self, now_fn: Optional[Callable[[], datetime]] = None,
                 warp_rate: float = 1.0):
        self._now_fn = now_fn or _utc_now
        self._mode = ClockMode.IDLE
        self._base: Optional[datetime] = None
        self._delta = timedelta(0)
        self._warp_offset = 0.0
        self._warp_rate = float(warp_rate)
        self._warp_enabled = False
        self._free_running_requested = False

    @property
    def mode(self) -> ClockMode:
        return self._mode

    @property
    def base(self) -> Optional[datetime]:
        """Manual or epoch base; None while free running or idle."""
        return self._base

    @property
    def warp_offset(self) -> float:
        """Accumulated warp in seconds."""
        return self._warp_offset

    @property
    def warp_rate(self) -> float:
        return self._warp_rate

    @property
    def warp_enabled(self) -> bool:
        return self._warp_enabled

    @property
    def free_running_requested(self) -> bool:
        return self._free_running_requested

    @property
    def delta(self) -> timedelta:
        return self._delta

    def start_free_running(self) -> None:
        """Use the live wall clock as the base."""
        if self._mode is not ClockMode.FREE_RUNNING:
            logger.debug("Clock switched to free running")
        self._mode = ClockMode.FREE_RUNNING
        self._base = None

    def set_manual(self, instant: datetime) -> None:
        """Use a calendar instant as the base."""
        self._mode = ClockMode.MANUAL
        self._base = as_utc(instant)
        logger.debug(f"Clock base set manually to {self._base.isoformat()}")

    def set_manual_fields(self, year: int, month: int, day: int,
                          hour: int = 0, minute: int = 0, second: int = 0) -> None:
        """
        Use calendar fields (UTC) as the base.

        Raises:
            ValueError: The fields do not form a valid date and time
        """
        self.set_manual(datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc))

    def lock_to_epoch(self, epoch: datetime) -> bool:
        """
        Use a TLE epoch as the base.

        Ignored while the operator has requested free running.

        Returns:
            True when the clock is now locked to ``epoch``
        """
        if self._free_running_requested:
            logger.debug("Free running requested; ignoring epoch lock")
            return False
        self._mode = ClockMode.EPOCH_LOCKED
        self._base = as_utc(epoch)
        logger.info(f"Clock locked to epoch {self._base.isoformat()}")
        return True

    def request_free_running(self, requested: bool) -> None:
        """
        Record the operator's free-running choice.

        Requesting free running starts it immediately. Withdrawing the request
        leaves the current base in place until a new base is set.
        """
        self._free_running_requested = bool(requested)
        if requested:
            self.start_free_running()

    def set_delta(self, days: float = 0, hours: float = 0,
                  minutes: float = 0, seconds: float = 0) -> None:
        """Set the manual offset added on top of the base."""
        self._delta = timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)

    def enable_warp(self, rate: Optional[float] = None) -> None:
        if rate is not None:
            self._warp_rate = float(rate)
        self._warp_enabled = True

    def disable_warp(self) -> None:
        """Stop advancing; the accumulated offset is kept."""
        self._warp_enabled = False

    def set_warp_rate(self, rate: float) -> None:
        self._warp_rate = float(rate)

    def tick(self) -> None:
        """Advance the warp offset by one frame."""
        if self._warp_enabled:
            self._warp_offset += self._warp_rate

    def reset(self) -> None:
        """Clear warp offset and manual delta and return to the live wall clock."""
        self._warp_offset = 0.0
        self._delta = timedelta(0)
        self.start_free_running()

    def current_instant(self) -> datetime:
        """
        The simulated instant. Reading does not change any state.

        Raises:
            ClockNotStartedError: No base has been set yet
        """
        if self._mode is ClockMode.IDLE:
            raise ClockNotStartedError("Simulation clock has no base instant")

        if self._mode is ClockMode.FREE_RUNNING:
            base = as_utc(self._now_fn())
        else:
            base = self._base

        return base + self._delta + timedelta(seconds=self._warp_offset)

    def set_from_osv(self, osv) -> None:
        """Use the timestamp of a state vector as the manual base."""
        self._free_running_requested = False
        self.set_manual(osv.timestamp)

    def set_from_tle(self, satellite) -> None:
        """Use the epoch of a satellite's element set as the manual base."""
        self._free_running_requested = False
        self.set_manual(satellite.epoch)
