"""
SGP4 Ephemeris Adapter

Wraps ``Satrec.sgp4`` from the sgp4 library and normalizes its output into
engine state vectors: TEME frame, meters and m/s.

Features:
- Propagate a TLE to an instant plus an optional offset in seconds
- Reject SGP4 error codes, non-finite output and runaway positions
- Keep a bounded error history per satellite with physical diagnostics
- Convenience conversion of the result to J2000
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import numpy as np
from sgp4.api import Satrec

from config import MAX_TEME_COMPONENT_KM
from orbit_engine.exceptions import EphemerisError, SGP4_ERROR_CODES
from orbit_engine.frames import osv_teme_to_j2000
from orbit_engine.state import Frame, OrbitalStateVector
from orbit_engine.time_system import (
    NutationTerms,
    as_utc,
    compute_julian_time,
    julian_to_datetime,
)

logger = logging.getLogger(__name__)

ERROR_HISTORY_LIMIT = 100


class EphemerisAdapter:
    """
    SGP4 propagation with error tracking.

    Failures raise ``EphemerisError`` (a ``PropagationError``) so callers can
    drop a single satellite for the frame without affecting the others.
    """

    def __init__(self, max_component_km: float = MAX_TEME_COMPONENT_KM):
        """
        Initialize the adapter.

        Args:
            max_component_km: Positions with any |component| above this
                value (km) are rejected
        """
        self.max_component_km = max_component_km
        self.error_history: Dict[int, List[dict]] = {}

    def propagate_target(self, satrec: Satrec, instant: datetime,
                         offset_seconds: float = 0.0) -> OrbitalStateVector:
        """
        Propagate a TLE to ``instant + offset_seconds``.

        Args:
            satrec: sgp4 satellite record
            instant: Target instant (UTC)
            offset_seconds: Offset added to the instant

        Returns:
            State vector tagged TEME (m, m/s)

        Raises:
            EphemerisError: SGP4 error code, non-finite result, or a
                position component beyond the sanity limit
        """
        target = as_utc(instant) + timedelta(seconds=offset_seconds)
        julian = compute_julian_time(target)

        try:
            error, position, velocity = satrec.sgp4(julian.jd, julian.jt - julian.jd)
        except Exception as e:
            raise EphemerisError(f"Propagator failure for satellite {satrec.satnum}: {e}") from e

        if error != 0:
            self._log_error(satrec.satnum, error, target)
            diagnostics = self.get_error_diagnostics(satrec, error, target)
            raise EphemerisError(
                f"Satellite {satrec.satnum} at {target.isoformat()}: "
                f"{diagnostics.get('physical_meaning', '')}",
                error_code=error,
            )

        r_km = np.asarray(position, dtype=float)
        v_kms = np.asarray(velocity, dtype=float)

        if not (np.all(np.isfinite(r_km)) and np.all(np.isfinite(v_kms))):
            raise EphemerisError(f"Satellite {satrec.satnum} returned a non-finite state")

        if np.any(np.abs(r_km) > self.max_component_km):
            raise EphemerisError(
                f"Satellite {satrec.satnum} position {r_km.tolist()} km exceeds "
                f"{self.max_component_km:.0f} km"
            )

        return OrbitalStateVector(r_km * 1000.0, v_kms * 1000.0, target, Frame.TEME)

    def propagate_j2000(self, satrec: Satrec, instant: datetime,
                        nutation: Optional[NutationTerms] = None,
                        offset_seconds: float = 0.0) -> OrbitalStateVector:
        """Propagate and rotate the TEME result into J2000."""
        osv_teme = self.propagate_target(satrec, instant, offset_seconds)
        return osv_teme_to_j2000(osv_teme, nutation)

    def get_error_history(self, catalog_number: int) -> List[dict]:
        """
        Get error history for a satellite.

        Args:
            catalog_number: NORAD catalog number

        Returns:
            List of error records, oldest first
        """
        return self.error_history.get(catalog_number, [])

    def _log_error(self, catalog_number: int, error_code: int, timestamp: datetime) -> None:
        """Record an error, keeping the most recent ERROR_HISTORY_LIMIT entries."""
        logger.debug(f"SGP4 error {error_code} for satellite {catalog_number} at {timestamp.isoformat()}")
        history = self.error_history.setdefault(catalog_number, [])
        history.append({
            "error_code": error_code,
            "timestamp": timestamp.isoformat(),
            "error_message": SGP4_ERROR_CODES.get(error_code, f"Unknown error {error_code}"),
        })
        if len(history) > ERROR_HISTORY_LIMIT:
            del history[:-ERROR_HISTORY_LIMIT]

    def get_error_diagnostics(self, satrec: Satrec, error_code: int,
                              timestamp: datetime) -> dict:
        """
        Describe an SGP4 error code in physical terms.

        Args:
            satrec: sgp4 satellite record
            error_code: SGP4 error code
            timestamp: Propagation instant

        Returns:
            Dictionary with the code, its description, the element set and
            its age, and a physical interpretation
        """
        epoch = compute_epoch(satrec)
        diagnostics = {
            "error_code": error_code,
            "error_description": SGP4_ERROR_CODES.get(error_code, f"Unknown error {error_code}"),
            "orbital_parameters": {
                "eccentricity": satrec.ecco,
                "inclination_deg": math.degrees(satrec.inclo),
                "mean_motion_rev_day": satrec.no_kozai * 1440.0 / (2 * math.pi),
                "bstar_drag": satrec.bstar,
                "epoch_age_days": (as_utc(timestamp) - epoch).total_seconds() / 86400.0,
            },
        }

        if error_code == 1:
            diagnostics["physical_meaning"] = (
                "Orbital eccentricity is outside the valid range [0, 1); "
                "the element set may be corrupted."
            )
        elif error_code == 2:
            diagnostics["physical_meaning"] = "Mean motion is negative; the element set is invalid."
        elif error_code in (3, 4):
            diagnostics["physical_meaning"] = (
                "Perturbed elements became unphysical, typically far from the "
                "element epoch or in a rapidly decaying orbit."
            )
        elif error_code == 6:
            diagnostics["physical_meaning"] = "The satellite has decayed below the minimum altitude."
        else:
            diagnostics["physical_meaning"] = diagnostics["error_description"]

        return diagnostics


def compute_epoch(satrec: Satrec) -> datetime:
    """Element set epoch of ``satrec`` as an aware UTC datetime."""
    return julian_to_datetime(satrec.jdsatepoch + satrec.jdsatepochF)
