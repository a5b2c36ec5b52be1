"""
TLE Parser Module

Provides utilities for parsing Two-Line Element (TLE) sets into the satellite
roster, extracting orbital parameters and epochs, and building TLE lines
from individual fields.

Uploaded files hold one name line followed by two data lines per satellite.
A triplet that fails to parse is dropped and logged; the rest of the file is
still loaded.
"""

import logging
import math
from datetime import datetime, timezone, timedelta
from typing import Dict, Tuple, Any, List, Optional

from sgp4.api import Satrec

from orbit_engine.exceptions import MalformedSourceError
from orbit_engine.satellite import Satellite

logger = logging.getLogger(__name__)

# Minutes per day over radians per revolution
XPDOTP = 1440.0 / (2.0 * math.pi)


class TLEParser:
    """
    Parser and utilities for Two-Line Element (TLE) sets.

    Provides methods for:
    - Parsing TLE lines into an sgp4 ``Satrec`` and a structured dictionary
    - Parsing multi-satellite text into a satellite roster
    - Building TLE lines (with checksums) from parsed or edited fields
    """

    def parse_tle(self, line1: str, line2: str, name: str = "") -> Dict[str, Any]:
        """
        Parse TLE lines into structured data.

        Args:
            line1: First line of TLE
            line2: Second line of TLE
            name: Optional satellite name

        Returns:
            Dictionary containing parsed TLE data in TLE units

        Raises:
            MalformedSourceError: The lines cannot be parsed
        """
        satellite = self.create_satrec(line1, line2)

        # Convert mean motion from rad/min to rev/day
        mean_motion_rev_day = satellite.no_kozai * 1440.0 / (2.0 * math.pi)

        return {
            "name": name,
            "norad_id": satellite.satnum,
            "classification": getattr(satellite, 'classification', 'U') or 'U',
            "international_designator": getattr(satellite, 'intldesg', ''),
            "epoch_year": satellite.epochyr,
            "epoch_days": satellite.epochdays,
            "epoch_datetime": self.epoch_to_datetime(satellite.epochyr, satellite.epochdays),
            "ndot": satellite.ndot * XPDOTP * 1440.0,
            "nddot": satellite.nddot * XPDOTP * 1440.0 * 1440.0,
            "bstar_drag": satellite.bstar,
            "ephemeris_type": getattr(satellite, 'ephtype', 0),
            "element_number": getattr(satellite, 'elnum', 0),
            "inclination_deg": math.degrees(satellite.inclo),
            "raan_deg": math.degrees(satellite.nodeo),
            "eccentricity": satellite.ecco,
            "arg_perigee_deg": math.degrees(satellite.argpo),
            "mean_anomaly_deg": math.degrees(satellite.mo),
            "mean_motion_rev_per_day": mean_motion_rev_day,
            "revolution_number": getattr(satellite, 'revnum', 0),
            "line1": line1,
            "line2": line2,
        }

    def create_satrec(self, line1: str, line2: str) -> Satrec:
        """
        Validate the line layout and build an sgp4 ``Satrec``.

        Raises:
            MalformedSourceError: Wrong line numbers, short lines, mismatched
                catalog numbers, or an sgp4 initialisation error
        """
        line1 = line1.rstrip()
        line2 = line2.rstrip()

        if not line1.startswith("1 ") or not line2.startswith("2 "):
            raise MalformedSourceError("TLE data lines must start with '1 ' and '2 '")
        if len(line1) < 69 or len(line2) < 69:
            raise MalformedSourceError(
                f"TLE lines must be 69 characters long (got {len(line1)} and {len(line2)})"
            )
        if line1[2:7] != line2[2:7]:
            raise MalformedSourceError(
                f"Catalog numbers differ between lines: {line1[2:7]!r} and {line2[2:7]!r}"
            )

        for line in (line1, line2):
            if line[68].isdigit() and int(line[68]) != self._checksum(line):
                logger.warning(f"Checksum mismatch in TLE line: {line}")

        try:
            satellite = Satrec.twoline2rv(line1, line2)
        except (ValueError, RuntimeError) as e:
            raise MalformedSourceError(f"Failed to parse TLE: {e}") from e

        if satellite.error != 0:
            raise MalformedSourceError(f"sgp4 rejected TLE elements (error {satellite.error})")

        return satellite

    def parse_satellite(self, name: str, line1: str, line2: str) -> Satellite:
        """Build a roster entry from one TLE triplet."""
        satrec = self.create_satrec(line1, line2)
        return Satellite(
            name=name,
            catalog_number=satrec.satnum,
            line1=line1.rstrip(),
            line2=line2.rstrip(),
            satrec=satrec,
            epoch=self.epoch_to_datetime(satrec.epochyr, satrec.epochdays),
        )

    def parse_roster(self, text: str) -> List[Satellite]:
        """
        Parse the content of an uploaded TLE file.

        Names are made unique by appending the element index. Triplets that
        fail to parse are dropped.

        Args:
            text: File content, one name line and two data lines per satellite

        Returns:
            Satellites in file order
        """
        lines = [line for line in text.splitlines() if line.strip()]
        num_elements = len(lines) // 3
        if len(lines) % 3:
            logger.warning(f"Ignoring {len(lines) % 3} trailing line(s) in TLE input")

        roster = []
        names = set()
        for index in range(num_elements):
            title = lines[index * 3].strip()
            if title.startswith("0 "):
                title = title[2:].strip()
            if title in names:
                title = f"{title}_{index}"

            try:
                satellite = self.parse_satellite(title, lines[index * 3 + 1], lines[index * 3 + 2])
            except MalformedSourceError as e:
                logger.warning(f"Dropping TLE element {index} ({title}): {e}")
                continue

            names.add(title)
            roster.append(satellite)

        logger.info(f"Parsed {len(roster)} of {num_elements} TLE elements")
        return roster

    def first_epoch(self, text: str) -> Optional[datetime]:
        """Epoch of the first parsable satellite in ``text``, or None."""
        lines = [line for line in text.splitlines() if line.strip()]
        for index in range(len(lines) // 3):
            try:
                satrec = self.create_satrec(lines[index * 3 + 1], lines[index * 3 + 2])
            except MalformedSourceError:
                continue
            return self.epoch_to_datetime(satrec.epochyr, satrec.epochdays)
        return None

    def tle_data_to_lines(self, tle_data: Dict[str, Any]) -> Tuple[str, str]:
        """
        Build TLE lines from field values.

        Field values use TLE units (rev/day for mean motion, rev/day² / 2
        for ndot). Checksums are computed for both lines.

        Args:
            tle_data: Dictionary containing TLE parameters

        Returns:
            Tuple of (line1, line2) strings
        """
        norad_id = tle_data["norad_id"]
        classification = tle_data.get("classification", "U")
        designator = tle_data.get("international_designator", "")
        epoch_year = tle_data["epoch_year"] % 100
        epoch_days = tle_data["epoch_days"]
        ndot = tle_data.get("ndot", 0.0)
        nddot = tle_data.get("nddot", 0.0)
        bstar = tle_data["bstar_drag"]
        ephemeris_type = tle_data.get("ephemeris_type", 0)
        element_num = tle_data.get("element_number", 0)

        incl = tle_data["inclination_deg"]
        raan = tle_data["raan_deg"]
        ecc = tle_data["eccentricity"]
        argp = tle_data["arg_perigee_deg"]
        mean_anom = tle_data["mean_anomaly_deg"]
        mean_motion = tle_data["mean_motion_rev_per_day"]
        rev_num = tle_data.get("revolution_number", 0)

        # Format line 1
        line1 = f"1 {norad_id:05d}{classification} {designator:<8s} "
        line1 += f"{epoch_year:02d}{epoch_days:012.8f} "
        line1 += self._format_first_derivative(ndot) + " "
        line1 += self._format_exponential(nddot) + " "
        line1 += self._format_exponential(bstar) + " "
        line1 += f"{ephemeris_type:d} {element_num % 10000:4d}"
        line1 += str(self._checksum(line1))

        # Format line 2
        ecc_str = f"{int(round(ecc * 10000000)):07d}"
        line2 = f"2 {norad_id:05d} "
        line2 += f"{incl:8.4f} "
        line2 += f"{raan % 360.0:8.4f} "
        line2 += ecc_str + " "
        line2 += f"{argp % 360.0:8.4f} "
        line2 += f"{mean_anom % 360.0:8.4f} "
        line2 += f"{mean_motion:11.8f}"
        line2 += f"{rev_num % 100000:5d}"
        line2 += str(self._checksum(line2))

        return line1, line2

    def epoch_to_datetime(self, epoch_year: int, epoch_days: float) -> datetime:
        """
        Convert TLE epoch to datetime.

        Args:
            epoch_year: Two-digit year
            epoch_days: Day of year with fractional part

        Returns:
            Datetime object in UTC
        """
        year = 1900 + epoch_year if epoch_year >= 57 else 2000 + epoch_year
        # Day 1 is Jan 1
        return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=epoch_days - 1.0)

    def datetime_to_epoch(self, dt: datetime) -> Tuple[int, float]:
        """Inverse of epoch_to_datetime: (two-digit year, day of year with fraction)."""
        dt = dt.astimezone(timezone.utc)
        start = datetime(dt.year, 1, 1, tzinfo=timezone.utc)
        return dt.year % 100, (dt - start).total_seconds() / 86400.0 + 1.0

    def _format_first_derivative(self, value: float) -> str:
        """Format ndot as ' .NNNNNNNN' with the leading zero dropped."""
        sign = "-" if value < 0 else " "
        return sign + f"{abs(value):.8f}"[1:]

    def _format_exponential(self, value: float) -> str:
        """Format a number in TLE exponential notation (assumed decimal point)."""
        if value == 0.0:
            return " 00000+0"

        sign = "-" if value < 0 else " "
        abs_val = abs(value)

        exp = int(math.floor(math.log10(abs_val))) + 1
        digits = int(round(abs_val / (10 ** exp) * 100000))
        if digits >= 100000:
            digits //= 10
            exp += 1

        exp_sign = "-" if exp < 0 else "+"
        return f"{sign}{digits:05d}{exp_sign}{abs(exp):d}"

    def _checksum(self, line: str) -> int:
        """Calculate TLE checksum."""
        checksum = 0
        for char in line[:68]:
            if char.isdigit():
                checksum += int(char)
            elif char == "-":
                checksum += 1
        return checksum % 10
