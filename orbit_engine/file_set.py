"""
Time-sliced TLE file sets.

Several TLE files covering consecutive periods can be loaded together. Each
file is keyed by the epoch of its first satellite; as the simulated instant
moves, the newest file whose epoch is not after the instant becomes active
and the roster is reloaded from it.
"""

import bisect
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, Tuple

from orbit_engine.time_system import as_utc
from orbit_engine.tle_parser import TLEParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TleFile:
    """An uploaded TLE file and the epoch of its first satellite."""
    filename: str
    content: str
    epoch: datetime


@dataclass(frozen=True)
class TimeSlicedFileSet:
    """TLE files sorted by ascending epoch."""
    files: Tuple[TleFile, ...]

    def __len__(self) -> int:
        return len(self.files)

    def __getitem__(self, index: int) -> TleFile:
        return self.files[index]

    @property
    def epochs(self) -> Tuple[datetime, ...]:
        return tuple(f.epoch for f in self.files)

    @classmethod
    def from_contents(cls, contents: Iterable[Tuple[str, str]],
                      parser: Optional[TLEParser] = None) -> "TimeSlicedFileSet":
        """
        Build a file set from (filename, content) pairs.

        Files whose first satellite cannot be parsed are dropped.
        """
        parser = parser or TLEParser()
        files = []
        for filename, content in contents:
            epoch = parser.first_epoch(content)
            if epoch is None:
                logger.warning(f"Skipping {filename}: no parsable TLE found")
                continue
            files.append(TleFile(filename, content, epoch))

        files.sort(key=lambda f: f.epoch)
        logger.info(f"Loaded {len(files)} TLE file(s) into time-sliced set")
        return cls(tuple(files))


def select_active_file(file_set: TimeSlicedFileSet, instant: datetime) -> int:
    """
    Index of the file active at ``instant``.

    The largest index whose epoch is at or before the instant, clamped to
    the first file when the instant precedes every epoch. Any sequence with
    ascending ``epochs`` works, such as a ``ShortestPathSchedule``.

    Raises:
        ValueError: The file set is empty
    """
    if len(file_set) == 0:
        raise ValueError("Cannot select a file from an empty file set")

    index = bisect.bisect_right(file_set.epochs, as_utc(instant)) - 1
    return min(max(index, 0), len(file_set) - 1)


class FileSwitcher:
    """
    Reloads the roster when the active file changes.

    Args:
        file_set: Files to switch between
        loader: Called with the newly active file
    """

    def __init__(self, file_set: TimeSlicedFileSet, loader: Callable[[TleFile], None]):
        self.file_set = file_set
        self.loader = loader
        self.current_index: Optional[int] = None

    @property
    def earliest_epoch(self) -> Optional[datetime]:
        if len(self.file_set) == 0:
            return None
        return self.file_set[0].epoch

    @property
    def current_file(self) -> Optional[TleFile]:
        if self.current_index is None:
            return None
        return self.file_set[self.current_index]

    def check_and_switch(self, instant: datetime) -> bool:
        """
        Activate the file for ``instant`` if it differs from the current one.

        Returns:
            True when a different file was loaded
        """
        if len(self.file_set) == 0:
            return False

        index = select_active_file(self.file_set, instant)
        if index == self.current_index:
            return False

        tle_file = self.file_set[index]
        logger.info(f"Switching to TLE file {tle_file.filename} (epoch {tle_file.epoch.isoformat()})")
        self.loader(tle_file)
        self.current_index = index
        return True
