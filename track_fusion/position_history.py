"""
Position History

Time-ordered store of position samples for a single track, pruned to a
retention window that depends on the kind of track.
"""

import bisect
import threading
import time
from dataclasses import dataclass
from typing import List, Optional


# Default retention for most track kinds: one hour
DEFAULT_HISTORY_LENGTH_SEC = 60 * 60


@dataclass(frozen=True, order=True)
class PositionSample:
    """A single timestamped position fix (epoch seconds, degrees)."""
    time: float
    latitude: float
    longitude: float


class PositionHistory:
    """
    Ordered sequence of position samples for one track

    Samples are kept sorted by time regardless of arrival order, so an
    out-of-order or duplicate timestamp never corrupts the ordering of
    samples already stored. All access is guarded by a per-history lock
    because several ingestion threads may update the same track.
    """

    def __init__(self, history_length_sec: float = DEFAULT_HISTORY_LENGTH_SEC):
        """
        Initialize position history

        Args:
            history_length_sec: Retention window in seconds
        """
        self.history_length_sec = history_length_sec
        self._samples: List[PositionSample] = []
        self._times: List[float] = []
        self._lock = threading.Lock()

    def set_history_length(self, history_length_sec: float) -> None:
        self.history_length_sec = history_length_sec

    def add(self, latitude: float, longitude: float, timestamp: Optional[float] = None) -> PositionSample:
        """
        Add a position sample

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees
            timestamp: Sample time in epoch seconds (default: now)

        Returns:
            The stored sample
        """
        sample = PositionSample(time.time() if timestamp is None else timestamp,
                                float(latitude), float(longitude))
        with self._lock:
            # bisect_right keeps equal timestamps in arrival order
            index = bisect.bisect_right(self._times, sample.time)
            self._times.insert(index, sample.time)
            self._samples.insert(index, sample)
        return sample

    def prune(self, now: Optional[float] = None, keep_latest: bool = False) -> int:
        """
        Drop samples older than the retention window

        Args:
            now: Reference time in epoch seconds (default: now)
            keep_latest: Never drop the newest sample (used for fixed tracks)

        Returns:
            Number of samples removed
        """
        cutoff = (time.time() if now is None else now) - self.history_length_sec
        with self._lock:
            index = bisect.bisect_left(self._times, cutoff)
            if keep_latest and index >= len(self._samples):
                index = len(self._samples) - 1
            if index <= 0:
                return 0
            del self._times[:index]
            del self._samples[:index]
            return index

    def latest(self) -> Optional[PositionSample]:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def snapshot(self) -> List[PositionSample]:
        """Copy of all samples, oldest first."""
        with self._lock:
            return list(self._samples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def __bool__(self) -> bool:
        return len(self) > 0
