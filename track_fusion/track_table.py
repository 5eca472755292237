"""
Track Table Module

Concurrency-safe store of every live and static track, keyed by the
protocol-native identifier (MMSI or ICAO hex). Ingestion threads write to it
concurrently; exporters and the maintenance sweep read snapshots of it.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from .track import Track, TrackType

logger = logging.getLogger(__name__)


# Drop times used when no configuration is supplied
DEFAULT_DROP_TIMES_SEC: Dict[TrackType, float] = {
    TrackType.AIRCRAFT: 300,
    TrackType.SHIP: 1200,
    TrackType.AIS_TRACK_GENERIC: 1200,
    TrackType.APRS_TRACK: 1200,
}


class TrackTable:
    """
    Manages track lifecycle and first-sighting creation

    Reads and single-key writes go straight to the underlying dict. Creating a
    track for a new identifier takes one of a fixed set of lock stripes chosen
    by the identifier, so two threads sighting the same new identifier agree on
    a single Track object without serialising unrelated identifiers.
    """

    def __init__(self, drop_times_sec: Optional[Dict[TrackType, float]] = None,
                 history_length_sec: Optional[float] = None, lock_stripes: int = 64):
        """
        Initialize track table

        Args:
            drop_times_sec: Seconds of silence after which a live track of each
                type is removed; types not listed are never dropped
            history_length_sec: Retention window applied to new tracks that use
                the default window (APRS tracks keep their own)
            lock_stripes: Number of creation locks
        """
        self._tracks: Dict[str, Track] = {}
        self._stripes = [threading.Lock() for _ in range(max(1, lock_stripes))]
        self.drop_times_sec = dict(DEFAULT_DROP_TIMES_SEC if drop_times_sec is None else drop_times_sec)
        self.history_length_sec = history_length_sec

        self.stats = {
            'tracks_created': 0,
            'tracks_dropped': 0,
            'samples_pruned': 0,
        }
        self._stats_lock = threading.Lock()

    def _stripe(self, track_id: str) -> threading.Lock:
        return self._stripes[hash(track_id) % len(self._stripes)]

    def _prepare(self, track: Track) -> None:
        if self.history_length_sec is not None and track.track_type != TrackType.APRS_TRACK:
            track.position_history.set_history_length(self.history_length_sec)

    def contains_key(self, track_id: str) -> bool:
        return track_id in self._tracks

    def get(self, track_id: str) -> Optional[Track]:
        return self._tracks.get(track_id)

    def put(self, track_id: str, track: Track) -> Track:
        """
        Insert a track unless one already exists for the identifier

        Args:
            track_id: Track identifier
            track: Track to insert

        Returns:
            The track now stored under the identifier (the existing one if the
            key was already present)
        """
        return self.get_or_create(track_id, lambda: track)

    def get_or_create(self, track_id: str, factory: Callable[[], Track]) -> Track:
        """
        Get the track for an identifier, creating it on first sighting

        The factory runs at most once per identifier, however many threads
        race on the first message for it.

        Args:
            track_id: Track identifier
            factory: Zero-argument callable building the new track

        Returns:
            The stored track
        """
        track = self._tracks.get(track_id)
        if track is not None:
            return track

        with self._stripe(track_id):
            track = self._tracks.get(track_id)
            if track is None:
                track = factory()
                self._prepare(track)
                self._tracks[track_id] = track
                with self._stats_lock:
                    self.stats['tracks_created'] += 1
                logger.debug(f"Created new track: {track_id} ({track.track_type.value})")
        return track

    def remove(self, track_id: str) -> Optional[Track]:
        with self._stripe(track_id):
            return self._tracks.pop(track_id, None)

    def values(self) -> List[Track]:
        """Snapshot of all tracks, safe to iterate while ingestion continues."""
        return list(self._tracks.copy().values())

    def items(self) -> List[Tuple[str, Track]]:
        return list(self._tracks.copy().items())

    def prune_histories(self, now: Optional[float] = None) -> int:
        """
        Trim every track's position history to its retention window

        Fixed tracks always keep their most recent sample.

        Returns:
            Number of samples removed
        """
        now = time.time() if now is None else now
        removed = sum(t.position_history.prune(now, keep_latest=t.fixed) for t in self.values())
        with self._stats_lock:
            self.stats['samples_pruned'] += removed
        return removed

    def cull_old_data(self, now: Optional[float] = None) -> int:
        """
        Remove live tracks that have gone silent

        Tracks created from configuration are never removed, and nor are
        fixed tracks or types with no configured drop time.

        Args:
            now: Reference time in epoch seconds (default: now)

        Returns:
            Number of tracks removed
        """
        now = time.time() if now is None else now
        candidates = [track_id for track_id, track in self.items() if self._is_stale(track, now)]

        dropped = 0
        for track_id in candidates:
            # A report may have refreshed the track since the scan
            with self._stripe(track_id):
                track = self._tracks.get(track_id)
                if track is None or not self._is_stale(track, now):
                    continue
                del self._tracks[track_id]
            dropped += 1
            logger.debug(f"Dropped stale track: {track_id}")

        if dropped:
            with self._stats_lock:
                self.stats['tracks_dropped'] += dropped
            logger.info(f"Dropped {dropped} stale tracks")
        return dropped

    def _is_stale(self, track: Track, now: float) -> bool:
        if track.created_by_config or track.fixed:
            return False
        drop_time = self.drop_times_sec.get(track.track_type)
        if drop_time is None:
            return False
        # A track that never received a usable update has nothing to show
        age = track.age_seconds(now)
        return age is None or age > drop_time

    def get_statistics(self) -> Dict[str, int]:
        """Get table statistics"""
        with self._stats_lock:
            current_stats = self.stats.copy()
        tracks = self.values()
        current_stats['current_track_count'] = len(tracks)
        for track_type in TrackType:
            current_stats[f'{track_type.value.lower()}_count'] = sum(
                1 for t in tracks if t.track_type == track_type)
        return current_stats

    def __contains__(self, track_id: str) -> bool:
        return self.contains_key(track_id)

    def __len__(self) -> int:
        return len(self._tracks)
