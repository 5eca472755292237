"""
Track Data Structures

Provides the track entity shared by every feed (AIS, SBS, dump1090 JSON) and
the kind-specific variants: aircraft, ships, APRS tracks, and the static
airports and base stations created from configuration.
"""

import itertools
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .position_history import PositionHistory, PositionSample

logger = logging.getLogger(__name__)


class TrackType(Enum):
    """Classification of a track"""
    AIRCRAFT = "AIRCRAFT"
    SHIP = "SHIP"
    AIS_ATON = "AIS_ATON"
    AIS_SHORE_STATION = "AIS_SHORE_STATION"
    AIS_TRACK_GENERIC = "AIS_TRACK_GENERIC"
    APRS_TRACK = "APRS_TRACK"
    AIRPORT = "AIRPORT"
    BASE_STATION = "BASE_STATION"


# MIL-STD-2525C style symbol codes, all 12 characters
DEFAULT_SYMBOLS: Dict[TrackType, str] = {
    TrackType.AIRCRAFT: "SUAP--------",
    TrackType.SHIP: "SUSP--------",
    TrackType.AIS_ATON: "SUSPXN------",
    TrackType.AIS_SHORE_STATION: "SFGPUUS-----",
    TrackType.AIS_TRACK_GENERIC: "SUSP--------",
    TrackType.APRS_TRACK: "SFGPU-------",
    TrackType.AIRPORT: "SFGPIBA---H-",
    TrackType.BASE_STATION: "SFGPUUS-----",
}

APRS_HISTORY_LENGTH_SEC = 60 * 60


@dataclass(eq=False)
class Track:
    """
    Base track record

    Every field other than ``id`` is optional and is only ever written when
    a message supplies a usable value for it; handlers never clear a field
    because a message left it out.
    """

    id: str
    track_type: TrackType = TrackType.AIS_TRACK_GENERIC
    symbol_code: str = ""

    # Identification
    name: Optional[str] = None
    callsign: Optional[str] = None

    # Kinematics
    course: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None
    altitude: Optional[float] = None
    vertical_rate: Optional[float] = None
    on_ground: Optional[bool] = None

    # Aircraft / ship specifics
    squawk: Optional[int] = None
    nav_status: Optional[int] = None
    destination: Optional[str] = None
    ship_type: Optional[int] = None

    # Flags
    fixed: bool = False
    shore_station: bool = False
    created_by_config: bool = False

    # Epoch seconds; None until the first update of that kind
    last_update_time: Optional[float] = None
    metadata_update_time: Optional[float] = None

    position_history: PositionHistory = field(default_factory=PositionHistory, repr=False)

    def __post_init__(self):
        if not self.symbol_code:
            self.symbol_code = DEFAULT_SYMBOLS[self.track_type]

    def __setattr__(self, key: str, value: Any) -> None:
        if key == "id" and "id" in self.__dict__:
            raise AttributeError(f"Track id is immutable ({self.id})")
        super().__setattr__(key, value)

    def set_track_type(self, track_type: TrackType) -> None:
        """Reclassify the track, switching to that type's default symbol."""
        if track_type != self.track_type:
            logger.debug(f"Track {self.id} reclassified {self.track_type.value} -> {track_type.value}")
            self.track_type = track_type
            self.symbol_code = DEFAULT_SYMBOLS[track_type]

    def set_fixed(self, fixed: bool = True) -> None:
        # Once fixed, always fixed
        if fixed:
            self.fixed = True

    def add_position(self, latitude: float, longitude: float,
                     timestamp: Optional[float] = None) -> PositionSample:
        """
        Append a position sample to the history

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees
            timestamp: Time of the fix in epoch seconds (default: now)

        Returns:
            The stored sample
        """
        sample = self.position_history.add(latitude, longitude, timestamp)
        if self.last_update_time is None or sample.time > self.last_update_time:
            self.last_update_time = sample.time
        return sample

    def update_metadata_time(self, timestamp: Optional[float] = None) -> None:
        self.metadata_update_time = time.time() if timestamp is None else timestamp

    @property
    def position(self) -> Optional[PositionSample]:
        return self.position_history.latest()

    def has_position(self) -> bool:
        return self.position is not None

    def last_seen(self) -> Optional[float]:
        """Most recent of the position and metadata update times."""
        times = [t for t in (self.last_update_time, self.metadata_update_time) if t is not None]
        return max(times) if times else None

    def age_seconds(self, now: Optional[float] = None) -> Optional[float]:
        seen = self.last_seen()
        if seen is None:
            return None
        return (time.time() if now is None else now) - seen

    def get_display_name(self) -> str:
        """Name if known, then callsign, then the raw identifier."""
        if self.name:
            return self.name
        if self.callsign:
            return self.callsign
        return self.id

    def to_api_dict(self) -> Dict[str, Any]:
        """
        Snapshot of the track for exporters

        Returns:
            Plain dictionary; mutating it does not affect the track
        """
        position = self.position
        return {
            'id': self.id,
            'track_type': self.track_type.value,
            'symbol': self.symbol_code,
            'name': self.get_display_name(),
            'callsign': self.callsign,
            'lat': position.latitude if position else None,
            'lon': position.longitude if position else None,
            'history': [[s.time, s.latitude, s.longitude] for s in self.position_history.snapshot()],
            'course': self.course,
            'heading': self.heading,
            'speed': self.speed,
            'altitude': self.altitude,
            'vertical_rate': self.vertical_rate,
            'on_ground': self.on_ground,
            'squawk': self.squawk,
            'nav_status': self.nav_status,
            'destination': self.destination,
            'ship_type': self.ship_type,
            'fixed': self.fixed,
            'shore_station': self.shore_station,
            'created_by_config': self.created_by_config,
            'last_update_time': self.last_update_time,
            'metadata_update_time': self.metadata_update_time,
        }

    def __str__(self) -> str:
        return f"{self.track_type.value}({self.get_display_name()})"


@dataclass(eq=False)
class Aircraft(Track):
    """Aircraft identified by its ICAO 24-bit hex address"""
    track_type: TrackType = TrackType.AIRCRAFT
    category: Optional[str] = None
    aircraft_type: Optional[str] = None

    def to_api_dict(self) -> Dict[str, Any]:
        api_dict = super().to_api_dict()
        api_dict['category'] = self.category
        api_dict['aircraft_type'] = self.aircraft_type
        return api_dict


@dataclass(eq=False)
class Ship(Track):
    """AIS-reporting entity identified by MMSI; a vessel until proven otherwise"""
    track_type: TrackType = TrackType.SHIP

    @classmethod
    def from_mmsi(cls, mmsi: int) -> 'Ship':
        return cls(id=str(mmsi))


@dataclass(eq=False)
class APRSTrack(Track):
    track_type: TrackType = TrackType.APRS_TRACK

    def __post_init__(self):
        super().__post_init__()
        self.position_history.set_history_length(APRS_HISTORY_LENGTH_SEC)


_airport_ids = itertools.count()
_base_station_ids = itertools.count()


@dataclass(eq=False)
class Airport(Track):
    """Static airport marker created from configuration"""
    track_type: TrackType = TrackType.AIRPORT
    icao_code: Optional[str] = None

    @classmethod
    def create(cls, name: str, latitude: float, longitude: float,
               icao_code: Optional[str] = None) -> 'Airport':
        airport = cls(id=f"AIRPORT-{next(_airport_ids)}", name=name, icao_code=icao_code,
                      fixed=True, created_by_config=True)
        airport.add_position(latitude, longitude)
        return airport

    def to_api_dict(self) -> Dict[str, Any]:
        api_dict = super().to_api_dict()
        api_dict['icao_code'] = self.icao_code
        return api_dict


@dataclass(eq=False)
class BaseStation(Track):
    """Receiver site marker created from configuration"""
    track_type: TrackType = TrackType.BASE_STATION

    @classmethod
    def create(cls, name: str, latitude: float, longitude: float) -> 'BaseStation':
        station = cls(id=f"BASESTATION-{next(_base_station_ids)}", name=name,
                      fixed=True, created_by_config=True)
        station.add_position(latitude, longitude)
        return station
