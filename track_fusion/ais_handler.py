"""
AIS Message Handler

Applies decoded AIS reports (pyais message objects) onto the track table.
Each report type only carries part of a track's attributes, so every handler
below writes just the fields its report supplies.
"""

import logging
from typing import Any, Callable, Dict, Optional

from .track import Ship, Track, TrackType
from .track_table import TrackTable

logger = logging.getLogger(__name__)


# AIS "not available" values
COURSE_HEADING_UNAVAILABLE = 511
COURSE_UNAVAILABLE_DEGREES = 360.0
SPEED_UNAVAILABLE_KNOTS = 102.3
# Type 27 carries speed in whole knots, 0-62, with 63 for "not available"
LONG_RANGE_SPEED_UNAVAILABLE_KNOTS = 63
LATITUDE_UNAVAILABLE = 91.0
LONGITUDE_UNAVAILABLE = 181.0


def valid_course(value: Any) -> bool:
    """Course is usable unless missing, 511, or pyais's 360.0 for "no COG"."""
    if value is None:
        return False
    return value != COURSE_HEADING_UNAVAILABLE and value != COURSE_UNAVAILABLE_DEGREES


def valid_heading(value: Any) -> bool:
    return value is not None and value != COURSE_HEADING_UNAVAILABLE


def valid_speed(value: Any, unavailable: float = SPEED_UNAVAILABLE_KNOTS) -> bool:
    return value is not None and value != unavailable


def valid_position(lat: Any, lon: Any) -> bool:
    if lat is None or lon is None:
        return False
    return lat != LATITUDE_UNAVAILABLE and lon != LONGITUDE_UNAVAILABLE


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim AIS six-bit text; padding-only or empty strings count as absent."""
    if value is None:
        return None
    text = value.replace('@', ' ').strip()
    return text or None


class AISMessageHandler:
    """
    Merges AIS reports into the track table

    Every MMSI is assumed to be a ship until a report says otherwise (an aid
    to navigation or a base station).
    """

    def __init__(self, track_table: TrackTable):
        """
        Initialize handler

        Args:
            track_table: Track table to update
        """
        self.track_table = track_table
        self._handlers: Dict[int, Callable[[Track, Any], None]] = {
            1: self._handle_class_a_position,
            2: self._handle_class_a_position,
            3: self._handle_class_a_position,
            4: self._handle_base_station,
            5: self._handle_ship_and_voyage,
            18: self._handle_standard_class_b_position,
            19: self._handle_extended_class_b_position,
            21: self._handle_aid_to_navigation,
            24: self._handle_class_b_static_data,
            27: self._handle_long_range_broadcast,
        }
        self.stats = {
            'messages_handled': 0,
            'messages_ignored': 0,
        }

    def handle(self, message: Any) -> Optional[Track]:
        """
        Apply one decoded AIS message

        Args:
            message: Decoded message exposing ``msg_type`` and ``mmsi``

        Returns:
            The track the message was applied to, or None if the message
            type carries nothing of interest
        """
        mmsi = int(message.mmsi)
        track = self.track_table.get_or_create(str(mmsi), lambda: Ship.from_mmsi(mmsi))

        handler = self._handlers.get(message.msg_type)
        if handler is None:
            self.stats['messages_ignored'] += 1
            logger.debug(f"Ignoring AIS message type {message.msg_type} from {mmsi}")
            return None

        handler(track, message)
        track.update_metadata_time()
        self.stats['messages_handled'] += 1
        return track

    # Field helpers

    @staticmethod
    def _set_position(track: Track, message: Any) -> None:
        lat = getattr(message, 'lat', None)
        lon = getattr(message, 'lon', None)
        if valid_position(lat, lon):
            track.add_position(lat, lon)

    @staticmethod
    def _set_course_and_heading(track: Track, message: Any, heading: bool = True) -> None:
        course = getattr(message, 'course', None)
        if valid_course(course):
            track.course = course
        if heading:
            true_heading = getattr(message, 'heading', None)
            if valid_heading(true_heading):
                track.heading = true_heading

    @staticmethod
    def _set_speed(track: Track, message: Any, unavailable: float = SPEED_UNAVAILABLE_KNOTS) -> None:
        speed = getattr(message, 'speed', None)
        if valid_speed(speed, unavailable):
            track.speed = speed

    @staticmethod
    def _set_nav_status(track: Track, message: Any) -> None:
        status = getattr(message, 'status', None)
        if status is not None:
            track.nav_status = int(status)

    @staticmethod
    def _set_ship_type(track: Track, message: Any) -> None:
        ship_type = getattr(message, 'ship_type', None)
        if ship_type is not None:
            track.ship_type = int(ship_type)

    @staticmethod
    def _set_name(track: Track, value: Optional[str]) -> None:
        name = clean_text(value)
        if name:
            track.name = name

    @staticmethod
    def _set_callsign(track: Track, value: Optional[str]) -> None:
        callsign = clean_text(value)
        if callsign:
            track.callsign = callsign

    # Per-type handlers

    def _handle_aid_to_navigation(self, track: Track, message: Any) -> None:
        self._set_name(track, getattr(message, 'name', None))
        self._set_position(track, message)
        track.set_track_type(TrackType.AIS_ATON)
        track.set_fixed()

    def _handle_base_station(self, track: Track, message: Any) -> None:
        track.shore_station = True
        self._set_position(track, message)
        track.set_track_type(TrackType.AIS_SHORE_STATION)
        track.set_fixed()

    def _handle_class_b_static_data(self, track: Track, message: Any) -> None:
        # Part A carries the name, part B the callsign and ship type
        self._set_name(track, getattr(message, 'shipname', None))
        self._set_callsign(track, getattr(message, 'callsign', None))
        self._set_ship_type(track, message)
        track.set_track_type(TrackType.SHIP)

    def _handle_extended_class_b_position(self, track: Track, message: Any) -> None:
        self._set_name(track, getattr(message, 'shipname', None))
        self._set_position(track, message)
        self._set_course_and_heading(track, message)
        self._set_speed(track, message)
        track.set_track_type(TrackType.SHIP)

    def _handle_long_range_broadcast(self, track: Track, message: Any) -> None:
        self._set_position(track, message)
        self._set_course_and_heading(track, message, heading=False)
        self._set_speed(track, message, LONG_RANGE_SPEED_UNAVAILABLE_KNOTS)
        self._set_nav_status(track, message)
        track.set_track_type(TrackType.SHIP)

    def _handle_class_a_position(self, track: Track, message: Any) -> None:
        self._set_position(track, message)
        self._set_course_and_heading(track, message)
        self._set_speed(track, message)
        self._set_nav_status(track, message)
        track.set_track_type(TrackType.SHIP)

    def _handle_ship_and_voyage(self, track: Track, message: Any) -> None:
        self._set_name(track, getattr(message, 'shipname', None))
        self._set_callsign(track, getattr(message, 'callsign', None))
        self._set_ship_type(track, message)
        destination = clean_text(getattr(message, 'destination', None))
        if destination:
            track.destination = destination
        track.set_track_type(TrackType.SHIP)

    def _handle_standard_class_b_position(self, track: Track, message: Any) -> None:
        self._set_position(track, message)
        self._set_course_and_heading(track, message)
        self._set_speed(track, message)
        track.set_track_type(TrackType.SHIP)
