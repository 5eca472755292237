"""
SBS Message Handler

Parses SBS ("BaseStation") format lines, as output by dump1090 on port 30003
for directly received messages and by MLAT servers in the same format, and
merges them into the track table.
"""

import logging
from typing import List, Optional

from .track import Aircraft, Track
from .track_table import TrackTable

logger = logging.getLogger(__name__)


# Field indices in an SBS line
FIELD_MESSAGE_TYPE = 0
FIELD_ICAO = 4
FIELD_CALLSIGN = 10
FIELD_ALTITUDE = 11
FIELD_SPEED = 12
FIELD_COURSE = 13
FIELD_LATITUDE = 14
FIELD_LONGITUDE = 15
FIELD_VERTICAL_RATE = 16
FIELD_SQUAWK = 17
FIELD_ON_GROUND = 21


def _field(fields: List[str], index: int) -> Optional[str]:
    """Trimmed field value, or None if the line is too short or it is blank."""
    if len(fields) <= index:
        return None
    value = fields[index].strip()
    return value or None


class SBSMessageHandler:
    """
    Merges SBS lines into the track table

    Every exception raised while handling a line is logged along with the
    line and swallowed, so a bad line never stops the connection reading it.
    """

    def __init__(self, track_table: TrackTable, data_type: str = "SBS format data"):
        """
        Initialize handler

        Args:
            track_table: Track table to update
            data_type: Source label used in log messages
        """
        self.track_table = track_table
        self.data_type = data_type
        self.stats = {
            'lines_handled': 0,
            'lines_ignored': 0,
            'lines_failed': 0,
        }

    def handle(self, line: str) -> Optional[Track]:
        """
        Handle one line of SBS data

        Args:
            line: A single CSV line, with or without its line terminator

        Returns:
            The updated aircraft, or None if the line was discarded
        """
        try:
            return self._handle(line)
        except Exception as e:
            self.stats['lines_failed'] += 1
            logger.warning(f"{self.data_type} encountered an exception handling line {line!r}: {e}")
            return None

    def _handle(self, line: str) -> Optional[Track]:
        fields = line.rstrip('\r\n').split(',')
        if len(fields) <= FIELD_ICAO:
            raise ValueError(f"expected at least {FIELD_ICAO + 1} fields, got {len(fields)}")

        icao_hex = fields[FIELD_ICAO].strip()
        if not icao_hex:
            raise ValueError("missing ICAO hex identifier")

        aircraft = self.track_table.get_or_create(icao_hex, lambda: Aircraft(id=icao_hex))

        if fields[FIELD_MESSAGE_TYPE] != "MSG":
            self.stats['lines_ignored'] += 1
            return aircraft

        callsign = _field(fields, FIELD_CALLSIGN)
        if callsign is not None:
            aircraft.callsign = callsign

        altitude = _field(fields, FIELD_ALTITUDE)
        if altitude is not None:
            aircraft.altitude = float(altitude)

        speed = _field(fields, FIELD_SPEED)
        if speed is not None:
            aircraft.speed = float(speed)

        course = _field(fields, FIELD_COURSE)
        if course is not None:
            # SBS never gives a separate heading, so course stands in for it
            aircraft.course = float(course)
            aircraft.heading = float(course)

        latitude = _field(fields, FIELD_LATITUDE)
        longitude = _field(fields, FIELD_LONGITUDE)
        if latitude is not None and longitude is not None:
            aircraft.add_position(float(latitude), float(longitude))

        vertical_rate = _field(fields, FIELD_VERTICAL_RATE)
        if vertical_rate is not None:
            aircraft.vertical_rate = float(vertical_rate)

        squawk = _field(fields, FIELD_SQUAWK)
        if squawk is not None:
            aircraft.squawk = int(squawk)

        on_ground = _field(fields, FIELD_ON_GROUND)
        if on_ground is not None:
            aircraft.on_ground = on_ground != "0"

        aircraft.update_metadata_time()
        self.stats['lines_handled'] += 1
        return aircraft
