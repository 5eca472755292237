"""
Dump1090 JSON Reader

Polls the ``aircraft.json`` file served by dump1090 (and its forks) and merges
each aircraft entry into the track table.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional

import requests

from .message_source import Client
from .track import Aircraft
from .track_table import TrackTable

logger = logging.getLogger(__name__)

DATA_TYPE_DUMP1090_JSON = "Dump1090 JSON data"
QUERY_INTERVAL_SEC = 5.0
MACH_TO_KNOTS = 666.739

# Altitude keys in order of preference
ALTITUDE_KEYS = ('altitude', 'alt_baro', 'alt_geom', 'nav_altitude_mcp')


def _first(entry: Dict[str, Any], *keys: str) -> Optional[Any]:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


class Dump1090JSONReader(Client):
    """Polls a dump1090 JSON endpoint on its own thread"""

    def __init__(self, name: str, url: str, track_table: TrackTable,
                 query_interval_sec: float = QUERY_INTERVAL_SEC,
                 session: Optional[requests.Session] = None):
        """
        Initialize reader

        Args:
            name: Human-readable name for this source
            url: URL of dump1090's aircraft.json
            track_table: Track table to update
            query_interval_sec: Seconds between polls
            session: Optional requests session (default: a new one)
        """
        super().__init__(name, track_table)
        self.url = url
        self.query_interval_sec = query_interval_sec
        self.session = session or requests.Session()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run(self) -> None:
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_worker, name=f"Dump1090JSON-{self.name}",
                                        daemon=True)
        self._thread.start()

    def stop(self) -> None:
        logger.info(f"Stopping dump1090 JSON reader {self.name}")
        self._stop_event.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.query_interval_sec * 2 + 5)

    def get_data_type(self) -> str:
        return DATA_TYPE_DUMP1090_JSON

    def get_timeout_millis(self) -> int:
        return int(self.query_interval_sec * 2 * 1000)

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status['url'] = self.url
        return status

    def _poll_worker(self) -> None:
        logger.info(f"Polling dump1090 JSON data from {self.url}")
        while not self._stop_event.is_set():
            self.poll()
            self._stop_event.wait(self.query_interval_sec)

    def poll(self) -> int:
        """
        Fetch and apply one aircraft.json snapshot

        Returns:
            Number of aircraft entries applied
        """
        try:
            response = self.session.get(self.url, timeout=self.query_interval_sec * 2)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            self.error_count += 1
            logger.error(f"Exception reading dump1090 JSON data on connection {self.name}: {e}")
            return 0

        self.update_packet_received_time()
        applied = 0
        for entry in data.get('aircraft') or []:
            try:
                self.handle_aircraft(entry)
                applied += 1
            except Exception as e:
                self.error_count += 1
                logger.warning(f"Exception reading data for an aircraft ({entry.get('hex')}): {e}")
        return applied

    def handle_aircraft(self, entry: Dict[str, Any], now: Optional[float] = None) -> Aircraft:
        """
        Merge one aircraft entry into the track table

        Args:
            entry: One element of the ``aircraft`` array
            now: Reference time in epoch seconds (default: now)

        Returns:
            The updated aircraft
        """
        now = time.time() if now is None else now
        icao_hex = str(entry['hex']).strip()
        aircraft = self.track_table.get_or_create(icao_hex, lambda: Aircraft(id=icao_hex))

        flight = entry.get('flight')
        if flight and flight.strip():
            aircraft.callsign = flight.strip()

        squawk = entry.get('squawk')
        if squawk is not None:
            aircraft.squawk = int(squawk)

        category = entry.get('category')
        if category and category.strip():
            aircraft.category = category.strip()

        # readsb adds the ICAO type designator when its database knows the airframe
        aircraft_type = entry.get('t')
        if aircraft_type and aircraft_type.strip():
            aircraft.aircraft_type = aircraft_type.strip()

        seen = _first(entry, 'seen_pos', 'pos_seen', 'seen')
        if entry.get('lat') is not None and entry.get('lon') is not None:
            timestamp = now - float(seen) if seen is not None else now
            aircraft.add_position(float(entry['lat']), float(entry['lon']), timestamp)

        for key in ALTITUDE_KEYS:
            altitude = entry.get(key)
            if altitude is None:
                continue
            if altitude == "ground":
                aircraft.altitude = 0.0
                aircraft.on_ground = True
            else:
                aircraft.altitude = float(altitude)
                aircraft.on_ground = False
            break

        # dump1090 reports vertical rate in feet per minute
        vertical_rate = _first(entry, 'vert_rate', 'baro_rate', 'geom_rate')
        if vertical_rate is not None:
            aircraft.vertical_rate = float(vertical_rate) / 60.0

        course = _first(entry, 'track', 'true_heading', 'mag_heading', 'nav_heading')
        if course is not None:
            aircraft.course = float(course)

        heading = _first(entry, 'true_heading', 'mag_heading', 'nav_heading', 'track')
        if heading is not None:
            aircraft.heading = float(heading)

        speed = _first(entry, 'gs', 'tas', 'ias')
        if speed is None and entry.get('mach') is not None:
            speed = float(entry['mach']) * MACH_TO_KNOTS
        if speed is not None:
            aircraft.speed = float(speed)

        aircraft.update_metadata_time(now - float(seen) if seen is not None else now)
        return aircraft
