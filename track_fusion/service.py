"""
Track Fusion Service

Wires configuration, the track table, the feed clients and the periodic
maintenance sweep together, and owns their start/stop lifecycle.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from .ais_receiver import AISUDPReceiver
from .config import FusionConfig
from .display import to_export_dict
from .dump1090_reader import Dump1090JSONReader
from .message_source import Client
from .sbs_client import SBSTCPClient
from .track import Airport, BaseStation
from .track_table import TrackTable

logger = logging.getLogger(__name__)


class FusionService:
    """Runs every configured feed into one shared track table"""

    def __init__(self, config: FusionConfig):
        self.config = config
        self.track_table = TrackTable(drop_times_sec=config.tracking.drop_times(),
                                      history_length_sec=config.tracking.position_history_sec)
        self.clients: List[Client] = []
        self.running = False

        self._stop_event = threading.Event()
        self._maintenance_thread: Optional[threading.Thread] = None

        self._load_static_tracks()
        self._create_clients()

    def _load_static_tracks(self) -> None:
        for airport_config in self.config.airports:
            airport = Airport.create(airport_config.name, airport_config.lat, airport_config.lon,
                                     airport_config.icao_code)
            self.track_table.put(airport.id, airport)

        for station_config in self.config.base_stations:
            station = BaseStation.create(station_config.name, station_config.lat, station_config.lon)
            self.track_table.put(station.id, station)

        logger.info(f"Loaded {len(self.config.airports)} airports and "
                    f"{len(self.config.base_stations)} base stations")

    def _create_clients(self) -> None:
        if self.config.ais.enabled:
            self.clients.append(AISUDPReceiver("ais_udp", self.config.ais.udp_port, self.track_table,
                                               bind_host=self.config.ais.bind_host))

        for source in self.config.sbs_sources:
            if source.enabled:
                self.clients.append(SBSTCPClient(source.name, source.host, source.port,
                                                 self.track_table, mlat=source.mlat))

        for source in self.config.dump1090_sources:
            if source.enabled:
                self.clients.append(Dump1090JSONReader(source.name, source.url, self.track_table,
                                                       query_interval_sec=source.query_interval_sec))

    def start(self) -> None:
        """Start every client and the maintenance thread"""
        logger.info("Starting track fusion service")
        self.running = True
        self._stop_event.clear()

        for client in self.clients:
            try:
                client.run()
                logger.info(f"Started {client.get_data_type()} client: {client.name}")
            except Exception as e:
                logger.error(f"Failed to start client {client.name}: {e}")

        self._maintenance_thread = threading.Thread(target=self._maintenance_worker,
                                                    name="TrackMaintenance", daemon=True)
        self._maintenance_thread.start()

    def stop(self) -> None:
        """Stop every client and the maintenance thread"""
        logger.info("Stopping track fusion service")
        self.running = False
        self._stop_event.set()

        for client in self.clients:
            try:
                client.stop()
            except Exception as e:
                logger.error(f"Error stopping client {client.name}: {e}")

        if self._maintenance_thread and self._maintenance_thread.is_alive():
            self._maintenance_thread.join(timeout=5)

        logger.info("Track fusion service stopped")

    def run_maintenance(self) -> Dict[str, int]:
        """One maintenance pass: prune histories, then drop stale live tracks."""
        pruned = self.track_table.prune_histories()
        dropped = self.track_table.cull_old_data()
        return {'samples_pruned': pruned, 'tracks_dropped': dropped}

    def _maintenance_worker(self) -> None:
        interval = self.config.tracking.maintenance_interval_sec
        while not self._stop_event.wait(interval):
            try:
                self.run_maintenance()
            except Exception as e:
                logger.error(f"Maintenance pass failed: {e}")

    def export_tracks(self) -> List[Dict[str, Any]]:
        """Enriched snapshot of every track for exporters."""
        return [to_export_dict(track) for track in self.track_table.values()]

    def get_status(self) -> Dict[str, Any]:
        return {
            'running': self.running,
            'tracks': self.track_table.get_statistics(),
            'clients': [client.get_status() for client in self.clients],
        }
