"""
Track Fusion

Ingests AIS (NMEA-0183 over UDP) and SBS/BaseStation (CSV over TCP) feeds and
fuses them into a single concurrency-safe table of tracks keyed by MMSI or
ICAO hex address.
"""

from .track import Track, TrackType, Aircraft, Ship, APRSTrack, Airport, BaseStation
from .position_history import PositionHistory, PositionSample
from .track_table import TrackTable
from .ais_handler import AISMessageHandler
from .sbs_handler import SBSMessageHandler
from .message_source import Client, TCPClient
from .ais_receiver import AISUDPReceiver
from .sbs_client import SBSTCPClient
from .dump1090_reader import Dump1090JSONReader
from .config import FusionConfig, ConfigManager, ConfigurationError
from .service import FusionService

__version__ = "1.0.0"
__all__ = [
    "Track",
    "TrackType",
    "Aircraft",
    "Ship",
    "APRSTrack",
    "Airport",
    "BaseStation",
    "PositionHistory",
    "PositionSample",
    "TrackTable",
    "AISMessageHandler",
    "SBSMessageHandler",
    "Client",
    "TCPClient",
    "AISUDPReceiver",
    "SBSTCPClient",
    "Dump1090JSONReader",
    "FusionConfig",
    "ConfigManager",
    "ConfigurationError",
    "FusionService",
]
