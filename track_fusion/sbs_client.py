"""
SBS TCP Client

Receiver for aircraft data in SBS ("BaseStation") format: comma-separated
values and line breaks. dump1090 outputs this on port 30003 for directly
received messages, and MLAT results can be output in the same format.
"""

import logging
from typing import TextIO

from .message_source import TCPClient
from .sbs_handler import SBSMessageHandler
from .track_table import TrackTable

logger = logging.getLogger(__name__)

DATA_TYPE_ADSB = "SBS format (ADS-B) data"
DATA_TYPE_MLAT = "SBS format (MLAT) data"

# 1 min for a local receiver, 10 min for MLAT results from a remote server
ADSB_TIMEOUT_MILLIS = 60000
MLAT_TIMEOUT_MILLIS = 600000


class SBSTCPClient(TCPClient):
    """Reconnecting TCP client feeding SBS lines to an ``SBSMessageHandler``"""

    def __init__(self, name: str, remote_host: str, remote_port: int, track_table: TrackTable,
                 mlat: bool = False, **kwargs):
        """
        Initialize SBS client

        Args:
            name: Human-readable name for this source
            remote_host: Host to connect to
            remote_port: Port to connect to
            track_table: Track table to update
            mlat: True if this connection carries MLAT data, False for
                Mode-S/ADS-B data from a local radio
        """
        super().__init__(name, remote_host, remote_port, track_table, **kwargs)
        self.mlat = mlat
        self.data_type = DATA_TYPE_MLAT if mlat else DATA_TYPE_ADSB
        self.socket_timeout_millis = MLAT_TIMEOUT_MILLIS if mlat else ADSB_TIMEOUT_MILLIS
        self.handler = SBSMessageHandler(track_table, self.data_type)

    def read(self, stream: TextIO) -> bool:
        line = stream.readline()
        if not line:
            # End of stream: the remote end closed the connection
            logger.info(f"TCP socket for {self.data_type} closed by remote end")
            return False
        if line.strip():
            self.update_packet_received_time()
            self.handler.handle(line)
        return True

    def get_timeout_millis(self) -> int:
        return self.socket_timeout_millis

    def get_data_type(self) -> str:
        return self.data_type

    def get_logger(self) -> logging.Logger:
        return logger
