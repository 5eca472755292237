"""
AIS UDP Receiver

Receives AIS NMEA-0183 sentences from a UDP socket and decodes them with
pyais. Socket reads and decoding run on separate threads joined by a queue,
so a slow decode never causes datagrams to be dropped.
"""

import logging
import queue
import socket
import threading
import time
from typing import Any, Dict, Iterator, Optional

from pyais.stream import IterMessages

from .ais_handler import AISMessageHandler
from .message_source import Client
from .track_table import TrackTable

logger = logging.getLogger(__name__)

DATA_TYPE_AIS = "AIS (NMEA-0183) data"


class AISUDPReceiver(Client):
    """
    Receiver for AIS NMEA-0183 messages from a UDP socket

    The socket thread trims each datagram, terminates it with CRLF and queues
    it. The decode thread turns the queued bytes back into sentences, lets
    pyais assemble and decode them, and hands each message to the
    ``AISMessageHandler``.
    """

    def __init__(self, name: str, local_port: int, track_table: TrackTable,
                 bind_host: str = "", throttle_sec: float = 0.01,
                 socket_timeout_sec: float = 1.0, timeout_millis: int = 600000):
        """
        Initialize receiver

        Args:
            name: Human-readable name for this source
            local_port: UDP port to listen on (0 picks a free port)
            track_table: Track table to update
            bind_host: Local address to bind to (default: all interfaces)
            throttle_sec: Delay between datagram reads
            socket_timeout_sec: Receive timeout, bounding how long stop() waits
            timeout_millis: Silence after which the source counts as offline
        """
        super().__init__(name, track_table)
        self.local_port = local_port
        self.bind_host = bind_host
        self.throttle_sec = throttle_sec
        self.socket_timeout_sec = socket_timeout_sec
        self.timeout_millis = timeout_millis

        self.handler = AISMessageHandler(track_table)
        self.bound_port: Optional[int] = None
        self.decode_error_count = 0

        self._run = False
        self._pipe: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._bound = threading.Event()
        self._udp_thread: Optional[threading.Thread] = None
        self._ais_thread: Optional[threading.Thread] = None

    def run(self) -> None:
        """Start the socket and decode threads"""
        self._run = True
        self._bound.clear()
        self._udp_thread = threading.Thread(target=self._udp_receiver_worker,
                                            name=f"AISUDP-{self.name}", daemon=True)
        self._ais_thread = threading.Thread(target=self._ais_decoder_worker,
                                            name=f"AISDecode-{self.name}", daemon=True)
        self._udp_thread.start()
        self._ais_thread.start()

    def stop(self) -> None:
        """Stop both threads; the socket thread exits after its current read"""
        logger.info(f"Stopping AIS receiver {self.name}")
        self._run = False
        self._pipe.put(None)
        for thread in (self._udp_thread, self._ais_thread):
            if thread and thread.is_alive() and thread is not threading.current_thread():
                thread.join(timeout=self.socket_timeout_sec + 5)

    def wait_until_bound(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is bound (or binding failed)"""
        return self._bound.wait(timeout) and self.bound_port is not None

    def get_data_type(self) -> str:
        return DATA_TYPE_AIS

    def get_timeout_millis(self) -> int:
        return self.timeout_millis

    def get_status(self) -> Dict[str, Any]:
        """Get extended status information"""
        status = super().get_status()
        status.update({
            'port': self.bound_port or self.local_port,
            'queue_size': self._pipe.qsize(),
            'decode_errors': self.decode_error_count,
        })
        return status

    def _udp_receiver_worker(self) -> None:
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.settimeout(self.socket_timeout_sec)
            sock.bind((self.bind_host, self.local_port))
        except OSError as e:
            self.error_count += 1
            logger.error(f"Could not open UDP port {self.local_port} for AIS data: {e}")
            self._bound.set()
            return

        self.bound_port = sock.getsockname()[1]
        self._bound.set()
        logger.info(f"Opened local UDP port {self.bound_port} to receive AIS data.")

        with sock:
            while self._run:
                try:
                    data, _ = sock.recvfrom(1024)
                except socket.timeout:
                    continue
                except OSError as e:
                    self.error_count += 1
                    logger.error(f"Exception in AIS receiver {self.name}: {e}")
                    break

                line = data.decode('ascii', errors='replace').strip()
                if line:
                    self.update_packet_received_time()
                    self._pipe.put((line + "\r\n").encode('ascii', errors='replace'))

                time.sleep(self.throttle_sec)

        logger.info(f"AIS UDP socket on port {self.bound_port} closed")

    def _sentences(self) -> Iterator[bytes]:
        """Split the queued byte stream back into sentences until told to stop."""
        while True:
            chunk = self._pipe.get()
            if chunk is None:
                return
            for sentence in chunk.splitlines():
                if sentence:
                    yield sentence

    def _ais_decoder_worker(self) -> None:
        logger.info(f"AIS decoder for {self.name} started")
        while self._run:
            try:
                for nmea in IterMessages(self._sentences()):
                    self._handle_sentence(nmea)
                # Input exhausted: stop was requested
                break
            except Exception as e:
                self.decode_error_count += 1
                logger.warning(f"AIS decoder for {self.name} hit a malformed stream, resuming: {e}")
        logger.info(f"AIS decoder for {self.name} stopped")

    def _handle_sentence(self, nmea: Any) -> None:
        try:
            message = nmea.decode()
        except Exception as e:
            self.decode_error_count += 1
            logger.warning(f"Could not decode AIS sentence {nmea.raw!r}: {e}")
            return

        try:
            self.handler.handle(message)
        except Exception as e:
            self.error_count += 1
            logger.warning(f"Error handling AIS message type {getattr(message, 'msg_type', '?')}: {e}")
