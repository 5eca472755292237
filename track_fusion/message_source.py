"""
Message Source Management

Provides the base classes shared by every feed: a ``Client`` that tracks
packet timing and status, and a reconnecting ``TCPClient`` that runs its own
read loop on a dedicated thread.
"""

import logging
import socket
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional, TextIO

from .track_table import TrackTable

logger = logging.getLogger(__name__)


class Client(ABC):
    """
    Abstract base class for track data sources

    Defines the interface that all sources implement so the service can
    start, stop and report on them uniformly.
    """

    def __init__(self, name: str, track_table: TrackTable):
        """
        Initialize client

        Args:
            name: Human-readable name for this source
            track_table: Track table the source writes into
        """
        self.name = name
        self.track_table = track_table
        self.last_packet_time: Optional[float] = None
        self.message_count = 0
        self.error_count = 0

    @abstractmethod
    def run(self) -> None:
        """Start the client's thread(s)"""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Ask the client's thread(s) to exit"""
        pass

    @abstractmethod
    def get_data_type(self) -> str:
        """Label describing the data this client receives, for diagnostics"""
        pass

    @abstractmethod
    def get_timeout_millis(self) -> int:
        """Silence, in milliseconds, after which the source counts as offline"""
        pass

    def get_logger(self) -> logging.Logger:
        return logger

    def update_packet_received_time(self) -> None:
        self.last_packet_time = time.time()
        self.message_count += 1

    @property
    def online(self) -> bool:
        """True while packets are arriving within the timeout window"""
        if self.last_packet_time is None:
            return False
        return (time.time() - self.last_packet_time) * 1000 <= self.get_timeout_millis()

    def get_status(self) -> Dict[str, Any]:
        """Get source status information"""
        return {
            'name': self.name,
            'data_type': self.get_data_type(),
            'online': self.online,
            'message_count': self.message_count,
            'error_count': self.error_count,
            'last_packet_time': (datetime.fromtimestamp(self.last_packet_time).isoformat()
                                 if self.last_packet_time else None),
        }


class TCPClient(Client):
    """
    Reconnecting line-oriented TCP client

    Connects to a remote host, then repeatedly calls ``read`` on the stream
    until it reports failure. A socket timeout equal to the source's timeout
    threshold means a stalled feed surfaces as ``socket.timeout``. Any
    connection-level failure leads to a reconnect after a backoff that doubles
    from ``min_backoff_sec`` up to ``max_backoff_sec``.
    """

    def __init__(self, name: str, remote_host: str, remote_port: int, track_table: TrackTable,
                 min_backoff_sec: float = 1.0, max_backoff_sec: float = 60.0):
        """
        Initialize TCP client

        Args:
            name: Human-readable name for this source
            remote_host: Host to connect to
            remote_port: Port to connect to
            track_table: Track table the source writes into
            min_backoff_sec: First reconnect delay
            max_backoff_sec: Largest reconnect delay
        """
        super().__init__(name, track_table)
        self.remote_host = remote_host
        self.remote_port = remote_port
        self.min_backoff_sec = min_backoff_sec
        self.max_backoff_sec = max_backoff_sec

        self.connected = False
        self.reconnect_attempts = 0
        self._backoff_sec = min_backoff_sec
        self._stop_event = threading.Event()
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None

    @abstractmethod
    def read(self, stream: TextIO) -> bool:
        """
        Read and handle one unit of data from the stream

        Args:
            stream: Text stream wrapping the connected socket

        Returns:
            True to keep reading, False if the connection should be dropped
        """
        pass

    def run(self) -> None:
        """Start the connection thread"""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._connection_worker,
                                        name=f"TCPClient-{self.name}", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the connection thread once its current read returns"""
        self.get_logger().info(f"Stopping TCP client for {self.get_data_type()} ({self.name})")
        self._stop_event.set()
        self._close_socket()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    def get_status(self) -> Dict[str, Any]:
        """Get extended status information"""
        status = super().get_status()
        status.update({
            'host': self.remote_host,
            'port': self.remote_port,
            'connected': self.connected,
            'reconnect_attempts': self.reconnect_attempts,
            'timeout_millis': self.get_timeout_millis(),
        })
        return status

    def _connection_worker(self) -> None:
        log = self.get_logger()
        log.info(f"TCP client for {self.get_data_type()} started ({self.remote_host}:{self.remote_port})")

        while self.running:
            try:
                self._read_loop(self._connect())
            except OSError as e:
                # socket.timeout is an OSError too
                if self.running:
                    self.error_count += 1
                    log.warning(f"TCP socket for {self.get_data_type()} failed: {e}")
            finally:
                self._close_socket()

            if self.running:
                self.reconnect_attempts += 1
                log.info(f"Reconnecting to {self.get_data_type()} at {self.remote_host}:{self.remote_port} "
                         f"in {self._backoff_sec:.0f}s")
                self._stop_event.wait(self._backoff_sec)
                self._backoff_sec = min(self._backoff_sec * 2, self.max_backoff_sec)

        log.info(f"TCP client for {self.get_data_type()} stopped")

    def _connect(self) -> socket.socket:
        timeout_sec = self.get_timeout_millis() / 1000.0
        sock = socket.create_connection((self.remote_host, self.remote_port), timeout=timeout_sec)
        self._socket = sock
        self.connected = True
        self._backoff_sec = self.min_backoff_sec
        self.get_logger().info(f"TCP socket for {self.get_data_type()} connected to "
                               f"{self.remote_host}:{self.remote_port}")
        return sock

    def _read_loop(self, sock: socket.socket) -> None:
        with sock.makefile('r', encoding='ascii', errors='replace', newline='\n') as stream:
            while self.running:
                if not self.read(stream):
                    break

    def _close_socket(self) -> None:
        self.connected = False
        sock, self._socket = self._socket, None
        if sock is None:
            return
        try:
            # shutdown wakes a reader blocked in recv on another thread
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Socket for {self.name} already disconnected: {e}")
        try:
            sock.close()
        except OSError as e:
            logger.debug(f"Error closing socket for {self.name}: {e}")
