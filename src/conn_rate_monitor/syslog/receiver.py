"""UDP syslog listener feeding the record channel."""

import queue
import socket
import threading

import structlog

from conn_rate_monitor.metrics import RECORDS_DROPPED, RECORDS_RECEIVED

from .models import LogRecord
from .parser import parse_rfc3164

log = structlog.get_logger()

MAX_DATAGRAM = 65535


def open_channel(size: int = 0) -> "queue.Queue[LogRecord | None]":
    """Create a record channel. size=0 means unbounded."""
    return queue.Queue(maxsize=size)


def close_channel(channel: "queue.Queue[LogRecord | None]") -> None:
    """Mark the channel closed so the consumer exits after draining it."""
    # Blocks on a full bounded channel until the consumer makes room
    channel.put(None)


class UDPSyslogReceiver:
    """Receive RFC 3164 syslog datagrams and enqueue decoded records."""

    def __init__(
        self,
        channel: "queue.Queue[LogRecord | None]",
        host: str = "0.0.0.0",
        port: int = 5514,
    ):
        """Initialize the receiver.

        Args:
            channel: Queue the decoded records are put on
            host: Interface to bind to ('0.0.0.0' for all interfaces)
            port: UDP port to listen on, 0 picks a free port
        """
        self.channel = channel
        self.host = host
        self.port = port
        self.running = False
        self.ready = threading.Event()
        self._stop_requested = threading.Event()
        self._sock: socket.socket | None = None

    @property
    def bound_port(self) -> int:
        """Return the port actually bound (useful when port=0)."""
        if self._sock is None:
            return self.port
        return self._sock.getsockname()[1]

    def bind(self) -> None:
        """Bind the UDP socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind((self.host, self.port))
        sock.settimeout(1.0)
        self._sock = sock

    def start(self) -> None:
        """Run the receive loop until stop() is called."""
        if self._sock is None:
            self.bind()
        assert self._sock is not None

        self.running = not self._stop_requested.is_set()
        self.ready.set()
        log.info("Syslog receiver listening", host=self.host, port=self.bound_port)

        try:
            while not self._stop_requested.is_set():
                try:
                    data, addr = self._sock.recvfrom(MAX_DATAGRAM)
                except socket.timeout:
                    continue
                except OSError as e:
                    if not self._stop_requested.is_set():
                        log.error("Error receiving syslog datagram", error=str(e))
                    continue

                self._enqueue(parse_rfc3164(data, f"{addr[0]}:{addr[1]}"))
        finally:
            self.running = False
            self._sock.close()
            self._sock = None
            close_channel(self.channel)
            log.info("Syslog receiver stopped")

    def _enqueue(self, record: LogRecord) -> None:
        """Hand a record to the pipeline, dropping it if the channel is full."""
        RECORDS_RECEIVED.inc()
        try:
            self.channel.put_nowait(record)
        except queue.Full:
            RECORDS_DROPPED.inc()
            log.warning("Record channel full, dropping record", client=record.client)

    def stop(self) -> None:
        """Stop the receiver. The channel is closed once the loop exits.

        Safe to call before start(); the loop then exits immediately.
        """
        self._stop_requested.set()
        self.running = False
