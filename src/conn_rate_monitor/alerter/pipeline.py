"""Pipeline driver: drains the record channel and publishes alerts."""

import queue
import threading
from typing import Protocol

import structlog

from conn_rate_monitor.errors import PublishError
from conn_rate_monitor.metrics import ALERTS_MATCHED, NOTIFICATIONS
from conn_rate_monitor.syslog.models import LogRecord

from .classifier import classify, format_notification

log = structlog.get_logger()


class Notifier(Protocol):
    """Anything that can publish a notification string."""

    def send(self, message: str) -> None: ...


class Pipeline:
    """Classifies records and forwards matching ones to the notifier.

    A single consumer handles records in the order they were queued.
    """

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self._thread: threading.Thread | None = None

    def process(self, record: LogRecord) -> bool:
        """Handle one record.

        Returns:
            True if a notification was published, False otherwise
        """
        log.debug(
            "Syslog record received",
            client=record.client,
            hostname=record.hostname,
            tag=record.tag,
            severity=record.severity,
            content=record.content,
        )

        if not classify(record):
            return False

        ALERTS_MATCHED.inc()
        text = format_notification(record)
        log.info("Connection rate limit exceeded", notification=text)

        try:
            self.notifier.send(text)
        except PublishError as e:
            # Dropped, not retried
            NOTIFICATIONS.labels(status="error").inc()
            log.warning("MQTT publish error", error=str(e), hostname=record.hostname)
            return False

        NOTIFICATIONS.labels(status="success").inc()
        return True

    def run(self, channel: "queue.Queue[LogRecord | None]") -> None:
        """Consume records until the channel is closed."""
        log.debug("Pipeline started")
        while True:
            record = channel.get()
            if record is None:
                break
            try:
                self.process(record)
            except Exception:
                log.exception("Unexpected error processing record", client=record.client)
        log.info("Record channel closed, pipeline stopped")

    def start(self, channel: "queue.Queue[LogRecord | None]") -> threading.Thread:
        """Run the pipeline on its own daemon thread."""
        self._thread = threading.Thread(
            target=self.run, args=(channel,), name="pipeline", daemon=True
        )
        self._thread.start()
        return self._thread

    def is_alive(self) -> bool:
        """Return True while the pipeline thread is running."""
        return self._thread is not None and self._thread.is_alive()
