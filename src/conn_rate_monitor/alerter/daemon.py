"""Monitor daemon that listens for Thunder syslog and publishes alerts over MQTT."""

import threading
import time
from datetime import datetime

import structlog

from conn_rate_monitor import __version__
from conn_rate_monitor.config import Config
from conn_rate_monitor.metrics import SERVICE_INFO, start_metrics_server
from conn_rate_monitor.syslog import UDPSyslogReceiver, open_channel

from .mqtt import MqttNotifier
from .pipeline import Pipeline

log = structlog.get_logger()


class MonitorDaemon:
    """Wires the syslog receiver, the pipeline and the MQTT notifier together."""

    def __init__(self, config: Config, notifier: MqttNotifier | None = None):
        """Initialize the daemon.

        Args:
            config: Application config
            notifier: Notifier to publish with (default: built from config)
        """
        self.config = config
        self.notifier = notifier or MqttNotifier(config)
        self.channel = open_channel(config.queue_size)
        self.pipeline = Pipeline(self.notifier)
        self.receiver = UDPSyslogReceiver(
            self.channel,
            host=config.syslog_host,
            port=config.syslog_port,
        )

        self._threads: list[threading.Thread] = []
        self._stop_event = threading.Event()

    def start(self) -> None:
        """Connect to the broker and start the receiver and pipeline threads.

        Raises:
            NotifierConnectError: if the broker cannot be reached
            OSError: if the syslog port cannot be bound
        """
        log.info("Starting connection rate monitor", broker=self.config.broker_url)

        # No notifications can ever be delivered without a broker
        self.notifier.connect()

        if self.config.metrics_port:
            SERVICE_INFO.info({"version": __version__, "client_id": self.config.client_id})
            start_metrics_server(port=self.config.metrics_port, health_check=self.pipeline.is_alive)

        self.receiver.bind()

        self._threads.append(self.pipeline.start(self.channel))

        receiver_thread = threading.Thread(target=self.receiver.start, name="syslog", daemon=True)
        receiver_thread.start()
        self._threads.append(receiver_thread)

        log.info(
            "Connection rate monitor running",
            port=self.receiver.bound_port,
            topic=self.config.notify_topic,
        )

    def run(self) -> None:
        """Start the daemon and block until stopped."""
        self.start()

        try:
            while not self._stop_event.is_set():
                time.sleep(1)
        except KeyboardInterrupt:
            log.info("Received shutdown signal")
            self.stop()

    def stop(self) -> None:
        """Stop the daemon. Records still queued may be lost."""
        log.info("Stopping connection rate monitor")
        self._stop_event.set()
        self.receiver.stop()
        self.notifier.disconnect()

    def send_test_notification(self) -> None:
        """Publish a test notification to verify broker and topic.

        Raises:
            PublishError: if the broker did not accept the message
        """
        time_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.notifier.send(f"Connection rate monitor test notification ({time_str})")


def run_monitor(config: Config) -> None:
    """Run the monitor daemon until interrupted."""
    daemon = MonitorDaemon(config)
    daemon.run()
