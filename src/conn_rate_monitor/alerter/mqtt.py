"""MQTT notifier for publishing alerts."""

import threading
import time
from typing import Any

import paho.mqtt.client as mqtt
import structlog

from conn_rate_monitor.config import Config
from conn_rate_monitor.errors import NotifierConnectError, PublishError
from conn_rate_monitor.metrics import PUBLISH_DURATION

log = structlog.get_logger()

QOS = 0
RETAIN = False


class MqttNotifier:
    """Publishes notification strings to an MQTT broker.

    Reconnection after a dropped connection is left to paho's network loop.
    """

    def __init__(self, config: Config, client: mqtt.Client | None = None):
        """Initialize the notifier.

        Args:
            config: Application config (broker, client id, credentials, timeouts)
            client: Pre-built paho client, mainly for tests
        """
        self.config = config
        self.client = client or self._build_client()
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connack = threading.Event()
        self._connect_failure: str | None = None

    def _build_client(self) -> mqtt.Client:
        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.config.client_id,
        )
        # Credentials are only sent when configured; the default is no auth
        if self.config.username:
            client.username_pw_set(self.config.username, self.config.password or None)
        client.reconnect_delay_set(min_delay=1, max_delay=60)
        return client

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        if reason_code.is_failure:
            log.error("MQTT broker refused connection", reason=str(reason_code))
            if not self._connack.is_set():
                self._connect_failure = str(reason_code)
        else:
            log.info("MQTT broker connected", broker=self.config.broker_url)
        self._connack.set()

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        log.warning("MQTT broker disconnected", reason=str(reason_code))

    def connect(self) -> None:
        """Connect to the broker and wait for the first CONNACK.

        Raises:
            NotifierConnectError: if the broker is unreachable, refuses the
                connection, or does not answer within connect_timeout
        """
        log.debug("Connecting to MQTT broker", broker=self.config.broker_url)
        try:
            self.client.connect(
                self.config.mqtt_broker,
                self.config.mqtt_port,
                keepalive=self.config.keepalive,
            )
        except (OSError, ValueError) as e:
            raise NotifierConnectError(
                f"Unable to connect to {self.config.broker_url}: {e}"
            ) from e

        self.client.loop_start()

        if not self._connack.wait(self.config.connect_timeout):
            self.client.loop_stop()
            raise NotifierConnectError(
                f"Timed out connecting to {self.config.broker_url}"
            )

        if self._connect_failure is not None:
            self.client.loop_stop()
            raise NotifierConnectError(
                f"Broker {self.config.broker_url} refused connection: {self._connect_failure}"
            )

    def publish(self, topic: str, message: str) -> None:
        """Publish a message and wait for the client to confirm it.

        The message is not retried; on failure it is dropped.

        Raises:
            PublishError: if the client is disconnected, rejects the message,
                or does not confirm within publish_timeout
        """
        start = time.monotonic()
        try:
            info = self.client.publish(topic, message, qos=QOS, retain=RETAIN)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                raise PublishError(f"Publish failed: {mqtt.error_string(info.rc)}")
            info.wait_for_publish(timeout=self.config.publish_timeout)
        except (ValueError, RuntimeError) as e:
            raise PublishError(f"Publish failed: {e}") from e
        finally:
            PUBLISH_DURATION.observe(time.monotonic() - start)

        if not info.is_published():
            raise PublishError(
                f"Publish not confirmed within {self.config.publish_timeout}s"
            )

        log.debug("MQTT message published", topic=topic)

    def send(self, message: str) -> None:
        """Publish a message to the configured notify topic."""
        self.publish(self.config.notify_topic, message)

    def disconnect(self) -> None:
        """Disconnect from the broker and stop the network loop."""
        self.client.disconnect()
        self.client.loop_stop()
