"""End-to-end tests for the monitor daemon with a mocked broker."""

import socket
import time
from unittest.mock import MagicMock

import pytest

from conn_rate_monitor.alerter import MonitorDaemon
from conn_rate_monitor.config import Config
from conn_rate_monitor.errors import NotifierConnectError, PublishError


@pytest.fixture
def config() -> Config:
    return Config(
        mqtt_broker="broker.test",
        notify_topic="a10/notify",
        syslog_host="127.0.0.1",
        syslog_port=0,
    )


def send_lines(port: int, *lines: str) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        for line in lines:
            sock.sendto(line.encode(), ("127.0.0.1", port))


def wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestMonitorDaemon:
    def test_syslog_to_notification(self, config):
        notifier = MagicMock()
        daemon = MonitorDaemon(config, notifier=notifier)
        daemon.start()
        try:
            send_lines(
                daemon.receiver.bound_port,
                "<134>May 18 22:05:41 Testing1 a10logd: [AFLEX]<6> http-error-status-log:404",
                "<132>May 18 22:03:04 Testing1 a10logd: "
                "[ACOS]<4> Virtual server ws-vip connection rate limit 100 exceeded",
            )
            assert wait_for(lambda: notifier.send.called)
        finally:
            daemon.stop()

        notifier.connect.assert_called_once()
        notifier.send.assert_called_once_with(
            "A10 Thunder node = Testing1::Virtual server ws-vip connection rate limit 100 exceeded"
        )
        notifier.disconnect.assert_called_once()
        assert wait_for(lambda: not daemon.pipeline.is_alive())

    def test_publish_failures_keep_running(self, config):
        """Scenario: broker rejects publishes, later records are still handled."""
        notifier = MagicMock()
        notifier.send.side_effect = [PublishError("not connected"), None]
        daemon = MonitorDaemon(config, notifier=notifier)
        daemon.start()
        try:
            line = (
                "<132>May 18 22:03:04 node{} a10logd: "
                "[ACOS]<4> Virtual server vs connection rate limit 10 exceeded"
            )
            send_lines(daemon.receiver.bound_port, line.format(1), line.format(2))
            assert wait_for(lambda: notifier.send.call_count == 2)
            assert daemon.pipeline.is_alive()
        finally:
            daemon.stop()

        assert notifier.send.call_args.args[0].startswith("A10 Thunder node = node2::")

    def test_connect_failure_is_fatal(self, config):
        notifier = MagicMock()
        notifier.connect.side_effect = NotifierConnectError("refused")
        daemon = MonitorDaemon(config, notifier=notifier)

        with pytest.raises(NotifierConnectError):
            daemon.start()
        assert not daemon.pipeline.is_alive()
        assert not daemon.receiver.running

    def test_send_test_notification(self, config):
        notifier = MagicMock()
        MonitorDaemon(config, notifier=notifier).send_test_notification()
        assert "test notification" in notifier.send.call_args.args[0]
