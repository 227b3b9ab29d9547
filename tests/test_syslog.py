"""Tests for the syslog record source."""

import socket
import threading
from datetime import datetime, timezone

import pytest

from conn_rate_monitor.syslog import (
    LogRecord,
    UDPSyslogReceiver,
    close_channel,
    open_channel,
    parse_rfc3164,
)

NOW = datetime(2021, 5, 19, 8, 0, 0, tzinfo=timezone.utc)
CLIENT = "10.1.11.44:5456"

THUNDER_LINE = (
    "<132>May 18 22:03:04 Testing1 a10logd: "
    "[ACOS]<4> Virtual server ws-vip connection rate limit 100 exceeded"
)


class TestParseRFC3164:
    """Tests for RFC 3164 decoding."""

    def test_thunder_rate_limit_line(self):
        record = parse_rfc3164(THUNDER_LINE.encode(), CLIENT, now=NOW)

        assert record == LogRecord(
            client=CLIENT,
            content="[ACOS]<4> Virtual server ws-vip connection rate limit 100 exceeded",
            hostname="Testing1",
            facility=16,
            severity=4,
            timestamp="2021-05-18T22:03:04+00:00",
            tag="a10logd",
        )
        assert record.priority == 132

    def test_aflex_line(self):
        line = (
            "<134>May 18 22:05:41 Testing1 a10logd: "
            "[AFLEX]<6> http-error-status-log:HTTP Error: 10.147.95.128 - 404 - /blatt"
        )
        record = parse_rfc3164(line, CLIENT, now=NOW)

        assert record.severity == 6
        assert record.content.startswith("[AFLEX]<6> http-error-status-log:")

    def test_tag_with_pid(self):
        record = parse_rfc3164("<14>Jan 15 10:30:45 web01 nginx[5678]: Connection", CLIENT, now=NOW)
        assert record.tag == "nginx"
        assert record.content == "Connection"

    def test_no_tag(self):
        """Content without a tag is kept whole."""
        record = parse_rfc3164("<132>May 18 22:03:04 Testing1 [ACOS]<4> text", CLIENT, now=NOW)
        assert record.tag == ""
        assert record.content == "[ACOS]<4> text"

    def test_single_digit_day(self):
        record = parse_rfc3164("<13>May  8 01:02:03 host app: hi", CLIENT, now=NOW)
        assert record.timestamp == "2021-05-08T01:02:03+00:00"

    def test_december_line_in_january(self):
        """Year-less timestamps from the end of last year go to last year."""
        january = datetime(2022, 1, 1, 0, 0, 5, tzinfo=timezone.utc)
        record = parse_rfc3164("<13>Dec 31 23:59:59 host app: hi", CLIENT, now=january)
        assert record.timestamp == "2021-12-31T23:59:59+00:00"

    def test_missing_priority(self):
        """No PRI defaults to user.notice."""
        record = parse_rfc3164("May 18 22:03:04 Testing1 app: hi", CLIENT, now=NOW)
        assert (record.facility, record.severity) == (1, 5)
        assert record.hostname == "Testing1"

    def test_priority_out_of_range(self):
        record = parse_rfc3164("<999>garbage", CLIENT, now=NOW)
        assert (record.facility, record.severity) == (1, 5)
        assert record.content == "<999>garbage"

    def test_missing_header(self):
        """Without a header, hostname comes from the sender address."""
        record = parse_rfc3164("<132>[ACOS]<4> no header here", CLIENT, now=NOW)
        assert record.hostname == "10.1.11.44"
        assert record.content == "[ACOS]<4> no header here"
        assert record.timestamp == NOW.isoformat()

    @pytest.mark.parametrize("data", [b"", b"   ", b"\xff\xfe\x00", b"<>", b"<14>"])
    def test_malformed_never_raises(self, data):
        record = parse_rfc3164(data, CLIENT, now=NOW)
        assert isinstance(record.content, str)

    def test_naive_reference_time(self):
        """A naive reference time is taken as UTC instead of raising."""
        naive = datetime(2021, 5, 19)
        record = parse_rfc3164("<13>May 18 22:03:04 h app: x", CLIENT, now=naive)
        assert record.timestamp == "2021-05-18T22:03:04+00:00"

    def test_trailing_newline_stripped(self):
        record = parse_rfc3164(THUNDER_LINE + "\n", CLIENT, now=NOW)
        assert record.content.endswith("exceeded")


@pytest.fixture
def receiver():
    """UDP receiver on a free localhost port, running on a thread."""
    channel = open_channel()
    receiver = UDPSyslogReceiver(channel, host="127.0.0.1", port=0)
    receiver.bind()
    thread = threading.Thread(target=receiver.start, daemon=True)
    thread.start()
    assert receiver.ready.wait(2)

    yield receiver

    receiver.stop()
    thread.join(timeout=3)


class TestUDPSyslogReceiver:
    """Tests for the UDP listener."""

    def test_datagram_becomes_record(self, receiver):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.sendto(THUNDER_LINE.encode(), ("127.0.0.1", receiver.bound_port))
            sender_port = sock.getsockname()[1]

        record = receiver.channel.get(timeout=2)

        assert record.hostname == "Testing1"
        assert record.tag == "a10logd"
        assert record.client == f"127.0.0.1:{sender_port}"
        assert record.content.startswith("[ACOS]<4>")

    def test_order_preserved(self, receiver):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            for i in range(5):
                line = f"<132>May 18 22:03:04 host{i} a10logd: msg"
                sock.sendto(line.encode(), ("127.0.0.1", receiver.bound_port))

        hosts = [receiver.channel.get(timeout=2).hostname for _ in range(5)]
        assert hosts == [f"host{i}" for i in range(5)]

    def test_stop_closes_channel(self, receiver):
        """Stopping the receiver puts the close marker on the channel."""
        receiver.stop()
        assert receiver.channel.get(timeout=3) is None

    def test_stop_before_start(self):
        """A stop requested before the loop starts still ends it and closes the channel."""
        channel = open_channel()
        receiver = UDPSyslogReceiver(channel, host="127.0.0.1", port=0)
        receiver.bind()
        receiver.stop()

        thread = threading.Thread(target=receiver.start, daemon=True)
        thread.start()
        thread.join(timeout=3)

        assert not thread.is_alive()
        assert not receiver.running
        assert channel.get_nowait() is None

    def test_full_channel_drops(self):
        """A bounded channel drops records instead of blocking."""
        channel = open_channel(1)
        receiver = UDPSyslogReceiver(channel, host="127.0.0.1", port=0)
        first = parse_rfc3164(THUNDER_LINE, CLIENT, now=NOW)

        receiver._enqueue(first)
        receiver._enqueue(parse_rfc3164("<13>May 18 22:03:04 other app: x", CLIENT, now=NOW))

        assert channel.qsize() == 1
        assert channel.get_nowait() is first


class TestChannel:
    def test_unbounded_by_default(self):
        assert open_channel().maxsize == 0

    def test_close_marker(self):
        channel = open_channel()
        close_channel(channel)
        assert channel.get_nowait() is None
