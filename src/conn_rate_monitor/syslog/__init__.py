"""Syslog record source: RFC 3164 decoding and the UDP listener."""

from .models import LogRecord
from .parser import parse_rfc3164
from .receiver import UDPSyslogReceiver, close_channel, open_channel

__all__ = [
    "LogRecord",
    "parse_rfc3164",
    "UDPSyslogReceiver",
    "open_channel",
    "close_channel",
]
