"""RFC 3164 (BSD syslog) decoder.

Thunder devices send lines such as::

    <132>May 18 22:03:04 Testing1 a10logd: [ACOS]<4> Virtual server ws-vip connection rate limit 100 exceeded

which decode to hostname ``Testing1``, tag ``a10logd`` and content
``[ACOS]<4> Virtual server ...``. Decoding is lenient: a datagram that does not
follow the format still yields a record, never an exception.
"""

import re
from datetime import datetime, timedelta, timezone

import structlog

from .models import DEFAULT_FACILITY, DEFAULT_SEVERITY, LogRecord

log = structlog.get_logger()

MAX_PRIORITY = 191  # local7.debug

_PRI_PATTERN = re.compile(r"^<(?P<pri>\d{1,3})>(?P<rest>.*)$", re.DOTALL)

_HEADER_PATTERN = re.compile(
    r"^(?P<timestamp>[A-Z][a-z]{2}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2})\s+"
    r"(?P<hostname>\S+)(?:\s+(?P<msg>.*))?$",
    re.DOTALL,
)

# TAG is at most 32 alphanumeric characters, optionally followed by [pid]
_TAG_PATTERN = re.compile(r"^(?P<tag>[^\s:\[]{1,32})(?:\[[^\]]*\])?:\s?(?P<content>.*)$", re.DOTALL)


def parse_rfc3164(data: bytes | str, client: str, now: datetime | None = None) -> LogRecord:
    """Decode a syslog datagram into a LogRecord.

    Args:
        data: Raw datagram payload
        client: Sender address as "ip:port"
        now: Reference time for the year-less BSD timestamp (default: current
            UTC time). Naive values are taken as UTC.

    Returns:
        The decoded record. Missing parts fall back to RFC 3164 defaults:
        user.notice priority, the client host as hostname and the receive
        time as timestamp.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)

    message = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    message = message.rstrip("\r\n\x00")

    facility, severity = DEFAULT_FACILITY, DEFAULT_SEVERITY
    pri_match = _PRI_PATTERN.match(message)
    if pri_match and int(pri_match.group("pri")) <= MAX_PRIORITY:
        pri = int(pri_match.group("pri"))
        facility, severity = pri >> 3, pri & 0x07
        message = pri_match.group("rest")

    header = _HEADER_PATTERN.match(message)
    if header is None:
        log.debug("Syslog message without header", client=client)
        return LogRecord(
            client=client,
            content=message,
            hostname=_client_host(client),
            facility=facility,
            severity=severity,
            timestamp=now.isoformat(),
        )

    tag = ""
    content = header.group("msg") or ""
    tag_match = _TAG_PATTERN.match(content)
    if tag_match:
        tag = tag_match.group("tag")
        content = tag_match.group("content")

    return LogRecord(
        client=client,
        content=content,
        hostname=header.group("hostname"),
        facility=facility,
        severity=severity,
        timestamp=_parse_timestamp(header.group("timestamp"), now),
        tag=tag,
    )


def _parse_timestamp(raw: str, now: datetime) -> str:
    """Stamp a "Mmm dd hh:mm:ss" timestamp with a year and render it as ISO 8601."""
    normalized = " ".join(raw.split())
    try:
        parsed = datetime.strptime(f"{now.year} {normalized}", "%Y %b %d %H:%M:%S")
    except ValueError:
        return raw

    parsed = parsed.replace(tzinfo=timezone.utc)
    # A December message received in January belongs to last year
    if parsed - now > timedelta(days=1):
        try:
            parsed = parsed.replace(year=now.year - 1)
        except ValueError:
            return raw
    return parsed.isoformat()


def _client_host(client: str) -> str:
    """Return the host part of an "ip:port" address."""
    host, sep, _ = client.rpartition(":")
    return host if sep else client
