"""Syslog record model."""

from dataclasses import dataclass

# RFC 3164 section 4.3.3: messages without a PRI are user.notice
DEFAULT_FACILITY = 1
DEFAULT_SEVERITY = 5


@dataclass(frozen=True)
class LogRecord:
    """A decoded syslog message."""

    client: str  # "ip:port" of the sender
    content: str  # Message text after the tag
    hostname: str
    facility: int
    severity: int
    timestamp: str  # ISO 8601 when the header timestamp could be parsed
    tag: str = ""  # Program name, e.g. "a10logd"

    @property
    def priority(self) -> int:
        """Return the combined PRI value."""
        return self.facility * 8 + self.severity
