"""Connection-rate event classifier and notification formatter.

ACOS logs a rate-limit hit as::

    [ACOS]<4> Virtual server ws-vip connection rate limit 100 exceeded

Other subsystems (e.g. aFleX scripts logging ``[AFLEX]<6> ...``) share the
same syslog stream and are ignored.
"""

from typing import Any

from conn_rate_monitor.syslog.models import LogRecord

ACOS_MARKER = "[ACOS]"
NODE_PREFIX = "A10 Thunder node = "

# All must be present (case-sensitive) for a record to alert
_RATE_LIMIT_INDICATORS = (
    "connection rate limit",
    "exceeded",
)


def is_acos_line(content: Any) -> bool:
    """Quick check if a log line comes from the ACOS core.

    Use this to pre-filter before full classification.
    """
    return isinstance(content, str) and content.startswith(ACOS_MARKER)


def classify(record: Any) -> bool:
    """Return True if the record reports a connection rate limit being exceeded.

    Records with missing, empty or non-string content never match.
    """
    content = getattr(record, "content", None)
    if not is_acos_line(content):
        return False
    return all(indicator in content for indicator in _RATE_LIMIT_INDICATORS)


def extract_message(content: str) -> str:
    """Strip the ``[ACOS]<N> `` prefix from an ACOS log line.

    The severity tag is delimited by its closing ``>`` rather than assumed to
    be one digit wide.
    """
    message = content[len(ACOS_MARKER):] if content.startswith(ACOS_MARKER) else content
    if message.startswith("<"):
        end = message.find(">")
        if end != -1:
            message = message[end + 1:]
    if message.startswith(" "):
        message = message[1:]
    return message


def format_notification(record: LogRecord) -> str:
    """Build the notification text for a classified record.

    Example:
        "A10 Thunder node = Testing1::Virtual server ws-vip connection rate limit 100 exceeded"
    """
    return f"{NODE_PREFIX}{record.hostname}::{extract_message(record.content)}"
