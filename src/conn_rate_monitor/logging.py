"""Structured logging setup for the monitor.

structlog renders through stdlib logging, so paho-mqtt's logger and the
monitor's own events share one handler and one level. The level comes from
the config ``debug`` value via ``level_for_debug``.
"""

import logging
import sys

import structlog


def level_for_debug(debug: int) -> str:
    """Map the config ``debug`` verbosity to a log level name.

    >9 logs every incoming record, >5 logs notifications and startup,
    >3 logs publish failures. Anything lower only shows errors.
    """
    if debug > 9:
        return "DEBUG"
    if debug > 5:
        return "INFO"
    if debug > 3:
        return "WARNING"
    return "ERROR"


def configure_logging(service_name: str, level: str = "INFO") -> None:
    """Configure structured logging for the service.

    Args:
        service_name: Name bound to every log entry (e.g., 'conn-rate-monitor')
        level: Log level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
    """
    log_level = getattr(logging, level.upper())
    is_tty = sys.stdout.isatty()

    # Applied to structlog events and to records from stdlib loggers alike
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=shared_processors
        + [
            # Drop events below the configured level before rendering
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Console output when attached to a terminal, JSON lines under a supervisor
    renderer: structlog.types.Processor = (
        structlog.dev.ConsoleRenderer()
        if is_tty
        else structlog.processors.JSONRenderer()
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processor=renderer,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Tag every entry with the service name
    structlog.contextvars.bind_contextvars(service=service_name)
