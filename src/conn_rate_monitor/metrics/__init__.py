"""Prometheus metrics for the monitor.

Usage:
    from conn_rate_monitor.metrics import start_metrics_server, RECORDS_RECEIVED

    start_metrics_server(port=9100)
    RECORDS_RECEIVED.inc()
"""

from conn_rate_monitor.metrics.monitor import (
    ALERTS_MATCHED,
    NOTIFICATIONS,
    PUBLISH_DURATION,
    RECORDS_DROPPED,
    RECORDS_RECEIVED,
    SERVICE_INFO,
)
from conn_rate_monitor.metrics.server import start_metrics_server

__all__ = [
    "start_metrics_server",
    "RECORDS_RECEIVED",
    "RECORDS_DROPPED",
    "ALERTS_MATCHED",
    "NOTIFICATIONS",
    "PUBLISH_DURATION",
    "SERVICE_INFO",
]
