"""Prometheus metrics for the connection-rate monitor.

All metrics use the 'conn_rate_' prefix.
"""

from prometheus_client import Counter, Histogram, Info

SERVICE_INFO = Info(
    "conn_rate_service",
    "Service metadata",
)

RECORDS_RECEIVED = Counter(
    "conn_rate_records_received_total",
    "Syslog records decoded by the receiver",
)

RECORDS_DROPPED = Counter(
    "conn_rate_records_dropped_total",
    "Syslog records dropped because the record channel was full",
)

ALERTS_MATCHED = Counter(
    "conn_rate_alerts_matched_total",
    "Records classified as connection-rate-limit-exceeded events",
)

NOTIFICATIONS = Counter(
    "conn_rate_notifications_total",
    "Notification publish attempts",
    ["status"],  # status: success, error
)

PUBLISH_DURATION = Histogram(
    "conn_rate_publish_duration_seconds",
    "Time spent waiting for the broker to accept a notification",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
