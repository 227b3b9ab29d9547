"""MQTT alerter for Thunder connection-rate events.

Provides classification, formatting, the pipeline driver and MQTT publishing.
"""

from .classifier import classify, extract_message, format_notification, is_acos_line
from .daemon import MonitorDaemon, run_monitor
from .mqtt import MqttNotifier
from .pipeline import Pipeline

__all__ = [
    # Daemon
    "MonitorDaemon",
    "run_monitor",
    # Pipeline
    "Pipeline",
    # MQTT notifier
    "MqttNotifier",
    # Classifier
    "classify",
    "is_acos_line",
    "extract_message",
    "format_notification",
]
