"""Exceptions raised by the monitor."""


class MonitorError(Exception):
    """Base class for monitor errors."""


class ConfigError(MonitorError):
    """Configuration file could not be loaded or is invalid."""


class NotifierConnectError(MonitorError):
    """The MQTT broker could not be reached at startup."""


class PublishError(MonitorError):
    """A notification was not confirmed by the MQTT client."""
