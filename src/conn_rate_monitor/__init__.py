"""A10 Thunder connection-rate monitor.

Listens for syslog from a Thunder device and republishes
connection-rate-limit-exceeded events over MQTT.
"""

__version__ = "0.1.0"
