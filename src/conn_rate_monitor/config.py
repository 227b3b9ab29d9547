"""Configuration loading for conn-rate-monitor."""

import json
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from conn_rate_monitor.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config.json")


class Config(BaseModel):
    """Application configuration.

    Immutable once loaded; components receive it by parameter.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, strict=True)

    mqtt_broker: str = Field(min_length=1)
    notify_topic: str = Field(min_length=1)
    debug: int = 0
    mqtt_port: int = Field(1883, ge=0, le=65535)
    client_id: str = "conn-rate-monitor"
    syslog_port: int = Field(5514, ge=0, le=65535)
    syslog_host: str = "0.0.0.0"
    username: str = ""
    password: str = ""
    keepalive: int = Field(30, gt=0)
    publish_timeout: float = Field(10.0, gt=0)
    connect_timeout: float = Field(10.0, gt=0)
    queue_size: int = Field(0, ge=0)  # 0 = unbounded
    metrics_port: int = Field(0, ge=0, le=65535)  # 0 = disabled

    @property
    def broker_url(self) -> str:
        """Return the broker address as an mqtt:// URL."""
        return f"mqtt://{self.mqtt_broker}:{self.mqtt_port}"

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from a JSON or YAML file, with env var overrides.

        MQTT_USERNAME and MQTT_PASSWORD, when set, replace the credentials
        from the file.

        Raises:
            ConfigError: if the file is missing, unreadable or malformed
        """
        try:
            with open(path) as f:
                text = f.read()
        except OSError as e:
            raise ConfigError(f"Unable to open config file {path}: {e}") from e

        try:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Malformed config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        for key, env_var in (("username", "MQTT_USERNAME"), ("password", "MQTT_PASSWORD")):
            value = os.environ.get(env_var)
            if value is not None:
                data[key] = value

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e
