"""CLI for conn-rate-monitor.

Usage:
    conn-rate-monitor run
    conn-rate-monitor --config /etc/conn-rate-monitor.yaml run
    conn-rate-monitor test
    conn-rate-monitor send "maintenance window starting"
    conn-rate-monitor check "<132>May 18 22:03:04 Testing1 a10logd: [ACOS]<4> ..."
"""

from pathlib import Path

import click
import structlog

from conn_rate_monitor.alerter import (
    MonitorDaemon,
    MqttNotifier,
    classify,
    format_notification,
    run_monitor,
)
from conn_rate_monitor.config import DEFAULT_CONFIG_PATH, Config
from conn_rate_monitor.errors import ConfigError, NotifierConnectError, PublishError
from conn_rate_monitor.logging import configure_logging, level_for_debug
from conn_rate_monitor.syslog import parse_rfc3164

SERVICE_NAME = "conn-rate-monitor"

log = structlog.get_logger()


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Config file path (JSON, or YAML by extension)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Path, verbose: bool) -> None:
    """Forward A10 Thunder connection-rate-limit alerts from syslog to MQTT."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def load_config(ctx: click.Context) -> Config:
    """Load the config and set up logging, or exit with status 1."""
    try:
        config = Config.from_file(ctx.obj["config_path"])
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    level = "DEBUG" if ctx.obj["verbose"] else level_for_debug(config.debug)
    configure_logging(SERVICE_NAME, level)
    return config


def connect_notifier(config: Config) -> MqttNotifier:
    """Connect to the broker or exit with status 1."""
    notifier = MqttNotifier(config)
    try:
        notifier.connect()
    except NotifierConnectError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    return notifier


@main.command("run")
@click.pass_context
def run(ctx: click.Context) -> None:
    """Run the monitor daemon.

    Listens for syslog on the configured UDP port and publishes
    connection-rate-exceeded events to the notify topic.
    """
    config = load_config(ctx)

    if config.debug > 5 or ctx.obj["verbose"]:
        click.echo("Starting connection rate monitor...")
        click.echo(f"  MQTT broker: {config.broker_url}")
        click.echo(f"  Notify topic: {config.notify_topic}")
        click.echo(f"  Syslog port: {config.syslog_port}/udp")
        click.echo("")

    try:
        run_monitor(config)
    except NotifierConnectError as e:
        log.error("Cannot start without MQTT broker", error=str(e))
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except OSError as e:
        log.error("Cannot bind syslog port", port=config.syslog_port, error=str(e))
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@main.command("test")
@click.pass_context
def test(ctx: click.Context) -> None:
    """Publish a test notification to verify broker and topic."""
    config = load_config(ctx)
    notifier = connect_notifier(config)
    daemon = MonitorDaemon(config, notifier=notifier)
    try:
        daemon.send_test_notification()
    except PublishError as e:
        click.echo(f"Failed to send test notification: {e}")
        raise SystemExit(1)
    finally:
        notifier.disconnect()
    click.echo("Test notification sent successfully!")


@main.command("send")
@click.argument("message")
@click.pass_context
def send(ctx: click.Context, message: str) -> None:
    """Publish a custom message to the notify topic."""
    config = load_config(ctx)
    notifier = connect_notifier(config)
    try:
        notifier.send(message)
    except PublishError as e:
        click.echo(f"Failed to send message: {e}")
        raise SystemExit(1)
    finally:
        notifier.disconnect()
    click.echo("Message sent!")


@main.command("check")
@click.argument("line")
@click.option("--client", default="127.0.0.1:514", help="Sender address to attribute the line to")
def check(line: str, client: str) -> None:
    """Show whether a raw syslog LINE would raise an alert.

    Does not read the config or contact the broker.
    """
    record = parse_rfc3164(line, client)
    click.echo(f"Hostname: {record.hostname}")
    click.echo(f"Tag: {record.tag or '-'}")
    click.echo(f"Content: {record.content}")

    if classify(record):
        click.echo(f"Alert: {format_notification(record)}")
    else:
        click.echo("No alert")


if __name__ == "__main__":
    main()
