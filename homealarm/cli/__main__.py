"""Main file for homealarm CLI."""

import logging
from importlib import metadata

import click

from homealarm import __version__
from homealarm.config import load_credentials
from homealarm.mqtt import MqttBridge
from homealarm.shadow import DEFAULT_PORT as SHADOW_PORT
from homealarm.shadow import ShadowBridge

from .simulator import AlarmSimulator

LOG_LEVELS = ["error", "warning", "info", "debug"]

_LOGGER = logging.getLogger(__name__)


@click.group()
@click.option("--log-level", type=click.Choice(LOG_LEVELS), default="warning")
def cli(log_level: str) -> None:
    """Create the click CLI group with specified log level."""
    logging.basicConfig(
        format="%(asctime)s.%(msecs)03d %(threadName)-25s %(levelname)-8s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    level = getattr(logging, log_level.upper())
    logging.getLogger().setLevel(level)
    _LOGGER.debug("homealarm version: %s", get_version())


@cli.command()
def version() -> None:
    """CLI command to print installed package version."""
    print(get_version())  # noqa: T201 # Valid CLI print


def get_version() -> str:
    """Get the version of the homealarm module."""
    try:
        return metadata.version("homealarm")
    except metadata.PackageNotFoundError:
        return __version__


@cli.command(help="Run an alarm driven by keys typed on stdin")
@click.option("--code", default="1234", show_default=True)
@click.option("--countdown", type=click.IntRange(min=0), default=10, show_default=True)
@click.option(
    "--mqtt-credentials",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with broker, port, user and pass",
)
@click.option("--shadow-endpoint", default=None, help="IoT data endpoint host")
@click.option("--shadow-port", type=int, default=SHADOW_PORT, show_default=True)
@click.option("--device-name", default="alarm", show_default=True)
@click.option("--ca-file", type=click.Path(exists=True, dir_okay=False))
@click.option("--cert-file", type=click.Path(exists=True, dir_okay=False))
@click.option("--key-file", type=click.Path(exists=True, dir_okay=False))
def simulate(  # noqa: PLR0913 # One option per CLI flag
    *,
    code: str,
    countdown: int,
    mqtt_credentials: str | None,
    shadow_endpoint: str | None,
    shadow_port: int,
    device_name: str,
    ca_file: str | None,
    cert_file: str | None,
    key_file: str | None,
) -> None:
    """Add the 'simulate' CLI command - an interactive keypad emulator."""
    try:
        simulator = AlarmSimulator(code=code, countdown_seconds=countdown)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--code") from e

    controller = simulator.controller
    mqtt_bridge = None
    shadow_bridge = None

    if mqtt_credentials is not None:
        try:
            credentials = load_credentials(mqtt_credentials)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--mqtt-credentials") from e
        mqtt_bridge = MqttBridge(
            credentials, request=controller.request, code=lambda: simulator.alarm.code
        )
        controller.on_status(mqtt_bridge.publish_status)
        mqtt_bridge.connect()

    if shadow_endpoint is not None:
        shadow_bridge = ShadowBridge(
            device_name,
            shadow_endpoint,
            request=controller.request,
            port=shadow_port,
            ca_certs=ca_file,
            certfile=cert_file,
            keyfile=key_file,
        )
        controller.on_status(shadow_bridge.report)
        shadow_bridge.connect()

    try:
        simulator.start(interactive=True)
    finally:
        if mqtt_bridge is not None:
            mqtt_bridge.close()
        if shadow_bridge is not None:
            shadow_bridge.close()


if __name__ == "__main__":
    cli()
