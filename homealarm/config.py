"""Loads broker credentials for the MQTT bridge."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

_LOGGER = logging.getLogger(__name__)

DEFAULT_MQTT_PORT = 1883


@dataclass(frozen=True)
class Credentials:
    """MQTT broker address and login."""

    broker: str
    port: int = DEFAULT_MQTT_PORT
    username: str | None = None
    password: str | None = None


def load_credentials(path: str | Path) -> Credentials:
    """
    Read broker credentials from a JSON file.

    The file has the keys "broker", "port", "user" and "pass"; only "broker"
    is required.
    """
    _LOGGER.debug("Reading credentials from %s", path)
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Failed to read credentials file {path}: {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict) or not isinstance(data.get("broker"), str):
        msg = f"Credentials file {path} must contain a 'broker' string"
        raise ValueError(msg)

    port = data.get("port", DEFAULT_MQTT_PORT)
    if not isinstance(port, int) or isinstance(port, bool):
        msg = f"Credentials file {path} has an invalid 'port': {port!r}"
        raise ValueError(msg)

    return Credentials(
        broker=data["broker"],
        port=port,
        username=data.get("user"),
        password=data.get("pass"),
    )
