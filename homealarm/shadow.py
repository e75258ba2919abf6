"""Synchronises the alarm with an AWS IoT device shadow."""

import json
import logging
import threading
import urllib.parse
from collections.abc import Callable
from typing import Any

import paho.mqtt.client as mqtt
from justbackoff import Backoff

from .alarm import AlarmState
from .controller import Status

_LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 8883

# Shadow documents carry the state as its position in this list
SHADOW_STATES = [
    AlarmState.DISARMED,
    AlarmState.ARMING,
    AlarmState.ARMED,
    AlarmState.TRIGGERING,
    AlarmState.TRIGGERED,
]


def update_topic(device_name: str) -> str:
    """Get the shadow update topic for a device."""
    return f"$aws/things/{urllib.parse.quote(device_name, safe='')}/shadow/update"


def encode_reported(status: Status) -> bytes:
    """Build a shadow update document reporting the device status."""
    document = {
        "state": {
            "reported": {
                "doorIsOpen": status.door_is_open,
                "alarmState": SHADOW_STATES.index(status.alarm_state),
            }
        }
    }
    return json.dumps(document).encode("utf-8")


def decode_desired(payload: bytes) -> AlarmState | None:
    """
    Get the desired alarm state from an accepted shadow update document.

    Returns None if the document has no desired alarm state.
    """
    try:
        document = json.loads(payload)
        desired = document["state"].get("desired")
    except (ValueError, UnicodeDecodeError, KeyError, TypeError, AttributeError):
        _LOGGER.warning("Failed to decode shadow payload: %s", payload)
        return None

    if not isinstance(desired, dict) or "alarmState" not in desired:
        return None

    value = desired["alarmState"]
    if (
        not isinstance(value, int)
        or isinstance(value, bool)
        or not 0 <= value < len(SHADOW_STATES)
    ):
        _LOGGER.warning("Invalid desired alarm state in shadow: %s", value)
        return None
    return SHADOW_STATES[value]


class ShadowBridge:
    """Reports status to the device shadow and forwards desired states."""

    _device_name: str
    _host: str
    _port: int
    _client: mqtt.Client
    _request: Callable[[AlarmState], None]
    _backoff: Backoff
    _closed: threading.Event

    def __init__(  # noqa: PLR0913 # Bridge wiring
        self,
        device_name: str,
        host: str,
        request: Callable[[AlarmState], None],
        *,
        port: int = DEFAULT_PORT,
        ca_certs: str | None = None,
        certfile: str | None = None,
        keyfile: str | None = None,
        client: mqtt.Client | None = None,
    ) -> None:
        """
        Create a shadow bridge for one device.

        :param host: the IoT data endpoint
        :param request: receives desired states from the shadow
        :param ca_certs: root CA used to verify the endpoint
        :param certfile: device certificate (PEM)
        :param keyfile: device private key (PEM)
        """
        if client is None:
            client = mqtt.Client(
                mqtt.CallbackAPIVersion.VERSION2, client_id=device_name
            )
            client.tls_set(ca_certs=ca_certs, certfile=certfile, keyfile=keyfile)
        self._device_name = device_name
        self._host = host
        self._port = port
        self._client = client
        self._request = request
        self._backoff = Backoff()
        self._closed = threading.Event()
        client.on_connect = self._on_connect
        client.message_callback_add(self.accepted_topic, self._on_accepted)

    @property
    def update_topic(self) -> str:
        """Topic that shadow updates are published to."""
        return update_topic(self._device_name)

    @property
    def accepted_topic(self) -> str:
        """Topic that accepted shadow updates are received on."""
        return self.update_topic + "/accepted"

    def connect(self) -> None:
        """Connect to the endpoint, retrying with backoff, and start the loop."""
        while not self._closed.is_set():
            try:
                self._client.connect(self._host, self._port)
            except OSError as e:
                _LOGGER.warning(
                    "Failed to connect to IoT: %s - sleeping backoff %s",
                    e,
                    self._backoff.duration(),
                )
                self._closed.wait(self._backoff.duration())
            else:
                self._backoff.reset()
                self._client.loop_start()
                return

    def close(self) -> None:
        """Disconnect from the endpoint."""
        self._closed.set()
        self._client.loop_stop()
        self._client.disconnect()

    def report(self, status: Status) -> None:
        """Publish the device status to the shadow."""
        info = self._client.publish(self.update_topic, encode_reported(status), qos=0)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            _LOGGER.warning("Failed to publish shadow update: %s", info.rc)

    def _on_connect(
        self,
        client: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any = None,
    ) -> None:
        _LOGGER.info("Connected to IoT endpoint: %s", reason_code)
        client.subscribe(self.accepted_topic, qos=0)

    def _on_accepted(self, _client: mqtt.Client, _userdata: Any, msg: Any) -> None:
        state = decode_desired(msg.payload)
        if state is not None:
            _LOGGER.info("Desired alarm state from shadow: %s", state)
            self._request(state)
