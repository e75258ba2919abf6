"""Publishes the alarm to Home Assistant over MQTT and accepts remote control."""

import json
import logging
import threading
from collections.abc import Callable
from typing import Any

import paho.mqtt.client as mqtt
from justbackoff import Backoff

from .alarm import AlarmState
from .config import Credentials
from .controller import Status

_LOGGER = logging.getLogger(__name__)

CONTROL_TOPIC = "home-assistant/alarm/control"
ALARM_TOPIC = "home-assistant/alarm/contact"
DOOR_TOPIC = "home-assistant/door/contact"
AVAILABILITY_TOPICS = (
    "home-assistant/alarm/availability",
    "home-assistant/door/availability",
)
AVAILABLE = "online"
DOOR_OPEN = "payload_on"
DOOR_CLOSED = "payload_off"

ALARM_PAYLOADS = {
    AlarmState.DISARMED: "disarmed",
    AlarmState.ARMING: "arming",
    AlarmState.ARMED: "armed_home",
    AlarmState.TRIGGERING: "pending",
    AlarmState.TRIGGERED: "triggered",
}

ACTIONS = {
    "ARM_HOME": AlarmState.ARMING,
    "ARM_AWAY": AlarmState.ARMING,
    "DISARM": AlarmState.DISARMED,
    "TRIGGER": AlarmState.TRIGGERED,
}


def parse_control_message(payload: bytes, code: str) -> AlarmState | None:
    """
    Decode a control message into the requested alarm state.

    Messages are JSON {"action": "ARM_AWAY", "code": "1234"}. Returns None
    if the message is malformed, the code is wrong, or the action unknown.
    """
    try:
        message = json.loads(payload)
    except (ValueError, UnicodeDecodeError):
        _LOGGER.warning("Failed to decode control message: %s", payload)
        return None

    if not isinstance(message, dict):
        _LOGGER.warning("Control message is not an object: %s", payload)
        return None

    if message.get("code") != code:
        _LOGGER.warning("Control message with incorrect code ignored")
        return None

    action = message.get("action")
    state = ACTIONS.get(action) if isinstance(action, str) else None
    if state is None:
        _LOGGER.warning("Unknown control action: %s", action)
    return state


class MqttBridge:
    """Keeps Home Assistant MQTT topics in step with the alarm."""

    REPUBLISH_INTERVAL = 600

    _credentials: Credentials
    _client: mqtt.Client
    _request: Callable[[AlarmState], None]
    _code: Callable[[], str]
    _backoff: Backoff
    _republish_interval: float
    _stop_event: threading.Event
    _republish_thread: threading.Thread | None
    _lock: threading.Lock
    _alarm_state: AlarmState | None
    _door_is_open: bool | None

    def __init__(  # noqa: PLR0913 # Bridge wiring
        self,
        credentials: Credentials,
        request: Callable[[AlarmState], None],
        code: Callable[[], str],
        *,
        client: mqtt.Client | None = None,
        client_id: str = "homealarm",
        republish_interval: float = REPUBLISH_INTERVAL,
    ) -> None:
        """
        Create a bridge.

        :param request: receives states requested by control messages
        :param code: returns the live alarm code, checked against messages
        :param client: paho client - created from client_id if not given
        :param republish_interval: seconds between full state republishes
        """
        if client is None:
            client = mqtt.Client(
                mqtt.CallbackAPIVersion.VERSION2, client_id=client_id
            )
        self._credentials = credentials
        self._client = client
        self._request = request
        self._code = code
        self._backoff = Backoff()
        self._republish_interval = republish_interval
        self._stop_event = threading.Event()
        self._republish_thread = None
        self._lock = threading.Lock()
        self._alarm_state = None
        self._door_is_open = None

        if credentials.username is not None:
            client.username_pw_set(credentials.username, credentials.password)
        client.on_connect = self._on_connect
        client.on_message = self._on_message

    def connect(self) -> None:
        """Connect to the broker, retrying with backoff, and start publishing."""
        while not self._stop_event.is_set():
            try:
                _LOGGER.debug(
                    "Connecting to %s:%s",
                    self._credentials.broker,
                    self._credentials.port,
                )
                self._client.connect(self._credentials.broker, self._credentials.port)
                break
            except OSError as e:
                _LOGGER.warning(
                    "Failed to connect: %s - sleeping backoff %s",
                    e,
                    self._backoff.duration(),
                )
                self._stop_event.wait(self._backoff.duration())
        else:
            return

        self._backoff.reset()
        self._client.loop_start()
        self._republish_thread = threading.Thread(
            target=self._republish_loop, name="mqtt republish", daemon=True
        )
        self._republish_thread.start()

    def close(self) -> None:
        """Stop publishing and disconnect."""
        _LOGGER.debug("Closing MQTT bridge")
        self._stop_event.set()
        if self._republish_thread is not None:
            self._republish_thread.join()
        self._client.loop_stop()
        self._client.disconnect()

    def _on_connect(
        self,
        client: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any = None,
    ) -> None:
        _LOGGER.info("Connected to MQTT broker: %s", reason_code)
        # Subscribing here renews the subscription after a reconnect
        client.subscribe(CONTROL_TOPIC, qos=1)
        _LOGGER.info("Subscribed to topic %s", CONTROL_TOPIC)
        self.publish_available()

    def _on_message(self, _client: mqtt.Client, _userdata: Any, msg: Any) -> None:
        _LOGGER.debug("Received message: %s on topic: %s", msg.payload, msg.topic)
        state = parse_control_message(msg.payload, self._code())
        if state is not None:
            self._request(state)

    def publish_status(self, status: Status) -> None:
        """Publish whichever of the alarm and door states changed."""
        with self._lock:
            alarm_changed = self._alarm_state != status.alarm_state
            door_changed = self._door_is_open != status.door_is_open
        if alarm_changed:
            self.update_alarm(status.alarm_state)
        if door_changed:
            self.update_door(status.door_is_open)

    def update_alarm(self, state: AlarmState) -> None:
        """Publish a new alarm state."""
        with self._lock:
            self._alarm_state = state
        self.publish_available()
        self._publish_alarm(state)

    def update_door(self, is_open: bool) -> None:  # noqa: FBT001 # Sensor reading
        """Publish a new door state."""
        with self._lock:
            self._door_is_open = is_open
        self._publish_door(is_open)
        self.publish_available()

    def publish_available(self) -> None:
        """Mark the alarm and door as online."""
        for topic in AVAILABILITY_TOPICS:
            self._publish(topic, AVAILABLE, qos=1, retain=False)

    def republish(self) -> None:
        """Publish availability and the last known alarm and door states."""
        with self._lock:
            alarm_state = self._alarm_state
            door_is_open = self._door_is_open
        self.publish_available()
        if alarm_state is not None:
            self._publish_alarm(alarm_state)
        if door_is_open is not None:
            self._publish_door(door_is_open)

    def _republish_loop(self) -> None:
        while not self._stop_event.wait(self._republish_interval):
            _LOGGER.debug("Publishing current state")
            self.republish()

    def _publish_alarm(self, state: AlarmState) -> None:
        _LOGGER.info("Setting alarm value in MQTT: %s", state)
        self._publish(ALARM_TOPIC, ALARM_PAYLOADS[state], qos=1, retain=True)

    def _publish_door(self, is_open: bool) -> None:  # noqa: FBT001
        _LOGGER.info("Setting door value in MQTT: %s", is_open)
        payload = DOOR_OPEN if is_open else DOOR_CLOSED
        self._publish(DOOR_TOPIC, payload, qos=0, retain=True)

    def _publish(self, topic: str, payload: str, *, qos: int, retain: bool) -> None:
        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            _LOGGER.warning("Failed to publish to %s: %s", topic, info.rc)
