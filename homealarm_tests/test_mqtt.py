"""Test the Home Assistant MQTT bridge."""

import json
from collections.abc import Iterator
from unittest.mock import Mock, call

import pytest

from homealarm.alarm import AlarmState
from homealarm.config import Credentials
from homealarm.controller import Status
from homealarm.mqtt import (
    ALARM_TOPIC,
    CONTROL_TOPIC,
    DOOR_TOPIC,
    MqttBridge,
    parse_control_message,
)


@pytest.fixture
def client() -> Mock:
    """Mock paho client whose publishes succeed."""
    client = Mock()
    client.publish.return_value.rc = 0
    return client


@pytest.fixture
def request_state() -> Mock:
    """Receives states requested through MQTT."""
    return Mock()


@pytest.fixture
def bridge(client: Mock, request_state: Mock) -> Iterator[MqttBridge]:
    """Bridge using the mock client."""
    bridge = MqttBridge(
        Credentials(broker="broker", port=1883, username="u", password="p"),
        request=request_state,
        code=lambda: "1234",
        client=client,
        republish_interval=60,
    )
    yield bridge
    bridge.close()


def _message(payload: bytes, topic: str = CONTROL_TOPIC) -> Mock:
    msg = Mock()
    msg.payload = payload
    msg.topic = topic
    return msg


def _published(client: Mock, topic: str) -> list[str]:
    return [c.args[1] for c in client.publish.call_args_list if c.args[0] == topic]


@pytest.mark.parametrize(
    ("action", "expected"),
    [
        ("ARM_HOME", AlarmState.ARMING),
        ("ARM_AWAY", AlarmState.ARMING),
        ("DISARM", AlarmState.DISARMED),
        ("TRIGGER", AlarmState.TRIGGERED),
        ("PANIC", None),
    ],
)
def test_parse_control_message(action: str, expected: AlarmState | None) -> None:
    """Check each control action maps to the requested alarm state."""
    payload = json.dumps({"action": action, "code": "1234"}).encode()
    assert parse_control_message(payload, "1234") == expected


@pytest.mark.parametrize(
    "payload",
    [
        b'{"action": "DISARM", "code": "9999"}',
        b'{"action": "DISARM"}',
        b"not json",
        b"[1, 2]",
        b"\xff\xfe",
    ],
)
def test_parse_control_message_rejects(payload: bytes) -> None:
    """Check wrong codes and malformed messages are ignored."""
    assert parse_control_message(payload, "1234") is None


def test_login_is_set(client: Mock, bridge: MqttBridge) -> None:
    """Check the broker username and password are given to the client."""
    assert bridge is not None
    client.username_pw_set.assert_called_once_with("u", "p")


def test_connect_starts_loop(client: Mock, bridge: MqttBridge) -> None:
    """Check connect() connects to the broker and starts the network loop."""
    bridge.connect()
    client.connect.assert_called_once_with("broker", 1883)
    assert client.loop_start.call_count == 1


def test_connect_retries(client: Mock, bridge: MqttBridge) -> None:
    """Check a refused connection is retried."""
    client.connect.side_effect = [ConnectionRefusedError("refused"), None]
    bridge._backoff = Mock()
    bridge._backoff.duration.return_value = 0
    bridge.connect()
    assert client.connect.call_count == 2
    assert bridge._backoff.reset.call_count == 1


def test_on_connect_subscribes(client: Mock, bridge: MqttBridge) -> None:
    """Check the control topic is subscribed and availability published."""
    bridge._on_connect(client, None, {}, 0, None)
    client.subscribe.assert_called_once_with(CONTROL_TOPIC, qos=1)
    assert call("home-assistant/alarm/availability", "online", qos=1, retain=False) in (
        client.publish.call_args_list
    )


def test_control_message_requests_state(
    client: Mock, bridge: MqttBridge, request_state: Mock
) -> None:
    """Check a control message with the right code is forwarded."""
    bridge._on_message(client, None, _message(b'{"action":"DISARM","code":"1234"}'))
    bridge._on_message(client, None, _message(b'{"action":"DISARM","code":"0000"}'))
    request_state.assert_called_once_with(AlarmState.DISARMED)


@pytest.mark.parametrize(
    ("state", "payload"),
    [
        (AlarmState.DISARMED, "disarmed"),
        (AlarmState.ARMING, "arming"),
        (AlarmState.ARMED, "armed_home"),
        (AlarmState.TRIGGERING, "pending"),
        (AlarmState.TRIGGERED, "triggered"),
    ],
)
def test_update_alarm(
    client: Mock, bridge: MqttBridge, state: AlarmState, payload: str
) -> None:
    """Check alarm states are published retained with QoS 1."""
    bridge.update_alarm(state)
    client.publish.assert_any_call(ALARM_TOPIC, payload, qos=1, retain=True)


def test_update_door(client: Mock, bridge: MqttBridge) -> None:
    """Check door states are published retained."""
    bridge.update_door(True)
    bridge.update_door(False)
    assert _published(client, DOOR_TOPIC) == ["payload_on", "payload_off"]


def test_publish_status_only_changes(client: Mock, bridge: MqttBridge) -> None:
    """Check publish_status() only publishes what changed."""
    bridge.publish_status(Status(door_is_open=False, alarm_state=AlarmState.DISARMED))
    bridge.publish_status(Status(door_is_open=True, alarm_state=AlarmState.DISARMED))
    bridge.publish_status(Status(door_is_open=True, alarm_state=AlarmState.ARMED))

    assert _published(client, ALARM_TOPIC) == ["disarmed", "armed_home"]
    assert _published(client, DOOR_TOPIC) == ["payload_off", "payload_on"]


def test_republish(client: Mock, bridge: MqttBridge) -> None:
    """Check republish() sends the last known states again."""
    bridge.republish()
    assert _published(client, ALARM_TOPIC) == []

    bridge.update_alarm(AlarmState.ARMED)
    bridge.update_door(False)
    client.publish.reset_mock()
    bridge.republish()

    assert _published(client, ALARM_TOPIC) == ["armed_home"]
    assert _published(client, DOOR_TOPIC) == ["payload_off"]
