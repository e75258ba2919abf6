"""Runs the alarm: keypad, door sensor, remote requests and display."""

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass

from .alarm import Alarm, AlarmState
from .door import DoorSensor

_LOGGER = logging.getLogger(__name__)

DISPLAY_DIGITS = 4


@dataclass(frozen=True)
class Status:
    """The door and alarm state reported to remote services."""

    door_is_open: bool
    alarm_state: AlarmState


def display_text(text: str) -> str:
    """Return the characters that fit the display - the last four."""
    return text[-DISPLAY_DIGITS:]


def apply_remote_request(alarm: Alarm, state: AlarmState) -> None:
    """Move the alarm towards a state requested by a remote service."""
    _LOGGER.info("Remote update received: %s", state)
    if state == AlarmState.ARMED:
        alarm.arm()
    elif state == AlarmState.ARMING:
        alarm.start_arming()
    elif state == AlarmState.DISARMED:
        alarm.disarm()
    elif state == AlarmState.TRIGGERED:
        alarm.trigger()
    elif state == AlarmState.TRIGGERING:
        alarm.start_triggering()


class Controller:
    """Feeds inputs into an Alarm and publishes its state."""

    alarm: Alarm
    _keypad: Callable[[], list[str]] | None
    _door: DoorSensor | None
    _render: Callable[[str], None] | None
    _requests: "queue.Queue[AlarmState]"
    _status_listeners: list[Callable[[Status], None]]
    _last_status: Status | None
    _displaying: str | None

    def __init__(
        self,
        alarm: Alarm,
        keypad: Callable[[], list[str]] | None = None,
        door: DoorSensor | None = None,
        render: Callable[[str], None] | None = None,
    ) -> None:
        """
        Create a controller.

        :param keypad: returns the keys pressed since the last call
        :param door: debounced door sensor
        :param render: shows up to four characters on the display
        """
        self.alarm = alarm
        self._keypad = keypad
        self._door = door
        self._render = render
        self._requests = queue.Queue()
        self._status_listeners = []
        self._last_status = None
        self._displaying = None

        if door is not None:
            alarm.set_door_is_open(door.is_open)

    def on_status(self, f: Callable[[Status], None]) -> Callable[[Status], None]:
        """
        Provide a decorator @controller.on_status for status listeners.

        Can also be called directly to add a listener
        """
        self._status_listeners.append(f)
        return f

    def request(self, state: AlarmState) -> None:
        """Queue a remote request. Safe to call from any thread."""
        self._requests.put(state)

    def status(self) -> Status:
        """Get the current status."""
        return Status(
            door_is_open=self.alarm.door_is_open, alarm_state=self.alarm.state
        )

    def step(self) -> None:
        """Process one round of remote requests, keys, door and display."""
        try:
            requested = self._requests.get_nowait()
        except queue.Empty:
            pass
        else:
            apply_remote_request(self.alarm, requested)

        if self._keypad is not None:
            for key in self._keypad():
                _LOGGER.debug("Key pressed: %s", key)
                self.alarm.key_pressed(key)

        door_changed = False
        if self._door is not None:
            is_open, door_changed = self._door.poll()
            if door_changed:
                _LOGGER.info("Door open: %s", is_open)
                self.alarm.set_door_is_open(is_open)

        status = self.status()
        if door_changed or self._last_status != status:
            self._notify(status)

        to_display = display_text(self.alarm.display)
        if to_display != self._displaying:
            _LOGGER.debug("Updating display: %s", to_display)
            self._displaying = to_display
            if self._render is not None:
                self._render(to_display)

    def _notify(self, status: Status) -> None:
        _LOGGER.debug("Updating status %s", status)
        self._last_status = status
        for listener in self._status_listeners:
            listener(status)

    def run(self, stop_event: threading.Event, interval: float = 0.01) -> None:
        """Step until stop_event is set."""
        _LOGGER.info("Setting initial status")
        self._notify(self.status())
        while not stop_event.is_set():
            self.step()
            stop_event.wait(interval)
        _LOGGER.info("Controller stopped")
