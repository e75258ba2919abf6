"""Implements a keypad emulator with an interactive CLI UI."""

import logging
import queue
import threading

from homealarm.alarm import Alarm, AlarmState
from homealarm.controller import Controller, Status
from homealarm.countdown import make_countdown_policy
from homealarm.door import DoorSensor
from homealarm.hardware import Hardware

_LOGGER = logging.getLogger(__name__)


class ConsoleHardware(Hardware):
    """Hardware that logs beeps and the siren instead of playing them."""

    def low_beep(self) -> None:
        """Log the low tone."""
        _LOGGER.info("beep (low)")

    def medium_beep(self) -> None:
        """Log the medium tone."""
        _LOGGER.info("beep (medium)")

    def high_beep(self) -> None:
        """Log the high tone."""
        _LOGGER.info("beep (high)")

    def start_alarm(self) -> None:
        """Log the siren starting."""
        print("*** ALARM SOUNDING ***")  # noqa: T201 # Valid CLI print

    def stop_alarm(self) -> None:
        """Log the siren stopping."""
        _LOGGER.info("siren off")


class AlarmSimulator:
    """Drives an alarm from typed keypad input and door commands."""

    _keys: "queue.Queue[str]"
    _door_open: bool
    _stop_event: threading.Event
    _controller_thread: threading.Thread | None
    alarm: Alarm
    controller: Controller

    def __init__(
        self,
        code: str = "1234",
        countdown_seconds: int = 10,
        display_clear_delay: float = Alarm.DISPLAY_CLEAR_DELAY,
    ) -> None:
        """Create a simulator for an alarm with the given code and delays."""
        self._keys = queue.Queue()
        self._door_open = False
        self._stop_event = threading.Event()
        self._controller_thread = None
        self.alarm = Alarm(
            code,
            hardware=ConsoleHardware(),
            countdown=make_countdown_policy(ticks=countdown_seconds),
            display_clear_delay=display_clear_delay,
        )
        self.controller = Controller(
            self.alarm,
            keypad=self._read_keys,
            door=DoorSensor(read=lambda: self._door_open, settle_time=0),
            render=self._render,
        )
        self.controller.on_status(self._status_changed)

    def _read_keys(self) -> list[str]:
        keys = []
        while True:
            try:
                keys.append(self._keys.get_nowait())
            except queue.Empty:
                return keys

    def _render(self, text: str) -> None:
        print(f"[{text:>4}]")  # noqa: T201 # Valid CLI print

    def _status_changed(self, status: Status) -> None:
        print(  # noqa: T201 # Valid CLI print
            f"Alarm state: {status.alarm_state.value} door open: {status.door_is_open}"
        )

    def start(self, *, interactive: bool = True) -> None:
        """Start the controller loop and optionally read commands from stdin."""
        self._controller_thread = threading.Thread(
            target=self.controller.run,
            args=(self._stop_event,),
            name="controller loop",
        )
        self._controller_thread.start()

        if interactive:
            while True:
                try:
                    command = input("Keys: ")
                except EOFError:
                    command = "Q"
                if not self.interactive_command(command):
                    _LOGGER.debug("Stopping interactive commands")
                    break

    def interactive_command(self, command: str) -> bool:
        """Handle a user CLI command. Returns False when the user quits."""
        command = command.upper().strip()
        if command == "OPEN":
            self._door_open = True
        elif command == "CLOSE":
            self._door_open = False
        elif command.startswith("REMOTE "):
            name = command.removeprefix("REMOTE ").strip()
            try:
                self.controller.request(AlarmState[name])
            except KeyError:
                print(f"Unknown state {name}")  # noqa: T201 # Valid CLI print
        elif command == "Q":
            self.stop()
            return False
        elif command in ("", "?", "HELP"):
            print("Commands:")  # noqa: T201 # Valid CLI print
            print("  <keys>        : Press keys 0-9 A-D * #")  # noqa: T201
            print("  OPEN / CLOSE  : Open or close the door")  # noqa: T201
            print("  REMOTE <state>: Remote request, e.g. REMOTE ARMED")  # noqa: T201
            print("  Q             : Quit")  # noqa: T201
        else:
            for key in command:
                self._keys.put(key)

        return True

    def stop(self) -> None:
        """Stop the controller loop and any countdown."""
        _LOGGER.debug("Stopping AlarmSimulator")
        self._stop_event.set()
        if self._controller_thread is not None:
            self._controller_thread.join()
        self.alarm.disarm()
