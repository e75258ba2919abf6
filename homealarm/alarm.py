"""Provides the keypad driven state machine of the door alarm."""

import logging
import threading
from collections.abc import Callable
from enum import Enum

from .commands import (
    BACKSPACE_KEY,
    CLEAR_KEY,
    ENTER_KEY,
    Command,
    is_code,
    is_digit,
    is_letter,
    parse_command,
)
from .countdown import (
    Countdown,
    CountdownPolicy,
    delay_policy,
    make_countdown_policy,
    start_countdown,
)
from .hardware import Hardware

_LOGGER = logging.getLogger(__name__)


class AlarmState(Enum):
    """The states of the alarm."""

    DISARMED = "DISARMED"
    ARMING = "ARMING"
    ARMED = "ARMED"
    TRIGGERING = "TRIGGERING"
    TRIGGERED = "TRIGGERED"


DISPLAY_ARMED = "Armd"
DISPLAY_DISARMED = "disa"
DISPLAY_ALARM = "Alrm"

StateChangeCallback = Callable[[AlarmState, AlarmState], None]


class Alarm:
    """
    Keypad driven door alarm.

    Keys are fed in with key_pressed() and the reed switch with
    set_door_is_open(). Arming and triggering run a countdown on a background
    thread before moving on to ARMED / TRIGGERED; disarm() cancels it.

    A single re-entrant lock guards the whole record. Countdown ticks and
    expiry actions take the lock and check that their countdown is still
    live, so nothing from a cancelled countdown happens once disarm() has
    returned. The arming / triggering countdown and the display clear are
    held separately, so clearing the display never cancels a triggering
    countdown.
    """

    DISPLAY_CLEAR_DELAY: float = 5.0

    state: AlarmState
    code: str
    buffer: str
    display: str
    door_is_open: bool
    failures: int
    hardware: Hardware
    _countdown_policy: CountdownPolicy
    _display_clear_delay: float
    _on_state_change: StateChangeCallback | None
    _lock: threading.RLock
    _pending: Countdown | None
    _display_clear: Countdown | None
    _scheduled_threads: list[threading.Thread]

    def __init__(  # noqa: PLR0913 # Injection points of the alarm
        self,
        code: str,
        *,
        state: AlarmState = AlarmState.DISARMED,
        hardware: Hardware | None = None,
        countdown: CountdownPolicy | None = None,
        display_clear_delay: float | None = None,
        on_state_change: StateChangeCallback | None = None,
    ) -> None:
        """
        Create an alarm with an initial code.

        :param code: the secret code - a non-empty string of digits
        :param state: the initial state
        :param hardware: beeper and siren. Defaults to no-op hardware.
        :param countdown: policy used for the arming and triggering delays.
            Defaults to 10 one-second ticks.
        :param display_clear_delay: seconds before "Armd" / "disa" are cleared
        :param on_state_change: called as f(previous_state, state)
        """
        if not is_code(code):
            msg = "Alarm code must be a non-empty string of digits"
            raise ValueError(msg)

        self.state = state
        self.code = code
        self.buffer = ""
        self.display = ""
        self.door_is_open = False
        self.failures = 0
        self.hardware = hardware if hardware is not None else Hardware()
        self._countdown_policy = (
            countdown if countdown is not None else make_countdown_policy()
        )
        self._display_clear_delay = (
            display_clear_delay
            if display_clear_delay is not None
            else self.DISPLAY_CLEAR_DELAY
        )
        self._on_state_change = on_state_change
        self._lock = threading.RLock()
        self._pending = None
        self._display_clear = None
        self._scheduled_threads = []

    def on_state_change(self, f: StateChangeCallback | None) -> None:
        """Set the callback that receives (previous_state, state) changes."""
        self._on_state_change = f

    def key_pressed(self, key: str) -> None:
        """Handle a single key from the keypad."""
        with self._lock:
            # Typed keys replace "Armd" / "disa"
            self._cancel_display_clear()

            if key == BACKSPACE_KEY:
                self.hardware.medium_beep()
                self.buffer = self.buffer[:-1]
                self.display = self.buffer
                return

            if is_digit(key):
                self.hardware.low_beep()
            if is_letter(key):
                self.hardware.high_beep()

            if key == CLEAR_KEY:
                _LOGGER.debug("Clearing buffer")
                self.buffer = ""
                self.display = self.buffer
                return

            self.buffer += key
            self.display = self.buffer
            if key == ENTER_KEY:
                _LOGGER.debug("Attempting to execute command")
                self.hardware.medium_beep()
                entered = self.buffer
                self._execute_command(entered)
                self.buffer = ""
                if self.display == entered:
                    self.display = self.buffer

    def _execute_command(self, buffer: str) -> None:
        """Run the command in a #-terminated buffer."""
        command = parse_command(buffer)
        if command is None:
            _LOGGER.debug("Ignoring unknown command")
            return

        if command.type == Command.Type.ARM:
            if command.code == self.code:
                _LOGGER.info("Arming the alarm")
                self.start_arming()
            else:
                _LOGGER.warning("Arm command with incorrect code ignored")
            return

        if (
            command.type == Command.Type.CHANGE_CODE
            and self.state == AlarmState.DISARMED
        ):
            self._change_code(command)
            return

        if command.type == Command.Type.DISARM and command.code == self.code:
            _LOGGER.info("Disarming")
            self.disarm()
            return

        _LOGGER.debug("Command %s not accepted in state %s", command.type, self.state)

    def _change_code(self, command: Command) -> None:
        if command.code != self.code or command.new_code is None:
            _LOGGER.warning("The entered code was not correct - code not changed")
            return
        self.code = command.new_code
        _LOGGER.info("Changed the alarm code")
        self.hardware.low_beep()
        self.hardware.medium_beep()
        self.hardware.high_beep()

    def set_door_is_open(self, is_open: bool) -> None:  # noqa: FBT001 # Sensor reading
        """Record the door state, triggering the alarm if it opens while armed."""
        with self._lock:
            if self.door_is_open == is_open:
                return
            self.door_is_open = is_open
            _LOGGER.debug("Door open: %s", is_open)
            if self.state == AlarmState.ARMED and is_open:
                _LOGGER.info("Triggering alarm due to door open")
                self.start_triggering()

    def start_arming(self) -> None:
        """Start the arming countdown. Only allowed while disarmed."""
        with self._lock:
            if self.state != AlarmState.DISARMED:
                _LOGGER.warning(
                    "Attempted to arm while state was not disarmed, "
                    "current state is %s",
                    self.state,
                )
                return
            self._update_state(AlarmState.ARMING)
            self._schedule("arming", self._countdown_policy, self.arm)

    def arm(self) -> None:
        """
        Arm the alarm immediately.

        An arming countdown is dropped. A triggering countdown keeps running
        and still sounds the alarm.
        """
        with self._lock:
            if self.state == AlarmState.ARMING:
                self._cancel_pending()
            self._update_state(AlarmState.ARMED)
            self.display = DISPLAY_ARMED
            self._schedule_display_clear()

    def start_triggering(self) -> None:
        """Start the triggering countdown, after which the alarm sounds."""
        with self._lock:
            _LOGGER.info("Triggering alarm")
            self._update_state(AlarmState.TRIGGERING)
            self._schedule("triggering", self._countdown_policy, self.trigger)

    def trigger(self) -> None:
        """Sound the alarm immediately."""
        with self._lock:
            self._cancel_pending()
            self._cancel_display_clear()
            _LOGGER.info("Alarm triggered")
            self._update_state(AlarmState.TRIGGERED)
            self.display = DISPLAY_ALARM
            self.hardware.start_alarm()

    def disarm(self) -> None:
        """Cancel any countdown, silence the siren and disarm."""
        with self._lock:
            self._cancel_pending()
            self._cancel_display_clear()
            self.hardware.stop_alarm()
            self._update_state(AlarmState.DISARMED)
            _LOGGER.info("Alarm disarmed")
            self.display = DISPLAY_DISARMED
            self._schedule_display_clear()

    def _schedule_display_clear(self) -> None:
        self._cancel_display_clear()
        countdown = Countdown("display clear")
        self._display_clear = countdown
        self._start(
            countdown, delay_policy(self._display_clear_delay), self._clear_display
        )

    def _clear_display(self) -> None:
        self.display = ""

    def _schedule(
        self,
        name: str,
        policy: CountdownPolicy,
        on_expiry: Callable[[], None],
    ) -> None:
        """Start a ticking countdown, replacing (and cancelling) any pending one."""
        self._cancel_pending()
        # The ticks own the display until the countdown ends
        self._cancel_display_clear()
        countdown = Countdown(name, self._countdown_tick)
        self._pending = countdown
        self._start(countdown, policy, on_expiry)

    def _start(
        self,
        countdown: Countdown,
        policy: CountdownPolicy,
        on_expiry: Callable[[], None],
    ) -> None:
        def _finished(finished: Countdown) -> None:
            with self._lock:
                live = finished is self._pending or finished is self._display_clear
                if finished.cancelled or not live:
                    _LOGGER.debug("Alarm %s cancelled", finished.name)
                    return
                if finished is self._pending:
                    self._pending = None
                else:
                    self._display_clear = None
                _LOGGER.debug("Alarm %s completed", finished.name)
                on_expiry()

        self._scheduled_threads = [t for t in self._scheduled_threads if t.is_alive()]
        self._scheduled_threads.append(start_countdown(countdown, policy, _finished))

    def _countdown_tick(self, countdown: Countdown, remaining: int) -> bool:
        """Beep and show the remaining count, if countdown is still live."""
        with self._lock:
            if countdown is not self._pending or countdown.cancelled:
                return False
            self.hardware.medium_beep()
            self.display = str(remaining)
            return True

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _cancel_display_clear(self) -> None:
        if self._display_clear is not None:
            self._display_clear.cancel()
            self._display_clear = None

    def _update_state(self, state: AlarmState) -> None:
        previous_state = self.state
        if previous_state == state:
            return
        _LOGGER.debug("setting alarm state %s -> %s", previous_state, state)
        self.state = state
        if self._on_state_change is not None:
            self._on_state_change(previous_state, state)

    def join(self, timeout: float | None = None) -> None:
        """Wait for background countdown threads, including ones they start."""
        while True:
            threads = [
                t
                for t in self._scheduled_threads
                if t.is_alive() and t is not threading.current_thread()
            ]
            if not threads:
                return
            for t in threads:
                t.join(timeout)
                if t.is_alive():
                    return
