"""Provides the hardware capabilities the alarm state machine depends on."""

import logging
import threading
from collections.abc import Callable

_LOGGER = logging.getLogger(__name__)

Beeper = Callable[[float, float], None]


class Hardware:
    """
    Capabilities required by the alarm from the electronics.

    Every operation is a no-op so an alarm can run without real hardware.
    Subclasses override the operations they can perform.
    """

    def low_beep(self) -> None:
        """Emit a low tone (digit pressed)."""

    def medium_beep(self) -> None:
        """Emit a medium tone (backspace, enter, countdown tick)."""

    def high_beep(self) -> None:
        """Emit a high tone (letter pressed)."""

    def start_alarm(self) -> None:
        """Start sounding the alarm."""

    def stop_alarm(self) -> None:
        """Stop sounding the alarm. Must be safe when not sounding."""


class AlarmSounder:
    """Plays a repeating siren through a beeper while the alarm is sounding."""

    SIREN: tuple[float, ...] = (1000.0, 1500.0, 2000.0)
    TONE_DURATION = 0.05
    TONE_GAP = 0.01
    PAUSE = 0.15

    _beep: Beeper
    _lock: threading.Lock
    _sounding: bool

    def __init__(self, beep: Beeper) -> None:
        """Create a sounder that plays tones using beep(frequency, duration)."""
        self._beep = beep
        self._lock = threading.Lock()
        self._sounding = False

    @property
    def is_sounding(self) -> bool:
        """Return True while the siren is on."""
        with self._lock:
            return self._sounding

    def start(self) -> None:
        """Turn the siren on."""
        with self._lock:
            self._sounding = True

    def stop(self) -> None:
        """Turn the siren off."""
        with self._lock:
            self._sounding = False

    def run(self, stop_event: threading.Event) -> None:
        """Play the siren whenever it is on, until stop_event is set."""
        _LOGGER.debug("AlarmSounder loop starting")
        while not stop_event.is_set():
            if self.is_sounding:
                for i, frequency in enumerate(self.SIREN):
                    if i > 0 and stop_event.wait(self.TONE_GAP):
                        break
                    self._beep(frequency, self.TONE_DURATION)
            stop_event.wait(self.PAUSE)
        _LOGGER.debug("AlarmSounder loop ended")


class BuzzerHardware(Hardware):
    """Hardware backed by a single piezo buzzer."""

    LOW_FREQUENCY = 110.0
    MEDIUM_FREQUENCY = 329.0
    HIGH_FREQUENCY = 880.0
    BEEP_DURATION = 0.05

    def __init__(self, beep: Beeper, sounder: AlarmSounder | None = None) -> None:
        """
        Create buzzer backed hardware.

        :param beep: plays one tone - called as beep(frequency_hz, duration_s)
        :param sounder: siren used for start_alarm()/stop_alarm(). Defaults to
            a sounder using the same beeper; its run() loop must be started by
            the caller.
        """
        self._beep = beep
        self.sounder = sounder if sounder is not None else AlarmSounder(beep)

    def low_beep(self) -> None:
        """Play the low tone."""
        self._beep(self.LOW_FREQUENCY, self.BEEP_DURATION)

    def medium_beep(self) -> None:
        """Play the medium tone."""
        self._beep(self.MEDIUM_FREQUENCY, self.BEEP_DURATION)

    def high_beep(self) -> None:
        """Play the high tone."""
        self._beep(self.HIGH_FREQUENCY, self.BEEP_DURATION)

    def start_alarm(self) -> None:
        """Start the siren."""
        _LOGGER.info("Starting siren")
        self.sounder.start()

    def stop_alarm(self) -> None:
        """Stop the siren."""
        self.sounder.stop()
