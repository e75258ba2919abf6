"""Debounces the door reed switch."""

import logging
import time
from collections.abc import Callable

_LOGGER = logging.getLogger(__name__)


class DoorSensor:
    """
    Debounced door sensor.

    Wraps a raw read() callable returning True while the door is open. After
    a change, the switch is not sampled again until settle_time has passed.
    """

    SETTLE_TIME = 0.01

    _read: Callable[[], bool]
    _settle_time: float
    _clock: Callable[[], float]
    _last_change: float
    is_open: bool

    def __init__(
        self,
        read: Callable[[], bool],
        settle_time: float = SETTLE_TIME,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create a sensor, taking the initial reading immediately."""
        self._read = read
        self._settle_time = settle_time
        self._clock = clock
        self._last_change = clock()
        self.is_open = read()
        _LOGGER.debug("Door initially open: %s", self.is_open)

    def poll(self) -> tuple[bool, bool]:
        """Sample the switch, returning (is_open, changed)."""
        now = self._clock()
        if now - self._last_change < self._settle_time:
            return self.is_open, False

        previous = self.is_open
        self.is_open = self._read()
        if self.is_open == previous:
            return self.is_open, False

        self._last_change = now
        _LOGGER.debug("Door changed to open=%s", self.is_open)
        return self.is_open, True
