"""Cancellable background countdowns used for the alarm's timed transitions."""

import functools
import logging
import threading
from collections.abc import Callable

_LOGGER = logging.getLogger(__name__)

DEFAULT_TICKS = 10
DEFAULT_TICK_INTERVAL = 1.0


class Countdown:
    """
    Handle for one cancellable background countdown.

    The countdown policy drives the timing; the owner supplies on_tick which
    performs the per-tick side effects and reports whether the countdown is
    still live.
    """

    name: str
    _on_tick: Callable[["Countdown", int], bool]
    _cancelled: threading.Event

    def __init__(
        self, name: str, on_tick: Callable[["Countdown", int], bool] | None = None
    ) -> None:
        """Create a countdown handle. Ticks do nothing unless on_tick is given."""
        self.name = name
        self._on_tick = on_tick if on_tick is not None else _live_tick
        self._cancelled = threading.Event()

    def __repr__(self) -> str:
        """Show the countdown name and whether it was cancelled."""
        return f"<Countdown {self.name} cancelled={self.cancelled}>"

    @property
    def cancelled(self) -> bool:
        """Return True once cancel() has been called."""
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Cancel the countdown. Safe to call more than once."""
        if not self._cancelled.is_set():
            _LOGGER.debug("Cancelling %s", self)
        self._cancelled.set()

    def wait(self, seconds: float) -> bool:
        """
        Sleep for up to `seconds`, waking early on cancellation.

        Returns True if the countdown is still live afterwards.
        """
        return not self._cancelled.wait(seconds)

    def tick(self, remaining: int) -> bool:
        """Run the per-tick side effects. Returns True if still live."""
        if self.cancelled:
            return False
        return self._on_tick(self, remaining)


def _live_tick(countdown: Countdown, _remaining: int) -> bool:
    return not countdown.cancelled


CountdownPolicy = Callable[[Countdown], None]


def ticking_countdown(
    countdown: Countdown,
    ticks: int = DEFAULT_TICKS,
    interval: float = DEFAULT_TICK_INTERVAL,
) -> None:
    """Tick `ticks` times, `interval` seconds apart, stopping on cancellation."""
    for remaining in range(ticks, 0, -1):
        if not countdown.tick(remaining):
            return
        if not countdown.wait(interval):
            return


def make_countdown_policy(
    ticks: int = DEFAULT_TICKS, interval: float = DEFAULT_TICK_INTERVAL
) -> CountdownPolicy:
    """Build a ticking countdown policy with the given duration."""
    if ticks < 0 or interval < 0:
        msg = "Countdown ticks and interval must not be negative"
        raise ValueError(msg)
    return functools.partial(ticking_countdown, ticks=ticks, interval=interval)


def delay_policy(seconds: float) -> CountdownPolicy:
    """Build a policy that waits `seconds` without ticking."""

    def _delay(countdown: Countdown) -> None:
        countdown.wait(seconds)

    return _delay


def start_countdown(
    countdown: Countdown,
    policy: CountdownPolicy,
    on_finished: Callable[[Countdown], None],
) -> threading.Thread:
    """
    Run `policy` for `countdown` on a new thread, then call on_finished.

    on_finished is always called - including after cancellation - so the
    owner can decide whether to run an expiry action.
    """

    def _run() -> None:
        _LOGGER.debug("%s started", countdown)
        try:
            policy(countdown)
        finally:
            on_finished(countdown)

    t = threading.Thread(target=_run, name=f"countdown {countdown.name}", daemon=True)
    t.start()
    return t
