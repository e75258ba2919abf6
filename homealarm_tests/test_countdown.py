"""Test the cancellable countdown helpers."""

import threading
from unittest.mock import Mock

import pytest

from homealarm.countdown import (
    Countdown,
    delay_policy,
    make_countdown_policy,
    start_countdown,
    ticking_countdown,
)


def test_cancel_is_idempotent() -> None:
    """Check a countdown can be cancelled more than once."""
    countdown = Countdown("test")
    assert not countdown.cancelled
    countdown.cancel()
    countdown.cancel()
    assert countdown.cancelled


def test_wait_returns_early_when_cancelled() -> None:
    """Check wait() wakes up and reports cancellation."""
    countdown = Countdown("test")
    assert countdown.wait(0)
    countdown.cancel()
    assert not countdown.wait(60)


def test_ticking_countdown_ticks_down() -> None:
    """Check the ticking policy counts down to one."""
    on_tick = Mock(return_value=True)
    countdown = Countdown("test", on_tick)
    ticking_countdown(countdown, ticks=3, interval=0)

    assert [c.args[1] for c in on_tick.call_args_list] == [3, 2, 1]


def test_ticking_countdown_stops_when_tick_fails() -> None:
    """Check the policy stops once a tick reports the countdown is dead."""
    on_tick = Mock(side_effect=[True, False, True])
    countdown = Countdown("test", on_tick)
    ticking_countdown(countdown, ticks=3, interval=0)

    assert on_tick.call_count == 2


def test_tick_after_cancel_does_nothing() -> None:
    """Check no tick side effects happen after cancellation."""
    on_tick = Mock(return_value=True)
    countdown = Countdown("test", on_tick)
    countdown.cancel()

    assert not countdown.tick(5)
    assert on_tick.call_count == 0


def test_make_countdown_policy_rejects_negative() -> None:
    """Check a negative duration is rejected."""
    with pytest.raises(ValueError, match=r"must not be negative"):
        make_countdown_policy(ticks=-1)


def test_start_countdown_calls_finished() -> None:
    """Check on_finished is called after the policy, even when cancelled."""
    finished = threading.Event()
    results: list[bool] = []

    def _finished(countdown: Countdown) -> None:
        results.append(countdown.cancelled)
        finished.set()

    countdown = Countdown("test")
    t = start_countdown(countdown, delay_policy(60), _finished)
    countdown.cancel()
    t.join(5)

    assert finished.is_set()
    assert results == [True]
