"""
Example that drives an alarm from a scripted sequence of key presses.

Arms the alarm, opens the door to trigger it, then disarms it.
"""

import time

from homealarm import Alarm, AlarmState, Hardware, make_countdown_policy

code = "1234"


class PrintingHardware(Hardware):
    """Hardware that prints the siren state."""

    def start_alarm(self) -> None:
        """Print that the siren started."""
        print("Siren on")  # noqa: T201 # Valid CLI print

    def stop_alarm(self) -> None:
        """Print that the siren stopped."""
        print("Siren off")  # noqa: T201 # Valid CLI print


def press(alarm: Alarm, keys: str) -> None:
    """Press each key in turn."""
    for key in keys:
        alarm.key_pressed(key)


def wait_for(alarm: Alarm, state: AlarmState, timeout: float = 5.0) -> bool:
    """Wait until the alarm reaches a state."""
    deadline = time.monotonic() + timeout
    while alarm.state != state:
        if time.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True


def main(tick_interval: float = 0.1) -> AlarmState:
    """Run the scripted session and return the final alarm state."""
    alarm = Alarm(
        code,
        hardware=PrintingHardware(),
        countdown=make_countdown_policy(ticks=3, interval=tick_interval),
        display_clear_delay=tick_interval,
    )
    alarm.on_state_change(
        lambda previous, state: print(  # noqa: T201 # Valid CLI print
            f"Alarm state changed {previous.value} -> {state.value}"
        )
    )

    press(alarm, f"A{code}#")
    wait_for(alarm, AlarmState.ARMED)

    alarm.set_door_is_open(True)
    wait_for(alarm, AlarmState.TRIGGERED)

    press(alarm, f"D{code}#")
    alarm.join()
    return alarm.state


if __name__ == "__main__":
    main(tick_interval=1.0)
