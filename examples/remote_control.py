"""Example of controlling an alarm through the Controller's remote requests."""

import threading
import time

from homealarm import Alarm, AlarmState, Controller, Status, make_countdown_policy


def main(timeout: float = 5.0) -> list[Status]:
    """Arm and disarm an alarm remotely, returning the published statuses."""
    alarm = Alarm(
        "1234", countdown=make_countdown_policy(ticks=0), display_clear_delay=0.1
    )
    controller = Controller(alarm)
    published: list[Status] = []

    @controller.on_status
    def on_status(status: Status) -> None:
        print(f"Publishing {status}")  # noqa: T201 # Valid CLI print
        published.append(status)

    stop_event = threading.Event()
    loop = threading.Thread(target=controller.run, args=(stop_event,))
    loop.start()

    # Requests are applied one per controller step, in order
    controller.request(AlarmState.ARMED)
    controller.request(AlarmState.DISARMED)
    deadline = time.monotonic() + timeout
    while len(published) < 3 and time.monotonic() < deadline:  # noqa: PLR2004
        time.sleep(0.01)

    stop_event.set()
    loop.join()
    alarm.join()
    return published


if __name__ == "__main__":
    main()
