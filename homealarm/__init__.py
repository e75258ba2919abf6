"""Module file for homealarm."""

from .alarm import Alarm, AlarmState
from .controller import Controller, Status
from .countdown import Countdown, make_countdown_policy
from .door import DoorSensor
from .hardware import AlarmSounder, BuzzerHardware, Hardware

__all__ = [
    "Alarm",
    "AlarmSounder",
    "AlarmState",
    "BuzzerHardware",
    "Controller",
    "Countdown",
    "DoorSensor",
    "Hardware",
    "Status",
    "make_countdown_policy",
]
__version__ = "0.0.0.dev0"
