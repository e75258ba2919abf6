"""Parser for the keypad command shapes."""

import re
from dataclasses import dataclass
from enum import Enum

DIGITS = frozenset("0123456789")
LETTERS = frozenset("ABCD")

ARM_KEY = "A"
CLEAR_KEY = "C"
DISARM_KEY = "D"
BACKSPACE_KEY = "*"
ENTER_KEY = "#"

# Found anywhere in the buffer, as long as it ends at a #
_CHANGE_CODE_PATTERN = re.compile(r"B([0-9]+)B([0-9]+)#")


def is_digit(key: str) -> bool:
    """Return True for the keys 0-9."""
    return key in DIGITS


def is_letter(key: str) -> bool:
    """Return True for the keys A-D."""
    return key in LETTERS


def is_code(value: str) -> bool:
    """Return True if value is a non-empty string of digits."""
    return len(value) > 0 and all(c in DIGITS for c in value)


@dataclass(frozen=True)
class Command:
    """A command entered on the keypad."""

    class Type(Enum):
        """The commands the keypad understands."""

        ARM = "ARM"
        CHANGE_CODE = "CHANGE_CODE"
        DISARM = "DISARM"

    type: Type
    code: str | None
    new_code: str | None = None


def parse_command(buffer: str) -> Command | None:
    """
    Parse a keypad buffer into a command, without checking any codes.

    A<code>#               -> ARM          (any other A... buffer has code None)
    ...B<digits>B<digits># -> CHANGE_CODE  (leftmost match, any prefix)
    D<code>#...            -> DISARM       (code is the text up to the first #)
    """
    if buffer.startswith(ARM_KEY):
        code = buffer[1:-1] if buffer.endswith(ENTER_KEY) else None
        return Command(type=Command.Type.ARM, code=code)

    change = _parse_change_code(buffer)
    if change is not None:
        return change

    if buffer.startswith(DISARM_KEY) and ENTER_KEY in buffer:
        code = buffer[1 : buffer.index(ENTER_KEY)]
        return Command(type=Command.Type.DISARM, code=code)

    return None


def _parse_change_code(buffer: str) -> Command | None:
    match = _CHANGE_CODE_PATTERN.search(buffer)
    if match is None:
        return None
    return Command(
        type=Command.Type.CHANGE_CODE, code=match.group(1), new_code=match.group(2)
    )
