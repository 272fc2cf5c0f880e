"""Per-round station messages."""

from dataclasses import dataclass

import numpy as np

from .codes import validate_station
from .errors import DomainError

MAX_VALUE = 7


def validate_value(value: int) -> int:
    """Return value as an int, or raise DomainError if it is not 0-7."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise DomainError(f"value must be an integer, got {value!r}")
    if not 0 <= value <= MAX_VALUE:
        raise DomainError(f"value {value} outside [0, {MAX_VALUE}]")
    return int(value)


@dataclass(frozen=True)
class Message:
    """One station's submission for a round: send `value` to `destination`."""
    sender: int
    destination: int
    value: int

    def __post_init__(self):
        validate_station(self.sender)
        validate_station(self.destination)
        validate_value(self.value)

    def __str__(self):
        return f"station {self.sender} -> station {self.destination}: {self.value}"
