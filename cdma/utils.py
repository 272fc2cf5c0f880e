"""
Utility Functions

Input parsing for the three-line round description and small helpers shared
by the CLI and experiments.
"""

import os
from typing import Iterable, List

from .codes import STATION_IDS
from .errors import DomainError
from .message import Message


def read_messages(lines: Iterable[str]) -> List[Message]:
    """
    Parse a round description.

    Each non-blank line is "<destination> <value>"; line i belongs to
    station i. Text after the two fields is ignored, so annotated inputs
    such as "3 4 // station 1 sends 4 to station 3" are accepted.

    Raises:
        DomainError: wrong number of lines, non-integer fields or values
            out of range
    """
    rows = [line.split() for line in lines if line.strip()]
    if len(rows) != len(STATION_IDS):
        raise DomainError(f"expected {len(STATION_IDS)} input lines, got {len(rows)}")

    messages = []
    for sender, fields in zip(STATION_IDS, rows):
        if len(fields) < 2:
            raise DomainError(f"line {sender}: expected '<destination> <value>', got {fields}")
        try:
            destination, value = int(fields[0]), int(fields[1])
        except ValueError as e:
            raise DomainError(f"line {sender}: {e}") from e
        messages.append(Message(sender=sender, destination=destination, value=value))
    return messages


def format_sequence(values) -> str:
    return " ".join(str(int(v)) for v in values)


def ensure_dir(path: str):
    """Create directory if it doesn't exist."""
    os.makedirs(path, exist_ok=True)
