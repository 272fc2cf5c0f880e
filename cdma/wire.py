"""
Wire Codec

Small signed integers travel as single ASCII digits. Non-negative values are
sent as themselves and negatives as -2 * v, so the five values a composite
signal or code can hold map onto distinct digits:

    0 -> '0', 1 -> '1', -1 -> '2', 3 -> '3', -3 -> '6'

Request frame (station -> combiner), 3 bytes:
    [requester id][destination id][value]

Response frame (combiner -> station), 16 bytes:
    12 folded composite chips followed by 4 folded code elements
"""

import numpy as np
from typing import Iterable, Tuple

from .codes import CODE_LENGTH
from .errors import MalformedFrameError
from .message import Message
from .spreading import CHIP_LENGTH

REQUEST_LENGTH = 3
RESPONSE_LENGTH = CHIP_LENGTH + CODE_LENGTH

FOLDABLE_VALUES = (-3, -1, 0, 1, 3)
SIGNAL_DIGITS = frozenset(b"01236")
CODE_DIGITS = frozenset(b"12")
STATION_DIGITS = frozenset(b"123")
VALUE_DIGITS = frozenset(b"01234567")


def fold(value: int) -> str:
    """Encode one of {-3, -1, 0, 1, 3} as a single ASCII digit."""
    value = int(value)
    if value not in FOLDABLE_VALUES:
        raise MalformedFrameError(f"cannot fold {value}, expected one of {FOLDABLE_VALUES}")
    digit = value if value >= 0 else -2 * value
    return chr(ord("0") + digit)


def unfold(char) -> int:
    """Decode a digit produced by fold(). Accepts a str or a byte value."""
    given = char
    if isinstance(char, str):
        if len(char) != 1:
            raise MalformedFrameError(f"expected a single character, got {char!r}")
        char = ord(char)
    if char not in SIGNAL_DIGITS:
        raise MalformedFrameError(f"{given!r} is not a folded digit")
    digit = char - ord("0")
    if digit % 2 == 0:
        return digit // -2
    return digit


def fold_sequence(values: Iterable[int]) -> str:
    return "".join(fold(v) for v in values)


def unfold_sequence(data: bytes) -> np.ndarray:
    return np.array([unfold(b) for b in data], dtype=np.int64)


def _as_bytes(frame) -> bytes:
    if isinstance(frame, str):
        try:
            return frame.encode("ascii")
        except UnicodeEncodeError as e:
            raise MalformedFrameError(f"frame {frame!r} is not ASCII") from e
    return bytes(frame)


def _check_digits(frame: bytes, start: int, end: int, allowed: frozenset, what: str):
    for pos in range(start, end):
        if frame[pos] not in allowed:
            raise MalformedFrameError(
                f"{what} byte {bytes([frame[pos]])!r} at position {pos} "
                f"not in {bytes(sorted(allowed))!r}"
            )


def encode_request(message: Message) -> bytes:
    """Station -> combiner frame, e.g. Message(1, 3, 4) -> b'134'."""
    return f"{message.sender}{message.destination}{message.value}".encode("ascii")


def parse_request(frame) -> Message:
    """
    Parse a 3-byte request frame.

    Raises:
        MalformedFrameError: wrong length, or a byte outside the id/value digits
    """
    frame = _as_bytes(frame)
    if len(frame) != REQUEST_LENGTH:
        raise MalformedFrameError(
            f"request frame must be {REQUEST_LENGTH} bytes, got {len(frame)}: {frame!r}"
        )
    _check_digits(frame, 0, 2, STATION_DIGITS, "station id")
    _check_digits(frame, 2, 3, VALUE_DIGITS, "value")

    sender, destination, value = (b - ord("0") for b in frame)
    return Message(sender=sender, destination=destination, value=value)


def encode_response(signal: np.ndarray, code: np.ndarray) -> bytes:
    """Combiner -> station frame: folded composite signal then folded code."""
    signal = np.asarray(signal)
    code = np.asarray(code)
    if signal.shape != (CHIP_LENGTH,):
        raise MalformedFrameError(f"signal must have {CHIP_LENGTH} chips, got {signal.shape}")
    if code.shape != (CODE_LENGTH,) or not np.all(np.isin(code, (-1, 1))):
        raise MalformedFrameError(f"code must be {CODE_LENGTH} values in {{-1, +1}}, got {code}")
    return (fold_sequence(signal) + fold_sequence(code)).encode("ascii")


def parse_response(frame) -> Tuple[np.ndarray, np.ndarray]:
    """
    Parse a 16-byte response frame.

    Returns:
        signal: np.ndarray of shape (12,)
        code: np.ndarray of shape (4,)

    Raises:
        MalformedFrameError: wrong length, or a byte outside the digit set
            for its position
    """
    frame = _as_bytes(frame)
    if len(frame) != RESPONSE_LENGTH:
        raise MalformedFrameError(
            f"response frame must be {RESPONSE_LENGTH} bytes, got {len(frame)}: {frame!r}"
        )
    _check_digits(frame, 0, CHIP_LENGTH, SIGNAL_DIGITS, "signal")
    _check_digits(frame, CHIP_LENGTH, RESPONSE_LENGTH, CODE_DIGITS, "code")

    return unfold_sequence(frame[:CHIP_LENGTH]), unfold_sequence(frame[CHIP_LENGTH:])
