import numpy as np
import pytest

from cdma.errors import DomainError, MalformedFrameError
from cdma.message import Message
from cdma.wire import (
    encode_request,
    encode_response,
    fold,
    parse_request,
    parse_response,
    unfold,
)

REFERENCE_SIGNAL = np.array([-3, 1, 1, 1, 1, 1, 1, -3, -1, -1, 3, -1])


@pytest.mark.parametrize("value,digit", [(0, "0"), (1, "1"), (-1, "2"), (3, "3"), (-3, "6")])
def test_fold(value, digit):
    assert fold(value) == digit
    assert unfold(digit) == value
    assert unfold(ord(digit)) == value


@pytest.mark.parametrize("value", [2, -2, 4, 7])
def test_fold_rejects_unfoldable(value):
    with pytest.raises(MalformedFrameError):
        fold(value)


@pytest.mark.parametrize("digit", ["4", "5", "7", "8", "9", "a", "-", "", "12"])
def test_unfold_rejects_unknown_digits(digit):
    with pytest.raises(MalformedFrameError):
        unfold(digit)


@pytest.mark.parametrize("char", ["€", "\u0394", 300, -1, 0x1F600])
def test_unfold_rejects_values_outside_a_byte(char):
    with pytest.raises(MalformedFrameError):
        unfold(char)


def test_request_frame():
    message = Message(sender=1, destination=3, value=4)
    frame = encode_request(message)
    assert frame == b"134"
    assert parse_request(frame) == message


def test_parse_request_accepts_str():
    assert parse_request("217") == Message(sender=2, destination=1, value=7)


@pytest.mark.parametrize("frame", [b"", b"13", b"1344", b"13 ", b"x34", b"434", b"104", b"138", b"1\x003"])
def test_parse_request_rejects_malformed(frame):
    with pytest.raises(MalformedFrameError):
        parse_request(frame)


def test_parse_request_rejects_non_ascii():
    with pytest.raises(MalformedFrameError):
        parse_request("1é4")


def test_response_frame():
    code = np.array([-1, -1, 1, 1])
    frame = encode_response(REFERENCE_SIGNAL, code)
    assert frame == b"6111111622322211"
    signal, parsed_code = parse_response(frame)
    assert signal.tolist() == REFERENCE_SIGNAL.tolist()
    assert parsed_code.tolist() == code.tolist()


@pytest.mark.parametrize("frame", [
    b"611111162232221",      # 15 bytes
    b"61111116223222111",    # 17 bytes
    b"6111111622342211",     # 4 in the signal
    b"6111111622320211",     # 0 in the code
    b"6111111622326211",     # 6 in the code
    b"611111162232221x",
])
def test_parse_response_rejects_malformed(frame):
    with pytest.raises(MalformedFrameError):
        parse_response(frame)


def test_encode_response_rejects_bad_code():
    with pytest.raises(MalformedFrameError):
        encode_response(REFERENCE_SIGNAL, np.array([0, 1, 1, 1]))
    with pytest.raises(MalformedFrameError):
        encode_response(REFERENCE_SIGNAL[:11], np.array([1, 1, 1, 1]))


def test_malformed_frame_is_a_value_error():
    assert issubclass(MalformedFrameError, ValueError)
    assert issubclass(DomainError, ValueError)
