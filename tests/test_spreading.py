import numpy as np
import pytest

from cdma.codes import CodeTable
from cdma.errors import DomainError, JoinError
from cdma.message import Message
from cdma.spreading import (
    combine,
    spread,
    spread_all,
    spread_value,
    symbol_to_value,
    value_to_symbol,
)


@pytest.mark.parametrize("value,symbol", [
    (0, [-1, -1, -1]),
    (4, [1, -1, -1]),
    (5, [1, -1, 1]),
    (6, [1, 1, -1]),
    (7, [1, 1, 1]),
])
def test_value_to_symbol(value, symbol):
    assert value_to_symbol(value).tolist() == symbol


@pytest.mark.parametrize("value", [-1, 8, 2.0, None])
def test_value_to_symbol_rejects_out_of_range(value):
    with pytest.raises(DomainError):
        value_to_symbol(value)


def test_symbol_to_value():
    assert symbol_to_value([1, 0, 1]) == 5
    assert symbol_to_value([0, 0, 0]) == 0


def test_value_to_symbol_returns_copy():
    symbol = value_to_symbol(3)
    symbol[0] = 99
    assert value_to_symbol(3).tolist() == [-1, 1, 1]


def test_spread_is_symbol_major():
    chips = spread(np.array([1, -1, 1]), np.array([-1, -1, 1, 1]))
    assert chips.tolist() == [-1, -1, 1, 1, 1, 1, -1, -1, -1, -1, 1, 1]


def test_spread_is_deterministic():
    table = CodeTable()
    first = spread_value(6, 3, table)
    spread_value(1, 1, table)
    assert np.array_equal(first, spread_value(6, 3, table))


def test_spread_rejects_bad_shapes():
    with pytest.raises(DomainError):
        spread(np.array([1, -1]), np.array([1, 1, 1, 1]))
    with pytest.raises(DomainError):
        spread(np.array([1, -1, 1]), np.array([1, 1, 1]))


def test_reference_composite():
    table = CodeTable()
    chips = spread_all({1: 4, 2: 5, 3: 7}, table)
    composite = combine(chips)
    assert composite.tolist() == [-3, 1, 1, 1, 1, 1, 1, -3, -1, -1, 3, -1]


def test_composite_elements_are_odd():
    table = CodeTable()
    for values in [(0, 0, 0), (7, 7, 7), (1, 2, 3), (6, 0, 5)]:
        composite = combine(spread_all(dict(zip((1, 2, 3), values)), table))
        assert set(composite.tolist()) <= {-3, -1, 1, 3}


def test_combine_requires_all_stations():
    table = CodeTable()
    chips = spread_all({1: 4, 2: 5}, table)
    with pytest.raises(JoinError) as excinfo:
        combine(chips)
    assert excinfo.value.received == [1, 2]


def test_combine_rejects_short_sequence():
    chips = {1: np.ones(12), 2: np.ones(12), 3: np.ones(8)}
    with pytest.raises((DomainError, ValueError)):
        combine(chips)


def test_message_is_immutable_and_validated():
    message = Message(sender=1, destination=3, value=4)
    with pytest.raises(AttributeError):
        message.value = 5
    with pytest.raises(DomainError):
        Message(sender=1, destination=4, value=4)
    with pytest.raises(DomainError):
        Message(sender=1, destination=3, value=8)
