import threading

import numpy as np
import pytest

from cdma.codes import CodeTable
from cdma.combiner import Combiner, JoinBuffer, combine_messages, route
from cdma.config import ChannelConfig
from cdma.errors import JoinError, MalformedFrameError, RoutingError, TransportError
from cdma.message import Message
from cdma.transport import QueueChannel
from cdma.wire import parse_response


def _messages(destinations, values=(4, 5, 7)):
    return {
        sender: Message(sender=sender, destination=dest, value=value)
        for sender, dest, value in zip((1, 2, 3), destinations, values)
    }


def test_route_maps_recipient_to_sender():
    assert route(_messages((3, 1, 2))) == {1: 2, 2: 3, 3: 1}
    assert route(_messages((1, 2, 3))) == {1: 1, 2: 2, 3: 3}


def test_route_rejects_unaddressed_station():
    with pytest.raises(RoutingError, match=r"\[1\]"):
        route(_messages((3, 3, 2)))


def test_combine_messages_reference(reference_messages):
    messages = {m.sender: m for m in reference_messages}
    combined = combine_messages(messages, CodeTable())
    assert combined.composite.tolist() == [-3, 1, 1, 1, 1, 1, 1, -3, -1, -1, 3, -1]
    assert combined.routes == {1: 2, 2: 3, 3: 1}

    # each frame carries the code of the station that addressed the recipient
    _, code = parse_response(combined.frames[1])
    assert code.tolist() == [-1, -1, 1, 1]
    _, code = parse_response(combined.frames[3])
    assert code.tolist() == [-1, 1, -1, 1]


def test_join_buffer_waits_for_all():
    buffer = JoinBuffer()
    a, _ = QueueChannel.pair()
    for message in _messages((3, 1, 2)).values():
        buffer.put(message, a)
    entries = buffer.wait(timeout=1)
    assert sorted(entries) == [1, 2, 3]


def test_join_buffer_timeout_reports_received():
    buffer = JoinBuffer()
    a, _ = QueueChannel.pair()
    buffer.put(Message(sender=2, destination=1, value=5), a)
    with pytest.raises(JoinError) as excinfo:
        buffer.wait(timeout=0.05)
    assert excinfo.value.received == [2]


def test_join_buffer_rejects_duplicate():
    buffer = JoinBuffer()
    a, _ = QueueChannel.pair()
    buffer.put(Message(sender=2, destination=1, value=5), a)
    buffer.put(Message(sender=2, destination=3, value=1), a)
    with pytest.raises(JoinError, match="duplicate"):
        buffer.wait(timeout=1)


def test_join_buffer_releases_on_failure():
    buffer = JoinBuffer()
    threading.Timer(0.05, buffer.fail, args=(MalformedFrameError("bad"),)).start()
    with pytest.raises(MalformedFrameError):
        buffer.wait(timeout=5)


def _combiner_ends():
    station_ends, combiner_ends = [], []
    for _ in range(3):
        s, c = QueueChannel.pair()
        station_ends.append(s)
        combiner_ends.append(c)
    return station_ends, combiner_ends


def test_combiner_answers_in_any_arrival_order():
    station_ends, combiner_ends = _combiner_ends()
    # stations connect in reverse order of their ids
    for end, frame in zip(station_ends, (b"327", b"215", b"134")):
        end.send(frame)

    config = ChannelConfig(join_timeout=2, recv_timeout=2)
    result = Combiner(config).run_round(combiner_ends)
    assert result.composite.tolist() == [-3, 1, 1, 1, 1, 1, 1, -3, -1, -1, 3, -1]

    # channel 0 belongs to station 3, which receives station 1's code
    _, code = parse_response(station_ends[0].recv_exact(16, timeout=1))
    assert code.tolist() == [-1, 1, -1, 1]


def test_combiner_rejects_malformed_request():
    station_ends, combiner_ends = _combiner_ends()
    for end, frame in zip(station_ends, (b"134", b"295", b"327")):
        end.send(frame)
    with pytest.raises(MalformedFrameError):
        Combiner(ChannelConfig(join_timeout=2, recv_timeout=2)).run_round(combiner_ends)


def test_combiner_join_timeout():
    station_ends, combiner_ends = _combiner_ends()
    station_ends[0].send(b"134")
    station_ends[1].send(b"215")
    config = ChannelConfig(join_timeout=0.1, recv_timeout=None)
    with pytest.raises(JoinError) as excinfo:
        Combiner(config).run_round(combiner_ends)
    assert excinfo.value.received == [1, 2]


def test_combiner_requires_three_channels():
    _, combiner_ends = _combiner_ends()
    with pytest.raises(JoinError):
        Combiner().run_round(combiner_ends[:2])


def test_combiner_duplicate_station():
    station_ends, combiner_ends = _combiner_ends()
    for end, frame in zip(station_ends, (b"134", b"115", b"327")):
        end.send(frame)
    with pytest.raises(JoinError, match="duplicate"):
        Combiner(ChannelConfig(join_timeout=2, recv_timeout=2)).run_round(combiner_ends)


def test_combiner_uses_injected_table():
    table = CodeTable(np.array([[1, 1, 1, 1], [1, -1, 1, -1], [1, 1, -1, -1], [1, -1, -1, 1]]))
    station_ends, combiner_ends = _combiner_ends()
    for end, frame in zip(station_ends, (b"134", b"215", b"327")):
        end.send(frame)
    Combiner(ChannelConfig(join_timeout=2, recv_timeout=2), table).run_round(combiner_ends)
    _, code = parse_response(station_ends[0].recv_exact(16, timeout=1))
    assert code.tolist() == [1, 1, -1, -1]


def test_silent_station_is_a_join_failure_with_equal_timeouts():
    station_ends, combiner_ends = _combiner_ends()
    station_ends[0].send(b"134")
    station_ends[1].send(b"215")
    config = ChannelConfig(join_timeout=0.3, recv_timeout=0.3)
    with pytest.raises(JoinError) as excinfo:
        Combiner(config).run_round(combiner_ends)
    assert excinfo.value.received == [1, 2]


def test_silent_station_with_default_timeouts_is_a_join_failure():
    defaults = ChannelConfig()
    assert defaults.join_timeout == defaults.recv_timeout

    station_ends, combiner_ends = _combiner_ends()
    station_ends[0].send(b"134")
    # scale the defaults down, keeping them equal
    config = ChannelConfig(join_timeout=defaults.join_timeout / 50,
                           recv_timeout=defaults.recv_timeout / 50)
    with pytest.raises(JoinError):
        Combiner(config).run_round(combiner_ends)


def test_stall_mid_frame_is_a_transport_failure():
    station_ends, combiner_ends = _combiner_ends()
    station_ends[0].send(b"134")
    station_ends[1].send(b"215")
    station_ends[2].send(b"32")
    config = ChannelConfig(join_timeout=2, recv_timeout=0.1)
    with pytest.raises(TransportError) as excinfo:
        Combiner(config).run_round(combiner_ends)
    assert excinfo.value.timed_out
    assert excinfo.value.received_bytes == 2


def test_join_buffer_received_tracks_stations():
    buffer = JoinBuffer()
    a, _ = QueueChannel.pair()
    assert buffer.received == []
    buffer.put(Message(sender=3, destination=1, value=2), a)
    buffer.put(Message(sender=1, destination=2, value=6), a)
    assert buffer.received == [1, 3]
