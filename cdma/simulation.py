"""
Round Simulation

Runs a full round: one thread per station plus the combiner, connected either
by in-process queues or by TCP. Failures in any task fail the whole round and
are re-raised to the caller.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .codes import STATION_IDS, CodeTable
from .combiner import CombinedRound, Combiner, combine_messages
from .config import ChannelConfig
from .despreading import Despreader
from .errors import JoinError, TransportError
from .message import Message
from .station import Station, StationResult
from .transport import Channel, QueueChannel, SocketChannel, accept, listen
from .wire import parse_response

logger = logging.getLogger(__name__)


@dataclass
class RoundResult:
    """Combiner view and per-station results of one round."""
    combined: Optional[CombinedRound]
    stations: Dict[int, StationResult]

    @property
    def composite(self) -> np.ndarray:
        return self.combined.composite

    def recovered(self) -> Dict[int, int]:
        """Recovered value keyed by receiving station."""
        return {sid: r.value for sid, r in sorted(self.stations.items())}

    def expected(self) -> Dict[int, int]:
        """Value each station should have recovered, from the sent messages."""
        return {r.sent.destination: r.sent.value for r in self.stations.values()}

    @property
    def lossless(self) -> bool:
        return self.recovered() == self.expected()


def _check_messages(messages: Sequence[Message]) -> Dict[int, Message]:
    by_station = {}
    for message in messages:
        if message.sender in by_station:
            raise JoinError(f"station {message.sender} submitted more than one message",
                            received=by_station.keys())
        by_station[message.sender] = message
    missing = [sid for sid in STATION_IDS if sid not in by_station]
    if missing:
        raise JoinError(f"no message for stations {missing}", received=by_station.keys())
    return by_station


class _Task(threading.Thread):
    """Thread that keeps its return value or exception."""

    def __init__(self, target: Callable, name: str):
        super().__init__(name=name, daemon=True)
        self._target_fn = target
        self.result = None
        self.error: Optional[BaseException] = None

    def run(self):
        try:
            self.result = self._target_fn()
        except BaseException as e:
            self.error = e


def _join_all(tasks: List[_Task], timeout: Optional[float]):
    for task in tasks:
        task.join(timeout)
    for task in tasks:
        if task.error is not None:
            raise task.error
    stalled = [t.name for t in tasks if t.is_alive()]
    if stalled:
        raise JoinError(f"tasks did not finish: {stalled}")


def _round_timeout(config: ChannelConfig) -> Optional[float]:
    if config.join_timeout is None or config.recv_timeout is None:
        return None
    return config.join_timeout + 2 * config.recv_timeout


def run_stations(
    messages: Dict[int, Message],
    channels: Dict[int, Channel],
    config: ChannelConfig,
    table: CodeTable,
) -> Dict[int, StationResult]:
    """Run one thread per station and collect their results."""
    tasks = []
    for sid, message in sorted(messages.items()):
        station = Station(message, channels[sid], config, table)
        tasks.append(_Task(station.run, name=f"station-{sid}"))
    for task in tasks:
        task.start()
    try:
        _join_all(tasks, _round_timeout(config))
    finally:
        for channel in channels.values():
            channel.close()
    return {task.result.station_id: task.result for task in tasks}


def simulate_round(
    messages: Sequence[Message],
    config: Optional[ChannelConfig] = None,
    table: Optional[CodeTable] = None,
) -> RoundResult:
    """
    Run a full round over in-process channels.

    Args:
        messages: one Message per station
        config: timeouts, decode mode and optional code table override
        table: explicit code table, takes precedence over config.walsh_codes

    Returns:
        RoundResult with the composite signal and each station's result
    """
    config = config or ChannelConfig()
    table = table or config.code_table()
    by_station = _check_messages(messages)

    station_ends = {}
    combiner_ends = []
    for sid in STATION_IDS:
        station_end, combiner_end = QueueChannel.pair(name=f"station-{sid}")
        station_ends[sid] = station_end
        combiner_ends.append(combiner_end)

    combiner = Combiner(config, table)

    def run_combiner():
        try:
            return combiner.run_round(combiner_ends)
        except BaseException:
            # unblock stations waiting on a response that will never come
            for channel in combiner_ends:
                channel.close()
            raise

    combiner_task = _Task(run_combiner, name="combiner")
    combiner_task.start()

    try:
        stations = run_stations(by_station, station_ends, config, table)
    except BaseException:
        combiner_task.join(_round_timeout(config))
        if combiner_task.error is not None:
            raise combiner_task.error
        raise
    _join_all([combiner_task], _round_timeout(config))

    return RoundResult(combined=combiner_task.result, stations=stations)


def serve(
    config: Optional[ChannelConfig] = None,
    table: Optional[CodeTable] = None,
    server=None,
    ready: Optional[threading.Event] = None,
) -> CombinedRound:
    """
    Accept three TCP stations and run the combiner for one round.

    Args:
        config: host, port and timeouts
        table: code table override
        server: already-listening socket (otherwise one is opened on config.port)
        ready: set once the server is listening
    """
    config = config or ChannelConfig()
    owns_server = server is None
    if owns_server:
        server = listen(config.host, config.port)
    logger.info("combiner listening on %s:%d", *server.getsockname()[:2])
    if ready is not None:
        ready.set()

    channels = []
    try:
        for _ in STATION_IDS:
            try:
                channels.append(accept(server, timeout=config.join_timeout))
            except TransportError as e:
                if not e.timed_out:
                    raise
                raise JoinError(
                    f"only {len(channels)} of {len(STATION_IDS)} stations connected "
                    f"within {config.join_timeout}s"
                ) from e
        return Combiner(config, table).run_round(channels)
    finally:
        for channel in channels:
            channel.close()
        if owns_server:
            server.close()


def run_clients(
    messages: Sequence[Message],
    config: Optional[ChannelConfig] = None,
    table: Optional[CodeTable] = None,
) -> Dict[int, StationResult]:
    """Connect one TCP station per message to the combiner and run the round."""
    config = config or ChannelConfig()
    table = table or config.code_table()
    by_station = _check_messages(messages)

    channels = {}
    try:
        for sid in STATION_IDS:
            channels[sid] = SocketChannel.connect(config.host, config.port,
                                                  timeout=config.recv_timeout)
    except BaseException:
        for channel in channels.values():
            channel.close()
        raise
    return run_stations(by_station, channels, config, table)


def despread_round(
    messages: Sequence[Message],
    table: Optional[CodeTable] = None,
    strict: bool = True,
) -> Dict[int, int]:
    """
    Run the round math without tasks or channels.

    Frames still go through the wire codec, so this exercises everything
    except the transport. Returns recovered values keyed by receiving station.
    """
    table = table or CodeTable()
    combined = combine_messages(_check_messages(messages), table)
    despreader = Despreader(strict=strict)

    recovered = {}
    for recipient, frame in sorted(combined.frames.items()):
        signal, code = parse_response(frame)
        recovered[recipient] = despreader.despread(signal, code).value
    return recovered
