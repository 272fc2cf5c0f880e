"""
Combiner

The combiner is the rendezvous point of a round. It reads one request frame
from every station channel into a join buffer keyed by station id, and only
once all three have arrived does it spread, combine and answer. Each station
gets the composite signal plus the Walsh code of the station that addressed
it, which is the code its value must be despread with.
"""

import logging
import threading
import time
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .codes import STATION_IDS, CodeTable
from .config import ChannelConfig
from .errors import CDMAError, JoinError, RoutingError, TransportError
from .message import Message
from .spreading import combine, spread_all
from .transport import Channel
from .wire import REQUEST_LENGTH, encode_response, parse_request

logger = logging.getLogger(__name__)


class JoinBuffer:
    """
    Collects exactly one entry per station.

    Written once per station by the reader tasks and read once by the
    combiner after wait() returns.
    """

    def __init__(self, expected: Sequence[int] = STATION_IDS):
        self.expected = tuple(expected)
        self._entries: Dict[int, Tuple[Message, Channel]] = {}
        self._error: Optional[BaseException] = None
        self._cond = threading.Condition()

    def put(self, message: Message, channel: Channel):
        with self._cond:
            if message.sender in self._entries:
                self._error = self._error or JoinError(
                    f"duplicate request from station {message.sender}",
                    received=self._entries.keys(),
                )
            else:
                self._entries[message.sender] = (message, channel)
            self._cond.notify_all()

    def fail(self, error: BaseException):
        with self._cond:
            if self._error is None:
                self._error = error
            self._cond.notify_all()

    def _done(self) -> bool:
        return self._error is not None or all(s in self._entries for s in self.expected)

    def wait(self, timeout: Optional[float] = None) -> Dict[int, Tuple[Message, Channel]]:
        """
        Block until every station has reported.

        Raises:
            JoinError: on timeout or a duplicate station
            CDMAError: the first failure reported by a reader task
        """
        with self._cond:
            completed = self._cond.wait_for(self._done, timeout=timeout)
            if self._error is not None:
                raise self._error
            if not completed:
                raise JoinError(
                    f"only {len(self._entries)} of {len(self.expected)} station "
                    f"requests arrived within {timeout}s",
                    received=self._entries.keys(),
                )
            return dict(self._entries)

    @property
    def received(self) -> List[int]:
        with self._cond:
            return sorted(self._entries)


def route(messages: Mapping[int, Message]) -> Dict[int, int]:
    """
    Map each recipient to the station that addressed it.

    Raises:
        RoutingError: if some station is addressed twice or not at all
    """
    senders_by_recipient: Dict[int, List[int]] = {sid: [] for sid in STATION_IDS}
    for sender in sorted(messages):
        senders_by_recipient[messages[sender].destination].append(sender)

    unaddressed = [sid for sid, senders in senders_by_recipient.items() if not senders]
    if unaddressed:
        crowded = {sid: s for sid, s in senders_by_recipient.items() if len(s) > 1}
        raise RoutingError(
            f"stations {unaddressed} are not addressed by any message "
            f"(multiple senders: {crowded})"
        )
    return {sid: senders[0] for sid, senders in senders_by_recipient.items()}


@dataclass
class CombinedRound:
    """Everything the combiner computed for a round."""
    messages: Dict[int, Message]
    chips: Dict[int, np.ndarray]
    composite: np.ndarray
    routes: Dict[int, int]  # recipient -> sender
    frames: Dict[int, bytes] = field(default_factory=dict)


def combine_messages(messages: Mapping[int, Message], table: CodeTable) -> CombinedRound:
    """Spread, combine and build the response frames for a joined round."""
    routes = route(messages)
    chips = spread_all({sid: m.value for sid, m in messages.items()}, table)
    composite = combine(chips)

    frames = {
        recipient: encode_response(composite, table.code_for(sender))
        for recipient, sender in routes.items()
    }

    return CombinedRound(
        messages=dict(messages),
        chips=chips,
        composite=composite,
        routes=routes,
        frames=frames,
    )


class Combiner:
    """
    Runs the combiner side of one round.

    Usage:
        combiner = Combiner(config)
        result = combiner.run_round(channels)
    """

    def __init__(self, config: Optional[ChannelConfig] = None, table: Optional[CodeTable] = None):
        self.config = config or ChannelConfig()
        self.table = table or self.config.code_table()

    def _read_request(self, channel: Channel, buffer: JoinBuffer):
        try:
            frame = channel.recv_exact(REQUEST_LENGTH, timeout=self.config.recv_timeout)
            message = parse_request(frame)
        except TransportError as e:
            if e.timed_out and e.received_bytes == 0:
                # a silent station is a missing request, not a broken stream
                logger.error("no request on %s within %ss", channel.name, self.config.recv_timeout)
                buffer.fail(JoinError(
                    f"no request from {channel.name} within {self.config.recv_timeout}s",
                    received=buffer.received,
                ))
            else:
                logger.error("bad request on %s: %s", channel.name, e)
                buffer.fail(e)
            return
        except CDMAError as e:
            logger.error("bad request on %s: %s", channel.name, e)
            buffer.fail(e)
            return
        logger.info(
            "message from station %d: value=%d, destination=%d",
            message.sender, message.value, message.destination,
        )
        buffer.put(message, channel)

    def gather(self, channels: Sequence[Channel]) -> Dict[int, Tuple[Message, Channel]]:
        """Read one request per channel and wait for the join."""
        if len(channels) != len(STATION_IDS):
            raise JoinError(
                f"expected {len(STATION_IDS)} station channels, got {len(channels)}"
            )

        buffer = JoinBuffer()
        readers = [
            threading.Thread(
                target=self._read_request,
                args=(channel, buffer),
                name=f"combiner-read-{i}",
                daemon=True,
            )
            for i, channel in enumerate(channels)
        ]
        for reader in readers:
            reader.start()

        start = time.perf_counter()
        entries = buffer.wait(timeout=self.config.join_timeout)
        logger.debug("join completed in %.3fs", time.perf_counter() - start)
        return entries

    def run_round(self, channels: Sequence[Channel]) -> CombinedRound:
        entries = self.gather(channels)
        messages = {sid: message for sid, (message, _) in entries.items()}

        result = combine_messages(messages, self.table)
        logger.info("composite signal: %s", " ".join(str(c) for c in result.composite))

        for recipient, frame in result.frames.items():
            _, channel = entries[recipient]
            channel.send(frame)
            logger.debug("sent %r to station %d", frame, recipient)

        return result
