"""
Station

A station submits one request frame, waits for its personalized response and
despreads the composite signal with the code carried in that response.
Stations share nothing with each other; everything they learn arrives over
their own channel.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .codes import CodeTable
from .config import ChannelConfig
from .despreading import Despreader, DespreadResult
from .message import Message
from .transport import Channel
from .wire import RESPONSE_LENGTH, encode_request, parse_response

logger = logging.getLogger(__name__)


@dataclass
class StationResult:
    """What one station sent and recovered in a round."""
    station_id: int
    sent: Message
    signal: np.ndarray
    code: np.ndarray
    value: int
    source: Optional[int]  # station owning `code`, if it is in the table
    despread: DespreadResult

    def summary(self) -> str:
        return (
            f"Station {self.station_id}\n"
            f"Signal: {' '.join(str(s) for s in self.signal)}\n"
            f"Code: {' '.join(str(c) for c in self.code)}\n"
            f"Received value = {self.value}"
        )


class Station:
    """
    One CDMA station.

    Usage:
        station = Station(message, channel, config)
        result = station.run()
    """

    def __init__(
        self,
        message: Message,
        channel: Channel,
        config: Optional[ChannelConfig] = None,
        table: Optional[CodeTable] = None,
    ):
        self.message = message
        self.channel = channel
        self.config = config or ChannelConfig()
        self.table = table or self.config.code_table()
        self.despreader = Despreader(strict=self.config.strict_decode)

    @property
    def station_id(self) -> int:
        return self.message.sender

    def send(self):
        logger.info(
            "station %d sending value %d to station %d",
            self.station_id, self.message.value, self.message.destination,
        )
        self.channel.send(encode_request(self.message))

    def receive(self) -> StationResult:
        frame = self.channel.recv_exact(RESPONSE_LENGTH, timeout=self.config.recv_timeout)
        signal, code = parse_response(frame)

        source = self.table.station_for(code)
        if source is None:
            logger.warning("station %d received a code outside the table: %s",
                           self.station_id, code.tolist())

        result = self.despreader.despread(signal, code)
        logger.info("station %d received value %d", self.station_id, result.value)

        return StationResult(
            station_id=self.station_id,
            sent=self.message,
            signal=signal,
            code=code,
            value=result.value,
            source=source,
            despread=result,
        )

    def run(self) -> StationResult:
        self.send()
        return self.receive()
