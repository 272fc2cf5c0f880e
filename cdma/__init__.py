"""
Three-station CDMA channel

Three stations each send a 3-bit value to one another through a combiner
that superimposes their Walsh-spread signals; every station recovers the
value addressed to it from the shared composite signal.
"""

from .codes import (
    WALSH_CODES,
    STATION_IDS,
    CodeTable,
    CodeFamily,
    generate_hadamard_table,
    generate_random_table,
    get_code_properties,
)
from .errors import (
    CDMAError,
    DomainError,
    MalformedFrameError,
    CodeTableError,
    RoutingError,
    DecodeError,
    JoinError,
    TransportError,
)
from .message import Message
from .spreading import value_to_symbol, spread, spread_value, combine
from .despreading import Despreader, DespreadResult, despread
from .wire import fold, unfold, encode_request, parse_request, encode_response, parse_response
from .config import ChannelConfig
from .combiner import Combiner, JoinBuffer, combine_messages
from .station import Station, StationResult
from .simulation import RoundResult, simulate_round, serve, run_clients, despread_round

__version__ = "0.1.0"
__all__ = [
    "WALSH_CODES",
    "STATION_IDS",
    "CodeTable",
    "CodeFamily",
    "generate_hadamard_table",
    "generate_random_table",
    "get_code_properties",
    "CDMAError",
    "DomainError",
    "MalformedFrameError",
    "CodeTableError",
    "RoutingError",
    "DecodeError",
    "JoinError",
    "TransportError",
    "Message",
    "value_to_symbol",
    "spread",
    "spread_value",
    "combine",
    "Despreader",
    "DespreadResult",
    "despread",
    "fold",
    "unfold",
    "encode_request",
    "parse_request",
    "encode_response",
    "parse_response",
    "ChannelConfig",
    "Combiner",
    "JoinBuffer",
    "combine_messages",
    "Station",
    "StationResult",
    "RoundResult",
    "simulate_round",
    "serve",
    "run_clients",
    "despread_round",
]
