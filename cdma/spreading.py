"""
Spreading and Combining

Each station's 3-bit value becomes a bipolar symbol, the symbol is spread
against the station's Walsh code into 12 chips, and the combiner sums the
three chip sequences into the composite signal shared by every station.

Chip layout is symbol-major: chip[4*j + k] = symbol[j] * code[k].
"""

import numpy as np
from typing import Dict, Mapping

from .codes import CODE_LENGTH, STATION_IDS, CodeTable, validate_station
from .errors import DomainError, JoinError
from .message import validate_value

SYMBOL_LENGTH = 3
CHIP_LENGTH = SYMBOL_LENGTH * CODE_LENGTH

# SYMBOL_TABLE[v] is the bipolar form of v, most significant bit first
SYMBOL_TABLE = np.array(
    [[1 if (v >> shift) & 1 else -1 for shift in (2, 1, 0)] for v in range(8)],
    dtype=np.int64,
)
SYMBOL_TABLE.setflags(write=False)


def value_to_symbol(value: int) -> np.ndarray:
    """
    Map a value in [0, 7] to its bipolar symbol.

    bit=1 becomes +1 and bit=0 becomes -1, 4's place first:
    5 (0b101) -> [+1, -1, +1].
    """
    return SYMBOL_TABLE[validate_value(value)].copy()


def symbol_to_value(bits) -> int:
    """Fold three bits (4's place first) back into an integer."""
    b0, b1, b2 = (int(b) for b in bits)
    return 4 * b0 + 2 * b1 + b2


def spread(symbol: np.ndarray, code: np.ndarray) -> np.ndarray:
    """
    Spread a bipolar symbol against a Walsh code.

    Args:
        symbol: np.ndarray of shape (3,) with values in {-1, +1}
        code: np.ndarray of shape (4,) with values in {-1, +1}

    Returns:
        chips: np.ndarray of shape (12,), chip[4*j + k] = symbol[j] * code[k]
    """
    symbol = np.asarray(symbol, dtype=np.int64)
    code = np.asarray(code, dtype=np.int64)
    if symbol.shape != (SYMBOL_LENGTH,):
        raise DomainError(f"symbol must have {SYMBOL_LENGTH} elements, got {symbol.shape}")
    if code.shape != (CODE_LENGTH,):
        raise DomainError(f"code must have {CODE_LENGTH} elements, got {code.shape}")
    return np.outer(symbol, code).ravel()


def spread_value(value: int, station_id: int, table: CodeTable) -> np.ndarray:
    """Chip sequence a station contributes to the channel for value."""
    return spread(value_to_symbol(value), table.code_for(station_id))


def combine(chip_sequences: Mapping[int, np.ndarray]) -> np.ndarray:
    """
    Sum the three stations' chip sequences into the composite signal.

    Args:
        chip_sequences: dict mapping station id (1-3) to its 12 chips

    Returns:
        composite: np.ndarray of shape (12,), elements in {-3, -1, 1, 3}

    Raises:
        JoinError: if any station's sequence is missing
    """
    missing = [sid for sid in STATION_IDS if sid not in chip_sequences]
    if missing:
        raise JoinError(
            f"cannot combine without stations {missing}",
            received=[validate_station(sid) for sid in chip_sequences],
        )

    stacked = np.stack([np.asarray(chip_sequences[sid], dtype=np.int64) for sid in STATION_IDS])
    if stacked.shape != (len(STATION_IDS), CHIP_LENGTH):
        raise DomainError(
            f"chip sequences must each have {CHIP_LENGTH} chips, got shape {stacked.shape}"
        )
    return stacked.sum(axis=0)


def spread_all(values: Mapping[int, int], table: CodeTable) -> Dict[int, np.ndarray]:
    """Chip sequences for every station, keyed by station id."""
    return {
        sid: spread_value(value, sid, table)
        for sid, value in values.items()
    }
