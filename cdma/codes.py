"""
Walsh Code Table

The channel uses a fixed 4x4 table of {-1, +1} entries. Row 0 is never
assigned; rows 1-3 belong to stations 1-3. Despreading is only lossless while
the three used rows are pairwise orthogonal, so every table (default or
injected) is checked on construction.

Alternative tables come from the Sylvester Hadamard construction or from
random codes, the latter only to show what breaks without orthogonality.
"""

import numpy as np
from enum import Enum
from typing import Iterable, Optional, Sequence
from scipy.linalg import hadamard

from .errors import CodeTableError, DomainError


NUM_STATIONS = 3
CODE_LENGTH = 4
STATION_IDS = (1, 2, 3)

# Row 0 unused, rows 1-3 assigned to stations 1-3
WALSH_CODES = np.array(
    [
        [-1, -1, -1, -1],
        [-1, 1, -1, 1],
        [-1, -1, 1, 1],
        [-1, 1, 1, -1],
    ],
    dtype=np.int64,
)


class CodeFamily(Enum):
    """Sources for a station code table."""
    WALSH = "walsh"
    HADAMARD = "hadamard"
    RANDOM = "random"


def validate_station(station_id: int) -> int:
    """Return station_id as an int, or raise DomainError if it is not 1-3."""
    if isinstance(station_id, bool) or not isinstance(station_id, (int, np.integer)):
        raise DomainError(f"station id must be an integer, got {station_id!r}")
    if int(station_id) not in STATION_IDS:
        raise DomainError(f"station id {station_id} outside {STATION_IDS}")
    return int(station_id)


def generate_hadamard_table(negate: bool = True) -> np.ndarray:
    """
    Build a 4x4 Sylvester Hadamard table.

    scipy returns rows starting with +1; the default table starts every row
    with -1, so the rows are negated unless negate is False. Negation keeps
    the rows orthogonal.

    Returns:
        np.ndarray of shape (4, 4) with values in {-1, +1}
    """
    table = hadamard(CODE_LENGTH).astype(np.int64)
    if negate:
        table = -table
    return table


def generate_random_table(seed: Optional[int] = None) -> np.ndarray:
    """
    Random {-1, +1} table with no orthogonality guarantee.

    Only useful for measuring how despreading fails; CodeTable rejects it
    unless validation is turned off.
    """
    rng = np.random.default_rng(seed)
    return rng.choice([-1, 1], size=(CODE_LENGTH, CODE_LENGTH)).astype(np.int64)


def get_code_properties(codes: np.ndarray) -> dict:
    """
    Correlation statistics for the station rows of a table.

    Args:
        codes: np.ndarray of shape (num_codes, code_length)

    Returns:
        dict with num_codes, code_length, the Gram matrix, the largest
        off-diagonal |c_i @ c_j| and whether the rows are orthogonal
    """
    codes = np.asarray(codes, dtype=np.int64)
    num_codes, code_length = codes.shape

    gram = codes @ codes.T
    mask = ~np.eye(num_codes, dtype=bool)
    cross_corr = np.abs(gram[mask])
    max_cross = int(np.max(cross_corr)) if len(cross_corr) > 0 else 0

    return {
        "num_codes": num_codes,
        "code_length": code_length,
        "gram": gram.tolist(),
        "auto_correlation": np.diag(gram).tolist(),
        "max_cross_correlation": max_cross,
        "orthogonal": max_cross == 0,
    }


class CodeTable:
    """
    Walsh codes assigned to stations 1-3.

    Usage:
        table = CodeTable()               # the built-in table
        code = table.code_for(2)          # array([-1, -1,  1,  1])
        table = CodeTable(generate_hadamard_table())
    """

    def __init__(self, codes: Optional[Sequence[Sequence[int]]] = None, validate: bool = True):
        if codes is None:
            codes = WALSH_CODES
        table = np.array(codes, dtype=np.int64)

        if table.shape != (CODE_LENGTH, CODE_LENGTH):
            raise CodeTableError(
                f"code table must be {CODE_LENGTH}x{CODE_LENGTH}, got shape {table.shape}"
            )
        if not np.all(np.isin(table, (-1, 1))):
            raise CodeTableError("code table entries must be -1 or +1")

        self.codes = table
        self.codes.setflags(write=False)
        self.properties = get_code_properties(self.station_codes())

        if validate and not self.properties["orthogonal"]:
            raise CodeTableError(
                "station codes are not pairwise orthogonal "
                f"(max cross-correlation {self.properties['max_cross_correlation']})"
            )

    @classmethod
    def from_family(cls, family: CodeFamily, seed: Optional[int] = None) -> "CodeTable":
        if family == CodeFamily.WALSH:
            return cls()
        elif family == CodeFamily.HADAMARD:
            # scipy row order and sign; the negated form is WALSH_CODES itself
            return cls(generate_hadamard_table(negate=False))
        elif family == CodeFamily.RANDOM:
            return cls(generate_random_table(seed), validate=False)
        raise ValueError(f"Unknown code family: {family}")

    def code_for(self, station_id: int) -> np.ndarray:
        """Walsh code row owned by station_id."""
        return self.codes[validate_station(station_id)]

    def station_codes(self) -> np.ndarray:
        """Rows 1-3 as a (3, 4) array."""
        return self.codes[1:]

    def station_for(self, code: Iterable[int]) -> Optional[int]:
        """Station owning code, or None when no used row matches."""
        code = np.asarray(list(code), dtype=np.int64)
        for station_id in STATION_IDS:
            if np.array_equal(self.codes[station_id], code):
                return station_id
        return None

    @property
    def is_orthogonal(self) -> bool:
        return self.properties["orthogonal"]

    def to_list(self):
        return self.codes.tolist()

    def __eq__(self, other):
        if not isinstance(other, CodeTable):
            return NotImplemented
        return np.array_equal(self.codes, other.codes)

    def __repr__(self):
        return f"CodeTable({self.to_list()})"
