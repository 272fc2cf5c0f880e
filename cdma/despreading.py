"""
Despreading

A station correlates the composite signal against a Walsh code, one group of
four chips per symbol. Orthogonality cancels the other two stations'
contributions, so each group sums to exactly +4 or -4 and averages to +1
(bit 1) or -1 (bit 0).

Strict mode raises DecodeError on any other average. Legacy mode reproduces
C receivers: truncating integer division, and anything other than
+1 decodes as 0.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .codes import CODE_LENGTH
from .errors import DecodeError, DomainError
from .spreading import CHIP_LENGTH, SYMBOL_LENGTH, symbol_to_value


@dataclass
class DespreadResult:
    """Outcome of despreading one composite signal."""
    value: int
    bits: np.ndarray  # three bits, 4's place first
    correlations: np.ndarray  # per-group sums of signal * code
    averages: np.ndarray  # correlations / 4, truncated toward zero
    signal: Optional[np.ndarray] = None
    code: Optional[np.ndarray] = None


def correlate(signal: np.ndarray, code: np.ndarray) -> np.ndarray:
    """
    Per-group correlation of a composite signal with a code.

    Args:
        signal: np.ndarray of shape (12,)
        code: np.ndarray of shape (4,)

    Returns:
        np.ndarray of shape (3,), sum over each group of signal * code
    """
    signal = np.asarray(signal, dtype=np.int64)
    code = np.asarray(code, dtype=np.int64)
    if signal.shape != (CHIP_LENGTH,):
        raise DomainError(f"signal must have {CHIP_LENGTH} chips, got shape {signal.shape}")
    if code.shape != (CODE_LENGTH,):
        raise DomainError(f"code must have {CODE_LENGTH} elements, got shape {code.shape}")
    return signal.reshape(SYMBOL_LENGTH, CODE_LENGTH) @ code


def _truncating_average(correlations: np.ndarray) -> np.ndarray:
    # C integer division rounds toward zero
    return np.sign(correlations) * (np.abs(correlations) // CODE_LENGTH)


class Despreader:
    """
    Recovers the value addressed to a station.

    Usage:
        despreader = Despreader()
        result = despreader.despread(signal, code)
        result.value
    """

    def __init__(self, strict: bool = True):
        self.strict = strict

    def despread(self, signal: np.ndarray, code: np.ndarray) -> DespreadResult:
        correlations = correlate(signal, code)
        averages = _truncating_average(correlations)

        if self.strict:
            exact = np.isin(correlations, (-CODE_LENGTH, CODE_LENGTH))
            if not np.all(exact):
                raise DecodeError(
                    f"correlation sums {correlations.tolist()} are not all +/-{CODE_LENGTH}",
                    averages=averages.tolist(),
                )

        bits = (averages == 1).astype(np.int64)

        return DespreadResult(
            value=symbol_to_value(bits),
            bits=bits,
            correlations=correlations,
            averages=averages,
            signal=np.asarray(signal, dtype=np.int64),
            code=np.asarray(code, dtype=np.int64),
        )


def despread(signal: np.ndarray, code: np.ndarray, strict: bool = True) -> int:
    """Convenience wrapper returning only the recovered value."""
    return Despreader(strict=strict).despread(signal, code).value
