# qbutterfly/compare.py
import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_TOL = 1e-9


@dataclass(frozen=True)
class Comparison:
    equal: bool
    max_gap: float  # largest |a_i - b_i|
    index: int      # where it occurred

    def __bool__(self):
        return self.equal


def max_abs_diff(a: np.ndarray, b: np.ndarray):
    gaps = np.abs(a - b)
    i = int(np.argmax(gaps))
    return float(gaps[i]), i


def compare(a, b, tol: float = DEFAULT_TOL) -> Comparison:
    """Element-wise check of two registers against an absolute tolerance. Debug aid only."""
    if a.qubit_count != b.qubit_count:
        raise ValueError(f"cannot compare {a.qubit_count}-qubit and {b.qubit_count}-qubit vectors")
    gap, i = max_abs_diff(a.amplitudes, b.amplitudes)
    result = Comparison(equal=gap <= tol, max_gap=gap, index=i)
    if not result.equal:
        logger.warning("vectors differ: max |a-b| = %.3e at index %d (tol %.1e)", gap, i, tol)
    return result
