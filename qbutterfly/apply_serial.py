# qbutterfly/apply_serial.py
import logging

import numpy as np

from .addressing import check_qubit, iter_pairs

logger = logging.getLogger(__name__)

INV_SQRT2 = 1.0 / np.sqrt(2.0)


def butterfly_sweep(psi: np.ndarray, n: int, k: int):
    """In-place butterfly on qubit k (1-indexed, big-endian), one pair at a time.

    Walks the pairs with the double loop (outer group, inner offset); this is
    the reference the parallel backends are checked against.
    """
    check_qubit(k, n)
    s = psi.real.dtype.type(INV_SQRT2)
    for i1, i2 in iter_pairs(n, k):
        a = psi[i1]
        b = psi[i2]
        psi[i1] = (a + b) * s
        psi[i2] = (a - b) * s


def apply_butterfly(state, k: int):
    logger.debug("serial sweep n=%d k=%d", state.qubit_count, k)
    butterfly_sweep(state.amplitudes, state.qubit_count, k)
