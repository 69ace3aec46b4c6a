# qbutterfly/apply_numba.py
import logging

import numpy as np
from numba import config as numba_config
from numba import njit, prange, set_num_threads, get_num_threads

from .addressing import check_qubit, block_size, pair_count
from .apply_serial import INV_SQRT2

logger = logging.getLogger(__name__)

# ---------- low-level kernel (Numba JIT) ----------

@njit(parallel=True, fastmath=True)
def _butterfly_kernel(psi, block, npairs, s):
    group = block << 1
    for w in prange(npairs):
        i1 = (w // block) * group + w % block
        i2 = i1 + block
        a = psi[i1]
        b = psi[i2]
        psi[i1] = (a + b) * s
        psi[i2] = (a - b) * s

# ---------- user-facing helpers ----------

def set_threads(n: int):
    # numba refuses more threads than it launched with
    set_num_threads(max(1, min(int(n), numba_config.NUMBA_NUM_THREADS)))

def get_threads() -> int:
    return get_num_threads()

def apply_butterfly(state, k: int, num_threads=None):
    n = state.qubit_count
    check_qubit(k, n)
    if num_threads is not None:
        set_threads(int(num_threads))
    psi = state.amplitudes
    s = psi.real.dtype.type(INV_SQRT2)
    logger.debug("numba sweep n=%d k=%d threads=%d", n, k, get_threads())
    _butterfly_kernel(psi, np.int64(block_size(n, k)), np.int64(pair_count(n)), s)
