# qbutterfly/initializers.py
"""Fill a register before the first sweep.

Random fills split the index range into the same contiguous worker slices the
thread backend uses; every worker draws from its own ``numpy.random.Generator``
spawned from one ``SeedSequence``, so a fill is reproducible for a given
(seed, thread count) and no generator state is shared between threads.
"""
import logging

import numpy as np

from .addressing import work_slices
from .apply_threads import resolve_workers, run_slices
from .errors import QubitRangeError
from .state import StateVector

logger = logging.getLogger(__name__)


def worker_generators(seed, workers: int):
    """One independent generator per worker rank."""
    children = np.random.SeedSequence(seed).spawn(workers)
    return [np.random.default_rng(child) for child in children]


def _fill_slice(psi: np.ndarray, rng: np.random.Generator, start: int, stop: int):
    count = stop - start
    psi.real[start:stop] = rng.random(count)
    psi.imag[start:stop] = rng.random(count)


def random_fill(state: StateVector, seed=None, num_threads=None) -> StateVector:
    """Real and imaginary parts uniform in [0, 1), written in place."""
    workers = resolve_workers(num_threads)
    slices = work_slices(state.size, workers)
    rngs = worker_generators(seed, len(slices))
    psi = state.amplitudes
    logger.debug("random fill n=%d seed=%s workers=%d", state.qubit_count, seed, len(slices))
    run_slices(_fill_slice, [(psi, rng, start, stop) for rng, (start, stop) in zip(rngs, slices)], workers)
    return state


def basis(n: int, index: int, dtype=np.complex128) -> StateVector:
    st = StateVector.allocate(n, dtype=dtype)
    if not (0 <= index < st.size):
        raise QubitRangeError("basis index", index, 0, st.size - 1)
    st.amplitudes[index] = 1.0
    return st
