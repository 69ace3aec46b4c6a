# qbutterfly/apply_threads.py
"""Thread-pool backend: each worker owns one contiguous slice of the work range.

numpy drops the GIL inside the gather/scatter and the arithmetic, so the
closed-form slices run concurrently. Pairs never overlap across slices, so the
amplitude buffer is shared without locks.

The pool only grows. A call picks its worker count up front and partitions by
it; a pool that another call may still be submitting to is never shut down
before interpreter exit.
"""
import atexit
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional

import numpy as np

from .addressing import BinaryIndex, check_qubit, pair_count, pair_indices, work_slices
from .apply_serial import INV_SQRT2

logger = logging.getLogger(__name__)

CHUNK = 1 << 16  # work items per vectorised gather/scatter
STRATEGIES = ("closed_form", "bit_index")

_executor: Optional[ThreadPoolExecutor] = None
_capacity = 0
_retired: List[ThreadPoolExecutor] = []
_executor_lock = threading.Lock()
_num_threads = os.cpu_count() or 1


def set_threads(n: int):
    """Default worker count for calls that don't pass ``num_threads``."""
    global _num_threads
    n = int(n)
    if n < 1:
        raise ValueError(f"num_threads must be >= 1, got {n}")
    _num_threads = n


def get_threads() -> int:
    return _num_threads


def get_executor(workers: int) -> ThreadPoolExecutor:
    """A pool with room for at least ``workers`` threads."""
    global _executor, _capacity
    with _executor_lock:
        if _executor is None or _capacity < workers:
            if _executor is not None:
                # callers may still hold it; it is only shut down at exit
                _retired.append(_executor)
            _executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="qbutterfly")
            _capacity = workers
        return _executor


def _shutdown_executor():
    global _executor, _capacity
    with _executor_lock:
        for pool in _retired:
            pool.shutdown(wait=False)
        _retired.clear()
        if _executor is not None:
            _executor.shutdown(wait=False)
            _executor = None
            _capacity = 0


atexit.register(_shutdown_executor)

# ---------- per-worker slice kernels ----------

def _sweep_slice(psi: np.ndarray, n: int, k: int, start: int, stop: int):
    s = psi.real.dtype.type(INV_SQRT2)
    for lo in range(start, stop, CHUNK):
        idx1, idx2 = pair_indices(n, k, lo, min(lo + CHUNK, stop))
        a = psi[idx1]
        b = psi[idx2]
        psi[idx1] = (a + b) * s
        psi[idx2] = (a - b) * s


def _sweep_slice_bit_index(psi: np.ndarray, n: int, k: int, start: int, stop: int):
    s = psi.real.dtype.type(INV_SQRT2)
    # counter over the n-1 bits other than k, seeded at this worker's start
    index = BinaryIndex(n - 1).set_from(start)
    for w in range(start, stop):
        i1 = index.to_value_with_insert(k, 0)
        i2 = index.to_value_with_insert(k, 1)
        a = psi[i1]
        b = psi[i2]
        psi[i1] = (a + b) * s
        psi[i2] = (a - b) * s
        if w + 1 < stop:
            index.increment_by_one()


_SLICE_KERNELS = {
    "closed_form": _sweep_slice,
    "bit_index": _sweep_slice_bit_index,
}


def resolve_workers(num_threads=None) -> int:
    workers = get_threads() if num_threads is None else int(num_threads)
    if workers < 1:
        raise ValueError(f"num_threads must be >= 1, got {workers}")
    return workers


def run_slices(kernel, jobs, workers: int):
    """Submit ``kernel(*job)`` for every job and block until all of them have finished.

    The first worker error is raised only after the last worker is done, so
    nothing is still writing when the caller sees it.
    """
    pool = get_executor(workers)
    futures = []
    try:
        for job in jobs:
            futures.append(pool.submit(kernel, *job))
    finally:
        wait(futures)
    for f in futures:
        f.result()


def apply_butterfly(state, k: int, num_threads=None, strategy: str = "closed_form"):
    n = state.qubit_count
    check_qubit(k, n)
    if strategy not in _SLICE_KERNELS:
        raise ValueError(f"Unknown strategy {strategy!r}; expected one of {STRATEGIES}")
    workers = resolve_workers(num_threads)
    kernel = _SLICE_KERNELS[strategy]
    slices = work_slices(pair_count(n), workers)
    psi = state.amplitudes
    logger.debug("thread sweep n=%d k=%d strategy=%s slices=%s", n, k, strategy, slices)
    run_slices(kernel, [(psi, n, k, start, stop) for start, stop in slices], workers)
