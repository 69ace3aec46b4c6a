# qbutterfly/state.py
import logging
from dataclasses import dataclass

import numpy as np

from .addressing import MAX_QUBITS, check_qubit
from .errors import AllocationError, SizingError

logger = logging.getLogger(__name__)

BACKENDS = ("serial", "threads", "numba")


def check_size(n: int, dtype=np.complex128, max_qubits: int = MAX_QUBITS) -> int:
    """Validate a register size before anything is allocated; return 2**n."""
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
        raise SizingError(f"qubit_count must be a positive integer, got {n!r}")
    limit = min(int(max_qubits), MAX_QUBITS)
    if n > limit:
        raise SizingError(f"qubit_count={n} exceeds the maximum of {limit}")
    dt = np.dtype(dtype)
    if dt.kind != "c":
        raise SizingError(f"amplitudes must be complex, got dtype {dt.name}")
    max_elements = np.iinfo(np.intp).max // dt.itemsize
    size = 1 << int(n)
    if size > max_elements:
        raise SizingError(
            f"2**{n} amplitudes exceed the addressable maximum of {max_elements} {dt.name} elements"
        )
    return size


@dataclass(eq=False)
class StateVector:
    qubit_count: int
    amplitudes: np.ndarray  # shape (2**qubit_count,), complex128 unless asked otherwise

    def __post_init__(self):
        self.amplitudes = np.asarray(self.amplitudes)
        size = check_size(self.qubit_count, self.amplitudes.dtype)
        if self.amplitudes.shape != (size,):
            raise SizingError(
                f"{self.qubit_count} qubits need {size} amplitudes, got shape {self.amplitudes.shape}"
            )
        self.qubit_count = int(self.qubit_count)

    # ---------- construction ----------

    @staticmethod
    def allocate(n: int, dtype=np.complex128, max_qubits: int = MAX_QUBITS) -> "StateVector":
        """Zero-filled register; the size is checked before numpy is asked for memory."""
        size = check_size(n, dtype, max_qubits)
        try:
            psi = np.zeros(size, dtype=dtype)
        except MemoryError as e:
            nbytes = size * np.dtype(dtype).itemsize
            raise AllocationError(
                f"could not allocate {size} amplitudes ({nbytes} bytes) for {n} qubits"
            ) from e
        logger.debug("allocated %d qubits: %d amplitudes, %d bytes", n, size, psi.nbytes)
        return StateVector(int(n), psi)

    @staticmethod
    def zero(n: int, dtype=np.complex128) -> "StateVector":
        st = StateVector.allocate(n, dtype=dtype)
        st.amplitudes[0] = 1.0 + 0.0j
        return st

    @staticmethod
    def random(n: int, seed=None, num_threads=None, dtype=np.complex128) -> "StateVector":
        from .initializers import random_fill
        return random_fill(StateVector.allocate(n, dtype=dtype), seed=seed, num_threads=num_threads)

    @staticmethod
    def from_amplitudes(values, dtype=np.complex128) -> "StateVector":
        psi = np.array(values, dtype=dtype)
        if psi.ndim != 1:
            raise SizingError(f"amplitudes must be one-dimensional, got shape {psi.shape}")
        size = psi.shape[0]
        if size < 2 or size & (size - 1):
            raise SizingError(f"amplitude count must be a power of two >= 2, got {size}")
        return StateVector(size.bit_length() - 1, psi)

    # ---------- accessors ----------

    @property
    def dtype(self):
        return self.amplitudes.dtype

    @property
    def size(self) -> int:
        return self.amplitudes.shape[0]

    def norm2(self) -> float:
        return float(np.vdot(self.amplitudes, self.amplitudes).real)

    def copy(self) -> "StateVector":
        return StateVector(self.qubit_count, self.amplitudes.copy())

    def as_numpy(self) -> np.ndarray:
        return self.amplitudes

    # ---------- the transform ----------

    def transform(self, k: int, backend: str = "threads", num_threads=None,
                  strategy: str = "closed_form") -> "StateVector":
        """Butterfly on qubit k: every pair (a, b) -> ((a+b)/√2, (a-b)/√2), in place.

        Blocks until the whole sweep is done. Bad arguments raise before any
        amplitude is written.
        """
        check_qubit(k, self.qubit_count)
        k = int(k)

        if backend == "serial":
            from .apply_serial import apply_butterfly
            apply_butterfly(self, k)

        elif backend == "threads":
            from .apply_threads import apply_butterfly
            apply_butterfly(self, k, num_threads=num_threads, strategy=strategy)

        elif backend == "numba":
            try:
                from .apply_numba import apply_butterfly
            except ImportError as e:
                raise RuntimeError("Numba backend not available. Did you `pip install numba`?") from e
            apply_butterfly(self, k, num_threads=num_threads)

        else:
            raise ValueError(f"Unknown backend: {backend}")

        return self
