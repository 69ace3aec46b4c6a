# qbutterfly/addressing.py
"""Which amplitudes a butterfly sweep combines.

Qubit positions are 1-indexed from the most significant bit of the flat
index (big-endian): in an n-qubit register, qubit k is bit ``n - k``.
For a target k the 2^n indices split into 2^(n-1) pairs that differ only
in that bit; a *work index* in ``[0, 2^(n-1))`` names one pair.
"""
import logging

import numpy as np

from .errors import QubitRangeError, SizingError

logger = logging.getLogger(__name__)

MAX_QUBITS = 64  # width of the unsigned index type
INDEX_ARRAY_MAX_QUBITS = 62  # group stride 2^(n-k+1) must fit in int64


def check_qubit_count(n: int, max_qubits: int = MAX_QUBITS):
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or not (1 <= n <= max_qubits):
        raise QubitRangeError("qubit_count", n, 1, max_qubits)


def check_qubit(k: int, n: int):
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or not (1 <= k <= n):
        raise QubitRangeError("qubit", k, 1, n)


def pair_count(n: int) -> int:
    return 1 << (n - 1)


def block_size(n: int, k: int) -> int:
    """Stride between the two members of a pair for target k."""
    return 1 << (n - k)


# ---------- closed form ----------

def pair_for(n: int, k: int, work_index: int):
    """Return ``(index1, index2)`` for one work index.

    ``index1`` has bit k cleared, ``index2 = index1 + block_size``.
    The work index is split as ``divmod(work_index, block_size)`` into the
    outer group and the offset inside it.
    """
    check_qubit_count(n)
    check_qubit(k, n)
    npairs = pair_count(n)
    if not (0 <= work_index < npairs):
        raise QubitRangeError("work_index", work_index, 0, npairs - 1)
    block = block_size(n, k)
    group, offset = divmod(work_index, block)
    index1 = (block << 1) * group + offset
    return index1, index1 + block


def pair_indices(n: int, k: int, start: int = 0, stop=None):
    """Vectorised :func:`pair_for` over the work range ``[start, stop)``.

    Returns two int64 arrays of equal length, so ``n`` is capped at
    :data:`INDEX_ARRAY_MAX_QUBITS`.
    """
    check_qubit_count(n, max_qubits=INDEX_ARRAY_MAX_QUBITS)
    check_qubit(k, n)
    npairs = pair_count(n)
    if stop is None:
        stop = npairs
    if not (0 <= start <= stop <= npairs):
        raise QubitRangeError("work range", (start, stop), 0, npairs)
    block = block_size(n, k)
    w = np.arange(start, stop, dtype=np.int64)
    idx1 = (w // block) * (block << 1) + w % block
    return idx1, idx1 + block


def iter_pairs(n: int, k: int):
    """Reference double loop: outer over groups, inner over offsets.

    Yields pairs in work-index order.
    """
    check_qubit_count(n)
    check_qubit(k, n)
    block = block_size(n, k)
    group = block << 1
    for base in range(0, 1 << n, group):
        for off in range(block):
            yield base + off, base + off + block


def work_slices(total: int, parts: int):
    """Split ``[0, total)`` into at most ``parts`` contiguous ``(start, stop)`` slices."""
    if parts < 1:
        raise ValueError(f"parts must be >= 1, got {parts}")
    step, extra = divmod(total, parts)
    slices = []
    start = 0
    for rank in range(parts):
        stop = start + step + (1 if rank < extra else 0)
        if stop > start:
            slices.append((start, stop))
        start = stop
    return slices


# ---------- explicit bit vector ----------

class BinaryIndex:
    """Fixed-width bit vector, big-endian, bit 1 is the most significant.

    Used as a counter over the "other" n-1 bits of a pair: inserting a 0 or a
    1 at the target position gives the two indices of the pair. It can be
    seeded at any value with :meth:`set_from`, so every worker starts at the
    beginning of its own slice.
    """

    def __init__(self, width: int):
        if isinstance(width, bool) or not isinstance(width, (int, np.integer)) or not (0 <= width <= MAX_QUBITS):
            raise SizingError(f"bit index width must be in [0, {MAX_QUBITS}], got {width}")
        self.width = int(width)
        self.bits = [0] * self.width

    def _check_pos(self, bit_pos: int, high: int):
        if not (1 <= bit_pos <= high):
            raise QubitRangeError("bit_pos", bit_pos, 1, high)

    @property
    def max_value(self) -> int:
        return (1 << self.width) - 1

    def test(self, bit_pos: int) -> int:
        self._check_pos(bit_pos, self.width)
        return self.bits[bit_pos - 1]

    def flip(self, bit_pos: int) -> "BinaryIndex":
        self._check_pos(bit_pos, self.width)
        self.bits[bit_pos - 1] ^= 1
        return self

    def to_value(self) -> int:
        value = 0
        for b in self.bits:
            value = (value << 1) | b
        return value

    def to_value_with_insert(self, bit_pos: int, bit_value: int) -> int:
        """Value of the (width+1)-bit vector with ``bit_value`` inserted at ``bit_pos``."""
        self._check_pos(bit_pos, self.width + 1)
        if bit_value not in (0, 1):
            raise QubitRangeError("bit_value", bit_value, 0, 1)
        value = 0
        for b in self.bits[:bit_pos - 1]:
            value = (value << 1) | b
        value = (value << 1) | bit_value
        for b in self.bits[bit_pos - 1:]:
            value = (value << 1) | b
        return value

    def set_from(self, value: int) -> "BinaryIndex":
        if not (0 <= value <= self.max_value):
            raise QubitRangeError("value", value, 0, self.max_value)
        for i in range(self.width - 1, -1, -1):
            self.bits[i] = value & 1
            value >>= 1
        return self

    def increment_by_one(self) -> "BinaryIndex":
        for i in range(self.width - 1, -1, -1):
            if self.bits[i] == 0:
                self.bits[i] = 1
                return self
            self.bits[i] = 0
        # every bit carried out: undo and refuse to wrap
        self.bits = [1] * self.width
        raise QubitRangeError("value", self.max_value + 1, 0, self.max_value)

    def add(self, c: int) -> "BinaryIndex":
        if c not in (0, 1):
            logger.warning("Adding %r to a bit index (expected 0 or 1), value=%d width=%d",
                           c, self.to_value(), self.width)
        return self.set_from(self.to_value() + c)

    def __int__(self):
        return self.to_value()

    def __repr__(self):
        return f"BinaryIndex({''.join(map(str, self.bits)) or '-'})"
