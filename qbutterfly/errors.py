# qbutterfly/errors.py

class QButterflyError(Exception):
    """Base class for everything qbutterfly raises on purpose."""


class SizingError(QButterflyError, ValueError):
    """Requested register does not fit the index width or numpy's address space."""


class AllocationError(QButterflyError, MemoryError):
    """numpy could not allocate the amplitude buffer."""


class QubitRangeError(QButterflyError, IndexError):
    """Qubit / bit position / work index outside its valid range."""

    def __init__(self, what: str, value, low, high):
        self.what = what
        self.value = value
        self.low = low
        self.high = high
        super().__init__(f"{what}={value} outside valid range [{low}, {high}]")
