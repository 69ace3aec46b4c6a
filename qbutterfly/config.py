"""
Run parameters for the command line tools.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .addressing import check_qubit
from .apply_threads import STRATEGIES
from .state import BACKENDS, check_size

DTYPES = {
    "complex128": np.complex128,
    "complex64": np.complex64,
}


def parse_int_list(text: str) -> List[int]:
    """'1,3, 4' -> [1, 3, 4]"""
    return [int(x) for x in text.split(",") if x.strip()]


@dataclass
class RunConfig:
    """One register, a list of target qubits, and how to sweep them."""

    qubits: int
    targets: List[int] = field(default_factory=lambda: [1])
    backend: str = "threads"
    threads: Optional[int] = None  # None: keep the backend's current pool size
    seed: Optional[int] = None
    repeat: int = 1  # how many times the whole target list is applied
    dtype: str = "complex128"
    strategy: str = "closed_form"

    @property
    def np_dtype(self):
        return DTYPES[self.dtype]

    @property
    def sweeps(self) -> List[int]:
        return [k for _ in range(self.repeat) for k in self.targets]

    def validate(self) -> "RunConfig":
        """Raise before anything is allocated if the parameters cannot work."""
        if self.dtype not in DTYPES:
            raise ValueError(f"Unknown dtype {self.dtype!r}; expected one of {sorted(DTYPES)}")
        check_size(self.qubits, self.np_dtype)
        if not self.targets:
            raise ValueError("at least one target qubit is required")
        for k in self.targets:
            check_qubit(k, self.qubits)
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend {self.backend!r}; expected one of {BACKENDS}")
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy {self.strategy!r}; expected one of {STRATEGIES}")
        if self.repeat < 1:
            raise ValueError(f"repeat must be >= 1, got {self.repeat}")
        if self.threads is not None and self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")
        return self

    @classmethod
    def from_args(cls, args) -> "RunConfig":
        targets = args.targets
        if isinstance(targets, str):
            targets = parse_int_list(targets)
        return cls(
            qubits=args.qubits,
            targets=list(targets),
            backend=args.backend,
            threads=args.threads,
            seed=args.seed,
            repeat=args.repeat,
            dtype=args.dtype,
            strategy=args.strategy,
        )
