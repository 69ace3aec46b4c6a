import numpy as np

def H(dtype=np.complex128) -> np.ndarray:
    s = np.sqrt(0.5)
    return np.array([[s, s],
                     [s, -s]], dtype=dtype)

def I(dtype=np.complex128) -> np.ndarray:
    return np.eye(2, dtype=dtype)

def hadamard_on(n: int, k: int, dtype=np.complex128) -> np.ndarray:
    """Dense 2^n x 2^n operator for the butterfly on qubit k (big-endian: qubit 1 is the leftmost factor).

    Only for small n; used as an oracle for the in-place sweeps.
    """
    if not (1 <= k <= n):
        raise ValueError(f"qubit {k} outside [1, {n}]")
    op = np.ones((1, 1), dtype=dtype)
    for q in range(1, n + 1):
        op = np.kron(op, H(dtype) if q == k else I(dtype))
    return op
