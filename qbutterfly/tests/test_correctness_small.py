import numpy as np
import pytest

from qbutterfly.errors import AllocationError, QubitRangeError, SizingError
from qbutterfly.gates import hadamard_on
from qbutterfly.initializers import basis
from qbutterfly.state import StateVector

def almost(p, q, tol=1e-9):
    return np.allclose(p, q, atol=tol, rtol=0)

def test_zero_then_h1_then_h2():
    st = StateVector.zero(2)
    st.transform(1)
    s = 1 / np.sqrt(2)
    assert almost(st.as_numpy(), [s, 0, s, 0])
    st.transform(2)
    assert almost(st.as_numpy(), [0.5, 0.5, 0.5, 0.5])

def test_h_on_single_qubit():
    st = StateVector.from_amplitudes([0, 1])
    st.transform(1, backend="serial")
    s = 1 / np.sqrt(2)
    assert almost(st.as_numpy(), [s, -s])

def test_target_is_counted_from_msb():
    # |000> -> H on qubit 3 touches only the least significant bit
    st = basis(3, 0).transform(3)
    s = 1 / np.sqrt(2)
    expect = np.zeros(8); expect[0] = s; expect[1] = s
    assert almost(st.as_numpy(), expect)

@pytest.mark.parametrize("backend", ["serial", "threads", "numba"])
def test_involution(backend):
    st = StateVector.random(5, seed=11)
    before = st.copy()
    for k in range(1, 6):
        st.transform(k, backend=backend).transform(k, backend=backend)
        assert np.allclose(st.as_numpy(), before.as_numpy(), rtol=1e-9, atol=1e-12)

def test_matches_dense_reference():
    n = 4
    st = StateVector.random(n, seed=3)
    for k in range(1, n + 1):
        expect = hadamard_on(n, k) @ st.as_numpy()
        st.transform(k)
        assert almost(st.as_numpy(), expect, tol=1e-12)

def test_norm_preserved_for_normalized_input():
    st = StateVector.random(6, seed=5)
    st.amplitudes /= np.sqrt(st.norm2())
    for k in (1, 4, 6):
        st.transform(k)
    assert abs(1.0 - st.norm2()) < 1e-12

@pytest.mark.parametrize("k", [0, 4, -1])
def test_bad_target_leaves_state_untouched(k):
    st = StateVector.random(3, seed=1)
    before = st.as_numpy().copy()
    with pytest.raises(QubitRangeError):
        st.transform(k)
    assert np.array_equal(st.as_numpy(), before)

def test_unknown_backend_leaves_state_untouched():
    st = StateVector.random(3, seed=1)
    before = st.as_numpy().copy()
    with pytest.raises(ValueError):
        st.transform(1, backend="gpu")
    assert np.array_equal(st.as_numpy(), before)

def test_copy_is_deep():
    st = StateVector.zero(2)
    cp = st.copy()
    st.transform(1)
    assert cp.as_numpy()[0] == 1.0 and cp.as_numpy()[2] == 0.0

# ---------- sizing / allocation ----------

@pytest.mark.parametrize("n", [0, -3, 65])
def test_sizing_guard(n):
    with pytest.raises(SizingError):
        StateVector.allocate(n)

def test_sizing_guard_runs_before_allocation(monkeypatch):
    calls = []
    monkeypatch.setattr(np, "zeros", lambda *a, **kw: calls.append(a))
    with pytest.raises(SizingError):
        StateVector.allocate(5, max_qubits=4)
    with pytest.raises(SizingError):
        StateVector.allocate(0)
    # more amplitudes than numpy can index, but still within 64 index bits
    with pytest.raises(SizingError):
        StateVector.allocate(63)
    assert calls == []

def test_allocation_failure_is_reported(monkeypatch):
    def boom(*args, **kwargs):
        raise MemoryError("no room")
    monkeypatch.setattr(np, "zeros", boom)
    with pytest.raises(AllocationError, match="1024 amplitudes"):
        StateVector.allocate(10)

def test_wrong_length_rejected():
    with pytest.raises(SizingError):
        StateVector(3, np.zeros(7, dtype=np.complex128))
    with pytest.raises(SizingError):
        StateVector.from_amplitudes([1, 0, 0])
    with pytest.raises(SizingError):
        StateVector.from_amplitudes([1])

def test_real_dtype_rejected():
    with pytest.raises(SizingError):
        StateVector.allocate(2, dtype=np.float64)
