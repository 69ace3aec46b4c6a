import numpy as np
import pytest

from qbutterfly.state import StateVector

def max_abs_diff(a, b):
    return float(np.max(np.abs(a - b)))

def run_sweeps(st, targets, **kw):
    for k in targets:
        st.transform(k, **kw)
    return st

def test_serial_vs_threads_vs_numba_small():
    base = StateVector.random(6, seed=2024)
    targets = [1, 6, 3, 3, 2, 5, 4]
    s = run_sweeps(base.copy(), targets, backend="serial")
    t = run_sweeps(base.copy(), targets, backend="threads", num_threads=4)
    b = run_sweeps(base.copy(), targets, backend="threads", num_threads=3, strategy="bit_index")
    m = run_sweeps(base.copy(), targets, backend="numba", num_threads=4)
    for other in (t, b, m):
        assert max_abs_diff(s.as_numpy(), other.as_numpy()) < 1e-12

@pytest.mark.parametrize("threads", [1, 2, 3, 5, 64])
def test_thread_count_does_not_change_result(threads):
    base = StateVector.random(7, seed=9)
    ref = run_sweeps(base.copy(), range(1, 8), backend="serial")
    got = run_sweeps(base.copy(), range(1, 8), backend="threads", num_threads=threads)
    assert np.allclose(ref.as_numpy(), got.as_numpy(), atol=1e-12, rtol=0)

def test_random_targets_match():
    rng = np.random.default_rng(123)
    n = 8
    for depth in (5, 10, 20):
        targets = [int(k) for k in rng.integers(1, n + 1, size=depth)]
        base = StateVector.random(n, seed=depth)
        s = run_sweeps(base.copy(), targets, backend="serial")
        t = run_sweeps(base.copy(), targets, backend="threads", num_threads=8)
        m = run_sweeps(base.copy(), targets, backend="numba", num_threads=8)
        assert np.allclose(s.as_numpy(), t.as_numpy(), atol=1e-12, rtol=0)
        assert np.allclose(s.as_numpy(), m.as_numpy(), atol=1e-12, rtol=0)

def test_threads_backend_spans_several_chunks(monkeypatch):
    from qbutterfly import apply_threads
    monkeypatch.setattr(apply_threads, "CHUNK", 8)
    base = StateVector.random(9, seed=4)
    s = run_sweeps(base.copy(), [2, 9], backend="serial")
    t = run_sweeps(base.copy(), [2, 9], backend="threads", num_threads=3)
    assert np.allclose(s.as_numpy(), t.as_numpy(), atol=1e-12, rtol=0)

def test_complex64_backends_agree():
    base = StateVector.random(5, seed=1, dtype=np.complex64)
    s = run_sweeps(base.copy(), [1, 2, 5], backend="serial")
    m = run_sweeps(base.copy(), [1, 2, 5], backend="numba")
    assert s.dtype == np.complex64 and m.dtype == np.complex64
    assert np.allclose(s.as_numpy(), m.as_numpy(), atol=1e-5, rtol=0)

def test_unknown_strategy_rejected_before_mutation():
    st = StateVector.random(3, seed=0)
    before = st.as_numpy().copy()
    with pytest.raises(ValueError):
        st.transform(1, backend="threads", strategy="gray_code")
    assert np.array_equal(st.as_numpy(), before)

# ---------- shared pool under concurrent callers ----------

def run_in_threads(work, args_list):
    import threading
    errors = []

    def target(*args):
        try:
            work(*args)
        except Exception as e:
            errors.append(e)

    workers = [threading.Thread(target=target, args=args) for args in args_list]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    return errors

def test_concurrent_sweeps_with_different_thread_counts():
    n = 12
    base = StateVector.random(n, seed=77)
    ref = run_sweeps(base.copy(), [1], backend="serial").as_numpy()
    mismatches = []

    def sweep_many(threads):
        for _ in range(50):
            got = base.copy().transform(1, num_threads=threads)
            if not np.allclose(got.as_numpy(), ref, atol=1e-12, rtol=0):
                mismatches.append(threads)

    errors = run_in_threads(sweep_many, [(2,), (3,), (4,), (7,)])
    assert errors == []
    assert mismatches == []

def test_concurrent_random_fills_stay_reproducible():
    from qbutterfly import apply_threads
    default = apply_threads.get_threads()
    n = 10
    expected = {t: StateVector.random(n, seed=5, num_threads=t).as_numpy() for t in (2, 3, 6)}
    mismatches = []

    def fill_many(threads):
        for i in range(30):
            if i % 10 == 0:
                apply_threads.set_threads(threads)
            got = StateVector.random(n, seed=5, num_threads=threads).as_numpy()
            if not np.array_equal(got, expected[threads]):
                mismatches.append(threads)

    try:
        errors = run_in_threads(fill_many, [(2,), (3,), (6,)])
    finally:
        apply_threads.set_threads(default)
    assert errors == []
    assert mismatches == []

def test_growing_the_pool_keeps_held_pool_usable():
    from qbutterfly import apply_threads
    default = apply_threads.get_threads()
    held = apply_threads.get_executor(2)
    try:
        apply_threads.set_threads(3)
        bigger = apply_threads.get_executor(held._max_workers + 8)
        assert bigger._max_workers >= held._max_workers + 8
        assert apply_threads.get_executor(2) is bigger
        assert held.submit(sum, [1, 2, 3]).result() == 6
    finally:
        apply_threads.set_threads(default)

def test_worker_error_raised_after_every_slice_finished():
    from qbutterfly import apply_threads
    done = []

    def kernel(rank):
        if rank == 0:
            raise RuntimeError("slice 0 failed")
        done.append(rank)

    with pytest.raises(RuntimeError, match="slice 0 failed"):
        apply_threads.run_slices(kernel, [(r,) for r in range(4)], 4)
    assert sorted(done) == [1, 2, 3]
