import argparse, csv, os, socket, subprocess, time, platform
from datetime import datetime
from .state import StateVector

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")

def backend_dir(backend, base=DATA_DIR):
    path = os.path.join(base, backend)
    os.makedirs(path, exist_ok=True)
    return path

def warmup(st, backend, threads=None):
    # one sweep to JIT-compile & warm caches
    st.transform(1, backend=backend, num_threads=threads)

# ---------------------------------------------------------------------

def git_commit():
    try:
        return subprocess.check_output(["git", "rev-parse", "--short", "HEAD"],
                                       stderr=subprocess.DEVNULL).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return ""

def meta_row(dtype="complex128"):
    return {
        "hostname": socket.gethostname(),
        "commit": git_commit(),
        "dtype": dtype,
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "python": platform.python_version(),
        "machine": platform.machine(),
        "cpu": platform.processor(),
    }

HEADER = ["qubits","target","backend","threads","sweeps","wall_ms","hostname","commit","dtype","timestamp"]

def new_csv(path):
    """Create/overwrite CSV with header."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", newline="") as f:
        csv.DictWriter(f, fieldnames=HEADER).writeheader()

def write_row(path, row):
    with open(path, "a", newline="") as f:
        csv.DictWriter(f, fieldnames=HEADER).writerow(row)

def make_row(n, target, backend, threads, sweeps, wall, st):
    m = meta_row(st.dtype.name)
    return {
        "qubits": n, "target": target, "backend": backend, "threads": threads,
        "sweeps": sweeps, "wall_ms": f"{wall:.3f}",
        "hostname": m["hostname"], "commit": m["commit"], "dtype": m["dtype"], "timestamp": m["timestamp"]
    }

# ---------------------------------------------------------------------

def time_sweeps(st, target, sweeps, backend, threads=None):
    t0 = time.perf_counter()
    for _ in range(sweeps):
        st.transform(target, backend=backend, num_threads=threads)
    return (time.perf_counter() - t0) * 1e3  # ms

def backend_threads(backend):
    if backend == "serial":
        return 0
    if backend == "numba":
        from .apply_numba import get_threads
    else:
        from .apply_threads import get_threads
    return get_threads()

def set_backend_threads(backend, t):
    if backend == "numba":
        from .apply_numba import set_threads, get_threads
    else:
        from .apply_threads import set_threads, get_threads
    set_threads(t)
    return get_threads()

# ---------------------------------------------------------------------
# individual experiments

def bench_qubits(ns, sweeps, backend, out_path, seed=42):
    print(f"[run] Qubits scaling → {out_path}")
    new_csv(out_path)
    did_warmup = False
    for n in ns:
        st = StateVector.random(n, seed=seed)
        if not did_warmup:
            warmup(st, backend=backend)
            did_warmup = True
        target = (n + 1) // 2
        wall = time_sweeps(st, target, sweeps, backend)
        write_row(out_path, make_row(n, target, backend, backend_threads(backend), sweeps, wall, st))
        print(f"  n={n}  k={target}  wall={wall:.2f} ms")
    print("✓ done.\n")

def bench_threads(n, sweeps, threads_list, backend, out_path, seed=123):
    print(f"[run] Thread scaling → {out_path}")
    new_csv(out_path)
    st = StateVector.random(n, seed=seed)
    target = (n + 1) // 2
    set_backend_threads(backend, 1)
    warmup(st, backend=backend)
    t1 = time_sweeps(st, target, sweeps, backend)
    print(f"  T1={t1:.1f} ms")

    for t in threads_list:
        tt = set_backend_threads(backend, int(t))
        if tt != t:
            print(f"  requested t={t}; using t={tt}")
        wall = time_sweeps(st, target, sweeps, backend)
        speedup = t1 / wall if wall > 0 else float("nan")
        write_row(out_path, make_row(n, target, backend, tt, sweeps, wall, st))
        print(f"  t={tt}  wall={wall:.2f} ms  speedup={speedup:.2f}×")
    print("✓ done.\n")

def bench_targets(n, sweeps, backend, out_path, seed=7):
    # stride 2^(n-k) shrinks as k grows; memory access pattern changes per target
    print(f"[run] Target scaling → {out_path}")
    new_csv(out_path)
    st = StateVector.random(n, seed=seed)
    warmup(st, backend=backend)
    for k in range(1, n + 1):
        wall = time_sweeps(st, k, sweeps, backend)
        write_row(out_path, make_row(n, k, backend, backend_threads(backend), sweeps, wall, st))
        print(f"  k={k}  wall={wall:.2f} ms")
    print("✓ done.\n")

# ---------------------------------------------------------------------
def main(argv=None):
    p = argparse.ArgumentParser(description="qbutterfly benchmarks → data/<backend>/*.csv (auto)")
    p.add_argument("--out", type=str, default=DATA_DIR, help="base directory for CSV output")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_qubits = sub.add_parser("qubits")
    p_qubits.add_argument("--ns", type=str, required=True)
    p_qubits.add_argument("--sweeps", type=int, default=20)
    p_qubits.add_argument("--backend", type=str, default="numba", choices=["serial","threads","numba"])

    p_threads = sub.add_parser("threads")
    p_threads.add_argument("--n", type=int, default=22)
    p_threads.add_argument("--sweeps", type=int, default=20)
    p_threads.add_argument("--threads", type=str, default="1,2,4,8,16")
    p_threads.add_argument("--backend", type=str, default="numba", choices=["threads","numba"])

    p_targets = sub.add_parser("targets")
    p_targets.add_argument("--n", type=int, default=20)
    p_targets.add_argument("--sweeps", type=int, default=20)
    p_targets.add_argument("--backend", type=str, default="numba", choices=["serial","threads","numba"])

    args = p.parse_args(argv)

    base = backend_dir(args.backend, args.out)

    if args.cmd == "qubits":
        ns = [int(x) for x in args.ns.split(",")]
        out_path = os.path.join(base, "qubits.csv")
        bench_qubits(ns, args.sweeps, args.backend, out_path)

    elif args.cmd == "threads":
        ts = [int(x) for x in args.threads.split(",")]
        out_path = os.path.join(base, "threads.csv")
        bench_threads(args.n, args.sweeps, ts, args.backend, out_path)

    elif args.cmd == "targets":
        out_path = os.path.join(base, "targets.csv")
        bench_targets(args.n, args.sweeps, args.backend, out_path)

if __name__ == "__main__":
    main()
