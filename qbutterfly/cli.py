import argparse
import logging
import sys
import time

from .apply_threads import STRATEGIES
from .compare import DEFAULT_TOL, compare
from .config import DTYPES, RunConfig
from .errors import QButterflyError
from .log import setup_logging
from .printer import dump
from .state import BACKENDS, StateVector

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="qbutterfly-run",
        description="Apply butterfly (Hadamard-like) sweeps to a random n-qubit state vector",
    )
    p.add_argument("-n", "--qubits", type=int, required=True)
    p.add_argument("-k", "--targets", type=str, default="1",
                   help="comma-separated qubit positions, 1 = most significant bit (e.g. '1,3')")
    p.add_argument("--backend", choices=BACKENDS, default="threads")
    p.add_argument("--strategy", choices=STRATEGIES, default="closed_form",
                   help="pair addressing used by the threads backend")
    p.add_argument("--threads", type=int, default=None)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--repeat", type=int, default=1)
    p.add_argument("--dtype", choices=sorted(DTYPES), default="complex128")
    p.add_argument("--print", dest="print_state", action="store_true", help="dump the final vector")
    p.add_argument("--limit", type=int, default=None, help="print at most this many amplitudes")
    p.add_argument("--time", dest="timed", action="store_true", help="report wall time of the sweeps")
    p.add_argument("--check", action="store_true",
                   help="undo every sweep and compare against the initial vector")
    p.add_argument("--tol", type=float, default=DEFAULT_TOL)
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def run(cfg: RunConfig, print_state=False, limit=None, timed=False, check=False, tol=DEFAULT_TOL) -> int:
    st = StateVector.random(cfg.qubits, seed=cfg.seed, num_threads=cfg.threads, dtype=cfg.np_dtype)
    initial = st.copy() if check else None
    sweeps = cfg.sweeps

    t0 = time.perf_counter()
    for k in sweeps:
        st.transform(k, backend=cfg.backend, num_threads=cfg.threads, strategy=cfg.strategy)
    wall = (time.perf_counter() - t0) * 1e3
    logger.info("applied %d sweeps to %d qubits in %.3f ms", len(sweeps), cfg.qubits, wall)

    if timed:
        print(f"n={cfg.qubits}  sweeps={len(sweeps)}  backend={cfg.backend}  wall={wall:.3f} ms")
    if print_state:
        dump(st, limit=limit)

    if check:
        # each sweep is its own inverse and sweeps on different qubits commute
        for k in reversed(sweeps):
            st.transform(k, backend=cfg.backend, num_threads=cfg.threads, strategy=cfg.strategy)
        result = compare(st, initial, tol=tol)
        print(f"check: {'PASS' if result.equal else 'FAIL'}  max_gap={result.max_gap:.3e}")
        if not result.equal:
            return 1
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level))
    try:
        cfg = RunConfig.from_args(args).validate()
        return run(cfg, print_state=args.print_state, limit=args.limit,
                   timed=args.timed, check=args.check, tol=args.tol)
    except (QButterflyError, ValueError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
