# qbutterfly/printer.py
import sys


def format_state(state, limit=None) -> str:
    """Text dump, one amplitude per line; ``limit`` caps how many are shown."""
    n = state.size if limit is None else min(int(limit), state.size)
    lines = [f"Vector of size {state.size}", "----------------"]
    for i in range(n):
        lines.append(f"v[{i}]:\t{complex(state.amplitudes[i])}")
    if n < state.size:
        lines.append(f"... ({state.size - n} more)")
    return "\n".join(lines)


def dump(state, stream=None, limit=None):
    stream = sys.stdout if stream is None else stream
    print(format_state(state, limit=limit), file=stream)
