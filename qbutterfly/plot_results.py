import csv, os
import matplotlib.pyplot as plt
from collections import defaultdict
from statistics import median

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")

def load_rows(path):
    rows = []
    with open(path, "r") as f:
        r = csv.DictReader(f)
        for row in r:
            row["qubits"]  = int(row["qubits"])
            row["target"]  = int(row["target"])
            row["threads"] = int(row["threads"])
            row["sweeps"]  = int(row["sweeps"])
            row["wall_ms"] = float(row["wall_ms"])
            rows.append(row)
    return rows

def median_by_key(rows, key_fields):
    buckets = defaultdict(list)
    for r in rows:
        key = tuple(r[k] for k in key_fields)
        buckets[key].append(r["wall_ms"] / max(r["sweeps"], 1))
    agg = []
    for key, vals in buckets.items():
        out = dict(zip(key_fields, key))
        out["ms_per_sweep"] = float(median(vals))
        agg.append(out)
    return agg

def _save(out_dir, name):
    path = os.path.join(out_dir, name)
    plt.savefig(path, dpi=200)
    plt.close()
    return path

def plot_runtime_vs_qubits(rows, tag, out_dir):
    pts = median_by_key(rows, ["backend", "qubits"])
    if not pts: return None
    by_backend = defaultdict(list)
    for r in pts:
        by_backend[r["backend"]].append((r["qubits"], r["ms_per_sweep"]))
    plt.figure()
    for be, p in by_backend.items():
        xs, ys = zip(*sorted(p))
        plt.plot(xs, ys, marker="o", label=be)
    plt.xlabel("Qubits (n)")
    plt.ylabel("Time per sweep (ms, log scale)")
    plt.yscale("log")
    plt.title(f"Sweep time vs Qubits [{tag}]")
    plt.grid(True, which="both", ls="--", lw=0.5)
    plt.legend()
    return _save(out_dir, f"runtime_vs_qubits_{tag}.png")

def plot_speedup_vs_threads(rows, tag, out_dir):
    pts = sorted(median_by_key(rows, ["threads"]), key=lambda r: r["threads"])
    if not pts: return None
    t1 = next((r["ms_per_sweep"] for r in pts if r["threads"] == 1), None)
    if not t1: return None
    xs = [r["threads"] for r in pts]
    ys = [t1 / r["ms_per_sweep"] for r in pts]
    plt.figure()
    plt.plot(xs, ys, marker="o")
    plt.xlabel("Threads")
    plt.ylabel("Speedup (T1/Tt)")
    plt.title(f"Speedup vs Threads [{tag}]")
    plt.grid(True)
    return _save(out_dir, f"speedup_vs_threads_{tag}.png")

def plot_runtime_vs_target(rows, tag, out_dir):
    pts = sorted(median_by_key(rows, ["target"]), key=lambda r: r["target"])
    if not pts: return None
    plt.figure()
    plt.plot([r["target"] for r in pts], [r["ms_per_sweep"] for r in pts], marker="o")
    plt.xlabel("Target qubit k (1 = most significant)")
    plt.ylabel("Time per sweep (ms)")
    plt.title(f"Sweep time vs Target [{tag}]")
    plt.grid(True)
    return _save(out_dir, f"runtime_vs_target_{tag}.png")

def plot_csv(path):
    """Pick the plot from the CSV name (qubits/threads/targets); returns the PNG paths written."""
    tag = os.path.basename(os.path.dirname(path)) or "run"
    kind = os.path.splitext(os.path.basename(path))[0]
    out_dir = os.path.dirname(path) or "."
    rows = load_rows(path)
    print(f"Plotting from {tag}/{kind}.csv ({len(rows)} rows)...")
    if kind.startswith("qubits"):
        written = [plot_runtime_vs_qubits(rows, tag, out_dir)]
    elif kind.startswith("threads"):
        written = [plot_speedup_vs_threads(rows, tag, out_dir)]
    elif kind.startswith("targets"):
        written = [plot_runtime_vs_target(rows, tag, out_dir)]
    else:
        written = []
    return [p for p in written if p]

def main(data_dir=DATA_DIR):
    # find all CSVs recursively under data/
    csvs = []
    for root, _, files in os.walk(data_dir):
        for f in files:
            if f.endswith(".csv"):
                csvs.append(os.path.join(root, f))

    if not csvs:
        print(f"No CSV files found under {data_dir}")
        return

    for path in sorted(csvs):
        try:
            plot_csv(path)
        except (KeyError, ValueError) as e:
            print(f"Skipping {path}: {e}")
    print("\nSaved all plots under data/<backend>/*.png")


if __name__ == "__main__":
    main()
