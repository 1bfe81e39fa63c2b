"""
Huffman codec experiments: parent-walk encoding vs code-table encoding

Runs repeated compress/decompress rounds over synthetic datasets and records
timings, sizes and how close the average code length gets to the entropy.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_kb 2048
  python experiments.py --outdir results --runs 5 --exp1_generators uniform256,zipf128,repetitive90,english_like

Notes:
  Both pipelines write the same file layout and decode through the tree, so
  they only differ in how each byte's code is found while encoding.
"""

from __future__ import annotations

import argparse
import csv
import io
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt

from bitstream import BitInputStream, BitOutputStream
from compress import count_frequencies
from decompress import decompress_stream
from huffman import HuffmanTree

PIPELINES = ("tree_walk", "code_table")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def entropy_bits(freqs: Sequence[int]) -> float:
    # Shannon entropy in bits per symbol, the lower bound for any prefix code
    total = sum(freqs)
    if total == 0:
        return 0.0
    return -sum((c / total) * math.log2(c / total) for c in freqs if c)

def average_code_bits(tree: HuffmanTree, freqs: Sequence[int]) -> float:
    total = sum(freqs)
    if total == 0:
        return 0.0
    codes = tree.codes()
    return sum(freqs[s] * len(code) for s, code in codes.items()) / total


def encode_with_tree_walk(tree: HuffmanTree, data: bytes, out: BitOutputStream) -> None:
    for b in data:
        tree.encode(b, out)

def encode_with_code_table(tree: HuffmanTree, data: bytes, out: BitOutputStream) -> None:
    table: List[List[int]] = [[] for _ in range(256)]
    for symbol in tree.symbols():
        table[symbol] = tree.code_for(symbol)
    write_bit = out.write_bit
    for b in data:
        for bit in table[b]:
            write_bit(bit)


ENCODERS: Dict[str, Callable[[HuffmanTree, bytes, BitOutputStream], None]] = {
    "tree_walk": encode_with_tree_walk,
    "code_table": encode_with_code_table,
}


# Synthetic dataset generators

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    other_symbols = [i for i in range(256) if i != dominant]
    out = bytearray()
    for _ in range(size):
        if rng.random() < dom_frac:
            out.append(dominant)
        else:
            out.append(rng.choice(other_symbols))
    return bytes(out)

def gen_single_symbol(size: int, symbol: int = ord('A')) -> bytes:
    return bytes([symbol]) * size

def _sample_from_weights(rng: random.Random, weights: List[float], size: int) -> List[int]:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    picks = []
    for _ in range(size):
        r = rng.random()
        lo, hi = 0, len(cdf) - 1
        while lo < hi:
            mid = (lo + hi) // 2
            if r <= cdf[mid]:
                hi = mid
            else:
                lo = mid + 1
        picks.append(lo)
    return picks

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return bytes(_sample_from_weights(rng, weights, size))

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = (
        " etaoinshrdlcumwfgypbvkjxq"
        "ETAOINSHRDLCUMWFGYPBVKJXQ"
        "\n"
    )
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return bytes(ord(chars[i]) for i in _sample_from_weights(rng, weights, size))

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_symbol": lambda size, seed: gen_single_symbol(size),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    """
    Helper: if a dataset name is not recognized, we fall back to uniform256
    so a typo in the generator list does not abort a long run
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_uniform256", gen_uniform(size_bytes, alphabet=256, seed=seed)
    return name, fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "tree_walk" or "code_table"
    unique_symbols: int

    build_ms: float
    serialize_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    header_bytes: int
    compressed_bytes: int
    pad_bits: int
    compression_ratio: float

    entropy_bits_per_symbol: float
    avg_code_bits_per_symbol: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes, pipeline: str) -> MetricRow:
    encoder = ENCODERS.get(pipeline)
    if encoder is None:
        raise ValueError(f"pipeline must be one of {', '.join(PIPELINES)}")

    freqs = count_frequencies(data)

    t0 = now_ns()
    tree = HuffmanTree.build(freqs)
    t1 = now_ns()
    build_ms = ns_to_ms(t1 - t0)

    buf = io.BytesIO()
    out = BitOutputStream(buf)
    t2 = now_ns()
    tree.serialize(out)
    t3 = now_ns()
    serialize_ms = ns_to_ms(t3 - t2)
    header_bytes = len(buf.getvalue())

    pad_bits = 0
    t4 = now_ns()
    if tree.root is not None:
        encoder(tree, data, out)
        pad_bits = out.flush()
    t5 = now_ns()
    encode_ms = ns_to_ms(t5 - t4)
    packed = buf.getvalue()

    t6 = now_ns()
    decoded = decompress_stream(BitInputStream(packed))
    t7 = now_ns()
    decode_ms = ns_to_ms(t7 - t6)

    comp_bytes = len(packed)
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(tree),
        build_ms=build_ms,
        serialize_ms=serialize_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + serialize_ms + encode_ms + decode_ms,
        header_bytes=header_bytes,
        compressed_bytes=comp_bytes,
        pad_bits=pad_bits,
        compression_ratio=comp_bytes / max(1, len(data)),
        entropy_bits_per_symbol=entropy_bits(freqs),
        avg_code_bits_per_symbol=average_code_bits(tree, freqs),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


SUMMARY_METRICS = (
    "compression_ratio", "encode_ms", "decode_ms", "build_ms",
    "serialize_ms", "total_ms", "avg_code_bits_per_symbol",
)

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for metric in SUMMARY_METRICS:
        summary_fields += [f"{metric}_mean", f"{metric}_stdev"]
    summary_fields += ["entropy_bits_per_symbol", "correctness_ok_rate"]

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
            }
            for metric in SUMMARY_METRICS:
                m, s = mean_stdev([getattr(x, metric) for x in items])
                row[f"{metric}_mean"] = m
                row[f"{metric}_stdev"] = s
            row["entropy_bits_per_symbol"] = statistics.mean(x.entropy_bits_per_symbol for x in items)
            row["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
            w.writerow(row)


# Plotting

def _line_chart(x, series: Dict[str, List[float]], ylabel: str, title: str, out_file: Path,
                xticks: Sequence[str] = (), xlabel: str = "") -> None:
    plt.figure()
    for label, y in series.items():
        plt.plot(x, y, marker="o", label=label)
    if xticks:
        plt.xticks(x, xticks, rotation=20, ha="right")
    if xlabel:
        plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.title(title)
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_file, dpi=200)
    plt.close()


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    _line_chart(x, {p: [mean_for(d, p, "compression_ratio") for d in datasets] for p in PIPELINES},
                "Compressed Bytes / Original Bytes", "Experiment 1: Compression Ratio by Distribution",
                outdir / "exp1_compression_ratio.png", xticks=datasets)
    _line_chart(x, {p: [mean_for(d, p, "encode_ms") for d in datasets] for p in PIPELINES},
                "Encode Time (ms)", "Experiment 1: Encode Time by Distribution",
                outdir / "exp1_encode_time.png", xticks=datasets)

    # Code length vs entropy does not depend on the pipeline
    _line_chart(x, {
        "avg code length": [mean_for(d, "tree_walk", "avg_code_bits_per_symbol") for d in datasets],
        "entropy": [mean_for(d, "tree_walk", "entropy_bits_per_symbol") for d in datasets],
    }, "Bits per Symbol", "Experiment 1: Huffman Code Length vs Entropy",
        outdir / "exp1_code_length_vs_entropy.png", xticks=datasets)


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        _line_chart(sizes, {p: [mean_size(s, p, "encode_ms") for s in sizes] for p in PIPELINES},
                    "Encode Time (ms)", f"Experiment 2: Encode Time vs Size ({dist})",
                    outdir / f"exp2_encode_time_{dist}.png", xlabel="File Size (bytes)")
        _line_chart(sizes, {p: [mean_size(s, p, "decode_ms") for s in sizes] for p in PIPELINES},
                    "Decode Time (ms)", f"Experiment 2: Decode Time vs Size ({dist})",
                    outdir / f"exp2_decode_time_{dist}.png", xlabel="File Size (bytes)")
        _line_chart(sizes, {p: [mean_size(s, p, "compression_ratio") for s in sizes] for p in PIPELINES},
                    "Compressed Bytes / Original Bytes", f"Experiment 2: Compression Ratio vs Size ({dist})",
                    outdir / f"exp2_compression_ratio_{dist}.png", xlabel="File Size (bytes)")


def plot_experiment_3(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp3_pipeline_compare"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_total(dataset: str, pipeline: str) -> float:
        vals = [r.total_ms for r in exp_rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    _line_chart(x, {p: [mean_total(d, p) for d in datasets] for p in PIPELINES},
                "Total Time (ms) (build + serialize + encode + decode)",
                "Experiment 3: End-to-End Time by Dataset",
                outdir / "exp3_total_time.png", xticks=datasets)


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def run_configs(rows: List[MetricRow], exp_name: str, dataset_name: str, data: bytes, run_id: int) -> None:
    for pipeline in PIPELINES:
        row = run_one(data, pipeline)
        row.exp_name = exp_name
        row.dataset_name = dataset_name
        row.run_id = run_id
        rows.append(row)

def main(argv: Sequence[str] | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_exp3", action="store_true", help="Disable experiment 3 (pipeline compare)")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=64, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str,
                    default="uniform256,zipf128,repetitive90,english_like,single_symbol",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=512, help="Experiment 2 max size in KB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")

    # Experiment 3 controls
    ap.add_argument("--exp3_size_kb", type=int, default=256, help="Experiment 3 file size in KB")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                run_configs(rows, "exp1_distribution", dataset_name, data, run_id)
        print(f"Experiment 1 done ({len(rows)} rows so far)")

    # Experiment 2: size scaling (multiple sizes, powers of 2)
    if not args.no_exp2:
        min_bytes = max(1, args.exp2_min_kb) * 1024
        max_bytes = max(1, args.exp2_max_kb) * 1024

        sizes: List[int] = []
        s = min_bytes
        while s <= max_bytes:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    dataset_name, data = generate_dataset(gen_name, size_b, args.seed + 10_000 + size_b + run_id)
                    run_configs(rows, "exp2_size_scaling", dataset_name, data, run_id)
        print(f"Experiment 2 done ({len(rows)} rows so far)")

    # Experiment 3: pipeline compare on a mixed set
    if not args.no_exp3:
        size_b = max(1, args.exp3_size_kb) * 1024
        for gen_name in ("english_like", "uniform256", "zipf128", "repetitive90", "repetitive99", "uniform128"):
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, size_b, args.seed + 200_000 + run_id + size_b)
                run_configs(rows, "exp3_pipeline_compare", f"{dataset_name}_{size_b // 1024}kb", data, run_id)
        print(f"Experiment 3 done ({len(rows)} rows so far)")

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    # Plots
    plot_experiment_1(rows, outdir)
    plot_experiment_2(rows, outdir)
    plot_experiment_3(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
