"""
Speedup analysis for benchmark results.

Reads the append-only results file written by ``tools.metrics`` and prints
per-thread-count averages with speedup and efficiency against one thread.

Usage:
    python -m tools.speedup                      # speedup_data.txt
    python -m tools.speedup results/other.txt
"""

import argparse
import sys
from typing import List

from config import boids as config
from boids.metrics import SpeedupRow, load_speedup_samples, speedup_table


def format_table(rows: List[SpeedupRow]) -> List[str]:
    def fmt(value, pattern):
        return "-" if value is None else format(value, pattern)

    lines = [
        f"{'threads':>7} {'runs':>4} {'update ms':>10} {'compute ms':>10} "
        f"{'render ms':>10} {'speedup':>8} {'c.speedup':>9} {'eff.':>6}"
    ]
    for row in rows:
        lines.append(
            f"{row.threads:>7} {row.runs:>4} {row.update_ms:>10.3f} "
            f"{row.compute_ms:>10.3f} {row.render_ms:>10.3f} "
            f"{fmt(row.update_speedup, '>8.2f'):>8} "
            f"{fmt(row.compute_speedup, '>9.2f'):>9} "
            f"{fmt(row.efficiency, '>6.0%'):>6}"
        )
    return lines


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Summarize benchmark speedup")
    parser.add_argument("results", nargs="?", default=config.METRICS["results_file"],
                        help=f"Results file (default: {config.METRICS['results_file']})")
    args = parser.parse_args(argv)

    samples = load_speedup_samples(args.results)
    if not samples:
        print(f"[Speedup] No samples in {args.results}")
        print("[Speedup] Run: python -m tools.metrics --headless --sweep")
        return 1

    rows = speedup_table(samples)
    for line in format_table(rows):
        print(line)
    if not any(row.threads == 1 for row in rows):
        print("[Speedup] No 1-thread baseline; run with --threads 1 for speedup figures")
    return 0


if __name__ == "__main__":
    sys.exit(main())
