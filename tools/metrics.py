"""
Boids Performance Benchmark
===========================

Times the update, compute (triangle projection) and render phases of every
frame.  After the benchmark horizon it prints a summary and appends one line
per run to the results file:

    <threads> <avg update ms> <avg compute ms> <avg render ms>

Usage:
    python -m tools.metrics                          # Window, all cores
    python -m tools.metrics --threads 4              # Fixed pool size
    python -m tools.metrics --headless               # No window, exit at horizon
    python -m tools.metrics --headless --sweep       # 1..N threads, one line each
    python -m tools.metrics 1920 1200 20000          # width height boids
"""

import argparse
import sys
import time

import numpy as np

from config import boids as config
from boids import Flock, FlockAllocationError, WorkerPool
from boids.metrics import BenchmarkSummary, PerformanceSampler
from boids.simulation import HeadlessRenderer, Simulation
from tools.args import (
    add_seed_argument, add_threads_argument, add_world_arguments,
    resolve_threads, resolve_world_arguments
)


def run_benchmark(width: int, height: int, count: int, threads: int = None,
                  frames: int = None, results_path: str = None, seed: int = None,
                  headless: bool = False, renderer=None):
    """
    Run one benchmark and return its summary (None if the window was closed first).

    Headless runs stop at the horizon.  Windowed runs keep animating until the
    window is closed, like the interactive simulation.
    """
    frames = config.METRICS["benchmark_frames"] if frames is None else frames

    flock = Flock.spawn(count, width, height, rng=np.random.default_rng(seed),
                        created_at=time.perf_counter())
    flock.warmup()

    with WorkerPool(threads) as pool:
        print(f"[Bench] Worker pool enabled (threads: {pool.num_threads})")
        sampler = PerformanceSampler(
            num_boids=count,
            threads=pool.num_threads,
            benchmark_frames=frames,
            results_path=results_path,
        )

        owns_window = False
        if renderer is None:
            if headless:
                renderer = HeadlessRenderer()
            else:
                from core import Application
                renderer = Application(width, height, title=config.METRICS["title"],
                                       fps=config.METRICS["fps"], on_resize=flock.resize)
                owns_window = True

        simulation = Simulation(flock, pool, renderer, sampler=sampler)
        try:
            summary = simulation.run(stop_after_benchmark=True)
            if summary is not None:
                report_summary(summary, results_path)
                if not headless:
                    # Benchmark done, keep animating until the window is closed
                    simulation.run()
        finally:
            if owns_window:
                renderer.close()

    return summary


def run_sweep(width: int, height: int, count: int, max_threads: int = None,
              frames: int = None, results_path: str = None, seed: int = None):
    """Headless benchmark for 1..max_threads threads, one results line each."""
    with WorkerPool(max_threads) as probe:
        max_threads = probe.max_threads

    summaries = []
    for threads in range(1, max_threads + 1):
        print(f"[Bench] Sweep {threads}/{max_threads}")
        summaries.append(run_benchmark(
            width, height, count, threads=threads, frames=frames,
            results_path=results_path, seed=seed, headless=True
        ))
    return summaries


def report_summary(summary: BenchmarkSummary, results_path: str = None):
    for line in summary.lines():
        print(f"[Bench] {line}")
    if results_path:
        print(f"[Bench] Appended '{summary.sample().to_line()}' to {results_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Boids phase-timing benchmark",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tools.metrics                        # Windowed, all cores
  python -m tools.metrics --threads 1            # Serial baseline
  python -m tools.metrics --headless --sweep     # Scaling sweep
  python -m tools.speedup                        # Analyze the results file
        """
    )
    add_world_arguments(parser, config.WINDOW["width"], config.WINDOW["height"],
                        config.METRICS["count"])
    add_threads_argument(parser)
    add_seed_argument(parser)
    parser.add_argument("--frames", type=int, default=config.METRICS["benchmark_frames"],
                        help=f"Benchmark horizon in frames "
                             f"(default: {config.METRICS['benchmark_frames']})")
    parser.add_argument("--results", default=config.METRICS["results_file"],
                        help=f"Results file to append to "
                             f"(default: {config.METRICS['results_file']})")
    parser.add_argument("--headless", action="store_true",
                        help="Run without a window and exit at the horizon")
    parser.add_argument("--sweep", action="store_true",
                        help="Headless run for every thread count from 1 to --threads")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    width, height, count = resolve_world_arguments(
        args, config.WINDOW["width"], config.WINDOW["height"], config.METRICS["count"]
    )
    threads = resolve_threads(args.threads)

    if args.frames < 1:
        print(f"[Args] Warning: frames {args.frames} must be positive, "
              f"using {config.METRICS['benchmark_frames']}")
        args.frames = config.METRICS["benchmark_frames"]

    try:
        if args.sweep:
            run_sweep(width, height, count, max_threads=threads, frames=args.frames,
                      results_path=args.results, seed=args.seed)
        else:
            run_benchmark(width, height, count, threads=threads, frames=args.frames,
                          results_path=args.results, seed=args.seed,
                          headless=args.headless)
    except FlockAllocationError as exc:
        print(f"[App] Fatal: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
