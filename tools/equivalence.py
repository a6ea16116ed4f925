"""
Boids Correctness Check
=======================

Runs the same seeded flock twice, once with the worker pool capped at a single
thread and once at full width, and compares every boid every frame.

Usage:
    python -m tools.equivalence                  # 50 boids, 100 frames, tol 1e-1
    python -m tools.equivalence --quick          # 16 boids, 10 steps, tol 1e-3
    python -m tools.equivalence --realtime       # Wall-clock timestamps per flock
    python -m tools.equivalence --threads 8 --boids 500

Exit status is 0 when the parallel flock matched the serial one on every
frame and 1 otherwise.
"""

import argparse
import sys

from config import boids as config
from boids import WorkerPool
from boids.equivalence import EquivalenceChecker
from tools.args import add_threads_argument, resolve_threads


def build_parser() -> argparse.ArgumentParser:
    defaults = config.EQUIVALENCE
    parser = argparse.ArgumentParser(
        description="Serial vs parallel boids equivalence check",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tools.equivalence                     # Full check
  python -m tools.equivalence --quick             # Small smoke check
  python -m tools.equivalence --tolerance 1e-6    # Tighter comparison
        """
    )
    parser.add_argument("--boids", type=int, default=None,
                        help=f"Boids per flock (default: {defaults['count']})")
    parser.add_argument("--frames", type=int, default=None,
                        help=f"Frames to compare (default: {defaults['frames']})")
    parser.add_argument("--tolerance", type=float, default=None,
                        help=f"Absolute tolerance per component (default: {defaults['tolerance']})")
    parser.add_argument("--seed", type=int, default=None,
                        help=f"Seed for the initial layout (default: {defaults['seed']})")
    parser.add_argument("--realtime", action="store_true",
                        help="Timestamp each flock's update with the wall clock")
    parser.add_argument("--quick", action="store_true",
                        help="Small preset: "
                             f"{config.QUICK_CHECK['count']} boids, "
                             f"{config.QUICK_CHECK['frames']} steps, "
                             f"tolerance {config.QUICK_CHECK['tolerance']}")
    add_threads_argument(parser)
    return parser


def resolve_settings(args: argparse.Namespace) -> dict:
    """Merge preset defaults with explicit flags (explicit flags win)."""
    preset = config.QUICK_CHECK if args.quick else config.EQUIVALENCE
    settings = {
        "num_boids": preset["count"],
        "frames": preset["frames"],
        "tolerance": preset["tolerance"],
        "seed": preset["seed"],
    }
    if args.boids is not None:
        settings["num_boids"] = args.boids
    if args.frames is not None:
        settings["frames"] = args.frames
    if args.tolerance is not None:
        settings["tolerance"] = args.tolerance
    if args.seed is not None:
        settings["seed"] = args.seed
    return settings


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args)

    print("[Check] BOIDS CORRECTNESS TEST")
    with WorkerPool(resolve_threads(args.threads)) as pool:
        checker = EquivalenceChecker(pool, realtime=args.realtime, **settings)
        report = checker.run()
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
