"""
2D Boids Simulation
===================

A real-time flocking simulation whose update and projection passes run on a
fork-join worker pool.

Usage:
    python main.py                          # 1920x1200 window, 1024 boids
    python main.py 1280 720 4096            # width height boids
    python main.py --threads 4 --seed 7     # fixed pool size, reproducible layout

Controls:
    - ESC / close window: Quit
"""

import argparse
import sys
import time

import numpy as np

from config import boids as config
from boids import Flock, FlockAllocationError, WorkerPool
from boids.simulation import Simulation
from tools.args import (
    add_seed_argument, add_threads_argument, add_world_arguments,
    resolve_threads, resolve_world_arguments
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parallel 2D boids simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                       # Default window and flock
  python main.py 1280 720 4096         # Custom window and flock size
  python main.py --threads 1           # Serial update pass
        """
    )
    add_world_arguments(parser, config.WINDOW["width"], config.WINDOW["height"],
                        config.FLOCK["count"])
    add_threads_argument(parser)
    add_seed_argument(parser)
    parser.add_argument("--fps", type=int, default=config.WINDOW["fps"],
                        help=f"Target FPS cap (default: {config.WINDOW['fps']})")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    width, height, count = resolve_world_arguments(
        args, config.WINDOW["width"], config.WINDOW["height"], config.FLOCK["count"]
    )

    try:
        flock = Flock.spawn(
            count, width, height,
            rng=np.random.default_rng(args.seed),
            created_at=time.perf_counter()
        )
    except FlockAllocationError as exc:
        print(f"[App] Fatal: {exc}")
        return 1

    flock.warmup()

    # Imported late so the window only opens once the flock exists
    from core import Application

    with WorkerPool(resolve_threads(args.threads)) as pool:
        print(f"[App] Simulating {count:,} boids on {pool.num_threads} threads")
        app = Application(width, height, fps=args.fps, on_resize=flock.resize)
        try:
            Simulation(flock, pool, app).run()
        finally:
            app.close()

    print("[App] Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
