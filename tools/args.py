"""Shared command-line helpers for the entry points."""

import argparse
from typing import Optional, Tuple


def positional_int(raw: Optional[str], default: int, name: str = "value") -> int:
    """
    Parse an optional positional integer, falling back to ``default``.

    Missing, malformed, or non-positive input never aborts the run; it just
    uses the default (with a warning when something was actually given).
    """
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        print(f"[Args] Warning: {name} {raw!r} is not a number, using {default}")
        return default
    if value <= 0:
        print(f"[Args] Warning: {name} {value} must be positive, using {default}")
        return default
    return value


def add_world_arguments(parser: argparse.ArgumentParser, width: int, height: int, boids: int):
    """Add the optional ``width height boids`` positionals."""
    parser.add_argument("width", nargs="?", default=None,
                        help=f"Window width in pixels (default: {width})")
    parser.add_argument("height", nargs="?", default=None,
                        help=f"Window height in pixels (default: {height})")
    parser.add_argument("boids", nargs="?", default=None,
                        help=f"Number of boids (default: {boids})")


def resolve_world_arguments(args: argparse.Namespace, width: int, height: int,
                            boids: int) -> Tuple[int, int, int]:
    return (
        positional_int(args.width, width, "width"),
        positional_int(args.height, height, "height"),
        positional_int(args.boids, boids, "boids"),
    )


def add_threads_argument(parser: argparse.ArgumentParser):
    parser.add_argument("--threads", type=int, default=None,
                        help="Worker threads (default: all CPU cores)")


def resolve_threads(requested: Optional[int]) -> Optional[int]:
    """None means "all cores"; non-positive requests fall back to that."""
    if requested is not None and requested < 1:
        print(f"[Args] Warning: threads {requested} must be positive, using all cores")
        return None
    return requested


def add_seed_argument(parser: argparse.ArgumentParser):
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for initial positions/headings (default: OS entropy)")
