"""Boid state, flock passes, and the parallel-correctness and timing harnesses."""

from .boid import Boid, new_boid, rotate
from .geometry import distance, heading_of, wrap_angle
from .flock import Flock, FlockAllocationError, FlockSnapshot
from .parallel import WorkerPool, partition
from .policy import FlockingPolicy, SteeringPolicy

__all__ = [
    "Boid", "new_boid", "rotate",
    "distance", "heading_of", "wrap_angle",
    "Flock", "FlockAllocationError", "FlockSnapshot",
    "WorkerPool", "partition",
    "FlockingPolicy", "SteeringPolicy",
]
