"""Flock storage and the per-frame update / projection passes.

Boid state lives in one structure-of-arrays arena, one contiguous array per
field, indexed by boid.  Row ``i`` of every array belongs to boid ``i`` alone,
so any static partition of the index range can be updated concurrently.
"""

import numpy as np
from numba import njit

from config import boids as config
from .boid import Boid, base_shape
from .geometry import wrap_angle
from .policy import FlockingPolicy, SteeringPolicy


class FlockAllocationError(MemoryError):
    """Raised when the flock arena cannot be allocated."""


@njit(nogil=True, cache=True)
def project_range(start: int, stop: int, origins: np.ndarray, shapes: np.ndarray,
                  triangles: np.ndarray):
    """Numba JIT-compiled local-to-world vertex projection."""
    for i in range(start, stop):
        ox = origins[i, 0]
        oy = origins[i, 1]
        for k in range(3):
            triangles[i, k, 0] = shapes[i, k, 0] + ox
            triangles[i, k, 1] = shapes[i, k, 1] + oy


def spawn_conditions(rng: np.random.Generator, num_boids: int, width: int, height: int,
                     max_rotation: int = None):
    """
    Draw initial origins and headings from ``rng``.

    Origins are whole pixels in ``[0, width] x [0, height]`` and headings whole
    radians in ``[0, max_rotation]``, both bounds inclusive.

    Returns:
        (origins, rotations) as float64 arrays of shape (n, 2) and (n,)
    """
    if max_rotation is None:
        max_rotation = config.FLOCK["max_rotation"]
    xs = rng.integers(0, int(width), size=num_boids, endpoint=True)
    ys = rng.integers(0, int(height), size=num_boids, endpoint=True)
    rotations = rng.integers(0, int(max_rotation), size=num_boids, endpoint=True)
    origins = np.column_stack((xs, ys)).astype(np.float64)
    return origins, rotations.astype(np.float64)


class FlockSnapshot:
    """
    Read-only copy of the flock taken at the start of a frame.

    Buffers are allocated once and refilled by ``capture``.  Between captures
    they are marked non-writeable, so a policy that tries to write through the
    snapshot fails loudly instead of racing.
    """

    def __init__(self, num_boids: int):
        self.origins = np.zeros((num_boids, 2), dtype=np.float64)
        self.velocities = np.zeros((num_boids, 2), dtype=np.float64)
        self.rotations = np.zeros(num_boids, dtype=np.float64)
        self.angular_velocities = np.zeros(num_boids, dtype=np.float64)
        self._set_writeable(False)

    def _arrays(self):
        return (self.origins, self.velocities, self.rotations, self.angular_velocities)

    def _set_writeable(self, flag: bool):
        for arr in self._arrays():
            arr.flags.writeable = flag

    def capture(self, flock: "Flock"):
        self._set_writeable(True)
        np.copyto(self.origins, flock.origins)
        np.copyto(self.velocities, flock.velocities)
        np.copyto(self.rotations, flock.rotations)
        np.copyto(self.angular_velocities, flock.angular_velocities)
        self._set_writeable(False)

    def __len__(self):
        return self.origins.shape[0]


class Flock:
    """
    Fixed-size flock of 2D boids with parallel-safe update and projection passes.
    """

    def __init__(self, num_boids: int, width: float, height: float,
                 policy: FlockingPolicy = None):
        if num_boids < 0:
            raise ValueError(f"num_boids must be >= 0, got {num_boids}")
        if width <= 0 or height <= 0:
            raise ValueError(f"world size must be positive, got {width}x{height}")

        self.num_boids = int(num_boids)
        self.width = float(width)
        self.height = float(height)
        self.policy = policy if policy is not None else SteeringPolicy()

        n = self.num_boids
        try:
            # Boid data (float64 for physics accuracy)
            self.origins = np.zeros((n, 2), dtype=np.float64)
            self.velocities = np.zeros((n, 2), dtype=np.float64)
            self.rotations = np.zeros(n, dtype=np.float64)
            self.angular_velocities = np.zeros(n, dtype=np.float64)
            self.last_updates = np.zeros(n, dtype=np.float64)
            self.shapes = np.empty((n, 3, 2), dtype=np.float64)

            # World-space output of the projection pass
            self.triangles = np.zeros((n, 3, 2), dtype=np.float64)

            self._snapshot = FlockSnapshot(n)
        except MemoryError as exc:
            raise FlockAllocationError(
                f"Could not allocate a flock of {n:,} boids: {exc}"
            ) from exc

        self.shapes[:] = base_shape()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_conditions(cls, origins: np.ndarray, rotations: np.ndarray,
                        width: float, height: float, velocity=None,
                        angular_velocity: float = None, created_at: float = 0.0,
                        policy: FlockingPolicy = None) -> "Flock":
        """Build a flock from explicit initial origins and headings."""
        if velocity is None:
            velocity = config.FLOCK["velocity"]
        if angular_velocity is None:
            angular_velocity = config.FLOCK["angular_velocity"]

        flock = cls(len(origins), width, height, policy=policy)
        flock.origins[:] = origins
        flock.velocities[:] = np.asarray(velocity, dtype=np.float64)
        flock.rotations[:] = [wrap_angle(float(r)) for r in rotations]
        flock.angular_velocities[:] = angular_velocity
        flock.last_updates[:] = created_at
        return flock

    @classmethod
    def spawn(cls, num_boids: int, width: float, height: float,
              rng: np.random.Generator = None, velocity=None,
              angular_velocity: float = None, created_at: float = 0.0,
              policy: FlockingPolicy = None) -> "Flock":
        """
        Create a flock scattered across the world.

        Pass a seeded ``numpy.random.Generator`` for a reproducible layout; the
        default generator draws from OS entropy.
        """
        if rng is None:
            rng = np.random.default_rng()
        origins, rotations = spawn_conditions(rng, num_boids, width, height)
        return cls.from_conditions(
            origins, rotations, width, height,
            velocity=velocity, angular_velocity=angular_velocity,
            created_at=created_at, policy=policy
        )

    @classmethod
    def from_boids(cls, boids, width: float, height: float,
                   policy: FlockingPolicy = None) -> "Flock":
        boids = list(boids)
        flock = cls(len(boids), width, height, policy=policy)
        for i, boid in enumerate(boids):
            flock.set_boid(i, boid)
        return flock

    def clone(self) -> "Flock":
        """Deep copy sharing no storage with this flock, shapes included."""
        other = Flock(self.num_boids, self.width, self.height, policy=self.policy)
        np.copyto(other.origins, self.origins)
        np.copyto(other.velocities, self.velocities)
        np.copyto(other.rotations, self.rotations)
        np.copyto(other.angular_velocities, self.angular_velocities)
        np.copyto(other.last_updates, self.last_updates)
        np.copyto(other.shapes, self.shapes)
        np.copyto(other.triangles, self.triangles)
        return other

    def resize(self, width: float, height: float):
        """
        Change the wrap extents.

        Boids left outside the new world are wrapped back in by their next
        update.  Call between frames only.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"world size must be positive, got {width}x{height}")
        self.width = float(width)
        self.height = float(height)

    # ------------------------------------------------------------------
    # Per-boid access
    # ------------------------------------------------------------------

    def __len__(self):
        return self.num_boids

    def boid(self, index: int) -> Boid:
        """Copy of boid ``index`` as a standalone record."""
        return Boid(
            origin=self.origins[index].copy(),
            velocity=self.velocities[index].copy(),
            rotation=float(self.rotations[index]),
            angular_velocity=float(self.angular_velocities[index]),
            last_update=float(self.last_updates[index]),
            shape=self.shapes[index].copy(),
        )

    def set_boid(self, index: int, boid: Boid):
        self.origins[index] = boid.origin
        self.velocities[index] = boid.velocity
        self.rotations[index] = wrap_angle(float(boid.rotation))
        self.angular_velocities[index] = boid.angular_velocity
        self.last_updates[index] = boid.last_update
        self.shapes[index] = boid.shape

    # ------------------------------------------------------------------
    # Frame passes
    # ------------------------------------------------------------------

    def snapshot(self) -> FlockSnapshot:
        """Refresh and return the frame snapshot."""
        self._snapshot.capture(self)
        return self._snapshot

    def update_boid(self, index: int, snapshot: FlockSnapshot, now: float):
        """Advance boid ``index`` one step, reading neighbors from ``snapshot``."""
        self.policy.update(self, snapshot, index, now)

    def update_all(self, now: float, pool=None, workers: int = None):
        """
        Advance every boid one step.

        The snapshot is taken on the calling thread before any worker starts,
        so every boid sees the same pre-update flock.  Without a pool (or with
        ``workers=1``) boids are updated in index order on the calling thread;
        otherwise the range is split into static chunks across the pool.
        """
        snapshot = self.snapshot()
        policy = self.policy

        def body(start, stop):
            policy.update_range(self, snapshot, start, stop, now)

        self._run(body, pool, workers)

    def project(self, pool=None, workers: int = None) -> np.ndarray:
        """
        Compute world-space triangles into ``self.triangles`` and return it.

        Must run after ``update_all`` has returned for the same frame.
        """
        origins = self.origins
        shapes = self.shapes
        triangles = self.triangles

        def body(start, stop):
            project_range(start, stop, origins, shapes, triangles)

        self._run(body, pool, workers)
        return triangles

    def _run(self, body, pool, workers):
        if pool is None or workers == 1:
            if self.num_boids:
                body(0, self.num_boids)
        else:
            pool.parallel_for(self.num_boids, body, workers)

    def warmup(self):
        """Pre-compile the policy and projection kernels before timing starts."""
        self.policy.warmup()
        scratch = np.zeros((1, 3, 2), dtype=np.float64)
        project_range(0, 1, np.zeros((1, 2)), np.zeros((1, 3, 2)), scratch)
        print(f"[Flock] Initialized {self.num_boids:,} boids "
              f"({self.width:.0f}x{self.height:.0f}, {type(self.policy).__name__})")
