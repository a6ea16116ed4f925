"""Pluggable per-boid update rules.

A policy advances a contiguous index range of a flock by one step.  It may read
every agent in the frame snapshot, but it may only write row ``i`` of the
flock's arrays while updating agent ``i``.  That write-disjointness is what
lets ``Flock.update_all`` hand arbitrary static chunks to different threads
without locks.
"""

import math
import numpy as np
from numba import njit

from config import boids as config
from .geometry import direction_heading, rotate_vertices, turn_delta, wrap_coordinate


@njit(nogil=True, cache=True)
def steer_range(
    start: int,
    stop: int,
    snap_origins: np.ndarray,
    snap_velocities: np.ndarray,
    snap_rotations: np.ndarray,
    snap_angular_velocities: np.ndarray,
    origins: np.ndarray,
    velocities: np.ndarray,
    rotations: np.ndarray,
    last_updates: np.ndarray,
    shapes: np.ndarray,
    now: float,
    width: float,
    height: float,
    perception_radius: float,
    separation_radius: float,
    separation_weight: float,
    alignment_weight: float,
    cohesion_weight: float,
    inertia_weight: float,
    max_dt: float
):
    """Numba JIT-compiled steering for boids ``start..stop-1``."""
    num_boids = snap_origins.shape[0]

    for i in range(start, stop):
        dt = now - last_updates[i]
        if dt < 0.0:
            dt = 0.0
        elif dt > max_dt:
            dt = max_dt
        last_updates[i] = now

        ox = snap_origins[i, 0]
        oy = snap_origins[i, 1]
        rotation = snap_rotations[i]

        coh_x, coh_y = 0.0, 0.0
        align_x, align_y = 0.0, 0.0
        sep_x, sep_y = 0.0, 0.0
        neighbor_count = 0

        for j in range(num_boids):
            if i == j:
                continue

            dx = snap_origins[j, 0] - ox
            dy = snap_origins[j, 1] - oy
            dist = math.sqrt(dx * dx + dy * dy)
            if dist <= 0.0 or dist >= perception_radius:
                continue

            coh_x += dx
            coh_y += dy

            align_x += math.sin(snap_rotations[j])
            align_y -= math.cos(snap_rotations[j])

            if dist < separation_radius:
                inv_sq = 1.0 / (dist * dist)
                sep_x -= dx * inv_sq
                sep_y -= dy * inv_sq

            neighbor_count += 1

        if neighbor_count > 0:
            inv_count = 1.0 / neighbor_count
            want_x = (
                inertia_weight * math.sin(rotation)
                + alignment_weight * align_x * inv_count
                + cohesion_weight * coh_x * inv_count / perception_radius
                + separation_weight * sep_x * separation_radius
            )
            want_y = (
                -inertia_weight * math.cos(rotation)
                + alignment_weight * align_y * inv_count
                + cohesion_weight * coh_y * inv_count / perception_radius
                + separation_weight * sep_y * separation_radius
            )

            if want_x != 0.0 or want_y != 0.0:
                delta = turn_delta(rotation, direction_heading(want_x, want_y))
                max_turn = abs(snap_angular_velocities[i]) * dt
                if delta > max_turn:
                    delta = max_turn
                elif delta < -max_turn:
                    delta = -max_turn

                if delta != 0.0:
                    rotation = rotate_vertices(shapes[i], rotation, delta)

        rotations[i] = rotation

        # Keep cruising speed, point it along the new heading
        vx0 = snap_velocities[i, 0]
        vy0 = snap_velocities[i, 1]
        speed = math.sqrt(vx0 * vx0 + vy0 * vy0)
        vx = speed * math.sin(rotation)
        vy = -speed * math.cos(rotation)
        velocities[i, 0] = vx
        velocities[i, 1] = vy

        origins[i, 0] = wrap_coordinate(ox + vx * dt, width)
        origins[i, 1] = wrap_coordinate(oy + vy * dt, height)


class FlockingPolicy:
    """
    Base class for update rules.

    Subclasses implement ``update_range``.  The flock passes itself (the
    writable arena) and the frame snapshot (read-only copies of every agent's
    state at the start of the frame).
    """

    def update_range(self, flock, snapshot, start: int, stop: int, now: float):
        raise NotImplementedError

    def update(self, flock, snapshot, index: int, now: float):
        """Advance a single boid against ``snapshot``."""
        self.update_range(flock, snapshot, index, index + 1, now)

    def warmup(self):
        """Compile or prime anything the rule needs before timing starts."""


class SteeringPolicy(FlockingPolicy):
    """
    Separation / alignment / cohesion steering with a bounded turn rate.

    Each boid turns toward a blend of its current heading, its neighbors'
    mean heading, their centroid and a push away from crowding, by at most
    ``angular_velocity * dt`` per step, then moves along its new heading.
    """

    def __init__(
        self,
        perception_radius: float = None,
        separation_radius: float = None,
        separation_weight: float = None,
        alignment_weight: float = None,
        cohesion_weight: float = None,
        inertia_weight: float = None,
        max_dt: float = None
    ):
        settings = config.POLICY
        self.perception_radius = float(
            settings["perception_radius"] if perception_radius is None else perception_radius
        )
        self.separation_radius = float(
            settings["separation_radius"] if separation_radius is None else separation_radius
        )
        self.separation_weight = float(
            settings["separation_weight"] if separation_weight is None else separation_weight
        )
        self.alignment_weight = float(
            settings["alignment_weight"] if alignment_weight is None else alignment_weight
        )
        self.cohesion_weight = float(
            settings["cohesion_weight"] if cohesion_weight is None else cohesion_weight
        )
        self.inertia_weight = float(
            settings["inertia_weight"] if inertia_weight is None else inertia_weight
        )
        self.max_dt = float(settings["max_dt"] if max_dt is None else max_dt)

        if self.perception_radius <= 0:
            raise ValueError("perception_radius must be positive")

    def update_range(self, flock, snapshot, start: int, stop: int, now: float):
        steer_range(
            start,
            stop,
            snapshot.origins,
            snapshot.velocities,
            snapshot.rotations,
            snapshot.angular_velocities,
            flock.origins,
            flock.velocities,
            flock.rotations,
            flock.last_updates,
            flock.shapes,
            float(now),
            flock.width,
            flock.height,
            self.perception_radius,
            self.separation_radius,
            self.separation_weight,
            self.alignment_weight,
            self.cohesion_weight,
            self.inertia_weight,
            self.max_dt
        )

    def warmup(self):
        """Pre-compile the Numba kernel."""
        n = 8
        rng = np.random.default_rng(0)
        snap_pos = rng.random((n, 2)) * 10.0
        snap_vel = np.full((n, 2), 20.0)
        snap_rot = rng.random(n) * 6.0
        snap_ang = np.ones(n)
        for arr in (snap_pos, snap_vel, snap_rot, snap_ang):
            arr.flags.writeable = False

        pos = snap_pos.copy()
        vel = snap_vel.copy()
        rot = snap_rot.copy()
        last = np.zeros(n)
        shapes = np.zeros((n, 3, 2))
        shapes[:] = np.array(config.FLOCK["shape"], dtype=np.float64)

        steer_range(
            0, n, snap_pos, snap_vel, snap_rot, snap_ang,
            pos, vel, rot, last, shapes,
            0.016, 100.0, 100.0,
            self.perception_radius, self.separation_radius,
            self.separation_weight, self.alignment_weight,
            self.cohesion_weight, self.inertia_weight, self.max_dt
        )
