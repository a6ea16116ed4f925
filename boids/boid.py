"""Individual boid record with heading, velocity, and a mutable triangular shape."""

import numpy as np
from dataclasses import dataclass, field

from config import boids as config
from .geometry import rotate_vertices, wrap_angle


def base_shape() -> np.ndarray:
    """Fresh copy of the canonical, unrotated silhouette."""
    return np.array(config.FLOCK["shape"], dtype=np.float64)


@dataclass
class Boid:
    """
    A single boid (bird-oid object) in the simulation.

    Attributes:
        origin: 2D world-space position
        velocity: 2D velocity; its magnitude is the cruising speed
        rotation: Heading in radians, kept in [0, 2*pi)
        angular_velocity: Maximum turn rate in radians per second
        last_update: Timestamp of the last state transition
        shape: (3, 2) local-space vertices, rotated incrementally with the heading
    """
    origin: np.ndarray = field(default_factory=lambda: np.zeros(2))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))
    rotation: float = 0.0
    angular_velocity: float = 0.0
    last_update: float = 0.0
    shape: np.ndarray = field(default_factory=base_shape)

    def __post_init__(self):
        self.origin = np.array(self.origin, dtype=np.float64)
        self.velocity = np.array(self.velocity, dtype=np.float64)
        self.shape = np.array(self.shape, dtype=np.float64)
        self.rotation = float(wrap_angle(float(self.rotation)))
        if self.origin.shape != (2,) or self.velocity.shape != (2,):
            raise ValueError("origin and velocity must be 2D vectors")
        if self.shape.shape != (3, 2):
            raise ValueError(f"shape must hold exactly 3 vertices, got {self.shape.shape}")

    def copy(self) -> "Boid":
        """Field-for-field copy that shares no arrays with this boid."""
        return Boid(
            origin=self.origin.copy(),
            velocity=self.velocity.copy(),
            rotation=self.rotation,
            angular_velocity=self.angular_velocity,
            last_update=self.last_update,
            shape=self.shape.copy(),
        )

    def rotate(self, theta: float):
        """Turn by ``theta`` radians (a delta, not an absolute heading)."""
        rotate(self, theta)

    def world_vertices(self) -> np.ndarray:
        """Triangle vertices in world space."""
        return self.shape + self.origin


def new_boid(origin, velocity, rotation: float, angular_velocity: float,
             last_update: float = 0.0) -> Boid:
    """Create a boid with its heading normalized and a canonical shape."""
    return Boid(
        origin=origin,
        velocity=velocity,
        rotation=float(wrap_angle(float(rotation))),
        angular_velocity=float(angular_velocity),
        last_update=float(last_update),
        shape=base_shape(),
    )


def rotate(boid: Boid, theta: float) -> Boid:
    """
    Rotate a boid's shape in place and advance its heading by ``theta``.

    The vertices are multiplied by the rotation matrix on top of whatever
    rotation they already carry, so error accumulates across calls the same
    way it does inside the parallel update pass.
    """
    boid.rotation = float(rotate_vertices(boid.shape, float(boid.rotation), float(theta)))
    return boid
