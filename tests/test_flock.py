import math

import numpy as np
import pytest

from boids import (
    Boid, Flock, FlockAllocationError, FlockingPolicy, SteeringPolicy, WorkerPool, new_boid
)
from boids.flock import spawn_conditions

WIDTH, HEIGHT = 400, 300


class ShiftPolicy(FlockingPolicy):
    """Each boid takes its successor's snapshot origin."""

    def update_range(self, flock, snapshot, start, stop, now):
        n = len(snapshot)
        for i in range(start, stop):
            flock.origins[i] = snapshot.origins[(i + 1) % n]
            flock.last_updates[i] = now


class VandalPolicy(FlockingPolicy):
    def update_range(self, flock, snapshot, start, stop, now):
        snapshot.origins[start, 0] = -1.0


def spawn(n, seed=7, policy=None):
    return Flock.spawn(n, WIDTH, HEIGHT, rng=np.random.default_rng(seed), policy=policy)


def test_seeded_spawn_is_reproducible():
    a = spawn(64)
    b = spawn(64)
    np.testing.assert_array_equal(a.origins, b.origins)
    np.testing.assert_array_equal(a.rotations, b.rotations)


def test_spawn_conditions_bounds():
    origins, rotations = spawn_conditions(np.random.default_rng(1), 500, WIDTH, HEIGHT)
    assert origins.dtype == np.float64
    assert (origins[:, 0] >= 0).all() and (origins[:, 0] <= WIDTH).all()
    assert (origins[:, 1] >= 0).all() and (origins[:, 1] <= HEIGHT).all()
    assert (rotations >= 0).all() and (rotations <= 6).all()
    np.testing.assert_array_equal(rotations, np.round(rotations))


def test_clone_is_independent():
    flock = spawn(8)
    twin = flock.clone()
    twin.origins[0] = (1.0, 1.0)
    twin.shapes[0, 0] = (9.0, 9.0)
    assert not np.array_equal(flock.origins[0], twin.origins[0])
    assert flock.shapes[0, 0, 0] == 0.0


def test_boid_roundtrip_through_flock():
    boids = [new_boid((i, 2 * i), (1, 0), 0.5 * i, 1.0) for i in range(5)]
    flock = Flock.from_boids(boids, WIDTH, HEIGHT)
    got = flock.boid(3)
    assert got.origin.tolist() == [3.0, 6.0]
    assert got.rotation == pytest.approx(1.5)

    got.origin[0] = 100.0
    assert flock.origins[3, 0] == 3.0


def test_snapshot_is_read_only():
    flock = spawn(4, policy=VandalPolicy())
    with pytest.raises(ValueError):
        flock.update_all(1.0)


def test_updates_read_snapshot_not_neighbors_new_state():
    flock = spawn(6, policy=ShiftPolicy())
    before = flock.origins.copy()
    flock.update_all(1.0)
    np.testing.assert_array_equal(flock.origins, np.roll(before, -1, axis=0))


def test_update_boid_touches_only_its_row():
    flock = spawn(6, policy=ShiftPolicy())
    before = flock.origins.copy()
    snapshot = flock.snapshot()
    flock.update_boid(2, snapshot, 1.0)
    np.testing.assert_array_equal(flock.origins[2], before[3])
    untouched = [0, 1, 3, 4, 5]
    np.testing.assert_array_equal(flock.origins[untouched], before[untouched])


def test_serial_and_parallel_updates_agree():
    serial = spawn(16, seed=12345)
    parallel = serial.clone()

    with WorkerPool(4) as pool:
        for frame in range(10):
            now = (frame + 1) / 60.0
            serial.update_all(now)
            parallel.update_all(now, pool)
            serial.project()
            parallel.project(pool)

    for a, b in [(serial.origins, parallel.origins),
                 (serial.rotations, parallel.rotations),
                 (serial.velocities, parallel.velocities),
                 (serial.shapes, parallel.shapes),
                 (serial.triangles, parallel.triangles)]:
        assert np.abs(a - b).max() < 1e-3


def test_update_keeps_invariants():
    flock = spawn(200, seed=3)
    speeds = np.hypot(flock.velocities[:, 0], flock.velocities[:, 1])
    with WorkerPool(3) as pool:
        for frame in range(30):
            flock.update_all((frame + 1) / 30.0, pool)

    assert ((flock.rotations >= 0) & (flock.rotations < 2 * math.pi)).all()
    assert ((flock.origins[:, 0] >= 0) & (flock.origins[:, 0] < WIDTH)).all()
    assert ((flock.origins[:, 1] >= 0) & (flock.origins[:, 1] < HEIGHT)).all()
    np.testing.assert_allclose(
        np.hypot(flock.velocities[:, 0], flock.velocities[:, 1]), speeds
    )
    np.testing.assert_allclose(flock.last_updates, 1.0)


def test_turn_is_bounded_by_angular_velocity():
    flock = spawn(100, seed=11)
    flock.angular_velocities[:] = 0.0
    before = flock.rotations.copy()
    flock.update_all(0.05)
    np.testing.assert_array_equal(flock.rotations, before)


def test_project_is_shape_plus_origin():
    flock = spawn(32)
    with WorkerPool(4) as pool:
        flock.update_all(0.02, pool)
        triangles = flock.project(pool)
    np.testing.assert_allclose(triangles, flock.shapes + flock.origins[:, None, :])


def test_allocation_failure(monkeypatch):
    def refuse(*args, **kwargs):
        raise MemoryError("no room")

    monkeypatch.setattr(np, "zeros", refuse)
    with pytest.raises(FlockAllocationError):
        Flock(10, WIDTH, HEIGHT, policy=ShiftPolicy())


def test_invalid_construction():
    with pytest.raises(ValueError):
        Flock(-1, WIDTH, HEIGHT)
    with pytest.raises(ValueError):
        Flock(4, 0, HEIGHT)
    with pytest.raises(ValueError):
        SteeringPolicy(perception_radius=0.0)


def test_empty_flock_updates():
    flock = Flock(0, WIDTH, HEIGHT)
    with WorkerPool(2) as pool:
        flock.update_all(1.0, pool)
        assert flock.project(pool).shape == (0, 3, 2)


def test_out_of_range_headings_are_normalized_on_entry():
    boids = [
        Boid(origin=(10.0, 10.0), velocity=(1.0, 0.0), rotation=10.0, angular_velocity=0.0),
        Boid(origin=(200.0, 150.0), velocity=(1.0, 0.0), rotation=-4.0, angular_velocity=0.0),
    ]
    flock = Flock.from_boids(boids, WIDTH, HEIGHT)
    flock.update_all(0.05)
    assert ((flock.rotations >= 0) & (flock.rotations < 2 * math.pi)).all()

    stray = new_boid((5, 5), (0, 0), 0.0, 0.0)
    stray.rotation = 7.0
    flock.set_boid(0, stray)
    assert flock.rotations[0] == pytest.approx(7.0 - 2 * math.pi)


def test_resize_moves_the_wrap_extents():
    flock = spawn(100, seed=9)
    flock.resize(50, 40)
    flock.update_all(0.05)
    assert ((flock.origins[:, 0] >= 0) & (flock.origins[:, 0] < 50)).all()
    assert ((flock.origins[:, 1] >= 0) & (flock.origins[:, 1] < 40)).all()

    with pytest.raises(ValueError):
        flock.resize(0, 40)


def test_warmup_leaves_global_rng_alone():
    np.random.seed(123)
    expected = np.random.random()

    np.random.seed(123)
    SteeringPolicy().warmup()
    assert np.random.random() == expected
