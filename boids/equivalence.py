"""
Serial-versus-parallel equivalence checking.

Two flocks are built from the same seeded initial conditions.  Every frame the
baseline is advanced with the worker pool capped at one thread and the
candidate with the pool at full width, then every field of every boid is
compared within an absolute tolerance.  Mismatches are tallied, never raised:
the experiment always runs all of its frames and only the final verdict
decides the exit status.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from config import boids as config
from .flock import Flock, spawn_conditions
from .parallel import WorkerPool
from .policy import FlockingPolicy

FIELDS = (
    "origin", "rotation", "velocity", "angular_velocity",
    "vertex0", "vertex1", "vertex2",
    "triangle0", "triangle1", "triangle2",
)


def _field_arrays(flock: Flock) -> dict:
    """Per-boid views of every compared field, first axis = boid index."""
    return {
        "origin": flock.origins,
        "rotation": flock.rotations,
        "velocity": flock.velocities,
        "angular_velocity": flock.angular_velocities,
        "vertex0": flock.shapes[:, 0],
        "vertex1": flock.shapes[:, 1],
        "vertex2": flock.shapes[:, 2],
        "triangle0": flock.triangles[:, 0],
        "triangle1": flock.triangles[:, 1],
        "triangle2": flock.triangles[:, 2],
    }


def compare_flocks(baseline: Flock, candidate: Flock, tolerance: float) -> dict:
    """
    Compare two flocks field by field.

    Returns:
        Mapping of field name to a boolean array of shape (n,) that is True
        where every component differs by less than ``tolerance``
    """
    if len(baseline) != len(candidate):
        raise ValueError(f"flock sizes differ: {len(baseline)} vs {len(candidate)}")

    a_fields = _field_arrays(baseline)
    b_fields = _field_arrays(candidate)
    matches = {}
    for name in FIELDS:
        close = np.abs(a_fields[name] - b_fields[name]) < tolerance
        if close.ndim > 1:
            close = close.all(axis=1)
        matches[name] = close
    return matches


@dataclass
class FieldMismatch:
    """One field of one boid that disagreed on one frame."""
    frame: int
    index: int
    field: str
    baseline: tuple
    candidate: tuple

    def describe(self) -> str:
        diff = tuple(abs(a - b) for a, b in zip(self.baseline, self.candidate))

        def fmt(values):
            return "(" + ", ".join(f"{v:.6f}" for v in values) + ")"

        return (f"{self.field}: {fmt(self.baseline)} vs {fmt(self.candidate)}, "
                f"diff: {fmt(diff)}")


@dataclass
class EquivalenceReport:
    """Aggregate result of one equivalence experiment."""
    num_boids: int
    frames: int
    tolerance: float
    threads: int = 1
    total: int = 0
    passed: int = 0
    mismatched_frames: List[int] = field(default_factory=list)
    mismatches: List[FieldMismatch] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def success(self) -> bool:
        return self.failed == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def first_failure_frame(self) -> Optional[int]:
        return self.mismatched_frames[0] if self.mismatched_frames else None

    @property
    def initialization_defect(self) -> bool:
        return self.first_failure_frame == 0

    @property
    def race_suspected(self) -> bool:
        first = self.first_failure_frame
        return first is not None and first > 0

    def diagnosis(self) -> Optional[str]:
        if self.success:
            return None
        if self.initialization_defect:
            return "Errors from frame 0 suggest initialization problem"
        return f"Errors starting frame {self.first_failure_frame} suggest race condition"

    def lines(self) -> List[str]:
        total = max(self.total, 1)
        out = [
            "RESULTS",
            f"Total frames: {self.frames}",
            f"Boids per frame: {self.num_boids}",
            f"Threads: {self.threads}",
            f"Tolerance: {self.tolerance:g}",
            f"Total tests: {self.total}",
            f"Passed: {self.passed} ({self.passed * 100.0 / total:.2f}%)",
            f"Failed: {self.failed} ({self.failed * 100.0 / total:.2f}%)",
            f"Frames with error: {len(self.mismatched_frames)}",
        ]
        if self.first_failure_frame is not None:
            out.append(f"First failure: Frame {self.first_failure_frame}")
        out.append("")
        if self.success:
            out.append("SUCCESS: Parallel implementation matches serial")
        else:
            out.append("FAILURE: Differences detected")
            out.append(f"Note: {self.diagnosis()}")
        return out


class EquivalenceChecker:
    """
    Runs a serial baseline flock and a parallel candidate flock side by side.

    Time source:
        fixed step (default): both flocks see ``now = (frame + 1) * dt``, so a
            correct parallel pass matches the baseline bit for bit
        realtime: each flock reads ``time.perf_counter()`` as it updates, so
            the two see slightly different elapsed times and a loose tolerance
            (the 1e-1 default) is needed
    """

    def __init__(
        self,
        pool: WorkerPool,
        num_boids: int = None,
        frames: int = None,
        tolerance: float = None,
        seed: int = None,
        width: float = None,
        height: float = None,
        dt: float = None,
        realtime: bool = False,
        frame_delay: float = None,
        policy: FlockingPolicy = None,
        max_errors_shown: int = None,
        log: Optional[Callable[[str], None]] = print
    ):
        settings = config.EQUIVALENCE
        self.pool = pool
        self.num_boids = settings["count"] if num_boids is None else num_boids
        self.frames = settings["frames"] if frames is None else frames
        self.tolerance = settings["tolerance"] if tolerance is None else tolerance
        self.seed = settings["seed"] if seed is None else seed
        self.width = config.WINDOW["width"] if width is None else width
        self.height = config.WINDOW["height"] if height is None else height
        self.dt = settings["dt"] if dt is None else dt
        self.realtime = realtime
        self.frame_delay = settings["frame_delay"] if frame_delay is None else frame_delay
        self.policy = policy
        self.max_errors_shown = (
            settings["max_errors_shown"] if max_errors_shown is None else max_errors_shown
        )
        self.log = log
        self._start_time = 0.0

    def _log(self, message: str):
        if self.log is not None:
            self.log(message)

    def seed_flocks(self):
        """Build the baseline and candidate flocks from one seeded draw."""
        rng = np.random.default_rng(self.seed)
        origins, rotations = spawn_conditions(rng, self.num_boids, self.width, self.height)

        self._start_time = time.perf_counter() if self.realtime else 0.0
        flocks = []
        for _ in range(2):
            flocks.append(Flock.from_conditions(
                origins, rotations, self.width, self.height,
                created_at=self._start_time, policy=self.policy
            ))
        return flocks[0], flocks[1]

    def step(self, frame: int, baseline: Flock, candidate: Flock):
        """Advance both flocks by one frame and project their triangles."""
        now = self._start_time + (frame + 1) * self.dt

        with self.pool.limit(1):
            baseline.update_all(time.perf_counter() if self.realtime else now, self.pool)
            baseline.project(self.pool)

        candidate.update_all(time.perf_counter() if self.realtime else now, self.pool)
        candidate.project(self.pool)

    def compare(self, frame: int, baseline: Flock, candidate: Flock,
                report: EquivalenceReport) -> bool:
        """Tally one frame's comparisons into ``report``; True if all matched."""
        matches = compare_flocks(baseline, candidate, self.tolerance)
        report.total += len(FIELDS) * len(baseline)
        report.passed += int(sum(int(m.sum()) for m in matches.values()))

        boid_ok = np.ones(len(baseline), dtype=bool)
        for m in matches.values():
            boid_ok &= m
        bad = np.flatnonzero(~boid_ok)
        if bad.size == 0:
            return True

        report.mismatched_frames.append(frame)
        self._log(f"[Check] Frame {frame}: MISMATCH")

        a_fields = _field_arrays(baseline)
        b_fields = _field_arrays(candidate)
        for shown, index in enumerate(bad):
            if shown == self.max_errors_shown:
                self._log("[Check]   ... (more errors not shown)")
                break
            self._log(f"[Check]   Boid {index}:")
            for name in FIELDS:
                if matches[name][index]:
                    continue
                mismatch = FieldMismatch(
                    frame=frame,
                    index=int(index),
                    field=name,
                    baseline=tuple(np.atleast_1d(a_fields[name][index]).tolist()),
                    candidate=tuple(np.atleast_1d(b_fields[name][index]).tolist()),
                )
                report.mismatches.append(mismatch)
                self._log(f"[Check]     {mismatch.describe()}")
        return False

    def run(self) -> EquivalenceReport:
        report = EquivalenceReport(
            num_boids=self.num_boids,
            frames=self.frames,
            tolerance=self.tolerance,
            threads=self.pool.num_threads,
        )

        self._log(f"[Check] Creating serial and parallel flocks with {self.num_boids} boids")
        baseline, candidate = self.seed_flocks()
        baseline.warmup()
        if self.realtime:
            # Compilation must not eat into the first frame's elapsed time
            self._start_time = time.perf_counter()
            baseline.last_updates[:] = self._start_time
            candidate.last_updates[:] = self._start_time

        self._log(f"[Check] Running {self.frames} frames "
                  f"({'realtime' if self.realtime else 'fixed step'}, "
                  f"{self.pool.num_threads} threads)")
        for frame in range(self.frames):
            self.step(frame, baseline, candidate)
            ok = self.compare(frame, baseline, candidate, report)
            if ok and (frame % 10 == 0 or frame == self.frames - 1):
                self._log(f"[Check] Frame {frame}: OK")
            if self.realtime and self.frame_delay > 0:
                time.sleep(self.frame_delay)

        for line in report.lines():
            self._log(f"[Check] {line}" if line else "")
        return report
