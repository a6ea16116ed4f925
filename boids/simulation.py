"""Frame loop: update, compute, render, once per frame, strictly in that order."""

import time
from typing import Callable, List, Optional

import numpy as np

from .flock import Flock
from .metrics import BenchmarkSummary, PerformanceSampler
from .parallel import WorkerPool


class HeadlessRenderer:
    """
    Renderer that draws nothing.

    Keeps the last frame it was handed so callers can inspect it, and asks the
    loop to stop after ``max_frames`` frames (never, if None).
    """

    def __init__(self, max_frames: Optional[int] = None):
        self.max_frames = max_frames
        self.frames_drawn = 0
        self.last_triangles = None
        self.last_labels: List[str] = []

    def draw(self, triangles: np.ndarray, labels: List[str]):
        self.last_triangles = triangles
        self.last_labels = list(labels)
        self.frames_drawn += 1

    def should_close(self) -> bool:
        return self.max_frames is not None and self.frames_drawn >= self.max_frames


class Simulation:
    """
    Drives a flock through the three frame phases.

    The renderer must provide ``draw(triangles, labels)`` and
    ``should_close() -> bool``; it is always called from this thread.
    """

    def __init__(self, flock: Flock, pool: WorkerPool, renderer,
                 sampler: PerformanceSampler = None,
                 clock: Callable[[], float] = time.perf_counter):
        self.flock = flock
        self.pool = pool
        self.renderer = renderer
        self.sampler = sampler
        self.clock = clock
        self.frame = 0

    def _labels(self) -> List[str]:
        if self.sampler is not None:
            return self.sampler.labels()
        return [f"Boids: {len(self.flock)}", f"Threads: {self.pool.num_threads}"]

    def step(self) -> Optional[BenchmarkSummary]:
        """Run one frame. Returns the benchmark summary on the horizon frame."""
        sampler = self.sampler

        if sampler is None:
            self.flock.update_all(self.clock(), self.pool)
            triangles = self.flock.project(self.pool)
            self.renderer.draw(triangles, self._labels())
            self.frame += 1
            return None

        with sampler.phase("update"):
            self.flock.update_all(self.clock(), self.pool)

        with sampler.phase("compute"):
            triangles = self.flock.project(self.pool)

        with sampler.phase("render"):
            self.renderer.draw(triangles, self._labels())

        self.frame += 1
        return sampler.end_frame()

    def run(self, max_frames: Optional[int] = None,
            stop_after_benchmark: bool = False) -> Optional[BenchmarkSummary]:
        """
        Loop until the renderer asks to close, ``max_frames`` is reached, or
        (with ``stop_after_benchmark``) the benchmark horizon is reached.

        Termination is only checked between frames.  Calling ``run`` again
        continues the same benchmark; the horizon is reported only once.
        """
        summary = None
        if self.sampler is not None and not self.sampler.started:
            self.sampler.start()

        while not self.renderer.should_close():
            if max_frames is not None and self.frame >= max_frames:
                break
            result = self.step()
            if result is not None:
                summary = result
                if stop_after_benchmark:
                    break
        return summary
