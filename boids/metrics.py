"""Phase-separated performance sampling.

Each frame is split into three timed phases:

    update   - the flock update pass (parallel)
    compute  - the triangle projection pass (parallel)
    render   - drawing, always serial because it owns the graphics context

The sampler keeps running totals since the benchmark started, refreshes the
displayed averages once per second, and at the benchmark horizon produces a
``BenchmarkSummary`` and appends one ``SpeedupSample`` line to the results
file.  Results are written from the coordinating thread only, outside any
timed phase.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from config import boids as config

PHASES = ("update", "compute", "render")


@dataclass(frozen=True)
class SpeedupSample:
    """One benchmark result line: thread count and per-phase average ms."""
    threads: int
    update_ms: float
    compute_ms: float
    render_ms: float

    def to_line(self) -> str:
        return (f"{self.threads} {self.update_ms:.6f} "
                f"{self.compute_ms:.6f} {self.render_ms:.6f}")

    @classmethod
    def from_line(cls, line: str) -> "SpeedupSample":
        parts = line.split()
        if len(parts) != 4:
            raise ValueError(f"expected 4 fields, got {len(parts)}: {line!r}")
        return cls(int(parts[0]), float(parts[1]), float(parts[2]), float(parts[3]))


def append_speedup_sample(path, sample: SpeedupSample):
    """Append one sample to the results file, creating it if needed."""
    with open(path, "a") as f:
        f.write(sample.to_line() + "\n")


def load_speedup_samples(path) -> List[SpeedupSample]:
    """Read every well-formed sample from a results file, skipping bad lines."""
    path = Path(path)
    if not path.exists():
        return []

    samples = []
    with open(path, "r") as f:
        for line in f:
            if not line.strip():
                continue
            try:
                samples.append(SpeedupSample.from_line(line))
            except ValueError:
                continue
    return samples


@dataclass
class SpeedupRow:
    """Averaged samples for one thread count, relative to the 1-thread row."""
    threads: int
    runs: int
    update_ms: float
    compute_ms: float
    render_ms: float
    update_speedup: Optional[float] = None
    compute_speedup: Optional[float] = None

    @property
    def efficiency(self) -> Optional[float]:
        """Update-phase parallel efficiency (speedup / threads)."""
        if self.update_speedup is None:
            return None
        return self.update_speedup / self.threads


def speedup_table(samples: List[SpeedupSample]) -> List[SpeedupRow]:
    """Group samples by thread count and compute speedup against 1 thread."""
    grouped: Dict[int, List[SpeedupSample]] = {}
    for sample in samples:
        grouped.setdefault(sample.threads, []).append(sample)

    rows = []
    for threads in sorted(grouped):
        group = grouped[threads]
        n = len(group)
        rows.append(SpeedupRow(
            threads=threads,
            runs=n,
            update_ms=sum(s.update_ms for s in group) / n,
            compute_ms=sum(s.compute_ms for s in group) / n,
            render_ms=sum(s.render_ms for s in group) / n,
        ))

    base = next((row for row in rows if row.threads == 1), None)
    if base is not None:
        for row in rows:
            if row.update_ms > 0:
                row.update_speedup = base.update_ms / row.update_ms
            if row.compute_ms > 0:
                row.compute_speedup = base.compute_ms / row.compute_ms
    return rows


@dataclass
class PhaseAverages:
    """Averages shown on the HUD, refreshed once per report interval."""
    fps: float = 0.0
    update_ms: float = 0.0
    compute_ms: float = 0.0
    render_ms: float = 0.0


@dataclass
class BenchmarkSummary:
    """Final report for a run that reached the benchmark frame horizon."""
    threads: int
    boids: int
    frames: int
    total_s: float
    update_ms: float
    compute_ms: float
    render_ms: float

    @property
    def fps(self) -> float:
        return self.frames / self.total_s if self.total_s > 0 else 0.0

    @property
    def frame_ms(self) -> float:
        return (self.total_s / self.frames) * 1000.0 if self.frames else 0.0

    @property
    def phase_percent(self) -> Dict[str, float]:
        """Share of total wall time spent in each phase."""
        total_ms = self.total_s * 1000.0
        if total_ms <= 0:
            return {name: 0.0 for name in PHASES}
        return {
            "update": self.update_ms * self.frames / total_ms * 100.0,
            "compute": self.compute_ms * self.frames / total_ms * 100.0,
            "render": self.render_ms * self.frames / total_ms * 100.0,
        }

    @property
    def update_throughput(self) -> float:
        """Boid updates per second during the update phase."""
        if self.update_ms <= 0:
            return 0.0
        return self.boids / (self.update_ms / 1000.0)

    def sample(self) -> SpeedupSample:
        return SpeedupSample(self.threads, self.update_ms, self.compute_ms, self.render_ms)

    def lines(self) -> List[str]:
        pct = self.phase_percent
        return [
            f"Threads: {self.threads}",
            f"Boids: {self.boids}",
            f"Time: {self.total_s:.2f} s",
            f"FPS: {self.fps:.2f}",
            f"Avg frame: {self.frame_ms:.3f} ms",
            f"Update: {self.update_ms:.3f} ms ({pct['update']:.1f}%)",
            f"Compute: {self.compute_ms:.3f} ms ({pct['compute']:.1f}%)",
            f"Render: {self.render_ms:.3f} ms ({pct['render']:.1f}%)",
            f"Update throughput: {self.update_throughput:,.0f} boids/s",
        ]


@dataclass
class PerformanceSampler:
    """
    Collects per-phase timings for the frame loop.

    Attributes:
        num_boids (int): Flock size, reported in the HUD and summary.
        threads (int): Active worker count, the key of the speedup sample.
        benchmark_frames (int): Frame count at which the summary is produced.
        results_path (Optional[str]): Results file for the speedup sample.
            ``None`` disables writing.
        report_interval (float): Seconds between HUD average refreshes.
        clock (Callable): Monotonic clock in seconds.
    """

    num_boids: int
    threads: int
    benchmark_frames: int = config.METRICS["benchmark_frames"]
    results_path: Optional[str] = config.METRICS["results_file"]
    report_interval: float = config.METRICS["report_interval"]
    clock: Callable[[], float] = time.perf_counter
    frame_count: int = field(default=0, init=False)
    averages: PhaseAverages = field(default_factory=PhaseAverages, init=False)
    summary: Optional[BenchmarkSummary] = field(default=None, init=False)
    _totals: Dict[str, float] = field(default_factory=dict, init=False, repr=False)
    _last: Dict[str, float] = field(default_factory=dict, init=False, repr=False)
    _start: Optional[float] = field(default=None, init=False, repr=False)
    _last_refresh: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self):
        self._totals = {name: 0.0 for name in PHASES}
        self._last = {name: 0.0 for name in PHASES}

    @property
    def started(self) -> bool:
        return self._start is not None

    def start(self):
        """Reset totals and start the benchmark clock."""
        now = self.clock()
        self._start = now
        self._last_refresh = now
        self.frame_count = 0
        self.averages = PhaseAverages()
        self.summary = None
        for name in PHASES:
            self._totals[name] = 0.0
            self._last[name] = 0.0

    @contextmanager
    def phase(self, name: str):
        """Time the enclosed block as one phase of the current frame."""
        if name not in self._totals:
            raise ValueError(f"unknown phase {name!r}, expected one of {PHASES}")
        if not self.started:
            self.start()
        t0 = self.clock()
        try:
            yield
        finally:
            elapsed = self.clock() - t0
            self._totals[name] += elapsed
            self._last[name] = elapsed

    def last_ms(self, name: str) -> float:
        """Duration of the most recent ``name`` phase in milliseconds."""
        return self._last[name] * 1000.0

    def total_s(self, name: str) -> float:
        return self._totals[name]

    def end_frame(self) -> Optional[BenchmarkSummary]:
        """
        Close the current frame.

        Returns the benchmark summary on the frame that reaches the horizon,
        otherwise None.
        """
        if not self.started:
            self.start()
        self.frame_count += 1
        now = self.clock()

        if now - self._last_refresh >= self.report_interval:
            self._refresh(now)
            self._last_refresh = now

        if self.frame_count == self.benchmark_frames:
            self.summary = self._summarize(now)
            if self.results_path:
                append_speedup_sample(self.results_path, self.summary.sample())
            return self.summary
        return None

    def _average_ms(self, name: str) -> float:
        if self.frame_count == 0:
            return 0.0
        return (self._totals[name] / self.frame_count) * 1000.0

    def _refresh(self, now: float):
        elapsed = now - self._start
        self.averages = PhaseAverages(
            fps=self.frame_count / elapsed if elapsed > 0 else 0.0,
            update_ms=self._average_ms("update"),
            compute_ms=self._average_ms("compute"),
            render_ms=self._average_ms("render"),
        )

    def _summarize(self, now: float) -> BenchmarkSummary:
        return BenchmarkSummary(
            threads=self.threads,
            boids=self.num_boids,
            frames=self.frame_count,
            total_s=now - self._start,
            update_ms=self._average_ms("update"),
            compute_ms=self._average_ms("compute"),
            render_ms=self._average_ms("render"),
        )

    def labels(self) -> List[str]:
        """HUD lines for the renderer."""
        avg = self.averages
        return [
            f"FPS: {avg.fps:.1f}",
            f"Update: {avg.update_ms:.3f} ms",
            f"Compute: {avg.compute_ms:.3f} ms",
            f"Render: {avg.render_ms:.3f} ms",
            f"Boids: {self.num_boids}",
            f"Threads: {self.threads}",
        ]
