import pytest

from boids.metrics import (
    BenchmarkSummary, PerformanceSampler, SpeedupSample, append_speedup_sample,
    load_speedup_samples, speedup_table
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def run_frame(sampler, clock, update=0.004, compute=0.001, render=0.005):
    with sampler.phase("update"):
        clock.advance(update)
    with sampler.phase("compute"):
        clock.advance(compute)
    with sampler.phase("render"):
        clock.advance(render)
    return sampler.end_frame()


def test_averages_refresh_once_per_interval():
    clock = FakeClock()
    sampler = PerformanceSampler(num_boids=10, threads=2, benchmark_frames=1000,
                                 results_path=None, clock=clock)
    sampler.start()

    # Half-second frames keep the clock exact in binary
    run_frame(sampler, clock, update=0.25, compute=0.125, render=0.125)
    assert sampler.averages.fps == 0.0

    run_frame(sampler, clock, update=0.25, compute=0.125, render=0.125)
    assert sampler.averages.fps == 2.0
    assert sampler.averages.update_ms == 250.0
    assert sampler.averages.compute_ms == 125.0
    assert sampler.averages.render_ms == 125.0
    assert sampler.labels()[0] == "FPS: 2.0"

    run_frame(sampler, clock, update=0.25, compute=0.125, render=0.125)
    assert sampler.averages.fps == 2.0
    assert sampler.labels()[-1] == "Threads: 2"


def test_horizon_summary_appends_one_line(tmp_path):
    results = tmp_path / "speedup_data.txt"
    clock = FakeClock()
    sampler = PerformanceSampler(num_boids=5000, threads=4, benchmark_frames=10,
                                 results_path=str(results), clock=clock)
    sampler.start()

    summaries = [run_frame(sampler, clock) for _ in range(15)]
    assert summaries[:9] == [None] * 9
    assert summaries[10:] == [None] * 5

    summary = summaries[9]
    assert summary is sampler.summary
    assert summary.frames == 10
    assert summary.total_s == pytest.approx(0.1)
    assert summary.fps == pytest.approx(100.0)
    assert summary.update_ms == pytest.approx(4.0)
    assert summary.phase_percent["render"] == pytest.approx(50.0)

    lines = results.read_text().splitlines()
    assert lines == ["4 4.000000 1.000000 5.000000"]


def test_results_file_is_append_only(tmp_path):
    results = tmp_path / "speedup_data.txt"
    results.write_text("1 10.000000 2.000000 5.000000\n")

    for threads in (2, 4):
        clock = FakeClock()
        sampler = PerformanceSampler(num_boids=100, threads=threads, benchmark_frames=3,
                                     results_path=str(results), clock=clock)
        for _ in range(3):
            run_frame(sampler, clock)

    lines = results.read_text().splitlines()
    assert len(lines) == 3
    assert lines[0] == "1 10.000000 2.000000 5.000000"
    assert [line.split()[0] for line in lines] == ["1", "2", "4"]


def test_unknown_phase():
    sampler = PerformanceSampler(num_boids=1, threads=1, results_path=None)
    with pytest.raises(ValueError):
        with sampler.phase("physics"):
            pass


def test_sample_line_format():
    sample = SpeedupSample(8, 1.5, 0.25, 16.0)
    assert sample.to_line() == "8 1.500000 0.250000 16.000000"
    assert SpeedupSample.from_line("8 1.5 0.25 16\n") == sample
    with pytest.raises(ValueError):
        SpeedupSample.from_line("8 1.5 0.25")


def test_load_skips_malformed_lines(tmp_path):
    path = tmp_path / "results.txt"
    append_speedup_sample(path, SpeedupSample(1, 8.0, 2.0, 4.0))
    with open(path, "a") as f:
        f.write("garbage line\n\n2 x 1 1\n")
    append_speedup_sample(path, SpeedupSample(2, 4.0, 1.0, 4.0))

    samples = load_speedup_samples(path)
    assert [s.threads for s in samples] == [1, 2]
    assert load_speedup_samples(tmp_path / "missing.txt") == []


def test_speedup_table():
    samples = [
        SpeedupSample(1, 8.0, 2.0, 4.0),
        SpeedupSample(1, 12.0, 2.0, 4.0),
        SpeedupSample(4, 2.5, 1.0, 4.0),
    ]
    rows = speedup_table(samples)
    assert [row.threads for row in rows] == [1, 4]
    assert rows[0].runs == 2
    assert rows[0].update_ms == pytest.approx(10.0)
    assert rows[0].update_speedup == pytest.approx(1.0)
    assert rows[1].update_speedup == pytest.approx(4.0)
    assert rows[1].compute_speedup == pytest.approx(2.0)
    assert rows[1].efficiency == pytest.approx(1.0)


def test_speedup_table_without_baseline():
    rows = speedup_table([SpeedupSample(2, 1.0, 1.0, 1.0)])
    assert rows[0].update_speedup is None
    assert rows[0].efficiency is None


def test_summary_lines():
    summary = BenchmarkSummary(threads=2, boids=1000, frames=100, total_s=2.0,
                               update_ms=5.0, compute_ms=1.0, render_ms=10.0)
    lines = summary.lines()
    assert "FPS: 50.00" in lines
    assert "Update: 5.000 ms (25.0%)" in lines
    assert summary.update_throughput == pytest.approx(200000.0)
