import numpy as np

from boids import Flock, WorkerPool
from boids.metrics import PerformanceSampler
from boids.simulation import HeadlessRenderer, Simulation
from tools import metrics as metrics_cli
from tools import speedup as speedup_cli


class StepClock:
    def __init__(self, step=1.0 / 60.0):
        self.now = 0.0
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


def spawn(n=32):
    return Flock.spawn(n, 320, 240, rng=np.random.default_rng(5))


def test_renderer_stops_the_loop():
    renderer = HeadlessRenderer(max_frames=5)
    with WorkerPool(2) as pool:
        simulation = Simulation(spawn(), pool, renderer, clock=StepClock())
        assert simulation.run() is None
    assert renderer.frames_drawn == 5
    assert simulation.frame == 5


def test_renderer_receives_projected_triangles():
    flock = spawn()
    renderer = HeadlessRenderer(max_frames=1)
    with WorkerPool(2) as pool:
        Simulation(flock, pool, renderer, clock=StepClock()).run()
    np.testing.assert_allclose(renderer.last_triangles,
                               flock.shapes + flock.origins[:, None, :])
    assert renderer.last_labels == ["Boids: 32", "Threads: 2"]


def test_stop_after_benchmark(tmp_path):
    results = tmp_path / "speedup_data.txt"
    renderer = HeadlessRenderer()
    with WorkerPool(2) as pool:
        sampler = PerformanceSampler(num_boids=32, threads=pool.num_threads,
                                     benchmark_frames=4, results_path=str(results))
        simulation = Simulation(spawn(), pool, renderer, sampler=sampler,
                                clock=StepClock())
        summary = simulation.run(stop_after_benchmark=True)

        assert summary is not None
        assert summary.frames == 4
        assert renderer.frames_drawn == 4

        # Resuming keeps animating without a second results line
        assert simulation.run(max_frames=7) is None
        assert renderer.frames_drawn == 7

    assert len(results.read_text().splitlines()) == 1
    assert renderer.last_labels[-1] == "Threads: 2"


def test_headless_benchmark_and_speedup_report(tmp_path, capsys):
    results = tmp_path / "speedup_data.txt"
    code = metrics_cli.main(["320", "240", "64", "--threads", "2", "--frames", "5",
                             "--headless", "--seed", "3", "--results", str(results)])
    assert code == 0

    lines = results.read_text().splitlines()
    assert len(lines) == 1
    assert lines[0].split()[0] == "2"

    assert speedup_cli.main([str(results)]) == 0
    out = capsys.readouterr().out
    assert "[Bench] Worker pool enabled (threads: 2)" in out
    assert "No 1-thread baseline" in out


def test_sweep_writes_one_line_per_thread_count(tmp_path):
    results = tmp_path / "speedup_data.txt"
    metrics_cli.run_sweep(320, 240, 64, max_threads=3, frames=3,
                          results_path=str(results), seed=1)
    threads = [line.split()[0] for line in results.read_text().splitlines()]
    assert threads == ["1", "2", "3"]


def test_speedup_report_without_samples(tmp_path):
    assert speedup_cli.main([str(tmp_path / "missing.txt")]) == 1
