import threading

import numpy as np
import pytest

from boids import WorkerPool, partition


@pytest.mark.parametrize("count, parts", [(10, 3), (16, 4), (5, 8), (1, 1), (1000, 7)])
def test_partition_covers_range_once(count, parts):
    chunks = partition(count, parts)
    covered = [i for start, stop in chunks for i in range(start, stop)]
    assert covered == list(range(count))

    sizes = [stop - start for start, stop in chunks]
    assert max(sizes) - min(sizes) <= 1
    assert sizes == sorted(sizes, reverse=True)
    assert len(chunks) == min(count, parts)


def test_partition_empty_and_invalid():
    assert partition(0, 4) == []
    with pytest.raises(ValueError):
        partition(10, 0)


def test_parallel_for_touches_each_index_once():
    hits = np.zeros(1003, dtype=np.int64)

    def body(start, stop):
        hits[start:stop] += 1

    with WorkerPool(4) as pool:
        pool.parallel_for(len(hits), body)

    assert (hits == 1).all()


def test_chunks_run_concurrently_on_pool_threads():
    # Every chunk must reach the barrier before any may finish
    barrier = threading.Barrier(4, timeout=10)
    seen_threads = set()
    lock = threading.Lock()

    def body(start, stop):
        barrier.wait()
        with lock:
            seen_threads.add(threading.get_ident())

    with WorkerPool(4) as pool:
        pool.parallel_for(400, body)

    assert len(seen_threads) == 4
    assert threading.get_ident() not in seen_threads


def test_single_worker_runs_inline():
    callers = []

    def body(start, stop):
        callers.append((threading.get_ident(), start, stop))

    with WorkerPool(4) as pool:
        pool.parallel_for(10, body, workers=1)

    assert callers == [(threading.get_ident(), 0, 10)]


def test_parallel_for_waits_then_reraises():
    finished = []

    def body(start, stop):
        if start == 0:
            raise RuntimeError("chunk failed")
        finished.append(start)

    with WorkerPool(4) as pool:
        with pytest.raises(RuntimeError, match="chunk failed"):
            pool.parallel_for(8, body)

    assert sorted(finished) == [2, 4, 6]


def test_limit_restores_previous_width():
    with WorkerPool(4) as pool:
        assert pool.num_threads == 4
        with pool.limit(1):
            assert pool.num_threads == 1
        assert pool.num_threads == 4

        pool.set_num_threads(64)
        assert pool.num_threads == 4


def test_invalid_thread_count():
    with pytest.raises(ValueError):
        WorkerPool(0)
