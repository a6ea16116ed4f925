"""Fork-join worker pool with static contiguous partitioning.

Every parallel pass in the simulation has the same shape: split ``[0, n)`` into
one contiguous chunk per worker, run the chunks concurrently, and block until
all of them finish.  The kernels handed to the pool are numba ``nogil``
functions, so the threads genuinely run side by side.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Callable, List, Optional, Tuple

from config import boids as config


def partition(count: int, parts: int) -> List[Tuple[int, int]]:
    """
    Split ``[0, count)`` into at most ``parts`` contiguous ``(start, stop)`` chunks.

    Chunk sizes differ by at most one, larger chunks first, matching OpenMP's
    ``schedule(static)``.  Empty chunks are dropped.
    """
    if parts < 1:
        raise ValueError(f"parts must be >= 1, got {parts}")
    if count <= 0:
        return []

    parts = min(parts, count)
    base, extra = divmod(count, parts)
    chunks = []
    start = 0
    for p in range(parts):
        stop = start + base + (1 if p < extra else 0)
        chunks.append((start, stop))
        start = stop
    return chunks


class WorkerPool:
    """Fixed-size thread pool exposing a static-partition ``parallel_for``."""

    def __init__(self, num_threads: Optional[int] = None):
        if num_threads is None:
            num_threads = config.PARALLEL["threads"]
        max_threads = num_threads if num_threads is not None else (os.cpu_count() or 1)
        if max_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {max_threads}")
        self.max_threads = max_threads
        self.num_threads = max_threads
        self._executor = None
        if max_threads > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=max_threads, thread_name_prefix="boids-worker"
            )

    def set_num_threads(self, num_threads: int):
        """Change the active parallelism, clamped to the pool size."""
        if num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {num_threads}")
        self.num_threads = min(num_threads, self.max_threads)

    @contextmanager
    def limit(self, num_threads: int):
        """Temporarily cap the active parallelism, restoring it afterwards."""
        previous = self.num_threads
        self.set_num_threads(num_threads)
        try:
            yield self
        finally:
            self.num_threads = previous

    def parallel_for(self, count: int, body: Callable[[int, int], None],
                     workers: Optional[int] = None):
        """
        Run ``body(start, stop)`` over static chunks of ``[0, count)`` and join.

        A single chunk runs inline on the calling thread.  If any chunk raises,
        the first exception (in chunk order) is re-raised once every chunk has
        finished, so no worker is still writing when the caller regains control.
        """
        active = self.num_threads if workers is None else min(workers, self.max_threads)
        chunks = partition(count, max(1, active))

        if len(chunks) <= 1 or self._executor is None:
            for start, stop in chunks:
                body(start, stop)
            return

        futures = [self._executor.submit(body, start, stop) for start, stop in chunks]
        error = None
        for future in futures:
            exc = future.exception()
            if exc is not None and error is None:
                error = exc
        if error is not None:
            raise error

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
