"""Fixed-size worker pool for row-band data parallelism."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


class WorkerPool:
    """Run a callable over disjoint row bands, one band per worker.

    The pool size is fixed when the pool is created. Band ``i`` always goes to
    worker index ``i``, so per-worker scratch buffers can be indexed directly.
    """

    def __init__(self, workers: Optional[int] = None) -> None:
        if workers is None:
            workers = os.cpu_count() or 1
        self.size = max(int(workers), 1)
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=self.size, thread_name_prefix="mandelzoom"
        )

    def partition(self, rows: int) -> list[tuple[int, int, int]]:
        bounds = [worker * rows // self.size for worker in range(self.size + 1)]
        return [(worker, bounds[worker], bounds[worker + 1]) for worker in range(self.size)]

    def run(self, fn: Callable[[int, int, int], T], rows: int) -> list[T]:
        """Call ``fn(worker, start, stop)`` for every band and wait for all of them."""

        if self._executor is None:
            raise RuntimeError("WorkerPool is closed")
        futures = [self._executor.submit(fn, *band) for band in self.partition(rows)]
        wait(futures)
        return [future.result() for future in futures]

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
