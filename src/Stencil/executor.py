"""Fixed-size worker pool used to parallelise every loop over a field."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable

log = logging.getLogger(__name__)

TaskFactory = Callable[[int, int], Callable[[], None]]


def partition(total: int, task_id: int, num_tasks: int) -> tuple[int, int]:
    """Contiguous share of ``total`` items owned by one task.

    The first ``total % num_tasks`` tasks get one item more than the rest.

    Returns
    -------
    tuple[int, int]
        ``(first, count)``: offset of the first item and number of items.
    """
    assert 0 <= task_id < num_tasks
    chunk = total // num_tasks
    remainder = total % num_tasks
    if task_id < remainder:
        chunk += 1
        first = chunk * task_id
    else:
        first = chunk * task_id + remainder
    return first, chunk


class TaskExecutor:
    """Run one closure per worker and join them all.

    Parameters
    ----------
    num_workers : int
        Number of threads in the pool, fixed for the pool's lifetime.

    Example
    -------
    >>> with TaskExecutor(4) as executor:
    ...     executor.execute(lambda task_id, num_tasks: lambda: work(task_id, num_tasks))
    """

    def __init__(self, num_workers: int = 1):
        if num_workers < 1:
            raise ValueError(f"num_workers must be positive, got {num_workers}")
        self.num_workers = num_workers
        self._pool = ThreadPoolExecutor(
            max_workers=num_workers, thread_name_prefix="stencil-worker"
        )

    def execute(self, factory: TaskFactory) -> None:
        """Create ``num_workers`` tasks with ``factory`` and run them.

        Does not return before every task has finished. The first exception
        raised by a task is re-raised here.
        """
        assert self._pool is not None, "executor has been shut down"
        tasks = [factory(t, self.num_workers) for t in range(self.num_workers)]
        futures = [self._pool.submit(task) for task in tasks]
        wait(futures)
        for task_id, future in enumerate(futures):
            error = future.exception()
            if error is not None:
                log.error(f"Worker task {task_id}/{self.num_workers} failed: {error!r}")
                raise error

    def shutdown(self) -> None:
        """Wait for running tasks and release the worker threads."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self) -> "TaskExecutor":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()
