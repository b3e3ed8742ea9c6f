from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from venuewatch.logging.logger import Log

T = TypeVar("T")
R = TypeVar("R")


class WorkerPool:
    """Bounded thread pool that maps a function over items, preserving order."""

    def __init__(self, max_workers: int, progress_every: int = 25) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._max_workers = max_workers
        self._progress_every = progress_every

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def map(self, func: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """Run func on every item; an exception raised by func propagates."""
        work = list(items)
        if not work:
            return []
        results: list[R] = []
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(work))) as executor:
            for done, result in enumerate(executor.map(func, work), start=1):
                results.append(result)
                if done % self._progress_every == 0 or done == len(work):
                    Log.info(f"Progress: {done}/{len(work)} processed")
        return results
