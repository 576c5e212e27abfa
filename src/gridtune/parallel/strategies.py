"""Sequential and parallel iteration strategies returned by the dispatch gate."""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, Iterable, List, Protocol, Sequence, TypeVar, runtime_checkable

from joblib import Parallel, delayed

from .backend import ParallelConfig, registered_backend

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@runtime_checkable
class IterationStrategy(Protocol):
    """Apply a body to every item of a collection and return results in input order."""

    name: str
    parallel: bool

    def __call__(self, fn: Callable[[T], R], items: Iterable[T]) -> List[R]:
        """Evaluate ``fn`` for each item."""
        ...


class SequentialStrategy:
    """Evaluate the body in the current process, one item at a time."""

    name = "sequential"
    parallel = False

    def __call__(self, fn: Callable[[T], R], items: Iterable[T]) -> List[R]:
        """Evaluate ``fn`` for each item in order."""
        return [fn(item) for item in items]

    def __repr__(self) -> str:
        return "SequentialStrategy()"


class ParallelStrategy:
    """Fan the body out over the registered worker backend.

    The backend is looked up on every call so that a strategy handed out
    before a registration change follows the new registration.
    """

    name = "parallel"
    parallel = True

    def __init__(self, config: ParallelConfig | None = None) -> None:
        self._config = config

    @property
    def config(self) -> ParallelConfig:
        """The pinned configuration, or the currently registered one."""
        return self._config if self._config is not None else registered_backend()

    def __call__(self, fn: Callable[[T], R], items: Iterable[T]) -> List[R]:
        """Evaluate ``fn`` for each item across the configured workers."""
        items_list = list(items)
        if not items_list:
            return []
        config = self.config
        if not config.is_parallel:
            logger.debug("Single worker registered; evaluating %d item(s) sequentially", len(items_list))
            return [fn(item) for item in items_list]
        chunksize = config.chunksize or _default_chunksize(len(items_list), config.workers)
        logger.debug(
            "Dispatching %d item(s) to %d %s worker(s), chunksize=%d",
            len(items_list),
            config.workers,
            config.strategy,
            chunksize,
        )
        if config.strategy == "threads":
            return self._thread_strategy(fn, items_list, config, chunksize)
        if config.strategy == "processes":
            return self._process_strategy(fn, items_list, config, chunksize)
        return self._joblib_strategy(fn, items_list, config, chunksize)

    # ------------------------------------------------------------------
    # Individual strategies
    # ------------------------------------------------------------------
    @staticmethod
    def _thread_strategy(
        fn: Callable[[T], R], items: Sequence[T], config: ParallelConfig, chunksize: int
    ) -> List[R]:
        """Execute work items using a thread pool."""
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            return list(pool.map(fn, items, chunksize=chunksize))

    @staticmethod
    def _process_strategy(
        fn: Callable[[T], R], items: Sequence[T], config: ParallelConfig, chunksize: int
    ) -> List[R]:
        """Execute work items using a process pool."""
        with ProcessPoolExecutor(max_workers=config.workers) as pool:
            return list(pool.map(fn, items, chunksize=chunksize))

    @staticmethod
    def _joblib_strategy(
        fn: Callable[[T], R], items: Sequence[T], config: ParallelConfig, chunksize: int
    ) -> List[R]:
        """Dispatch work through joblib's Parallel abstraction."""
        parallel = Parallel(
            n_jobs=config.workers, backend=config.joblib_backend, batch_size=chunksize
        )
        return list(parallel(delayed(fn)(item) for item in items))

    def __repr__(self) -> str:
        return f"ParallelStrategy(config={self._config!r})"


def _default_chunksize(n_items: int, workers: int) -> int:
    """Spread items over roughly four batches per worker."""
    chunksize, extra = divmod(n_items, workers * 4)
    if extra:
        chunksize += 1
    return max(1, chunksize)


SEQUENTIAL = SequentialStrategy()
PARALLEL = ParallelStrategy()

__all__ = [
    "IterationStrategy",
    "SequentialStrategy",
    "ParallelStrategy",
    "SEQUENTIAL",
    "PARALLEL",
]
