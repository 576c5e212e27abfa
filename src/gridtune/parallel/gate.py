"""Decide whether resampling iterations may run in parallel.

Some modelling packages either break or gain nothing when their fits are
shipped to separate workers (``keras`` holds per-process graph state,
``rJava`` cannot share a JVM across forks). The gate downgrades to sequential
dispatch whenever a workflow depends on one of them.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Iterable, Tuple

from ..workflow import DependencyLister, list_packages
from .backend import registered_workers
from .strategies import PARALLEL, SEQUENTIAL, IterationStrategy

logger = logging.getLogger(__name__)

BLACKLIST: Tuple[str, ...] = ("keras", "rJava")


def parallel_available(workers: Any) -> bool:
    """Return whether ``workers`` describes more than one usable worker."""
    if isinstance(workers, bool) or not isinstance(workers, int):
        return False
    return workers > 1


def blacklisted_packages(packages: Iterable[str]) -> Tuple[str, ...]:
    """Return the blacklisted entries of ``packages`` in their original order."""
    return tuple(pkg for pkg in packages if pkg in BLACKLIST)


def select_dispatch(
    allow: bool = True,
    workflow: Any = None,
    *,
    workers: int | None = None,
    lister: DependencyLister | None = None,
) -> IterationStrategy:
    """Pick the iteration strategy for the resampling loop of one tuning call.

    Parameters
    ----------
    allow : bool
        Caller preference; ``False`` always yields sequential dispatch.
    workflow : Workflow or estimator
        Source of the package dependency set.
    workers : int or None
        Number of registered workers. Defaults to
        :func:`~gridtune.parallel.backend.registered_workers`.
    lister : DependencyLister or None
        How packages are derived from ``workflow``; defaults to
        :class:`~gridtune.workflow.EstimatorDependencyLister`.

    Returns
    -------
    IterationStrategy
        :data:`~gridtune.parallel.PARALLEL` when more than one worker is
        registered, ``allow`` is true, the package list can be derived and no
        blacklisted package is required;
        :data:`~gridtune.parallel.SEQUENTIAL` otherwise.

    Warns
    -----
    UserWarning
        When parallelism would otherwise be used but blacklisted packages
        are required.
    """
    if workers is None:
        workers = registered_workers()
    is_par = parallel_available(workers)
    packages = list_packages(workflow, lister)
    if packages is None:
        # unknown dependencies cannot be cleared against the blacklist
        logger.debug("No package list for %r; parallelism unavailable", workflow)
        is_par = False
        packages = ()
    blocked = blacklisted_packages(packages)

    if is_par and allow and blocked:
        names = ", ".join(f"'{pkg}'" for pkg in blocked)
        msg = f"Some required packages prohibit parallel processing:  {names}"
        logger.warning(msg)
        warnings.warn(msg, UserWarning, stacklevel=2)
        allow = False

    handle = PARALLEL if (allow and is_par) else SEQUENTIAL
    logger.debug(
        "Dispatch decision: %s (workers=%s, allow=%s, packages=%s)",
        handle.name,
        workers,
        allow,
        list(packages),
    )
    return handle


__all__ = ["BLACKLIST", "parallel_available", "blacklisted_packages", "select_dispatch"]
