"""Parallel dispatch entry points.

The stable surface is the dispatch gate, the two iteration strategies and the
backend registration helpers; everything resolves lazily on first access.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - import-time only
    from .backend import (
        ParallelConfig,
        parallel_backend,
        register_parallel_backend,
        register_sequential_backend,
        registered_backend,
        registered_workers,
    )
    from .gate import BLACKLIST, select_dispatch
    from .strategies import (
        PARALLEL,
        SEQUENTIAL,
        IterationStrategy,
        ParallelStrategy,
        SequentialStrategy,
    )


__all__ = (
    "BLACKLIST",
    "select_dispatch",
    "IterationStrategy",
    "ParallelStrategy",
    "SequentialStrategy",
    "PARALLEL",
    "SEQUENTIAL",
    "ParallelConfig",
    "parallel_backend",
    "register_parallel_backend",
    "register_sequential_backend",
    "registered_backend",
    "registered_workers",
)

_NAME_TO_MODULE = {
    "BLACKLIST": "gate",
    "select_dispatch": "gate",
    "IterationStrategy": "strategies",
    "ParallelStrategy": "strategies",
    "SequentialStrategy": "strategies",
    "PARALLEL": "strategies",
    "SEQUENTIAL": "strategies",
    "ParallelConfig": "backend",
    "parallel_backend": "backend",
    "register_parallel_backend": "backend",
    "register_sequential_backend": "backend",
    "registered_backend": "backend",
    "registered_workers": "backend",
}


def __getattr__(name: str) -> Any:
    """Lazily expose the sanctioned parallel API surface."""
    if name not in __all__:
        raise AttributeError(name)

    module = import_module(f"{__name__}.{_NAME_TO_MODULE[name]}")
    value = getattr(module, name)
    globals()[name] = value
    return value
