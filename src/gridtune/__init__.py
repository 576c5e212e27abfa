"""
gridtune.

Helpers for grid-search tuning workflows: a gate deciding whether resampling
iterations may run in parallel, backend registration for the workers, and a
thin grid-tuning loop built on scikit-learn.
"""

import importlib
import logging as _logging

# Provide a default no-op handler to avoid "No handler" warnings for library users.
_logging.getLogger(__name__).addHandler(_logging.NullHandler())

__version__ = "0.3.0"

__all__ = [
    "Workflow",
    "select_dispatch",
    "register_parallel_backend",
    "tune_grid",
    "TuneResults",
]

_NAME_TO_MODULE = {
    "Workflow": "gridtune.workflow",
    "select_dispatch": "gridtune.parallel.gate",
    "register_parallel_backend": "gridtune.parallel.backend",
    "tune_grid": "gridtune.tuning",
    "TuneResults": "gridtune.tuning",
}


def __getattr__(name):
    """Resolve the public API lazily so importing the package stays cheap."""
    if name in _NAME_TO_MODULE:
        value = getattr(importlib.import_module(_NAME_TO_MODULE[name]), name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
