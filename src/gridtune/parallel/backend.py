"""Process-wide registration of the parallel worker backend.

Callers register how many workers resampling may use before tuning, much
like registering a cluster with a ``foreach`` backend. The gate and the
parallel iteration strategy read the registration at call time.
"""

from __future__ import annotations

import contextlib
import logging
import os
import threading
from dataclasses import dataclass, replace
from typing import Any, Iterator, Literal, Mapping

from ..config_helpers import coerce_bool, read_pyproject_section, split_csv
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_VAR = "GRIDTUNE_PARALLEL"

StrategyLiteral = Literal["joblib", "threads", "processes"]
_STRATEGIES = ("joblib", "threads", "processes")
_TOGGLES = frozenset({"0", "1", "off", "on", "false", "true", "no", "yes"})


@dataclass(frozen=True)
class ParallelConfig:
    """Worker backend configuration used by :class:`ParallelStrategy`."""

    workers: int = 1
    strategy: StrategyLiteral = "joblib"
    joblib_backend: str = "loky"
    chunksize: int | None = None

    @property
    def is_parallel(self) -> bool:
        """Whether more than one worker is available."""
        return self.workers > 1

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, Any], base: "ParallelConfig | None" = None
    ) -> "ParallelConfig":
        """Build a configuration from a ``[tool.gridtune.parallel]`` style mapping."""
        cfg = base if base is not None else cls()
        if "workers" in values:
            cfg = replace(cfg, workers=_coerce_workers(values["workers"]))
        if "strategy" in values:
            cfg = replace(cfg, strategy=_coerce_strategy(values["strategy"]))
        if "joblib_backend" in values:
            cfg = replace(cfg, joblib_backend=str(values["joblib_backend"]))
        if "chunksize" in values:
            cfg = replace(cfg, chunksize=_coerce_positive("chunksize", values["chunksize"]))
        if "enabled" in values and not coerce_bool(values["enabled"]):
            cfg = replace(cfg, workers=1)
        return cfg

    @classmethod
    def from_pyproject(cls, base: "ParallelConfig | None" = None) -> "ParallelConfig":
        """Merge ``[tool.gridtune.parallel]`` from ``pyproject.toml`` into ``base``."""
        section = read_pyproject_section(("tool", "gridtune", "parallel"))
        return cls.from_mapping(section, base)

    @classmethod
    def from_env(cls, base: "ParallelConfig | None" = None) -> "ParallelConfig":
        """Merge ``GRIDTUNE_PARALLEL`` overrides with an optional ``base`` configuration.

        Tokens are comma separated: ``workers=N`` or ``all`` set the worker
        count, ``joblib``/``threads``/``processes`` pick the strategy,
        ``backend=<name>`` selects the joblib backend, ``chunksize=N`` fixes the
        batch size. A bare on/off toggle (``on``, ``1``, ``off``, ``0``, ...) either
        enables every CPU when only one worker is configured or falls back to a
        single worker.
        """
        cfg = base if base is not None else cls()
        for token in split_csv(os.getenv(ENV_VAR)):
            lowered = token.lower()
            if lowered in _TOGGLES:
                if not coerce_bool(lowered):
                    cfg = replace(cfg, workers=1)
                elif not cfg.is_parallel:
                    cfg = replace(cfg, workers=os.cpu_count() or 1)
                continue
            if lowered == "all":
                cfg = replace(cfg, workers=os.cpu_count() or 1)
                continue
            if lowered in _STRATEGIES:
                cfg = replace(cfg, strategy=lowered)  # type: ignore[arg-type]
                continue
            key, sep, value = token.partition("=")
            if not sep:
                logger.debug("Ignoring unknown %s token %r", ENV_VAR, token)
                continue
            key = key.strip().lower()
            if key == "workers":
                cfg = replace(cfg, workers=_coerce_workers(value.strip()))
            elif key == "backend":
                cfg = replace(cfg, joblib_backend=value.strip())
            elif key == "chunksize":
                cfg = replace(cfg, chunksize=_coerce_positive("chunksize", value.strip()))
            else:
                logger.debug("Ignoring unknown %s token %r", ENV_VAR, token)
        return cfg


def _coerce_positive(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"{name} must be an integer, got {value!r}", details={name: value}
        ) from None
    if number < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {number}", details={name: number})
    return number


def _coerce_workers(value: Any) -> int:
    if isinstance(value, str) and value.strip().lower() == "all":
        return os.cpu_count() or 1
    return _coerce_positive("workers", value)


def _coerce_strategy(value: Any) -> StrategyLiteral:
    lowered = str(value).strip().lower()
    if lowered not in _STRATEGIES:
        raise ConfigurationError(
            f"Unknown parallel strategy {value!r}; expected one of {', '.join(_STRATEGIES)}",
            details={"strategy": value},
        )
    return lowered  # type: ignore[return-value]


_lock = threading.Lock()
_registered: ParallelConfig | None = None


def register_parallel_backend(
    workers: int | None = None,
    *,
    strategy: StrategyLiteral = "joblib",
    joblib_backend: str = "loky",
    chunksize: int | None = None,
) -> ParallelConfig:
    """Register a worker backend for subsequent parallel dispatch.

    Parameters
    ----------
    workers : int or None
        Number of workers. ``None`` uses every available CPU.
    strategy : {"joblib", "threads", "processes"}
        How :data:`gridtune.parallel.PARALLEL` fans out work.
    joblib_backend : str
        Backend name handed to :class:`joblib.Parallel` for the joblib strategy.
    chunksize : int or None
        Fixed batch size; computed from the workload when omitted.

    Returns
    -------
    ParallelConfig
        The registered configuration.
    """
    global _registered
    cfg = ParallelConfig(
        workers=_coerce_workers(workers if workers is not None else (os.cpu_count() or 1)),
        strategy=_coerce_strategy(strategy),
        joblib_backend=joblib_backend,
        chunksize=_coerce_positive("chunksize", chunksize) if chunksize is not None else None,
    )
    with _lock:
        _registered = cfg
    logger.info(
        "Registered parallel backend: %d worker(s), strategy=%s", cfg.workers, cfg.strategy
    )
    return cfg


def register_sequential_backend() -> ParallelConfig:
    """Register a single-worker backend so all dispatch runs sequentially."""
    return register_parallel_backend(1)


def clear_registration() -> None:
    """Forget any explicit registration and fall back to pyproject/env configuration."""
    global _registered
    with _lock:
        _registered = None


def registered_backend() -> ParallelConfig:
    """Return the active backend configuration.

    An explicit registration wins; otherwise ``[tool.gridtune.parallel]`` is
    merged with ``GRIDTUNE_PARALLEL`` overrides on top of the defaults.
    """
    with _lock:
        cfg = _registered
    if cfg is not None:
        return cfg
    return ParallelConfig.from_env(ParallelConfig.from_pyproject())


def registered_workers() -> int:
    """Return the number of workers currently registered (1 when none)."""
    return registered_backend().workers


@contextlib.contextmanager
def parallel_backend(
    workers: int | None = None,
    *,
    strategy: StrategyLiteral = "joblib",
    joblib_backend: str = "loky",
    chunksize: int | None = None,
) -> Iterator[ParallelConfig]:
    """Temporarily register a backend, restoring the previous registration on exit."""
    global _registered
    with _lock:
        previous = _registered
    try:
        yield register_parallel_backend(
            workers, strategy=strategy, joblib_backend=joblib_backend, chunksize=chunksize
        )
    finally:
        with _lock:
            _registered = previous


__all__ = [
    "ENV_VAR",
    "ParallelConfig",
    "register_parallel_backend",
    "register_sequential_backend",
    "clear_registration",
    "registered_backend",
    "registered_workers",
    "parallel_backend",
]
