"""Configuration parsing helpers.

Reads ``[tool.gridtune.*]`` sections from the working directory's
``pyproject.toml`` and splits comma-separated environment overrides.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple

logger = logging.getLogger(__name__)


def read_pyproject_section(path: Sequence[str]) -> Dict[str, Any]:
    """Return a mapping from the requested ``pyproject.toml`` section.

    Parameters
    ----------
    path : Sequence[str]
        Nested keys to traverse in the pyproject.toml structure.
        For example, ``("tool", "gridtune", "parallel")`` navigates to
        ``[tool.gridtune.parallel]``.

    Returns
    -------
    Dict[str, Any]
        The requested section, or an empty dict if the file does not exist,
        cannot be parsed, or lacks the section.

    Examples
    --------
    >>> config = read_pyproject_section(("tool", "gridtune", "parallel"))
    >>> if config:
    ...     print(f"Found config: {config}")
    """
    candidate = Path.cwd() / "pyproject.toml"
    if not candidate.exists():
        return {}
    try:
        with candidate.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.debug("Ignoring unreadable %s: %s", candidate, exc)
        return {}

    cursor: Any = data
    for key in path:
        if isinstance(cursor, dict) and key in cursor:
            cursor = cursor[key]
        else:
            return {}
    if isinstance(cursor, dict):
        return dict(cursor)
    return {}


def split_csv(value: str | None) -> Tuple[str, ...]:
    """Split a comma-separated environment variable into a tuple of strings.

    Examples
    --------
    >>> split_csv("workers=4, threads ")
    ('workers=4', 'threads')

    >>> split_csv(None)
    ()
    """
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def coerce_bool(value: str | bool | None) -> bool:
    """Interpret common truthy spellings used in environment toggles."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "on", "enable"}


__all__ = ["read_pyproject_section", "split_csv", "coerce_bool"]
