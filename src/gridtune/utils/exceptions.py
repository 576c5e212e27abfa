"""Custom exception hierarchy for gridtune.

All library errors inherit from :class:`GridTuneError` and accept a structured
``details`` payload alongside the user-facing message.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "GridTuneError",
    "ValidationError",
    "ConfigurationError",
    "explain_exception",
]


class GridTuneError(Exception):
    """Base class for library-specific errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Attach structured error details alongside the user-facing message."""
        super().__init__(message)
        self.details: dict[str, Any] | None = details

    def __repr__(self) -> str:
        """Return the exception representation with the message payload."""
        cls = self.__class__.__name__
        return f"{cls}({super().__str__()!r})"


class ValidationError(GridTuneError):
    """Inputs to a tuning call failed validation (empty grid, unknown metric)."""


class ConfigurationError(GridTuneError):
    """Invalid parallel backend registration or configuration override."""


def explain_exception(e: Exception) -> str:
    """Return a human-readable multi-line description of an exception.

    Parameters
    ----------
    e : Exception
        The exception to format.

    Returns
    -------
    str
        For :class:`GridTuneError`, the class name, message and details dict
        if present. For other exceptions, ``str(e)``.

    Examples
    --------
    >>> from gridtune.utils.exceptions import ConfigurationError, explain_exception
    >>> e = ConfigurationError("workers must be >= 1", details={"workers": 0})
    >>> print(explain_exception(e))
    ConfigurationError: workers must be >= 1
      Details: {'workers': 0}
    """
    if isinstance(e, GridTuneError):
        lines = [f"{e.__class__.__name__}: {str(e)}"]
        if e.details is not None:
            lines.append(f"  Details: {e.details}")
        return "\n".join(lines)
    return str(e)
