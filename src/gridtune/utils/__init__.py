"""Shared utilities for gridtune."""

from .exceptions import ConfigurationError, GridTuneError, ValidationError, explain_exception

__all__ = ["GridTuneError", "ValidationError", "ConfigurationError", "explain_exception"]
