"""Shared pytest fixtures for the gridtune test suite."""

from __future__ import annotations

import pytest
from sklearn.datasets import make_classification

from gridtune.parallel.backend import ENV_VAR, clear_registration


@pytest.fixture(autouse=True)
def isolated_backend(monkeypatch, tmp_path):
    """Run every test against an empty registry, no env overrides and no pyproject."""
    monkeypatch.delenv(ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_registration()
    yield
    clear_registration()


@pytest.fixture
def binary_dataset():
    """Small, well separated binary classification problem."""
    X, y = make_classification(
        n_samples=120,
        n_features=6,
        n_informative=4,
        n_redundant=0,
        class_sep=1.5,
        random_state=42,
    )
    return X, y
