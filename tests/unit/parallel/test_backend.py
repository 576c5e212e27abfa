from __future__ import annotations

import os

import pytest

from gridtune.parallel.backend import (
    ENV_VAR,
    ParallelConfig,
    clear_registration,
    parallel_backend,
    register_parallel_backend,
    register_sequential_backend,
    registered_backend,
    registered_workers,
)
from gridtune.utils.exceptions import ConfigurationError


def test_defaults_to_single_worker():
    assert registered_workers() == 1
    assert registered_backend() == ParallelConfig()
    assert ParallelConfig().is_parallel is False


def test_register_and_reset():
    cfg = register_parallel_backend(4, strategy="threads", chunksize=2)
    assert cfg == ParallelConfig(workers=4, strategy="threads", chunksize=2)
    assert registered_workers() == 4
    assert registered_backend().is_parallel is True

    register_sequential_backend()
    assert registered_workers() == 1

    register_parallel_backend(3)
    clear_registration()
    assert registered_workers() == 1


def test_register_without_workers_uses_all_cpus():
    register_parallel_backend()
    assert registered_workers() == (os.cpu_count() or 1)


@pytest.mark.parametrize("kwargs", [{"workers": 0}, {"workers": -2}, {"workers": "many"}])
def test_register_rejects_invalid_workers(kwargs):
    with pytest.raises(ConfigurationError) as excinfo:
        register_parallel_backend(**kwargs)
    assert excinfo.value.details == {"workers": kwargs["workers"]}
    assert registered_workers() == 1


def test_register_rejects_unknown_strategy():
    with pytest.raises(ConfigurationError, match="Unknown parallel strategy"):
        register_parallel_backend(2, strategy="gpu")


def test_context_manager_restores_previous_registration():
    register_parallel_backend(2)
    with parallel_backend(6, strategy="processes") as cfg:
        assert cfg.workers == 6
        assert registered_backend().strategy == "processes"
    assert registered_backend() == ParallelConfig(workers=2)


def test_context_manager_restores_on_error():
    with pytest.raises(RuntimeError):
        with parallel_backend(5):
            raise RuntimeError("boom")
    assert registered_workers() == 1


def test_from_env(monkeypatch):
    monkeypatch.setenv(ENV_VAR, "workers=3, threads, backend=threading, chunksize=4, bogus")
    cfg = ParallelConfig.from_env()
    assert cfg == ParallelConfig(
        workers=3, strategy="threads", joblib_backend="threading", chunksize=4
    )

    monkeypatch.setenv(ENV_VAR, "workers=8,off")
    assert ParallelConfig.from_env().workers == 1

    monkeypatch.setenv(ENV_VAR, "all")
    assert ParallelConfig.from_env().workers == (os.cpu_count() or 1)


@pytest.mark.parametrize("token", ["off", "0", "false", "no", " OFF "])
def test_from_env_off_toggle_forces_single_worker(monkeypatch, token):
    monkeypatch.setenv(ENV_VAR, f"workers=6,{token}")
    assert ParallelConfig.from_env().workers == 1


@pytest.mark.parametrize("token", ["on", "1", "true", "yes"])
def test_from_env_on_toggle_enables_all_cpus(monkeypatch, token):
    monkeypatch.setenv(ENV_VAR, token)
    assert ParallelConfig.from_env().workers == (os.cpu_count() or 1)
    # an explicit worker count is kept
    monkeypatch.setenv(ENV_VAR, f"workers=3,{token}")
    assert ParallelConfig.from_env().workers == 3


def test_from_env_rejects_bad_integers(monkeypatch):
    monkeypatch.setenv(ENV_VAR, "workers=lots")
    with pytest.raises(ConfigurationError, match="workers must be an integer"):
        ParallelConfig.from_env()


def test_unregistered_backend_reads_pyproject_then_env(tmp_path, monkeypatch):
    (tmp_path / "pyproject.toml").write_text(
        '[tool.gridtune.parallel]\nworkers = 2\nstrategy = "processes"\n', encoding="utf-8"
    )
    assert registered_backend() == ParallelConfig(workers=2, strategy="processes")

    monkeypatch.setenv(ENV_VAR, "workers=5")
    assert registered_backend() == ParallelConfig(workers=5, strategy="processes")

    register_parallel_backend(3)
    assert registered_workers() == 3


def test_from_mapping_validates_values():
    with pytest.raises(ConfigurationError):
        ParallelConfig.from_mapping({"chunksize": 0})
    assert ParallelConfig.from_mapping({"workers": "all"}).workers == (os.cpu_count() or 1)


@pytest.mark.parametrize("enabled", [False, "off", "0"])
def test_from_mapping_disabled_forces_single_worker(enabled):
    cfg = ParallelConfig.from_mapping({"workers": 4, "enabled": enabled})
    assert cfg.workers == 1


def test_from_mapping_enabled_keeps_workers(tmp_path):
    (tmp_path / "pyproject.toml").write_text(
        "[tool.gridtune.parallel]\nworkers = 4\nenabled = true\n", encoding="utf-8"
    )
    assert registered_workers() == 4
