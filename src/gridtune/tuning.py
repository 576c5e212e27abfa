"""Grid-search tuning over resamples.

This is a thin orchestration layer: candidate generation, cross-validation
splits, fitting and scoring all come from scikit-learn. What lives here is
the resampling loop, which is dispatched through the strategy picked by
:func:`gridtune.parallel.gate.select_dispatch`, and the pandas summaries of
the collected scores.
"""

from __future__ import annotations

import logging
import uuid
import warnings
from dataclasses import dataclass
from functools import partial
from numbers import Real
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.base import clone, is_classifier
from sklearn.exceptions import FitFailedWarning
from sklearn.metrics import get_scorer
from sklearn.model_selection import ParameterGrid, check_cv

from .logging import logging_context
from .parallel.gate import select_dispatch
from .utils.exceptions import ValidationError, explain_exception
from .workflow import Workflow

logger = logging.getLogger(__name__)

Scorer = Callable[[Any, Any, Any], float]


@dataclass
class TuneResults:
    """Scores collected by :func:`tune_grid`.

    Attributes
    ----------
    metrics : pandas.DataFrame
        One row per resample, candidate and metric with columns ``resample``,
        ``config``, ``metric`` and ``estimate``.
    parameters : dict
        Parameter values of each candidate keyed by its ``config`` label.
    metric_names : tuple of str
        Metrics in the order they were requested.
    dispatch : str
        Name of the iteration strategy the resamples ran under.
    workflow : Workflow
        The tuned workflow.
    """

    metrics: pd.DataFrame
    parameters: Dict[str, Dict[str, Any]]
    metric_names: Tuple[str, ...]
    dispatch: str
    workflow: Workflow

    @property
    def candidates(self) -> pd.DataFrame:
        """One row per candidate: ``config`` followed by its parameter values."""
        rows = [{"config": config, **params} for config, params in self.parameters.items()]
        return pd.DataFrame(rows)

    def collect_metrics(self, summarize: bool = True) -> pd.DataFrame:
        """Return per-resample scores, or their mean, count and standard error."""
        if not summarize:
            return self.metrics.merge(self.candidates, on="config", how="left")
        grouped = self.metrics.groupby(["config", "metric"], sort=False)["estimate"]
        summary = grouped.agg(mean="mean", n="count", std="std").reset_index()
        summary["std_err"] = summary["std"] / np.sqrt(summary["n"])
        summary = summary.drop(columns="std")
        return self.candidates.merge(summary, on="config", how="right")

    def show_best(self, metric: str | None = None, n: int = 5) -> pd.DataFrame:
        """Return the ``n`` best candidates for ``metric`` (highest mean first)."""
        metric = self._resolve_metric(metric)
        summary = self.collect_metrics()
        best = summary[summary["metric"] == metric].sort_values(
            "mean", ascending=False, kind="stable", na_position="last"
        )
        return best.head(n).reset_index(drop=True)

    def select_best(self, metric: str | None = None) -> Dict[str, Any]:
        """Return the parameters of the best candidate for ``metric``."""
        best = self.show_best(metric, n=1)
        return dict(self.parameters[best.loc[0, "config"]])

    def plot(self, metric: str | None = None, ax: Any = None) -> Any:
        """Plot mean score with standard-error bars for each candidate.

        The first numeric tuning parameter is used as the x axis, with one
        line per combination of the remaining parameters. Without numeric
        parameters candidates are plotted in grid order.
        """
        import matplotlib.pyplot as plt

        metric = self._resolve_metric(metric)
        summary = self.collect_metrics()
        data = summary[summary["metric"] == metric]
        param_names = [c for c in self.candidates.columns if c != "config"]
        numeric = [
            c
            for c in param_names
            if pd.api.types.is_numeric_dtype(data[c]) and not pd.api.types.is_bool_dtype(data[c])
        ]

        if ax is None:
            _, ax = plt.subplots()
        if numeric:
            x_name = numeric[0]
            others = [c for c in param_names if c != x_name]
            if others:
                labels = data[others].astype(str).apply(
                    lambda row: ", ".join(f"{k}={v}" for k, v in row.items()), axis=1
                )
            else:
                labels = pd.Series(metric, index=data.index)
            for label, group in data.groupby(labels, sort=False):
                group = group.sort_values(x_name)
                ax.errorbar(
                    group[x_name], group["mean"], yerr=group["std_err"],
                    marker="o", capsize=3, label=label,
                )
            ax.set_xlabel(x_name)
            if others:
                ax.legend()
        else:
            positions = np.arange(len(data))
            ax.errorbar(positions, data["mean"], yerr=data["std_err"], fmt="o", capsize=3)
            ax.set_xticks(positions)
            ax.set_xticklabels(data["config"], rotation=45, ha="right")
            ax.set_xlabel("config")
        ax.set_ylabel(metric)
        return ax

    def _resolve_metric(self, metric: str | None) -> str:
        if metric is None:
            metric = self.metric_names[0]
            if len(self.metric_names) > 1:
                logger.info("No metric given; using %r", metric)
        if metric not in self.metric_names:
            raise ValidationError(
                f"Metric {metric!r} was not computed; available: {', '.join(self.metric_names)}",
                details={"metric": metric, "available": list(self.metric_names)},
            )
        return metric


def tune_grid(
    workflow: Any,
    X: Any,
    y: Any,
    *,
    resamples: Any = 5,
    grid: Mapping[str, Sequence[Any]] | Sequence[Mapping[str, Sequence[Any]]] | None = None,
    scoring: str | Sequence[str] | Mapping[str, str | Scorer] = "accuracy",
    allow_par: bool = True,
    workers: int | None = None,
    error_score: str | float = "raise",
) -> TuneResults:
    """Evaluate every grid candidate on every resample.

    Parameters
    ----------
    workflow : Workflow or estimator
        The model to tune; bare estimators are wrapped in a :class:`Workflow`.
    X, y : array-like
        Training data.
    resamples : int, cross-validation splitter or iterable
        Anything :func:`sklearn.model_selection.check_cv` accepts.
    grid : mapping or list of mappings, optional
        Parameter grid expanded with :class:`~sklearn.model_selection.ParameterGrid`.
        ``None`` evaluates the estimator as configured.
    scoring : str, list of str or mapping
        Scorer names understood by :func:`sklearn.metrics.get_scorer`, or a
        mapping from metric name to scorer name or callable.
    allow_par : bool
        Permit parallel dispatch of resamples.
    workers : int, optional
        Worker count handed to the dispatch gate; defaults to the registered
        backend.
    error_score : "raise" or float
        ``"raise"`` propagates fit errors; a number records that score and
        emits a :class:`~sklearn.exceptions.FitFailedWarning`.

    Returns
    -------
    TuneResults
    """
    workflow = Workflow.coerce(workflow)
    if not (error_score == "raise" or isinstance(error_score, Real)):
        raise ValidationError(
            "error_score must be 'raise' or a number", details={"error_score": error_score}
        )
    candidates = _expand_grid(grid)
    scorers = _resolve_scoring(scoring)
    cv = check_cv(resamples, y, classifier=is_classifier(workflow.estimator))
    splits = list(cv.split(X, y))
    width = len(str(len(splits)))
    labelled = [
        (f"Fold{i:0{width}d}", train, test) for i, (train, test) in enumerate(splits, start=1)
    ]

    handle = select_dispatch(allow_par, workflow, workers=workers)
    tune_id = uuid.uuid4().hex[:8]
    body = partial(
        _fit_resample,
        estimator=workflow.estimator,
        X=X,
        y=y,
        candidates=candidates,
        scorers=scorers,
        error_score=error_score,
        tune_id=tune_id,
        dispatch=handle.name,
    )
    with logging_context(tune_id=tune_id, dispatch=handle.name):
        logger.info(
            "Tuning %d candidate(s) over %d resample(s) with %s dispatch",
            len(candidates),
            len(labelled),
            handle.name,
        )
        per_resample = handle(body, labelled)

    rows = [row for rows in per_resample for row in rows]
    metrics = pd.DataFrame(rows, columns=["resample", "config", "metric", "estimate"])
    return TuneResults(
        metrics=metrics,
        parameters={config: params for config, params in candidates},
        metric_names=tuple(scorers),
        dispatch=handle.name,
        workflow=workflow,
    )


def finalize_workflow(workflow: Any, params: Mapping[str, Any]) -> Workflow:
    """Return a workflow with ``params`` applied to a fresh estimator clone."""
    return Workflow.coerce(workflow).with_params(**params)


def _expand_grid(grid: Any) -> List[Tuple[str, Dict[str, Any]]]:
    candidates = [{}] if grid is None else list(ParameterGrid(grid))
    if not candidates:
        raise ValidationError("Parameter grid has no candidates", details={"grid": grid})
    width = len(str(len(candidates)))
    return [(f"Model{i:0{width}d}", params) for i, params in enumerate(candidates, start=1)]


def _resolve_scoring(scoring: Any) -> Dict[str, Scorer]:
    if isinstance(scoring, str):
        return {scoring: get_scorer(scoring)}
    if isinstance(scoring, Mapping):
        items = list(scoring.items())
    else:
        items = [(name, name) for name in scoring]
    if not items:
        raise ValidationError("At least one metric is required", details={"scoring": scoring})
    return {name: get_scorer(s) if isinstance(s, str) else s for name, s in items}


def _fit_resample(
    split: Tuple[str, Any, Any],
    *,
    estimator: Any,
    X: Any,
    y: Any,
    candidates: List[Tuple[str, Dict[str, Any]]],
    scorers: Dict[str, Scorer],
    error_score: str | float,
    tune_id: str | None = None,
    dispatch: str | None = None,
) -> List[Dict[str, Any]]:
    """Fit and score every candidate on one resample.

    Worker threads and processes start without the caller's logging context;
    ``tune_id`` and ``dispatch`` are set again here.
    """
    label, train, test = split
    X_train, y_train = _take(X, train), _take(y, train)
    X_test, y_test = _take(X, test), _take(y, test)
    rows: List[Dict[str, Any]] = []
    for config, params in candidates:
        with logging_context(tune_id=tune_id, dispatch=dispatch, config=config, resample=label):
            model = clone(estimator).set_params(**params)
            try:
                model.fit(X_train, y_train)
            except Exception as exc:
                if error_score == "raise":
                    raise
                reason = explain_exception(exc)
                logger.warning("Fit failed for %s on %s: %s", config, label, reason)
                warnings.warn(
                    f"Fit failed for {config} on {label}; scores set to {error_score}: {reason}",
                    FitFailedWarning,
                    stacklevel=2,
                )
                scores = {name: float(error_score) for name in scorers}
            else:
                scores = {
                    name: float(scorer(model, X_test, y_test)) for name, scorer in scorers.items()
                }
        rows.extend(
            {"resample": label, "config": config, "metric": name, "estimate": value}
            for name, value in scores.items()
        )
    return rows


def _take(data: Any, indices: Any) -> Any:
    """Row-subset ``data`` by integer positions, keeping pandas objects intact."""
    if hasattr(data, "iloc"):
        return data.iloc[indices]
    if hasattr(data, "shape"):
        return data[indices]
    return np.asarray(data)[indices]


__all__ = ["TuneResults", "tune_grid", "finalize_workflow"]
