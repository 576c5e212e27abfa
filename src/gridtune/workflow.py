"""Workflow specification and package-dependency lookup.

A :class:`Workflow` wraps a scikit-learn compatible estimator (usually a
``Pipeline``) together with packages it needs at fit time that cannot be
discovered from the estimator objects themselves. Dependency listers turn a
workflow into the ordered set of package identifiers consulted by the
parallel dispatch gate.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator, Protocol, Sequence, Tuple, runtime_checkable

from sklearn.base import clone

# Top-level modules whose estimators are really backed by another package.
PACKAGE_ALIASES = {
    "scikeras": "keras",
    "tf_keras": "keras",
    "tensorflow": "keras",
}

_IGNORED_MODULES = {"builtins", "__main__"}


@dataclass(frozen=True)
class Workflow:
    """An estimator plus the packages it depends on.

    Parameters
    ----------
    estimator : Any
        A scikit-learn compatible estimator or pipeline.
    packages : tuple of str
        Extra package identifiers the estimator needs, e.g. ``("rJava",)``
        for a model that bridges into a JVM.
    name : str or None
        Optional label used in logs.
    """

    estimator: Any
    packages: Tuple[str, ...] = field(default_factory=tuple)
    name: str | None = None

    def __post_init__(self) -> None:
        # accept a single name or any iterable of names but store a tuple
        packages = (self.packages,) if isinstance(self.packages, str) else self.packages
        object.__setattr__(self, "packages", tuple(_unique(packages)))

    @property
    def spec(self) -> Any:
        """The wrapped model specification."""
        return self.estimator

    def add_packages(self, *names: str) -> "Workflow":
        """Return a copy declaring additional package dependencies."""
        return replace(self, packages=self.packages + tuple(names))

    def with_params(self, **params: Any) -> "Workflow":
        """Return a workflow around a fresh clone of the estimator with ``params`` set."""
        estimator = clone(self.estimator)
        if params:
            estimator.set_params(**params)
        return replace(self, estimator=estimator)

    @classmethod
    def coerce(cls, obj: Any) -> "Workflow":
        """Wrap a bare estimator; workflows pass through unchanged."""
        return obj if isinstance(obj, cls) else cls(obj)


@runtime_checkable
class DependencyLister(Protocol):
    """Capability deriving package identifiers from a workflow."""

    def list_packages(self, workflow: Any) -> Sequence[str] | None:
        """Return package identifiers in a stable order, or ``None`` if unknown."""
        ...


class DeclaredDependencyLister:
    """Report only the packages explicitly declared on a :class:`Workflow`."""

    def list_packages(self, workflow: Any) -> Sequence[str] | None:
        if isinstance(workflow, Workflow):
            return workflow.packages
        return None


class EstimatorDependencyLister:
    """Collect packages from the estimator tree and the declared packages.

    Every object reachable through pipeline steps, column transformers and
    nested estimator parameters contributes the top-level module of its
    class, translated through :data:`PACKAGE_ALIASES`. Declared packages
    follow in their declared order. Duplicates keep their first position.
    """

    def __init__(self, aliases: dict[str, str] | None = None) -> None:
        self.aliases = dict(PACKAGE_ALIASES if aliases is None else aliases)

    def list_packages(self, workflow: Any) -> Sequence[str] | None:
        if workflow is None:
            return None
        workflow = Workflow.coerce(workflow)
        discovered = (self._package_of(obj) for obj in _walk_estimators(workflow.estimator))
        return tuple(_unique(name for name in (*discovered, *workflow.packages) if name))

    def _package_of(self, obj: Any) -> str | None:
        root = type(obj).__module__.split(".", 1)[0]
        if root in _IGNORED_MODULES:
            return None
        return self.aliases.get(root, root)


def list_packages(
    workflow: Any, lister: DependencyLister | None = None
) -> Tuple[str, ...] | None:
    """Return the package dependency set of ``workflow``, or ``None`` when it cannot be derived."""
    lister = lister if lister is not None else EstimatorDependencyLister()
    packages = lister.list_packages(workflow)
    if packages is None:
        return None
    return tuple(_unique(packages))


def _is_estimator(obj: Any) -> bool:
    return hasattr(obj, "get_params") and not isinstance(obj, type)


def _walk_estimators(root: Any) -> Iterator[Any]:
    """Yield ``root`` and every estimator nested inside it, depth first."""
    seen: set[int] = set()
    stack = [root]
    while stack:
        obj = stack.pop()
        if id(obj) in seen:
            continue
        seen.add(id(obj))
        if _is_estimator(obj):
            yield obj
            children = list(_children(obj.get_params(deep=False).values()))
        elif isinstance(obj, (list, tuple)):
            children = list(_children(obj))
        else:
            # a bare model object (e.g. a keras model) still names its package
            if obj is root:
                yield obj
            continue
        stack.extend(reversed(children))


def _children(values: Iterable[Any]) -> Iterator[Any]:
    for value in values:
        if _is_estimator(value) or isinstance(value, (list, tuple)):
            yield value


def _unique(names: Iterable[str]) -> Iterator[str]:
    seen: set[str] = set()
    for name in names:
        if name not in seen:
            seen.add(name)
            yield name


__all__ = [
    "PACKAGE_ALIASES",
    "Workflow",
    "DependencyLister",
    "DeclaredDependencyLister",
    "EstimatorDependencyLister",
    "list_packages",
]
