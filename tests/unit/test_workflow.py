from __future__ import annotations

from sklearn.compose import ColumnTransformer
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline, make_pipeline
from sklearn.preprocessing import StandardScaler

from gridtune.workflow import (
    DeclaredDependencyLister,
    DependencyLister,
    EstimatorDependencyLister,
    Workflow,
    list_packages,
)
from tests.helpers.estimators import FakeKerasClassifier, RawKerasModel, TensorflowKerasModel


def test_sklearn_pipeline_reports_sklearn_once():
    workflow = Workflow(make_pipeline(StandardScaler(), LogisticRegression()))
    assert list_packages(workflow) == ("sklearn",)


def test_declared_packages_follow_discovered_ones():
    workflow = Workflow(LogisticRegression(), packages=["rJava", "sklearn", "rJava"])
    assert workflow.packages == ("rJava", "sklearn")
    assert list_packages(workflow) == ("sklearn", "rJava")


def test_nested_keras_wrapper_is_aliased():
    pipe = Pipeline([("scale", StandardScaler()), ("model", FakeKerasClassifier())])
    assert list_packages(Workflow(pipe)) == ("sklearn", "keras")


def test_column_transformer_children_are_visited():
    pre = ColumnTransformer([("num", StandardScaler(), [0, 1])], remainder="passthrough")
    pipe = make_pipeline(pre, FakeKerasClassifier())
    assert list_packages(Workflow(pipe)) == ("sklearn", "keras")


def test_unwrapped_keras_model_is_detected():
    assert list_packages(Workflow(RawKerasModel())) == ("keras",)
    assert list_packages(Workflow(RawKerasModel(), packages=("rJava",))) == ("keras", "rJava")


def test_tensorflow_keras_model_maps_to_keras():
    assert list_packages(Workflow(TensorflowKerasModel())) == ("keras",)


def test_plain_objects_nested_in_lists_are_not_reported():
    assert list_packages(Workflow([LogisticRegression(), "not-a-model"])) == ("sklearn",)


def test_custom_aliases():
    lister = EstimatorDependencyLister(aliases={"sklearn": "scikit-learn"})
    assert lister.list_packages(LogisticRegression()) == ("scikit-learn",)


def test_unknown_workflow_has_no_package_list():
    assert EstimatorDependencyLister().list_packages(None) is None
    assert list_packages(None) is None
    assert DeclaredDependencyLister().list_packages(LogisticRegression()) is None


def test_declared_lister_reports_only_declared():
    workflow = Workflow(FakeKerasClassifier(), packages=("rJava",))
    assert list_packages(workflow, DeclaredDependencyLister()) == ("rJava",)


def test_listers_satisfy_protocol():
    assert isinstance(EstimatorDependencyLister(), DependencyLister)
    assert isinstance(DeclaredDependencyLister(), DependencyLister)


def test_add_packages_returns_new_workflow():
    base = Workflow(LogisticRegression(), name="logreg")
    extended = base.add_packages("keras", "keras")
    assert base.packages == ()
    assert extended.packages == ("keras",)
    assert extended.name == "logreg"
    assert extended.spec is base.spec


def test_with_params_clones_estimator():
    base = Workflow(LogisticRegression(C=1.0))
    tuned = base.with_params(C=0.25)
    assert tuned.estimator is not base.estimator
    assert tuned.estimator.C == 0.25
    assert base.estimator.C == 1.0


def test_coerce():
    workflow = Workflow(LogisticRegression())
    assert Workflow.coerce(workflow) is workflow
    assert isinstance(Workflow.coerce(LogisticRegression()), Workflow)


def test_single_package_string_is_one_declaration():
    workflow = Workflow(LogisticRegression(), packages="rJava")
    assert workflow.packages == ("rJava",)
    assert list_packages(workflow) == ("sklearn", "rJava")
