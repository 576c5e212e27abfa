"""Estimators used to exercise dependency detection and fit failures."""

from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from gridtune.utils.exceptions import ValidationError


class FakeKerasClassifier(ClassifierMixin, BaseEstimator):
    """Stands in for a scikeras wrapper without importing tensorflow."""

    __module__ = "scikeras.wrappers"

    def __init__(self, epochs=1):
        self.epochs = epochs

    def fit(self, X, y):
        self.classes_ = np.unique(y)
        return self

    def predict(self, X):
        return np.full(len(X), self.classes_[0])


class FailingClassifier(ClassifierMixin, BaseEstimator):
    """Fails to fit whenever ``fail`` is true."""

    def __init__(self, fail=True):
        self.fail = fail

    def fit(self, X, y):
        if self.fail:
            raise ValueError("refusing to fit")
        self.classes_ = np.unique(y)
        return self

    def predict(self, X):
        return np.full(len(X), self.classes_[0])


class RawKerasModel:
    """A keras model used directly, without a scikit-learn wrapper."""

    __module__ = "keras.src.models.sequential"


class TensorflowKerasModel:
    """A model built with the keras bundled inside tensorflow."""

    __module__ = "tensorflow.python.keras.engine.sequential"


class RejectingClassifier(ClassifierMixin, BaseEstimator):
    """Fails with a library error that carries structured details."""

    def fit(self, X, y):
        raise ValidationError("training data rejected", details={"rows": len(X)})
