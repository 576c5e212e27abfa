# Grid-search tuning of a classification model with gridtune.
#
# Resamples are fitted in parallel when more than one worker is registered,
# unless the workflow depends on a package that cannot run in parallel
# workers (keras, rJava).

import logging

import matplotlib.pyplot as plt
from sklearn.datasets import load_breast_cancer
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import StratifiedKFold, train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from gridtune import __version__
from gridtune.logging import LoggingContextFilter
from gridtune.parallel import parallel_backend, select_dispatch
from gridtune.tuning import finalize_workflow, tune_grid
from gridtune.workflow import Workflow, list_packages

print(f"gridtune {__version__}")

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s [%(tune_id)s] %(message)s")
for handler in logging.getLogger().handlers:
    handler.addFilter(LoggingContextFilter())

# Load the data and hold out a test set
X, y = load_breast_cancer(return_X_y=True, as_frame=True)
X_train, X_test, y_train, y_test = train_test_split(
    X, y, test_size=0.25, random_state=42, stratify=y
)

# Describe the model: preprocessing plus a penalised logistic regression
pipeline = Pipeline(
    [
        ("scale", StandardScaler()),
        ("model", LogisticRegression(solver="liblinear", max_iter=1000)),
    ]
)
workflow = Workflow(pipeline, name="penalised_logreg")
print("Packages used by the workflow:", list_packages(workflow))

# Regular grid over penalty type and strength
grid = {
    "model__penalty": ["l1", "l2"],
    "model__C": [0.01, 0.1, 1.0, 10.0, 100.0],
}
folds = StratifiedKFold(n_splits=10, shuffle=True, random_state=1)

# Register four workers; the resampling loop is dispatched to them
with parallel_backend(4):
    print("Dispatch:", select_dispatch(workflow=workflow).name)
    results = tune_grid(
        workflow,
        X_train,
        y_train,
        resamples=folds,
        grid=grid,
        scoring=["roc_auc", "accuracy"],
    )

print(results.collect_metrics().head(10))
print("Top candidates by ROC AUC:")
print(results.show_best("roc_auc", n=5))

ax = results.plot("roc_auc")
ax.set_xscale("log")
plt.tight_layout()
plt.savefig("tune_grid_roc_auc.png")

# Refit the best candidate on the full training set and check the test set
best = results.select_best("roc_auc")
print("Best parameters:", best)
final = finalize_workflow(workflow, best)
final.estimator.fit(X_train, y_train)
print(f"Test accuracy: {final.estimator.score(X_test, y_test):.3f}")

# A workflow that declares a JVM bridge is kept sequential with a warning
jvm_workflow = workflow.add_packages("rJava")
with parallel_backend(4):
    print("Dispatch with rJava:", select_dispatch(workflow=jvm_workflow).name)
