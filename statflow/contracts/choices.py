"""Literal-based "choice" types used across contracts.

Keep this file dependency-free (stdlib + typing only) and import choice sets
from here rather than repeating Literal[...] in multiple schema files.
"""

from __future__ import annotations

from typing import Literal, TypeAlias, Union


# -----------------------------
# Common / high-level
# -----------------------------

ModelTaskName: TypeAlias = Literal["classification", "regression"]

ColumnKind: TypeAlias = Literal["numeric", "nominal"]

SelectorKind: TypeAlias = Literal["any", "numeric", "nominal"]


# -----------------------------
# Prediction
# -----------------------------

PredictionMode: TypeAlias = Literal["numeric", "class", "prob", "conf_int", "pred_int"]

EventLevel: TypeAlias = Literal["first", "second"]


# -----------------------------
# Preprocessing
# -----------------------------

StepName: TypeAlias = Literal[
    "normalize",
    "dummy",
    "novel",
    "zv",
    "poly",
    "spline",
    "interact",
    "log",
]


# -----------------------------
# KNN helpers
# -----------------------------

KNNWeights: TypeAlias = Literal["uniform", "distance"]


# -----------------------------
# Metrics
# -----------------------------

RegressionMetricName: TypeAlias = Literal["rmse", "mse", "mae", "rsq"]

ClassificationMetricName: TypeAlias = Literal[
    "accuracy",
    "sensitivity",
    "specificity",
    "precision",
    "f_meas",
    "kap",
    "roc_auc",
    "mn_log_loss",
]

MetricName: TypeAlias = Union[RegressionMetricName, ClassificationMetricName]

MetricDirection: TypeAlias = Literal["minimize", "maximize"]


__all__ = [
    "ModelTaskName",
    "ColumnKind",
    "SelectorKind",
    "PredictionMode",
    "EventLevel",
    "StepName",
    "KNNWeights",
    "RegressionMetricName",
    "ClassificationMetricName",
    "MetricName",
    "MetricDirection",
]
