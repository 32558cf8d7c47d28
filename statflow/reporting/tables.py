"""Tabular reports: coefficient tables, confusion matrices, metric tables."""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import stats

from statflow.components.evaluation.confusion import ConfusionMatrix, build_confusion
from statflow.components.evaluation.metrics import MetricSet, metric_set
from statflow.components.models.fitted import FittedModel
from statflow.components.models.inference import OLSInference
from statflow.contracts.choices import EventLevel
from statflow.core.dataset import Dataset
from statflow.errors import (
    ConfigurationError,
    NotFittedError,
    UnknownColumnError,
    UnsupportedOperationError,
)
from statflow.use_cases.workflow import FittedWorkflow, Workflow

Fitted = Union[FittedWorkflow, FittedModel]


def _model_of(fitted: Fitted) -> FittedModel:
    if isinstance(fitted, Workflow):
        raise NotFittedError("Workflow has not been fitted; call .fit(training_data) first.")
    return fitted.model if isinstance(fitted, FittedWorkflow) else fitted


def coefficient_table(fitted: Fitted, *, conf_level: Optional[float] = None) -> pd.DataFrame:
    """term / estimate / std_error / statistic / p_value (+ conf_low / conf_high)."""
    model = _model_of(fitted)
    table = model.tidy()
    if conf_level is None:
        return table
    if not 0.0 < conf_level < 1.0:
        raise ConfigurationError(f"conf_level must be in (0, 1); got {conf_level}.")
    if isinstance(model.inference, OLSInference):
        q = stats.t.ppf(0.5 + conf_level / 2.0, model.inference.df_resid)
    else:
        q = stats.norm.ppf(0.5 + conf_level / 2.0)
    table["conf_low"] = table["estimate"] - q * table["std_error"]
    table["conf_high"] = table["estimate"] + q * table["std_error"]
    return table


_NOT_LEVELS = frozenset({".pred_class", ".pred_lower", ".pred_upper"})


def _levels_for(predictions: pd.DataFrame, truth: str, estimate: str, levels: Optional[Sequence[str]]) -> list:
    """Declared level order: explicit, then probability columns, then categories, then sorted."""
    if levels is not None:
        return [str(lv) for lv in levels]
    prob = [c[len(".pred_"):] for c in predictions.columns if c.startswith(".pred_") and c not in _NOT_LEVELS]
    if prob:
        return prob
    col = predictions[truth]
    if isinstance(col.dtype, pd.CategoricalDtype):
        return [str(lv) for lv in col.cat.categories]
    seen = set(col.astype(str))
    if estimate in predictions.columns:
        seen |= set(predictions[estimate].astype(str))
    return sorted(seen)


def confusion_matrix(
    predictions: pd.DataFrame,
    truth: str,
    estimate: str = ".pred_class",
    *,
    levels: Optional[Sequence[str]] = None,
) -> ConfusionMatrix:
    for col in (truth, estimate):
        if col not in predictions.columns:
            raise UnknownColumnError(f"Column {col!r} not in predictions; have {list(predictions.columns)}.")
    lv = _levels_for(predictions, truth, estimate, levels)
    return build_confusion(predictions[truth], predictions[estimate], lv)


def metrics_table(
    predictions: pd.DataFrame,
    truth: str,
    metrics: Union[MetricSet, Sequence[str]],
    *,
    levels: Optional[Sequence[str]] = None,
    event_level: EventLevel = "first",
) -> pd.DataFrame:
    """One row per metric for a prediction frame carrying the truth column."""
    if truth not in predictions.columns:
        raise UnknownColumnError(f"Truth column {truth!r} not in predictions.")
    ms = metrics if isinstance(metrics, MetricSet) else metric_set(*metrics)
    needs_levels = any(s.task == "classification" for s in ms)
    if needs_levels and levels is None:
        levels = _levels_for(predictions, truth, ".pred_class", None)
    values = ms.compute(predictions, predictions[truth], levels=levels, event_level=event_level)
    return pd.DataFrame({".metric": list(values), ".estimate": list(values.values())})


def augment(fitted: FittedWorkflow, dataset: Dataset) -> pd.DataFrame:
    _model_of(fitted)
    return fitted.augment(dataset)


def regularization_path(workflow: Workflow, dataset: Dataset, penalties: Sequence[float]) -> pd.DataFrame:
    """Coefficients refitted at every penalty (all other settings fixed)."""
    model = workflow.model
    if model.algo not in ("elastic_net", "logreg"):
        raise UnsupportedOperationError(f"{model.algo} has no penalty to vary.")
    rows = []
    for lam in sorted(float(p) for p in penalties):
        data = {name: getattr(model, name) for name in type(model).model_fields}
        data["penalty"] = lam
        fitted = workflow.update_model(type(model).model_validate(data)).fit(dataset)
        coefs = fitted.model.coefficients()
        rows.extend({"penalty": lam, "term": t, "estimate": float(v)} for t, v in coefs.items())
    return pd.DataFrame(rows, columns=["penalty", "term", "estimate"])


def l1_norm_by_penalty(path: pd.DataFrame) -> pd.Series:
    return path.assign(abs_est=np.abs(path["estimate"])).groupby("penalty")["abs_est"].sum()


__all__ = [
    "coefficient_table",
    "confusion_matrix",
    "metrics_table",
    "augment",
    "regularization_path",
    "l1_norm_by_penalty",
]
