"""Metric registry.

Every metric declares the task it applies to, whether it is minimised or
maximised, and which prediction column it consumes (``.pred``,
``.pred_class`` or the ``.pred_<level>`` probabilities).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Literal, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import log_loss, mean_absolute_error, mean_squared_error, roc_auc_score

from statflow.contracts.choices import EventLevel, MetricDirection, ModelTaskName
from statflow.core.shapes import check_len, coerce_1d
from statflow.errors import ConfigurationError, UnknownMetricError
from statflow.registries.base import Registry

from .confusion import class_rates, confusion_counts, event_index, kappa

logger = logging.getLogger(__name__)

Needs = Literal["numeric", "class", "prob"]


@dataclass(frozen=True)
class MetricSpec:
    name: str
    task: ModelTaskName
    direction: MetricDirection
    needs: Needs
    fn: Callable[..., float]


_METRICS: Registry[str, MetricSpec] = Registry(_name="metrics")


def register_metric(name: str, *, task: ModelTaskName, direction: MetricDirection, needs: Needs):
    def deco(fn: Callable[..., float]) -> Callable[..., float]:
        _METRICS.add(name, MetricSpec(name=name, task=task, direction=direction, needs=needs, fn=fn))
        return fn

    return deco


# ---------- regression ----------
@register_metric("rmse", task="regression", direction="minimize", needs="numeric")
def _rmse(truth: np.ndarray, estimate: np.ndarray) -> float:
    return float(np.sqrt(mean_squared_error(truth, estimate)))


@register_metric("mse", task="regression", direction="minimize", needs="numeric")
def _mse(truth: np.ndarray, estimate: np.ndarray) -> float:
    return float(mean_squared_error(truth, estimate))


@register_metric("mae", task="regression", direction="minimize", needs="numeric")
def _mae(truth: np.ndarray, estimate: np.ndarray) -> float:
    return float(mean_absolute_error(truth, estimate))


@register_metric("rsq", task="regression", direction="maximize", needs="numeric")
def _rsq(truth: np.ndarray, estimate: np.ndarray) -> float:
    # squared correlation; undefined for constant predictions
    if truth.size < 2 or np.std(truth) == 0 or np.std(estimate) == 0:
        return float("nan")
    return float(np.corrcoef(truth, estimate)[0, 1] ** 2)


# ---------- classification: hard labels ----------
def _rate(key: str):
    def fn(truth: np.ndarray, estimate: np.ndarray, levels: Tuple[str, ...], event: int) -> float:
        return class_rates(confusion_counts(truth, estimate, levels), event)[key]

    return fn


@register_metric("accuracy", task="classification", direction="maximize", needs="class")
def _accuracy(truth: np.ndarray, estimate: np.ndarray, levels: Tuple[str, ...], event: int) -> float:
    return float(np.mean(truth == estimate)) if truth.size else float("nan")


register_metric("sensitivity", task="classification", direction="maximize", needs="class")(_rate("sensitivity"))
register_metric("specificity", task="classification", direction="maximize", needs="class")(_rate("specificity"))
register_metric("precision", task="classification", direction="maximize", needs="class")(_rate("precision"))
register_metric("f_meas", task="classification", direction="maximize", needs="class")(_rate("f_meas"))


@register_metric("kap", task="classification", direction="maximize", needs="class")
def _kap(truth: np.ndarray, estimate: np.ndarray, levels: Tuple[str, ...], event: int) -> float:
    return kappa(confusion_counts(truth, estimate, levels))


# ---------- classification: probabilities ----------
@register_metric("roc_auc", task="classification", direction="maximize", needs="prob")
def _roc_auc(truth: np.ndarray, proba: np.ndarray, levels: Tuple[str, ...], event: int) -> float:
    present = set(truth.tolist())
    if len(present) < 2:
        logger.debug("roc_auc undefined: a single class in truth")
        return float("nan")
    if len(levels) == 2:
        return float(roc_auc_score(truth == levels[event], proba[:, event]))
    if len(present) < len(levels):
        logger.debug("roc_auc undefined: not every class present in truth")
        return float("nan")
    order = np.argsort(levels)
    return float(
        roc_auc_score(truth, proba[:, order], multi_class="ovr", labels=[levels[i] for i in order], average="macro")
    )


@register_metric("mn_log_loss", task="classification", direction="minimize", needs="prob")
def _mn_log_loss(truth: np.ndarray, proba: np.ndarray, levels: Tuple[str, ...], event: int) -> float:
    eps = 1e-15
    p = np.clip(proba, eps, 1.0)
    p = p / p.sum(axis=1, keepdims=True)
    # sklearn reads probability columns in sorted label order
    order = np.argsort(levels)
    return float(log_loss(truth, p[:, order], labels=[levels[i] for i in order]))


# ---------- lookup ----------
def get_metric(name: str) -> MetricSpec:
    spec = _METRICS.try_get(name)
    if spec is None:
        raise UnknownMetricError(f"Unknown metric {name!r}. Known: {list_metrics()}")
    return spec


def list_metrics(task: Optional[ModelTaskName] = None) -> list[str]:
    return sorted(n for n, s in _METRICS.items() if task is None or s.task == task)


_DEFAULTS: Dict[str, Tuple[str, ...]] = {
    "regression": ("rmse", "rsq"),
    "classification": ("accuracy", "roc_auc"),
}


@dataclass(frozen=True)
class MetricSet:
    specs: Tuple[MetricSpec, ...]

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.specs]

    def __iter__(self) -> Iterator[MetricSpec]:
        return iter(self.specs)

    def __len__(self) -> int:
        return len(self.specs)

    def check_task(self, task: str) -> None:
        wrong = [s.name for s in self.specs if s.task != task]
        if wrong:
            raise UnknownMetricError(f"Metrics {wrong} do not apply to a {task} model.")

    def compute(
        self,
        predictions: pd.DataFrame,
        truth: Sequence,
        *,
        levels: Optional[Sequence[str]] = None,
        event_level: EventLevel = "first",
    ) -> Dict[str, float]:
        """Score a prediction frame (columns as produced by ``FittedModel.predict``)."""
        return {s.name: compute_metric(s, predictions, truth, levels=levels, event_level=event_level) for s in self.specs}


def metric_set(*names: str, task: Optional[ModelTaskName] = None) -> MetricSet:
    """Validated, ordered set of metrics; ``task`` additionally checks applicability."""
    if not names:
        raise UnknownMetricError("metric_set needs at least one metric name.")
    if len(set(names)) != len(names):
        raise UnknownMetricError(f"Duplicate metric names: {list(names)}")
    ms = MetricSet(specs=tuple(get_metric(n) for n in names))
    if task is not None:
        ms.check_task(task)
    return ms


def default_metrics(task: str) -> MetricSet:
    return metric_set(*_DEFAULTS[task])


def compute_metric(
    spec: MetricSpec,
    predictions: pd.DataFrame,
    truth: Sequence,
    *,
    levels: Optional[Sequence[str]] = None,
    event_level: EventLevel = "first",
) -> float:
    if spec.needs == "numeric":
        if ".pred" not in predictions.columns:
            raise ConfigurationError(f"{spec.name} needs a numeric '.pred' column.")
        t = coerce_1d(np.asarray(truth, dtype=float))
        e = predictions[".pred"].to_numpy(dtype=float)
        check_len(t, e, ".pred")
        return spec.fn(t, e)

    if levels is None:
        raise ConfigurationError(f"{spec.name} needs the outcome levels.")
    levels = tuple(str(lv) for lv in levels)
    t = coerce_1d(np.asarray(truth, dtype=object)).astype(str)
    event = event_index(levels, event_level)
    if spec.needs == "class":
        if ".pred_class" not in predictions.columns:
            raise ConfigurationError(f"{spec.name} needs a '.pred_class' column.")
        e = predictions[".pred_class"].to_numpy(dtype=object).astype(str)
        check_len(t, e, ".pred_class")
        return spec.fn(t, e, levels, event)

    cols = [f".pred_{lv}" for lv in levels]
    missing = [c for c in cols if c not in predictions.columns]
    if missing:
        raise ConfigurationError(f"{spec.name} needs probability columns {missing}.")
    proba = predictions[cols].to_numpy(dtype=float)
    check_len(t, proba, "probabilities")
    return spec.fn(t, proba, levels, event)


__all__ = [
    "MetricSpec",
    "MetricSet",
    "register_metric",
    "get_metric",
    "list_metrics",
    "metric_set",
    "default_metrics",
    "compute_metric",
]
