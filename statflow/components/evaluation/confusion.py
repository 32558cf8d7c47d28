"""Confusion counts and the class metrics derived from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix as _sk_confusion_matrix

from statflow.contracts.choices import EventLevel
from statflow.core.shapes import check_len, coerce_1d
from statflow.errors import ConfigurationError


def confusion_counts(truth: Sequence, estimate: Sequence, levels: Sequence[str]) -> np.ndarray:
    """Counts with rows = truth, columns = prediction, both in ``levels`` order."""
    t = coerce_1d(np.asarray(truth, dtype=object)).astype(str)
    e = coerce_1d(np.asarray(estimate, dtype=object)).astype(str)
    check_len(t, e, "estimate")
    return _sk_confusion_matrix(t, e, labels=list(levels))


def event_index(levels: Sequence[str], event_level: EventLevel) -> int:
    """Position of the event class within ``levels``."""
    if event_level == "first":
        return 0
    if event_level == "second":
        if len(levels) < 2:
            raise ConfigurationError("event_level='second' needs at least two levels.")
        return 1
    raise ConfigurationError(f"event_level must be 'first' or 'second'; got {event_level!r}.")


def _ratio(num: float, den: float) -> float:
    return float(num) / float(den) if den > 0 else float("nan")


def one_vs_rest(counts: np.ndarray, k: int) -> Tuple[float, float, float, float]:
    """(tp, fp, fn, tn) for class ``k``."""
    tp = counts[k, k]
    fn = counts[k, :].sum() - tp
    fp = counts[:, k].sum() - tp
    tn = counts.sum() - tp - fn - fp
    return float(tp), float(fp), float(fn), float(tn)


def class_rates(counts: np.ndarray, event: int) -> Dict[str, float]:
    """Sensitivity, specificity, precision, F1 for the event class (binary) or macro-averaged."""
    n_classes = counts.shape[0]
    targets = [event] if n_classes == 2 else list(range(n_classes))
    sens, spec, prec, f1 = [], [], [], []
    for k in targets:
        tp, fp, fn, tn = one_vs_rest(counts, k)
        r = _ratio(tp, tp + fn)
        p = _ratio(tp, tp + fp)
        sens.append(r)
        spec.append(_ratio(tn, tn + fp))
        prec.append(p)
        f1.append(_ratio(2 * p * r, p + r) if np.isfinite(p) and np.isfinite(r) else float("nan"))
    return {
        "sensitivity": float(np.mean(sens)),
        "specificity": float(np.mean(spec)),
        "precision": float(np.mean(prec)),
        "f_meas": float(np.mean(f1)),
    }


def kappa(counts: np.ndarray) -> float:
    n = counts.sum()
    if n == 0:
        return float("nan")
    po = np.trace(counts) / n
    pe = float(np.sum(counts.sum(axis=0) * counts.sum(axis=1))) / n**2
    return _ratio(po - pe, 1.0 - pe)


@dataclass(frozen=True)
class ConfusionMatrix:
    levels: Tuple[str, ...]
    counts: np.ndarray

    def table(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.counts,
            index=pd.Index(self.levels, name="truth"),
            columns=pd.Index(self.levels, name="prediction"),
        )

    @property
    def accuracy(self) -> float:
        return _ratio(np.trace(self.counts), self.counts.sum())

    def summary(self, event_level: EventLevel = "first") -> pd.DataFrame:
        event = event_index(self.levels, event_level)
        rates = class_rates(self.counts, event)
        rows = {"accuracy": self.accuracy, "kap": kappa(self.counts), **rates}
        return pd.DataFrame({"metric": list(rows), "estimate": list(rows.values())})


def build_confusion(truth: Sequence, estimate: Sequence, levels: Sequence[str]) -> ConfusionMatrix:
    return ConfusionMatrix(levels=tuple(levels), counts=confusion_counts(truth, estimate, levels))


__all__ = ["ConfusionMatrix", "build_confusion", "confusion_counts", "class_rates", "event_index", "kappa", "one_vs_rest"]
