"""Diagnostic plots. Every function returns the matplotlib ``Figure`` and never calls ``show``."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from statflow.components.evaluation.confusion import ConfusionMatrix
from statflow.components.tuning.selection import TuningResult
from statflow.core.dataset import Dataset
from statflow.errors import ConfigurationError, UnsupportedOperationError
from statflow.use_cases.workflow import FittedWorkflow, Workflow

from .tables import coefficient_table, regularization_path


def _numeric(dataset: Dataset, column: str) -> np.ndarray:
    if not dataset.schema.is_numeric(column):
        raise ConfigurationError(f"Column {column!r} is nominal; a numeric column is required.")
    return dataset.column(column).to_numpy(dtype=float)


def plot_histogram(dataset: Dataset, column: str, *, bins: int = 30, figsize: tuple = (6, 4)) -> Figure:
    x = _numeric(dataset, column)
    fig, ax = plt.subplots(figsize=figsize)
    ax.hist(x[np.isfinite(x)], bins=bins, color="steelblue", edgecolor="white")
    ax.set_xlabel(column)
    ax.set_ylabel("count")
    fig.tight_layout()
    return fig


def plot_scatter_fit(
    dataset: Dataset,
    x: str,
    y: str,
    *,
    fitted: Optional[FittedWorkflow] = None,
    figsize: tuple = (6, 4),
) -> Figure:
    """Scatter of ``y`` against ``x`` with a least-squares line (or ``fitted``'s predictions)."""
    xv = _numeric(dataset, x)
    yv = _numeric(dataset, y)
    fig, ax = plt.subplots(figsize=figsize)
    ax.scatter(xv, yv, s=18, alpha=0.7, edgecolors="none")
    order = np.argsort(xv)
    if fitted is None:
        slope, icpt = np.polyfit(xv, yv, 1)
        ax.plot(xv[order], icpt + slope * xv[order], color="firebrick", label="least squares")
    else:
        pred = fitted.predict(dataset)[".pred"].to_numpy()
        ax.plot(xv[order], pred[order], color="firebrick", label="fitted")
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    ax.legend(loc="best", frameon=False)
    fig.tight_layout()
    return fig


def plot_residuals(fitted: FittedWorkflow, dataset: Dataset, *, figsize: tuple = (6, 4)) -> Figure:
    if fitted.model.task != "regression":
        raise UnsupportedOperationError("Residual plots need a regression model.")
    aug = fitted.augment(dataset)
    if ".resid" not in aug.columns:
        raise ConfigurationError(f"Outcome {fitted.outcome!r} is needed for residuals.")
    fig, ax = plt.subplots(figsize=figsize)
    ax.scatter(aug[".pred"], aug[".resid"], s=18, alpha=0.7, edgecolors="none")
    ax.axhline(0.0, color="gray", linestyle="--", linewidth=1)
    ax.set_xlabel("fitted")
    ax.set_ylabel("residual")
    fig.tight_layout()
    return fig


def plot_coefficients(fitted: FittedWorkflow, *, conf_level: float = 0.95, figsize: tuple = (6, 4)) -> Figure:
    table = coefficient_table(fitted, conf_level=conf_level)
    table = table[table["term"] != "(Intercept)"]
    y = np.arange(len(table))
    est = table["estimate"].to_numpy()
    lo = table["conf_low"].to_numpy()
    hi = table["conf_high"].to_numpy()
    fig, ax = plt.subplots(figsize=figsize)
    has_ci = np.isfinite(lo) & np.isfinite(hi)
    if has_ci.any():
        ax.errorbar(
            est[has_ci], y[has_ci],
            xerr=[est[has_ci] - lo[has_ci], hi[has_ci] - est[has_ci]],
            fmt="o", capsize=3,
        )
    if (~has_ci).any():
        ax.plot(est[~has_ci], y[~has_ci], "o")
    ax.axvline(0.0, color="gray", linestyle="--", linewidth=1)
    ax.set_yticks(y)
    ax.set_yticklabels(table["term"].tolist())
    ax.set_xlabel("estimate")
    fig.tight_layout()
    return fig


def plot_tuning_curve(
    result: TuningResult,
    param: str,
    *,
    metric: Optional[str] = None,
    figsize: tuple = (6, 4),
) -> Figure:
    """Mean metric +/- one standard error against one tuning parameter."""
    if param not in result.param_ids:
        raise ConfigurationError(f"{param!r} is not a tuning id; have {list(result.param_ids)}.")
    table = result.collect_metrics()
    name = metric or result.metrics.names[0]
    table = table[table[".metric"] == name].sort_values(param)
    x = table[param].to_numpy(dtype=float)
    mean = table["mean"].to_numpy(dtype=float)
    se = np.nan_to_num(table["std_err"].to_numpy(dtype=float))

    fig, ax = plt.subplots(figsize=figsize)
    others = [p for p in result.param_ids if p != param]
    if others:
        for key, grp in table.groupby(others):
            ax.errorbar(grp[param], grp["mean"], yerr=np.nan_to_num(grp["std_err"]), marker="o", capsize=3, label=str(key))
        ax.legend(title=", ".join(others), frameon=False)
    else:
        ax.errorbar(x, mean, yerr=se, marker="o", capsize=3)
    if np.all(x > 0) and x.size > 1 and x.max() / x.min() > 100:
        ax.set_xscale("log")
    ax.set_xlabel(param)
    ax.set_ylabel(f"mean {name}")
    fig.tight_layout()
    return fig


def plot_confusion(cm: ConfusionMatrix, *, figsize: tuple = (4.5, 4)) -> Figure:
    fig, ax = plt.subplots(figsize=figsize)
    im = ax.imshow(cm.counts, cmap="Blues")
    ticks = np.arange(len(cm.levels))
    ax.set_xticks(ticks)
    ax.set_yticks(ticks)
    ax.set_xticklabels(cm.levels)
    ax.set_yticklabels(cm.levels)
    ax.set_xlabel("prediction")
    ax.set_ylabel("truth")
    vmax = cm.counts.max() if cm.counts.size else 0
    for i in range(cm.counts.shape[0]):
        for j in range(cm.counts.shape[1]):
            ax.text(
                j, i, str(cm.counts[i, j]), ha="center", va="center",
                color="white" if cm.counts[i, j] > vmax / 2 else "black",
            )
    fig.colorbar(im, ax=ax)
    fig.tight_layout()
    return fig


def plot_regularization_path(
    workflow: Workflow,
    dataset: Dataset,
    penalties: Sequence[float],
    *,
    figsize: tuple = (6, 4),
) -> Figure:
    path = regularization_path(workflow, dataset, penalties)
    fig, ax = plt.subplots(figsize=figsize)
    for term, grp in path.groupby("term", sort=False):
        ax.plot(grp["penalty"], grp["estimate"], label=term)
    if (path["penalty"] > 0).all():
        ax.set_xscale("log")
    ax.axhline(0.0, color="gray", linewidth=0.8)
    ax.set_xlabel("penalty")
    ax.set_ylabel("coefficient")
    if path["term"].nunique() <= 12:
        ax.legend(frameon=False, fontsize="small")
    fig.tight_layout()
    return fig


__all__ = [
    "plot_histogram",
    "plot_scatter_fit",
    "plot_residuals",
    "plot_coefficients",
    "plot_tuning_curve",
    "plot_confusion",
    "plot_regularization_path",
]
