"""Tuning use-cases: grid search and plain resampling over a fold set."""

from __future__ import annotations

from typing import Optional, Sequence, Union

from statflow.components.evaluation.metrics import MetricSet, metric_set
from statflow.components.splitters.types import FoldSet, InitialSplit
from statflow.components.splitters.vfold import vfold
from statflow.components.tuning.grid import GridLike
from statflow.components.tuning.runner import run_grid
from statflow.components.tuning.selection import TuningResult
from statflow.contracts.choices import EventLevel
from statflow.contracts.tuning_configs import TuneControl
from statflow.core.dataset import Dataset
from statflow.core.progress import ProgressCallback
from statflow.errors import ConfigurationError

from .workflow import Workflow

MetricsArg = Optional[Union[MetricSet, Sequence[str]]]


def resolve_metrics(metrics: MetricsArg, task: str) -> Optional[MetricSet]:
    if metrics is None or isinstance(metrics, MetricSet):
        return metrics
    return metric_set(*metrics, task=task)


def tune_grid(
    workflow: Workflow,
    folds: FoldSet,
    grid: Optional[GridLike] = None,
    *,
    metrics: MetricsArg = None,
    control: Optional[TuneControl] = None,
    event_level: EventLevel = "first",
    progress: Optional[ProgressCallback] = None,
) -> TuningResult:
    """Evaluate every grid candidate on every fold of ``folds``."""
    return run_grid(
        workflow,
        folds,
        grid,
        metrics=resolve_metrics(metrics, workflow.task),
        control=control,
        event_level=event_level,
        progress=progress,
    )


def tune_cv(
    workflow: Workflow,
    training: Dataset,
    fold_count: int,
    grid: Optional[GridLike] = None,
    metrics: MetricsArg = None,
    *,
    strata: Optional[str] = None,
    seed: Optional[int] = None,
    control: Optional[TuneControl] = None,
    event_level: EventLevel = "first",
    progress: Optional[ProgressCallback] = None,
) -> TuningResult:
    """Build ``fold_count`` folds over ``training`` and tune ``workflow`` on them.

    ``training`` must be the training side of a split; the folds never see the
    evaluation rows.
    """
    if isinstance(training, InitialSplit):
        raise ConfigurationError("tune_cv takes the training dataset, not the split; pass split.training().")
    if isinstance(metrics, str):
        metrics = [metrics]
    folds = vfold(training, fold_count, strata=strata, seed=seed)
    return tune_grid(
        workflow,
        folds,
        grid,
        metrics=metrics,
        control=control,
        event_level=event_level,
        progress=progress,
    )


def fit_resamples(
    workflow: Workflow,
    folds: FoldSet,
    *,
    metrics: MetricsArg = None,
    control: Optional[TuneControl] = None,
    event_level: EventLevel = "first",
) -> TuningResult:
    """Cross-validated metrics of a workflow with no tuning parameters."""
    return run_grid(
        workflow,
        folds,
        None,
        metrics=resolve_metrics(metrics, workflow.task),
        control=control,
        event_level=event_level,
    )


__all__ = ["tune_grid", "tune_cv", "fit_resamples", "resolve_metrics"]
