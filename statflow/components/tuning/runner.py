"""Grid tuning over a fold set.

Every (candidate, fold) pair is an independent fit: it reads only its own
fold partition of the shared, read-only dataset. Pairs are dispatched through
joblib and their metric records are concatenated once, after all fits return.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from joblib import Parallel, delayed

from statflow.components.evaluation.metrics import MetricSet, default_metrics
from statflow.components.splitters.types import Fold, FoldSet
from statflow.contracts.choices import EventLevel
from statflow.contracts.results.tuning import MetricRecord
from statflow.contracts.tuning_configs import TuneControl
from statflow.core.dataset import Dataset
from statflow.core.progress import ProgressCallback
from statflow.errors import ConfigurationError
from statflow.settings import EngineSettings

from .grid import GridLike, validate_grid
from .selection import TuningResult

logger = logging.getLogger(__name__)

FitOutput = Tuple[List[MetricRecord], Optional[pd.DataFrame]]


def _candidate_ids(n: int) -> List[str]:
    width = max(2, len(str(n)))
    return [f"Candidate{i + 1:0{width}d}" for i in range(n)]


def evaluate_candidate_on_fold(
    workflow: Any,
    candidate: str,
    params: Dict[str, Any],
    fold: Fold,
    dataset: Dataset,
    metrics: MetricSet,
    event_level: EventLevel,
    save_pred: bool,
) -> FitOutput:
    """Fit one candidate on the fold's analysis rows and score its assessment rows."""
    wf = workflow.with_params(params) if params else workflow
    analysis = fold.analysis(dataset)
    assessment = fold.assessment(dataset)

    fitted = wf.fit(analysis)
    preds = fitted.predict_all(assessment)
    truth = assessment.column(wf.roles.outcome)
    values = metrics.compute(preds, truth, levels=fitted.levels, event_level=event_level)
    logger.debug("%s %s: %s", fold.id, candidate, values)

    records = [
        MetricRecord(fold_id=fold.id, candidate=candidate, params=params, metric=name, value=value)
        for name, value in values.items()
    ]
    pred_frame: Optional[pd.DataFrame] = None
    if save_pred:
        pred_frame = preds.copy()
        pred_frame.insert(0, ".row", fold.assessment_idx)
        pred_frame[wf.roles.outcome] = truth.to_numpy()
        for k, v in params.items():
            pred_frame[k] = v
        pred_frame["fold_id"] = fold.id
        pred_frame[".config"] = candidate
    return records, pred_frame


def run_grid(
    workflow: Any,
    folds: FoldSet,
    grid: Optional[GridLike] = None,
    *,
    metrics: Optional[MetricSet] = None,
    control: Optional[TuneControl] = None,
    event_level: EventLevel = "first",
    progress: Optional[ProgressCallback] = None,
) -> TuningResult:
    if not isinstance(folds, FoldSet):
        raise ConfigurationError(
            f"Tuning resamples must be a FoldSet (see vfold); got {type(folds).__name__}. "
            "The evaluation partition of an initial split is never used for tuning."
        )
    control = control or TuneControl()
    metrics = metrics or default_metrics(workflow.task)
    metrics.check_task(workflow.task)

    ids = workflow.tunable_ids()
    candidates = validate_grid(grid, ids)
    cand_ids = _candidate_ids(len(candidates))
    pairs = [(cid, params, fold) for cid, params in zip(cand_ids, candidates) for fold in folds]

    n_jobs = control.n_jobs if control.n_jobs is not None else EngineSettings.from_env().n_jobs
    logger.info(
        "tuning %d candidate(s) x %d fold(s) = %d fits (n_jobs=%s)",
        len(candidates), len(folds), len(pairs), n_jobs,
    )
    if progress is not None:
        progress.init(total=len(pairs), label="tune_grid")

    parallel = Parallel(n_jobs=n_jobs, backend=control.backend, return_as="generator", verbose=10 if control.verbose else 0)
    jobs = (
        delayed(evaluate_candidate_on_fold)(
            workflow, cid, params, fold, folds.dataset, metrics, event_level, control.save_pred
        )
        for cid, params, fold in pairs
    )

    outputs: List[FitOutput] = []
    for i, out in enumerate(parallel(jobs), start=1):
        outputs.append(out)
        if progress is not None:
            progress.update(current=i, label="tune_grid")
    if progress is not None:
        progress.finalize(label="tune_grid")

    records = tuple(r for recs, _ in outputs for r in recs)
    predictions = None
    if control.save_pred:
        predictions = pd.concat([p for _, p in outputs], ignore_index=True)

    return TuningResult(
        records=records,
        param_ids=tuple(ids),
        candidates=tuple(zip(cand_ids, candidates)),
        metrics=metrics,
        fold_ids=tuple(folds.ids),
        predictions=predictions,
    )


__all__ = ["run_grid", "evaluate_candidate_on_fold"]
