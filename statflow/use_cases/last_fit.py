"""Final fit: train on the full training partition, score the test partition once."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import pandas as pd

from statflow.components.evaluation.metrics import default_metrics
from statflow.components.splitters.types import InitialSplit
from statflow.contracts.choices import EventLevel
from statflow.errors import ConfigurationError

from .tuning import MetricsArg, resolve_metrics
from .workflow import FittedWorkflow, Workflow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LastFitResult:
    fitted: FittedWorkflow
    metrics: Dict[str, float]
    predictions: pd.DataFrame

    def collect_metrics(self) -> pd.DataFrame:
        return pd.DataFrame({".metric": list(self.metrics), ".estimate": list(self.metrics.values())})

    def collect_predictions(self) -> pd.DataFrame:
        return self.predictions.copy()

    def extract_workflow(self) -> FittedWorkflow:
        return self.fitted


def last_fit(
    workflow: Workflow,
    split: InitialSplit,
    *,
    metrics: MetricsArg = None,
    event_level: EventLevel = "first",
) -> LastFitResult:
    """Fit ``workflow`` on ``split.training()`` and score ``split``'s test rows.

    The test partition is claimed through :meth:`InitialSplit.consume_testing`;
    a second final fit on the same split raises ``EvaluationReuseError``.
    """
    if not isinstance(split, InitialSplit):
        raise ConfigurationError(f"last_fit needs an InitialSplit; got {type(split).__name__}.")
    ms = resolve_metrics(metrics, workflow.task) or default_metrics(workflow.task)
    ms.check_task(workflow.task)

    fitted = workflow.fit(split.training())
    test = split.consume_testing()

    preds = fitted.predict_all(test)
    truth = test.column(workflow.roles.outcome)
    values = ms.compute(preds, truth, levels=fitted.levels, event_level=event_level)

    predictions = preds.copy()
    predictions.insert(0, ".row", split.test_idx)
    predictions[workflow.roles.outcome] = truth.to_numpy()
    logger.info("last_fit on %d training rows, %d test rows: %s", split.n_train, split.n_test, values)
    return LastFitResult(fitted=fitted, metrics=values, predictions=predictions)


__all__ = ["LastFitResult", "last_fit"]
