"""Tuning results: aggregation and the two selection policies.

Per candidate and metric the fold values are reduced to their mean and the
standard error ``sd / sqrt(n)`` (sample standard deviation, ``n`` folds).
``select_best`` takes the optimal mean; ``select_by_one_std_err`` takes the
simplest candidate whose mean is no worse than the best mean plus one standard
error of the best candidate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from statflow.components.evaluation.metrics import MetricSet, MetricSpec
from statflow.contracts.results.tuning import CandidateSummary, MetricRecord
from statflow.errors import ConfigurationError, DataError, UnknownMetricError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Desc:
    """Order key meaning "larger values are simpler" (e.g. the penalty)."""

    name: str


def desc(name: str) -> Desc:
    return Desc(name=name)


OrderKey = Union[str, Desc]


@dataclass(frozen=True)
class TuningResult:
    records: Tuple[MetricRecord, ...]
    param_ids: Tuple[str, ...]
    candidates: Tuple[Tuple[str, Dict[str, Any]], ...]
    metrics: MetricSet
    fold_ids: Tuple[str, ...]
    predictions: Optional[pd.DataFrame] = None

    # ---------- tables ----------
    def metrics_frame(self) -> pd.DataFrame:
        """One row per metric record (fold x candidate x metric)."""
        rows = [
            {**r.params, "fold_id": r.fold_id, ".metric": r.metric, ".estimate": r.value, ".config": r.candidate}
            for r in self.records
        ]
        cols = [*self.param_ids, "fold_id", ".metric", ".estimate", ".config"]
        return pd.DataFrame(rows, columns=cols)

    def summaries(self, metric: Optional[str] = None) -> List[CandidateSummary]:
        spec = self._metric(metric)
        out: List[CandidateSummary] = []
        for cid, params in self.candidates:
            vals = np.array(
                [r.value for r in self.records if r.candidate == cid and r.metric == spec.name],
                dtype=float,
            )
            vals = vals[np.isfinite(vals)]
            n = int(vals.size)
            mean = float(vals.mean()) if n else float("nan")
            se = float(vals.std(ddof=1) / np.sqrt(n)) if n > 1 else float("nan")
            out.append(CandidateSummary(candidate=cid, params=params, metric=spec.name, mean=mean, n=n, std_err=se))
        return out

    def collect_metrics(self, summarize: bool = True) -> pd.DataFrame:
        """Mean, n and std_err per candidate and metric (or the raw records)."""
        if not summarize:
            return self.metrics_frame()
        rows = []
        for spec in self.metrics:
            for s in self.summaries(spec.name):
                rows.append(
                    {**s.params, ".metric": s.metric, "mean": s.mean, "n": s.n, "std_err": s.std_err, ".config": s.candidate}
                )
        return pd.DataFrame(rows, columns=[*self.param_ids, ".metric", "mean", "n", "std_err", ".config"])

    def collect_predictions(self) -> pd.DataFrame:
        if self.predictions is None:
            raise ConfigurationError("Predictions were not kept; tune with TuneControl(save_pred=True).")
        return self.predictions.copy()

    # ---------- selection ----------
    def _metric(self, metric: Optional[str]) -> MetricSpec:
        if metric is None:
            spec = self.metrics.specs[0]
            logger.info("no metric given; using %r", spec.name)
            return spec
        for spec in self.metrics:
            if spec.name == metric:
                return spec
        raise UnknownMetricError(f"Metric {metric!r} was not computed; available: {self.metrics.names}")

    def _ranked(self, spec: MetricSpec) -> pd.DataFrame:
        table = self.collect_metrics()
        table = table[(table[".metric"] == spec.name) & np.isfinite(table["mean"])]
        if table.empty:
            raise DataError(f"No candidate has a finite mean {spec.name}.")
        ascending = spec.direction == "minimize"
        return table.sort_values("mean", ascending=ascending, kind="mergesort").reset_index(drop=True)

    def show_best(self, metric: Optional[str] = None, n: int = 5) -> pd.DataFrame:
        spec = self._metric(metric)
        return self._ranked(spec).head(n)

    def _params_of(self, row: pd.Series) -> Dict[str, Any]:
        cid = row[".config"]
        params = dict(self.candidates)[cid]
        return {**params, ".config": cid}

    def select_best(self, metric: Optional[str] = None) -> Dict[str, Any]:
        spec = self._metric(metric)
        best = self._ranked(spec).iloc[0]
        chosen = self._params_of(best)
        logger.info("select_best(%s): %s (mean=%.6g)", spec.name, chosen, best["mean"])
        return chosen

    def select_by_one_std_err(self, metric: Optional[str], *order: OrderKey) -> Dict[str, Any]:
        """Simplest candidate within one standard error of the best.

        Each ``order`` key is a tuning id sorted ascending (smaller is simpler)
        or ``desc(id)`` (larger is simpler, e.g. the penalty).
        """
        spec = self._metric(metric)
        if not order:
            raise ConfigurationError("select_by_one_std_err needs at least one ordering key.")
        keys = [k.name if isinstance(k, Desc) else str(k) for k in order]
        unknown = [k for k in keys if k not in self.param_ids]
        if unknown:
            raise ConfigurationError(f"Ordering keys {unknown} are not tuning ids {list(self.param_ids)}.")

        ranked = self._ranked(spec)
        best = ranked.iloc[0]
        se = float(best["std_err"]) if np.isfinite(best["std_err"]) else 0.0
        if spec.direction == "minimize":
            bound = float(best["mean"]) + se
            eligible = ranked[ranked["mean"] <= bound]
        else:
            bound = float(best["mean"]) - se
            eligible = ranked[ranked["mean"] >= bound]

        ascending = [not isinstance(k, Desc) for k in order]
        # ranked is already ordered by mean, a stable sort keeps better means first on ties
        simplest = eligible.sort_values(keys, ascending=ascending, kind="mergesort").iloc[0]
        chosen = self._params_of(simplest)
        logger.info(
            "select_by_one_std_err(%s): %s (mean=%.6g, bound=%.6g)", spec.name, chosen, simplest["mean"], bound
        )
        return chosen


__all__ = ["TuningResult", "Desc", "desc", "OrderKey"]
