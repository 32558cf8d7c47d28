"""Fitting and predicting with a uniform contract over every model family.

Classification outcomes are handed to scikit-learn as integer codes in the
declared level order, so the estimator's coefficients and probability columns
line up with the outcome's levels (for logistic regression the coefficients
describe the log-odds of the second level, as in a binomial GLM).
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from statflow.contracts.choices import PredictionMode
from statflow.contracts.model_configs import get_model_task
from statflow.contracts.tuning_configs import tunable_fields
from statflow.core.dataset import Dataset
from statflow.core.shapes import ensure_xy_aligned
from statflow.errors import (
    ConfigurationError,
    DataError,
    InsufficientDataError,
    ModelTargetTypeMismatchError,
    NonNumericPredictorError,
    UnknownColumnError,
    UnsupportedOperationError,
    UnsupportedPredictionModeError,
)
from statflow.registries.models import make_model_builder

from .inference import LogisticInference, OLSInference

logger = logging.getLogger(__name__)


def design_matrix(dataset: Dataset, predictors: Sequence[str]) -> np.ndarray:
    """Numeric predictor matrix; nominal or missing values are rejected."""
    predictors = list(predictors)
    missing = [p for p in predictors if p not in dataset.schema]
    if missing:
        raise UnknownColumnError(f"Predictor columns missing from data: {missing}")
    nominal = dataset.schema.nominal(predictors)
    if nominal:
        raise NonNumericPredictorError(
            f"Nominal predictors {nominal} reach the model unencoded; add a dummy step."
        )
    frame = dataset.frame[predictors]
    X = frame.apply(pd.to_numeric).to_numpy(dtype=float)
    if X.size and np.isnan(X).any():
        bad = [c for c in predictors if frame[c].isna().any()]
        raise DataError(f"Missing values in predictor column(s) {bad}.")
    return X


def _check_outcome(cfg: Any, task: str, dataset: Dataset, outcome: str) -> Optional[Tuple[str, ...]]:
    spec = dataset.schema.get(outcome)
    if task == "regression":
        if spec.kind != "numeric":
            raise ModelTargetTypeMismatchError(
                f"{cfg.algo} is a regression model but outcome {outcome!r} is nominal."
            )
        return None
    if spec.kind != "nominal":
        raise ModelTargetTypeMismatchError(
            f"{cfg.algo} is a classification model but outcome {outcome!r} is numeric. "
            "Declare it nominal (Dataset.with_kind) to classify."
        )
    levels = tuple(spec.levels or ())
    if cfg.algo == "logreg" and len(levels) != 2:
        raise ModelTargetTypeMismatchError(
            f"logreg needs a two-level outcome; {outcome!r} has levels {list(levels)}."
        )
    return levels


def _check_rows(cfg: Any, n: int, p: int, class_counts: Optional[Dict[int, int]]) -> None:
    algo = cfg.algo

    def _short(need: str) -> InsufficientDataError:
        return InsufficientDataError(f"{algo}: {need}; got n={n} rows for p={p} predictors.")

    if n < 1:
        raise _short("needs at least one row")
    if algo in ("linreg", "logreg") and n < p + 2:
        raise _short(f"needs at least p + 2 = {p + 2} rows")
    if algo == "elastic_net" and n < 2:
        raise _short("needs at least 2 rows")
    if algo in ("knn", "knn_reg") and n < int(cfg.neighbors):
        raise _short(f"needs at least neighbors = {int(cfg.neighbors)} rows")
    if class_counts is None:
        return
    if algo != "null" and len(class_counts) < 2:
        raise InsufficientDataError(f"{algo}: training data holds a single class; need at least two.")
    if algo == "lda" and n <= len(class_counts):
        raise _short(f"needs more rows than classes ({len(class_counts)})")
    if algo == "qda":
        small = {k: c for k, c in class_counts.items() if c <= p}
        if small:
            raise _short(f"needs more than p = {p} rows in every class")
    if algo == "naive_bayes":
        small = {k: c for k, c in class_counts.items() if c < 2}
        if small:
            raise _short("needs at least 2 rows in every class")


def _fit_logged(estimator: Any, X: np.ndarray, y: np.ndarray) -> Any:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        estimator.fit(X, y)
    for w in caught:
        logger.warning("%s: %s", type(estimator).__name__, w.message)
    return estimator


@dataclass(frozen=True)
class FittedModel:
    cfg: Any
    task: str
    estimator: Any
    predictors: Tuple[str, ...]
    outcome: str
    levels: Optional[Tuple[str, ...]]
    n_obs: int
    inference: Optional[Union[OLSInference, LogisticInference]] = None

    @property
    def algo(self) -> str:
        return str(self.cfg.algo)

    # ---------- prediction ----------
    def predict(
        self,
        dataset: Dataset,
        mode: Optional[PredictionMode] = None,
        *,
        level: float = 0.95,
    ) -> pd.DataFrame:
        """Predictions as a frame with one row per input row.

        Columns: ``.pred`` (numeric), ``.pred_class`` (class),
        ``.pred_<level>`` (prob), ``.pred`` + ``.pred_lower`` / ``.pred_upper``
        (conf_int, pred_int).
        """
        mode = mode or ("numeric" if self.task == "regression" else "class")
        self._check_mode(mode)
        X = design_matrix(dataset, self.predictors)

        if mode == "numeric":
            return pd.DataFrame({".pred": np.asarray(self.estimator.predict(X), dtype=float)})
        if mode in ("conf_int", "pred_int"):
            if not 0.0 < level < 1.0:
                raise ConfigurationError(f"Interval level must be in (0, 1); got {level}.")
            fit, lo, hi = self.inference.intervals(X, level=level, prediction=(mode == "pred_int"))
            return pd.DataFrame({".pred": fit, ".pred_lower": lo, ".pred_upper": hi})
        if mode == "class":
            codes = np.asarray(self.estimator.predict(X), dtype=int)
            return pd.DataFrame({".pred_class": [self.levels[c] for c in codes]})
        return pd.DataFrame(self._probabilities(X), columns=[f".pred_{lv}" for lv in self.levels])

    def _check_mode(self, mode: str) -> None:
        if mode not in ("numeric", "class", "prob", "conf_int", "pred_int"):
            raise ConfigurationError(f"Unknown prediction mode {mode!r}.")
        if self.task == "regression" and mode in ("class", "prob"):
            raise UnsupportedPredictionModeError(f"{self.algo} is a regression model; mode {mode!r} needs a classifier.")
        if self.task == "classification" and mode == "numeric":
            raise UnsupportedPredictionModeError(f"{self.algo} is a classifier; use mode 'class' or 'prob'.")
        if mode in ("conf_int", "pred_int") and not isinstance(self.inference, OLSInference):
            raise UnsupportedPredictionModeError(
                f"{self.algo} has no Gaussian error model; {mode!r} is only available for linreg."
            )

    def _probabilities(self, X: np.ndarray) -> np.ndarray:
        proba = np.asarray(self.estimator.predict_proba(X), dtype=float)
        out = np.zeros((X.shape[0], len(self.levels)), dtype=float)
        for j, code in enumerate(np.asarray(self.estimator.classes_, dtype=int)):
            out[:, code] = proba[:, j]
        return out

    # ---------- summaries ----------
    def coefficients(self, *, include_intercept: bool = False) -> pd.Series:
        """Fitted coefficients of a linear-family model, indexed by term."""
        if getattr(type(self.cfg), "family", None) != "linear":
            raise UnsupportedOperationError(f"{self.algo} has no coefficients.")
        coef = np.ravel(np.asarray(self.estimator.coef_, dtype=float))
        s = pd.Series(coef, index=list(self.predictors), dtype=float)
        if include_intercept:
            icpt = float(np.ravel(self.estimator.intercept_)[0])
            s = pd.concat([pd.Series({"(Intercept)": icpt}), s])
        return s

    def tidy(self) -> pd.DataFrame:
        """Coefficient table: term, estimate, std_error, statistic, p_value."""
        if self.inference is not None:
            return self.inference.coefficient_table()
        est = self.coefficients(include_intercept=True)
        nan = np.full(len(est), np.nan)
        return pd.DataFrame(
            {
                "term": list(est.index),
                "estimate": est.to_numpy(),
                "std_error": nan,
                "statistic": nan,
                "p_value": nan,
            }
        )

    def glance(self) -> pd.DataFrame:
        row: Dict[str, Any] = {"algo": self.algo, "n_obs": self.n_obs}
        if self.inference is not None:
            row.update(self.inference.summary())
        if self.algo in ("elastic_net", "logreg"):
            row["penalty"] = float(self.cfg.penalty)
            row["mixture"] = float(self.cfg.mixture)
            row["n_nonzero"] = int(np.sum(self.coefficients().to_numpy() != 0.0))
        if self.levels is not None:
            row["n_classes"] = len(self.levels)
        return pd.DataFrame([row])


def fit_model(
    cfg: Any,
    dataset: Dataset,
    predictors: Sequence[str],
    outcome: str,
    *,
    seed: Optional[int] = None,
) -> FittedModel:
    """Fit ``cfg`` on the (already transformed) ``dataset``."""
    pending = tunable_fields(cfg)
    if pending:
        raise ConfigurationError(
            f"{cfg.algo}: parameters {sorted(pending)} are still marked for tuning; finalize the workflow first."
        )
    if outcome not in dataset.schema:
        raise UnknownColumnError(f"Outcome column {outcome!r} not in data.")

    task = get_model_task(cfg)
    levels = _check_outcome(cfg, task, dataset, outcome)
    X = design_matrix(dataset, predictors)
    y_raw = dataset.column(outcome)
    if y_raw.isna().any():
        raise DataError(f"Outcome {outcome!r} has missing values.")

    class_counts: Optional[Dict[int, int]] = None
    if levels is None:
        y = pd.to_numeric(y_raw).to_numpy(dtype=float)
    else:
        unknown = sorted(set(y_raw) - set(levels))
        if unknown:
            raise DataError(f"Outcome {outcome!r} has values {unknown} outside its levels {list(levels)}.")
        index = {lv: i for i, lv in enumerate(levels)}
        y = np.array([index[v] for v in y_raw], dtype=int)
        codes, counts = np.unique(y, return_counts=True)
        class_counts = {int(c): int(k) for c, k in zip(codes, counts)}

    X, y = ensure_xy_aligned(X, y)
    n, p = X.shape
    _check_rows(cfg, n, p, class_counts)

    estimator = make_model_builder(cfg, seed=seed).make_estimator(n)
    _fit_logged(estimator, X, y)
    logger.debug("fitted %s on %d rows x %d predictors", cfg.algo, n, p)

    inference: Optional[Union[OLSInference, LogisticInference]] = None
    if cfg.algo == "linreg":
        intercept = bool(cfg.fit_intercept)
        beta = np.asarray(estimator.coef_, dtype=float)
        if intercept:
            beta = np.concatenate([[float(estimator.intercept_)], beta])
        inference = OLSInference.from_fit(X, y, beta, predictors, intercept=intercept)
    elif cfg.algo == "logreg" and float(cfg.penalty) == 0.0:
        beta = np.concatenate([np.ravel(estimator.intercept_), np.ravel(estimator.coef_)])
        inference = LogisticInference.from_fit(X, (y == 1).astype(float), beta, predictors)

    return FittedModel(
        cfg=cfg,
        task=task,
        estimator=estimator,
        predictors=tuple(predictors),
        outcome=outcome,
        levels=levels,
        n_obs=n,
        inference=inference,
    )


__all__ = ["FittedModel", "design_matrix", "fit_model"]
