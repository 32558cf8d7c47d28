"""Fitted preprocessing steps.

Each ``fit_*`` function reads the training state once and returns a frozen
fitted step. A fitted step's ``apply`` rewrites a :class:`StepState` (frame,
schema, current predictor list) using only what it learnt at fit time, so the
same step produces the same columns for training rows, fold rows and new data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd

from statflow.contracts.schema import ColumnSchema, ColumnSpec
from statflow.contracts.transform_configs import (
    DummyStep,
    InteractStep,
    LogStep,
    NormalizeStep,
    NovelStep,
    PolyStep,
    SplineStep,
    ZeroVarianceStep,
)
from statflow.contracts.tuning_configs import is_tune
from statflow.errors import (
    ConfigurationError,
    DataError,
    NonNumericPredictorError,
    UnknownColumnError,
    UnseenLevelError,
)

from .basis import OrthoPolyCoefs, SplineBasis, apply_ortho_poly, fit_ortho_poly, fit_spline, raw_poly

logger = logging.getLogger(__name__)


@dataclass
class StepState:
    frame: pd.DataFrame
    schema: ColumnSchema
    predictors: List[str]
    # derived column -> predictor it was expanded from (dummy/poly/spline)
    origins: Dict[str, str] = field(default_factory=dict)

    def splice(self, old: str, new: Dict[str, np.ndarray]) -> None:
        """Replace column ``old`` by numeric columns ``new`` at the same position."""
        cols = list(self.frame.columns)
        pos = cols.index(old)
        block = pd.DataFrame(new, index=self.frame.index)
        self.frame = pd.concat(
            [self.frame.iloc[:, :pos], block, self.frame.iloc[:, pos + 1 :]], axis=1
        )

        specs = []
        for c in self.schema.columns:
            if c.name == old:
                specs.extend(ColumnSpec(name=n, kind="numeric") for n in new)
            else:
                specs.append(c)
        self.schema = ColumnSchema(columns=tuple(specs))

        if old in self.predictors:
            i = self.predictors.index(old)
            self.predictors[i : i + 1] = list(new)
        root = self.origins.get(old, old)
        for n in new:
            self.origins[n] = root

    def append(self, new: Dict[str, np.ndarray]) -> None:
        for name, values in new.items():
            self.frame[name] = values
            self.schema = self.schema.with_column(ColumnSpec(name=name, kind="numeric"))
            self.predictors.append(name)

    def remove(self, names: Sequence[str]) -> None:
        gone = set(names)
        self.frame = self.frame.drop(columns=[n for n in names if n in self.frame.columns])
        self.schema = self.schema.drop(gone)
        self.predictors = [p for p in self.predictors if p not in gone]


class FittedStep(Protocol):
    step: str

    def apply(self, state: StepState) -> None:
        ...


# ---------- helpers ----------
def _selected(cfg, state: StepState) -> List[str]:
    cols = cfg.columns.resolve(state.schema, state.predictors)
    outside = [c for c in cols if c not in state.predictors]
    if outside:
        raise ConfigurationError(f"{cfg.step} step may only select predictors; not predictors: {outside}")
    return cols


def _require_numeric(step: str, cols: Sequence[str], schema: ColumnSchema) -> None:
    bad = schema.nominal(cols)
    if bad:
        raise NonNumericPredictorError(
            f"{step} step needs numeric columns; nominal: {bad}. Encode them with a dummy step first."
        )


def _require_present(step: str, cols: Sequence[str], frame: pd.DataFrame) -> None:
    missing = [c for c in cols if c not in frame.columns]
    if missing:
        raise UnknownColumnError(f"{step} step: columns missing from data: {missing}")


def _numeric_values(frame: pd.DataFrame, col: str) -> np.ndarray:
    return pd.to_numeric(frame[col]).to_numpy(dtype=float)


def _concrete(step: str, name: str, value) -> int:
    if is_tune(value):
        raise ConfigurationError(
            f"{step} step: {name!r} is still marked for tuning; finalize the workflow first."
        )
    return int(value)


# ---------- normalize ----------
@dataclass(frozen=True)
class FittedNormalize:
    means: Dict[str, float]
    sds: Dict[str, float]
    step: str = "normalize"

    def apply(self, state: StepState) -> None:
        _require_present(self.step, list(self.means), state.frame)
        for col, mu in self.means.items():
            state.frame[col] = (_numeric_values(state.frame, col) - mu) / self.sds[col]


def fit_normalize(cfg: NormalizeStep, state: StepState) -> FittedNormalize:
    cols = _selected(cfg, state)
    _require_numeric(cfg.step, cols, state.schema)
    means: Dict[str, float] = {}
    sds: Dict[str, float] = {}
    for col in cols:
        x = _numeric_values(state.frame, col)
        sd = float(np.nanstd(x, ddof=1)) if np.sum(~np.isnan(x)) > 1 else float("nan")
        if not np.isfinite(sd) or sd == 0.0:
            raise DataError(
                f"Cannot normalize {col!r}: zero variance in the training data. "
                "Add a zv step before normalize."
            )
        means[col] = float(np.nanmean(x))
        sds[col] = sd
    return FittedNormalize(means=means, sds=sds)


# ---------- novel ----------
@dataclass(frozen=True)
class FittedNovel:
    levels: Dict[str, Tuple[str, ...]]
    new_level: str
    step: str = "novel"

    def apply(self, state: StepState) -> None:
        _require_present(self.step, list(self.levels), state.frame)
        for col, lv in self.levels.items():
            s = state.frame[col]
            unseen = s.notna() & ~s.isin(lv)
            if unseen.any():
                logger.debug("novel: %d row(s) of %r mapped to %r", int(unseen.sum()), col, self.new_level)
            state.frame[col] = s.where(~unseen, self.new_level)
            out_levels = lv if self.new_level in lv else lv + (self.new_level,)
            state.schema = ColumnSchema(
                columns=tuple(
                    ColumnSpec(name=col, kind="nominal", levels=out_levels) if c.name == col else c
                    for c in state.schema.columns
                )
            )


def fit_novel(cfg: NovelStep, state: StepState) -> FittedNovel:
    cols = _selected(cfg, state)
    numeric = state.schema.numeric(cols)
    if numeric:
        raise ConfigurationError(f"novel step applies to nominal columns only; numeric: {numeric}")
    return FittedNovel(levels={c: state.schema.levels_of(c) for c in cols}, new_level=cfg.new_level)


# ---------- dummy ----------
@dataclass(frozen=True)
class FittedDummy:
    levels: Dict[str, Tuple[str, ...]]
    one_hot: bool
    step: str = "dummy"

    def apply(self, state: StepState) -> None:
        _require_present(self.step, list(self.levels), state.frame)
        for col, lv in self.levels.items():
            s = state.frame[col]
            unseen = sorted({str(v) for v in s[s.notna() & ~s.isin(lv)].unique()})
            if unseen:
                raise UnseenLevelError(
                    f"Column {col!r} has level(s) {unseen} that were not present at fit time "
                    f"(known: {list(lv)}). Add a novel step to bucket them."
                )
            missing = s.isna().to_numpy()
            emitted = lv if self.one_hot else lv[1:]
            block: Dict[str, np.ndarray] = {}
            for level in emitted:
                ind = (s == level).to_numpy(dtype=float)
                ind[missing] = np.nan
                block[f"{col}_{level}"] = ind
            state.splice(col, block)


def fit_dummy(cfg: DummyStep, state: StepState) -> FittedDummy:
    cols = _selected(cfg, state)
    numeric = state.schema.numeric(cols)
    if numeric:
        raise ConfigurationError(f"dummy step applies to nominal columns only; numeric: {numeric}")
    levels = {c: state.schema.levels_of(c) for c in cols}
    for c, lv in levels.items():
        if len(lv) < 2 and not cfg.one_hot:
            logger.warning("dummy: %r has a single level %s in training data; it produces no columns", c, list(lv))
    return FittedDummy(levels=levels, one_hot=cfg.one_hot)


# ---------- zero variance ----------
@dataclass(frozen=True)
class FittedZeroVariance:
    removed: Tuple[str, ...]
    step: str = "zv"

    def apply(self, state: StepState) -> None:
        state.remove(self.removed)


def fit_zero_variance(cfg: ZeroVarianceStep, state: StepState) -> FittedZeroVariance:
    cols = _selected(cfg, state)
    removed = tuple(c for c in cols if state.frame[c].nunique(dropna=True) <= 1)
    if removed:
        logger.warning("zv: dropping zero-variance column(s) %s", list(removed))
    return FittedZeroVariance(removed=removed)


# ---------- poly ----------
@dataclass(frozen=True)
class FittedPoly:
    degree: int
    raw: bool
    coefs: Dict[str, Optional[OrthoPolyCoefs]]
    step: str = "poly"

    def apply(self, state: StepState) -> None:
        _require_present(self.step, list(self.coefs), state.frame)
        for col, coefs in self.coefs.items():
            x = _numeric_values(state.frame, col)
            basis = raw_poly(x, self.degree) if coefs is None else apply_ortho_poly(x, coefs)
            state.splice(col, {f"{col}_poly_{k + 1}": basis[:, k] for k in range(self.degree)})


def fit_poly(cfg: PolyStep, state: StepState) -> FittedPoly:
    cols = _selected(cfg, state)
    _require_numeric(cfg.step, cols, state.schema)
    degree = _concrete(cfg.step, "degree", cfg.degree)
    coefs: Dict[str, Optional[OrthoPolyCoefs]] = {}
    for col in cols:
        if cfg.raw:
            coefs[col] = None
        else:
            x = _numeric_values(state.frame, col)
            coefs[col] = fit_ortho_poly(x[~np.isnan(x)], degree)
    return FittedPoly(degree=degree, raw=cfg.raw, coefs=coefs)


# ---------- spline ----------
@dataclass(frozen=True)
class FittedSpline:
    bases: Dict[str, SplineBasis]
    step: str = "spline"

    def apply(self, state: StepState) -> None:
        _require_present(self.step, list(self.bases), state.frame)
        for col, basis in self.bases.items():
            B = basis.apply(_numeric_values(state.frame, col))
            state.splice(col, {f"{col}_bs_{k + 1}": B[:, k] for k in range(B.shape[1])})


def fit_spline_step(cfg: SplineStep, state: StepState) -> FittedSpline:
    cols = _selected(cfg, state)
    _require_numeric(cfg.step, cols, state.schema)
    deg_free = _concrete(cfg.step, "deg_free", cfg.deg_free)
    bases = {
        col: fit_spline(_numeric_values(state.frame, col), deg_free, cfg.degree, raw=cfg.raw)
        for col in cols
    }
    return FittedSpline(bases=bases)


# ---------- interact ----------
@dataclass(frozen=True)
class FittedInteract:
    products: Tuple[Tuple[str, str, str], ...]
    step: str = "interact"

    def apply(self, state: StepState) -> None:
        needed = sorted({c for a, b, _ in self.products for c in (a, b)})
        _require_present(self.step, needed, state.frame)
        state.append(
            {
                name: _numeric_values(state.frame, a) * _numeric_values(state.frame, b)
                for a, b, name in self.products
            }
        )


def _expand_term(term: str, state: StepState) -> List[str]:
    if term in state.predictors:
        if state.schema.is_nominal(term):
            raise NonNumericPredictorError(
                f"Interaction term {term!r} is nominal; add a dummy step before the interaction."
            )
        return [term]
    derived = [p for p in state.predictors if state.origins.get(p) == term]
    if not derived:
        raise UnknownColumnError(f"Interaction term {term!r} matches no current predictor.")
    return derived


def fit_interact(cfg: InteractStep, state: StepState) -> FittedInteract:
    products: List[Tuple[str, str, str]] = []
    seen = set(state.frame.columns)
    for a, b in cfg.terms:
        for x in _expand_term(a, state):
            for y in _expand_term(b, state):
                name = f"{x}{cfg.sep}{y}"
                if name in seen:
                    continue
                seen.add(name)
                products.append((x, y, name))
    return FittedInteract(products=tuple(products))


# ---------- log ----------
@dataclass(frozen=True)
class FittedLog:
    columns: Tuple[str, ...]
    base: float
    offset: float
    step: str = "log"

    def apply(self, state: StepState) -> None:
        _require_present(self.step, self.columns, state.frame)
        for col in self.columns:
            x = _numeric_values(state.frame, col) + self.offset
            if np.any(x[~np.isnan(x)] <= 0):
                raise DataError(f"log step: {col!r} has values <= 0 after adding offset {self.offset}.")
            state.frame[col] = np.log(x) / np.log(self.base)


def fit_log(cfg: LogStep, state: StepState) -> FittedLog:
    cols = _selected(cfg, state)
    _require_numeric(cfg.step, cols, state.schema)
    return FittedLog(columns=tuple(cols), base=float(cfg.base), offset=float(cfg.offset))


__all__ = [
    "StepState",
    "FittedStep",
    "fit_normalize",
    "fit_novel",
    "fit_dummy",
    "fit_zero_variance",
    "fit_poly",
    "fit_spline_step",
    "fit_interact",
    "fit_log",
]
