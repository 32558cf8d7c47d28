"""Fit a :class:`TransformSpec` on training rows and replay it anywhere.

Fitting reads only the dataset it is handed. Nominal predictors are re-declared
with the levels actually observed in those rows, so a level that appears only
in held-out data is "unseen" for every step downstream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import pandas as pd

from statflow.contracts.roles import Roles
from statflow.contracts.schema import ColumnSchema, ColumnSpec
from statflow.contracts.transform_configs import InteractStep, TransformSpec
from statflow.core.dataset import Dataset
from statflow.errors import DataError
from statflow.registries.steps import make_step_fitter

from .steps import FittedStep, StepState

logger = logging.getLogger(__name__)


def _observed_levels(spec: ColumnSpec, series: pd.Series) -> ColumnSpec:
    seen = {str(v) for v in series.dropna().unique()}
    declared = [lv for lv in (spec.levels or ()) if lv in seen]
    extra = sorted(seen - set(declared))
    return ColumnSpec(name=spec.name, kind="nominal", levels=tuple(declared + extra))


def _merge_outcome(trained: ColumnSpec, incoming: ColumnSpec) -> ColumnSpec:
    if trained.kind != "nominal" or incoming.kind != "nominal":
        return ColumnSpec(name=trained.name, kind=incoming.kind, levels=incoming.levels)
    levels = tuple(trained.levels or ())
    extra = tuple(lv for lv in (incoming.levels or ()) if lv not in levels)
    return ColumnSpec(name=trained.name, kind="nominal", levels=levels + extra)


@dataclass(frozen=True)
class FittedTransform:
    roles: Roles
    steps: Tuple[FittedStep, ...]
    input_schema: ColumnSchema
    output_schema: ColumnSchema
    outcome_spec: ColumnSpec
    n_train: int

    @property
    def predictors(self) -> List[str]:
        """Predictor columns emitted by :meth:`apply`, in order."""
        return self.output_schema.names

    def apply(self, dataset: Dataset) -> Dataset:
        """Transform ``dataset``; the outcome column is optional and passed through."""
        self.roles.check_against(dataset.schema, require_outcome=False)
        for p in self.roles.predictors:
            if dataset.schema.kind_of(p) != self.input_schema.kind_of(p):
                raise DataError(
                    f"Predictor {p!r} is {dataset.schema.kind_of(p)} here but was "
                    f"{self.input_schema.kind_of(p)} at fit time."
                )

        frame = dataset.frame
        state = StepState(
            frame=frame[list(self.roles.predictors)].copy(),
            schema=self.input_schema,
            predictors=list(self.roles.predictors),
        )
        for step in self.steps:
            step.apply(state)

        out = state.frame[state.predictors].copy()
        specs = list(state.schema.select(state.predictors).columns)
        outcome = self.roles.outcome
        if outcome in dataset.schema:
            out[outcome] = frame[outcome].to_numpy()
            specs.append(_merge_outcome(self.outcome_spec, dataset.schema.get(outcome)))
        return Dataset(out, ColumnSchema(columns=tuple(specs)))


def fit_transform_spec(spec: TransformSpec, roles: Roles, dataset: Dataset) -> FittedTransform:
    """Learn every step of ``spec`` from ``dataset`` (the training rows only)."""
    roles.check_against(dataset.schema, require_outcome=True)

    frame = dataset.frame
    specs = []
    for p in roles.predictors:
        col = dataset.schema.get(p)
        specs.append(_observed_levels(col, frame[p]) if col.kind == "nominal" else col)
    input_schema = ColumnSchema(columns=tuple(specs))

    step_cfgs = list(spec.steps)
    if roles.interactions:
        step_cfgs.append(InteractStep(terms=roles.interactions))

    state = StepState(
        frame=frame[list(roles.predictors)].copy(),
        schema=input_schema,
        predictors=list(roles.predictors),
    )
    fitted: List[FittedStep] = []
    for cfg in step_cfgs:
        step = make_step_fitter(cfg)(cfg, state)
        step.apply(state)
        fitted.append(step)
        logger.debug("fitted %s step; %d predictor(s) now", cfg.step, len(state.predictors))

    output_schema = state.schema.select(state.predictors)
    logger.debug(
        "transform fitted on %d rows: %d -> %d predictor(s)",
        len(dataset), len(roles.predictors), len(output_schema.names),
    )
    return FittedTransform(
        roles=roles,
        steps=tuple(fitted),
        input_schema=input_schema,
        output_schema=output_schema,
        outcome_spec=dataset.schema.get(roles.outcome),
        n_train=len(dataset),
    )


__all__ = ["FittedTransform", "fit_transform_spec"]
