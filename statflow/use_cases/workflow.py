"""Workflow: roles + transform spec + model spec, fitted as one unit.

A workflow is an immutable recipe. Fitting it on a training dataset learns the
transform from those rows only, then fits the model on the transformed rows;
the result (:class:`FittedWorkflow`) predicts on any later dataset by
replaying the learnt transform.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from statflow.components.models.fitted import FittedModel, fit_model
from statflow.components.preprocessing.recipe import FittedTransform, fit_transform_spec
from statflow.contracts.choices import PredictionMode
from statflow.contracts.model_configs import ModelConfig, get_model_task
from statflow.contracts.roles import Roles
from statflow.contracts.transform_configs import TransformSpec
from statflow.contracts.tuning_configs import fill_tunables, tunable_fields
from statflow.core.dataset import Dataset
from statflow.errors import ConfigurationError, InvalidGridError

logger = logging.getLogger(__name__)


def _native(v: Any) -> Any:
    if isinstance(v, np.generic):
        return v.item()
    return v


class Workflow(BaseModel):
    model_config = ConfigDict(frozen=True)

    roles: Roles
    model: ModelConfig
    transform: TransformSpec = Field(default_factory=TransformSpec)
    # seeds estimators that draw random numbers (saga solver, coordinate shuffling)
    seed: Optional[int] = None

    @property
    def task(self) -> str:
        return get_model_task(self.model)

    # ---------- tuning markers ----------
    def _tunables(self) -> List[Tuple[str, str, Optional[int], str]]:
        """(id, component, step index, field) for every tune() marker."""
        found: List[Tuple[str, str, Optional[int], str]] = []
        for i, step in enumerate(self.transform.steps):
            for tid, fld in tunable_fields(step).items():
                found.append((tid, step.step, i, fld))
        for tid, fld in tunable_fields(self.model).items():
            found.append((tid, self.model.algo, None, fld))
        ids = [t[0] for t in found]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ConfigurationError(f"Tuning ids must be unique; repeated: {dupes}. Pass tune(id=...) to rename.")
        return found

    def tunable_ids(self) -> List[str]:
        return [t[0] for t in self._tunables()]

    def tunable_parameters(self) -> pd.DataFrame:
        rows = [
            {"id": tid, "component": comp, "step": idx, "field": fld}
            for tid, comp, idx, fld in self._tunables()
        ]
        return pd.DataFrame(rows, columns=["id", "component", "step", "field"])

    def is_final(self) -> bool:
        return not self._tunables()

    def with_params(self, params: Mapping[str, Any]) -> "Workflow":
        """Replace markers by ``params``; ids must match the markers exactly."""
        ids = self.tunable_ids()
        values = {str(k): _native(v) for k, v in params.items()}
        missing = [i for i in ids if i not in values]
        extra = [k for k in values if k not in ids]
        if missing or extra:
            raise InvalidGridError(
                f"Parameters must match tuning ids {ids}; missing {missing}, unexpected {extra}."
            )
        steps = tuple(fill_tunables(s, values) for s in self.transform.steps)
        return self.model_copy(
            update={
                "model": fill_tunables(self.model, values),
                "transform": TransformSpec(steps=steps),
            }
        )

    # ---------- updates ----------
    def update_model(self, model: ModelConfig) -> "Workflow":
        return Workflow(roles=self.roles, model=model, transform=self.transform, seed=self.seed)

    def update_transform(self, transform: TransformSpec) -> "Workflow":
        return Workflow(roles=self.roles, model=self.model, transform=transform, seed=self.seed)

    # ---------- fitting ----------
    def fit(self, dataset: Dataset) -> "FittedWorkflow":
        pending = self.tunable_ids()
        if pending:
            raise ConfigurationError(f"Workflow still has tuning markers {pending}; finalize it first.")
        transform = fit_transform_spec(self.transform, self.roles, dataset)
        baked = transform.apply(dataset)
        model = fit_model(
            self.model, baked, transform.predictors, self.roles.outcome, seed=self.seed
        )
        return FittedWorkflow(workflow=self, transform=transform, model=model)


@dataclass(frozen=True)
class FittedWorkflow:
    workflow: Workflow
    transform: FittedTransform
    model: FittedModel

    @property
    def outcome(self) -> str:
        return self.workflow.roles.outcome

    @property
    def levels(self) -> Optional[Tuple[str, ...]]:
        return self.model.levels

    def bake(self, dataset: Dataset) -> Dataset:
        """Transformed copy of ``dataset`` as the model sees it."""
        return self.transform.apply(dataset)

    def predict(
        self,
        dataset: Dataset,
        mode: Optional[PredictionMode] = None,
        *,
        level: float = 0.95,
    ) -> pd.DataFrame:
        return self.model.predict(self.transform.apply(dataset), mode, level=level)

    def predict_all(self, dataset: Dataset) -> pd.DataFrame:
        """Every default prediction column: ``.pred`` or ``.pred_class`` plus probabilities."""
        baked = self.transform.apply(dataset)
        if self.model.task == "regression":
            return self.model.predict(baked, "numeric")
        classes = self.model.predict(baked, "class")
        proba = self.model.predict(baked, "prob")
        return pd.concat([classes, proba], axis=1)

    def augment(self, dataset: Dataset) -> pd.DataFrame:
        """``dataset`` with predictions bound on (and ``.resid`` for regression)."""
        frame = dataset.frame
        preds = self.predict_all(dataset)
        out = pd.concat([frame, preds], axis=1)
        if self.model.task == "regression" and self.outcome in frame.columns:
            out[".resid"] = pd.to_numeric(frame[self.outcome]).to_numpy(dtype=float) - preds[".pred"].to_numpy()
        return out

    def tidy(self) -> pd.DataFrame:
        return self.model.tidy()

    def glance(self) -> pd.DataFrame:
        return self.model.glance()


def finalize_workflow(workflow: Workflow, params: Mapping[str, Any]) -> Workflow:
    """Concrete workflow with every ``tune()`` marker replaced.

    ``params`` may be a dict, a one-row frame or a pandas Series (e.g. a
    ``select_best`` result); extra bookkeeping keys like ``.config`` are ignored.
    """
    if isinstance(params, pd.DataFrame):
        if len(params) != 1:
            raise InvalidGridError(f"Expected one row of parameters; got {len(params)}.")
        params = params.iloc[0].to_dict()
    elif isinstance(params, pd.Series):
        params = params.to_dict()
    values: Dict[str, Any] = {k: v for k, v in dict(params).items() if not str(k).startswith(".")}
    final = workflow.with_params(values)
    logger.info("finalized workflow with %s", values)
    return final


__all__ = ["Workflow", "FittedWorkflow", "finalize_workflow"]
