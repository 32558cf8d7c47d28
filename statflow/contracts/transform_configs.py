"""Declarative preprocessing steps.

A :class:`TransformSpec` is an ordered list of step configs. It owns no data:
fitting it against a training dataset produces a fitted transform (see
:mod:`statflow.components.preprocessing.recipe`).
"""

from __future__ import annotations

import math
from typing import Annotated, Tuple, Union, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .selectors import (
    ColumnSelector,
    all_nominal_predictors,
    all_numeric_predictors,
    all_predictors,
)
from .tuning_configs import Tune, is_tune


class _StepBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class NormalizeStep(_StepBase):
    step: Literal["normalize"] = "normalize"
    columns: ColumnSelector = Field(default_factory=all_numeric_predictors)


class DummyStep(_StepBase):
    step: Literal["dummy"] = "dummy"
    columns: ColumnSelector = Field(default_factory=all_nominal_predictors)
    # False: treatment coding (first level is the reference and gets no column)
    one_hot: bool = False


class NovelStep(_StepBase):
    step: Literal["novel"] = "novel"
    columns: ColumnSelector = Field(default_factory=all_nominal_predictors)
    new_level: str = "new"


class ZeroVarianceStep(_StepBase):
    step: Literal["zv"] = "zv"
    columns: ColumnSelector = Field(default_factory=all_predictors)


class PolyStep(_StepBase):
    step: Literal["poly"] = "poly"
    columns: ColumnSelector
    degree: Union[int, Tune] = 2
    # True: literal powers x, x^2, ...; False: orthogonal polynomials
    raw: bool = False

    @field_validator("degree")
    @classmethod
    def _degree(cls, v):
        if not is_tune(v) and int(v) < 1:
            raise ValueError("degree must be >= 1")
        return v


class SplineStep(_StepBase):
    step: Literal["spline"] = "spline"
    columns: ColumnSelector
    deg_free: Union[int, Tune] = 5
    degree: int = Field(default=3, ge=1)
    # True: B-spline basis as is; False: orthonormalised on the training rows
    raw: bool = False

    @field_validator("deg_free")
    @classmethod
    def _deg_free(cls, v):
        if not is_tune(v) and int(v) < 1:
            raise ValueError("deg_free must be >= 1")
        return v


class InteractStep(_StepBase):
    step: Literal["interact"] = "interact"
    terms: Tuple[Tuple[str, str], ...]
    sep: str = "_x_"


class LogStep(_StepBase):
    step: Literal["log"] = "log"
    columns: ColumnSelector
    base: float = Field(default=math.e, gt=0)
    offset: float = 0.0

    @field_validator("base")
    @classmethod
    def _base(cls, v):
        if v == 1.0:
            raise ValueError("log base must not be 1")
        return v


StepConfig = Annotated[
    Union[
        NormalizeStep,
        DummyStep,
        NovelStep,
        ZeroVarianceStep,
        PolyStep,
        SplineStep,
        InteractStep,
        LogStep,
    ],
    Field(discriminator="step"),
]


class TransformSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    steps: Tuple[StepConfig, ...] = ()

    @classmethod
    def of(cls, *steps: StepConfig) -> "TransformSpec":
        return cls(steps=tuple(steps))

    def add(self, step: StepConfig) -> "TransformSpec":
        return TransformSpec(steps=self.steps + (step,))


__all__ = [
    "NormalizeStep",
    "DummyStep",
    "NovelStep",
    "ZeroVarianceStep",
    "PolyStep",
    "SplineStep",
    "InteractStep",
    "LogStep",
    "StepConfig",
    "TransformSpec",
]
