from __future__ import annotations

from typing import Iterable, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from statflow.errors import UnknownColumnError

from .schema import ColumnSchema


class Roles(BaseModel):
    """Response / predictor role assignment.

    Structured stand-in for a ``y ~ a + b + a:b`` formula: the outcome column,
    the ordered predictor columns and explicit pairwise interaction terms.
    """

    model_config = ConfigDict(frozen=True)

    outcome: str
    predictors: Tuple[str, ...]
    interactions: Tuple[Tuple[str, str], ...] = ()

    @field_validator("predictors")
    @classmethod
    def _non_empty(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(v) == 0:
            raise ValueError("At least one predictor is required.")
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate predictors: {list(v)}")
        return v

    @model_validator(mode="after")
    def _consistent(self) -> "Roles":
        if self.outcome in self.predictors:
            raise ValueError(f"Outcome {self.outcome!r} cannot also be a predictor.")
        for a, b in self.interactions:
            if a == b:
                raise ValueError(f"Interaction of {a!r} with itself is not a pairwise term.")
            for term in (a, b):
                if term not in self.predictors:
                    raise ValueError(f"Interaction term {term!r} is not a predictor.")
        return self

    @classmethod
    def all_except(
        cls,
        schema: ColumnSchema,
        outcome: str,
        *,
        exclude: Iterable[str] = (),
        interactions: Iterable[Tuple[str, str]] = (),
    ) -> "Roles":
        """Every schema column except the outcome (and ``exclude``) as predictor."""
        schema.get(outcome)
        skip = {outcome, *exclude}
        return cls(
            outcome=outcome,
            predictors=tuple(n for n in schema.names if n not in skip),
            interactions=tuple(tuple(p) for p in interactions),
        )

    def check_against(self, schema: ColumnSchema, *, require_outcome: bool = True) -> None:
        needed = list(self.predictors) + ([self.outcome] if require_outcome else [])
        missing = [n for n in needed if n not in schema]
        if missing:
            raise UnknownColumnError(f"Columns missing from data: {missing}")


__all__ = ["Roles"]
