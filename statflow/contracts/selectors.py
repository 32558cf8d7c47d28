from __future__ import annotations

from typing import List, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from statflow.errors import UnknownColumnError

from .choices import SelectorKind
from .schema import ColumnSchema


class NamedColumns(BaseModel):
    model_config = ConfigDict(frozen=True)

    names: Tuple[str, ...]

    def resolve(self, schema: ColumnSchema, predictors: Sequence[str]) -> List[str]:
        missing = [n for n in self.names if n not in schema]
        if missing:
            raise UnknownColumnError(f"Selected columns not present: {missing}")
        return list(self.names)


class PredictorColumns(BaseModel):
    """All current predictor columns of a declared kind."""

    model_config = ConfigDict(frozen=True)

    kind: SelectorKind = "any"

    def resolve(self, schema: ColumnSchema, predictors: Sequence[str]) -> List[str]:
        present = [p for p in predictors if p in schema]
        if self.kind == "numeric":
            return schema.numeric(present)
        if self.kind == "nominal":
            return schema.nominal(present)
        return present


ColumnSelector = Union[NamedColumns, PredictorColumns]


def columns(*names: str) -> NamedColumns:
    return NamedColumns(names=tuple(names))


def all_predictors() -> PredictorColumns:
    return PredictorColumns(kind="any")


def all_numeric_predictors() -> PredictorColumns:
    return PredictorColumns(kind="numeric")


def all_nominal_predictors() -> PredictorColumns:
    return PredictorColumns(kind="nominal")


__all__ = [
    "NamedColumns",
    "PredictorColumns",
    "ColumnSelector",
    "columns",
    "all_predictors",
    "all_numeric_predictors",
    "all_nominal_predictors",
]
