"""Declared column types.

Every dataset carries a :class:`ColumnSchema`. Steps and models ask it typed
questions (``is_nominal``, ``numeric()``) instead of inspecting dtypes of the
raw frame, so the same column is treated the same way on training data, fold
data and new data.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, model_validator

from statflow.errors import ConfigurationError, UnknownColumnError

from .choices import ColumnKind


class ColumnSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: ColumnKind
    # nominal only: the ordered level set (first level = reference / event)
    levels: Optional[Tuple[str, ...]] = None

    @model_validator(mode="after")
    def _check_levels(self) -> "ColumnSpec":
        if self.kind == "numeric" and self.levels is not None:
            raise ValueError(f"Numeric column {self.name!r} cannot declare levels.")
        return self


class ColumnSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    columns: Tuple[ColumnSpec, ...] = ()

    @model_validator(mode="after")
    def _unique_names(self) -> "ColumnSchema":
        names = [c.name for c in self.columns]
        if len(set(names)) != len(names):
            raise ValueError("Column names must be unique.")
        return self

    # ---------- lookup ----------
    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]

    def __contains__(self, name: object) -> bool:
        return any(c.name == name for c in self.columns)

    def get(self, name: str) -> ColumnSpec:
        for c in self.columns:
            if c.name == name:
                return c
        raise UnknownColumnError(f"Column {name!r} not in schema; known: {self.names}")

    def kind_of(self, name: str) -> ColumnKind:
        return self.get(name).kind

    def levels_of(self, name: str) -> Tuple[str, ...]:
        spec = self.get(name)
        if spec.kind != "nominal":
            raise ConfigurationError(f"Column {name!r} is numeric and has no levels.")
        return tuple(spec.levels or ())

    # ---------- typed predicates ----------
    def is_numeric(self, name: str) -> bool:
        return self.kind_of(name) == "numeric"

    def is_nominal(self, name: str) -> bool:
        return self.kind_of(name) == "nominal"

    def numeric(self, among: Optional[Iterable[str]] = None) -> List[str]:
        pool = self.names if among is None else list(among)
        return [n for n in pool if self.is_numeric(n)]

    def nominal(self, among: Optional[Iterable[str]] = None) -> List[str]:
        pool = self.names if among is None else list(among)
        return [n for n in pool if self.is_nominal(n)]

    # ---------- derivation ----------
    def select(self, names: Iterable[str]) -> "ColumnSchema":
        return ColumnSchema(columns=tuple(self.get(n) for n in names))

    def drop(self, names: Iterable[str]) -> "ColumnSchema":
        gone = set(names)
        return ColumnSchema(columns=tuple(c for c in self.columns if c.name not in gone))

    def with_column(self, spec: ColumnSpec) -> "ColumnSchema":
        kept = tuple(c for c in self.columns if c.name != spec.name)
        return ColumnSchema(columns=kept + (spec,))


def _levels_for(series: pd.Series) -> Tuple[str, ...]:
    if isinstance(series.dtype, pd.CategoricalDtype):
        return tuple(str(v) for v in series.cat.categories)
    return tuple(sorted({str(v) for v in series.dropna().unique()}))


def infer_schema(
    frame: pd.DataFrame,
    kinds: Optional[Mapping[str, ColumnKind]] = None,
    levels: Optional[Mapping[str, Iterable[str]]] = None,
) -> ColumnSchema:
    """Declare a kind for every column of ``frame``.

    Booleans, strings, objects and categoricals become nominal; everything
    numeric stays numeric. ``kinds`` overrides the inference per column (e.g. an
    integer-coded class label) and ``levels`` fixes the level order.
    """
    kinds = dict(kinds or {})
    levels = {k: tuple(str(v) for v in vs) for k, vs in (levels or {}).items()}

    unknown = (set(kinds) | set(levels)) - set(str(c) for c in frame.columns)
    if unknown:
        raise UnknownColumnError(f"Schema overrides reference unknown columns: {sorted(unknown)}")

    specs: List[ColumnSpec] = []
    for col in frame.columns:
        name = str(col)
        series = frame[col]
        kind = kinds.get(name)
        if kind is None:
            numeric_dtype = pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)
            kind = "numeric" if numeric_dtype else "nominal"
        if kind == "nominal":
            lv = levels.get(name) or _levels_for(series)
            specs.append(ColumnSpec(name=name, kind="nominal", levels=lv))
        else:
            specs.append(ColumnSpec(name=name, kind="numeric"))
    return ColumnSchema(columns=tuple(specs))


__all__ = ["ColumnSpec", "ColumnSchema", "infer_schema"]
