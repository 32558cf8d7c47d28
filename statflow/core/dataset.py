"""Immutable tabular dataset.

A :class:`Dataset` pairs a pandas frame with its declared
:class:`~statflow.contracts.schema.ColumnSchema`. It is never mutated after
construction: every accessor hands out copies and every derivation
(``mutate``, ``filter``, ``take``) returns a new dataset. That makes datasets
safe to share across parallel fold fits.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from statflow.contracts.choices import ColumnKind
from statflow.contracts.schema import ColumnSchema, ColumnSpec, infer_schema
from statflow.errors import ConfigurationError, UnknownColumnError

ColumnValues = Union[Callable[[pd.DataFrame], Any], Sequence[Any], np.ndarray, pd.Series]


def _normalise_nominal(frame: pd.DataFrame, schema: ColumnSchema) -> pd.DataFrame:
    # nominal values are compared as strings everywhere downstream
    for name in schema.nominal():
        col = frame[name]
        frame[name] = col.where(col.isna(), col.astype(str)).astype(object)
    return frame


class Dataset:
    __slots__ = ("_frame", "_schema")

    def __init__(self, frame: pd.DataFrame, schema: ColumnSchema):
        names = [str(c) for c in frame.columns]
        if names != schema.names:
            raise ConfigurationError(
                f"Frame columns {names} do not match schema columns {schema.names}."
            )
        data = frame.copy()
        data.columns = names
        data = data.reset_index(drop=True)
        self._frame = _normalise_nominal(data, schema)
        self._schema = schema

    # ---------- construction ----------
    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        *,
        kinds: Optional[Mapping[str, ColumnKind]] = None,
        levels: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> "Dataset":
        return cls(frame, infer_schema(frame, kinds=kinds, levels=levels))

    # ---------- introspection ----------
    @property
    def schema(self) -> ColumnSchema:
        return self._schema

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def columns(self) -> list[str]:
        return self._schema.names

    @property
    def shape(self) -> tuple[int, int]:
        return self._frame.shape

    def __len__(self) -> int:
        return int(self._frame.shape[0])

    def __repr__(self) -> str:
        return f"Dataset(n_rows={len(self)}, columns={self.columns})"

    def column(self, name: str) -> pd.Series:
        self._schema.get(name)
        return self._frame[name].copy()

    def head(self, n: int = 5) -> pd.DataFrame:
        return self._frame.head(n).copy()

    # ---------- derivation ----------
    def take(self, indices: Sequence[int]) -> "Dataset":
        """Rows at the given positions, in that order."""
        idx = np.asarray(indices, dtype=int)
        return Dataset(self._frame.iloc[idx], self._schema)

    def filter(self, mask: Union[Callable[[pd.DataFrame], Any], Sequence[bool], np.ndarray]) -> "Dataset":
        m = mask(self.frame) if callable(mask) else mask
        m = np.asarray(m, dtype=bool)
        if m.shape != (len(self),):
            raise ConfigurationError(f"Filter mask must have shape ({len(self)},); got {m.shape}.")
        return Dataset(self._frame.loc[m], self._schema)

    def select(self, names: Iterable[str]) -> "Dataset":
        names = list(names)
        sub = self._schema.select(names)
        return Dataset(self._frame[names], sub)

    def drop(self, names: Iterable[str]) -> "Dataset":
        names = list(names)
        for n in names:
            self._schema.get(n)
        return Dataset(self._frame.drop(columns=names), self._schema.drop(names))

    def mutate(
        self,
        *,
        kinds: Optional[Mapping[str, ColumnKind]] = None,
        levels: Optional[Mapping[str, Iterable[str]]] = None,
        **new_columns: ColumnValues,
    ) -> "Dataset":
        """Add or replace columns computed from the current ones.

        Each value is either a callable receiving a copy of the frame or an
        array-like of length ``len(self)``. Kinds of new columns are inferred
        unless given in ``kinds``.
        """
        data = self.frame
        for name, values in new_columns.items():
            vals = values(data.copy()) if callable(values) else values
            arr = vals if isinstance(vals, pd.Series) else pd.Series(np.asarray(vals))
            if len(arr) != len(data):
                raise ConfigurationError(
                    f"Column {name!r} has {len(arr)} values for {len(data)} rows."
                )
            data[name] = arr.to_numpy()

        derived = infer_schema(
            data[list(new_columns)],
            kinds={k: v for k, v in (kinds or {}).items() if k in new_columns},
            levels={k: v for k, v in (levels or {}).items() if k in new_columns},
        )
        schema = self._schema
        for spec in derived.columns:
            schema = schema.with_column(spec)
        # keep the frame column order aligned with the schema
        return Dataset(data[schema.names], schema)

    def with_kind(self, name: str, kind: ColumnKind, levels: Optional[Iterable[str]] = None) -> "Dataset":
        """Re-declare one column (e.g. an integer-coded class label as nominal)."""
        if name not in self._schema:
            raise UnknownColumnError(f"Column {name!r} not in schema; known: {self.columns}")
        if kind == "nominal":
            lv = tuple(str(v) for v in levels) if levels is not None else infer_schema(
                self._frame[[name]].astype(str)
            ).levels_of(name)
            spec = ColumnSpec(name=name, kind="nominal", levels=lv)
            data = self.frame
            data[name] = data[name].astype(str)
        else:
            spec = ColumnSpec(name=name, kind="numeric")
            data = self.frame
            data[name] = pd.to_numeric(data[name])
        cols = tuple(spec if c.name == name else c for c in self._schema.columns)
        return Dataset(data, ColumnSchema(columns=cols))


__all__ = ["Dataset"]
