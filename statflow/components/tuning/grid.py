from __future__ import annotations

import itertools
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from statflow.contracts.tuning_configs import ParamRange
from statflow.errors import InvalidGridError

GridLike = Union[pd.DataFrame, Sequence[Mapping[str, Any]]]


def _to_py(v: Any) -> Any:
    if isinstance(v, np.generic):
        return v.item()
    return v


def expand_grid(**values: Iterable[Any]) -> pd.DataFrame:
    """Every combination of the given values, first argument varying slowest."""
    if not values:
        raise InvalidGridError("expand_grid needs at least one parameter.")
    names = list(values)
    lists = [list(v) for v in values.values()]
    empty = [n for n, v in zip(names, lists) if not v]
    if empty:
        raise InvalidGridError(f"No values given for {empty}.")
    rows = [dict(zip(names, combo)) for combo in itertools.product(*lists)]
    return pd.DataFrame(rows, columns=names)


def grid_regular(*ranges: ParamRange, levels: Union[int, Mapping[str, int]] = 3) -> pd.DataFrame:
    """Regular grid: ``levels`` evenly spaced values per range, all combinations.

    Log-scaled ranges are spaced evenly on the log10 scale.
    """
    if not ranges:
        raise InvalidGridError("grid_regular needs at least one parameter range.")
    names = [r.name for r in ranges]
    if len(set(names)) != len(names):
        raise InvalidGridError(f"Duplicate parameter names: {names}")
    per: Dict[str, int] = {}
    for r in ranges:
        k = levels.get(r.name, 3) if isinstance(levels, Mapping) else levels
        if int(k) < 1:
            raise InvalidGridError(f"levels for {r.name!r} must be >= 1; got {k}.")
        per[r.name] = int(k)
    return expand_grid(**{r.name: r.values(per[r.name]) for r in ranges})


def validate_grid(grid: Optional[GridLike], ids: Sequence[str]) -> List[Dict[str, Any]]:
    """Candidates as a list of plain dicts keyed exactly by ``ids``."""
    ids = list(ids)
    if grid is None:
        if ids:
            raise InvalidGridError(f"Workflow has tuning parameters {ids}; a grid is required.")
        return [{}]

    frame = grid.copy() if isinstance(grid, pd.DataFrame) else pd.DataFrame(list(grid))
    if frame.empty and ids:
        raise InvalidGridError("Grid has no candidates.")
    if not ids:
        if len(frame.columns):
            raise InvalidGridError(f"Workflow has no tuning parameters; grid columns {list(frame.columns)} are unexpected.")
        return [{}]

    cols = [str(c) for c in frame.columns]
    missing = [i for i in ids if i not in cols]
    extra = [c for c in cols if c not in ids]
    if missing or extra:
        raise InvalidGridError(f"Grid columns must equal tuning ids {ids}; missing {missing}, unexpected {extra}.")

    frame = frame[ids]
    if frame.isna().any().any():
        raise InvalidGridError("Grid contains missing values.")
    if frame.duplicated().any():
        raise InvalidGridError(f"Grid has {int(frame.duplicated().sum())} duplicated candidate(s).")

    out: List[Dict[str, Any]] = []
    for rec in frame.to_dict(orient="records"):
        row = {k: _to_py(v) for k, v in rec.items()}
        for k, v in row.items():
            if isinstance(v, float) and not math.isfinite(v):
                raise InvalidGridError(f"Grid value for {k!r} is not finite: {v}.")
        out.append(row)
    return out


__all__ = ["expand_grid", "grid_regular", "validate_grid", "GridLike"]
