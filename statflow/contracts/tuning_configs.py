from __future__ import annotations

import math
from typing import Any, List, Literal, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

from statflow.errors import ConfigurationError


class Tune(BaseModel):
    """Placeholder for a hyperparameter whose value is chosen by tuning.

    ``id`` names the grid column; when omitted the owning field name is used.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None


def tune(id: Optional[str] = None) -> Tune:
    return Tune(id=id)


def is_tune(value: Any) -> bool:
    return isinstance(value, Tune)


class ParamRange(BaseModel):
    """A one-dimensional hyperparameter range for regular grids.

    ``low``/``high`` are expressed on the ``transform`` scale, so
    ``penalty()`` spans 1e-10 .. 1 as (-10, 0) on log10.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    low: float
    high: float
    transform: Literal["identity", "log10"] = "identity"
    integer: bool = False

    @model_validator(mode="after")
    def _ordered(self) -> "ParamRange":
        if not (math.isfinite(self.low) and math.isfinite(self.high)):
            raise ValueError("Range bounds must be finite.")
        if self.low > self.high:
            raise ValueError(f"{self.name}: low ({self.low}) > high ({self.high}).")
        return self

    def values(self, levels: int) -> List[Union[int, float]]:
        if levels < 1:
            raise ValueError("levels must be >= 1.")
        pts = np.linspace(self.low, self.high, levels) if levels > 1 else np.array([self.low])
        if self.transform == "log10":
            pts = np.power(10.0, pts)
        if self.integer:
            out: List[Union[int, float]] = []
            for v in np.round(pts).astype(int).tolist():
                if v not in out:
                    out.append(int(v))
            return out
        return [float(v) for v in pts.tolist()]

    def with_range(self, low: float, high: float) -> "ParamRange":
        return self.model_copy(update={"low": float(low), "high": float(high)})


def penalty(low: float = -10.0, high: float = 0.0) -> ParamRange:
    return ParamRange(name="penalty", low=low, high=high, transform="log10")


def mixture(low: float = 0.0, high: float = 1.0) -> ParamRange:
    return ParamRange(name="mixture", low=low, high=high)


def neighbors(low: int = 1, high: int = 10) -> ParamRange:
    return ParamRange(name="neighbors", low=low, high=high, integer=True)


def degree(low: int = 1, high: int = 3) -> ParamRange:
    return ParamRange(name="degree", low=low, high=high, integer=True)


def deg_free(low: int = 3, high: int = 10) -> ParamRange:
    return ParamRange(name="deg_free", low=low, high=high, integer=True)


def smoothness(low: float = -10.0, high: float = -5.0) -> ParamRange:
    return ParamRange(name="smoothness", low=low, high=high, transform="log10")


class TuneControl(BaseModel):
    """Knobs for grid tuning."""

    n_jobs: Optional[int] = None
    save_pred: bool = False
    verbose: bool = False
    backend: Optional[str] = Field(default=None, description="joblib backend name")


__all__ = [
    "Tune",
    "tune",
    "is_tune",
    "ParamRange",
    "penalty",
    "mixture",
    "neighbors",
    "degree",
    "deg_free",
    "smoothness",
    "TuneControl",
]


def tunable_fields(cfg: BaseModel) -> dict[str, str]:
    """Map tuning id -> field name for every ``Tune`` marker on ``cfg``."""
    out: dict[str, str] = {}
    for name in type(cfg).model_fields:
        value = getattr(cfg, name)
        if not is_tune(value):
            continue
        tid = value.id or name
        if tid in out:
            raise ConfigurationError(
                f"Tuning id {tid!r} marks both {out[tid]!r} and {name!r}; pass tune(id=...) to tell them apart."
            )
        out[tid] = name
    return out


def fill_tunables(cfg: BaseModel, values: dict[str, Any]) -> BaseModel:
    """Return a copy of ``cfg`` with its markers replaced from ``values``.

    Ids absent from ``values`` keep their marker; the caller decides whether
    that is an error. The copy is re-validated so range checks apply to the
    concrete values.
    """
    update = {field: values[tid] for tid, field in tunable_fields(cfg).items() if tid in values}
    if not update:
        return cfg
    data = {name: getattr(cfg, name) for name in type(cfg).model_fields}
    data.update(update)
    return type(cfg).model_validate(data)


__all__ += ["tunable_fields", "fill_tunables"]
