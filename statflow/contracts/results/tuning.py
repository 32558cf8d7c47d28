from __future__ import annotations

from typing import Dict, Optional

from pydantic import Field

from .common import ParamValue, ResultModel


class MetricRecord(ResultModel):
    """One metric value for one (fold, candidate) fit."""

    fold_id: str
    candidate: str
    params: Dict[str, ParamValue] = Field(default_factory=dict)
    metric: str
    value: Optional[float] = None


class CandidateSummary(ResultModel):
    """Mean and standard error of one metric for one candidate."""

    candidate: str
    params: Dict[str, ParamValue] = Field(default_factory=dict)
    metric: str
    mean: float
    n: int
    std_err: float
