"""Result contracts.

These models represent outputs produced by the engine. Top-level validation is
strict (extra fields forbidden) to prevent silent drift. Contracts depend only
on stdlib + pydantic.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict

ParamValue = Union[int, float, str, bool]


class ResultModel(BaseModel):
    """Base class for result contracts (strict by default)."""

    model_config = ConfigDict(extra="forbid", frozen=True)
