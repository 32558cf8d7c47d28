"""Process-level defaults.

Settings are plain pydantic models; nothing reads them implicitly at import
time. Callers build one with :meth:`EngineSettings.from_env` (or directly) and
pass values down explicitly.
"""

from __future__ import annotations

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from statflow.errors import ConfigurationError

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_ENV_PREFIX = "STATFLOW_"


class EngineSettings(BaseModel):
    n_jobs: int = 1
    log_level: LogLevelName = "WARNING"
    # numeric strata are cut into this many quantile bins
    strata_breaks: int = Field(default=4, ge=2)
    # strata smaller than this fraction of rows are merged into a neighbour
    pool_threshold: float = Field(default=0.1, ge=0.0, lt=0.5)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """Build settings from ``STATFLOW_*`` environment variables."""
        env = os.environ if environ is None else environ
        raw = {}
        for field in cls.model_fields:
            key = f"{_ENV_PREFIX}{field.upper()}"
            if key in env:
                raw[field] = env[key].upper() if field == "log_level" else env[key]
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid statflow environment settings: {e}") from e


__all__ = ["EngineSettings", "LogLevelName"]
