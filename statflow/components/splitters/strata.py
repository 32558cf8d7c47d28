from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd

from statflow.core.dataset import Dataset
from statflow.errors import ConfigurationError, UnknownColumnError
from statflow.settings import EngineSettings

logger = logging.getLogger(__name__)


def _numeric_codes(values: pd.Series, breaks: int) -> np.ndarray:
    x = pd.to_numeric(values).to_numpy(dtype=float)
    edges = np.unique(np.quantile(x, np.linspace(0.0, 1.0, int(breaks) + 1)))
    if edges.size < 2:
        logger.warning("Numeric strata column is constant; using a single stratum.")
        return np.zeros(x.shape[0], dtype=int)
    codes = pd.cut(x, bins=edges, include_lowest=True, labels=False, duplicates="drop")
    return np.asarray(codes, dtype=int)


def _pool_small(codes: np.ndarray, pool: float) -> np.ndarray:
    """Merge strata holding less than ``pool`` of the rows into a neighbour."""
    codes = codes.copy()
    n = codes.shape[0]
    while True:
        labels, counts = np.unique(codes, return_counts=True)
        if labels.size <= 1:
            return codes
        smallest = int(np.argmin(counts))
        if counts[smallest] >= pool * n:
            return codes
        target = labels[smallest + 1] if smallest + 1 < labels.size else labels[smallest - 1]
        logger.warning(
            "Stratum %s has %d rows (< %.0f%% of data); pooling into stratum %s.",
            labels[smallest], counts[smallest], pool * 100, target,
        )
        codes[codes == labels[smallest]] = target


def make_strata(
    dataset: Dataset,
    column: Optional[str],
    *,
    breaks: Optional[int] = None,
    pool: Optional[float] = None,
) -> np.ndarray:
    """Integer stratum code per row.

    Nominal columns stratify by level; numeric columns are first cut into
    ``breaks`` quantile bins. Without a column every row is in stratum 0.
    Unset ``breaks`` / ``pool`` come from :class:`~statflow.settings.EngineSettings`.
    """
    n = len(dataset)
    if column is None:
        return np.zeros(n, dtype=int)
    if column not in dataset.schema:
        raise UnknownColumnError(f"Strata column {column!r} not in dataset; known: {dataset.columns}")

    if breaks is None or pool is None:
        settings = EngineSettings.from_env()
        breaks = settings.strata_breaks if breaks is None else breaks
        pool = settings.pool_threshold if pool is None else pool
    if int(breaks) < 2:
        raise ConfigurationError(f"breaks must be >= 2; got {breaks}.")

    values = dataset.column(column)
    if dataset.schema.is_numeric(column):
        codes = _numeric_codes(values, breaks)
    else:
        order = {lv: i for i, lv in enumerate(dataset.schema.levels_of(column))}
        codes = np.asarray([order.get(str(v), len(order)) for v in values], dtype=int)

    return _pool_small(codes, pool) if pool > 0 else codes
