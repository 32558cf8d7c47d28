from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
from sklearn.model_selection import KFold, StratifiedKFold

from statflow.core.dataset import Dataset
from statflow.errors import ConfigurationError
from statflow.runtime.rng import RngManager

from .strata import make_strata
from .types import Fold, FoldSet

logger = logging.getLogger(__name__)


def _fold_splitter(codes: np.ndarray, v: int, seed: int):
    if np.unique(codes).shape[0] < 2:
        return KFold(n_splits=v, shuffle=True, random_state=seed).split(codes)
    if np.bincount(codes).max() < v:
        logger.warning("Every stratum has fewer than %d rows; folds are not stratified", v)
        return KFold(n_splits=v, shuffle=True, random_state=seed).split(codes)
    return StratifiedKFold(n_splits=v, shuffle=True, random_state=seed).split(codes, codes)


def vfold(
    dataset: Dataset,
    v: int = 10,
    *,
    repeats: int = 1,
    strata: Optional[str] = None,
    seed: Optional[int] = None,
    breaks: Optional[int] = None,
    pool: Optional[float] = None,
) -> FoldSet:
    """V-fold cross-validation resamples of ``dataset``.

    Every row is in the assessment set of exactly one fold per repeat. Unstratified
    fold sizes differ by at most one row; stratified folds keep each stratum's
    share in every fold as closely as the counts allow.
    """
    n = len(dataset)
    if int(v) != v or v < 2:
        raise ConfigurationError(f"v must be an integer >= 2; got {v!r}")
    if v > n:
        raise ConfigurationError(f"v={v} folds requested for only {n} rows.")
    if int(repeats) != repeats or repeats < 1:
        raise ConfigurationError(f"repeats must be an integer >= 1; got {repeats!r}")
    v = int(v)
    repeats = int(repeats)

    codes = make_strata(dataset, strata, breaks=breaks, pool=pool)
    rngm = RngManager(seed)
    width = len(str(v))

    folds: List[Fold] = []
    for r in range(1, repeats + 1):
        splits = _fold_splitter(codes, v, rngm.child_seed(f"vfold/repeat{r}"))
        for k, (analysis, assess) in enumerate(splits):
            fid = f"Fold{k + 1:0{width}d}"
            if repeats > 1:
                fid = f"Repeat{r}/{fid}"
            folds.append(Fold(id=fid, analysis_idx=analysis, assessment_idx=assess))

    logger.info("Built %d folds (v=%d, repeats=%d, strata=%s) on %d rows", len(folds), v, repeats, strata, n)
    return FoldSet(dataset=dataset, folds=tuple(folds), v=v, repeats=repeats, strata=strata)
