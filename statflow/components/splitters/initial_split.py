from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from statflow.core.dataset import Dataset
from statflow.errors import EmptyPartitionError, InvalidProportionError
from statflow.runtime.rng import RngManager

from .strata import make_strata
from .types import InitialSplit

logger = logging.getLogger(__name__)


def initial_split(
    dataset: Dataset,
    prop: float = 0.75,
    *,
    strata: Optional[str] = None,
    seed: Optional[int] = None,
    breaks: Optional[int] = None,
    pool: Optional[float] = None,
) -> InitialSplit:
    """Randomly partition ``dataset`` into training and evaluation rows.

    Each stratum contributes ``floor(prop * n_stratum)`` rows to training, so
    the outcome distribution is reproduced on both sides. Sampling is driven
    only by ``seed``.
    """
    try:
        p = float(prop)
    except (TypeError, ValueError) as e:
        raise InvalidProportionError(f"prop must be a number in (0, 1); got {prop!r}") from e
    if not (0.0 < p < 1.0) or math.isnan(p):
        raise InvalidProportionError(f"prop must be in (0, 1); got {prop!r}")

    n = len(dataset)
    codes = make_strata(dataset, strata, breaks=breaks, pool=pool)
    rng = RngManager(seed).child_generator("initial_split")

    train_parts = []
    for code in np.unique(codes):
        rows = np.flatnonzero(codes == code)
        rows = rng.permutation(rows)
        train_parts.append(rows[: int(math.floor(p * rows.shape[0]))])

    train_idx = np.sort(np.concatenate(train_parts)) if train_parts else np.array([], dtype=int)
    test_mask = np.ones(n, dtype=bool)
    test_mask[train_idx] = False
    test_idx = np.flatnonzero(test_mask)

    if train_idx.size == 0 or test_idx.size == 0:
        raise EmptyPartitionError(
            f"prop={p} on {n} rows leaves {train_idx.size} training and "
            f"{test_idx.size} evaluation rows; both sides need at least one."
        )

    logger.info("Initial split: %d training / %d evaluation rows (strata=%s)", train_idx.size, test_idx.size, strata)
    return InitialSplit(dataset=dataset, train_idx=train_idx, test_idx=test_idx, strata=strata)
