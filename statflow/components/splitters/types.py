"""Split and fold result types.

Splitters yield a single, stable payload shape: row positions into the source
dataset. Partitions are materialised lazily with :meth:`Dataset.take`, so a
fold set holds indices, not copies of the data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List

import numpy as np

from statflow.core.dataset import Dataset
from statflow.errors import EvaluationReuseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fold:
    """One resample: fit on ``analysis_idx``, validate on ``assessment_idx``."""

    id: str
    analysis_idx: np.ndarray
    assessment_idx: np.ndarray

    def analysis(self, dataset: Dataset) -> Dataset:
        return dataset.take(self.analysis_idx)

    def assessment(self, dataset: Dataset) -> Dataset:
        return dataset.take(self.assessment_idx)


@dataclass(frozen=True)
class FoldSet:
    """k disjoint assessment folds over one (training) dataset."""

    dataset: Dataset
    folds: tuple[Fold, ...]
    v: int
    repeats: int = 1
    strata: str | None = None

    def __iter__(self) -> Iterator[Fold]:
        return iter(self.folds)

    def __len__(self) -> int:
        return len(self.folds)

    @property
    def ids(self) -> List[str]:
        return [f.id for f in self.folds]


@dataclass
class InitialSplit:
    """Training / evaluation partition of one dataset.

    Unpacks as ``train, test = split``. The evaluation side is meant to be
    scored exactly once; :func:`statflow.use_cases.last_fit.last_fit` claims it
    through :meth:`consume_testing` and a second claim raises
    :class:`~statflow.errors.EvaluationReuseError`.
    """

    dataset: Dataset
    train_idx: np.ndarray
    test_idx: np.ndarray
    strata: str | None = None
    _consumed: bool = field(default=False, repr=False)

    @property
    def n_train(self) -> int:
        return int(self.train_idx.shape[0])

    @property
    def n_test(self) -> int:
        return int(self.test_idx.shape[0])

    @property
    def consumed(self) -> bool:
        return self._consumed

    def training(self) -> Dataset:
        return self.dataset.take(self.train_idx)

    def testing(self) -> Dataset:
        if self._consumed:
            logger.warning("Evaluation partition requested again after it was scored.")
        return self.dataset.take(self.test_idx)

    def consume_testing(self) -> Dataset:
        if self._consumed:
            raise EvaluationReuseError(
                "The evaluation partition of this split was already used for a final fit."
            )
        self._consumed = True
        return self.dataset.take(self.test_idx)

    def __iter__(self):
        yield self.training()
        yield self.testing()

    def __repr__(self) -> str:
        return f"InitialSplit(train={self.n_train}, test={self.n_test}, total={len(self.dataset)})"
