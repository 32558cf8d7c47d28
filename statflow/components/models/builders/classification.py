from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from sklearn.discriminant_analysis import (
    LinearDiscriminantAnalysis,
    QuadraticDiscriminantAnalysis,
)
from sklearn.dummy import DummyClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB
from sklearn.neighbors import KNeighborsClassifier

from statflow.components.interfaces import ModelBuilder
from statflow.contracts.model_configs import (
    KNNConfig,
    LDAConfig,
    LogRegConfig,
    NaiveBayesConfig,
    NullModelConfig,
    QDAConfig,
)

from .common import _filtered_kwargs, _maybe_set_random_state


@dataclass
class LogRegBuilder(ModelBuilder):
    """Binomial logistic regression.

    ``penalty`` is the inverse of scikit-learn's ``C``; ``mixture`` selects
    ridge (0), lasso (1) or an elastic-net blend. ``penalty=0`` fits the
    unpenalised maximum-likelihood model.
    """

    cfg: LogRegConfig
    seed: Optional[int] = None

    def make_estimator(self, n_obs: int) -> LogisticRegression:
        lam = float(self.cfg.penalty)
        mix = float(self.cfg.mixture)
        kw = _filtered_kwargs(LogisticRegression, self.cfg)
        # C=inf switches the penalty off; l1_ratio blends ridge (0) and lasso (1)
        if lam == 0.0:
            return LogisticRegression(C=np.inf, l1_ratio=0.0, solver="lbfgs", **kw)
        if mix == 0.0:
            return LogisticRegression(C=1.0 / lam, l1_ratio=0.0, solver="lbfgs", **kw)
        _maybe_set_random_state(LogisticRegression, kw, self.seed)
        return LogisticRegression(C=1.0 / lam, l1_ratio=mix, solver="saga", **kw)


@dataclass
class LDABuilder(ModelBuilder):
    cfg: LDAConfig

    def make_estimator(self, n_obs: int) -> LinearDiscriminantAnalysis:
        kw = _filtered_kwargs(LinearDiscriminantAnalysis, self.cfg)
        return LinearDiscriminantAnalysis(**kw)


@dataclass
class QDABuilder(ModelBuilder):
    cfg: QDAConfig

    def make_estimator(self, n_obs: int) -> QuadraticDiscriminantAnalysis:
        kw = _filtered_kwargs(QuadraticDiscriminantAnalysis, self.cfg)
        return QuadraticDiscriminantAnalysis(**kw)


@dataclass
class NaiveBayesBuilder(ModelBuilder):
    cfg: NaiveBayesConfig

    def make_estimator(self, n_obs: int) -> GaussianNB:
        return GaussianNB(var_smoothing=float(self.cfg.smoothness))


@dataclass
class KNNBuilder(ModelBuilder):
    cfg: KNNConfig

    def make_estimator(self, n_obs: int) -> KNeighborsClassifier:
        return KNeighborsClassifier(
            n_neighbors=int(self.cfg.neighbors),
            weights=self.cfg.weights,
            p=float(self.cfg.dist_power),
        )


@dataclass
class NullClassifierBuilder(ModelBuilder):
    cfg: NullModelConfig

    def make_estimator(self, n_obs: int) -> DummyClassifier:
        # "prior": majority class for labels, class frequencies for probabilities
        return DummyClassifier(strategy="prior")
