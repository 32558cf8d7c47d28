from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sklearn.dummy import DummyRegressor
from sklearn.linear_model import ElasticNet, Lasso, LinearRegression, Ridge
from sklearn.neighbors import KNeighborsRegressor

from statflow.components.interfaces import ModelBuilder
from statflow.contracts.model_configs import (
    ElasticNetConfig,
    KNNRegressorConfig,
    LinearRegConfig,
    NullModelConfig,
)

from .common import _filtered_kwargs, _maybe_set_random_state


@dataclass
class LinRegBuilder(ModelBuilder):
    cfg: LinearRegConfig

    def make_estimator(self, n_obs: int) -> LinearRegression:
        kw = _filtered_kwargs(LinearRegression, self.cfg)
        return LinearRegression(**kw)


@dataclass
class ElasticNetBuilder(ModelBuilder):
    """Map ``RSS + l * ((1 - a) * sum(b^2) + a * sum(|b|))`` onto scikit-learn.

    scikit-learn's ElasticNet minimises
    ``RSS / (2n) + alpha * l1_ratio * |b|_1 + alpha * (1 - l1_ratio) / 2 * |b|_2^2``;
    multiplying through by ``2n`` gives ``alpha = l (2 - a) / (2n)`` and
    ``l1_ratio = a / (2 - a)``. Pure ridge maps onto ``Ridge(alpha=l)``
    directly and ``l = 0`` is ordinary least squares.
    """

    cfg: ElasticNetConfig
    seed: Optional[int] = None

    def make_estimator(self, n_obs: int):
        lam = float(self.cfg.penalty)
        mix = float(self.cfg.mixture)
        if lam == 0.0:
            return LinearRegression()
        if mix == 0.0:
            return Ridge(alpha=lam)
        n = max(int(n_obs), 1)
        kw = _filtered_kwargs(ElasticNet, self.cfg)
        _maybe_set_random_state(ElasticNet, kw, self.seed)
        if mix == 1.0:
            return Lasso(alpha=lam / (2.0 * n), **kw)
        return ElasticNet(alpha=lam * (2.0 - mix) / (2.0 * n), l1_ratio=mix / (2.0 - mix), **kw)


@dataclass
class KNNRegressorBuilder(ModelBuilder):
    cfg: KNNRegressorConfig

    def make_estimator(self, n_obs: int) -> KNeighborsRegressor:
        return KNeighborsRegressor(
            n_neighbors=int(self.cfg.neighbors),
            weights=self.cfg.weights,
            p=float(self.cfg.dist_power),
        )


@dataclass
class NullRegressorBuilder(ModelBuilder):
    cfg: NullModelConfig

    def make_estimator(self, n_obs: int) -> DummyRegressor:
        return DummyRegressor(strategy="mean")
