from __future__ import annotations

from typing import Callable, Optional, Type

from statflow.components.interfaces import ModelBuilder
from statflow.components.models.builders import (
    ElasticNetBuilder,
    KNNBuilder,
    KNNRegressorBuilder,
    LDABuilder,
    LinRegBuilder,
    LogRegBuilder,
    NaiveBayesBuilder,
    NullClassifierBuilder,
    NullRegressorBuilder,
    QDABuilder,
)
from statflow.contracts.model_configs import (
    ElasticNetConfig,
    KNNConfig,
    KNNRegressorConfig,
    LDAConfig,
    LinearRegConfig,
    LogRegConfig,
    ModelConfig,
    NaiveBayesConfig,
    NullModelConfig,
    QDAConfig,
)
from statflow.errors import ConfigurationError
from statflow.registries.base import Registry

# Factory takes (cfg, seed) and returns a ModelBuilder.
ModelBuilderFactory = Callable[[ModelConfig, Optional[int]], ModelBuilder]

_BUILDERS_BY_CONFIG: Registry[Type, ModelBuilderFactory] = Registry(_name="model_builders_by_config")
_BUILDERS_BY_ALGO: Registry[str, ModelBuilderFactory] = Registry(_name="model_builders_by_algo")


def register_model_builder(
    config_type: Type,
    *,
    algo: Optional[str] = None,
) -> Callable[[ModelBuilderFactory], ModelBuilderFactory]:
    """Decorator to register a ModelBuilder factory for a config type (and optionally its algo key)."""

    def deco(factory: ModelBuilderFactory) -> ModelBuilderFactory:
        _BUILDERS_BY_CONFIG.register(config_type)(factory)
        if algo is not None:
            _BUILDERS_BY_ALGO.register(str(algo))(factory)
        return factory

    return deco


register_model_builder(LinearRegConfig, algo="linreg")(lambda cfg, seed: LinRegBuilder(cfg))
register_model_builder(ElasticNetConfig, algo="elastic_net")(lambda cfg, seed: ElasticNetBuilder(cfg, seed=seed))
register_model_builder(KNNRegressorConfig, algo="knn_reg")(lambda cfg, seed: KNNRegressorBuilder(cfg))
register_model_builder(LogRegConfig, algo="logreg")(lambda cfg, seed: LogRegBuilder(cfg, seed=seed))
register_model_builder(LDAConfig, algo="lda")(lambda cfg, seed: LDABuilder(cfg))
register_model_builder(QDAConfig, algo="qda")(lambda cfg, seed: QDABuilder(cfg))
register_model_builder(NaiveBayesConfig, algo="naive_bayes")(lambda cfg, seed: NaiveBayesBuilder(cfg))
register_model_builder(KNNConfig, algo="knn")(lambda cfg, seed: KNNBuilder(cfg))


@register_model_builder(NullModelConfig, algo="null")
def _null_builder(cfg: NullModelConfig, seed: Optional[int]) -> ModelBuilder:
    if cfg.mode == "classification":
        return NullClassifierBuilder(cfg)
    return NullRegressorBuilder(cfg)


def make_model_builder(cfg: ModelConfig, *, seed: Optional[int] = None) -> ModelBuilder:
    """Return a ModelBuilder for the provided config."""
    t = type(cfg)
    factory = _BUILDERS_BY_CONFIG.try_get(t)

    # Allow config inheritance via MRO fallback.
    if factory is None:
        for base in t.mro()[1:]:
            factory = _BUILDERS_BY_CONFIG.try_get(base)
            if factory is not None:
                break

    if factory is None:
        algo = getattr(cfg, "algo", None)
        if algo is not None:
            factory = _BUILDERS_BY_ALGO.try_get(str(algo))

    if factory is None:
        raise ConfigurationError(f"Unsupported algo: {getattr(cfg, 'algo', None)} ({t.__name__})")

    return factory(cfg, seed)


def list_model_algos() -> list[str]:
    return sorted(list(_BUILDERS_BY_ALGO.keys()))
