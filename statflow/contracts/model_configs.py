from __future__ import annotations

from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .choices import KNNWeights, ModelTaskName
from .tuning_configs import Tune, is_tune


class _ModelBase(BaseModel):
    model_config = ConfigDict(frozen=True)


def get_model_task(model_cfg: "ModelConfig") -> str:
    # baselines carry their task on the instance
    mode = getattr(model_cfg, "mode", None)
    if mode is not None:
        return str(mode)
    return getattr(model_cfg.__class__, "task", "regression")


def _non_negative(name: str, v):
    if not is_tune(v) and float(v) < 0:
        raise ValueError(f"{name} must be >= 0; got {v}")
    return v


def _unit_interval(name: str, v):
    if not is_tune(v) and not (0.0 <= float(v) <= 1.0):
        raise ValueError(f"{name} must be in [0, 1]; got {v}")
    return v


#------------------------------------------
#               REGRESSORS
#------------------------------------------

class LinearRegConfig(_ModelBase):
    algo: Literal["linreg"] = "linreg"

    task: ClassVar[str] = "regression"
    family: ClassVar[str] = "linear"

    fit_intercept: bool = True


class ElasticNetConfig(_ModelBase):
    """Penalised least squares.

    Minimises ``RSS + penalty * ((1 - mixture) * sum(b^2) + mixture * sum(|b|))``
    with the intercept left unpenalised. ``mixture=0`` is ridge, ``mixture=1``
    is the lasso.
    """

    algo: Literal["elastic_net"] = "elastic_net"

    task: ClassVar[str] = "regression"
    family: ClassVar[str] = "linear"

    penalty: Union[float, Tune] = 0.0
    mixture: Union[float, Tune] = 1.0
    max_iter: int = 100_000
    tol: float = 1e-7

    @field_validator("penalty")
    @classmethod
    def _penalty(cls, v):
        return _non_negative("penalty", v)

    @field_validator("mixture")
    @classmethod
    def _mixture(cls, v):
        return _unit_interval("mixture", v)


class KNNRegressorConfig(_ModelBase):
    algo: Literal["knn_reg"] = "knn_reg"

    task: ClassVar[str] = "regression"
    family: ClassVar[str] = "neighbors"

    neighbors: Union[int, Tune] = 5
    weights: KNNWeights = "uniform"
    dist_power: float = Field(default=2.0, gt=0)

    @field_validator("neighbors")
    @classmethod
    def _neighbors(cls, v):
        if not is_tune(v) and int(v) < 1:
            raise ValueError("neighbors must be >= 1")
        return v


#------------------------------------------
#               CLASSIFIERS
#------------------------------------------

class LogRegConfig(_ModelBase):
    """Binomial logistic regression, optionally penalised like ElasticNetConfig."""

    algo: Literal["logreg"] = "logreg"

    task: ClassVar[str] = "classification"
    family: ClassVar[str] = "linear"

    penalty: Union[float, Tune] = 0.0
    mixture: Union[float, Tune] = 0.0
    max_iter: int = 5000

    @field_validator("penalty")
    @classmethod
    def _penalty(cls, v):
        return _non_negative("penalty", v)

    @field_validator("mixture")
    @classmethod
    def _mixture(cls, v):
        return _unit_interval("mixture", v)


class LDAConfig(_ModelBase):
    algo: Literal["lda"] = "lda"

    task: ClassVar[str] = "classification"
    family: ClassVar[str] = "discriminant"

    solver: Literal["svd", "lsqr", "eigen"] = "svd"


class QDAConfig(_ModelBase):
    algo: Literal["qda"] = "qda"

    task: ClassVar[str] = "classification"
    family: ClassVar[str] = "discriminant"

    reg_param: float = Field(default=0.0, ge=0.0, le=1.0)


class NaiveBayesConfig(_ModelBase):
    algo: Literal["naive_bayes"] = "naive_bayes"

    task: ClassVar[str] = "classification"
    family: ClassVar[str] = "naive_bayes"

    # fraction of the largest feature variance added to every variance
    smoothness: Union[float, Tune] = 1e-9

    @field_validator("smoothness")
    @classmethod
    def _smoothness(cls, v):
        return _non_negative("smoothness", v)


class KNNConfig(_ModelBase):
    algo: Literal["knn"] = "knn"

    task: ClassVar[str] = "classification"
    family: ClassVar[str] = "neighbors"

    neighbors: Union[int, Tune] = 5
    weights: KNNWeights = "uniform"
    dist_power: float = Field(default=2.0, gt=0)

    @field_validator("neighbors")
    @classmethod
    def _neighbors(cls, v):
        if not is_tune(v) and int(v) < 1:
            raise ValueError("neighbors must be >= 1")
        return v


#------------------------------------------
#               BASELINES
#------------------------------------------

class NullModelConfig(_ModelBase):
    """Intercept-only baseline: the training mean or the majority class."""

    algo: Literal["null"] = "null"

    family: ClassVar[str] = "baseline"

    mode: ModelTaskName = "regression"


# -----------------------------
# Discriminated union (single source for "model")
# -----------------------------
ModelConfig = Annotated[
    Union[
        LinearRegConfig,
        ElasticNetConfig,
        KNNRegressorConfig,
        LogRegConfig,
        LDAConfig,
        QDAConfig,
        NaiveBayesConfig,
        KNNConfig,
        NullModelConfig,
    ],
    Field(discriminator="algo"),
]


__all__ = [
    "LinearRegConfig",
    "ElasticNetConfig",
    "KNNRegressorConfig",
    "LogRegConfig",
    "LDAConfig",
    "QDAConfig",
    "NaiveBayesConfig",
    "KNNConfig",
    "NullModelConfig",
    "ModelConfig",
    "get_model_task",
]
