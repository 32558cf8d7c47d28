"""Configuration contracts.

Pydantic models and Literal-based choice types used to validate every piece of
configuration: schemas, roles, splits, transform steps, model specs and tuning.

Keep module imports explicit in most of the codebase:
    from statflow.contracts.model_configs import ElasticNetConfig
The names re-exported here are a small convenience namespace.
"""

from .choices import ColumnKind, MetricName, ModelTaskName, PredictionMode
from .model_configs import (
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
from .roles import Roles
from .schema import ColumnSchema, ColumnSpec, infer_schema
from .selectors import (
    all_nominal_predictors,
    all_numeric_predictors,
    all_predictors,
    columns,
)
from .transform_configs import (
    DummyStep,
    InteractStep,
    LogStep,
    NormalizeStep,
    NovelStep,
    PolyStep,
    SplineStep,
    TransformSpec,
    ZeroVarianceStep,
)
from .tuning_configs import ParamRange, Tune, TuneControl, tune

__all__ = [
    "ColumnKind",
    "MetricName",
    "ModelTaskName",
    "PredictionMode",
    "ElasticNetConfig",
    "KNNConfig",
    "KNNRegressorConfig",
    "LDAConfig",
    "LinearRegConfig",
    "LogRegConfig",
    "ModelConfig",
    "NaiveBayesConfig",
    "NullModelConfig",
    "QDAConfig",
    "Roles",
    "ColumnSchema",
    "ColumnSpec",
    "infer_schema",
    "all_nominal_predictors",
    "all_numeric_predictors",
    "all_predictors",
    "columns",
    "DummyStep",
    "InteractStep",
    "LogStep",
    "NormalizeStep",
    "NovelStep",
    "PolyStep",
    "SplineStep",
    "TransformSpec",
    "ZeroVarianceStep",
    "ParamRange",
    "Tune",
    "TuneControl",
    "tune",
]
