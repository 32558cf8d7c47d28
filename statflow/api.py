"""Public statflow API.

This module is the **stable public surface**. Prefer importing from here
instead of reaching into internal subpackages:

    from statflow.api import initial_split, vfold, Workflow, tune_grid, last_fit

The underlying implementations live under :mod:`statflow.components` and
:mod:`statflow.use_cases`.
"""

from __future__ import annotations

from statflow.components.evaluation.confusion import ConfusionMatrix
from statflow.components.evaluation.metrics import default_metrics, list_metrics, metric_set
from statflow.components.preprocessing.recipe import FittedTransform, fit_transform_spec
from statflow.components.splitters import Fold, FoldSet, InitialSplit, initial_split, vfold
from statflow.components.tuning.grid import expand_grid, grid_regular
from statflow.components.tuning.selection import TuningResult, desc
from statflow.contracts.model_configs import (
    ElasticNetConfig,
    KNNConfig,
    KNNRegressorConfig,
    LDAConfig,
    LinearRegConfig,
    LogRegConfig,
    NaiveBayesConfig,
    NullModelConfig,
    QDAConfig,
)
from statflow.contracts.roles import Roles
from statflow.contracts.schema import ColumnSchema, ColumnSpec
from statflow.contracts.selectors import (
    all_nominal_predictors,
    all_numeric_predictors,
    all_predictors,
    columns,
)
from statflow.contracts.transform_configs import (
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
from statflow.contracts.tuning_configs import (
    ParamRange,
    TuneControl,
    deg_free,
    degree,
    mixture,
    neighbors,
    penalty,
    smoothness,
    tune,
)
from statflow.core.dataset import Dataset
from statflow.core.logging import configure_logging
from statflow.core.progress import ProgressCallback
from statflow.extras.datasets import simulate_linear, simulate_two_class
from statflow.io.readers import from_frame, read_csv
from statflow.reporting.tables import (
    augment,
    coefficient_table,
    confusion_matrix,
    metrics_table,
    regularization_path,
)
from statflow.settings import EngineSettings
from statflow.use_cases.last_fit import LastFitResult, last_fit
from statflow.use_cases.tuning import fit_resamples, tune_cv, tune_grid
from statflow.use_cases.workflow import FittedWorkflow, Workflow, finalize_workflow

__all__ = [
    # data
    "Dataset",
    "ColumnSchema",
    "ColumnSpec",
    "read_csv",
    "from_frame",
    "Roles",
    # splitting
    "initial_split",
    "vfold",
    "InitialSplit",
    "FoldSet",
    "Fold",
    # preprocessing
    "TransformSpec",
    "NormalizeStep",
    "DummyStep",
    "NovelStep",
    "ZeroVarianceStep",
    "PolyStep",
    "SplineStep",
    "InteractStep",
    "LogStep",
    "columns",
    "all_predictors",
    "all_numeric_predictors",
    "all_nominal_predictors",
    "fit_transform_spec",
    "FittedTransform",
    # models
    "LinearRegConfig",
    "ElasticNetConfig",
    "KNNRegressorConfig",
    "LogRegConfig",
    "LDAConfig",
    "QDAConfig",
    "NaiveBayesConfig",
    "KNNConfig",
    "NullModelConfig",
    "Workflow",
    "FittedWorkflow",
    # tuning
    "tune",
    "ParamRange",
    "penalty",
    "mixture",
    "neighbors",
    "degree",
    "deg_free",
    "smoothness",
    "grid_regular",
    "expand_grid",
    "TuneControl",
    "tune_grid",
    "tune_cv",
    "fit_resamples",
    "TuningResult",
    "desc",
    "finalize_workflow",
    "last_fit",
    "LastFitResult",
    # evaluation / reporting
    "metric_set",
    "default_metrics",
    "list_metrics",
    "ConfusionMatrix",
    "coefficient_table",
    "confusion_matrix",
    "metrics_table",
    "augment",
    "regularization_path",
    # runtime
    "EngineSettings",
    "configure_logging",
    "ProgressCallback",
    # extras
    "simulate_linear",
    "simulate_two_class",
]
