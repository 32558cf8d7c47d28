"""Exception taxonomy for statflow.

Three families are distinguished:

- configuration errors: the caller asked for something that cannot be
  configured (bad split proportion, malformed grid, unknown column/metric);
- data errors: the data does not support the requested operation (unseen
  level, wrong outcome kind, too few rows);
- unsupported operations: the object cannot do what was asked (interval
  predictions from a classifier, re-reading the evaluation partition).

Configuration and data errors also subclass ``ValueError`` so generic callers
that already guard against bad values keep working.
"""

from __future__ import annotations


class StatflowError(Exception):
    """Root of all statflow errors."""


class ConfigurationError(StatflowError, ValueError):
    """Raised for invalid configuration values."""


class InvalidProportionError(ConfigurationError):
    """Raised when a split proportion is outside the open interval (0, 1)."""


class InvalidGridError(ConfigurationError):
    """Raised for empty, duplicated or mis-named hyperparameter grids."""


class UnknownColumnError(ConfigurationError):
    """Raised when a referenced column is not present in the schema."""


class UnknownMetricError(ConfigurationError):
    """Raised for metric names that are unknown or invalid for the model task."""


class DataError(StatflowError, ValueError):
    """Raised when data cannot support the requested computation."""


class EmptyPartitionError(DataError):
    """Raised when a split would leave one side without rows."""


class UnseenLevelError(DataError):
    """Raised when new data carries a categorical level absent at fit time."""


class ModelTargetTypeMismatchError(DataError):
    """Raised when the outcome kind does not match the model task."""


class InsufficientDataError(DataError):
    """Raised when there are fewer rows than the model needs."""


class NonNumericPredictorError(DataError):
    """Raised when a nominal column reaches a model without being encoded."""


class UnsupportedOperationError(StatflowError):
    """Raised when an object does not support the requested operation."""


class UnsupportedPredictionModeError(UnsupportedOperationError):
    """Raised for prediction modes a model family does not provide."""


class EvaluationReuseError(UnsupportedOperationError):
    """Raised when the evaluation partition of a split is consumed twice."""


class NotFittedError(UnsupportedOperationError):
    """Raised when a fitted-only operation is called on an unfitted object."""


__all__ = [
    "StatflowError",
    "ConfigurationError",
    "InvalidProportionError",
    "InvalidGridError",
    "UnknownColumnError",
    "UnknownMetricError",
    "DataError",
    "EmptyPartitionError",
    "UnseenLevelError",
    "ModelTargetTypeMismatchError",
    "InsufficientDataError",
    "NonNumericPredictorError",
    "UnsupportedOperationError",
    "UnsupportedPredictionModeError",
    "EvaluationReuseError",
    "NotFittedError",
]
