from .confusion import ConfusionMatrix, build_confusion
from .metrics import MetricSet, MetricSpec, compute_metric, default_metrics, get_metric, list_metrics, metric_set

__all__ = [
    "ConfusionMatrix",
    "build_confusion",
    "MetricSet",
    "MetricSpec",
    "compute_metric",
    "default_metrics",
    "get_metric",
    "list_metrics",
    "metric_set",
]
