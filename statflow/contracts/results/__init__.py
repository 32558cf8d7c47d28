from .common import ParamValue, ResultModel
from .tuning import CandidateSummary, MetricRecord

__all__ = ["ParamValue", "ResultModel", "CandidateSummary", "MetricRecord"]
