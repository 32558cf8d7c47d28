from .classification import (
    KNNBuilder,
    LDABuilder,
    LogRegBuilder,
    NaiveBayesBuilder,
    NullClassifierBuilder,
    QDABuilder,
)
from .regression import ElasticNetBuilder, KNNRegressorBuilder, LinRegBuilder, NullRegressorBuilder

__all__ = [
    "LinRegBuilder",
    "ElasticNetBuilder",
    "KNNRegressorBuilder",
    "NullRegressorBuilder",
    "LogRegBuilder",
    "LDABuilder",
    "QDABuilder",
    "NaiveBayesBuilder",
    "KNNBuilder",
    "NullClassifierBuilder",
]
