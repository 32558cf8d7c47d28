from .initial_split import initial_split
from .types import Fold, FoldSet, InitialSplit
from .vfold import vfold

__all__ = ["initial_split", "vfold", "Fold", "FoldSet", "InitialSplit"]
