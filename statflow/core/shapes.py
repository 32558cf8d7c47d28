"""Public shape/orientation utilities.

Conventions
-----------
- X is 2D: (n_samples, n_features)
- y is 1D: (n_samples,)
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


def coerce_1d(a) -> np.ndarray:
    arr = np.asarray(a)
    if arr.ndim == 2 and 1 in arr.shape:
        arr = arr.ravel()
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1D array; got shape {arr.shape}.")
    return arr


def ensure_xy_aligned(X: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Strict alignment check: no transposition, no truncation.

    - X must be 2D (n_samples, n_features)
    - y must be 1D (n_samples,)
    - n_samples must match
    """

    X = np.asarray(X)
    y = np.asarray(y).ravel()

    if X.ndim != 2:
        raise ValueError(f"X must be 2D (n_samples, n_features). Got {X.shape}.")
    if y.ndim != 1:
        raise ValueError(f"y must be 1D (n_samples,). Got {y.shape}.")
    if X.shape[0] != y.shape[0]:
        raise ValueError(f"X and y length mismatch: {X.shape[0]} vs {y.shape[0]}.")

    return X, y


def check_len(y_true: np.ndarray, y_pred_like: np.ndarray, name: str) -> None:
    if y_true.shape[0] != y_pred_like.shape[0]:
        raise ValueError(
            f"Length mismatch: y_true({y_true.shape[0]}) vs {name}({y_pred_like.shape[0]})."
        )


__all__ = ["coerce_1d", "ensure_xy_aligned", "check_len"]
