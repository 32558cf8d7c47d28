"""Simulated datasets for demonstrations and end-to-end checks."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from statflow.core.dataset import Dataset
from statflow.errors import ConfigurationError
from statflow.runtime.rng import RngManager


def simulate_linear(
    n: int = 100,
    coefs: Sequence[float] = (2.0, -1.5),
    intercept: float = 1.0,
    noise: float = 1.0,
    seed: Optional[int] = None,
) -> Dataset:
    """``y = intercept + sum(coefs[j] * x_j) + N(0, noise^2)`` with standard normal predictors ``x1..xk``."""
    if n < 1:
        raise ConfigurationError(f"n must be >= 1; got {n}.")
    if noise < 0:
        raise ConfigurationError(f"noise must be >= 0; got {noise}.")
    rng = RngManager(seed).child_generator("simulate_linear")
    beta = np.asarray(coefs, dtype=float)
    X = rng.standard_normal((n, beta.size))
    y = intercept + X @ beta + noise * rng.standard_normal(n)
    frame = pd.DataFrame(X, columns=[f"x{j + 1}" for j in range(beta.size)])
    frame["y"] = y
    return Dataset.from_frame(frame)


def simulate_two_class(
    n: int = 200,
    shift: float = 3.0,
    seed: Optional[int] = None,
    imbalance: float = 0.5,
) -> Dataset:
    """Two Gaussian clouds in ``x1, x2`` labelled ``A`` / ``B``.

    Class ``B`` makes up ``imbalance`` of the rows and is moved by ``shift``
    along the diagonal, so the Bayes boundary is linear.
    """
    if n < 2:
        raise ConfigurationError(f"n must be >= 2; got {n}.")
    if not 0.0 < imbalance < 1.0:
        raise ConfigurationError(f"imbalance must be in (0, 1); got {imbalance}.")
    rng = RngManager(seed).child_generator("simulate_two_class")
    is_b = rng.random(n) < imbalance
    X = rng.standard_normal((n, 2)) + np.where(is_b, shift, 0.0)[:, None] / np.sqrt(2.0)
    frame = pd.DataFrame(X, columns=["x1", "x2"])
    frame["class"] = np.where(is_b, "B", "A")
    return Dataset.from_frame(frame, levels={"class": ["A", "B"]})


__all__ = ["simulate_linear", "simulate_two_class"]
