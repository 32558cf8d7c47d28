from __future__ import annotations

import logging

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from statflow.contracts.roles import Roles
from statflow.core.dataset import Dataset
from statflow.extras.datasets import simulate_linear, simulate_two_class


@pytest.fixture
def linear_data() -> Dataset:
    """y = 1 + 2 x1 - 1.5 x2 + N(0, 0.5^2), 200 rows."""
    return simulate_linear(n=200, coefs=(2.0, -1.5), intercept=1.0, noise=0.5, seed=11)


@pytest.fixture
def linear_roles() -> Roles:
    return Roles(outcome="y", predictors=("x1", "x2"))


@pytest.fixture
def two_class_data() -> Dataset:
    return simulate_two_class(n=300, shift=3.0, seed=5)


@pytest.fixture
def class_roles() -> Roles:
    return Roles(outcome="class", predictors=("x1", "x2"))


@pytest.fixture
def mixed_data() -> Dataset:
    """Numeric ``x``, nominal ``grp`` (a/b/c) and a numeric outcome."""
    rng = np.random.default_rng(3)
    n = 60
    grp = np.array(["a", "b", "c"] * (n // 3))
    x = rng.normal(size=n)
    effect = pd.Series(grp).map({"a": 0.0, "b": 1.0, "c": -1.0}).to_numpy()
    y = 0.5 + 1.5 * x + effect + rng.normal(scale=0.3, size=n)
    return Dataset.from_frame(pd.DataFrame({"x": x, "grp": grp, "y": y}))


@pytest.fixture
def quadratic_data() -> Dataset:
    rng = np.random.default_rng(21)
    n = 120
    x = rng.uniform(-2.0, 2.0, size=n)
    y = 1.0 + 2.0 * x - 3.0 * x**2 + rng.normal(scale=0.5, size=n)
    return Dataset.from_frame(pd.DataFrame({"x": x, "y": y}))


@pytest.fixture
def statflow_logger():
    """Restore the package logger after a test reconfigures it."""
    logger = logging.getLogger("statflow")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    for h in list(logger.handlers):
        if h not in handlers:
            logger.removeHandler(h)
    logger.setLevel(level)
