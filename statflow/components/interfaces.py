from __future__ import annotations

from typing import Any, Protocol


class ModelBuilder(Protocol):
    def make_estimator(self, n_obs: int) -> Any:
        """Return a configured, unfitted scikit-learn estimator.

        ``n_obs`` is the number of training rows; penalised models need it to
        express their penalty on scikit-learn's per-sample scale.
        """
        ...
