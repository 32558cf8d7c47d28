from __future__ import annotations

import inspect
from typing import Any, Dict, Optional

# fields that describe the statistical model rather than estimator kwargs
_MODEL_ONLY = {"algo", "penalty", "mixture", "neighbors", "dist_power", "smoothness", "mode"}


def _filtered_kwargs(estimator_cls: type, cfg_obj: Any, *, exclude: set[str] = _MODEL_ONLY) -> Dict[str, Any]:
    """Dump cfg to dict, drop None and model-level fields, keep only kwargs the estimator accepts."""
    raw = cfg_obj.model_dump(exclude=exclude, exclude_none=True)
    sig = inspect.signature(estimator_cls)
    allowed = set(sig.parameters.keys())
    return {k: v for k, v in raw.items() if k in allowed}


def _maybe_set_random_state(estimator_cls: type, kw: Dict[str, Any], seed: Optional[int]) -> None:
    if seed is None:
        return
    sig = inspect.signature(estimator_cls)
    if "random_state" in sig.parameters and "random_state" not in kw:
        kw["random_state"] = int(seed)
