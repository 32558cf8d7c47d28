from __future__ import annotations

from typing import Any, Callable

from statflow.components.preprocessing.steps import (
    FittedStep,
    StepState,
    fit_dummy,
    fit_interact,
    fit_log,
    fit_normalize,
    fit_novel,
    fit_poly,
    fit_spline_step,
    fit_zero_variance,
)
from statflow.errors import ConfigurationError
from statflow.registries.base import Registry

StepFitter = Callable[[Any, StepState], FittedStep]

_STEPS: Registry[str, StepFitter] = Registry(_name="steps")


def register_step(name: str) -> Callable[[StepFitter], StepFitter]:
    return _STEPS.register(name)


register_step("normalize")(fit_normalize)
register_step("novel")(fit_novel)
register_step("dummy")(fit_dummy)
register_step("zv")(fit_zero_variance)
register_step("poly")(fit_poly)
register_step("spline")(fit_spline_step)
register_step("interact")(fit_interact)
register_step("log")(fit_log)


def make_step_fitter(cfg: Any) -> StepFitter:
    fitter = _STEPS.try_get(getattr(cfg, "step", None))
    if fitter is None:
        raise ConfigurationError(f"No fitter registered for step {getattr(cfg, 'step', cfg)!r}")
    return fitter


def list_steps() -> list[str]:
    return sorted(_STEPS.keys())
