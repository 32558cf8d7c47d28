from .recipe import FittedTransform, fit_transform_spec

__all__ = ["FittedTransform", "fit_transform_spec"]
