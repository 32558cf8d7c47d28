from .fitted import FittedModel, design_matrix, fit_model

__all__ = ["FittedModel", "design_matrix", "fit_model"]
