from .tables import augment, coefficient_table, confusion_matrix, metrics_table, regularization_path

__all__ = ["augment", "coefficient_table", "confusion_matrix", "metrics_table", "regularization_path"]
