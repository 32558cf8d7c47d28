from .readers import from_frame, read_csv

__all__ = ["from_frame", "read_csv"]
