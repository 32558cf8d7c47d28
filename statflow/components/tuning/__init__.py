from .grid import expand_grid, grid_regular, validate_grid
from .runner import run_grid
from .selection import Desc, TuningResult, desc

__all__ = ["expand_grid", "grid_regular", "validate_grid", "run_grid", "Desc", "TuningResult", "desc"]
