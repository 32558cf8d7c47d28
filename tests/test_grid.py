import numpy as np
import pandas as pd
import pytest

from statflow.components.tuning.grid import expand_grid, grid_regular, validate_grid
from statflow.contracts.tuning_configs import ParamRange, degree, mixture, neighbors, penalty
from statflow.errors import InvalidGridError


class TestGridBuilders:
    def test_expand_grid_order(self):
        grid = expand_grid(penalty=[0.1, 1.0], mixture=[0.0, 1.0])
        assert grid.values.tolist() == [[0.1, 0.0], [0.1, 1.0], [1.0, 0.0], [1.0, 1.0]]

    def test_expand_grid_empty_values(self):
        with pytest.raises(InvalidGridError):
            expand_grid(penalty=[])

    def test_regular_log_scale(self):
        grid = grid_regular(penalty(), levels=3)
        np.testing.assert_allclose(grid["penalty"], [1e-10, 1e-5, 1.0])

    def test_regular_integer_range(self):
        grid = grid_regular(neighbors(1, 10), levels=4)
        assert grid["neighbors"].tolist() == [1, 4, 7, 10]

    def test_levels_per_parameter(self):
        grid = grid_regular(penalty(-3, 0), mixture(), levels={"penalty": 4, "mixture": 2})
        assert len(grid) == 8

    def test_integer_range_collapses_duplicates(self):
        assert degree(1, 2).values(5) == [1, 2]

    def test_range_bounds(self):
        with pytest.raises(ValueError):
            ParamRange(name="p", low=2.0, high=1.0)


class TestValidateGrid:
    def test_no_parameters_means_one_candidate(self):
        assert validate_grid(None, []) == [{}]

    def test_grid_required_for_markers(self):
        with pytest.raises(InvalidGridError):
            validate_grid(None, ["penalty"])

    def test_native_values(self):
        out = validate_grid(pd.DataFrame({"penalty": np.array([0.1, 1.0])}), ["penalty"])
        assert out == [{"penalty": 0.1}, {"penalty": 1.0}]
        assert type(out[0]["penalty"]) is float

    def test_list_of_dicts(self):
        assert validate_grid([{"k": 1}, {"k": 3}], ["k"]) == [{"k": 1}, {"k": 3}]

    @pytest.mark.parametrize(
        "grid",
        [
            pd.DataFrame({"other": [1.0]}),
            pd.DataFrame({"penalty": [1.0], "extra": [2.0]}),
            pd.DataFrame({"penalty": [1.0, 1.0]}),
            pd.DataFrame({"penalty": [np.nan]}),
            pd.DataFrame({"penalty": [np.inf]}),
            pd.DataFrame({"penalty": []}),
        ],
        ids=["missing", "extra", "duplicate", "nan", "inf", "empty"],
    )
    def test_invalid(self, grid):
        with pytest.raises(InvalidGridError):
            validate_grid(grid, ["penalty"])

    def test_unexpected_grid_for_final_workflow(self):
        with pytest.raises(InvalidGridError):
            validate_grid(pd.DataFrame({"penalty": [1.0]}), [])
