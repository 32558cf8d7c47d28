import logging

import numpy as np
import pandas as pd
import pytest

from statflow.components.splitters import initial_split, vfold
from statflow.components.splitters.strata import make_strata
from statflow.core.dataset import Dataset
from statflow.errors import (
    ConfigurationError,
    EmptyPartitionError,
    EvaluationReuseError,
    InvalidProportionError,
    UnknownColumnError,
)


@pytest.fixture
def imbalanced() -> Dataset:
    """400 rows of class A and 100 of class B, interleaved."""
    labels = np.array(["A"] * 400 + ["B"] * 100)
    order = np.random.default_rng(0).permutation(500)
    frame = pd.DataFrame({"x": np.arange(500, dtype=float), "cls": labels[order]})
    return Dataset.from_frame(frame)


def _share_b(ds: Dataset) -> float:
    return float(np.mean(ds.column("cls") == "B"))


class TestInitialSplit:
    def test_sizes(self, linear_data):
        split = initial_split(linear_data, 0.75, seed=1)
        assert split.n_train == 150
        assert split.n_test == 50
        assert len(np.intersect1d(split.train_idx, split.test_idx)) == 0
        assert sorted(np.concatenate([split.train_idx, split.test_idx]).tolist()) == list(range(200))

    @pytest.mark.parametrize("prop", [0.0, 1.0, 1.5, -0.2, float("nan"), "half"])
    def test_invalid_proportion(self, linear_data, prop):
        with pytest.raises(InvalidProportionError):
            initial_split(linear_data, prop)

    def test_empty_partition(self):
        ds = Dataset.from_frame(pd.DataFrame({"x": [1.0, 2.0, 3.0]}))
        with pytest.raises(EmptyPartitionError):
            initial_split(ds, 0.1)

    def test_same_seed_same_rows(self, linear_data):
        a = initial_split(linear_data, 0.7, seed=42)
        b = initial_split(linear_data, 0.7, seed=42)
        c = initial_split(linear_data, 0.7, seed=43)
        np.testing.assert_array_equal(a.train_idx, b.train_idx)
        assert not np.array_equal(a.train_idx, c.train_idx)

    def test_stratified_proportions(self, imbalanced):
        split = initial_split(imbalanced, 0.7, strata="cls", seed=9)
        train, test = split
        assert abs(_share_b(train) - 0.2) <= 0.02
        assert abs(_share_b(test) - 0.2) <= 0.02
        assert split.n_train == 350

    def test_stratified_seventy_thirty(self):
        labels = np.array(["A"] * 280 + ["B"] * 120)[np.random.default_rng(5).permutation(400)]
        ds = Dataset.from_frame(pd.DataFrame({"x": np.arange(400, dtype=float), "cls": labels}))
        train, test = initial_split(ds, 0.75, strata="cls", seed=2)
        assert len(train) == 300
        assert abs(_share_b(train) - 0.3) <= 0.02
        assert abs(_share_b(test) - 0.3) <= 0.02

    def test_unknown_strata_column(self, imbalanced):
        with pytest.raises(UnknownColumnError):
            initial_split(imbalanced, 0.7, strata="nope")

    def test_consume_testing_once(self, linear_data, caplog):
        split = initial_split(linear_data, 0.8, seed=2)
        test = split.consume_testing()
        assert len(test) == 40
        with pytest.raises(EvaluationReuseError):
            split.consume_testing()
        with caplog.at_level(logging.WARNING, logger="statflow"):
            split.testing()
        assert "again" in caplog.text


class TestStrata:
    def test_numeric_column_is_binned(self):
        ds = Dataset.from_frame(pd.DataFrame({"v": np.arange(100, dtype=float)}))
        codes = make_strata(ds, "v", breaks=4, pool=0.1)
        assert sorted(np.unique(codes).tolist()) == [0, 1, 2, 3]
        assert np.bincount(codes).min() >= 25

    def test_small_strata_are_pooled(self):
        labels = ["A"] * 95 + ["B"] * 5
        ds = Dataset.from_frame(pd.DataFrame({"cls": labels}))
        codes = make_strata(ds, "cls", breaks=4, pool=0.1)
        assert np.unique(codes).size == 1

    def test_pooling_disabled(self):
        labels = ["A"] * 95 + ["B"] * 5
        ds = Dataset.from_frame(pd.DataFrame({"cls": labels}))
        codes = make_strata(ds, "cls", breaks=4, pool=0.0)
        assert np.unique(codes).size == 2

    def test_breaks_below_two(self, imbalanced):
        with pytest.raises(ConfigurationError):
            make_strata(imbalanced, "x", breaks=1, pool=0.1)

    def test_defaults_come_from_environment(self, imbalanced, monkeypatch):
        monkeypatch.setenv("STATFLOW_STRATA_BREAKS", "5")
        monkeypatch.setenv("STATFLOW_POOL_THRESHOLD", "0.0")
        codes = make_strata(imbalanced, "x")
        assert np.unique(codes).size == 5


class TestVFold:
    def test_every_row_assessed_once(self, linear_data):
        folds = vfold(linear_data, 10, seed=3)
        assert len(folds) == 10
        assessed = np.concatenate([f.assessment_idx for f in folds])
        assert sorted(assessed.tolist()) == list(range(200))
        for f in folds:
            assert len(np.intersect1d(f.analysis_idx, f.assessment_idx)) == 0
            assert len(f.analysis_idx) + len(f.assessment_idx) == 200

    def test_fold_sizes_balanced(self):
        ds = Dataset.from_frame(pd.DataFrame({"x": np.arange(103, dtype=float)}))
        sizes = [len(f.assessment_idx) for f in vfold(ds, 10, seed=0)]
        assert max(sizes) - min(sizes) <= 1

    def test_stratified_folds(self, imbalanced):
        folds = vfold(imbalanced, 5, strata="cls", seed=4)
        for f in folds:
            assert abs(_share_b(f.assessment(imbalanced)) - 0.2) <= 0.02

    def test_strata_smaller_than_v(self, caplog):
        ds = Dataset.from_frame(pd.DataFrame({"x": np.arange(12, dtype=float), "cls": ["A", "B", "C"] * 4}))
        with caplog.at_level(logging.WARNING, logger="statflow"):
            folds = vfold(ds, 6, strata="cls", seed=0, pool=0.0)
        assert "not stratified" in caplog.text
        assessed = np.concatenate([f.assessment_idx for f in folds])
        assert sorted(assessed.tolist()) == list(range(12))

    def test_same_seed_same_folds(self, imbalanced):
        a = vfold(imbalanced, 5, strata="cls", seed=8)
        b = vfold(imbalanced, 5, strata="cls", seed=8)
        for fa, fb in zip(a, b):
            np.testing.assert_array_equal(fa.assessment_idx, fb.assessment_idx)

    def test_ids_and_repeats(self, linear_data):
        single = vfold(linear_data, 5, seed=1)
        assert single.ids == ["Fold1", "Fold2", "Fold3", "Fold4", "Fold5"]
        repeated = vfold(linear_data, 5, repeats=2, seed=1)
        assert len(repeated) == 10
        assert repeated.ids[0] == "Repeat1/Fold1"
        assert repeated.ids[-1] == "Repeat2/Fold5"
        first = [f.assessment_idx for f in repeated.folds[:5]]
        second = [f.assessment_idx for f in repeated.folds[5:]]
        assert any(not np.array_equal(a, b) for a, b in zip(first, second))

    def test_two_digit_ids(self, linear_data):
        assert vfold(linear_data, 10, seed=1).ids[0] == "Fold01"

    @pytest.mark.parametrize("v", [1, 0, 2.5])
    def test_invalid_v(self, linear_data, v):
        with pytest.raises(ConfigurationError):
            vfold(linear_data, v)

    def test_more_folds_than_rows(self):
        ds = Dataset.from_frame(pd.DataFrame({"x": [1.0, 2.0, 3.0]}))
        with pytest.raises(ConfigurationError):
            vfold(ds, 5)

