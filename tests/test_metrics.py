import math

import numpy as np
import pandas as pd
import pytest

from statflow.components.evaluation import build_confusion, compute_metric, default_metrics, get_metric, list_metrics, metric_set
from statflow.errors import ConfigurationError, UnknownMetricError

LEVELS = ("A", "B")
TRUTH = ["A", "A", "B", "B"]
CLASS_PREDS = pd.DataFrame({".pred_class": ["A", "B", "B", "B"]})


def _score(name, preds, truth, **kw):
    return compute_metric(get_metric(name), preds, truth, **kw)


class TestRegressionMetrics:
    def test_values(self):
        preds = pd.DataFrame({".pred": [1.0, 2.0, 5.0]})
        truth = [1.0, 2.0, 3.0]
        assert _score("mse", preds, truth) == pytest.approx(4.0 / 3.0)
        assert _score("rmse", preds, truth) == pytest.approx(math.sqrt(4.0 / 3.0))
        assert _score("mae", preds, truth) == pytest.approx(2.0 / 3.0)

    def test_rsq_is_squared_correlation(self):
        truth = np.array([1.0, 2.0, 3.0, 4.0])
        preds = pd.DataFrame({".pred": 2.0 * truth + 1.0})
        assert _score("rsq", preds, truth) == pytest.approx(1.0)

    def test_rsq_of_constant_prediction_is_nan(self):
        preds = pd.DataFrame({".pred": [2.0, 2.0, 2.0]})
        assert math.isnan(_score("rsq", preds, [1.0, 2.0, 3.0]))

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            _score("rmse", pd.DataFrame({".pred": [1.0, 2.0]}), [1.0, 2.0, 3.0])

    def test_missing_prediction_column(self):
        with pytest.raises(ConfigurationError):
            _score("rmse", pd.DataFrame({".pred_class": ["A"]}), [1.0])


class TestClassMetrics:
    def test_first_level_is_the_event(self):
        ms = metric_set("accuracy", "sensitivity", "specificity", "precision", "kap")
        values = ms.compute(CLASS_PREDS, TRUTH, levels=LEVELS)
        assert values["accuracy"] == pytest.approx(0.75)
        assert values["sensitivity"] == pytest.approx(0.5)
        assert values["specificity"] == pytest.approx(1.0)
        assert values["precision"] == pytest.approx(1.0)
        assert values["kap"] == pytest.approx(0.5)

    def test_second_level_as_event(self):
        values = metric_set("sensitivity", "specificity", "precision", "f_meas").compute(
            CLASS_PREDS, TRUTH, levels=LEVELS, event_level="second"
        )
        assert values["sensitivity"] == pytest.approx(1.0)
        assert values["specificity"] == pytest.approx(0.5)
        assert values["precision"] == pytest.approx(2.0 / 3.0)
        assert values["f_meas"] == pytest.approx(0.8)

    def test_roc_auc_and_log_loss(self):
        preds = pd.DataFrame({".pred_A": [0.9, 0.8, 0.3, 0.1], ".pred_B": [0.1, 0.2, 0.7, 0.9]})
        values = metric_set("roc_auc", "mn_log_loss").compute(preds, TRUTH, levels=LEVELS)
        assert values["roc_auc"] == pytest.approx(1.0)
        expected = -np.mean(np.log([0.9, 0.8, 0.7, 0.9]))
        assert values["mn_log_loss"] == pytest.approx(expected)

    def test_log_loss_follows_declared_level_order(self):
        preds = pd.DataFrame({".pred_yes": [0.8, 0.3], ".pred_no": [0.2, 0.7]})
        value = _score("mn_log_loss", preds, ["yes", "no"], levels=("yes", "no"))
        assert value == pytest.approx(-np.mean(np.log([0.8, 0.7])))

    def test_roc_auc_single_class_is_nan(self):
        preds = pd.DataFrame({".pred_A": [0.9, 0.8], ".pred_B": [0.1, 0.2]})
        assert math.isnan(_score("roc_auc", preds, ["A", "A"], levels=LEVELS))

    def test_levels_required(self):
        with pytest.raises(ConfigurationError):
            _score("accuracy", CLASS_PREDS, TRUTH)

    def test_confusion_matrix(self):
        cm = build_confusion(TRUTH, CLASS_PREDS[".pred_class"], LEVELS)
        np.testing.assert_array_equal(cm.counts, [[1, 1], [0, 2]])
        assert cm.accuracy == pytest.approx(0.75)
        table = cm.table()
        assert table.loc["A", "B"] == 1
        summary = cm.summary().set_index("metric")["estimate"]
        assert summary["kap"] == pytest.approx(0.5)

    def test_summary_event_level(self):
        cm = build_confusion(TRUTH, CLASS_PREDS[".pred_class"], LEVELS)
        first = cm.summary("first").set_index("metric")["estimate"]
        second = cm.summary("second").set_index("metric")["estimate"]
        assert first["sensitivity"] == pytest.approx(0.5)
        assert second["sensitivity"] == pytest.approx(1.0)
        with pytest.raises(ConfigurationError, match="event_level"):
            cm.summary("B")


class TestMetricSets:
    def test_unknown_metric(self):
        with pytest.raises(UnknownMetricError):
            metric_set("rmse", "bogus")

    def test_duplicates(self):
        with pytest.raises(UnknownMetricError):
            metric_set("rmse", "rmse")

    def test_wrong_task(self):
        with pytest.raises(UnknownMetricError):
            metric_set("rmse", task="classification")

    def test_defaults(self):
        assert default_metrics("regression").names == ["rmse", "rsq"]
        assert default_metrics("classification").names == ["accuracy", "roc_auc"]

    def test_listing(self):
        assert list_metrics("regression") == ["mae", "mse", "rmse", "rsq"]
        assert "roc_auc" in list_metrics("classification")
        assert len(list_metrics()) == 12

    def test_direction(self):
        assert get_metric("rmse").direction == "minimize"
        assert get_metric("accuracy").direction == "maximize"
