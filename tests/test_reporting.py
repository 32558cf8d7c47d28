import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from matplotlib.figure import Figure

from statflow.components.splitters import vfold
from statflow.components.tuning import expand_grid
from statflow.contracts.model_configs import ElasticNetConfig, KNNConfig, LinearRegConfig, LogRegConfig
from statflow.contracts.tuning_configs import tune
from statflow.errors import ConfigurationError, NotFittedError, UnknownColumnError, UnsupportedOperationError
from statflow.reporting import augment, coefficient_table, confusion_matrix, metrics_table
from statflow.reporting.plots import (
    plot_coefficients,
    plot_confusion,
    plot_histogram,
    plot_regularization_path,
    plot_residuals,
    plot_scatter_fit,
    plot_tuning_curve,
)
from statflow.use_cases.tuning import tune_grid
from statflow.use_cases.workflow import Workflow


@pytest.fixture
def ols(linear_data, linear_roles):
    return Workflow(roles=linear_roles, model=LinearRegConfig()).fit(linear_data)


@pytest.fixture
def logit(two_class_data, class_roles):
    return Workflow(roles=class_roles, model=LogRegConfig()).fit(two_class_data)


class TestTables:
    def test_coefficient_table_with_intervals(self, ols):
        table = coefficient_table(ols, conf_level=0.95)
        assert {"conf_low", "conf_high"} <= set(table.columns)
        assert (table["conf_low"] < table["estimate"]).all()
        assert (table["estimate"] < table["conf_high"]).all()

    def test_wald_intervals_for_logistic(self, logit):
        table = coefficient_table(logit, conf_level=0.9)
        assert (table["conf_high"] - table["conf_low"] > 0).all()

    def test_unfitted_workflow_is_rejected(self, linear_data, linear_roles):
        workflow = Workflow(roles=linear_roles, model=LinearRegConfig())
        with pytest.raises(NotFittedError):
            coefficient_table(workflow)
        with pytest.raises(NotFittedError):
            augment(workflow, linear_data)

    def test_penalised_fit_has_no_standard_errors(self, linear_data, linear_roles):
        fitted = Workflow(roles=linear_roles, model=ElasticNetConfig(penalty=1.0)).fit(linear_data)
        table = coefficient_table(fitted)
        assert table["std_error"].isna().all()
        assert table["term"].tolist() == ["(Intercept)", "x1", "x2"]

    def test_invalid_conf_level(self, ols):
        with pytest.raises(ConfigurationError):
            coefficient_table(ols, conf_level=1.5)

    def test_confusion_matrix(self, logit, two_class_data):
        preds = augment(logit, two_class_data)
        cm = confusion_matrix(preds, truth="class", levels=logit.levels)
        assert cm.table().shape == (2, 2)
        assert cm.counts.sum() == len(two_class_data)
        assert cm.accuracy > 0.85

    def test_confusion_matrix_unknown_column(self, logit, two_class_data):
        preds = augment(logit, two_class_data)
        with pytest.raises(UnknownColumnError):
            confusion_matrix(preds, truth="label")

    def test_metrics_table(self, logit, two_class_data):
        preds = augment(logit, two_class_data)
        table = metrics_table(preds, "class", ["accuracy", "roc_auc"], levels=logit.levels)
        assert table[".metric"].tolist() == ["accuracy", "roc_auc"]
        assert (table[".estimate"] > 0.85).all()

    def test_default_levels_keep_declared_order(self):
        preds = pd.DataFrame(
            {
                "class": ["yes", "yes", "yes", "no"],
                ".pred_class": ["yes", "no", "yes", "no"],
                ".pred_yes": [0.9, 0.4, 0.8, 0.2],
                ".pred_no": [0.1, 0.6, 0.2, 0.8],
            }
        )
        cm = confusion_matrix(preds, truth="class")
        assert cm.levels == ("yes", "no")
        table = metrics_table(preds, "class", ["sensitivity"]).set_index(".metric")[".estimate"]
        assert table["sensitivity"] == pytest.approx(2 / 3)
        second = metrics_table(preds, "class", ["sensitivity"], event_level="second")
        assert second[".estimate"].iloc[0] == pytest.approx(1.0)

    def test_default_levels_from_categories(self):
        preds = pd.DataFrame(
            {
                "class": pd.Categorical(["yes", "no", "yes"], categories=["yes", "no"]),
                ".pred_class": ["yes", "no", "no"],
            }
        )
        assert confusion_matrix(preds, truth="class").levels == ("yes", "no")

    def test_invalid_event_level(self, logit, two_class_data):
        preds = augment(logit, two_class_data)
        with pytest.raises(ConfigurationError):
            metrics_table(preds, "class", ["sensitivity"], event_level="last")
        cm = confusion_matrix(preds, truth="class", levels=logit.levels)
        with pytest.raises(ConfigurationError):
            cm.summary(event_level="last")

    def test_glance_reports_fit(self, ols):
        assert ols.glance().iloc[0]["adj_r_squared"] <= ols.glance().iloc[0]["r_squared"]


class TestPlots:
    def _check(self, fig):
        assert isinstance(fig, Figure)
        plt.close(fig)

    def test_data_plots(self, linear_data, ols):
        self._check(plot_histogram(linear_data, "y"))
        self._check(plot_scatter_fit(linear_data, "x1", "y"))
        self._check(plot_scatter_fit(linear_data, "x1", "y", fitted=ols))

    def test_histogram_of_nominal_column(self, two_class_data):
        with pytest.raises(ConfigurationError):
            plot_histogram(two_class_data, "class")

    def test_model_plots(self, linear_data, ols):
        self._check(plot_residuals(ols, linear_data))
        self._check(plot_coefficients(ols))

    def test_residuals_need_regression(self, logit, two_class_data):
        with pytest.raises(UnsupportedOperationError):
            plot_residuals(logit, two_class_data)

    def test_confusion_plot(self, logit, two_class_data):
        cm = confusion_matrix(augment(logit, two_class_data), truth="class", levels=logit.levels)
        self._check(plot_confusion(cm))

    def test_tuning_curve(self, linear_data, linear_roles):
        wf = Workflow(roles=linear_roles, model=ElasticNetConfig(penalty=tune(), mixture=tune()))
        grid = expand_grid(penalty=[0.01, 1.0, 100.0], mixture=[0.0, 1.0])
        result = tune_grid(wf, vfold(linear_data, 3, seed=1), grid, metrics=["rmse"])
        self._check(plot_tuning_curve(result, "penalty"))
        with pytest.raises(ConfigurationError):
            plot_tuning_curve(result, "neighbors")

    def test_regularization_path_plot(self, linear_data, linear_roles):
        wf = Workflow(roles=linear_roles, model=ElasticNetConfig(mixture=1.0))
        self._check(plot_regularization_path(wf, linear_data, np.logspace(-2, 3, 6)))

    def test_path_for_knn(self, two_class_data, class_roles):
        with pytest.raises(UnsupportedOperationError):
            plot_regularization_path(Workflow(roles=class_roles, model=KNNConfig()), two_class_data, [1.0])
